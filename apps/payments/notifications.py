"""
Fire-and-forget notifications.

Settlement code calls ``notify`` after state changes (new vendor order,
payment verified or rejected, subscription activated). Delivery is best
effort: a failing backend is logged and never interrupts the caller.
"""

from django.conf import settings
from django.utils.module_loading import import_string

from config.logging import get_logger

logger = get_logger(__name__)

SEVERITY_LEVELS = {
    'info': 'INFO',
    'success': 'SUCCESS',
    'warning': 'WARNING',
    'error': 'ERROR',
}


class NotificationBackend:
    def send(self, *, recipient, message: str, severity: str) -> None:
        raise NotImplementedError


class LogNotificationBackend(NotificationBackend):
    """Writes notifications to the application log."""

    def send(self, *, recipient, message: str, severity: str) -> None:
        level = SEVERITY_LEVELS.get(severity, 'INFO')
        logger.bind(recipient=str(getattr(recipient, 'id', recipient))).log(
            level, "Notify {}: {}", recipient, message
        )


def get_notification_backend() -> NotificationBackend:
    return import_string(settings.NOTIFICATION_BACKEND)()


def notify(recipient, message: str, severity: str = 'info') -> None:
    try:
        get_notification_backend().send(recipient=recipient, message=message, severity=severity)
    except Exception as e:
        logger.warning("Notification to {} failed: {}", recipient, e)
