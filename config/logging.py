import sys

from django.conf import settings
from loguru import logger


LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "<cyan>{extra[name]}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)

_configured = False


class AppLogger:
    """Global logger configuration for the settlement services.

    Sets the log level from ``settings.LOG_LEVEL``.
    """

    def __init__(self) -> None:
        global _configured
        if not _configured:
            log_level = getattr(settings, 'LOG_LEVEL', 'INFO').upper()
            logger.remove()
            logger.configure(extra={'name': 'nexabu'})
            logger.add(sink=sys.stderr, level=log_level, format=LOG_FORMAT)
            _configured = True
        self.logger = logger

    def get_logger(self, name: str = None):
        """Get the configured logger instance.

        Args:
            name (str, optional): Name for the logger context. Defaults to None.
        Returns:
            loguru.Logger: The configured logger instance.
        """
        if name:
            return self.logger.bind(name=name)
        return self.logger


def get_logger(name: str = None):
    """Get an application logger bound to ``name``."""
    return AppLogger().get_logger(name)
