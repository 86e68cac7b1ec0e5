"""
Offline order queue.

Clients that lose connectivity keep taking orders under a temporary id and
push them here when they reconnect. Each entry is replayed through checkout
with the temporary id as the order's client reference, so a replay that is
retried (or sent twice) still yields exactly one order.
"""

from dataclasses import dataclass, field
from typing import List
from uuid import UUID

from django.db import transaction
from django.db.models import F, QuerySet
from django.utils import timezone

from apps.accounts.models import User
from apps.orders.models import (
    DeliveryType,
    Order,
    QueuedOrder,
    QueuedOrderStatus,
    SalesChannel,
)
from apps.payments.services import PaymentsServiceError, vendor_payments_from_data
from config.logging import get_logger

from .checkout import place_order
from .exceptions import OrdersServiceError, OrderValidationError, QueuedOrderNotFoundError

logger = get_logger(__name__)

RETRYABLE_STATUSES = (QueuedOrderStatus.QUEUED, QueuedOrderStatus.FAILED)


@dataclass
class SyncResult:
    success: int = 0
    failed: int = 0
    errors: List[str] = field(default_factory=list)


def queue_order(*, actor: User, temp_id: str, payload: dict) -> QueuedOrder:
    """
    Store an order captured offline.

    Queuing the same ``temp_id`` again returns the existing entry unchanged.
    """
    temp_id = (temp_id or '').strip()
    if not temp_id:
        raise OrderValidationError("temp_id is required")
    if not isinstance(payload, dict):
        raise OrderValidationError("Queued order payload must be an object")

    queued, created = QueuedOrder.objects.get_or_create(
        temp_id=temp_id,
        defaults={'queued_by': actor, 'payload': payload},
    )
    if created:
        logger.info("Queued offline order {} from {}", temp_id, actor.id)
    return queued


def pending_orders() -> QuerySet[QueuedOrder]:
    """Entries still waiting to be replayed, oldest first."""
    return (
        QueuedOrder.objects
        .filter(status__in=RETRYABLE_STATUSES)
        .select_related('queued_by')
        .order_by('queued_at')
    )


def get_queued_order(*, queued_id: UUID) -> QueuedOrder:
    try:
        return QueuedOrder.objects.select_related('queued_by').get(id=queued_id)
    except QueuedOrder.DoesNotExist:
        raise QueuedOrderNotFoundError(f"Queued order {queued_id} not found")


def _checkout_kwargs(payload: dict) -> dict:
    """Checkout arguments from a queued payload; malformed shapes fail validation."""
    if not isinstance(payload, dict):
        raise OrderValidationError("Queued order payload must be an object")
    cart = payload.get('cart') or []
    payments = payload.get('payments') or []
    if not isinstance(cart, list) or not isinstance(payments, list):
        raise OrderValidationError("Queued order cart and payments must be lists")

    return {
        'cart': cart,
        'payments': vendor_payments_from_data(payments),
        'customer_name': str(payload.get('customer_name') or ''),
        'customer_phone': str(payload.get('customer_phone') or ''),
        'delivery_type': payload.get('delivery_type', DeliveryType.SELF_PICKUP),
        'delivery_address': str(payload.get('delivery_address') or ''),
        'distance_km': payload.get('distance_km'),
        'channel': payload.get('channel', SalesChannel.POS),
        'branch_id': str(payload.get('branch_id') or ''),
    }


def replay_queued_order(queued: QueuedOrder) -> Order:
    """
    Place a queued order through checkout.

    Synced entries return their order without replaying. On failure the
    entry is marked FAILED with the error and the exception propagates.
    """
    if queued.status == QueuedOrderStatus.SYNCED and queued.order_id:
        return queued.order

    QueuedOrder.objects.filter(pk=queued.pk).update(attempts=F('attempts') + 1)
    try:
        order = place_order(
            actor=queued.queued_by,
            client_reference=queued.temp_id,
            **_checkout_kwargs(queued.payload),
        )
    except (OrdersServiceError, PaymentsServiceError) as e:
        QueuedOrder.objects.filter(pk=queued.pk).update(
            status=QueuedOrderStatus.FAILED,
            last_error=str(e),
        )
        logger.warning("Replay of offline order {} failed: {}", queued.temp_id, e)
        raise

    QueuedOrder.objects.filter(pk=queued.pk).update(
        status=QueuedOrderStatus.SYNCED,
        order=order,
        last_error='',
        synced_at=timezone.now(),
    )
    queued.refresh_from_db()
    logger.info("Offline order {} synced as order {}", queued.temp_id, order.id)
    return order


def sync_pending_orders() -> SyncResult:
    """Replay every pending entry one at a time. One failure doesn't stop the rest."""
    result = SyncResult()
    for queued in pending_orders():
        try:
            replay_queued_order(queued)
        except (OrdersServiceError, PaymentsServiceError) as e:
            result.failed += 1
            result.errors.append(f"{queued.temp_id}: {e}")
        else:
            result.success += 1

    logger.info("Offline sync finished: {} synced, {} failed", result.success, result.failed)
    return result


@transaction.atomic
def clear_synced() -> int:
    """Delete entries that have been synced. Returns how many were removed."""
    deleted, _ = QueuedOrder.objects.filter(status=QueuedOrderStatus.SYNCED).delete()
    if deleted:
        logger.info("Cleared {} synced offline orders", deleted)
    return deleted
