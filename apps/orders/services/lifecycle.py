"""
Order lifecycle service.

Vendor orders move PENDING -> PROCESSING -> DELIVERED, or to CANCELLED from
either open state. The parent order's status is derived from its children.
Payment verification is a conditional UPDATE on the pending payment status,
so a vendor and an admin racing on the same vendor order cannot both win.
"""

from typing import Optional
from uuid import UUID

from django.db import transaction
from django.db.models import Q, QuerySet
from django.utils import timezone

from apps.accounts.models import User
from apps.delivery.models import DeliveryTask, DeliveryTaskStatus, Driver, DriverStatus
from apps.orders.models import (
    DeliveryType,
    Order,
    OrderStatus,
    VendorOrder,
    VendorPaymentStatus,
)
from apps.payments.models import Transaction, TransactionKind, TransactionStatus
from apps.payments.notifications import notify
from apps.payments.services import (
    ensure_provider_offered,
    method_matches_provider,
    normalize_reference,
    record_payment_attempt,
    settle_transaction,
    PaymentValidationError,
)
from config.logging import get_logger

from .calculator import calculate_escrow_split
from .exceptions import (
    InvalidTransitionError,
    NotAuthorizedError,
    OrderNotFoundError,
    OrderValidationError,
    PaymentAlreadyResolvedError,
    VendorOrderNotFoundError,
)

logger = get_logger(__name__)

OPEN_STATUSES = (OrderStatus.PENDING, OrderStatus.PROCESSING)


# --- Queries -----------------------------------------------------------------

def visible_orders(actor: User) -> QuerySet[Order]:
    """
    Non-voided orders the actor may see.

    Admins see everything, sellers see orders containing their vendor
    orders, everyone else sees orders they placed or received.
    """
    queryset = (
        Order.objects
        .filter(voided=False)
        .select_related('customer', 'placed_by', 'sales_rep')
        .prefetch_related('vendor_orders__items')
    )
    if actor.is_platform_admin:
        return queryset
    if actor.is_seller:
        return queryset.filter(vendor_orders__vendor=actor).distinct()
    return queryset.filter(Q(customer=actor) | Q(placed_by=actor) | Q(sales_rep=actor)).distinct()


def get_order(*, actor: User, order_id: UUID) -> Order:
    """
    Raises:
        OrderNotFoundError: If the order doesn't exist, is voided or isn't
            visible to the actor
    """
    try:
        return visible_orders(actor).get(id=order_id)
    except Order.DoesNotExist:
        raise OrderNotFoundError(f"Order {order_id} not found")


def vendor_orders_for(actor: User, payment_status: Optional[str] = None) -> QuerySet[VendorOrder]:
    """The seller's vendor orders on live orders, optionally filtered by payment status."""
    queryset = (
        VendorOrder.objects
        .filter(order__voided=False)
        .select_related('order', 'vendor', 'customer')
        .prefetch_related('items')
    )
    if not actor.is_platform_admin:
        queryset = queryset.filter(vendor=actor)
    if payment_status:
        queryset = queryset.filter(payment_status=payment_status)
    return queryset


def _get_vendor_order(vendor_order_id: UUID) -> VendorOrder:
    try:
        return (
            VendorOrder.objects
            .select_related('order', 'vendor', 'customer')
            .get(id=vendor_order_id)
        )
    except VendorOrder.DoesNotExist:
        raise VendorOrderNotFoundError(f"Vendor order {vendor_order_id} not found")


def _require_vendor_or_admin(actor: User, vendor_order: VendorOrder) -> None:
    if actor.is_platform_admin or vendor_order.vendor_id == actor.id:
        return
    logger.warning(
        "User {} refused action on vendor order {} of vendor {}",
        actor.id, vendor_order.id, vendor_order.vendor_id
    )
    raise NotAuthorizedError("Only the vendor or an admin can manage this vendor order")


def _customer_of(vendor_order: VendorOrder):
    return vendor_order.customer or vendor_order.order.customer_phone


# --- Parent status -------------------------------------------------------------

def derive_order_status(child_statuses) -> str:
    """
    Status of a parent order given its vendor orders' statuses.

    Cancelled children are ignored unless every child is cancelled.
    """
    statuses = list(child_statuses)
    active = [s for s in statuses if s != OrderStatus.CANCELLED]
    if not active:
        return OrderStatus.CANCELLED if statuses else OrderStatus.PENDING
    if all(s == OrderStatus.DELIVERED for s in active):
        return OrderStatus.DELIVERED
    if any(s in (OrderStatus.PROCESSING, OrderStatus.DELIVERED) for s in active):
        return OrderStatus.PROCESSING
    return OrderStatus.PENDING


@transaction.atomic
def refresh_order_status(order: Order) -> Order:
    """
    Recompute ``order.status`` from its vendor orders.

    Terminal and voided orders are left alone. A PROCESSING order never
    drops back to PENDING (a driver may already be assigned).
    """
    order = Order.objects.select_for_update().get(pk=order.pk)
    if order.voided or order.status in (OrderStatus.DELIVERED, OrderStatus.CANCELLED):
        return order

    derived = derive_order_status(order.vendor_orders.values_list('status', flat=True))
    if derived == OrderStatus.PENDING and order.status == OrderStatus.PROCESSING:
        derived = OrderStatus.PROCESSING

    if derived != order.status:
        logger.info("Order {} {} -> {}", order.id, order.status, derived)
        order.status = derived
        fields = ['status', 'updated_at']
        if derived == OrderStatus.DELIVERED and order.escrow_released_at is None:
            order.escrow_released_at = timezone.now()
            fields.append('escrow_released_at')
        order.save(update_fields=fields)
    return order


# --- Cancellation --------------------------------------------------------------

def _release_delivery(order: Order, now) -> None:
    open_tasks = DeliveryTask.objects.filter(
        order=order,
        status__in=(DeliveryTaskStatus.ASSIGNED, DeliveryTaskStatus.PICKED_UP),
    )
    driver_ids = list(open_tasks.values_list('driver_id', flat=True))
    if not driver_ids:
        return
    open_tasks.update(status=DeliveryTaskStatus.CANCELLED)
    Driver.objects.filter(pk__in=driver_ids, status=DriverStatus.BUSY).update(
        status=DriverStatus.AVAILABLE,
        updated_at=now,
    )
    logger.info("Order {}: delivery cancelled, driver(s) {} released", order.id, driver_ids)


@transaction.atomic
def cancel_order(*, actor: User, order_id: UUID, reason: str = "") -> Order:
    """
    Cancel and void an open order.

    Every open vendor order is cancelled and any payment still awaiting
    verification is marked FAILED. A driver on the order is freed
    and the delivery task closed. Records are kept for audit but drop out
    of listings and reports.

    Raises:
        OrderNotFoundError: If the order doesn't exist
        NotAuthorizedError: If the actor didn't place or receive the order
        InvalidTransitionError: If the order is delivered or already cancelled
    """
    try:
        order = Order.objects.get(id=order_id)
    except Order.DoesNotExist:
        raise OrderNotFoundError(f"Order {order_id} not found")

    if not (actor.is_platform_admin or actor.id in (order.customer_id, order.placed_by_id)):
        raise NotAuthorizedError("You cannot cancel this order")

    now = timezone.now()
    updated = Order.objects.filter(
        pk=order.pk,
        voided=False,
        status__in=OPEN_STATUSES,
    ).update(status=OrderStatus.CANCELLED, voided=True, voided_at=now, updated_at=now)
    if not updated:
        order.refresh_from_db()
        raise InvalidTransitionError(f"Order {order.id} is {order.status} and cannot be cancelled")

    open_children = VendorOrder.objects.filter(order=order, status__in=OPEN_STATUSES)
    cancelled_ids = list(open_children.values_list('id', flat=True))
    open_children.update(status=OrderStatus.CANCELLED, updated_at=now)
    _release_delivery(order, now)

    pending = Transaction.objects.filter(
        vendor_order_id__in=cancelled_ids,
        status=TransactionStatus.PENDING_VERIFICATION,
    ).values_list('id', flat=True)
    for transaction_id in list(pending):
        settle_transaction(
            transaction_id=transaction_id,
            status=TransactionStatus.FAILED,
            resolved_by=actor,
            note=reason or "Order cancelled",
        )

    logger.info(
        "Order {} cancelled by {} ({} vendor orders)", order.id, actor.id, len(cancelled_ids)
    )
    order.refresh_from_db()
    return order


# --- Vendor payment verification ---------------------------------------------

def _pending_payment_ids(vendor_order: VendorOrder):
    return list(
        Transaction.objects.filter(
            vendor_order=vendor_order,
            kind=TransactionKind.PAYMENT,
            status=TransactionStatus.PENDING_VERIFICATION,
        ).values_list('id', flat=True)
    )


def _ensure_live(vendor_order: VendorOrder) -> None:
    if vendor_order.order.voided or vendor_order.status == OrderStatus.CANCELLED:
        raise InvalidTransitionError(f"Vendor order {vendor_order.id} has been cancelled")


@transaction.atomic
def verify_vendor_payment(*, actor: User, vendor_order_id: UUID) -> VendorOrder:
    """
    Accept the customer's payment for one vendor order.

    The vendor order becomes PAID and PROCESSING, its pending payment
    transaction is completed and the parent order is refreshed.

    Raises:
        VendorOrderNotFoundError: If the vendor order doesn't exist
        NotAuthorizedError: If the actor is neither the vendor nor an admin
        InvalidTransitionError: If the order was cancelled
        PaymentAlreadyResolvedError: If the payment was already verified
            or rejected
    """
    vendor_order = _get_vendor_order(vendor_order_id)
    _require_vendor_or_admin(actor, vendor_order)
    _ensure_live(vendor_order)

    now = timezone.now()
    updated = VendorOrder.objects.filter(
        pk=vendor_order.pk,
        payment_status=VendorPaymentStatus.PENDING_VERIFICATION,
        status__in=OPEN_STATUSES,
    ).update(
        payment_status=VendorPaymentStatus.PAID,
        status=OrderStatus.PROCESSING,
        paid_at=now,
        updated_at=now,
    )
    vendor_order.refresh_from_db()
    if not updated:
        logger.warning(
            "Refused to verify vendor order {} (vendor {}): payment already {}",
            vendor_order.id, vendor_order.vendor_id, vendor_order.payment_status
        )
        raise PaymentAlreadyResolvedError(
            f"Payment for vendor order {vendor_order.id} is already {vendor_order.payment_status}"
        )

    for transaction_id in _pending_payment_ids(vendor_order):
        settle_transaction(
            transaction_id=transaction_id,
            status=TransactionStatus.COMPLETED,
            resolved_by=actor,
        )
    refresh_order_status(vendor_order.order)

    logger.info("Vendor order {} payment verified by {}", vendor_order.id, actor.id)
    notify(
        _customer_of(vendor_order),
        f"{vendor_order.vendor.get_display_name()} confirmed your payment "
        f"{vendor_order.transaction_reference}.",
        'success'
    )
    return vendor_order


@transaction.atomic
def reject_vendor_payment(*, actor: User, vendor_order_id: UUID, reason: str) -> VendorOrder:
    """
    Reject the reference the customer submitted for a vendor order.

    Raises:
        OrderValidationError: If no reason is given
        VendorOrderNotFoundError: If the vendor order doesn't exist
        NotAuthorizedError: If the actor is neither the vendor nor an admin
        InvalidTransitionError: If the order was cancelled
        PaymentAlreadyResolvedError: If the payment was already resolved
    """
    reason = (reason or '').strip()
    if not reason:
        raise OrderValidationError("A rejection reason is required")

    vendor_order = _get_vendor_order(vendor_order_id)
    _require_vendor_or_admin(actor, vendor_order)
    _ensure_live(vendor_order)

    updated = VendorOrder.objects.filter(
        pk=vendor_order.pk,
        payment_status=VendorPaymentStatus.PENDING_VERIFICATION,
    ).update(
        payment_status=VendorPaymentStatus.FAILED,
        rejection_reason=reason,
        updated_at=timezone.now(),
    )
    vendor_order.refresh_from_db()
    if not updated:
        logger.warning(
            "Refused to reject vendor order {} (vendor {}): payment already {}",
            vendor_order.id, vendor_order.vendor_id, vendor_order.payment_status
        )
        raise PaymentAlreadyResolvedError(
            f"Payment for vendor order {vendor_order.id} is already {vendor_order.payment_status}"
        )

    for transaction_id in _pending_payment_ids(vendor_order):
        settle_transaction(
            transaction_id=transaction_id,
            status=TransactionStatus.REJECTED,
            resolved_by=actor,
            note=reason,
        )

    logger.info("Vendor order {} payment rejected by {}: {}", vendor_order.id, actor.id, reason)
    notify(
        _customer_of(vendor_order),
        f"{vendor_order.vendor.get_display_name()} rejected payment "
        f"{vendor_order.transaction_reference}: {reason}",
        'error'
    )
    return vendor_order


@transaction.atomic
def resubmit_vendor_payment(
    *,
    actor: User,
    vendor_order_id: UUID,
    provider: str,
    method_type: str,
    reference: str
) -> VendorOrder:
    """
    Submit a new reference after the vendor rejected the previous one.

    A new PAYMENT transaction is recorded for the attempt; the rejected one
    stays as history.

    Raises:
        VendorOrderNotFoundError: If the vendor order doesn't exist
        NotAuthorizedError: If the actor didn't place the order
        InvalidTransitionError: If the payment isn't FAILED or the order
            was cancelled
        PaymentValidationError: If the reference, method or provider is invalid
    """
    vendor_order = _get_vendor_order(vendor_order_id)
    order = vendor_order.order
    if not (actor.is_platform_admin or actor.id in (order.customer_id, order.placed_by_id)):
        raise NotAuthorizedError("Only the customer can resubmit this payment")
    _ensure_live(vendor_order)

    code = normalize_reference(reference)
    if not method_matches_provider(provider, method_type):
        raise PaymentValidationError(f"{method_type} cannot be used with {provider}")
    ensure_provider_offered(vendor_order.vendor, provider)

    updated = VendorOrder.objects.filter(
        pk=vendor_order.pk,
        payment_status=VendorPaymentStatus.FAILED,
    ).update(
        payment_status=VendorPaymentStatus.PENDING_VERIFICATION,
        payment_provider=provider,
        payment_method_type=method_type,
        transaction_reference=code,
        rejection_reason='',
        updated_at=timezone.now(),
    )
    vendor_order.refresh_from_db()
    if not updated:
        raise InvalidTransitionError(
            f"Payment for vendor order {vendor_order.id} is {vendor_order.payment_status}; "
            "only rejected payments can be resubmitted"
        )

    record_payment_attempt(
        payer=actor,
        amount=vendor_order.total,
        provider=provider,
        method_type=method_type,
        reference=code,
        vendor=vendor_order.vendor,
        order=order,
        vendor_order=vendor_order,
        description=f"Resubmitted payment for order {str(order.id)[:8]}",
    )

    logger.info("Vendor order {} payment resubmitted with {}", vendor_order.id, code)
    notify(
        vendor_order.vendor,
        f"New payment reference {code} submitted for order {str(order.id)[:8]}.",
        'info'
    )
    return vendor_order


# --- Delivery -------------------------------------------------------------------

def _deliver(vendor_order: VendorOrder, now) -> bool:
    split = calculate_escrow_split(vendor_order.total)
    return bool(
        VendorOrder.objects.filter(
            pk=vendor_order.pk,
            status=OrderStatus.PROCESSING,
            payment_status=VendorPaymentStatus.PAID,
        ).update(
            status=OrderStatus.DELIVERED,
            delivered_at=now,
            vendor_payout=split.vendor_amount,
            platform_commission=split.commission,
            updated_at=now,
        )
    )


@transaction.atomic
def mark_vendor_order_delivered(*, actor: User, vendor_order_id: UUID) -> VendorOrder:
    """
    Vendor hands a paid self-pickup order to the customer.

    Records the escrow split on the vendor order and refreshes the parent.
    Home deliveries are completed by the driver with the customer's OTP.

    Raises:
        VendorOrderNotFoundError: If the vendor order doesn't exist
        NotAuthorizedError: If the actor is neither the vendor nor an admin
        InvalidTransitionError: If the order is home delivery, unpaid or not
            PROCESSING
    """
    vendor_order = _get_vendor_order(vendor_order_id)
    _require_vendor_or_admin(actor, vendor_order)
    _ensure_live(vendor_order)

    if vendor_order.order.delivery_type == DeliveryType.HOME_DELIVERY:
        raise InvalidTransitionError(
            "Home deliveries are completed by the driver with the customer's OTP"
        )

    if not _deliver(vendor_order, timezone.now()):
        vendor_order.refresh_from_db()
        raise InvalidTransitionError(
            f"Vendor order {vendor_order.id} is {vendor_order.status} with payment "
            f"{vendor_order.payment_status}; only paid, processing orders can be delivered"
        )

    vendor_order.refresh_from_db()
    refresh_order_status(vendor_order.order)
    logger.info(
        "Vendor order {} delivered; payout {} commission {}",
        vendor_order.id, vendor_order.vendor_payout, vendor_order.platform_commission
    )
    return vendor_order


def deliver_paid_vendor_orders(*, order: Order) -> int:
    """
    Mark every paid, processing vendor order of ``order`` delivered.

    Used when a driver completes a home delivery. Returns how many vendor
    orders were delivered. Callers hold the transaction.
    """
    now = timezone.now()
    delivered = sum(
        _deliver(vendor_order, now)
        for vendor_order in order.vendor_orders.filter(
            status=OrderStatus.PROCESSING,
            payment_status=VendorPaymentStatus.PAID,
        )
    )
    logger.info("Order {}: {} vendor orders delivered", order.id, delivered)
    return delivered
