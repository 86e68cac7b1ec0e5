"""
Home delivery service.

A seller assigns one of its drivers to a home-delivery order, the driver
picks the goods up and completes the hand-over with the customer's 4-digit
OTP. Completion delivers every paid vendor order, records the escrow split
and closes the parent order.
"""

import secrets
from typing import Optional
from uuid import UUID

from django.db import IntegrityError, transaction
from django.db.models import Q, QuerySet
from django.utils import timezone

from apps.accounts.models import User
from apps.orders.models import DeliveryType, Order, OrderStatus, VendorPaymentStatus
from apps.orders.services import deliver_paid_vendor_orders, refresh_order_status
from apps.payments.notifications import notify
from config.logging import get_logger

from .exceptions import (
    DeliveryConflictError,
    DeliveryNotAuthorizedError,
    DeliveryTaskNotFoundError,
    DeliveryValidationError,
    DriverNotFoundError,
    DriverUnavailableError,
    InvalidOtpError,
)
from .models import DeliveryTask, DeliveryTaskStatus, Driver, DriverStatus

logger = get_logger(__name__)


def _require_seller_or_admin(actor: User) -> None:
    if not (actor.is_seller or actor.is_platform_admin):
        raise DeliveryNotAuthorizedError("Only vendors, pharmacies and admins manage drivers")


# --- Drivers ---------------------------------------------------------------------

def register_driver(*, actor: User, name: str, phone: str, plate_number: str = "") -> Driver:
    """
    Add a driver to the actor's fleet.

    Raises:
        DeliveryNotAuthorizedError: If the actor is not a seller or admin
        DeliveryValidationError: If name or phone is missing
    """
    _require_seller_or_admin(actor)

    name = (name or '').strip()
    phone = (phone or '').strip()
    if not name or not phone:
        raise DeliveryValidationError("Driver name and phone are required")

    driver = Driver.objects.create(
        owner=actor,
        name=name,
        phone=phone,
        plate_number=(plate_number or '').strip().upper(),
    )
    logger.info("Driver {} registered by {}", driver.id, actor.id)
    return driver


def drivers_for(actor: User, status: Optional[str] = None) -> QuerySet[Driver]:
    queryset = Driver.objects.filter(is_active=True).select_related('owner')
    if not actor.is_platform_admin:
        queryset = queryset.filter(owner=actor)
    if status:
        queryset = queryset.filter(status=status)
    return queryset


def tasks_for(actor: User) -> QuerySet[DeliveryTask]:
    """Tasks of the actor's drivers, or of orders the actor placed or receives."""
    queryset = DeliveryTask.objects.select_related('order', 'driver')
    if actor.is_platform_admin:
        return queryset
    return queryset.filter(
        Q(driver__owner=actor) | Q(order__customer=actor) | Q(order__placed_by=actor)
    ).distinct()


# --- Tasks -----------------------------------------------------------------------

def _get_task(actor: User, task_id: UUID, lock: bool = False) -> DeliveryTask:
    queryset = DeliveryTask.objects.select_related('order', 'driver')
    if lock:
        queryset = queryset.select_for_update()
    try:
        task = queryset.get(id=task_id)
    except DeliveryTask.DoesNotExist:
        raise DeliveryTaskNotFoundError(f"Delivery task {task_id} not found")

    if not (actor.is_platform_admin or task.driver.owner_id == actor.id):
        raise DeliveryNotAuthorizedError("Only the driver's owner or an admin can update this delivery")
    return task



def _ensure_order_open(task: DeliveryTask) -> None:
    if task.order.voided or task.order.status == OrderStatus.CANCELLED:
        raise DeliveryConflictError(f"Order {task.order_id} was cancelled")

@transaction.atomic
def assign_driver(*, actor: User, order_id: UUID, driver_id: UUID) -> DeliveryTask:
    """
    Put a driver on a home-delivery order.

    The driver goes AVAILABLE -> BUSY and the order moves to PROCESSING.
    An order gets at most one delivery task.

    Raises:
        DriverNotFoundError: If the driver doesn't exist or isn't the actor's
        DeliveryValidationError: If the order doesn't exist, isn't a home
            delivery or is no longer open
        DeliveryNotAuthorizedError: If the actor sells nothing in the order
        DriverUnavailableError: If the driver is already busy
        DeliveryConflictError: If the order already has a driver
    """
    _require_seller_or_admin(actor)

    try:
        driver = drivers_for(actor).get(id=driver_id)
    except Driver.DoesNotExist:
        raise DriverNotFoundError(f"Driver {driver_id} not found")

    try:
        order = Order.objects.select_for_update().get(id=order_id, voided=False)
    except Order.DoesNotExist:
        raise DeliveryValidationError(f"Order {order_id} not found")

    if order.delivery_type != DeliveryType.HOME_DELIVERY:
        raise DeliveryValidationError("Only home-delivery orders get a driver")
    if order.status not in (OrderStatus.PENDING, OrderStatus.PROCESSING):
        raise DeliveryValidationError(f"Order {order.id} is {order.get_status_display()}")
    if not actor.is_platform_admin and not order.vendor_orders.filter(vendor=actor).exists():
        raise DeliveryNotAuthorizedError("You have no goods in this order")
    if DeliveryTask.objects.filter(order=order).exists():
        raise DeliveryConflictError(f"Order {order.id} already has a driver")

    claimed = Driver.objects.filter(pk=driver.pk, status=DriverStatus.AVAILABLE).update(
        status=DriverStatus.BUSY,
        updated_at=timezone.now(),
    )
    if not claimed:
        raise DriverUnavailableError(f"{driver.name} is already on a delivery")

    try:
        with transaction.atomic():
            task = DeliveryTask.objects.create(order=order, driver=driver, assigned_by=actor)
    except IntegrityError:
        raise DeliveryConflictError(f"Order {order.id} already has a driver")

    if order.status == OrderStatus.PENDING:
        Order.objects.filter(pk=order.pk, status=OrderStatus.PENDING).update(
            status=OrderStatus.PROCESSING,
            updated_at=timezone.now(),
        )

    logger.info("Driver {} assigned to order {} by {}", driver.id, order.id, actor.id)
    notify(
        order.customer or order.customer_phone,
        f"{driver.name} ({driver.phone}) will deliver your order. "
        f"Give them your delivery code when the goods arrive.",
    )
    return task


@transaction.atomic
def mark_picked_up(*, actor: User, task_id: UUID) -> DeliveryTask:
    """
    Raises:
        DeliveryTaskNotFoundError: If the task doesn't exist
        DeliveryNotAuthorizedError: If the actor doesn't own the driver
        DeliveryConflictError: If the task isn't ASSIGNED or the order was cancelled
    """
    task = _get_task(actor, task_id, lock=True)
    _ensure_order_open(task)
    updated = DeliveryTask.objects.filter(pk=task.pk, status=DeliveryTaskStatus.ASSIGNED).update(
        status=DeliveryTaskStatus.PICKED_UP,
        picked_up_at=timezone.now(),
    )
    task.refresh_from_db()
    if not updated:
        raise DeliveryConflictError(f"Delivery is {task.get_status_display()}, not assigned")
    logger.info("Delivery task {} picked up", task.id)
    return task


@transaction.atomic
def complete_delivery(*, actor: User, task_id: UUID, otp: str) -> DeliveryTask:
    """
    Finish a delivery with the customer's OTP.

    Every paid vendor order is delivered (escrow split recorded), the order
    becomes DELIVERED with ``escrow_released_at`` and the driver is free
    again. A wrong OTP, or goods still unpaid, change nothing.

    Raises:
        DeliveryTaskNotFoundError: If the task doesn't exist
        DeliveryNotAuthorizedError: If the actor doesn't own the driver
        InvalidOtpError: If the OTP doesn't match
        DeliveryConflictError: If the task isn't PICKED_UP, the order was
            cancelled or a vendor order in the parcel is still unpaid
    """
    task = _get_task(actor, task_id, lock=True)
    _ensure_order_open(task)
    order = task.order

    if task.status != DeliveryTaskStatus.PICKED_UP:
        raise DeliveryConflictError(f"Delivery is {task.get_status_display()}, not picked up")

    if not secrets.compare_digest((otp or '').strip(), order.delivery_otp):
        logger.warning("Wrong delivery OTP for order {} (task {})", order.id, task.id)
        raise InvalidOtpError("Delivery code does not match")

    unpaid = order.vendor_orders.exclude(status=OrderStatus.CANCELLED).exclude(
        payment_status=VendorPaymentStatus.PAID
    )
    if unpaid.exists():
        raise DeliveryConflictError(
            f"{unpaid.count()} vendor order(s) in this delivery are not paid yet"
        )

    now = timezone.now()
    DeliveryTask.objects.filter(pk=task.pk, status=DeliveryTaskStatus.PICKED_UP).update(
        status=DeliveryTaskStatus.DELIVERED,
        delivered_at=now,
    )
    Driver.objects.filter(pk=task.driver_id).update(status=DriverStatus.AVAILABLE, updated_at=now)

    deliver_paid_vendor_orders(order=order)
    order = refresh_order_status(order)

    task.refresh_from_db()
    logger.info("Order {} delivered by driver {}", order.id, task.driver_id)
    notify(order.customer or order.customer_phone, "Your order has been delivered. Thank you!", 'success')
    return task
