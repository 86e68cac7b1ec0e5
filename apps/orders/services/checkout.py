"""
Checkout service.

Turns a multi-vendor cart into an Order with one VendorOrder per vendor.
Everything is validated before the first write. Each vendor group is then
persisted in its own database transaction; if one fails, the groups already
written stay and ``PartialCheckoutError`` says which vendor is missing.
Placing the order again with the same ``client_reference`` resumes it.
"""

import secrets
import uuid
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import Sum

from apps.accounts.models import User, UserRole
from apps.catalog.models import Product
from apps.orders.models import (
    DeliveryType,
    Order,
    SalesChannel,
    VendorOrder,
    VendorOrderItem,
)
from apps.payments.notifications import notify
from apps.payments.services import (
    VendorPayment,
    ensure_can_submit,
    ensure_provider_offered,
    record_payment_attempt,
)
from config.logging import get_logger

from .calculator import ZERO, calculate_commission, calculate_delivery_fee
from .exceptions import (
    EmptyCartError,
    MissingCustomerDetailsError,
    OrderValidationError,
    PartialCheckoutError,
    ProductNotFoundError,
)
from .partitioner import OrderDraft, VendorOrderDraft, partition_cart

logger = get_logger(__name__)


def generate_delivery_otp() -> str:
    """Four-digit code the customer gives the driver on hand-over."""
    return str(secrets.randbelow(9000) + 1000)


def _load_cart(cart: Iterable[dict]) -> list:
    """Resolve ``{'product_id', 'quantity'}`` entries to ``(Product, quantity)`` pairs."""
    entries = list(cart or [])
    if not entries:
        raise EmptyCartError("Cart is empty")

    ids = []
    for entry in entries:
        if not isinstance(entry, dict):
            raise OrderValidationError(f"Cart entries must be objects, got {entry!r}")
        try:
            ids.append(str(uuid.UUID(str(entry['product_id']))))
        except (KeyError, ValueError):
            raise ProductNotFoundError(f"Invalid product id: {entry.get('product_id')!r}")

    products = {
        str(p.id): p
        for p in Product.objects.filter(id__in=set(ids), is_active=True).select_related('vendor')
    }
    missing = sorted(set(ids) - products.keys())
    if missing:
        raise ProductNotFoundError(f"Products not found or unavailable: {', '.join(missing)}")

    return [(products[pid], entry.get('quantity')) for pid, entry in zip(ids, entries)]


def _resolve_customer(actor: User, customer_name: str, customer_phone: str):
    customer = actor if actor.role == UserRole.CUSTOMER else None
    if customer is not None:
        customer_name = customer_name or customer.get_display_name()
        customer_phone = customer_phone or customer.phone

    customer_name = (customer_name or '').strip()
    customer_phone = (customer_phone or '').strip()
    if not customer_name or not customer_phone:
        raise MissingCustomerDetailsError("Customer name and phone are required")
    return customer, customer_name, customer_phone


def _rep_commission_rate(actor: User) -> Optional[Decimal]:
    if actor.role == UserRole.SALES_REP:
        return actor.commission_rate
    return None


def _vendor_commission(draft: VendorOrderDraft, rate: Optional[Decimal]) -> Decimal:
    if rate is None:
        return ZERO
    return calculate_commission(draft.total, rate)


def _create_header(
    *,
    actor: User,
    customer: Optional[User],
    customer_name: str,
    customer_phone: str,
    draft: OrderDraft,
    commission: Decimal,
    delivery_type: str,
    delivery_address: str,
    channel: str,
    branch_id: str,
    client_reference: Optional[str]
) -> Order:
    try:
        with transaction.atomic():
            return Order.objects.create(
                client_reference=client_reference,
                customer=customer,
                placed_by=actor,
                sales_rep=actor if actor.role == UserRole.SALES_REP else None,
                customer_name=customer_name,
                customer_phone=customer_phone,
                channel=channel,
                branch_id=branch_id or '',
                subtotal=draft.subtotal,
                tax=draft.tax,
                discount=draft.discount,
                commission=commission,
                delivery_fee=draft.delivery_fee,
                total=draft.total,
                delivery_type=delivery_type,
                delivery_address=delivery_address or '',
                delivery_otp=generate_delivery_otp(),
            )
    except IntegrityError:
        if not client_reference:
            raise
        # Another request with the same client reference got there first
        return Order.objects.get(client_reference=client_reference)


def _reconcile_header(order: Order) -> Order:
    """Recompute the header money from the vendor orders actually saved."""
    sums = order.vendor_orders.aggregate(
        subtotal=Sum('subtotal'), tax=Sum('tax'), discount=Sum('discount'), refund=Sum('refund'),
        commission=Sum('commission'), total=Sum('total'),
    )
    for field, value in sums.items():
        setattr(order, field, value or ZERO)
    order.total += order.delivery_fee
    order.save(update_fields=[*sums, 'updated_at'])
    return order


def _create_vendor_order(
    *,
    order: Order,
    draft: VendorOrderDraft,
    vendor: User,
    payment: VendorPayment,
    payer: User,
    commission: Decimal
) -> VendorOrder:
    """Persist one vendor group: the vendor order, its items and its payment attempt."""
    with transaction.atomic():
        vendor_order = VendorOrder.objects.create(
            order=order,
            vendor=vendor,
            customer=order.customer,
            payment_provider=payment.provider,
            payment_method_type=payment.method_type,
            transaction_reference=payment.reference,
            subtotal=draft.totals.subtotal,
            tax=draft.totals.tax,
            discount=draft.totals.discount,
            refund=draft.totals.refund,
            total=draft.totals.total,
            commission=commission,
        )
        VendorOrderItem.objects.bulk_create([
            VendorOrderItem(
                vendor_order=vendor_order,
                product_id=item.product_id,
                product_name=item.name,
                unit_price=item.unit_price,
                quantity=item.quantity,
                line_total=item.line_total,
                position=position,
            )
            for position, item in enumerate(draft.items)
        ])
        record_payment_attempt(
            payer=payer,
            amount=vendor_order.total,
            provider=payment.provider,
            method_type=payment.method_type,
            reference=payment.reference,
            vendor=vendor,
            order=order,
            vendor_order=vendor_order,
            description=f"Order {str(order.id)[:8]} - {vendor.get_display_name()}",
        )
    return vendor_order


def place_order(
    *,
    actor: User,
    cart: Iterable[dict],
    payments: List[VendorPayment],
    customer_name: str = "",
    customer_phone: str = "",
    delivery_type: str = DeliveryType.SELF_PICKUP,
    delivery_address: str = "",
    distance_km=None,
    channel: str = SalesChannel.ONLINE,
    branch_id: str = "",
    client_reference: Optional[str] = None
) -> Order:
    """
    Place a multi-vendor order.

    Args:
        actor: The user checking out (customer, sales rep or vendor at a POS)
        cart: ``{'product_id': ..., 'quantity': ...}`` entries
        payments: One VendorPayment per vendor in the cart
        client_reference: Offline temp id; re-placing with the same value
            resumes the existing order instead of creating a new one

    Returns:
        The Order, with every vendor order persisted

    Raises:
        OrderValidationError: Empty cart, unknown products, bad quantities
            or missing customer details. Nothing is written.
        IncompletePaymentError: A vendor group has no usable payment.
            Nothing is written.
        ProviderNotOfferedError: A vendor doesn't accept the chosen provider.
            Nothing is written.
        PartialCheckoutError: A vendor group could not be persisted
    """
    customer, customer_name, customer_phone = _resolve_customer(actor, customer_name, customer_phone)
    if delivery_type == DeliveryType.HOME_DELIVERY and not (delivery_address or '').strip():
        raise MissingCustomerDetailsError("A delivery address is required for home delivery")

    lines = _load_cart(cart)
    vendors = {product.vendor_id: product.vendor for product, _ in lines}
    draft = partition_cart(
        lines,
        delivery_fee=calculate_delivery_fee(delivery_type, distance_km),
    )

    by_vendor: Dict[str, VendorPayment] = ensure_can_submit(draft.vendor_ids, payments)
    for vendor_id in draft.vendor_ids:
        ensure_provider_offered(vendors[vendor_id], by_vendor[str(vendor_id)].provider)

    rate = _rep_commission_rate(actor)
    commissions = {d.vendor_id: _vendor_commission(d, rate) for d in draft.vendor_drafts}

    order = None
    resumed = False
    if client_reference:
        order = Order.objects.filter(client_reference=client_reference).first()
        if order is not None and order.placed_by_id != actor.id and not actor.is_platform_admin:
            raise OrderValidationError(f"Client reference {client_reference} is already in use")
        if order is not None and order.voided:
            logger.info("Order {} for {} was cancelled; not resuming", order.id, client_reference)
            return order

    if order is None:
        order = _create_header(
            actor=actor,
            customer=customer,
            customer_name=customer_name,
            customer_phone=customer_phone,
            draft=draft,
            commission=sum(commissions.values(), ZERO),
            delivery_type=delivery_type,
            delivery_address=delivery_address,
            channel=channel,
            branch_id=branch_id,
            client_reference=client_reference,
        )
        logger.info(
            "Order {} placed by {}: {} vendor(s), total {}",
            order.id, actor.id, len(draft.vendor_drafts), order.total
        )
    else:
        logger.info("Resuming order {} for client reference {}", order.id, client_reference)
        resumed = True

    persisted = {
        vendor_id: vendor_order_id
        for vendor_id, vendor_order_id in order.vendor_orders.values_list('vendor_id', 'id')
    }

    for vendor_draft in draft.vendor_drafts:
        vendor = vendors[vendor_draft.vendor_id]
        if vendor.id in persisted:
            continue

        try:
            vendor_order = _create_vendor_order(
                order=order,
                draft=vendor_draft,
                vendor=vendor,
                payment=by_vendor[str(vendor.id)],
                payer=actor,
                commission=commissions[vendor_draft.vendor_id],
            )
        except DatabaseError as e:
            logger.error(
                "Order {}: vendor order for vendor {} failed: {}", order.id, vendor.id, e
            )
            raise PartialCheckoutError(
                f"Order {order.id} is incomplete: the order for vendor "
                f"{vendor.get_display_name()} ({vendor.id}) could not be saved. "
                "Place the order again to finish it.",
                order_id=order.id,
                failed_vendor_id=vendor.id,
                created_vendor_order_ids=persisted.values(),
            )

        persisted[vendor.id] = vendor_order.id
        logger.info(
            "Order {}: vendor order {} for vendor {} total {}",
            order.id, vendor_order.id, vendor.id, vendor_order.total
        )
        notify(
            vendor,
            f"New order {str(order.id)[:8]} from {order.customer_name}: "
            f"{vendor_order.total} via {vendor_order.payment_provider} "
            f"(ref {vendor_order.transaction_reference}). Please verify the payment.",
            'info'
        )

    if resumed:
        _reconcile_header(order)
        logger.info("Order {} resumed, total now {}", order.id, order.total)
    return order
