from django.db import models
from django.core.validators import MinValueValidator
from decimal import Decimal
import uuid

from apps.payments.models import PaymentProvider, PaymentMethodType


class OrderStatus(models.TextChoices):
    PENDING = 'pending', 'Pending'
    PROCESSING = 'processing', 'Processing'
    DELIVERED = 'delivered', 'Delivered'
    CANCELLED = 'cancelled', 'Cancelled'


class VendorPaymentStatus(models.TextChoices):
    PENDING_VERIFICATION = 'PENDING_VERIFICATION', 'Pending Verification'
    PAID = 'PAID', 'Paid'
    FAILED = 'FAILED', 'Failed'


class DeliveryType(models.TextChoices):
    SELF_PICKUP = 'self_pickup', 'Self Pickup'
    HOME_DELIVERY = 'home_delivery', 'Home Delivery'


class SalesChannel(models.TextChoices):
    POS = 'pos', 'POS'
    ONLINE = 'online', 'Online'
    FIELD = 'field', 'Field Sales'


class QueuedOrderStatus(models.TextChoices):
    QUEUED = 'queued', 'Queued'
    SYNCED = 'synced', 'Synced'
    FAILED = 'failed', 'Failed'


TERMINAL_ORDER_STATUSES = (OrderStatus.DELIVERED, OrderStatus.CANCELLED)


def money_field(**kwargs):
    kwargs.setdefault('default', Decimal('0.00'))
    return models.DecimalField(
        max_digits=14,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.00'))],
        **kwargs
    )


class Order(models.Model):
    """
    One checkout. Totals are fixed when the order is placed:
    ``total == sum(vendor_order.total) + delivery_fee``.

    Each vendor settles its own VendorOrder; this record's status is derived
    from theirs (see ``services.lifecycle.refresh_order_status``).
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    # Temporary id assigned by an offline client; dedup key on replay
    client_reference = models.CharField(max_length=64, unique=True, null=True, blank=True)

    customer = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='orders'
    )
    placed_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.PROTECT,
        related_name='orders_placed'
    )
    sales_rep = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='orders_sold'
    )
    customer_name = models.CharField(max_length=150)
    customer_phone = models.CharField(max_length=20)

    status = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.PENDING
    )
    voided = models.BooleanField(default=False)
    voided_at = models.DateTimeField(null=True, blank=True)

    channel = models.CharField(
        max_length=20,
        choices=SalesChannel.choices,
        default=SalesChannel.ONLINE
    )
    branch_id = models.CharField(max_length=64, blank=True)

    # Money
    subtotal = money_field()
    tax = money_field()
    discount = money_field()
    refund = money_field()
    commission = money_field()
    delivery_fee = money_field()
    total = money_field()

    # Delivery
    delivery_type = models.CharField(
        max_length=20,
        choices=DeliveryType.choices,
        default=DeliveryType.SELF_PICKUP
    )
    delivery_address = models.CharField(max_length=255, blank=True)
    delivery_otp = models.CharField(max_length=4)
    escrow_released_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'orders'
        indexes = [
            models.Index(fields=['customer', 'created_at'], name='orders_customer_created_idx'),
            models.Index(fields=['status', 'voided'], name='orders_status_voided_idx'),
            models.Index(fields=['created_at'], name='orders_created_idx'),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return f"Order {str(self.id)[:8]} - {self.customer_name} ({self.total})"


class VendorOrder(models.Model):
    """A vendor's portion of a checkout, settled independently of its siblings."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    order = models.ForeignKey(
        Order,
        on_delete=models.CASCADE,
        related_name='vendor_orders'
    )
    vendor = models.ForeignKey(
        'accounts.User',
        on_delete=models.PROTECT,
        related_name='vendor_orders'
    )
    customer = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='vendor_orders_as_customer'
    )

    status = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.PENDING
    )

    # Payment as declared by the customer
    payment_status = models.CharField(
        max_length=30,
        choices=VendorPaymentStatus.choices,
        default=VendorPaymentStatus.PENDING_VERIFICATION
    )
    payment_provider = models.CharField(max_length=30, choices=PaymentProvider.choices)
    payment_method_type = models.CharField(max_length=20, choices=PaymentMethodType.choices)
    transaction_reference = models.CharField(max_length=64)
    rejection_reason = models.TextField(blank=True)
    paid_at = models.DateTimeField(null=True, blank=True)

    # Money, fixed at creation
    subtotal = money_field()
    tax = money_field()
    discount = money_field()
    refund = money_field()
    total = money_field()
    commission = money_field()

    # Escrow split, recorded on delivery
    vendor_payout = models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True)
    platform_commission = models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True)
    delivered_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'vendor_orders'
        constraints = [
            models.UniqueConstraint(fields=['order', 'vendor'], name='unique_vendor_per_order'),
        ]
        indexes = [
            models.Index(fields=['vendor', 'status'], name='vorders_vendor_status_idx'),
            models.Index(fields=['vendor', 'payment_status'], name='vorders_vendor_payment_idx'),
        ]
        ordering = ['created_at']

    def __str__(self):
        return f"{self.vendor} - {self.total} ({self.payment_status})"

    @property
    def is_terminal(self):
        return self.status in TERMINAL_ORDER_STATUSES


class VendorOrderItem(models.Model):
    """Line item with the price captured at checkout. Never updated."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    vendor_order = models.ForeignKey(
        VendorOrder,
        on_delete=models.CASCADE,
        related_name='items'
    )
    product = models.ForeignKey(
        'catalog.Product',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='order_items'
    )
    product_name = models.CharField(max_length=200)
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    quantity = models.PositiveIntegerField()
    line_total = models.DecimalField(max_digits=14, decimal_places=2)
    # Cart insertion order
    position = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = 'vendor_order_items'
        ordering = ['position']

    def __str__(self):
        return f"{self.quantity} x {self.product_name} @ {self.unit_price}"


class QueuedOrder(models.Model):
    """
    Order captured while a client was offline, waiting to be replayed.

    ``temp_id`` is the client-generated id; replay passes it to checkout as
    the order's ``client_reference`` so a retried replay never duplicates.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    temp_id = models.CharField(max_length=64, unique=True)
    queued_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.CASCADE,
        related_name='queued_orders'
    )
    payload = models.JSONField()

    status = models.CharField(
        max_length=20,
        choices=QueuedOrderStatus.choices,
        default=QueuedOrderStatus.QUEUED
    )
    order = models.ForeignKey(
        Order,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='queue_entries'
    )
    attempts = models.PositiveIntegerField(default=0)
    last_error = models.TextField(blank=True)

    queued_at = models.DateTimeField(auto_now_add=True)
    synced_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'queued_orders'
        indexes = [
            models.Index(fields=['status', 'queued_at'], name='queued_status_idx'),
        ]
        ordering = ['queued_at']

    def __str__(self):
        return f"Queued {self.temp_id} ({self.status})"
