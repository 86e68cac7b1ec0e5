from decimal import Decimal

from rest_framework import serializers

from apps.accounts.models import User
from apps.payments.models import PaymentMethodType, PaymentProvider
from .models import (
    DeliveryType,
    Order,
    QueuedOrder,
    SalesChannel,
    VendorOrder,
    VendorOrderItem,
    VendorPaymentStatus,
)


# =============================================================================
# Input Serializers
# =============================================================================

class CartLineSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1)


class VendorPaymentInputSerializer(serializers.Serializer):
    """
    What the customer declared for one vendor group.

    The reference is checked (length, normalization) by the payment
    protocol so every vendor problem can be reported at once.
    """

    vendor_id = serializers.UUIDField()
    provider = serializers.ChoiceField(choices=PaymentProvider.choices)
    method_type = serializers.ChoiceField(choices=PaymentMethodType.choices)
    reference = serializers.CharField(max_length=64, allow_blank=True, required=False, default='')


class CheckoutInputSerializer(serializers.Serializer):
    """
    Validate a checkout request.

    Fields:
        cart: Product ids and quantities, in cart order
        payments: One entry per vendor in the cart
        customer_name / customer_phone: Default to the customer's profile
        delivery_type: self_pickup or home_delivery
        delivery_address: Required for home delivery
        distance_km: Used for the home delivery fee
        channel: pos, online or field
        branch_id: Selling branch, if any
        client_reference: Offline temp id, makes the request replayable
    """

    cart = CartLineSerializer(many=True, allow_empty=True)
    payments = VendorPaymentInputSerializer(many=True, required=False, default=list)
    customer_name = serializers.CharField(max_length=150, required=False, allow_blank=True, default='')
    customer_phone = serializers.CharField(max_length=20, required=False, allow_blank=True, default='')
    delivery_type = serializers.ChoiceField(choices=DeliveryType.choices, default=DeliveryType.SELF_PICKUP)
    delivery_address = serializers.CharField(max_length=255, required=False, allow_blank=True, default='')
    distance_km = serializers.DecimalField(
        max_digits=7, decimal_places=2, min_value=Decimal('0'), required=False, allow_null=True
    )
    channel = serializers.ChoiceField(choices=SalesChannel.choices, default=SalesChannel.ONLINE)
    branch_id = serializers.CharField(max_length=64, required=False, allow_blank=True, default='')
    client_reference = serializers.CharField(max_length=64, required=False, allow_null=True)


class RejectPaymentInputSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=500)


class ResubmitPaymentInputSerializer(serializers.Serializer):
    provider = serializers.ChoiceField(choices=PaymentProvider.choices)
    method_type = serializers.ChoiceField(choices=PaymentMethodType.choices)
    reference = serializers.CharField(max_length=64)


class CancelOrderInputSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=500, required=False, allow_blank=True, default='')


class VendorOrderFilterSerializer(serializers.Serializer):
    payment_status = serializers.ChoiceField(choices=VendorPaymentStatus.choices, required=False)


class QueuedOrderInputSerializer(serializers.Serializer):
    temp_id = serializers.CharField(max_length=64)
    payload = serializers.DictField()


class SyncInputSerializer(serializers.Serializer):
    """Batch of orders captured while the client was offline."""

    orders = QueuedOrderInputSerializer(many=True, allow_empty=False)


# =============================================================================
# Output Serializers
# =============================================================================

class UserMinimalSerializer(serializers.ModelSerializer):
    display_name = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ['id', 'email', 'display_name']
        read_only_fields = fields

    def get_display_name(self, obj):
        return obj.get_display_name()


class VendorOrderItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = VendorOrderItem
        fields = ['id', 'product', 'product_name', 'unit_price', 'quantity', 'line_total']
        read_only_fields = fields


class VendorOrderSerializer(serializers.ModelSerializer):
    vendor = UserMinimalSerializer(read_only=True)
    items = VendorOrderItemSerializer(many=True, read_only=True)
    order_status = serializers.CharField(source='order.status', read_only=True)
    customer_name = serializers.CharField(source='order.customer_name', read_only=True)
    customer_phone = serializers.CharField(source='order.customer_phone', read_only=True)

    class Meta:
        model = VendorOrder
        fields = [
            'id',
            'order',
            'order_status',
            'vendor',
            'customer_name',
            'customer_phone',
            'status',
            'payment_status',
            'payment_provider',
            'payment_method_type',
            'transaction_reference',
            'rejection_reason',
            'paid_at',
            'subtotal',
            'tax',
            'discount',
            'refund',
            'total',
            'commission',
            'vendor_payout',
            'platform_commission',
            'delivered_at',
            'items',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    vendor_orders = VendorOrderSerializer(many=True, read_only=True)
    placed_by = UserMinimalSerializer(read_only=True)
    sales_rep = UserMinimalSerializer(read_only=True)

    class Meta:
        model = Order
        fields = [
            'id',
            'client_reference',
            'customer',
            'placed_by',
            'sales_rep',
            'customer_name',
            'customer_phone',
            'status',
            'channel',
            'branch_id',
            'subtotal',
            'tax',
            'discount',
            'refund',
            'commission',
            'delivery_fee',
            'total',
            'delivery_type',
            'delivery_address',
            'delivery_otp',
            'escrow_released_at',
            'vendor_orders',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields

    def to_representation(self, instance):
        data = super().to_representation(instance)
        # Only the customer side sees the hand-over code
        request = self.context.get('request')
        user = getattr(request, 'user', None)
        if user is None or user.id not in (instance.customer_id, instance.placed_by_id):
            data.pop('delivery_otp', None)
        return data


class OrderListSerializer(serializers.ModelSerializer):
    vendor_count = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            'id',
            'customer_name',
            'status',
            'channel',
            'total',
            'delivery_type',
            'vendor_count',
            'created_at',
        ]
        read_only_fields = fields

    def get_vendor_count(self, obj):
        return len(obj.vendor_orders.all())


class QueuedOrderSerializer(serializers.ModelSerializer):
    class Meta:
        model = QueuedOrder
        fields = [
            'id',
            'temp_id',
            'status',
            'order',
            'attempts',
            'last_error',
            'queued_at',
            'synced_at',
        ]
        read_only_fields = fields
