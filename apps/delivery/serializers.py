from rest_framework import serializers

from .models import DeliveryTask, Driver, DriverStatus


# =============================================================================
# Input Serializers
# =============================================================================

class DriverInputSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100)
    phone = serializers.CharField(max_length=20)
    plate_number = serializers.CharField(max_length=20, required=False, allow_blank=True, default='')


class DriverFilterSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=DriverStatus.choices, required=False)


class AssignDriverInputSerializer(serializers.Serializer):
    order_id = serializers.UUIDField()
    driver_id = serializers.UUIDField()


class CompleteDeliveryInputSerializer(serializers.Serializer):
    """The 4-digit code the customer reads out to the driver."""

    otp = serializers.RegexField(regex=r'^\d{4}$', error_messages={'invalid': 'OTP must be 4 digits'})


# =============================================================================
# Output Serializers
# =============================================================================

class DriverSerializer(serializers.ModelSerializer):
    class Meta:
        model = Driver
        fields = ['id', 'name', 'phone', 'plate_number', 'status', 'created_at']
        read_only_fields = fields


class DeliveryTaskSerializer(serializers.ModelSerializer):
    driver = DriverSerializer(read_only=True)
    order_status = serializers.CharField(source='order.status', read_only=True)
    delivery_address = serializers.CharField(source='order.delivery_address', read_only=True)
    customer_phone = serializers.CharField(source='order.customer_phone', read_only=True)

    class Meta:
        model = DeliveryTask
        fields = [
            'id',
            'order',
            'order_status',
            'delivery_address',
            'customer_phone',
            'driver',
            'status',
            'assigned_at',
            'picked_up_at',
            'delivered_at',
        ]
        read_only_fields = fields
