from rest_framework import serializers
from django.contrib.auth.password_validation import validate_password

from .models import User, UserRole
from .services import subscription_days_left, is_subscription_expired


class UserSerializer(serializers.ModelSerializer):
    """Profile of the signed-in user, with subscription countdown."""

    subscription_package_name = serializers.CharField(
        source='subscription_package.name', read_only=True, default=None
    )
    subscription_days_left = serializers.SerializerMethodField()
    subscription_expired = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            'id', 'email', 'display_name', 'phone', 'role', 'commission_rate',
            'subscription_status', 'subscription_package', 'subscription_package_name',
            'activation_date', 'subscription_expiry',
            'subscription_days_left', 'subscription_expired',
            'created_at', 'last_login',
        ]
        # Only the name and phone are user-editable
        read_only_fields = [f for f in fields if f not in ('display_name', 'phone')]

    def get_subscription_days_left(self, obj):
        return subscription_days_left(obj)

    def get_subscription_expired(self, obj):
        return is_subscription_expired(obj)


class SubscriptionStateSerializer(serializers.Serializer):
    status = serializers.CharField(source='subscription_status')
    package = serializers.CharField(source='subscription_package.name', default=None)
    activation_date = serializers.DateTimeField()
    expiry = serializers.DateTimeField(source='subscription_expiry')
    days_left = serializers.SerializerMethodField()
    expired = serializers.SerializerMethodField()

    def get_days_left(self, obj):
        return subscription_days_left(obj)

    def get_expired(self, obj):
        return is_subscription_expired(obj)


class SignUpSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(
        write_only=True, validators=[validate_password], style={'input_type': 'password'}
    )
    password_confirm = serializers.CharField(write_only=True, style={'input_type': 'password'})
    display_name = serializers.CharField(max_length=100, required=False, allow_blank=True)
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True)
    role = serializers.ChoiceField(
        choices=[UserRole.CUSTOMER, UserRole.SALES_REP, UserRole.VENDOR, UserRole.PHARMACY],
        default=UserRole.CUSTOMER,
    )

    def validate(self, attrs):
        if attrs['password'] != attrs.pop('password_confirm'):
            raise serializers.ValidationError({'password_confirm': 'Passwords do not match'})
        return attrs


class SignInSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, style={'input_type': 'password'})


class ProviderConfigSerializer(serializers.Serializer):
    enabled = serializers.BooleanField(default=False)
    number = serializers.CharField(max_length=50, required=False, allow_blank=True, default='')


class PaymentConfigSerializer(serializers.Serializer):
    """Vendor-published payment numbers keyed by provider."""

    providers = serializers.DictField(child=ProviderConfigSerializer())


class UserPublicSerializer(serializers.ModelSerializer):
    """Who a vendor, customer or driver owner is, without contact details."""

    class Meta:
        model = User
        fields = ['id', 'display_name', 'role']
        read_only_fields = fields
