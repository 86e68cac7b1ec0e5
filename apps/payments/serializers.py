from decimal import Decimal

from rest_framework import serializers

from apps.accounts.models import User
from .models import (
    PaymentConfirmation,
    PaymentMethodType,
    PaymentProvider,
    SubscriptionPackage,
    Transaction,
    TransactionKind,
    TransactionStatus,
    MOBILE_MONEY_PROVIDERS,
)


# =============================================================================
# Input Serializers
# =============================================================================

class DepositInputSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=Decimal('0.01'))
    provider = serializers.ChoiceField(choices=PaymentProvider.choices)
    method_type = serializers.ChoiceField(choices=PaymentMethodType.choices)
    reference = serializers.CharField(max_length=64)


class WithdrawalInputSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=Decimal('0.01'))
    provider = serializers.ChoiceField(choices=PaymentProvider.choices)
    destination = serializers.CharField(max_length=64, help_text="Phone number or bank account to pay out to")


class ResolutionInputSerializer(serializers.Serializer):
    note = serializers.CharField(max_length=500, required=False, allow_blank=True, default='')


class TransactionFilterSerializer(serializers.Serializer):
    """
    Validate query parameters for transaction listing.

    Query Parameters:
        status (str): Filter by transaction status
        kind (str): Filter by transaction kind
        received (bool): Vendors only; payments made to the vendor instead
            of by them
    """

    status = serializers.ChoiceField(choices=TransactionStatus.choices, required=False)
    kind = serializers.ChoiceField(choices=TransactionKind.choices, required=False)
    received = serializers.BooleanField(required=False, default=False)


class PushInputSerializer(serializers.Serializer):
    provider = serializers.ChoiceField(choices=[(p.value, p.label) for p in MOBILE_MONEY_PROVIDERS])
    payer_number = serializers.CharField(max_length=20)
    amount = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=Decimal('0.01'))


class SubscriptionPaymentInputSerializer(serializers.Serializer):
    package_id = serializers.UUIDField()
    provider = serializers.ChoiceField(choices=PaymentProvider.choices)
    method_type = serializers.ChoiceField(choices=PaymentMethodType.choices)
    reference = serializers.CharField(max_length=64)


class RejectConfirmationInputSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=500)


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


class TransactionSerializer(serializers.ModelSerializer):
    user = UserMinimalSerializer(read_only=True)

    class Meta:
        model = Transaction
        fields = [
            'id',
            'user',
            'kind',
            'amount',
            'currency',
            'provider',
            'method_type',
            'reference',
            'description',
            'status',
            'order',
            'vendor_order',
            'vendor',
            'confirmation',
            'resolved_by',
            'resolved_at',
            'completed_at',
            'resolution_note',
            'created_at',
        ]
        read_only_fields = fields


class WalletSummarySerializer(serializers.Serializer):
    balance = serializers.DecimalField(max_digits=14, decimal_places=2)
    available_balance = serializers.DecimalField(max_digits=14, decimal_places=2)
    pending_deposits = serializers.DecimalField(max_digits=14, decimal_places=2)
    pending_withdrawals = serializers.DecimalField(max_digits=14, decimal_places=2)
    currency = serializers.CharField()


class PushOutcomeSerializer(serializers.Serializer):
    accepted = serializers.BooleanField()
    state = serializers.CharField()
    message = serializers.CharField()


class SubscriptionPackageSerializer(serializers.ModelSerializer):
    class Meta:
        model = SubscriptionPackage
        fields = ['id', 'name', 'price', 'currency', 'period', 'description']
        read_only_fields = fields


class PaymentConfirmationSerializer(serializers.ModelSerializer):
    payer = UserMinimalSerializer(read_only=True)
    package = SubscriptionPackageSerializer(read_only=True)

    class Meta:
        model = PaymentConfirmation
        fields = [
            'id',
            'payer',
            'package',
            'amount',
            'currency',
            'payment_code',
            'provider',
            'method_type',
            'status',
            'confirmed_by',
            'confirmed_at',
            'rejection_reason',
            'created_at',
        ]
        read_only_fields = fields
