from django.db import models
from django.core.validators import MinValueValidator
from decimal import Decimal
import uuid


class PaymentProvider(models.TextChoices):
    MPESA = 'MPESA', 'M-Pesa'
    TIGO_PESA = 'TIGO_PESA', 'Tigo Pesa'
    AIRTEL_MONEY = 'AIRTEL_MONEY', 'Airtel Money'
    HALO_PESA = 'HALO_PESA', 'Halo Pesa'
    BANK_TRANSFER = 'BANK_TRANSFER', 'Bank Transfer'
    ESCROW_WALLET = 'ESCROW_WALLET', 'Escrow Wallet'
    CREDIT_CARD = 'CREDIT_CARD', 'Credit Card'
    CASH = 'CASH', 'Cash'


MOBILE_MONEY_PROVIDERS = (
    PaymentProvider.MPESA,
    PaymentProvider.TIGO_PESA,
    PaymentProvider.AIRTEL_MONEY,
    PaymentProvider.HALO_PESA,
)


class PaymentMethodType(models.TextChoices):
    PUSH = 'PUSH', 'Push Prompt'
    MANUAL_MOBILE = 'MANUAL_MOBILE', 'Manual Mobile Money'
    MANUAL_BANK = 'MANUAL_BANK', 'Manual Bank Transfer'


class TransactionKind(models.TextChoices):
    DEPOSIT = 'DEPOSIT', 'Deposit'
    WITHDRAWAL = 'WITHDRAWAL', 'Withdrawal'
    PAYMENT = 'PAYMENT', 'Order Payment'
    SUBSCRIPTION = 'SUBSCRIPTION', 'Subscription'
    REFUND = 'REFUND', 'Refund'


class TransactionStatus(models.TextChoices):
    PENDING_VERIFICATION = 'PENDING_VERIFICATION', 'Pending Verification'
    COMPLETED = 'COMPLETED', 'Completed'
    REJECTED = 'REJECTED', 'Rejected'
    FAILED = 'FAILED', 'Failed'


class ConfirmationStatus(models.TextChoices):
    PENDING = 'pending', 'Pending'
    CONFIRMED = 'confirmed', 'Confirmed'
    REJECTED = 'rejected', 'Rejected'


class BillingPeriod(models.TextChoices):
    MONTHLY = 'monthly', 'Monthly'
    YEARLY = 'yearly', 'Yearly'


class SubscriptionPackage(models.Model):
    """A plan vendors and pharmacies subscribe to."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=100, unique=True)
    price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))]
    )
    currency = models.CharField(max_length=3, default='TZS')
    period = models.CharField(
        max_length=10,
        choices=BillingPeriod.choices,
        default=BillingPeriod.MONTHLY
    )
    description = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'subscription_packages'
        ordering = ['price']

    def __str__(self):
        return f"{self.name} ({self.price} {self.currency}/{self.period})"


class PaymentConfirmation(models.Model):
    """
    A subscriber's claim that they paid for a package, awaiting an admin.

    Resolved exactly once: pending -> confirmed | rejected.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    payer = models.ForeignKey(
        'accounts.User',
        on_delete=models.CASCADE,
        related_name='payment_confirmations'
    )
    package = models.ForeignKey(
        SubscriptionPackage,
        on_delete=models.PROTECT,
        related_name='confirmations'
    )
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    currency = models.CharField(max_length=3, default='TZS')
    payment_code = models.CharField(max_length=64, db_index=True)
    provider = models.CharField(max_length=30, choices=PaymentProvider.choices)
    method_type = models.CharField(max_length=20, choices=PaymentMethodType.choices)

    status = models.CharField(
        max_length=20,
        choices=ConfirmationStatus.choices,
        default=ConfirmationStatus.PENDING
    )
    confirmed_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='confirmations_resolved'
    )
    confirmed_at = models.DateTimeField(null=True, blank=True)
    rejection_reason = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'payment_confirmations'
        indexes = [
            models.Index(fields=['status', 'created_at'], name='confirmations_status_idx'),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.payer} - {self.payment_code} ({self.status})"


class Transaction(models.Model):
    """
    One payment attempt, deposit, withdrawal or refund.

    Append-mostly: the status leaves PENDING_VERIFICATION at most once and
    rows are never deleted.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    user = models.ForeignKey(
        'accounts.User',
        on_delete=models.PROTECT,
        related_name='transactions'
    )
    kind = models.CharField(max_length=20, choices=TransactionKind.choices)
    amount = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))]
    )
    currency = models.CharField(max_length=3, default='TZS')
    provider = models.CharField(max_length=30, choices=PaymentProvider.choices)
    method_type = models.CharField(
        max_length=20,
        choices=PaymentMethodType.choices,
        blank=True
    )
    reference = models.CharField(max_length=64, db_index=True)
    description = models.CharField(max_length=255, blank=True)

    status = models.CharField(
        max_length=30,
        choices=TransactionStatus.choices,
        default=TransactionStatus.PENDING_VERIFICATION
    )

    # Context; each kind fills the ones it needs
    order = models.ForeignKey(
        'orders.Order',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='transactions'
    )
    vendor_order = models.ForeignKey(
        'orders.VendorOrder',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='transactions'
    )
    vendor = models.ForeignKey(
        'accounts.User',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='transactions_received'
    )
    confirmation = models.ForeignKey(
        PaymentConfirmation,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='transactions'
    )

    resolved_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='transactions_resolved'
    )
    resolved_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    resolution_note = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'transactions'
        indexes = [
            models.Index(fields=['user', 'created_at'], name='txn_user_created_idx'),
            models.Index(fields=['status', 'kind'], name='txn_status_kind_idx'),
            models.Index(fields=['vendor', 'status'], name='txn_vendor_status_idx'),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.kind} {self.amount} {self.currency} ({self.status})"

    @property
    def is_resolved(self):
        return self.status != TransactionStatus.PENDING_VERIFICATION


class Wallet(models.Model):
    """
    Per-user balance. Only ``services.ledger`` writes ``balance``, and only
    with single-statement F() updates.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.OneToOneField(
        'accounts.User',
        on_delete=models.CASCADE,
        related_name='wallet'
    )
    balance = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    currency = models.CharField(max_length=3, default='TZS')

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'wallets'

    def __str__(self):
        return f"{self.user} - {self.balance} {self.currency}"
