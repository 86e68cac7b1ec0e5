from django.contrib import admin, messages
from django.utils.html import format_html

from .models import (
    ConfirmationStatus,
    PaymentConfirmation,
    SubscriptionPackage,
    Transaction,
    TransactionStatus,
    Wallet,
)
from .services import (
    complete_transaction,
    verify_subscription_payment,
    PaymentsServiceError,
)

STATUS_COLORS = {
    TransactionStatus.PENDING_VERIFICATION: ('#E5C49A', '#2C1810'),
    TransactionStatus.COMPLETED: ('#6B8E5E', 'white'),
    TransactionStatus.REJECTED: ('#B85C5C', 'white'),
    TransactionStatus.FAILED: ('#A47449', 'white'),
    ConfirmationStatus.PENDING: ('#E5C49A', '#2C1810'),
    ConfirmationStatus.CONFIRMED: ('#6B8E5E', 'white'),
    ConfirmationStatus.REJECTED: ('#B85C5C', 'white'),
}


def status_badge(obj):
    bg, fg = STATUS_COLORS.get(obj.status, ('#ccc', '#666'))
    return format_html(
        '<span style="background: {}; color: {}; padding: 3px 8px; '
        'border-radius: 10px; font-size: 11px;">{}</span>',
        bg, fg, obj.get_status_display()
    )
status_badge.short_description = 'Status'


@admin.register(SubscriptionPackage)
class SubscriptionPackageAdmin(admin.ModelAdmin):
    list_display = ['name', 'price', 'currency', 'period', 'is_active']
    list_filter = ['period', 'is_active']
    search_fields = ['name']


@admin.register(PaymentConfirmation)
class PaymentConfirmationAdmin(admin.ModelAdmin):
    """
    Subscription payments awaiting verification.

    Verification goes through the service so the subscriber is activated
    and the linked transaction completed exactly once.
    """

    list_display = ['payer', 'package', 'amount', 'payment_code', 'provider', status_badge, 'created_at']
    list_filter = ['status', 'provider', 'package']
    search_fields = ['payment_code', 'payer__email', 'payer__display_name']
    list_select_related = ['payer', 'package']
    readonly_fields = [
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
    date_hierarchy = 'created_at'
    actions = ['verify_selected']

    @admin.action(description='Verify selected subscription payments')
    def verify_selected(self, request, queryset):
        verified = 0
        for confirmation in queryset:
            try:
                verify_subscription_payment(actor=request.user, confirmation_id=confirmation.id)
                verified += 1
            except PaymentsServiceError as e:
                self.message_user(request, str(e), level=messages.WARNING)
        self.message_user(request, f'Verified {verified} subscription payment(s).')


@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    list_display = ['reference', 'user', 'kind', 'amount', 'provider', status_badge, 'created_at']
    list_filter = ['status', 'kind', 'provider', 'created_at']
    search_fields = ['reference', 'user__email', 'description']
    list_select_related = ['user']
    date_hierarchy = 'created_at'
    readonly_fields = [f.name for f in Transaction._meta.fields]
    actions = ['complete_selected']

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    @admin.action(description='Complete selected transactions')
    def complete_selected(self, request, queryset):
        completed = 0
        for txn in queryset:
            try:
                complete_transaction(actor=request.user, transaction_id=txn.id)
                completed += 1
            except PaymentsServiceError as e:
                self.message_user(request, str(e), level=messages.WARNING)
        self.message_user(request, f'Completed {completed} transaction(s).')


@admin.register(Wallet)
class WalletAdmin(admin.ModelAdmin):
    list_display = ['user', 'balance', 'currency', 'updated_at']
    search_fields = ['user__email']
    readonly_fields = ['user', 'balance', 'currency', 'created_at', 'updated_at']

    def has_add_permission(self, request):
        return False
