from django.contrib import admin, messages
from django.utils.html import format_html

from .models import (
    Order,
    OrderStatus,
    VendorOrder,
    VendorOrderItem,
    VendorPaymentStatus,
    QueuedOrder,
    QueuedOrderStatus,
)
from .services import (
    verify_vendor_payment,
    sync_pending_orders,
    OrdersServiceError,
)

BADGE_COLORS = {
    OrderStatus.PENDING: ('#E5C49A', '#2C1810'),
    OrderStatus.PROCESSING: ('#5B7DB1', 'white'),
    OrderStatus.DELIVERED: ('#6B8E5E', 'white'),
    OrderStatus.CANCELLED: ('#B85C5C', 'white'),
    VendorPaymentStatus.PENDING_VERIFICATION: ('#E5C49A', '#2C1810'),
    VendorPaymentStatus.PAID: ('#6B8E5E', 'white'),
    VendorPaymentStatus.FAILED: ('#B85C5C', 'white'),
    QueuedOrderStatus.QUEUED: ('#E5C49A', '#2C1810'),
    QueuedOrderStatus.SYNCED: ('#6B8E5E', 'white'),
    QueuedOrderStatus.FAILED: ('#B85C5C', 'white'),
}


def badge(value, label):
    bg, fg = BADGE_COLORS.get(value, ('#ccc', '#666'))
    return format_html(
        '<span style="background: {}; color: {}; padding: 3px 8px; '
        'border-radius: 10px; font-size: 11px;">{}</span>',
        bg, fg, label
    )


class VendorOrderItemInline(admin.TabularInline):
    model = VendorOrderItem
    extra = 0
    fields = ['product_name', 'unit_price', 'quantity', 'line_total']
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


class VendorOrderInline(admin.TabularInline):
    """Vendor orders within an order. Created by checkout only."""
    model = VendorOrder
    extra = 0
    fields = ['vendor', 'status', 'payment_status', 'transaction_reference', 'total']
    readonly_fields = fields
    show_change_link = True

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = [
        'short_id',
        'customer_name',
        'status_badge',
        'voided',
        'channel',
        'total',
        'delivery_type',
        'created_at',
    ]
    list_filter = ['status', 'voided', 'channel', 'delivery_type', 'created_at']
    search_fields = ['id', 'customer_name', 'customer_phone', 'client_reference']
    readonly_fields = [
        'client_reference',
        'subtotal',
        'tax',
        'discount',
        'refund',
        'commission',
        'delivery_fee',
        'total',
        'delivery_otp',
        'voided_at',
        'escrow_released_at',
        'created_at',
        'updated_at',
    ]
    inlines = [VendorOrderInline]
    date_hierarchy = 'created_at'

    fieldsets = (
        ('Customer', {
            'fields': ('customer', 'placed_by', 'sales_rep', 'customer_name', 'customer_phone')
        }),
        ('Status', {
            'fields': ('status', 'voided', 'voided_at', 'channel', 'branch_id', 'client_reference')
        }),
        ('Money', {
            'fields': ('subtotal', 'tax', 'discount', 'refund', 'commission', 'delivery_fee', 'total')
        }),
        ('Delivery', {
            'fields': ('delivery_type', 'delivery_address', 'delivery_otp', 'escrow_released_at'),
            'classes': ('collapse',),
        }),
        ('Metadata', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',),
        }),
    )

    def short_id(self, obj):
        return str(obj.id)[:8]
    short_id.short_description = 'Order'

    def status_badge(self, obj):
        return badge(obj.status, obj.get_status_display())
    status_badge.short_description = 'Status'
    status_badge.admin_order_field = 'status'


@admin.register(VendorOrder)
class VendorOrderAdmin(admin.ModelAdmin):
    list_display = [
        'id',
        'vendor',
        'status_badge',
        'payment_badge',
        'payment_provider',
        'transaction_reference',
        'total',
        'created_at',
    ]
    list_filter = ['status', 'payment_status', 'payment_provider']
    search_fields = ['transaction_reference', 'vendor__email', 'order__customer_name']
    list_select_related = ['vendor', 'order']
    readonly_fields = [
        'order',
        'subtotal',
        'tax',
        'discount',
        'refund',
        'total',
        'commission',
        'vendor_payout',
        'platform_commission',
        'paid_at',
        'delivered_at',
        'created_at',
        'updated_at',
    ]
    inlines = [VendorOrderItemInline]
    actions = ['verify_payments']

    def status_badge(self, obj):
        return badge(obj.status, obj.get_status_display())
    status_badge.short_description = 'Status'

    def payment_badge(self, obj):
        return badge(obj.payment_status, obj.get_payment_status_display())
    payment_badge.short_description = 'Payment'

    @admin.action(description='Verify selected payments')
    def verify_payments(self, request, queryset):
        verified = 0
        for vendor_order in queryset:
            try:
                verify_vendor_payment(actor=request.user, vendor_order_id=vendor_order.id)
                verified += 1
            except OrdersServiceError as e:
                self.message_user(request, str(e), level=messages.WARNING)
        self.message_user(request, f'Verified {verified} payment(s).')


@admin.register(QueuedOrder)
class QueuedOrderAdmin(admin.ModelAdmin):
    list_display = ['temp_id', 'queued_by', 'status_badge', 'attempts', 'order', 'queued_at', 'synced_at']
    list_filter = ['status']
    search_fields = ['temp_id', 'queued_by__email']
    readonly_fields = ['order', 'attempts', 'last_error', 'queued_at', 'synced_at']
    actions = ['sync_now']

    def status_badge(self, obj):
        return badge(obj.status, obj.get_status_display())
    status_badge.short_description = 'Status'

    @admin.action(description='Sync all pending offline orders')
    def sync_now(self, request, queryset):
        result = sync_pending_orders()
        self.message_user(request, f'{result.success} synced, {result.failed} failed.')
