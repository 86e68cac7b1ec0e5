from django.contrib import admin
from django.utils.html import format_html

from .models import Invoice, InvoiceItem, InvoiceStatus
from .services import refresh_overdue_invoices

STATUS_COLORS = {
    InvoiceStatus.DRAFT: ('#E5C49A', '#2C1810'),
    InvoiceStatus.SENT: ('#A47449', 'white'),
    InvoiceStatus.PAID: ('#6B8E5E', 'white'),
    InvoiceStatus.OVERDUE: ('#B85C5C', 'white'),
    InvoiceStatus.CANCELLED: ('#ccc', '#666'),
}


class InvoiceItemInline(admin.TabularInline):
    model = InvoiceItem
    extra = 0
    readonly_fields = ['name', 'quantity', 'price', 'line_total']
    can_delete = False


@admin.register(Invoice)
class InvoiceAdmin(admin.ModelAdmin):
    list_display = ['number', 'owner', 'customer_name', 'total', 'due_date', 'status_badge']
    list_filter = ['status', 'issue_date']
    search_fields = ['number', 'customer_name', 'customer_email', 'owner__email']
    list_select_related = ['owner']
    readonly_fields = ['number', 'subtotal', 'tax', 'discount', 'total', 'sent_at', 'paid_at', 'created_at', 'updated_at']
    date_hierarchy = 'issue_date'
    inlines = [InvoiceItemInline]
    actions = ['mark_overdue']

    def status_badge(self, obj):
        bg, fg = STATUS_COLORS.get(obj.status, ('#ccc', '#666'))
        return format_html(
            '<span style="background: {}; color: {}; padding: 3px 8px; '
            'border-radius: 10px; font-size: 11px;">{}</span>',
            bg, fg, obj.get_status_display()
        )
    status_badge.short_description = 'Status'

    @admin.action(description='Mark past-due invoices overdue')
    def mark_overdue(self, request, queryset):
        updated = refresh_overdue_invoices()
        self.message_user(request, f'{updated} invoice(s) marked overdue.')
