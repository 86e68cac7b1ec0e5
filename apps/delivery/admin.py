from django.contrib import admin
from django.utils.html import format_html

from .models import DeliveryTask, DeliveryTaskStatus, Driver, DriverStatus

STATUS_COLORS = {
    DriverStatus.AVAILABLE: ('#6B8E5E', 'white'),
    DriverStatus.BUSY: ('#A47449', 'white'),
    DeliveryTaskStatus.ASSIGNED: ('#E5C49A', '#2C1810'),
    DeliveryTaskStatus.PICKED_UP: ('#A47449', 'white'),
    DeliveryTaskStatus.DELIVERED: ('#6B8E5E', 'white'),
    DeliveryTaskStatus.CANCELLED: ('#9e9e9e', 'white'),
}


def status_badge(obj):
    bg, fg = STATUS_COLORS.get(obj.status, ('#ccc', '#666'))
    return format_html(
        '<span style="background: {}; color: {}; padding: 3px 8px; '
        'border-radius: 10px; font-size: 11px;">{}</span>',
        bg, fg, obj.get_status_display()
    )
status_badge.short_description = 'Status'


@admin.register(Driver)
class DriverAdmin(admin.ModelAdmin):
    list_display = ['name', 'phone', 'plate_number', 'owner', status_badge, 'is_active']
    list_filter = ['status', 'is_active']
    search_fields = ['name', 'phone', 'plate_number', 'owner__email']
    list_select_related = ['owner']


@admin.register(DeliveryTask)
class DeliveryTaskAdmin(admin.ModelAdmin):
    """Read-only: tasks only move through pickup and OTP completion."""

    list_display = ['order', 'driver', status_badge, 'assigned_at', 'delivered_at']
    list_filter = ['status', 'assigned_at']
    search_fields = ['order__id', 'driver__name', 'driver__phone']
    list_select_related = ['order', 'driver']
    readonly_fields = ['order', 'driver', 'assigned_by', 'status', 'assigned_at', 'picked_up_at', 'delivered_at']

    def has_add_permission(self, request):
        return False
