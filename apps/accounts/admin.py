from django.contrib import admin, messages
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.utils.html import format_html

from .models import User, SubscriptionStatus
from .services import lapse_expired_subscription, subscription_days_left

STATUS_COLOURS = {
    SubscriptionStatus.INACTIVE: '#9e9e9e',
    SubscriptionStatus.PENDING_VERIFICATION: '#f0a030',
    SubscriptionStatus.ACTIVE: '#2e7d32',
    SubscriptionStatus.PAYMENT_REJECTED: '#c62828',
}


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """
    Customers, reps, sellers and admins.

    Plans are activated from Payment Confirmations, where verifying the
    code also completes the linked transaction. Here an admin can only
    lapse plans whose period has ended.
    """

    list_display = ['email', 'display_name', 'role', 'plan', 'days_left', 'is_active', 'created_at']
    list_filter = ['role', 'subscription_status', 'is_active', 'is_staff']
    search_fields = ['email', 'display_name', 'phone']
    ordering = ['-created_at']
    list_select_related = ['subscription_package']
    actions = ['lapse_expired']

    readonly_fields = [
        'created_at', 'last_login',
        'subscription_status', 'subscription_package', 'activation_date', 'subscription_expiry',
    ]
    fieldsets = (
        (None, {'fields': ('email', 'password', 'display_name', 'phone')}),
        ('Selling', {'fields': ('role', 'commission_rate', 'payment_config')}),
        ('Plan', {'fields': (
            'subscription_status', 'subscription_package', 'activation_date', 'subscription_expiry',
        )}),
        ('Access', {
            'fields': ('is_active', 'is_staff', 'is_superuser', 'groups', 'user_permissions'),
            'classes': ('collapse',),
        }),
        ('Dates', {'fields': ('created_at', 'last_login'), 'classes': ('collapse',)}),
    )
    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('email', 'role', 'display_name', 'password1', 'password2'),
        }),
    )

    @admin.display(description='Plan', ordering='subscription_status')
    def plan(self, obj):
        colour = STATUS_COLOURS.get(obj.subscription_status, '#9e9e9e')
        label = obj.get_subscription_status_display()
        if obj.subscription_package:
            label = f'{label} ({obj.subscription_package.name})'
        return format_html('<span style="color: {}; font-weight: 600;">{}</span>', colour, label)

    @admin.display(description='Days left', ordering='subscription_expiry')
    def days_left(self, obj):
        return subscription_days_left(obj)

    @admin.action(description='Lapse expired subscriptions')
    def lapse_expired(self, request, queryset):
        lapsed = sum(
            lapse_expired_subscription(user)
            for user in queryset.filter(subscription_status=SubscriptionStatus.ACTIVE)
        )
        self.message_user(request, f'{lapsed} subscription(s) lapsed', messages.SUCCESS)
