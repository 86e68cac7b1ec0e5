"""
Serializers for analytics app.

Input Serializers:
    SalesReportQuerySerializer - Window, timezone and filter parameters

Response Serializers:
    SalesReportSerializer - The sales report (API documentation)
"""

from datetime import datetime, timedelta

from django.conf import settings
from django.utils import timezone
from rest_framework import serializers

from apps.orders.models import OrderStatus, SalesChannel
from apps.payments.models import PaymentProvider


# =============================================================================
# Input Serializers (Query Parameter Validation)
# =============================================================================

class SalesReportQuerySerializer(serializers.Serializer):
    """
    Validate sales report query parameters.

    Query Parameters:
        period (str): Month in YYYY-MM format, overrides start/end dates
        start_date (date): First local date (defaults to today)
        end_date (date): Last local date, inclusive (defaults to start_date)
        tz_offset (int): Minutes east of UTC (EAT = 180)
        status, payment_method, sales_rep, branch, channel: Filters
        top_n (int): Number of products to rank (1-50)

    Note:
        "Today" is the local date at ``tz_offset``, not the server's date.
    """

    period = serializers.RegexField(
        regex=r'^\d{4}-(0[1-9]|1[0-2])$',
        required=False,
        allow_blank=True,
        help_text='Month period in YYYY-MM format'
    )
    start_date = serializers.DateField(required=False)
    end_date = serializers.DateField(required=False)
    tz_offset = serializers.IntegerField(
        min_value=-12 * 60,
        max_value=14 * 60,
        required=False,
        help_text='Timezone offset in minutes east of UTC'
    )
    status = serializers.ChoiceField(
        choices=[OrderStatus.PROCESSING, OrderStatus.DELIVERED],
        required=False
    )
    payment_method = serializers.ChoiceField(choices=PaymentProvider.choices, required=False)
    sales_rep = serializers.UUIDField(required=False)
    branch = serializers.CharField(max_length=64, required=False)
    channel = serializers.ChoiceField(choices=SalesChannel.choices, required=False)
    top_n = serializers.IntegerField(min_value=1, max_value=50, required=False)

    def validate(self, attrs):
        """Resolve the period or default dates into ``start_date``/``end_date``."""
        attrs.setdefault('tz_offset', settings.REPORT_TZ_OFFSET_MINUTES)
        attrs.setdefault('top_n', settings.REPORT_TOP_PRODUCTS)

        period = attrs.pop('period', None)
        if period:
            year, month = (int(part) for part in period.split('-'))
            attrs['start_date'] = datetime(year, month, 1).date()
            if month == 12:
                attrs['end_date'] = datetime(year + 1, 1, 1).date() - timedelta(days=1)
            else:
                attrs['end_date'] = datetime(year, month + 1, 1).date() - timedelta(days=1)

        if 'start_date' not in attrs:
            local_now = timezone.now() + timedelta(minutes=attrs['tz_offset'])
            attrs['start_date'] = local_now.date()
        attrs.setdefault('end_date', attrs['start_date'])

        if attrs['start_date'] > attrs['end_date']:
            raise serializers.ValidationError({
                'start_date': 'Start date must be on or before end date'
            })

        return attrs


# =============================================================================
# Response Serializers (API Documentation)
# =============================================================================

class TopProductSerializer(serializers.Serializer):
    product_id = serializers.CharField()
    name = serializers.CharField()
    quantity = serializers.IntegerField()
    revenue = serializers.DecimalField(max_digits=14, decimal_places=2)


class SalesReportSerializer(serializers.Serializer):
    """Response serializer for the sales report."""
    period_start = serializers.DateField()
    period_end = serializers.DateField()
    tz_offset_minutes = serializers.IntegerField()
    total_sales = serializers.DecimalField(max_digits=16, decimal_places=2)
    net_sales = serializers.DecimalField(max_digits=16, decimal_places=2)
    total_tax = serializers.DecimalField(max_digits=16, decimal_places=2)
    total_discounts = serializers.DecimalField(max_digits=16, decimal_places=2)
    total_refunds = serializers.DecimalField(max_digits=16, decimal_places=2)
    total_cogs = serializers.DecimalField(max_digits=16, decimal_places=2)
    gross_profit = serializers.DecimalField(max_digits=16, decimal_places=2)
    gross_margin = serializers.DecimalField(max_digits=7, decimal_places=2)
    order_count = serializers.IntegerField()
    average_order_value = serializers.DecimalField(max_digits=16, decimal_places=2)
    payment_methods = serializers.DictField(child=serializers.DecimalField(max_digits=16, decimal_places=2))
    status_counts = serializers.DictField(child=serializers.IntegerField())
    hourly_counts = serializers.ListField(child=serializers.IntegerField())
    branch_totals = serializers.DictField(child=serializers.DecimalField(max_digits=16, decimal_places=2))
    rep_commissions = serializers.DictField(child=serializers.DecimalField(max_digits=16, decimal_places=2))
    top_products = TopProductSerializer(many=True)


class ErrorSerializer(serializers.Serializer):
    """Error response."""
    error = serializers.CharField()
