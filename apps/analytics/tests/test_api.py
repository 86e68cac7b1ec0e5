import pytest
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from apps.analytics.serializers import SalesReportQuerySerializer
from apps.orders.services import cancel_order


def today_utc():
    return str(timezone.now().date())


@pytest.mark.django_db
class TestSalesReport:
    """Tests for GET /api/analytics/sales/"""

    def test_vendor_report_counts_paid_orders(self, vendor_client, paid_order, unpaid_order):
        url = reverse('analytics:sales-report')
        response = vendor_client.get(url, {'start_date': today_utc(), 'tz_offset': 0})

        assert response.status_code == status.HTTP_200_OK
        assert response.data['order_count'] == 1
        assert response.data['total_sales'] == '2360.00'
        assert response.data['net_sales'] == '2000.00'
        assert response.data['total_cogs'] == '1200.00'
        assert response.data['gross_profit'] == '800.00'
        assert response.data['gross_margin'] == '40.00'
        assert response.data['top_products'][0]['name'] == 'Panadol'

    def test_cancelled_order_excluded(self, vendor_client, report_customer, paid_order):
        cancel_order(actor=report_customer, order_id=paid_order.id)

        url = reverse('analytics:sales-report')
        response = vendor_client.get(url, {'start_date': today_utc(), 'tz_offset': 0})

        assert response.status_code == status.HTTP_200_OK
        assert response.data['order_count'] == 0

    def test_other_vendor_sees_nothing(self, quiet_vendor_client, paid_order):
        url = reverse('analytics:sales-report')
        response = quiet_vendor_client.get(url, {'start_date': today_utc(), 'tz_offset': 0})

        assert response.status_code == status.HTTP_200_OK
        assert response.data['order_count'] == 0

    def test_customer_forbidden(self, customer_client):
        url = reverse('analytics:sales-report')
        response = customer_client.get(url)

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_unauthenticated(self, api_client):
        url = reverse('analytics:sales-report')
        response = api_client.get(url)

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_reversed_dates_rejected(self, vendor_client):
        url = reverse('analytics:sales-report')
        response = vendor_client.get(url, {
            'start_date': '2025-03-10',
            'end_date': '2025-03-01',
        })

        assert response.status_code == status.HTTP_400_BAD_REQUEST


class TestSalesReportQuerySerializer:

    def test_period_expands_to_month(self):
        serializer = SalesReportQuerySerializer(data={'period': '2024-12'})
        assert serializer.is_valid()
        assert str(serializer.validated_data['start_date']) == '2024-12-01'
        assert str(serializer.validated_data['end_date']) == '2024-12-31'

    def test_defaults(self, settings):
        serializer = SalesReportQuerySerializer(data={'start_date': '2025-03-10'})
        assert serializer.is_valid()
        assert serializer.validated_data['end_date'] == serializer.validated_data['start_date']
        assert serializer.validated_data['tz_offset'] == settings.REPORT_TZ_OFFSET_MINUTES
        assert serializer.validated_data['top_n'] == settings.REPORT_TOP_PRODUCTS

    def test_offset_out_of_range(self):
        serializer = SalesReportQuerySerializer(data={'tz_offset': 900})
        assert not serializer.is_valid()
        assert 'tz_offset' in serializer.errors
