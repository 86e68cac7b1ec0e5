import pytest
from decimal import Decimal
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User, UserRole
from apps.catalog.models import Product
from apps.orders.services import place_order, verify_vendor_payment
from apps.payments.services import VendorPayment


def client_for(user):
    client = APIClient()
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return client


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def report_vendor(db):
    return User.objects.create_user(
        email='sales@example.com',
        password='TestPass123!',
        display_name='Famasi ya Sales',
        role=UserRole.PHARMACY,
        payment_config={'MPESA': {'enabled': True, 'number': '0754000111'}},
    )


@pytest.fixture
def quiet_vendor(db):
    return User.objects.create_user(
        email='quiet@example.com',
        password='TestPass123!',
        role=UserRole.VENDOR,
    )


@pytest.fixture
def report_customer(db):
    return User.objects.create_user(
        email='buyer@example.com',
        password='TestPass123!',
        display_name='Buyer',
        phone='0712000999',
    )


@pytest.fixture
def report_product(report_vendor):
    """Sells at 2000, costs the vendor 1200."""
    return Product.objects.create(
        vendor=report_vendor,
        name='Panadol',
        price=Decimal('2000.00'),
        buying_price=Decimal('1200.00'),
        stock=100,
    )


def checkout(customer, vendor, product, reference):
    return place_order(
        actor=customer,
        cart=[{'product_id': str(product.id), 'quantity': 1}],
        payments=[VendorPayment(str(vendor.id), 'MPESA', 'MANUAL_MOBILE', reference)],
    )


@pytest.fixture
def paid_order(report_customer, report_vendor, report_product):
    order = checkout(report_customer, report_vendor, report_product, 'PAID0001')
    verify_vendor_payment(actor=report_vendor, vendor_order_id=order.vendor_orders.get().id)
    return order


@pytest.fixture
def unpaid_order(report_customer, report_vendor, report_product):
    return checkout(report_customer, report_vendor, report_product, 'WAIT0001')


@pytest.fixture
def vendor_client(report_vendor):
    return client_for(report_vendor)


@pytest.fixture
def quiet_vendor_client(quiet_vendor):
    return client_for(quiet_vendor)


@pytest.fixture
def customer_client(report_customer):
    return client_for(report_customer)
