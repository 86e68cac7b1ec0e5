import pytest
from decimal import Decimal
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User, UserRole
from apps.catalog.models import Product
from apps.delivery.services import register_driver
from apps.orders.models import DeliveryType
from apps.orders.services import place_order, verify_vendor_payment
from apps.payments.services import VendorPayment


def client_for(user):
    client = APIClient()
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return client


@pytest.fixture
def delivery_vendor(db):
    """A pharmacy accepting M-Pesa."""
    return User.objects.create_user(
        email='pharmacy@example.com',
        password='TestPass123!',
        display_name='Famasi Kuu',
        role=UserRole.PHARMACY,
        payment_config={'MPESA': {'enabled': True, 'number': '0754000111'}},
    )


@pytest.fixture
def other_vendor(db):
    return User.objects.create_user(
        email='rival@example.com',
        password='TestPass123!',
        display_name='Rival Shop',
        role=UserRole.VENDOR,
    )


@pytest.fixture
def delivery_customer(db):
    return User.objects.create_user(
        email='mteja@example.com',
        password='TestPass123!',
        display_name='Mteja',
        phone='0712345678',
    )


@pytest.fixture
def vendor_client(delivery_vendor):
    return client_for(delivery_vendor)


@pytest.fixture
def other_vendor_client(other_vendor):
    return client_for(other_vendor)


@pytest.fixture
def delivery_product(delivery_vendor):
    return Product.objects.create(
        vendor=delivery_vendor,
        name='Panadol Extra',
        price=Decimal('2000.00'),
        stock=50,
    )


@pytest.fixture
def home_order(delivery_customer, delivery_vendor, delivery_product):
    """A home-delivery order with its payment still awaiting verification."""
    return place_order(
        actor=delivery_customer,
        cart=[{'product_id': str(delivery_product.id), 'quantity': 1}],
        payments=[VendorPayment(
            vendor_id=str(delivery_vendor.id),
            provider='MPESA',
            method_type='MANUAL_MOBILE',
            reference='QWE123RTY',
        )],
        delivery_type=DeliveryType.HOME_DELIVERY,
        delivery_address='Plot 12, Mikocheni, Dar es Salaam',
        distance_km=Decimal('3'),
    )


@pytest.fixture
def paid_home_order(home_order, delivery_vendor):
    vendor_order = home_order.vendor_orders.get()
    verify_vendor_payment(actor=delivery_vendor, vendor_order_id=vendor_order.id)
    home_order.refresh_from_db()
    return home_order


@pytest.fixture
def driver(delivery_vendor):
    return register_driver(
        actor=delivery_vendor,
        name='Juma Bakari',
        phone='0765000222',
        plate_number='mc 123 abc',
    )


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()
