import pytest
from decimal import Decimal
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User, UserRole
from apps.catalog.models import Product
from apps.orders.services import place_order
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
def pharmacy(db):
    return User.objects.create_user(
        email='famasi@example.com',
        password='TestPass123!',
        display_name='Famasi Bora',
        role=UserRole.PHARMACY,
        payment_config={'MPESA': {'enabled': True, 'number': '0754000111'}},
    )


@pytest.fixture
def wholesaler(db):
    return User.objects.create_user(
        email='jumla@example.com',
        password='TestPass123!',
        display_name='Jumla Supplies',
        role=UserRole.VENDOR,
        payment_config={
            'MPESA': {'enabled': True, 'number': '0765000222'},
            'BANK_TRANSFER': {'enabled': True, 'number': 'CRDB 0150000333'},
        },
    )


@pytest.fixture
def customer(db):
    return User.objects.create_user(
        email='mteja@example.com',
        password='TestPass123!',
        display_name='Amina',
        phone='0712000111',
    )


@pytest.fixture
def stranger(db):
    return User.objects.create_user(
        email='stranger@example.com',
        password='TestPass123!',
        phone='0712000999',
    )


@pytest.fixture
def sales_rep(db):
    return User.objects.create_user(
        email='rep@example.com',
        password='TestPass123!',
        display_name='Baraka',
        role=UserRole.SALES_REP,
        phone='0713000444',
        commission_rate=Decimal('5.00'),
    )


@pytest.fixture
def admin_user(db):
    return User.objects.create_user(
        email='admin@example.com',
        password='TestPass123!',
        role=UserRole.ADMIN,
    )


@pytest.fixture
def panadol(pharmacy):
    return Product.objects.create(
        vendor=pharmacy,
        name='Panadol',
        price=Decimal('2000.00'),
        buying_price=Decimal('1200.00'),
        stock=100,
    )


@pytest.fixture
def gloves(wholesaler):
    return Product.objects.create(
        vendor=wholesaler,
        name='Gloves (box)',
        price=Decimal('1000.00'),
        buying_price=Decimal('600.00'),
        stock=50,
    )


@pytest.fixture
def two_vendor_cart(panadol, gloves):
    """Panadol x1 (2000) and gloves x5 (5000): 2360 + 5900 at 18% tax."""
    return [
        {'product_id': str(panadol.id), 'quantity': 1},
        {'product_id': str(gloves.id), 'quantity': 5},
    ]


@pytest.fixture
def two_vendor_payments(pharmacy, wholesaler):
    return [
        VendorPayment(str(pharmacy.id), 'MPESA', 'MANUAL_MOBILE', 'qwe123rt'),
        VendorPayment(str(wholesaler.id), 'BANK_TRANSFER', 'MANUAL_BANK', 'BNK998877'),
    ]


@pytest.fixture
def order(customer, two_vendor_cart, two_vendor_payments):
    return place_order(actor=customer, cart=two_vendor_cart, payments=two_vendor_payments)


@pytest.fixture
def pharmacy_share(order, pharmacy):
    return order.vendor_orders.get(vendor=pharmacy)


@pytest.fixture
def wholesaler_share(order, wholesaler):
    return order.vendor_orders.get(vendor=wholesaler)


@pytest.fixture
def customer_client(customer):
    return client_for(customer)


@pytest.fixture
def pharmacy_client(pharmacy):
    return client_for(pharmacy)


@pytest.fixture
def wholesaler_client(wholesaler):
    return client_for(wholesaler)


@pytest.fixture
def stranger_client(stranger):
    return client_for(stranger)
