import pytest
from decimal import Decimal
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User, UserRole
from apps.catalog.models import Product


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
def seller(db):
    return User.objects.create_user(
        email='famasi@example.com',
        password='TestPass123!',
        display_name='Famasi Bora',
        role=UserRole.PHARMACY,
    )


@pytest.fixture
def rival(db):
    return User.objects.create_user(
        email='rival@example.com',
        password='TestPass123!',
        role=UserRole.VENDOR,
    )


@pytest.fixture
def shopper(db):
    return User.objects.create_user(
        email='shopper@example.com',
        password='TestPass123!',
    )


@pytest.fixture
def product(seller):
    return Product.objects.create(
        vendor=seller,
        name='Panadol',
        price=Decimal('2000.00'),
        buying_price=Decimal('1200.00'),
        stock=100,
    )


@pytest.fixture
def retired_product(seller):
    return Product.objects.create(
        vendor=seller,
        name='Old Syrup',
        price=Decimal('3500.00'),
        is_active=False,
    )


@pytest.fixture
def seller_client(seller):
    return client_for(seller)


@pytest.fixture
def rival_client(rival):
    return client_for(rival)


@pytest.fixture
def shopper_client(shopper):
    return client_for(shopper)
