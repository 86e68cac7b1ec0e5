import pytest
from decimal import Decimal
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User, UserRole
from apps.payments.models import BillingPeriod, SubscriptionPackage


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
def subscriber(db):
    """A pharmacy paying for a subscription."""
    return User.objects.create_user(
        email='duka@example.com',
        password='TestPass123!',
        display_name='Duka la Dawa',
        role=UserRole.PHARMACY,
        phone='0754000111',
        payment_config={'MPESA': {'enabled': True, 'number': '0754000111'}},
    )


@pytest.fixture
def admin_user(db):
    return User.objects.create_user(
        email='admin@example.com',
        password='TestPass123!',
        role=UserRole.ADMIN,
    )


@pytest.fixture
def outsider(db):
    return User.objects.create_user(
        email='outsider@example.com',
        password='TestPass123!',
    )


@pytest.fixture
def monthly_package(db):
    return SubscriptionPackage.objects.create(
        name='Pharmacy Basic',
        price=Decimal('25000.00'),
        currency='TZS',
        period=BillingPeriod.MONTHLY,
    )


@pytest.fixture
def subscriber_client(subscriber):
    return client_for(subscriber)


@pytest.fixture
def admin_client(admin_user):
    return client_for(admin_user)


@pytest.fixture
def outsider_client(outsider):
    return client_for(outsider)
