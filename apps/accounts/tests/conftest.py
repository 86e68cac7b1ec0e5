import pytest
from datetime import timedelta
from decimal import Decimal
from django.utils import timezone
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User, UserRole, SubscriptionStatus
from apps.payments.models import BillingPeriod, SubscriptionPackage


def client_for(user):
    client = APIClient()
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return client


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def customer(db):
    return User.objects.create_user(
        email='amina@example.com',
        password='TestPass123!',
        display_name='Amina',
        phone='0712000111',
    )


@pytest.fixture
def vendor(db):
    return User.objects.create_user(
        email='duka@example.com',
        password='TestPass123!',
        display_name='Duka la Dawa',
        role=UserRole.VENDOR,
    )


@pytest.fixture
def deactivated(db):
    return User.objects.create_user(
        email='closed@example.com',
        password='TestPass123!',
        is_active=False,
    )


@pytest.fixture
def basic_package(db):
    return SubscriptionPackage.objects.create(
        name='Pharmacy Basic', price=Decimal('25000.00'), period=BillingPeriod.MONTHLY
    )


@pytest.fixture
def subscribed_pharmacy(basic_package):
    """Pharmacy with an ACTIVE plan that still has ten days to run."""
    now = timezone.now()
    return User.objects.create_user(
        email='famasi@example.com',
        password='TestPass123!',
        role=UserRole.PHARMACY,
        subscription_status=SubscriptionStatus.ACTIVE,
        subscription_package=basic_package,
        activation_date=now - timedelta(days=20),
        subscription_expiry=now + timedelta(days=10),
    )


@pytest.fixture
def lapsed_pharmacy(basic_package):
    """Pharmacy still flagged ACTIVE although its plan ended yesterday."""
    now = timezone.now()
    return User.objects.create_user(
        email='zamani@example.com',
        password='TestPass123!',
        role=UserRole.PHARMACY,
        subscription_status=SubscriptionStatus.ACTIVE,
        subscription_package=basic_package,
        activation_date=now - timedelta(days=31),
        subscription_expiry=now - timedelta(days=1),
    )


@pytest.fixture
def customer_client(customer):
    return client_for(customer)


@pytest.fixture
def vendor_client(vendor):
    return client_for(vendor)


@pytest.fixture
def subscribed_client(subscribed_pharmacy):
    return client_for(subscribed_pharmacy)


@pytest.fixture
def lapsed_client(lapsed_pharmacy):
    return client_for(lapsed_pharmacy)
