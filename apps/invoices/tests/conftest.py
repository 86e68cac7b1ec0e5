import pytest
from datetime import timedelta
from decimal import Decimal
from django.utils import timezone
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User, UserRole
from apps.invoices.services import create_invoice


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def invoice_owner(db):
    """Create and return a vendor issuing invoices."""
    return User.objects.create_user(
        email='billing@example.com',
        password='TestPass123!',
        display_name='Famasi Bora',
        role=UserRole.VENDOR,
    )


@pytest.fixture
def other_owner(db):
    """Create and return a second vendor."""
    return User.objects.create_user(
        email='othershop@example.com',
        password='TestPass123!',
        display_name='Other Shop',
        role=UserRole.VENDOR,
    )


@pytest.fixture
def owner_client(invoice_owner):
    """Return an API client authenticated as the invoice owner."""
    client = APIClient()
    refresh = RefreshToken.for_user(invoice_owner)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return client


@pytest.fixture
def other_client(other_owner):
    """Return an API client authenticated as the second vendor."""
    client = APIClient()
    refresh = RefreshToken.for_user(other_owner)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return client


@pytest.fixture
def draft_invoice(invoice_owner):
    """A draft invoice: 2 x 1000 + 1 x 500 at 18% tax."""
    return create_invoice(
        owner=invoice_owner,
        customer_name='Hospitali ya Mji',
        items=[
            {'name': 'Paracetamol 500mg (box)', 'quantity': 2, 'price': Decimal('1000.00')},
            {'name': 'Bandages', 'quantity': 1, 'price': Decimal('500.00')},
        ],
        tax_rate=Decimal('18'),
    )


@pytest.fixture
def past_due_invoice(invoice_owner):
    """A sent invoice whose due date was yesterday."""
    today = timezone.localdate()
    invoice = create_invoice(
        owner=invoice_owner,
        customer_name='Kliniki Ndogo',
        items=[{'name': 'Gloves', 'quantity': 10, 'price': Decimal('200.00')}],
        issue_date=today - timedelta(days=31),
        due_date=today - timedelta(days=1),
    )
    invoice.status = 'sent'
    invoice.sent_at = timezone.now() - timedelta(days=30)
    invoice.save(update_fields=['status', 'sent_at'])
    return invoice
