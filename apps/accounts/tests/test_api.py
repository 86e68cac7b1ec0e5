import pytest
from django.urls import reverse
from rest_framework import status
from apps.accounts.models import User, UserRole, SubscriptionStatus


def sign_up(client, **overrides):
    data = {
        'email': 'mpya@example.com',
        'password': 'SecurePass123!',
        'password_confirm': 'SecurePass123!',
    }
    data.update(overrides)
    return client.post(reverse('accounts:register'), data)


@pytest.mark.django_db
class TestRegister:
    """Tests for POST /api/auth/register/"""

    def test_customer_by_default(self, api_client):
        response = sign_up(api_client, display_name='Mteja Mpya')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['access']
        assert response.data['refresh']
        assert response.data['user']['role'] == UserRole.CUSTOMER
        assert response.data['user']['subscription_days_left'] is None

    def test_pharmacy_with_phone(self, api_client):
        response = sign_up(api_client, role=UserRole.PHARMACY, phone='0754000111')

        assert response.status_code == status.HTTP_201_CREATED
        assert User.objects.get(email='mpya@example.com').phone == '0754000111'

    def test_admin_role_refused(self, api_client):
        response = sign_up(api_client, role=UserRole.ADMIN)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert not User.objects.filter(email='mpya@example.com').exists()

    def test_email_taken(self, api_client, customer):
        response = sign_up(api_client, email=customer.email)

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_passwords_must_match(self, api_client):
        response = sign_up(api_client, password_confirm='Different123!')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'password_confirm' in response.data


@pytest.mark.django_db
class TestLogin:
    """Tests for POST /api/auth/login/"""

    def test_returns_tokens_and_profile(self, api_client, customer):
        response = api_client.post(
            reverse('accounts:login'), {'email': customer.email, 'password': 'TestPass123!'}
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data['access']
        assert response.data['user']['email'] == customer.email

    def test_wrong_password(self, api_client, customer):
        response = api_client.post(
            reverse('accounts:login'), {'email': customer.email, 'password': 'Wrong123!'}
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert 'error' in response.data

    def test_deactivated(self, api_client, deactivated):
        response = api_client.post(
            reverse('accounts:login'), {'email': deactivated.email, 'password': 'TestPass123!'}
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_expired_plan_reported_inactive(self, api_client, lapsed_pharmacy):
        response = api_client.post(
            reverse('accounts:login'), {'email': lapsed_pharmacy.email, 'password': 'TestPass123!'}
        )

        assert response.data['user']['subscription_status'] == SubscriptionStatus.INACTIVE
        assert response.data['user']['subscription_expired'] is True

    def test_refresh_token(self, api_client, customer):
        login = api_client.post(
            reverse('accounts:login'), {'email': customer.email, 'password': 'TestPass123!'}
        )

        response = api_client.post(reverse('accounts:token-refresh'), {'refresh': login.data['refresh']})

        assert response.status_code == status.HTTP_200_OK
        assert 'access' in response.data


@pytest.mark.django_db
class TestMe:
    """Tests for /api/auth/me/"""

    def test_profile(self, customer_client, customer):
        response = customer_client.get(reverse('accounts:me'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['email'] == customer.email

    def test_requires_token(self, api_client):
        response = api_client.get(reverse('accounts:me'))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_edit_display_name(self, customer_client, customer):
        response = customer_client.patch(reverse('accounts:me'), {'display_name': 'Amina J.'})

        assert response.status_code == status.HTTP_200_OK
        customer.refresh_from_db()
        assert customer.display_name == 'Amina J.'

    def test_subscription_fields_read_only(self, customer_client, customer):
        customer_client.patch(reverse('accounts:me'), {
            'subscription_status': SubscriptionStatus.ACTIVE,
            'role': UserRole.ADMIN,
        })

        customer.refresh_from_db()
        assert customer.subscription_status == SubscriptionStatus.INACTIVE
        assert customer.role == UserRole.CUSTOMER

    def test_subscription_countdown(self, subscribed_client):
        response = subscribed_client.get(reverse('accounts:subscription'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['status'] == SubscriptionStatus.ACTIVE
        assert response.data['package'] == 'Pharmacy Basic'
        assert response.data['days_left'] == 10
        assert response.data['expired'] is False

    def test_viewing_subscription_lapses_it(self, lapsed_client, lapsed_pharmacy):
        response = lapsed_client.get(reverse('accounts:subscription'))

        assert response.data['status'] == SubscriptionStatus.INACTIVE
        assert response.data['days_left'] == 0
        lapsed_pharmacy.refresh_from_db()
        assert lapsed_pharmacy.subscription_status == SubscriptionStatus.INACTIVE


@pytest.mark.django_db
class TestPaymentConfig:
    """Tests for /api/auth/me/payment-config/"""

    def test_vendor_publishes_numbers(self, vendor_client, vendor):
        response = vendor_client.put(reverse('accounts:payment-config'), {
            'providers': {
                'MPESA': {'enabled': True, 'number': '0754000111'},
                'BANK_TRANSFER': {'enabled': False, 'number': ''},
            }
        }, format='json')

        assert response.status_code == status.HTTP_200_OK
        vendor.refresh_from_db()
        assert vendor.payment_config['MPESA'] == {'enabled': True, 'number': '0754000111'}

    def test_read_back(self, vendor_client, vendor):
        vendor.payment_config = {'TIGO_PESA': {'enabled': True, 'number': '0655000111'}}
        vendor.save()

        response = vendor_client.get(reverse('accounts:payment-config'))

        assert response.data['providers']['TIGO_PESA']['number'] == '0655000111'

    def test_enabled_provider_needs_number(self, vendor_client):
        response = vendor_client.put(reverse('accounts:payment-config'), {
            'providers': {'TIGO_PESA': {'enabled': True, 'number': ''}}
        }, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'TIGO_PESA' in response.data['error']

    def test_unknown_provider(self, vendor_client):
        response = vendor_client.put(reverse('accounts:payment-config'), {
            'providers': {'PAYPAL': {'enabled': True, 'number': 'x'}}
        }, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_customer_cannot_publish(self, customer_client):
        response = customer_client.put(reverse('accounts:payment-config'), {
            'providers': {'MPESA': {'enabled': True, 'number': '0754000111'}}
        }, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN
