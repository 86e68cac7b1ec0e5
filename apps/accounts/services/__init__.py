from .exceptions import (
    AccountsServiceError,
    UserRegistrationError,
    DuplicateEmailError,
    RoleNotSelfServiceError,
    InvalidCredentialsError,
    InactiveAccountError,
    InvalidPaymentConfigError,
    NotAVendorError,
)
from .credentials import register_user, authenticate_user, SELF_SERVICE_ROLES
from .subscription_state import (
    is_subscription_expired,
    subscription_days_left,
    lapse_expired_subscription,
)
from .payment_config import update_payment_config, enabled_payment_numbers, PUBLISHABLE_PROVIDERS

__all__ = [
    'AccountsServiceError',
    'UserRegistrationError',
    'DuplicateEmailError',
    'RoleNotSelfServiceError',
    'InvalidCredentialsError',
    'InactiveAccountError',
    'InvalidPaymentConfigError',
    'NotAVendorError',
    'register_user',
    'authenticate_user',
    'SELF_SERVICE_ROLES',
    'is_subscription_expired',
    'subscription_days_left',
    'lapse_expired_subscription',
    'update_payment_config',
    'enabled_payment_numbers',
    'PUBLISHABLE_PROVIDERS',
]
