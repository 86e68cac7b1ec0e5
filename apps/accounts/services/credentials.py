"""
Sign-up and sign-in.

Self-service sign-up covers every role except admin. Signing in also
lapses a subscription whose paid period has run out, so the profile a
client receives with its tokens never shows a stale ACTIVE plan.
"""

from django.db import IntegrityError, transaction
from django.utils import timezone

from apps.accounts.models import User, UserRole
from config.logging import get_logger

from .exceptions import (
    DuplicateEmailError,
    InactiveAccountError,
    InvalidCredentialsError,
    RoleNotSelfServiceError,
)
from .subscription_state import lapse_expired_subscription

logger = get_logger(__name__)

SELF_SERVICE_ROLES = frozenset({
    UserRole.CUSTOMER,
    UserRole.SALES_REP,
    UserRole.VENDOR,
    UserRole.PHARMACY,
})


@transaction.atomic
def register_user(*, email: str, password: str, role: str = UserRole.CUSTOMER, **profile) -> User:
    """
    Create an account for a customer, sales rep, vendor or pharmacy.

    ``profile`` may carry ``display_name`` and ``phone``; the phone is the
    default payer number for push payments.

    Raises:
        RoleNotSelfServiceError: If ``role`` is admin or unknown
        DuplicateEmailError: If the email is already registered
    """
    if role not in SELF_SERVICE_ROLES:
        raise RoleNotSelfServiceError(f"Role '{role}' cannot be self-registered")

    if User.objects.filter(email__iexact=email).exists():
        raise DuplicateEmailError(f"An account with email {email} already exists")

    try:
        with transaction.atomic():
            account = User.objects.create_user(email=email, password=password, role=role, **profile)
    except IntegrityError:
        # Lost a race with a concurrent sign-up for the same address
        raise DuplicateEmailError(f"An account with email {email} already exists")

    logger.info("New {} account {}", role, account.id)
    return account


def authenticate_user(*, email: str, password: str) -> User:
    """
    Verify an email/password pair and record the login.

    Raises:
        InvalidCredentialsError: Unknown email or wrong password
        InactiveAccountError: The account was deactivated by an admin
    """
    account = User.objects.filter(email__iexact=(email or '').strip()).first()
    if account is None or not account.check_password(password):
        logger.warning("Rejected login attempt for {}", email)
        raise InvalidCredentialsError("Invalid email or password")

    if not account.is_active:
        raise InactiveAccountError("Account is deactivated")

    now = timezone.now()
    User.objects.filter(pk=account.pk).update(last_login=now)
    account.last_login = now

    lapse_expired_subscription(account, now=now)
    return account
