"""
Vendor payment configuration.

Vendors publish the mobile-money merchant numbers and bank account that
customers pay into out-of-band. Checkout only offers providers the vendor
has enabled here.
"""

from typing import Dict

from django.db import transaction

from apps.accounts.models import User
from apps.payments.models import PaymentProvider
from config.logging import get_logger

from .exceptions import InvalidPaymentConfigError, NotAVendorError

logger = get_logger(__name__)

PUBLISHABLE_PROVIDERS = (
    PaymentProvider.MPESA,
    PaymentProvider.TIGO_PESA,
    PaymentProvider.AIRTEL_MONEY,
    PaymentProvider.HALO_PESA,
    PaymentProvider.BANK_TRANSFER,
)


@transaction.atomic
def update_payment_config(*, vendor: User, config: Dict[str, dict]) -> User:
    """
    Replace the vendor's published payment numbers.

    Each entry is ``{"enabled": bool, "number": str}``; an enabled entry
    must carry a number.

    Raises:
        NotAVendorError: If the user does not sell on the platform
        InvalidPaymentConfigError: If a provider is unknown or misconfigured
    """
    if not vendor.is_seller:
        raise NotAVendorError("Only vendors and pharmacies publish payment numbers")

    cleaned = {}
    for provider, entry in config.items():
        if provider not in PUBLISHABLE_PROVIDERS:
            raise InvalidPaymentConfigError(f"Unsupported payment provider: {provider}")
        if not isinstance(entry, dict):
            raise InvalidPaymentConfigError(f"Configuration for {provider} must be an object")

        enabled = bool(entry.get('enabled', False))
        number = str(entry.get('number', '')).strip()
        if enabled and not number:
            raise InvalidPaymentConfigError(f"{provider} is enabled but has no number")
        cleaned[provider] = {'enabled': enabled, 'number': number}

    vendor = User.objects.select_for_update().get(pk=vendor.pk)
    vendor.payment_config = cleaned
    vendor.save(update_fields=['payment_config'])

    logger.info("Vendor {} published {} payment provider(s)", vendor.id, len(cleaned))
    return vendor


def enabled_payment_numbers(vendor: User) -> Dict[str, str]:
    """Map of provider -> published number for the vendor's enabled providers."""
    published = {}
    for provider, entry in (vendor.payment_config or {}).items():
        if provider in PUBLISHABLE_PROVIDERS and entry.get('enabled') and entry.get('number'):
            published[provider] = entry['number']
    return published
