"""
Payment confirmation protocol.

Payers never settle a payment themselves. They either ask for a push prompt
on their phone or pay out-of-band to a number the vendor published, then
submit the reference code they received. A verifier (the vendor for order
payments, an admin for subscriptions) later accepts or rejects the code.

This module holds the payer-side rules:

- reference codes are trimmed, uppercased and at least
  ``settings.PAYMENT_REFERENCE_MIN_LENGTH`` characters long
- a multi-vendor checkout can only be submitted when every vendor group
  has a provider, a method and a reference (``can_submit``)
- a push prompt that fails or times out downgrades to manual entry
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

import httpx
from django.conf import settings

from apps.accounts.models import User
from apps.accounts.services import enabled_payment_numbers
from apps.payments.models import (
    PaymentMethodType,
    PaymentProvider,
    MOBILE_MONEY_PROVIDERS,
)
from config.logging import get_logger

from .exceptions import (
    IncompletePaymentError,
    InvalidReferenceError,
    PaymentValidationError,
    ProviderNotOfferedError,
    PushGatewayError,
)

logger = get_logger(__name__)

PUSH_FALLBACK_MESSAGE = "Failed to send push prompt. Please pay manually and enter the reference code."


class PushState:
    CHECK_PHONE = 'CHECK_PHONE'
    MANUAL_ENTRY = 'MANUAL_ENTRY'


@dataclass(frozen=True)
class PushOutcome:
    accepted: bool
    state: str
    message: str


@dataclass(frozen=True)
class VendorPayment:
    """What the payer declared for one vendor group at checkout."""
    vendor_id: str
    provider: str
    method_type: str
    reference: str


def normalize_reference(code: Optional[str]) -> str:
    """
    Trim and uppercase a reference code.

    Raises:
        InvalidReferenceError: If the code is shorter than the minimum length
    """
    normalized = (code or '').strip().upper()
    minimum = settings.PAYMENT_REFERENCE_MIN_LENGTH
    if len(normalized) < minimum:
        raise InvalidReferenceError(
            f"Reference code must be at least {minimum} characters"
        )
    return normalized


def method_matches_provider(provider: str, method_type: str) -> bool:
    if provider == PaymentProvider.BANK_TRANSFER:
        return method_type == PaymentMethodType.MANUAL_BANK
    if provider in MOBILE_MONEY_PROVIDERS:
        return method_type in (PaymentMethodType.PUSH, PaymentMethodType.MANUAL_MOBILE)
    return False


def _is_complete(payment: Optional[VendorPayment]) -> bool:
    if payment is None or not payment.provider or not payment.method_type:
        return False
    reference = (payment.reference or '').strip()
    return len(reference) >= settings.PAYMENT_REFERENCE_MIN_LENGTH


def can_submit(vendor_ids: Iterable, payments: Iterable[VendorPayment]) -> bool:
    """True when every vendor group has a method selected and a usable reference."""
    by_vendor = {str(p.vendor_id): p for p in payments}
    return all(_is_complete(by_vendor.get(str(v))) for v in vendor_ids)


def ensure_can_submit(
    vendor_ids: Iterable,
    payments: Iterable[VendorPayment]
) -> Dict[str, VendorPayment]:
    """
    Check the checkout gate and return normalized payments keyed by vendor id.

    Raises:
        IncompletePaymentError: Naming every vendor whose payment is missing,
            incomplete or uses a method that doesn't fit the provider
    """
    by_vendor = {str(p.vendor_id): p for p in payments}
    vendor_ids = [str(v) for v in vendor_ids]

    incomplete = [
        v for v in vendor_ids
        if not _is_complete(by_vendor.get(v))
        or not method_matches_provider(by_vendor[v].provider, by_vendor[v].method_type)
    ]
    if incomplete:
        raise IncompletePaymentError(
            "Select a payment method and enter a reference code of at least "
            f"{settings.PAYMENT_REFERENCE_MIN_LENGTH} characters for vendor(s): "
            + ", ".join(incomplete),
            vendor_ids=incomplete,
        )

    return {
        v: VendorPayment(
            vendor_id=v,
            provider=by_vendor[v].provider,
            method_type=by_vendor[v].method_type,
            reference=normalize_reference(by_vendor[v].reference),
        )
        for v in vendor_ids
    }


def available_providers(vendor: User) -> Dict[str, str]:
    """Providers the vendor accepts, mapped to the published number/account."""
    return enabled_payment_numbers(vendor)


def ensure_provider_offered(vendor: User, provider: str) -> str:
    """
    Return the number the payer should pay into.

    Raises:
        ProviderNotOfferedError: If the vendor hasn't enabled ``provider``
    """
    published = available_providers(vendor)
    if provider not in published:
        raise ProviderNotOfferedError(
            f"{vendor.get_display_name()} does not accept {provider} payments"
        )
    return published[provider]


def initiate_push_payment(
    *,
    provider: str,
    payer_number: str,
    amount: Decimal,
    gateway=None
) -> PushOutcome:
    """
    Ask the provider to prompt the payer's phone.

    Never raises for gateway trouble: a refusal, an HTTP error or a timeout
    returns a MANUAL_ENTRY outcome so the payer can still pay out-of-band.
    Acceptance does not settle anything; the payer must still submit the
    reference code from the confirmation SMS.
    """
    from apps.payments.gateway import get_push_gateway

    if provider not in MOBILE_MONEY_PROVIDERS:
        return PushOutcome(
            accepted=False,
            state=PushState.MANUAL_ENTRY,
            message=f"{provider} does not support push prompts. Please pay manually.",
        )

    try:
        gateway = gateway or get_push_gateway()
        accepted = gateway.initiate(provider=provider, payer_number=payer_number, amount=amount)
    except (httpx.HTTPError, PushGatewayError) as e:
        logger.warning("Push prompt via {} to {} failed: {}", provider, payer_number, e)
        accepted = False

    if not accepted:
        return PushOutcome(
            accepted=False,
            state=PushState.MANUAL_ENTRY,
            message=PUSH_FALLBACK_MESSAGE,
        )

    logger.info("Push prompt for {} sent via {} to {}", amount, provider, payer_number)
    return PushOutcome(
        accepted=True,
        state=PushState.CHECK_PHONE,
        message="Check your phone and enter your PIN, then submit the reference code you receive.",
    )


def vendor_payments_from_data(entries: List[dict]) -> List[VendorPayment]:
    """
    Build VendorPayment values from request or queued-order data.

    Raises:
        PaymentValidationError: If an entry is not an object or names no vendor
    """
    payments = []
    for entry in entries:
        if not isinstance(entry, dict) or not entry.get('vendor_id'):
            raise PaymentValidationError(f"Each payment needs a vendor_id, got {entry!r}")
        payments.append(VendorPayment(
            vendor_id=str(entry['vendor_id']),
            provider=entry.get('provider', ''),
            method_type=entry.get('method_type', ''),
            reference=entry.get('reference', ''),
        ))
    return payments
