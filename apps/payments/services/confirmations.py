"""
Subscription payment confirmations.

A vendor or pharmacy pays for a package out-of-band and submits the payment
code. An admin later verifies it (activating the subscription) or rejects
it. Each confirmation is resolved exactly once.
"""

from uuid import UUID

from dateutil.relativedelta import relativedelta
from django.db import transaction
from django.db.models import QuerySet
from django.utils import timezone

from apps.accounts.models import User, SubscriptionStatus
from apps.payments.models import (
    BillingPeriod,
    ConfirmationStatus,
    PaymentConfirmation,
    SubscriptionPackage,
    Transaction,
    TransactionKind,
    TransactionStatus,
)
from apps.payments.notifications import notify
from config.logging import get_logger

from .exceptions import (
    AlreadyResolvedError,
    ConfirmationNotFoundError,
    NotAuthorizedError,
    PackageNotFoundError,
    PaymentValidationError,
)
from .protocol import method_matches_provider, normalize_reference
from .transactions import record_payment_attempt, settle_transaction

logger = get_logger(__name__)

BILLING_PERIODS = {
    BillingPeriod.MONTHLY: relativedelta(months=1),
    BillingPeriod.YEARLY: relativedelta(years=1),
}


def _require_admin(actor: User) -> None:
    if not actor.is_platform_admin:
        raise NotAuthorizedError("Only platform admins can verify subscription payments")


@transaction.atomic
def submit_subscription_payment(
    *,
    actor: User,
    package_id: UUID,
    provider: str,
    method_type: str,
    reference: str
) -> PaymentConfirmation:
    """
    Record a subscriber's payment code for admin verification.

    Creates a pending confirmation and its SUBSCRIPTION transaction and marks
    the user as awaiting verification. Nothing is activated yet.

    Raises:
        PackageNotFoundError: If the package doesn't exist or is retired
        InvalidReferenceError: If the code is too short
        PaymentValidationError: If the method doesn't fit the provider
    """
    try:
        package = SubscriptionPackage.objects.get(id=package_id, is_active=True)
    except SubscriptionPackage.DoesNotExist:
        raise PackageNotFoundError(f"Subscription package {package_id} not found")

    code = normalize_reference(reference)
    if not method_matches_provider(provider, method_type):
        raise PaymentValidationError(f"{method_type} cannot be used with {provider}")

    confirmation = PaymentConfirmation.objects.create(
        payer=actor,
        package=package,
        amount=package.price,
        currency=package.currency,
        payment_code=code,
        provider=provider,
        method_type=method_type,
    )
    record_payment_attempt(
        payer=actor,
        amount=package.price,
        provider=provider,
        method_type=method_type,
        reference=code,
        confirmation=confirmation,
        kind=TransactionKind.SUBSCRIPTION,
        description=f"Subscription: {package.name}",
    )
    User.objects.filter(pk=actor.pk).update(
        subscription_status=SubscriptionStatus.PENDING_VERIFICATION
    )

    logger.info(
        "Subscription payment {} submitted by {} for {} (code {})",
        confirmation.id, actor.id, package.name, code
    )
    return confirmation


def _claim(confirmation_id: UUID, status: str, actor: User, **extra) -> PaymentConfirmation:
    """Conditionally move a pending confirmation to ``status``."""
    now = timezone.now()
    updated = PaymentConfirmation.objects.filter(
        pk=confirmation_id,
        status=ConfirmationStatus.PENDING,
    ).update(status=status, confirmed_by=actor, confirmed_at=now, updated_at=now, **extra)

    try:
        confirmation = (
            PaymentConfirmation.objects
            .select_related('package', 'payer')
            .get(pk=confirmation_id)
        )
    except PaymentConfirmation.DoesNotExist:
        raise ConfirmationNotFoundError(f"Payment confirmation {confirmation_id} not found")

    if not updated:
        logger.warning(
            "Refused to mark confirmation {} {}: already {}",
            confirmation_id, status, confirmation.status
        )
        raise AlreadyResolvedError(
            f"Payment confirmation {confirmation_id} has already been {confirmation.status}"
        )
    return confirmation


def _settle_linked_transactions(confirmation: PaymentConfirmation, status: str, actor: User, note: str = "") -> None:
    pending = Transaction.objects.filter(
        confirmation=confirmation,
        status=TransactionStatus.PENDING_VERIFICATION,
    ).values_list('id', flat=True)
    for transaction_id in list(pending):
        settle_transaction(
            transaction_id=transaction_id,
            status=status,
            resolved_by=actor,
            note=note,
        )


@transaction.atomic
def verify_subscription_payment(*, actor: User, confirmation_id: UUID) -> PaymentConfirmation:
    """
    Accept a subscription payment and activate the subscriber.

    The subscriber becomes Active for one billing period from now and the
    linked transaction is completed.

    Raises:
        NotAuthorizedError: If the actor is not an admin
        ConfirmationNotFoundError: If the confirmation doesn't exist
        AlreadyResolvedError: If it was already confirmed or rejected
    """
    _require_admin(actor)
    confirmation = _claim(confirmation_id, ConfirmationStatus.CONFIRMED, actor)

    now = timezone.now()
    period = BILLING_PERIODS.get(confirmation.package.period, BILLING_PERIODS[BillingPeriod.MONTHLY])
    User.objects.filter(pk=confirmation.payer_id).update(
        subscription_status=SubscriptionStatus.ACTIVE,
        subscription_package=confirmation.package,
        activation_date=now,
        subscription_expiry=now + period,
    )
    _settle_linked_transactions(confirmation, TransactionStatus.COMPLETED, actor)

    logger.info("Subscription {} verified by {}", confirmation.id, actor.id)
    notify(
        confirmation.payer,
        f"Your {confirmation.package.name} subscription is now active.",
        'success'
    )
    return confirmation


@transaction.atomic
def reject_subscription_payment(*, actor: User, confirmation_id: UUID, reason: str) -> PaymentConfirmation:
    """
    Reject a subscription payment code.

    The subscriber is flagged as Payment Rejected and the linked
    transaction is rejected. Wallets are never touched.

    Raises:
        PaymentValidationError: If no reason is given
        NotAuthorizedError: If the actor is not an admin
        ConfirmationNotFoundError: If the confirmation doesn't exist
        AlreadyResolvedError: If it was already confirmed or rejected
    """
    _require_admin(actor)
    reason = (reason or '').strip()
    if not reason:
        raise PaymentValidationError("A rejection reason is required")

    confirmation = _claim(
        confirmation_id,
        ConfirmationStatus.REJECTED,
        actor,
        rejection_reason=reason,
    )
    User.objects.filter(pk=confirmation.payer_id).update(
        subscription_status=SubscriptionStatus.PAYMENT_REJECTED
    )
    _settle_linked_transactions(confirmation, TransactionStatus.REJECTED, actor, note=reason)

    logger.info("Subscription {} rejected by {}: {}", confirmation.id, actor.id, reason)
    notify(
        confirmation.payer,
        f"Your payment {confirmation.payment_code} was rejected: {reason}",
        'error'
    )
    return confirmation


def list_pending_confirmations() -> QuerySet:
    return (
        PaymentConfirmation.objects
        .filter(status=ConfirmationStatus.PENDING)
        .select_related('payer', 'package')
        .order_by('created_at')
    )
