"""
Transaction lifecycle.

A transaction is created in PENDING_VERIFICATION and resolved exactly once
to COMPLETED, REJECTED or FAILED. Resolution is a conditional UPDATE on the
pending status, so two verifiers racing on the same record cannot both win.
Completing a wallet-bearing transaction applies its ledger change in the
same database transaction as the status change.
"""

import secrets
from decimal import Decimal
from typing import Optional
from uuid import UUID

from django.conf import settings
from django.db import transaction
from django.db.models import Sum
from django.utils import timezone

from apps.accounts.models import User
from apps.payments.models import (
    Transaction,
    TransactionKind,
    TransactionStatus,
    Wallet,
)
from config.logging import get_logger

from . import ledger
from .exceptions import (
    AlreadyResolvedError,
    InsufficientFundsError,
    InvalidAmountError,
    NotAuthorizedError,
    TransactionNotFoundError,
)
from .protocol import normalize_reference

logger = get_logger(__name__)

# Sign of the wallet change when a transaction of this kind completes.
# Order and subscription payments settle outside the wallet.
WALLET_EFFECT = {
    TransactionKind.DEPOSIT: 1,
    TransactionKind.REFUND: 1,
    TransactionKind.WITHDRAWAL: -1,
}


def wallet_delta(txn: Transaction) -> Decimal:
    return txn.amount * WALLET_EFFECT.get(txn.kind, 0)


def _positive_amount(amount) -> Decimal:
    amount = Decimal(str(amount))
    if amount <= 0:
        raise InvalidAmountError(f"Amount must be positive (got {amount})")
    return amount


def record_payment_attempt(
    *,
    payer: User,
    amount: Decimal,
    provider: str,
    method_type: str,
    reference: str,
    vendor: Optional[User] = None,
    order=None,
    vendor_order=None,
    confirmation=None,
    kind: str = TransactionKind.PAYMENT,
    description: str = ""
) -> Transaction:
    """Create one pending transaction for a submitted payment reference."""
    txn = Transaction.objects.create(
        user=payer,
        kind=kind,
        amount=_positive_amount(amount),
        currency=settings.SETTLEMENT_CURRENCY,
        provider=provider,
        method_type=method_type,
        reference=normalize_reference(reference),
        vendor=vendor,
        order=order,
        vendor_order=vendor_order,
        confirmation=confirmation,
        description=description,
    )
    logger.info(
        "Recorded {} transaction {} of {} via {} (ref {})",
        kind, txn.id, txn.amount, provider, txn.reference
    )
    return txn


def pending_withdrawals(user: User) -> Decimal:
    return Transaction.objects.filter(
        user=user,
        kind=TransactionKind.WITHDRAWAL,
        status=TransactionStatus.PENDING_VERIFICATION,
    ).aggregate(total=Sum('amount'))['total'] or Decimal('0.00')


def available_balance(user: User) -> Decimal:
    """Wallet balance minus withdrawals still awaiting verification."""
    return ledger.get_balance(user) - pending_withdrawals(user)


def request_deposit(
    *,
    actor: User,
    amount,
    provider: str,
    method_type: str,
    reference: str
) -> Transaction:
    """
    Declare money paid into the platform. The wallet is credited only when
    an admin completes the transaction.
    """
    return record_payment_attempt(
        payer=actor,
        amount=amount,
        provider=provider,
        method_type=method_type,
        reference=reference,
        kind=TransactionKind.DEPOSIT,
        description="Wallet deposit",
    )


@transaction.atomic
def request_withdrawal(
    *,
    actor: User,
    amount,
    provider: str,
    destination: str
) -> Transaction:
    """
    Ask for wallet money to be paid out to ``destination``.

    The wallet row is locked while the available balance is checked so two
    concurrent requests cannot both pass the check.

    Raises:
        InvalidAmountError: If the amount is not positive
        InsufficientFundsError: If the amount exceeds the available balance;
            no transaction is created
    """
    amount = _positive_amount(amount)
    wallet = ledger.get_wallet(actor)
    Wallet.objects.select_for_update().get(pk=wallet.pk)

    available = available_balance(actor)
    if amount > available:
        logger.warning(
            "Withdrawal of {} refused for {}: {} available", amount, actor.id, available
        )
        raise InsufficientFundsError(
            f"Insufficient balance: {available} available, {amount} requested"
        )

    txn = Transaction.objects.create(
        user=actor,
        kind=TransactionKind.WITHDRAWAL,
        amount=amount,
        currency=settings.SETTLEMENT_CURRENCY,
        provider=provider,
        reference=f"WD{secrets.token_hex(4).upper()}",
        description=f"Withdrawal to {destination}",
    )
    logger.info("Withdrawal {} of {} requested by {}", txn.id, amount, actor.id)
    return txn


def can_resolve(actor: User, txn: Transaction) -> bool:
    """Admins resolve anything; a vendor resolves payments made to them."""
    if actor.is_platform_admin:
        return True
    return txn.kind == TransactionKind.PAYMENT and txn.vendor_id == actor.id


@transaction.atomic
def settle_transaction(
    *,
    transaction_id: UUID,
    status: str,
    resolved_by: Optional[User],
    note: str = ""
) -> Transaction:
    """
    Move a pending transaction to ``status`` and apply its wallet effect.

    Callers are responsible for authorization.

    Raises:
        TransactionNotFoundError: If the transaction doesn't exist
        AlreadyResolvedError: If it has already left PENDING_VERIFICATION
        InsufficientFundsError: If completing a withdrawal would overdraw
            the wallet; the status change is rolled back
    """
    if status == TransactionStatus.PENDING_VERIFICATION:
        raise ValueError("Cannot settle a transaction back to pending")

    now = timezone.now()
    changes = {
        'status': status,
        'resolved_by': resolved_by,
        'resolved_at': now,
        'resolution_note': note,
        'updated_at': now,
    }
    if status == TransactionStatus.COMPLETED:
        changes['completed_at'] = now

    updated = Transaction.objects.filter(
        pk=transaction_id,
        status=TransactionStatus.PENDING_VERIFICATION,
    ).update(**changes)

    try:
        txn = Transaction.objects.select_related('user').get(pk=transaction_id)
    except Transaction.DoesNotExist:
        raise TransactionNotFoundError(f"Transaction {transaction_id} not found")

    if not updated:
        logger.warning(
            "Refused to mark transaction {} {}: already {}", txn.id, status, txn.status
        )
        raise AlreadyResolvedError(
            f"Transaction {txn.id} has already been finalized as {txn.status}"
        )

    if status == TransactionStatus.COMPLETED:
        delta = wallet_delta(txn)
        if delta > 0:
            ledger.credit(user=txn.user, amount=delta)
        elif delta < 0:
            ledger.debit(user=txn.user, amount=-delta)

    logger.info("Transaction {} -> {} by {}", txn.id, status, getattr(resolved_by, 'id', None))
    return txn


def _resolve_as(actor: User, transaction_id: UUID, status: str, note: str) -> Transaction:
    try:
        txn = Transaction.objects.get(pk=transaction_id)
    except Transaction.DoesNotExist:
        raise TransactionNotFoundError(f"Transaction {transaction_id} not found")

    if not can_resolve(actor, txn):
        raise NotAuthorizedError("You cannot verify this transaction")

    return settle_transaction(
        transaction_id=transaction_id,
        status=status,
        resolved_by=actor,
        note=note,
    )


def complete_transaction(*, actor: User, transaction_id: UUID, note: str = "") -> Transaction:
    """Verifier confirms the money arrived (deposits credit, withdrawals debit)."""
    return _resolve_as(actor, transaction_id, TransactionStatus.COMPLETED, note)


def reject_transaction(*, actor: User, transaction_id: UUID, reason: str = "") -> Transaction:
    """Verifier could not match the reference. No wallet change."""
    return _resolve_as(actor, transaction_id, TransactionStatus.REJECTED, reason)


def fail_transaction(*, actor: User, transaction_id: UUID, reason: str = "") -> Transaction:
    """Payout or collection failed at the provider. No wallet change."""
    return _resolve_as(actor, transaction_id, TransactionStatus.FAILED, reason)


def get_wallet_summary(*, user: User) -> dict:
    pending = Transaction.objects.filter(
        user=user,
        status=TransactionStatus.PENDING_VERIFICATION,
    )
    pending_deposits = pending.filter(
        kind=TransactionKind.DEPOSIT
    ).aggregate(total=Sum('amount'))['total'] or Decimal('0.00')
    held = pending_withdrawals(user)
    wallet = ledger.get_wallet(user)

    return {
        'balance': wallet.balance,
        'available_balance': wallet.balance - held,
        'pending_deposits': pending_deposits,
        'pending_withdrawals': held,
        'currency': wallet.currency,
    }
