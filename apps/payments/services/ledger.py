"""
Wallet ledger.

The only code that writes ``Wallet.balance``. Every change is a single
``UPDATE ... SET balance = balance +/- amount`` so concurrent deposits and
withdrawals never lose updates. Debits carry the balance check in the same
statement's WHERE clause.
"""

from decimal import Decimal

from django.conf import settings
from django.db.models import F
from django.utils import timezone

from apps.accounts.models import User
from apps.payments.models import Wallet
from config.logging import get_logger

from .exceptions import InsufficientFundsError, InvalidAmountError

logger = get_logger(__name__)


def get_wallet(user: User) -> Wallet:
    wallet, _ = Wallet.objects.get_or_create(
        user=user,
        defaults={'currency': settings.SETTLEMENT_CURRENCY}
    )
    return wallet


def get_balance(user: User) -> Decimal:
    return get_wallet(user).balance


def _positive(amount) -> Decimal:
    amount = Decimal(str(amount))
    if amount <= 0:
        raise InvalidAmountError(f"Amount must be positive (got {amount})")
    return amount


def credit(*, user: User, amount) -> Decimal:
    """Add ``amount`` to the user's wallet and return the new balance."""
    amount = _positive(amount)
    wallet = get_wallet(user)

    Wallet.objects.filter(pk=wallet.pk).update(
        balance=F('balance') + amount,
        updated_at=timezone.now()
    )
    wallet.refresh_from_db(fields=['balance'])

    logger.info("Credited {} to wallet of {}; balance {}", amount, user.id, wallet.balance)
    return wallet.balance


def debit(*, user: User, amount) -> Decimal:
    """
    Subtract ``amount`` from the user's wallet and return the new balance.

    Raises:
        InsufficientFundsError: If the balance is lower than ``amount``
    """
    amount = _positive(amount)
    wallet = get_wallet(user)

    updated = Wallet.objects.filter(pk=wallet.pk, balance__gte=amount).update(
        balance=F('balance') - amount,
        updated_at=timezone.now()
    )
    if not updated:
        wallet.refresh_from_db(fields=['balance'])
        raise InsufficientFundsError(
            f"Insufficient balance: {wallet.balance} available, {amount} requested"
        )
    wallet.refresh_from_db(fields=['balance'])

    logger.info("Debited {} from wallet of {}; balance {}", amount, user.id, wallet.balance)
    return wallet.balance
