"""
Payments app services layer.

Wallet ledger, transaction lifecycle, subscription confirmations and the
payer-side confirmation protocol. All resolutions are single-fire.
"""

from .exceptions import (
    PaymentsServiceError,
    PaymentValidationError,
    InvalidReferenceError,
    IncompletePaymentError,
    ProviderNotOfferedError,
    InvalidAmountError,
    InsufficientFundsError,
    AlreadyResolvedError,
    TransactionNotFoundError,
    ConfirmationNotFoundError,
    PackageNotFoundError,
    NotAuthorizedError,
    PushGatewayError,
)

from .protocol import (
    PushOutcome,
    PushState,
    VendorPayment,
    normalize_reference,
    method_matches_provider,
    can_submit,
    ensure_can_submit,
    available_providers,
    ensure_provider_offered,
    initiate_push_payment,
    vendor_payments_from_data,
)

from .ledger import (
    get_wallet,
    get_balance,
    credit,
    debit,
)

from .transactions import (
    record_payment_attempt,
    request_deposit,
    request_withdrawal,
    available_balance,
    can_resolve,
    settle_transaction,
    complete_transaction,
    reject_transaction,
    fail_transaction,
    get_wallet_summary,
    wallet_delta,
)

from .confirmations import (
    submit_subscription_payment,
    verify_subscription_payment,
    reject_subscription_payment,
    list_pending_confirmations,
)


__all__ = [
    # Exceptions
    'PaymentsServiceError',
    'PaymentValidationError',
    'InvalidReferenceError',
    'IncompletePaymentError',
    'ProviderNotOfferedError',
    'InvalidAmountError',
    'InsufficientFundsError',
    'AlreadyResolvedError',
    'TransactionNotFoundError',
    'ConfirmationNotFoundError',
    'PackageNotFoundError',
    'NotAuthorizedError',
    'PushGatewayError',

    # Confirmation protocol
    'PushOutcome',
    'PushState',
    'VendorPayment',
    'normalize_reference',
    'method_matches_provider',
    'can_submit',
    'ensure_can_submit',
    'available_providers',
    'ensure_provider_offered',
    'initiate_push_payment',
    'vendor_payments_from_data',

    # Ledger
    'get_wallet',
    'get_balance',
    'credit',
    'debit',

    # Transactions
    'record_payment_attempt',
    'request_deposit',
    'request_withdrawal',
    'available_balance',
    'can_resolve',
    'settle_transaction',
    'complete_transaction',
    'reject_transaction',
    'fail_transaction',
    'get_wallet_summary',
    'wallet_delta',

    # Subscriptions
    'submit_subscription_payment',
    'verify_subscription_payment',
    'reject_subscription_payment',
    'list_pending_confirmations',
]
