"""
Domain-specific exceptions for payments app.

These exceptions represent business rule violations and should be
caught in views and converted to appropriate HTTP responses.
"""


class PaymentsServiceError(Exception):
    """Base exception for all payments service errors."""
    pass


class PaymentValidationError(PaymentsServiceError):
    """Raised when payment input is malformed. Nothing has been written."""
    pass


class InvalidReferenceError(PaymentValidationError):
    """Raised when a payment reference code is missing or too short."""
    pass


class IncompletePaymentError(PaymentValidationError):
    """Raised when a vendor group has no usable payment method or reference."""

    def __init__(self, message, vendor_ids=None):
        super().__init__(message)
        self.vendor_ids = list(vendor_ids or [])


class ProviderNotOfferedError(PaymentValidationError):
    """Raised when a vendor has not published a number for the chosen provider."""
    pass


class InvalidAmountError(PaymentValidationError):
    """Raised when an amount is zero or negative."""
    pass


class InsufficientFundsError(PaymentsServiceError):
    """Raised when a withdrawal or debit exceeds the available balance."""
    pass


class AlreadyResolvedError(PaymentsServiceError):
    """Raised when a verifier acts on a transaction or confirmation that is already final."""
    pass


class TransactionNotFoundError(PaymentsServiceError):
    """Raised when a transaction does not exist."""
    pass


class ConfirmationNotFoundError(PaymentsServiceError):
    """Raised when a payment confirmation does not exist."""
    pass


class PackageNotFoundError(PaymentsServiceError):
    """Raised when a subscription package does not exist or is retired."""
    pass


class NotAuthorizedError(PaymentsServiceError):
    """Raised when the acting user may not verify or reject the payment."""
    pass


class PushGatewayError(PaymentsServiceError):
    """Raised by gateway backends when a push prompt could not be sent."""
    pass
