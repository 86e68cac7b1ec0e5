"""Errors raised by account services; views map each to an HTTP status."""


class AccountsServiceError(Exception):
    """Base exception for accounts services."""


class UserRegistrationError(AccountsServiceError):
    pass


class DuplicateEmailError(UserRegistrationError):
    """The email already belongs to an account."""


class RoleNotSelfServiceError(UserRegistrationError):
    """Admins are provisioned, not registered."""


class InvalidCredentialsError(AccountsServiceError):
    pass


class InactiveAccountError(AccountsServiceError):
    pass


class InvalidPaymentConfigError(AccountsServiceError):
    """A published provider is unknown, or enabled without a number."""


class NotAVendorError(AccountsServiceError):
    """Only vendors and pharmacies publish payment numbers."""
