"""
Domain-specific exceptions for delivery app.

Exception Hierarchy:
    DeliveryServiceError (base)
    ├── DeliveryValidationError         -> 400
    │   └── InvalidOtpError
    ├── DriverNotFoundError             -> 404
    ├── DeliveryTaskNotFoundError       -> 404
    ├── DeliveryNotAuthorizedError      -> 403
    └── DeliveryConflictError           -> 409
        └── DriverUnavailableError
"""


class DeliveryServiceError(Exception):
    """Base exception for all delivery service errors."""
    pass


class DeliveryValidationError(DeliveryServiceError):
    """Raised when delivery input is malformed or the order can't be delivered."""
    pass


class InvalidOtpError(DeliveryValidationError):
    """Raised when the OTP doesn't match the order's delivery code. Nothing changes."""
    pass


class DriverNotFoundError(DeliveryServiceError):
    pass


class DeliveryTaskNotFoundError(DeliveryServiceError):
    pass


class DeliveryNotAuthorizedError(DeliveryServiceError):
    """Raised when the acting user doesn't own the driver or the order's goods."""
    pass


class DeliveryConflictError(DeliveryServiceError):
    """Raised when the task or order is not in a state that allows the action."""
    pass


class DriverUnavailableError(DeliveryConflictError):
    """Raised when assigning a driver who is already on a delivery."""
    pass
