"""
Domain-specific exceptions for orders app.

These exceptions represent business rule violations and should be
caught in views and converted to appropriate HTTP responses.

Exception Hierarchy:
    OrdersServiceError (base)
    ├── OrderValidationError            -> 400
    │   ├── CalculationError
    │   ├── EmptyCartError
    │   ├── ProductNotFoundError
    │   └── MissingCustomerDetailsError
    ├── OrderNotFoundError              -> 404
    ├── VendorOrderNotFoundError        -> 404
    ├── QueuedOrderNotFoundError        -> 404
    ├── NotAuthorizedError              -> 403
    ├── InvalidTransitionError          -> 409
    │   └── PaymentAlreadyResolvedError
    └── PartialCheckoutError            -> 409
"""


class OrdersServiceError(Exception):
    """Base exception for all orders service errors."""
    pass


class OrderValidationError(OrdersServiceError):
    """Raised when checkout input is malformed. Nothing has been written."""
    pass


class CalculationError(OrderValidationError):
    """Raised when a price, quantity, discount or rate is negative."""
    pass


class EmptyCartError(OrderValidationError):
    """Raised when checking out a cart with no items."""
    pass


class ProductNotFoundError(OrderValidationError):
    """Raised when a cart references unknown or inactive products."""
    pass


class MissingCustomerDetailsError(OrderValidationError):
    """Raised when customer name, phone or delivery address is missing."""
    pass


class OrderNotFoundError(OrdersServiceError):
    """Raised when an order does not exist or is not visible to the actor."""
    pass


class VendorOrderNotFoundError(OrdersServiceError):
    """Raised when a vendor order does not exist."""
    pass


class QueuedOrderNotFoundError(OrdersServiceError):
    """Raised when an offline queue entry does not exist."""
    pass


class NotAuthorizedError(OrdersServiceError):
    """Raised when the acting user may not perform the action."""
    pass


class InvalidTransitionError(OrdersServiceError):
    """Raised when a status change is not allowed from the current status."""
    pass


class PaymentAlreadyResolvedError(InvalidTransitionError):
    """Raised when a vendor order payment was already verified or rejected."""
    pass


class PartialCheckoutError(OrdersServiceError):
    """
    Raised when checkout stopped part way through the vendor groups.

    The order header and the vendor orders listed in ``created_vendor_order_ids``
    are persisted. Placing the order again with the same client reference
    creates only the missing vendor orders.
    """

    def __init__(self, message, order_id, failed_vendor_id, created_vendor_order_ids):
        super().__init__(message)
        self.order_id = order_id
        self.failed_vendor_id = failed_vendor_id
        self.created_vendor_order_ids = list(created_vendor_order_ids)
