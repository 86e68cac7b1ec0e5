"""
Orders app services layer.

Pure money maths and cart partitioning, checkout, the order lifecycle and
the offline queue.
"""

from .exceptions import (
    OrdersServiceError,
    OrderValidationError,
    CalculationError,
    EmptyCartError,
    ProductNotFoundError,
    MissingCustomerDetailsError,
    OrderNotFoundError,
    VendorOrderNotFoundError,
    QueuedOrderNotFoundError,
    NotAuthorizedError,
    InvalidTransitionError,
    PaymentAlreadyResolvedError,
    PartialCheckoutError,
)

from .calculator import (
    Totals,
    EscrowSplit,
    calculate_totals,
    calculate_commission,
    calculate_escrow_split,
    calculate_delivery_fee,
)

from .partitioner import (
    DraftItem,
    VendorOrderDraft,
    OrderDraft,
    partition_cart,
)

from .checkout import (
    place_order,
    generate_delivery_otp,
)

from .lifecycle import (
    visible_orders,
    get_order,
    vendor_orders_for,
    derive_order_status,
    refresh_order_status,
    cancel_order,
    verify_vendor_payment,
    reject_vendor_payment,
    resubmit_vendor_payment,
    mark_vendor_order_delivered,
    deliver_paid_vendor_orders,
)

from .offline_sync import (
    SyncResult,
    queue_order,
    pending_orders,
    get_queued_order,
    replay_queued_order,
    sync_pending_orders,
    clear_synced,
)


__all__ = [
    # Exceptions
    'OrdersServiceError',
    'OrderValidationError',
    'CalculationError',
    'EmptyCartError',
    'ProductNotFoundError',
    'MissingCustomerDetailsError',
    'OrderNotFoundError',
    'VendorOrderNotFoundError',
    'QueuedOrderNotFoundError',
    'NotAuthorizedError',
    'InvalidTransitionError',
    'PaymentAlreadyResolvedError',
    'PartialCheckoutError',

    # Calculator
    'Totals',
    'EscrowSplit',
    'calculate_totals',
    'calculate_commission',
    'calculate_escrow_split',
    'calculate_delivery_fee',

    # Partitioner
    'DraftItem',
    'VendorOrderDraft',
    'OrderDraft',
    'partition_cart',

    # Checkout
    'place_order',
    'generate_delivery_otp',

    # Lifecycle
    'visible_orders',
    'get_order',
    'vendor_orders_for',
    'derive_order_status',
    'refresh_order_status',
    'cancel_order',
    'verify_vendor_payment',
    'reject_vendor_payment',
    'resubmit_vendor_payment',
    'mark_vendor_order_delivered',
    'deliver_paid_vendor_orders',

    # Offline queue
    'SyncResult',
    'queue_order',
    'pending_orders',
    'get_queued_order',
    'replay_queued_order',
    'sync_pending_orders',
    'clear_synced',
]
