"""
Vendor partitioning.

Splits a multi-vendor cart into one draft per vendor. Drafts are plain
dataclasses; checkout persists them.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Iterable, List, Optional, Tuple

from django.conf import settings

from .calculator import Totals, calculate_totals, quantize, ZERO
from .exceptions import EmptyCartError, CalculationError


@dataclass(frozen=True)
class DraftItem:
    product_id: Any
    name: str
    unit_price: Decimal
    quantity: int
    line_total: Decimal


@dataclass
class VendorOrderDraft:
    vendor_id: Any
    items: List[DraftItem] = field(default_factory=list)
    totals: Optional[Totals] = None

    @property
    def total(self) -> Decimal:
        return self.totals.total


@dataclass
class OrderDraft:
    vendor_drafts: List[VendorOrderDraft]
    delivery_fee: Decimal

    @property
    def vendor_ids(self):
        return [draft.vendor_id for draft in self.vendor_drafts]

    def _sum(self, attr: str) -> Decimal:
        return sum((getattr(d.totals, attr) for d in self.vendor_drafts), ZERO)

    @property
    def subtotal(self) -> Decimal:
        return self._sum('subtotal')

    @property
    def tax(self) -> Decimal:
        return self._sum('tax')

    @property
    def discount(self) -> Decimal:
        return self._sum('discount')

    @property
    def total(self) -> Decimal:
        return self._sum('total') + self.delivery_fee


def partition_cart(
    cart: Iterable[Tuple[Any, int]],
    tax_rate=None,
    delivery_fee=ZERO
) -> OrderDraft:
    """
    Group ``(product, quantity)`` pairs by vendor.

    Products need ``id``, ``vendor_id``, ``name`` and ``effective_price``.
    Vendors appear in the order their first item appears in the cart, and
    items keep cart order within each vendor.

    Args:
        cart: The cart lines
        tax_rate: Percentage; defaults to ``settings.SETTLEMENT_TAX_RATE``
        delivery_fee: Added once to the order total, not to any vendor

    Raises:
        EmptyCartError: If the cart has no lines
        CalculationError: If a quantity is not a positive whole number
    """
    if tax_rate is None:
        tax_rate = settings.SETTLEMENT_TAX_RATE

    drafts = {}
    for product, quantity in cart:
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise CalculationError(
                f"Quantity for {product.name} must be a positive whole number (got {quantity})"
            )

        unit_price = quantize(product.effective_price)
        draft = drafts.setdefault(product.vendor_id, VendorOrderDraft(vendor_id=product.vendor_id))
        draft.items.append(DraftItem(
            product_id=product.id,
            name=product.name,
            unit_price=unit_price,
            quantity=quantity,
            line_total=quantize(unit_price * quantity),
        ))

    if not drafts:
        raise EmptyCartError("Cart is empty")

    for draft in drafts.values():
        draft.totals = calculate_totals(
            ((item.unit_price, item.quantity) for item in draft.items),
            tax_rate,
        )

    return OrderDraft(
        vendor_drafts=list(drafts.values()),
        delivery_fee=quantize(delivery_fee),
    )
