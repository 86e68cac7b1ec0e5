"""
Money and tax calculations.

Pure functions over Decimal. Every amount that leaves this module is
quantized to cents with ROUND_HALF_UP.
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Iterable, Optional, Tuple

from django.conf import settings

from apps.orders.models import DeliveryType

from .exceptions import CalculationError

CENT = Decimal('0.01')
ZERO = Decimal('0.00')
HUNDRED = Decimal('100')


@dataclass(frozen=True)
class Totals:
    subtotal: Decimal
    tax: Decimal
    discount: Decimal
    refund: Decimal
    total: Decimal


@dataclass(frozen=True)
class EscrowSplit:
    vendor_amount: Decimal
    commission: Decimal


def to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # str() first so floats keep their printed value
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        raise CalculationError(f"Not a number: {value!r}")
    if not amount.is_finite():
        raise CalculationError(f"Not a finite amount: {value!r}")
    return amount


def quantize(value) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def _non_negative(value, label: str) -> Decimal:
    amount = to_decimal(value)
    if amount < 0:
        raise CalculationError(f"{label} cannot be negative (got {amount})")
    return amount


def calculate_totals(
    lines: Iterable[Tuple[Decimal, int]],
    tax_rate,
    discount=ZERO,
    refund=ZERO
) -> Totals:
    """
    Compute subtotal, tax and total for ``(unit_price, quantity)`` lines.

    ``total = subtotal + tax - discount - refund``, never below zero. When
    the deductions exceed ``subtotal + tax`` they are reduced (discount
    first) so the identity above still holds for the returned values.

    Raises:
        CalculationError: If any price, quantity, rate or deduction is negative
    """
    rate = _non_negative(tax_rate, 'Tax rate')

    subtotal = ZERO
    for unit_price, quantity in lines:
        price = _non_negative(unit_price, 'Unit price')
        qty = _non_negative(quantity, 'Quantity')
        subtotal += price * qty
    subtotal = quantize(subtotal)

    tax = quantize(subtotal * rate / HUNDRED)
    gross = subtotal + tax

    applied_discount = min(quantize(_non_negative(discount, 'Discount')), gross)
    applied_refund = min(quantize(_non_negative(refund, 'Refund')), gross - applied_discount)

    return Totals(
        subtotal=subtotal,
        tax=tax,
        discount=applied_discount,
        refund=applied_refund,
        total=gross - applied_discount - applied_refund,
    )


def calculate_commission(total, commission_rate) -> Decimal:
    """
    ``total * rate / 100``, capped at ``total`` when the rate exceeds 100.

    Raises:
        CalculationError: If the total or the rate is negative
    """
    amount = quantize(_non_negative(total, 'Total'))
    rate = _non_negative(commission_rate, 'Commission rate')

    if rate == 0:
        return ZERO
    if rate > HUNDRED:
        return amount
    return quantize(amount * rate / HUNDRED)


def calculate_escrow_split(total, commission_rate=None) -> EscrowSplit:
    """Split a paid total between the vendor and the platform.

    The platform rate defaults to ``settings.PLATFORM_COMMISSION_RATE``.
    ``vendor_amount + commission == total`` exactly.
    """
    if commission_rate is None:
        commission_rate = settings.PLATFORM_COMMISSION_RATE

    amount = quantize(_non_negative(total, 'Total'))
    commission = calculate_commission(amount, commission_rate)
    return EscrowSplit(vendor_amount=amount - commission, commission=commission)


def calculate_delivery_fee(delivery_type: str, distance_km=None, fees: Optional[dict] = None) -> Decimal:
    """
    Self pickup is charged the pickup fee (normally zero). Home delivery is
    a flat fee plus a per-kilometre fee, capped at ``HOME_MAX``.
    """
    fees = fees or settings.DELIVERY_FEE

    if delivery_type == DeliveryType.SELF_PICKUP:
        return quantize(fees['SELF_PICKUP'])

    distance = _non_negative(distance_km if distance_km is not None else ZERO, 'Distance')
    fee = to_decimal(fees['HOME_BASE']) + to_decimal(fees['HOME_PER_KM']) * distance
    return quantize(min(fee, to_decimal(fees['HOME_MAX'])))
