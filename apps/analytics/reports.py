"""
Sales Reports
=============

Rolls confirmed vendor orders up into a time-windowed sales report:
sales, tax, COGS, gross profit and margin, plus breakdowns by payment
method, status, hour of day, branch, sales rep and product.

The report itself is a pure fold over ``OrderSnapshot`` values, so it can
be built from the database (``load_order_snapshots``) or from any other
list of snapshots, e.g. in tests.

Example:
    Today's report for a vendor, in East Africa Time::

        from apps.analytics.reports import (
            ReportFilters, ReportWindow, build_sales_report,
            load_cost_index, load_order_snapshots, snapshot_product_ids,
        )

        window = ReportWindow(start=today, end=today, tz_offset_minutes=180)
        snapshots = load_order_snapshots(vendor, window)
        costs = load_cost_index(snapshot_product_ids(snapshots))
        report = build_sales_report(snapshots, costs, window, ReportFilters())
        print(report['gross_profit'], report['gross_margin'])

Note:
    Only vendor orders whose payment was verified (``PAID``) count. Voided
    orders and cancelled vendor orders never appear. Nothing is written.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone as dt_timezone
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

from django.db.models import Q

from apps.accounts.models import User, UserRole
from apps.catalog.models import Product
from apps.orders.models import OrderStatus, VendorOrder, VendorPaymentStatus
from apps.orders.services.calculator import ZERO, quantize

from .exceptions import InvalidDateRangeError, InvalidTimezoneOffsetError

UNASSIGNED_BRANCH = 'Unassigned'

# Real-world offsets run from UTC-12:00 to UTC+14:00
MIN_TZ_OFFSET = -12 * 60
MAX_TZ_OFFSET = 14 * 60


@dataclass(frozen=True)
class SnapshotItem:
    product_id: str
    name: str
    quantity: int
    line_total: Decimal


@dataclass(frozen=True)
class OrderSnapshot:
    """One vendor order as the report sees it, with its parent's context."""

    id: str
    created_at: datetime
    status: str
    payment_status: str
    payment_method: str
    total: Decimal
    tax: Decimal = ZERO
    discount: Decimal = ZERO
    refund: Decimal = ZERO
    commission: Decimal = ZERO
    voided: bool = False
    channel: str = ''
    branch_id: str = ''
    sales_rep_id: Optional[str] = None
    sales_rep_name: str = ''
    items: Tuple[SnapshotItem, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class ReportWindow:
    """Inclusive range of local dates; local time is UTC plus ``tz_offset_minutes``."""

    start: date
    end: date
    tz_offset_minutes: int = 0

    def validate(self) -> None:
        if self.start > self.end:
            raise InvalidDateRangeError("Start date must be on or before end date")
        if not MIN_TZ_OFFSET <= self.tz_offset_minutes <= MAX_TZ_OFFSET:
            raise InvalidTimezoneOffsetError(
                f"Timezone offset must be between {MIN_TZ_OFFSET} and {MAX_TZ_OFFSET} minutes"
            )

    def local_time(self, moment: datetime) -> datetime:
        """Wall-clock time of ``moment`` in the report's timezone (naive)."""
        if moment.tzinfo is not None:
            moment = moment.astimezone(dt_timezone.utc).replace(tzinfo=None)
        return moment + timedelta(minutes=self.tz_offset_minutes)

    def contains(self, moment: datetime) -> bool:
        return self.start <= self.local_time(moment).date() <= self.end

    def utc_bounds(self) -> Tuple[datetime, datetime]:
        """Aware UTC ``[since, until)`` covering every instant in the window."""
        since = datetime.combine(self.start, datetime.min.time(), tzinfo=dt_timezone.utc)
        until = datetime.combine(self.end + timedelta(days=1), datetime.min.time(), tzinfo=dt_timezone.utc)
        offset = timedelta(minutes=self.tz_offset_minutes)
        return since - offset, until - offset


@dataclass(frozen=True)
class ReportFilters:
    """Categorical filters; ``None`` means all."""

    status: Optional[str] = None
    payment_method: Optional[str] = None
    sales_rep: Optional[str] = None
    branch: Optional[str] = None
    channel: Optional[str] = None

    def matches(self, snapshot: OrderSnapshot) -> bool:
        if self.status is not None and snapshot.status != self.status:
            return False
        if self.payment_method is not None and snapshot.payment_method != self.payment_method:
            return False
        if self.sales_rep is not None and snapshot.sales_rep_id != str(self.sales_rep):
            return False
        if self.branch is not None and (snapshot.branch_id or UNASSIGNED_BRANCH) != self.branch:
            return False
        if self.channel is not None and snapshot.channel != self.channel:
            return False
        return True


def is_confirmed(snapshot: OrderSnapshot) -> bool:
    return (
        snapshot.payment_status == VendorPaymentStatus.PAID
        and not snapshot.voided
        and snapshot.status != OrderStatus.CANCELLED
    )


def select_snapshots(
    orders: Iterable[OrderSnapshot],
    window: ReportWindow,
    filters: ReportFilters
) -> List[OrderSnapshot]:
    """Confirmed snapshots inside the window that pass the filters."""
    return [
        order for order in orders
        if is_confirmed(order) and window.contains(order.created_at) and filters.matches(order)
    ]


def snapshot_product_ids(orders: Iterable[OrderSnapshot]) -> set:
    return {item.product_id for order in orders for item in order.items if item.product_id}


def _percent(part: Decimal, whole: Decimal) -> Decimal:
    if not whole:
        return ZERO
    return quantize(part / whole * 100)


def build_sales_report(
    orders: Iterable[OrderSnapshot],
    cost_index: Dict[str, Decimal],
    window: ReportWindow,
    filters: ReportFilters,
    top_n: int = 10
) -> dict:
    """
    Aggregate confirmed orders into a sales report.

    Args:
        orders: Snapshots to consider; unconfirmed ones are skipped
        cost_index: Product id -> buying price. Products without a known
            cost contribute nothing to COGS.
        window: Local date range and timezone offset
        filters: Status, payment method, sales rep, branch and channel
        top_n: How many products to rank

    Returns:
        dict: A dictionary containing:
            - total_sales, total_tax, net_sales (total - tax)
            - total_discounts, total_refunds, total_cogs
            - gross_profit (net - COGS), gross_margin (% of net)
            - order_count, average_order_value
            - payment_methods: method -> sales
            - status_counts: status -> number of orders
            - hourly_counts: 24 order counts by local hour
            - branch_totals: branch -> sales
            - rep_commissions: rep name -> commission
            - top_products: best sellers by revenue

    Raises:
        InvalidDateRangeError: If the window starts after it ends
        InvalidTimezoneOffsetError: If the offset is outside UTC-12..UTC+14
    """
    window.validate()
    selected = select_snapshots(orders, window, filters)

    total_sales = total_tax = total_discounts = total_refunds = total_cogs = ZERO
    payment_methods = defaultdict(lambda: ZERO)
    status_counts = defaultdict(int)
    hourly_counts = [0] * 24
    branch_totals = defaultdict(lambda: ZERO)
    rep_commissions = defaultdict(lambda: ZERO)
    products = {}

    for order in selected:
        total_sales += order.total
        total_tax += order.tax
        total_discounts += order.discount
        total_refunds += order.refund

        payment_methods[order.payment_method] += order.total
        status_counts[order.status] += 1
        hourly_counts[window.local_time(order.created_at).hour] += 1
        branch_totals[order.branch_id or UNASSIGNED_BRANCH] += order.total
        if order.sales_rep_id and order.commission:
            rep_commissions[order.sales_rep_name or order.sales_rep_id] += order.commission

        for item in order.items:
            cost = cost_index.get(item.product_id)
            if cost is not None:
                total_cogs += cost * item.quantity

            entry = products.setdefault(
                item.product_id or item.name,
                {'product_id': item.product_id, 'name': item.name, 'quantity': 0, 'revenue': ZERO},
            )
            entry['quantity'] += item.quantity
            entry['revenue'] += item.line_total

    order_count = len(selected)
    net_sales = total_sales - total_tax
    total_cogs = quantize(total_cogs)
    gross_profit = net_sales - total_cogs

    top_products = sorted(products.values(), key=lambda p: (-p['revenue'], p['name']))[:top_n]

    return {
        'period_start': window.start,
        'period_end': window.end,
        'tz_offset_minutes': window.tz_offset_minutes,
        'total_sales': quantize(total_sales),
        'net_sales': quantize(net_sales),
        'total_tax': quantize(total_tax),
        'total_discounts': quantize(total_discounts),
        'total_refunds': quantize(total_refunds),
        'total_cogs': total_cogs,
        'gross_profit': quantize(gross_profit),
        'gross_margin': _percent(gross_profit, net_sales),
        'order_count': order_count,
        'average_order_value': quantize(total_sales / order_count) if order_count else ZERO,
        'payment_methods': {k: quantize(v) for k, v in payment_methods.items()},
        'status_counts': dict(status_counts),
        'hourly_counts': hourly_counts,
        'branch_totals': {k: quantize(v) for k, v in branch_totals.items()},
        'rep_commissions': {k: quantize(v) for k, v in rep_commissions.items()},
        'top_products': [
            {**p, 'revenue': quantize(p['revenue'])} for p in top_products
        ],
    }


# --- Loading from the database --------------------------------------------------

def _snapshot(vendor_order: VendorOrder) -> OrderSnapshot:
    order = vendor_order.order
    rep = order.sales_rep
    return OrderSnapshot(
        id=str(vendor_order.id),
        created_at=order.created_at,
        status=vendor_order.status,
        payment_status=vendor_order.payment_status,
        payment_method=vendor_order.payment_provider,
        total=vendor_order.total,
        tax=vendor_order.tax,
        discount=vendor_order.discount,
        refund=vendor_order.refund,
        commission=vendor_order.commission,
        voided=order.voided,
        channel=order.channel,
        branch_id=order.branch_id,
        sales_rep_id=str(rep.id) if rep else None,
        sales_rep_name=rep.get_display_name() if rep else '',
        items=tuple(
            SnapshotItem(
                product_id=str(item.product_id) if item.product_id else '',
                name=item.product_name,
                quantity=item.quantity,
                line_total=item.line_total,
            )
            for item in vendor_order.items.all()
        ),
    )


def load_order_snapshots(actor: User, window: Optional[ReportWindow] = None) -> List[OrderSnapshot]:
    """
    Vendor orders the actor may report on, as snapshots.

    Admins see every vendor order, sellers their own, sales reps the orders
    they placed. Anyone else gets nothing. With a window, rows far outside
    it are skipped in the query.
    """
    queryset = (
        VendorOrder.objects
        .filter(order__voided=False, payment_status=VendorPaymentStatus.PAID)
        .exclude(status=OrderStatus.CANCELLED)
        .select_related('order', 'order__sales_rep')
        .prefetch_related('items')
    )
    if actor.is_platform_admin:
        pass
    elif actor.is_seller:
        queryset = queryset.filter(vendor=actor)
    elif actor.role == UserRole.SALES_REP:
        queryset = queryset.filter(Q(order__sales_rep=actor) | Q(order__placed_by=actor))
    else:
        return []

    if window is not None:
        since, until = window.utc_bounds()
        queryset = queryset.filter(order__created_at__gte=since, order__created_at__lt=until)

    return [_snapshot(vendor_order) for vendor_order in queryset]


def load_cost_index(product_ids: Iterable) -> Dict[str, Decimal]:
    """Product id -> buying price, for products with a known cost."""
    return {
        str(product_id): buying_price
        for product_id, buying_price in Product.objects.filter(
            id__in=list(product_ids),
            buying_price__isnull=False,
        ).values_list('id', 'buying_price')
    }
