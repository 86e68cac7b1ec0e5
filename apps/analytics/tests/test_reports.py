"""
Tests for the sales report fold.

These build ``OrderSnapshot`` values directly; no database is needed.
"""
import pytest
from datetime import date, datetime, timezone
from decimal import Decimal
from apps.analytics.exceptions import InvalidDateRangeError, InvalidTimezoneOffsetError
from apps.analytics.reports import (
    OrderSnapshot,
    ReportFilters,
    ReportWindow,
    SnapshotItem,
    build_sales_report,
)

DAY = date(2025, 3, 10)
WINDOW = ReportWindow(start=DAY, end=DAY, tz_offset_minutes=180)


def snap(id='a', total='2360.00', tax='360.00', items=None, **kwargs):
    defaults = dict(
        created_at=datetime(2025, 3, 10, 9, 0, tzinfo=timezone.utc),
        status='processing',
        payment_status='PAID',
        payment_method='MPESA',
    )
    defaults.update(kwargs)
    return OrderSnapshot(
        id=id,
        total=Decimal(total),
        tax=Decimal(tax),
        items=tuple(items or (SnapshotItem('p1', 'Panadol', 1, Decimal('2000.00')),)),
        **defaults
    )


class TestTotals:

    def test_sales_cogs_and_margin(self):
        orders = [
            snap('a'),
            snap(
                'b',
                total='5900.00',
                tax='900.00',
                items=[SnapshotItem('p2', 'Amoxil', 5, Decimal('5000.00'))],
                payment_method='BANK_TRANSFER',
            ),
        ]
        costs = {'p1': Decimal('1200.00'), 'p2': Decimal('600.00')}

        report = build_sales_report(orders, costs, WINDOW, ReportFilters())

        assert report['total_sales'] == Decimal('8260.00')
        assert report['total_tax'] == Decimal('1260.00')
        assert report['net_sales'] == Decimal('7000.00')
        assert report['total_cogs'] == Decimal('4200.00')
        assert report['gross_profit'] == Decimal('2800.00')
        assert report['gross_margin'] == Decimal('40.00')
        assert report['order_count'] == 2
        assert report['average_order_value'] == Decimal('4130.00')
        assert report['payment_methods'] == {
            'MPESA': Decimal('2360.00'),
            'BANK_TRANSFER': Decimal('5900.00'),
        }

    def test_unknown_cost_adds_nothing_to_cogs(self):
        report = build_sales_report([snap()], {}, WINDOW, ReportFilters())

        assert report['total_cogs'] == Decimal('0.00')
        assert report['gross_profit'] == report['net_sales']

    def test_empty_report(self):
        report = build_sales_report([], {}, WINDOW, ReportFilters())

        assert report['order_count'] == 0
        assert report['total_sales'] == Decimal('0.00')
        assert report['average_order_value'] == Decimal('0.00')
        assert report['gross_margin'] == Decimal('0.00')
        assert report['hourly_counts'] == [0] * 24

    def test_top_products_ranked_by_revenue(self):
        orders = [
            snap('a', items=[
                SnapshotItem('p1', 'Panadol', 1, Decimal('2000.00')),
                SnapshotItem('p2', 'Amoxil', 5, Decimal('5000.00')),
                SnapshotItem('p3', 'ORS', 10, Decimal('1000.00')),
            ]),
            snap('b', items=[SnapshotItem('p1', 'Panadol', 2, Decimal('4000.00'))]),
        ]

        report = build_sales_report(orders, {}, WINDOW, ReportFilters(), top_n=2)

        assert [p['product_id'] for p in report['top_products']] == ['p1', 'p2']
        assert report['top_products'][0]['quantity'] == 3
        assert report['top_products'][0]['revenue'] == Decimal('6000.00')

    def test_rep_commissions(self):
        orders = [
            snap('a', sales_rep_id='rep-1', sales_rep_name='Baraka', commission=Decimal('118.00')),
            snap('b', sales_rep_id='rep-1', sales_rep_name='Baraka', commission=Decimal('50.00')),
            snap('c'),
        ]

        report = build_sales_report(orders, {}, WINDOW, ReportFilters())

        assert report['rep_commissions'] == {'Baraka': Decimal('168.00')}


class TestSelection:

    def test_only_confirmed_orders_count(self):
        orders = [
            snap('paid'),
            snap('unverified', payment_status='PENDING_VERIFICATION'),
            snap('rejected', payment_status='FAILED'),
            snap('voided', voided=True),
            snap('cancelled', status='cancelled'),
        ]

        report = build_sales_report(orders, {}, WINDOW, ReportFilters())

        assert report['order_count'] == 1

    def test_timezone_moves_order_into_next_day(self):
        """22:30 UTC on the 10th is 01:30 on the 11th in EAT."""
        late = snap(created_at=datetime(2025, 3, 10, 22, 30, tzinfo=timezone.utc))
        next_day = date(2025, 3, 11)

        eat = build_sales_report(
            [late], {}, ReportWindow(next_day, next_day, tz_offset_minutes=180), ReportFilters()
        )
        utc = build_sales_report(
            [late], {}, ReportWindow(next_day, next_day, tz_offset_minutes=0), ReportFilters()
        )

        assert eat['order_count'] == 1
        assert eat['hourly_counts'][1] == 1
        assert utc['order_count'] == 0

    def test_window_is_inclusive(self):
        orders = [
            snap('start', created_at=datetime(2025, 3, 1, 0, 0, tzinfo=timezone.utc)),
            snap('end', created_at=datetime(2025, 3, 31, 20, 59, tzinfo=timezone.utc)),
            snap('after', created_at=datetime(2025, 3, 31, 21, 0, tzinfo=timezone.utc)),
        ]
        window = ReportWindow(date(2025, 3, 1), date(2025, 3, 31), tz_offset_minutes=180)

        report = build_sales_report(orders, {}, window, ReportFilters())

        assert report['order_count'] == 2

    def test_filters(self):
        orders = [
            snap('pos', channel='pos', branch_id='kariakoo'),
            snap('online', channel='online'),
            snap('bank', channel='online', payment_method='BANK_TRANSFER'),
        ]

        assert build_sales_report(orders, {}, WINDOW, ReportFilters(channel='pos'))['order_count'] == 1
        assert build_sales_report(orders, {}, WINDOW, ReportFilters(branch='Unassigned'))['order_count'] == 2
        assert build_sales_report(
            orders, {}, WINDOW, ReportFilters(channel='online', payment_method='MPESA')
        )['order_count'] == 1

    def test_branch_totals_group_unassigned(self):
        orders = [snap('a', branch_id='kariakoo'), snap('b'), snap('c')]

        report = build_sales_report(orders, {}, WINDOW, ReportFilters())

        assert report['branch_totals'] == {
            'kariakoo': Decimal('2360.00'),
            'Unassigned': Decimal('4720.00'),
        }

    def test_inputs_not_mutated(self):
        orders = [snap('a')]
        costs = {'p1': Decimal('1200.00')}

        build_sales_report(orders, costs, WINDOW, ReportFilters())

        assert orders == [snap('a')]
        assert costs == {'p1': Decimal('1200.00')}


class TestWindowValidation:

    def test_reversed_window_rejected(self):
        with pytest.raises(InvalidDateRangeError):
            build_sales_report([], {}, ReportWindow(date(2025, 3, 2), date(2025, 3, 1)), ReportFilters())

    def test_offset_out_of_range_rejected(self):
        with pytest.raises(InvalidTimezoneOffsetError):
            build_sales_report([], {}, ReportWindow(DAY, DAY, tz_offset_minutes=15 * 60), ReportFilters())
