import pytest
from decimal import Decimal
from apps.orders.models import DeliveryType, OrderStatus, VendorPaymentStatus
from apps.orders.services import (
    InvalidTransitionError,
    NotAuthorizedError,
    OrderValidationError,
    PaymentAlreadyResolvedError,
    cancel_order,
    derive_order_status,
    mark_vendor_order_delivered,
    reject_vendor_payment,
    resubmit_vendor_payment,
    verify_vendor_payment,
    visible_orders,
    vendor_orders_for,
)
from apps.payments.models import Transaction, TransactionStatus


class TestDeriveOrderStatus:

    @pytest.mark.parametrize('children, expected', [
        ([], OrderStatus.PENDING),
        ([OrderStatus.PENDING, OrderStatus.PENDING], OrderStatus.PENDING),
        ([OrderStatus.PROCESSING, OrderStatus.PENDING], OrderStatus.PROCESSING),
        ([OrderStatus.DELIVERED, OrderStatus.PENDING], OrderStatus.PROCESSING),
        ([OrderStatus.DELIVERED, OrderStatus.CANCELLED], OrderStatus.DELIVERED),
        ([OrderStatus.CANCELLED, OrderStatus.CANCELLED], OrderStatus.CANCELLED),
    ])
    def test_parent_status(self, children, expected):
        assert derive_order_status(children) == expected


@pytest.mark.django_db
class TestVerifyPayment:

    def test_verify_marks_paid_and_processing(self, pharmacy, order, pharmacy_share):
        vendor_order = verify_vendor_payment(actor=pharmacy, vendor_order_id=pharmacy_share.id)

        assert vendor_order.payment_status == VendorPaymentStatus.PAID
        assert vendor_order.status == OrderStatus.PROCESSING
        assert vendor_order.paid_at is not None
        order.refresh_from_db()
        assert order.status == OrderStatus.PROCESSING

    def test_verify_completes_payment_transaction(self, pharmacy, pharmacy_share, wholesaler_share):
        verify_vendor_payment(actor=pharmacy, vendor_order_id=pharmacy_share.id)

        assert Transaction.objects.get(vendor_order=pharmacy_share).status == TransactionStatus.COMPLETED
        assert Transaction.objects.get(vendor_order=wholesaler_share).status == \
            TransactionStatus.PENDING_VERIFICATION

    def test_verify_fires_once(self, pharmacy, pharmacy_share):
        verify_vendor_payment(actor=pharmacy, vendor_order_id=pharmacy_share.id)

        with pytest.raises(PaymentAlreadyResolvedError):
            verify_vendor_payment(actor=pharmacy, vendor_order_id=pharmacy_share.id)

        txn = Transaction.objects.get(vendor_order=pharmacy_share)
        assert txn.status == TransactionStatus.COMPLETED

    def test_cannot_verify_rejected_payment(self, pharmacy, pharmacy_share):
        reject_vendor_payment(actor=pharmacy, vendor_order_id=pharmacy_share.id, reason='Not received')

        with pytest.raises(PaymentAlreadyResolvedError):
            verify_vendor_payment(actor=pharmacy, vendor_order_id=pharmacy_share.id)

    def test_other_vendor_cannot_verify(self, wholesaler, pharmacy_share):
        with pytest.raises(NotAuthorizedError):
            verify_vendor_payment(actor=wholesaler, vendor_order_id=pharmacy_share.id)

    def test_admin_can_verify(self, admin_user, pharmacy_share):
        vendor_order = verify_vendor_payment(actor=admin_user, vendor_order_id=pharmacy_share.id)

        assert vendor_order.payment_status == VendorPaymentStatus.PAID

    def test_both_vendors_paid(self, pharmacy, wholesaler, order, pharmacy_share, wholesaler_share):
        verify_vendor_payment(actor=pharmacy, vendor_order_id=pharmacy_share.id)
        verify_vendor_payment(actor=wholesaler, vendor_order_id=wholesaler_share.id)

        order.refresh_from_db()
        assert order.status == OrderStatus.PROCESSING
        assert set(order.vendor_orders.values_list('payment_status', flat=True)) == {VendorPaymentStatus.PAID}


@pytest.mark.django_db
class TestRejectAndResubmit:

    def test_reject_requires_reason(self, pharmacy, pharmacy_share):
        with pytest.raises(OrderValidationError):
            reject_vendor_payment(actor=pharmacy, vendor_order_id=pharmacy_share.id, reason='  ')

    def test_reject(self, pharmacy, order, pharmacy_share):
        vendor_order = reject_vendor_payment(
            actor=pharmacy, vendor_order_id=pharmacy_share.id, reason='Reference not found'
        )

        assert vendor_order.payment_status == VendorPaymentStatus.FAILED
        assert vendor_order.rejection_reason == 'Reference not found'
        assert vendor_order.status == OrderStatus.PENDING
        txn = Transaction.objects.get(vendor_order=pharmacy_share)
        assert txn.status == TransactionStatus.REJECTED
        order.refresh_from_db()
        assert order.status == OrderStatus.PENDING

    def test_resubmit_after_rejection(self, customer, pharmacy, pharmacy_share):
        reject_vendor_payment(actor=pharmacy, vendor_order_id=pharmacy_share.id, reason='Wrong amount')

        vendor_order = resubmit_vendor_payment(
            actor=customer,
            vendor_order_id=pharmacy_share.id,
            provider='MPESA',
            method_type='MANUAL_MOBILE',
            reference=' nEw456xy ',
        )

        assert vendor_order.payment_status == VendorPaymentStatus.PENDING_VERIFICATION
        assert vendor_order.transaction_reference == 'NEW456XY'
        assert vendor_order.rejection_reason == ''
        statuses = sorted(Transaction.objects.filter(vendor_order=pharmacy_share).values_list('status', flat=True))
        assert statuses == [TransactionStatus.PENDING_VERIFICATION, TransactionStatus.REJECTED]

        verify_vendor_payment(actor=pharmacy, vendor_order_id=pharmacy_share.id)
        pending = Transaction.objects.filter(vendor_order=pharmacy_share, reference='NEW456XY').get()
        assert pending.status == TransactionStatus.COMPLETED

    def test_resubmit_only_after_rejection(self, customer, pharmacy_share):
        with pytest.raises(InvalidTransitionError):
            resubmit_vendor_payment(
                actor=customer,
                vendor_order_id=pharmacy_share.id,
                provider='MPESA',
                method_type='MANUAL_MOBILE',
                reference='NEW456XY',
            )

    def test_stranger_cannot_resubmit(self, stranger, pharmacy, pharmacy_share):
        reject_vendor_payment(actor=pharmacy, vendor_order_id=pharmacy_share.id, reason='Wrong amount')

        with pytest.raises(NotAuthorizedError):
            resubmit_vendor_payment(
                actor=stranger,
                vendor_order_id=pharmacy_share.id,
                provider='MPESA',
                method_type='MANUAL_MOBILE',
                reference='NEW456XY',
            )


@pytest.mark.django_db
class TestCancelOrder:

    def test_cancel_voids_order_and_fails_payments(self, customer, order):
        cancelled = cancel_order(actor=customer, order_id=order.id, reason='Changed my mind')

        assert cancelled.status == OrderStatus.CANCELLED
        assert cancelled.voided is True
        assert set(order.vendor_orders.values_list('status', flat=True)) == {OrderStatus.CANCELLED}
        assert set(Transaction.objects.filter(order=order).values_list('status', flat=True)) == {
            TransactionStatus.FAILED
        }

    def test_cancelled_order_hidden(self, customer, pharmacy, order):
        cancel_order(actor=customer, order_id=order.id)

        assert not visible_orders(customer).filter(id=order.id).exists()
        assert not vendor_orders_for(pharmacy).exists()

    def test_cancel_twice(self, customer, order):
        cancel_order(actor=customer, order_id=order.id)

        with pytest.raises(InvalidTransitionError):
            cancel_order(actor=customer, order_id=order.id)

    def test_stranger_cannot_cancel(self, stranger, order):
        with pytest.raises(NotAuthorizedError):
            cancel_order(actor=stranger, order_id=order.id)

    def test_verify_after_cancel(self, customer, pharmacy, order, pharmacy_share):
        cancel_order(actor=customer, order_id=order.id)

        with pytest.raises(InvalidTransitionError):
            verify_vendor_payment(actor=pharmacy, vendor_order_id=pharmacy_share.id)

    def test_paid_payment_is_kept(self, customer, pharmacy, order, pharmacy_share):
        verify_vendor_payment(actor=pharmacy, vendor_order_id=pharmacy_share.id)

        cancel_order(actor=customer, order_id=order.id)

        txn = Transaction.objects.get(vendor_order=pharmacy_share)
        assert txn.status == TransactionStatus.COMPLETED


@pytest.mark.django_db
class TestSelfPickupDelivery:

    def test_deliver_records_escrow_split(self, settings, pharmacy, order, pharmacy_share):
        settings.PLATFORM_COMMISSION_RATE = Decimal('5')
        verify_vendor_payment(actor=pharmacy, vendor_order_id=pharmacy_share.id)

        vendor_order = mark_vendor_order_delivered(actor=pharmacy, vendor_order_id=pharmacy_share.id)

        assert vendor_order.status == OrderStatus.DELIVERED
        assert vendor_order.platform_commission == Decimal('118.00')
        assert vendor_order.vendor_payout == Decimal('2242.00')
        order.refresh_from_db()
        assert order.status == OrderStatus.PROCESSING

    def test_all_delivered_releases_escrow(self, pharmacy, wholesaler, order, pharmacy_share, wholesaler_share):
        for vendor, share in ((pharmacy, pharmacy_share), (wholesaler, wholesaler_share)):
            verify_vendor_payment(actor=vendor, vendor_order_id=share.id)
            mark_vendor_order_delivered(actor=vendor, vendor_order_id=share.id)

        order.refresh_from_db()
        assert order.status == OrderStatus.DELIVERED
        assert order.escrow_released_at is not None

    def test_unpaid_cannot_be_delivered(self, pharmacy, pharmacy_share):
        with pytest.raises(InvalidTransitionError):
            mark_vendor_order_delivered(actor=pharmacy, vendor_order_id=pharmacy_share.id)

    def test_home_delivery_goes_through_driver(self, pharmacy, order, pharmacy_share):
        order.delivery_type = DeliveryType.HOME_DELIVERY
        order.save()
        verify_vendor_payment(actor=pharmacy, vendor_order_id=pharmacy_share.id)

        with pytest.raises(InvalidTransitionError):
            mark_vendor_order_delivered(actor=pharmacy, vendor_order_id=pharmacy_share.id)
