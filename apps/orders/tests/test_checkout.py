import pytest
from decimal import Decimal
from unittest import mock
from django.db import DatabaseError
from apps.orders.models import DeliveryType, Order, OrderStatus, VendorOrder, VendorPaymentStatus
from apps.orders.services import (
    EmptyCartError,
    MissingCustomerDetailsError,
    OrderValidationError,
    PartialCheckoutError,
    ProductNotFoundError,
    place_order,
)
from apps.orders.services import checkout
from apps.payments.models import Transaction, TransactionKind, TransactionStatus
from apps.payments.services import IncompletePaymentError, ProviderNotOfferedError, VendorPayment


@pytest.fixture
def flat_home_fee(settings):
    settings.DELIVERY_FEE = {
        'SELF_PICKUP': Decimal('0'),
        'HOME_BASE': Decimal('2000'),
        'HOME_PER_KM': Decimal('0'),
        'HOME_MAX': Decimal('15000'),
    }


@pytest.mark.django_db
class TestPlaceOrder:

    def test_two_vendor_home_delivery(self, customer, pharmacy, wholesaler, two_vendor_cart,
                                      two_vendor_payments, flat_home_fee):
        order = place_order(
            actor=customer,
            cart=two_vendor_cart,
            payments=two_vendor_payments,
            delivery_type=DeliveryType.HOME_DELIVERY,
            delivery_address='Mikocheni B, Dar es Salaam',
        )

        assert order.status == OrderStatus.PENDING
        assert order.delivery_fee == Decimal('2000.00')
        assert order.total == Decimal('10260.00')
        assert order.customer == customer
        assert order.customer_phone == '0712000111'
        assert len(order.delivery_otp) == 4

        shares = {vo.vendor_id: vo for vo in order.vendor_orders.all()}
        assert shares[pharmacy.id].total == Decimal('2360.00')
        assert shares[wholesaler.id].total == Decimal('5900.00')
        assert all(vo.payment_status == VendorPaymentStatus.PENDING_VERIFICATION for vo in shares.values())

    def test_references_are_normalized(self, order, pharmacy_share):
        assert pharmacy_share.transaction_reference == 'QWE123RT'

    def test_payment_attempt_recorded_per_vendor(self, order, customer):
        txns = Transaction.objects.filter(order=order)

        assert txns.count() == 2
        assert all(t.kind == TransactionKind.PAYMENT for t in txns)
        assert all(t.status == TransactionStatus.PENDING_VERIFICATION for t in txns)
        assert all(t.user == customer for t in txns)
        assert sorted(t.amount for t in txns) == [Decimal('2360.00'), Decimal('5900.00')]

    def test_items_are_snapshotted(self, order, panadol, pharmacy_share):
        panadol.price = Decimal('9999.00')
        panadol.save()

        item = pharmacy_share.items.get()
        assert item.product_name == 'Panadol'
        assert item.unit_price == Decimal('2000.00')

    def test_incomplete_payment_names_vendor(self, customer, pharmacy, wholesaler, two_vendor_cart):
        payments = [VendorPayment(str(pharmacy.id), 'MPESA', 'MANUAL_MOBILE', 'QWE123RT')]

        with pytest.raises(IncompletePaymentError) as exc:
            place_order(actor=customer, cart=two_vendor_cart, payments=payments)

        assert exc.value.vendor_ids == [str(wholesaler.id)]
        assert not Order.objects.exists()

    def test_short_reference_blocks_checkout(self, customer, pharmacy, two_vendor_cart, two_vendor_payments):
        payments = [VendorPayment(str(pharmacy.id), 'MPESA', 'MANUAL_MOBILE', 'AB1'), two_vendor_payments[1]]

        with pytest.raises(IncompletePaymentError) as exc:
            place_order(actor=customer, cart=two_vendor_cart, payments=payments)

        assert exc.value.vendor_ids == [str(pharmacy.id)]

    def test_method_must_fit_provider(self, customer, pharmacy, panadol):
        with pytest.raises(IncompletePaymentError):
            place_order(
                actor=customer,
                cart=[{'product_id': str(panadol.id), 'quantity': 1}],
                payments=[VendorPayment(str(pharmacy.id), 'MPESA', 'MANUAL_BANK', 'QWE123RT')],
            )

    def test_provider_not_offered(self, customer, pharmacy, panadol):
        with pytest.raises(ProviderNotOfferedError):
            place_order(
                actor=customer,
                cart=[{'product_id': str(panadol.id), 'quantity': 1}],
                payments=[VendorPayment(str(pharmacy.id), 'TIGO_PESA', 'MANUAL_MOBILE', 'QWE123RT')],
            )
        assert not Order.objects.exists()

    def test_empty_cart(self, customer):
        with pytest.raises(EmptyCartError):
            place_order(actor=customer, cart=[], payments=[])

    def test_inactive_product(self, customer, pharmacy, panadol):
        panadol.is_active = False
        panadol.save()

        with pytest.raises(ProductNotFoundError):
            place_order(
                actor=customer,
                cart=[{'product_id': str(panadol.id), 'quantity': 1}],
                payments=[VendorPayment(str(pharmacy.id), 'MPESA', 'MANUAL_MOBILE', 'QWE123RT')],
            )

    def test_home_delivery_needs_address(self, customer, two_vendor_cart, two_vendor_payments):
        with pytest.raises(MissingCustomerDetailsError):
            place_order(
                actor=customer,
                cart=two_vendor_cart,
                payments=two_vendor_payments,
                delivery_type=DeliveryType.HOME_DELIVERY,
            )

    def test_sales_rep_needs_customer_details(self, sales_rep, two_vendor_cart, two_vendor_payments):
        with pytest.raises(MissingCustomerDetailsError):
            place_order(actor=sales_rep, cart=two_vendor_cart, payments=two_vendor_payments)

    def test_sales_rep_commission_per_vendor(self, sales_rep, pharmacy, wholesaler,
                                             two_vendor_cart, two_vendor_payments):
        order = place_order(
            actor=sales_rep,
            cart=two_vendor_cart,
            payments=two_vendor_payments,
            customer_name='Duka la Mama Neema',
            customer_phone='0715000555',
            channel='field',
        )

        assert order.sales_rep == sales_rep
        assert order.customer is None
        assert order.commission == Decimal('413.00')
        assert order.vendor_orders.get(vendor=pharmacy).commission == Decimal('118.00')
        assert order.vendor_orders.get(vendor=wholesaler).commission == Decimal('295.00')

    def test_customer_checkout_has_no_rep_commission(self, order):
        assert order.sales_rep is None
        assert order.commission == Decimal('0.00')


@pytest.mark.django_db
class TestClientReference:

    def test_same_reference_returns_same_order(self, customer, two_vendor_cart, two_vendor_payments):
        first = place_order(
            actor=customer, cart=two_vendor_cart, payments=two_vendor_payments,
            client_reference='tmp-001',
        )
        second = place_order(
            actor=customer, cart=two_vendor_cart, payments=two_vendor_payments,
            client_reference='tmp-001',
        )

        assert first.id == second.id
        assert Order.objects.count() == 1
        assert VendorOrder.objects.count() == 2

    def test_reference_owned_by_someone_else(self, customer, stranger, two_vendor_cart, two_vendor_payments):
        place_order(
            actor=customer, cart=two_vendor_cart, payments=two_vendor_payments,
            client_reference='tmp-001',
        )

        with pytest.raises(OrderValidationError):
            place_order(
                actor=stranger, cart=two_vendor_cart, payments=two_vendor_payments,
                client_reference='tmp-001',
            )


@pytest.mark.django_db
class TestPartialCheckout:

    def failing_for(self, vendor):
        original = checkout._create_vendor_order

        def create(**kwargs):
            if kwargs['vendor'] == vendor:
                raise DatabaseError('disk I/O error')
            return original(**kwargs)

        return mock.patch.object(checkout, '_create_vendor_order', side_effect=create)

    def test_failure_reports_what_was_saved(self, customer, pharmacy, wholesaler,
                                            two_vendor_cart, two_vendor_payments):
        with self.failing_for(wholesaler):
            with pytest.raises(PartialCheckoutError) as exc:
                place_order(
                    actor=customer, cart=two_vendor_cart, payments=two_vendor_payments,
                    client_reference='tmp-002',
                )

        saved = VendorOrder.objects.get()
        assert saved.vendor == pharmacy
        assert exc.value.failed_vendor_id == wholesaler.id
        assert exc.value.created_vendor_order_ids == [saved.id]
        assert exc.value.order_id == saved.order_id

    def test_retry_creates_only_missing_vendor_order(self, customer, pharmacy, wholesaler,
                                                     two_vendor_cart, two_vendor_payments):
        with self.failing_for(wholesaler):
            with pytest.raises(PartialCheckoutError):
                place_order(
                    actor=customer, cart=two_vendor_cart, payments=two_vendor_payments,
                    client_reference='tmp-003',
                )

        order = place_order(
            actor=customer, cart=two_vendor_cart, payments=two_vendor_payments,
            client_reference='tmp-003',
        )

        assert Order.objects.count() == 1
        assert order.vendor_orders.filter(vendor=pharmacy).count() == 1
        assert order.vendor_orders.filter(vendor=wholesaler).count() == 1
        assert Transaction.objects.filter(order=order).count() == 2

    def test_retry_after_price_change_keeps_header_in_step(self, customer, wholesaler, gloves,
                                                         two_vendor_cart, two_vendor_payments):
        with self.failing_for(wholesaler):
            with pytest.raises(PartialCheckoutError):
                place_order(
                    actor=customer, cart=two_vendor_cart, payments=two_vendor_payments,
                    client_reference='tmp-004',
                )
        gloves.price = Decimal('3000.00')
        gloves.save()

        order = place_order(
            actor=customer, cart=two_vendor_cart, payments=two_vendor_payments,
            client_reference='tmp-004',
        )

        order.refresh_from_db()
        shares = list(order.vendor_orders.all())
        assert order.total == sum(vo.total for vo in shares) + order.delivery_fee
        assert order.total == Decimal('20060.00')
        assert order.subtotal == sum(vo.subtotal for vo in shares)
        assert order.tax == sum(vo.tax for vo in shares)
