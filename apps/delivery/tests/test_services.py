import pytest
from decimal import Decimal
from apps.delivery.exceptions import (
    DeliveryConflictError,
    DeliveryNotAuthorizedError,
    DeliveryValidationError,
    DriverNotFoundError,
    DriverUnavailableError,
    InvalidOtpError,
)
from apps.delivery.models import DeliveryTask, DeliveryTaskStatus, DriverStatus
from apps.delivery.services import (
    assign_driver,
    complete_delivery,
    mark_picked_up,
    register_driver,
)
from apps.orders.models import DeliveryType, OrderStatus
from apps.orders.services import cancel_order, place_order
from apps.payments.services import VendorPayment


def wrong_otp(order):
    return '1000' if order.delivery_otp != '1000' else '9999'


@pytest.mark.django_db
class TestRegisterDriver:

    def test_register(self, driver, delivery_vendor):
        assert driver.owner == delivery_vendor
        assert driver.status == DriverStatus.AVAILABLE
        assert driver.plate_number == 'MC 123 ABC'

    def test_customer_cannot_register(self, delivery_customer):
        with pytest.raises(DeliveryNotAuthorizedError):
            register_driver(actor=delivery_customer, name='X', phone='0700000000')

    def test_phone_required(self, delivery_vendor):
        with pytest.raises(DeliveryValidationError):
            register_driver(actor=delivery_vendor, name='Juma', phone='  ')


@pytest.mark.django_db
class TestAssignDriver:

    def test_assign_moves_order_to_processing(self, delivery_vendor, home_order, driver):
        task = assign_driver(actor=delivery_vendor, order_id=home_order.id, driver_id=driver.id)

        assert task.status == DeliveryTaskStatus.ASSIGNED
        driver.refresh_from_db()
        home_order.refresh_from_db()
        assert driver.status == DriverStatus.BUSY
        assert home_order.status == OrderStatus.PROCESSING

    def test_busy_driver_cannot_be_assigned_again(
        self, delivery_vendor, delivery_customer, delivery_product, home_order, driver
    ):
        assign_driver(actor=delivery_vendor, order_id=home_order.id, driver_id=driver.id)
        second_order = place_order(
            actor=delivery_customer,
            cart=[{'product_id': str(delivery_product.id), 'quantity': 2}],
            payments=[VendorPayment(str(delivery_vendor.id), 'MPESA', 'MANUAL_MOBILE', 'ZXC987VBN')],
            delivery_type=DeliveryType.HOME_DELIVERY,
            delivery_address='Sinza, Dar es Salaam',
        )

        with pytest.raises(DriverUnavailableError):
            assign_driver(actor=delivery_vendor, order_id=second_order.id, driver_id=driver.id)
        assert not DeliveryTask.objects.filter(order=second_order).exists()

    def test_order_gets_one_task(self, delivery_vendor, home_order, driver):
        assign_driver(actor=delivery_vendor, order_id=home_order.id, driver_id=driver.id)
        spare = register_driver(actor=delivery_vendor, name='Neema', phone='0788111222')

        with pytest.raises(DeliveryConflictError):
            assign_driver(actor=delivery_vendor, order_id=home_order.id, driver_id=spare.id)

        spare.refresh_from_db()
        assert spare.status == DriverStatus.AVAILABLE
        assert DeliveryTask.objects.filter(order=home_order).count() == 1

    def test_other_vendors_driver_not_found(self, other_vendor, home_order, driver):
        with pytest.raises(DriverNotFoundError):
            assign_driver(actor=other_vendor, order_id=home_order.id, driver_id=driver.id)

    def test_self_pickup_order_rejected(
        self, delivery_vendor, delivery_customer, delivery_product, driver
    ):
        order = place_order(
            actor=delivery_customer,
            cart=[{'product_id': str(delivery_product.id), 'quantity': 1}],
            payments=[VendorPayment(str(delivery_vendor.id), 'MPESA', 'MANUAL_MOBILE', 'PICKUP01')],
        )
        with pytest.raises(DeliveryValidationError):
            assign_driver(actor=delivery_vendor, order_id=order.id, driver_id=driver.id)


@pytest.mark.django_db
class TestCompleteDelivery:

    def _picked_up(self, vendor, order, driver):
        task = assign_driver(actor=vendor, order_id=order.id, driver_id=driver.id)
        return mark_picked_up(actor=vendor, task_id=task.id)

    def test_complete_with_otp(self, delivery_vendor, paid_home_order, driver):
        task = self._picked_up(delivery_vendor, paid_home_order, driver)

        task = complete_delivery(actor=delivery_vendor, task_id=task.id, otp=paid_home_order.delivery_otp)

        assert task.status == DeliveryTaskStatus.DELIVERED
        assert task.delivered_at is not None
        driver.refresh_from_db()
        assert driver.status == DriverStatus.AVAILABLE

        paid_home_order.refresh_from_db()
        assert paid_home_order.status == OrderStatus.DELIVERED
        assert paid_home_order.escrow_released_at is not None

        vendor_order = paid_home_order.vendor_orders.get()
        assert vendor_order.status == OrderStatus.DELIVERED
        assert vendor_order.vendor_payout + vendor_order.platform_commission == vendor_order.total
        assert vendor_order.platform_commission == Decimal('118.00')

    def test_wrong_otp_changes_nothing(self, delivery_vendor, paid_home_order, driver):
        task = self._picked_up(delivery_vendor, paid_home_order, driver)

        with pytest.raises(InvalidOtpError):
            complete_delivery(actor=delivery_vendor, task_id=task.id, otp=wrong_otp(paid_home_order))

        task.refresh_from_db()
        driver.refresh_from_db()
        paid_home_order.refresh_from_db()
        assert task.status == DeliveryTaskStatus.PICKED_UP
        assert driver.status == DriverStatus.BUSY
        assert paid_home_order.status == OrderStatus.PROCESSING
        assert paid_home_order.vendor_orders.get().status == OrderStatus.PROCESSING

    def test_unpaid_order_cannot_be_completed(self, delivery_vendor, home_order, driver):
        task = self._picked_up(delivery_vendor, home_order, driver)

        with pytest.raises(DeliveryConflictError):
            complete_delivery(actor=delivery_vendor, task_id=task.id, otp=home_order.delivery_otp)

        task.refresh_from_db()
        assert task.status == DeliveryTaskStatus.PICKED_UP

    def test_must_pick_up_first(self, delivery_vendor, paid_home_order, driver):
        task = assign_driver(actor=delivery_vendor, order_id=paid_home_order.id, driver_id=driver.id)

        with pytest.raises(DeliveryConflictError):
            complete_delivery(actor=delivery_vendor, task_id=task.id, otp=paid_home_order.delivery_otp)

    def test_other_vendor_cannot_complete(self, delivery_vendor, other_vendor, paid_home_order, driver):
        task = self._picked_up(delivery_vendor, paid_home_order, driver)

        with pytest.raises(DeliveryNotAuthorizedError):
            complete_delivery(actor=other_vendor, task_id=task.id, otp=paid_home_order.delivery_otp)


@pytest.mark.django_db
class TestCancelledDelivery:

    def test_cancel_frees_driver_and_closes_task(self, delivery_vendor, delivery_customer,
                                                 paid_home_order, driver):
        task = assign_driver(actor=delivery_vendor, order_id=paid_home_order.id, driver_id=driver.id)

        cancel_order(actor=delivery_customer, order_id=paid_home_order.id)

        task.refresh_from_db()
        driver.refresh_from_db()
        assert task.status == DeliveryTaskStatus.CANCELLED
        assert driver.status == DriverStatus.AVAILABLE

    def test_freed_driver_can_take_next_order(self, delivery_vendor, delivery_customer,
                                              delivery_product, paid_home_order, driver):
        assign_driver(actor=delivery_vendor, order_id=paid_home_order.id, driver_id=driver.id)
        cancel_order(actor=delivery_customer, order_id=paid_home_order.id)
        next_order = place_order(
            actor=delivery_customer,
            cart=[{'product_id': str(delivery_product.id), 'quantity': 2}],
            payments=[VendorPayment(str(delivery_vendor.id), 'MPESA', 'MANUAL_MOBILE', 'ASD456FGH')],
            delivery_type=DeliveryType.HOME_DELIVERY,
            delivery_address='Plot 12, Mikocheni, Dar es Salaam',
        )

        task = assign_driver(actor=delivery_vendor, order_id=next_order.id, driver_id=driver.id)

        assert task.driver_id == driver.id

    def test_cancelled_order_cannot_be_picked_up(self, delivery_vendor, delivery_customer,
                                                 paid_home_order, driver):
        task = assign_driver(actor=delivery_vendor, order_id=paid_home_order.id, driver_id=driver.id)
        cancel_order(actor=delivery_customer, order_id=paid_home_order.id)

        with pytest.raises(DeliveryConflictError):
            mark_picked_up(actor=delivery_vendor, task_id=task.id)

    def test_cancelled_order_cannot_be_completed(self, delivery_vendor, delivery_customer,
                                                 paid_home_order, driver):
        task = assign_driver(actor=delivery_vendor, order_id=paid_home_order.id, driver_id=driver.id)
        mark_picked_up(actor=delivery_vendor, task_id=task.id)
        cancel_order(actor=delivery_customer, order_id=paid_home_order.id)

        with pytest.raises(DeliveryConflictError):
            complete_delivery(actor=delivery_vendor, task_id=task.id, otp=paid_home_order.delivery_otp)

        paid_home_order.refresh_from_db()
        assert paid_home_order.status == OrderStatus.CANCELLED
        assert paid_home_order.escrow_released_at is None
        assert paid_home_order.vendor_orders.get().status == OrderStatus.CANCELLED
