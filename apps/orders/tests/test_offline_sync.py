import pytest
from django.core.management import call_command
from apps.orders.models import Order, QueuedOrderStatus, VendorOrder
from apps.orders.services import (
    OrderValidationError,
    clear_synced,
    pending_orders,
    queue_order,
    replay_queued_order,
    sync_pending_orders,
)
from apps.payments.services import IncompletePaymentError


@pytest.fixture
def offline_payload(pharmacy, panadol):
    return {
        'cart': [{'product_id': str(panadol.id), 'quantity': 2}],
        'payments': [{
            'vendor_id': str(pharmacy.id),
            'provider': 'MPESA',
            'method_type': 'MANUAL_MOBILE',
            'reference': 'OFF123LN',
        }],
        'customer_name': 'Walk-in',
        'customer_phone': '0716000777',
    }


@pytest.mark.django_db
class TestQueueOrder:

    def test_queue_is_idempotent(self, pharmacy, offline_payload):
        first = queue_order(actor=pharmacy, temp_id='pos-1', payload=offline_payload)
        second = queue_order(actor=pharmacy, temp_id='pos-1', payload={'cart': []})

        assert first.id == second.id
        assert second.payload == offline_payload
        assert first.status == QueuedOrderStatus.QUEUED

    def test_temp_id_required(self, pharmacy, offline_payload):
        with pytest.raises(OrderValidationError):
            queue_order(actor=pharmacy, temp_id='  ', payload=offline_payload)


@pytest.mark.django_db
class TestReplay:

    def test_replay_places_order(self, pharmacy, offline_payload):
        queued = queue_order(actor=pharmacy, temp_id='pos-1', payload=offline_payload)

        order = replay_queued_order(queued)

        assert order.client_reference == 'pos-1'
        assert order.channel == 'pos'
        assert order.placed_by == pharmacy
        queued.refresh_from_db()
        assert queued.status == QueuedOrderStatus.SYNCED
        assert queued.order == order
        assert queued.attempts == 1
        assert queued.synced_at is not None

    def test_replaying_twice_creates_one_order(self, pharmacy, offline_payload):
        queued = queue_order(actor=pharmacy, temp_id='pos-1', payload=offline_payload)

        first = replay_queued_order(queued)
        second = replay_queued_order(queued)

        assert first.id == second.id
        assert Order.objects.count() == 1
        assert VendorOrder.objects.count() == 1

    def test_failure_is_recorded_and_retried(self, pharmacy, offline_payload):
        broken = dict(offline_payload, payments=[])
        queued = queue_order(actor=pharmacy, temp_id='pos-2', payload=broken)

        with pytest.raises(IncompletePaymentError):
            replay_queued_order(queued)

        queued.refresh_from_db()
        assert queued.status == QueuedOrderStatus.FAILED
        assert 'reference code' in queued.last_error
        assert list(pending_orders()) == [queued]

        queued.payload = offline_payload
        queued.save()
        replay_queued_order(queued)

        queued.refresh_from_db()
        assert queued.status == QueuedOrderStatus.SYNCED
        assert queued.attempts == 2
        assert queued.last_error == ''


@pytest.mark.django_db
class TestSyncPending:

    def test_one_failure_does_not_stop_the_rest(self, pharmacy, offline_payload):
        queue_order(actor=pharmacy, temp_id='pos-1', payload=offline_payload)
        queue_order(actor=pharmacy, temp_id='pos-2', payload=dict(offline_payload, cart=[]))
        queue_order(actor=pharmacy, temp_id='pos-3', payload=offline_payload)

        result = sync_pending_orders()

        assert result.success == 2
        assert result.failed == 1
        assert result.errors[0].startswith('pos-2:')
        assert Order.objects.count() == 2

    @pytest.mark.parametrize('broken', [
        {'payments': [{'provider': 'MPESA'}]},
        {'payments': ['MPESA']},
        {'cart': ['panadol']},
        {'cart': 'panadol x2'},
        {'delivery_type': 'home_delivery', 'delivery_address': 'Sinza', 'distance_km': 'far'},
    ])
    def test_malformed_entry_is_failed_not_blocking(self, pharmacy, offline_payload, broken):
        bad = queue_order(actor=pharmacy, temp_id='a-bad', payload=dict(offline_payload, **broken))
        good = queue_order(actor=pharmacy, temp_id='b-good', payload=offline_payload)

        result = sync_pending_orders()

        assert result.success == 1
        assert result.failed == 1
        bad.refresh_from_db()
        assert bad.status == QueuedOrderStatus.FAILED
        assert bad.last_error
        good.refresh_from_db()
        assert good.status == QueuedOrderStatus.SYNCED
        assert Order.objects.filter(client_reference='b-good').count() == 1

    def test_second_sync_is_a_no_op(self, pharmacy, offline_payload):
        queue_order(actor=pharmacy, temp_id='pos-1', payload=offline_payload)
        sync_pending_orders()

        result = sync_pending_orders()

        assert result.success == 0
        assert Order.objects.count() == 1

    def test_clear_synced(self, pharmacy, offline_payload):
        queue_order(actor=pharmacy, temp_id='pos-1', payload=offline_payload)
        sync_pending_orders()

        assert clear_synced() == 1
        assert Order.objects.count() == 1


@pytest.mark.django_db
class TestSyncOfflineOrdersCommand:

    def test_dry_run_places_nothing(self, pharmacy, offline_payload):
        queue_order(actor=pharmacy, temp_id='pos-1', payload=offline_payload)

        call_command('sync_offline_orders', '--dry-run')

        assert Order.objects.count() == 0
        assert pending_orders().count() == 1

    def test_replays_and_clears(self, pharmacy, offline_payload):
        queue_order(actor=pharmacy, temp_id='pos-1', payload=offline_payload)

        call_command('sync_offline_orders', '--clear')

        assert Order.objects.filter(client_reference='pos-1').count() == 1
        assert pending_orders().count() == 0
        call_command('sync_offline_orders')
        assert Order.objects.count() == 1
