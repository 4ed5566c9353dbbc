"""Change bus and cross-instance synchronization unit tests."""

from unittest.mock import MagicMock

from src.models.stores import AssetStatus
from src.services.change_bus import Channel, ChangeBus, ChangeEvent
from src.services.storage import InMemoryStorage
from src.services.stores_app import HotelStores


def _create_pair():
    storage = InMemoryStorage()
    bus = ChangeBus()
    first = HotelStores(storage=storage, bus=bus, s3_client=MagicMock())
    second = HotelStores(storage=storage, bus=bus, s3_client=MagicMock())
    return first, second


class TestChangeBus:

    def test_publish_reaches_other_subscribers(self):
        bus = ChangeBus()
        received = []
        bus.subscribe(Channel.INVENTORY, "b", received.append)

        delivered = bus.publish(Channel.INVENTORY, "a", "item_added", {"item_id": "1"})
        assert delivered == 1
        assert isinstance(received[0], ChangeEvent)
        assert received[0].payload == {"item_id": "1"}
        assert received[0].source == "a"

    def test_publisher_is_not_echoed(self):
        bus = ChangeBus()
        received = []
        bus.subscribe(Channel.INVENTORY, "a", received.append)
        assert bus.publish(Channel.INVENTORY, "a", "item_added") == 0
        assert received == []

    def test_channels_are_independent(self):
        bus = ChangeBus()
        received = []
        bus.subscribe(Channel.ASSETS, "b", received.append)
        bus.publish(Channel.INVENTORY, "a", "item_added")
        assert received == []
        assert len(bus.get_channel_events(Channel.INVENTORY)) == 1

    def test_failing_handler_is_recorded_and_skipped(self):
        bus = ChangeBus()
        received = []

        def broken(event: ChangeEvent) -> None:
            raise RuntimeError("reload failed")

        bus.subscribe(Channel.REQUESTS, "broken", broken)
        bus.subscribe(Channel.REQUESTS, "healthy", received.append)

        assert bus.publish(Channel.REQUESTS, "a", "request_created") == 1
        assert len(received) == 1
        [(event_id, subscriber, error)] = bus.get_failed_deliveries()
        assert subscriber == "broken"
        assert error == "reload failed"

    def test_unsubscribe(self):
        bus = ChangeBus()
        bus.subscribe(Channel.USERS, "b", lambda e: None)
        bus.subscribe(Channel.ASSETS, "b", lambda e: None)
        assert bus.unsubscribe("b", Channel.USERS) == 1
        assert bus.subscriber_count(Channel.USERS) == 0
        assert bus.unsubscribe("b") == 1
        assert bus.subscriber_count(Channel.ASSETS) == 0

    def test_event_log(self):
        bus = ChangeBus()
        bus.publish(Channel.REPORTS, "a", "report_generated")
        bus.publish(Channel.USERS, "a", "user_added")
        assert [e.action for e in bus.get_event_log()] == ["report_generated", "user_added"]


class TestCrossInstanceSync:

    def test_inventory_change_reaches_other_instance(self):
        first, second = _create_pair()
        first.inventory.record_transaction("1", "used", 10)

        assert second.inventory.get_item("1").quantity == 40
        assert second.inventory.list_transactions()[0].quantity == 10

    def test_asset_checkout_reaches_other_instance(self):
        first, second = _create_pair()
        second.assets.check_out("3", "Banquet Team")
        assert first.assets.get_asset("3").status == AssetStatus.CHECKED_OUT

    def test_closed_instance_stops_syncing(self):
        first, second = _create_pair()
        second.close()
        first.inventory.record_transaction("1", "used", 10)
        assert second.inventory.get_item("1").quantity == 50

        second.reload_all()
        assert second.inventory.get_item("1").quantity == 40
