"""
Unit tests for EventBus class.
"""

import pytest
from socketsmith.core.event_bus import EventBus
from socketsmith.core.storage import DocumentStorage
from socketsmith.core.models import Event


@pytest.fixture
def storage():
    """Create an in-memory storage for testing."""
    storage = DocumentStorage(':memory:')
    storage.initialize()
    yield storage
    storage.close()


@pytest.fixture
def event_bus(storage):
    """Create an event bus for testing."""
    return EventBus(storage)


class TestEventBus:
    """Test EventBus pub/sub functionality."""

    def test_subscribe(self, event_bus):
        def callback(event: Event):
            pass

        event_bus.subscribe('socket.gem_added', callback)

        assert event_bus.get_listener_count('socket.gem_added') == 1

    def test_subscribe_duplicate_callback(self, event_bus):
        """Test that subscribing same callback twice doesn't duplicate."""
        def callback(event: Event):
            pass

        event_bus.subscribe('socket.gem_added', callback)
        event_bus.subscribe('socket.gem_added', callback)

        assert event_bus.get_listener_count('socket.gem_added') == 1

    def test_unsubscribe(self, event_bus):
        def callback(event: Event):
            pass

        event_bus.subscribe('socket.gem_added', callback)
        event_bus.unsubscribe('socket.gem_added', callback)
        event_bus.unsubscribe('socket.gem_added', callback)

        assert event_bus.get_listener_count('socket.gem_added') == 0

    def test_publish_notifies_matching_listeners(self, event_bus):
        received = []
        event_bus.subscribe('socket.gem_added', received.append)
        event_bus.subscribe('socket.gem_removed', lambda e: received.append('wrong'))

        event = Event.create('socket.gem_added', {'slotIndex': 0})
        event_bus.publish(event)

        assert received == [event]

    def test_publish_logs_to_storage(self, event_bus, storage):
        event_bus.publish(Event.create('socket.slot_added', {'slotIndex': 0},
                                       document_uuid='Item.sword'))

        events = storage.get_events(document_uuid='Item.sword')
        assert len(events) == 1
        assert events[0].event_type == 'socket.slot_added'

    def test_failing_listener_does_not_stop_others(self, event_bus):
        received = []

        def broken(event: Event):
            raise RuntimeError("listener failure")

        event_bus.subscribe('socket.gem_added', broken)
        event_bus.subscribe('socket.gem_added', received.append)

        event_bus.publish(Event.create('socket.gem_added', {}))

        assert len(received) == 1

    def test_without_storage(self):
        bus = EventBus()
        received = []
        bus.subscribe('socket.gem_added', received.append)

        bus.publish(Event.create('socket.gem_added', {}))

        assert len(received) == 1

    def test_clear_listeners(self, event_bus):
        event_bus.subscribe('socket.gem_added', lambda e: None)
        event_bus.subscribe('socket.gem_removed', lambda e: None)

        event_bus.clear_listeners('socket.gem_added')
        assert event_bus.get_listener_count() == 1

        event_bus.clear_listeners()
        assert event_bus.get_listener_count() == 0
