"""
Event bus for Socket Smith.

Provides pub/sub for socket state change events. All events are logged
to storage and broadcast to registered listeners.
"""

import logging
from typing import Callable, Dict, List, Optional

from .models import Event
from .storage import DocumentStorage

logger = logging.getLogger(__name__)


class EventBus:
    """
    Event bus for publishing and subscribing to socket events.

    Attributes:
        storage: DocumentStorage used for the event log (None disables logging)
        listeners: Dict mapping event types to lists of callback functions
    """

    def __init__(self, storage: Optional[DocumentStorage] = None):
        self.storage = storage
        self.listeners: Dict[str, List[Callable[[Event], None]]] = {}

    def subscribe(self, event_type: str, callback: Callable[[Event], None]) -> None:
        """
        Subscribe to events of a specific type.

        Args:
            event_type: Type of event to listen for (e.g., 'socket.gem_added')
            callback: Function to call with the Event

        Examples:
            >>> def on_gem_added(event: Event):
            ...     print(f"Socketed {event.data['gemName']}")
            >>>
            >>> bus.subscribe('socket.gem_added', on_gem_added)
        """
        callbacks = self.listeners.setdefault(event_type, [])
        if callback not in callbacks:
            callbacks.append(callback)

    def unsubscribe(self, event_type: str, callback: Callable[[Event], None]) -> None:
        if callback in self.listeners.get(event_type, []):
            self.listeners[event_type].remove(callback)

    def publish(self, event: Event) -> None:
        """
        Log an event to storage, then notify every listener for its type.

        A failing listener is logged and does not stop the others.
        """
        if self.storage is not None:
            self.storage.log_event(event)

        for callback in list(self.listeners.get(event.event_type, [])):
            try:
                callback(event)
            except Exception:
                logger.exception(f"Error in listener for {event.event_type}")

    def clear_listeners(self, event_type: Optional[str] = None) -> None:
        """
        Clear listeners for one event type, or all listeners.

        Note:
            Primarily used for testing.
        """
        if event_type:
            self.listeners.pop(event_type, None)
        else:
            self.listeners = {}

    def get_listener_count(self, event_type: Optional[str] = None) -> int:
        if event_type:
            return len(self.listeners.get(event_type, []))
        return sum(len(callbacks) for callbacks in self.listeners.values())


__all__ = ['EventBus']
