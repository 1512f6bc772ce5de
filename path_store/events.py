"""
In-process publish/subscribe channel for storage mutations.

Sibling UI panels (path lists, totals) subscribe once and are told when a
stored collection changes.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Tuple

logger = logging.getLogger(__name__)

ACTION_ADDED = "added"
ACTION_CLEARED = "cleared"
ACTION_REMOVED = "removed"


@dataclass(frozen=True)
class StoreEvent:
    """A mutation of a stored collection.

    Attributes:
        key: Storage key of the collection that changed
        action: "added", "cleared" or "removed"
        payload: The added record, the removed id, or None
    """
    key: str
    action: str
    payload: Any = None


Listener = Callable[[StoreEvent], None]


class EventChannel:
    """Synchronous fan-out of StoreEvents to subscribed listeners."""

    def __init__(self):
        self._listeners: List[Tuple[Optional[str], Listener]] = []

    def subscribe(self, listener: Listener, key: Optional[str] = None) -> Callable[[], None]:
        """Register a listener, optionally only for one storage key.

        Returns:
            Callable that removes the subscription
        """
        entry = (key, listener)
        self._listeners.append(entry)

        def unsubscribe() -> None:
            if entry in self._listeners:
                self._listeners.remove(entry)

        return unsubscribe

    def publish(self, event: StoreEvent) -> None:
        for key, listener in list(self._listeners):
            if key is not None and key != event.key:
                continue
            try:
                listener(event)
            except Exception:
                logger.exception(f"Store listener failed for {event.key}/{event.action}")

    @property
    def listener_count(self) -> int:
        return len(self._listeners)
