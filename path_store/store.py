"""
Append-only store of recorded paths.

The whole collection is serialized as a JSON array under one storage key and
rewritten on every mutation. Records are never edited in place: the only
mutations are append, delete by id, and clear.
"""

import json
import logging
from typing import List, Optional, Tuple

from pydantic import TypeAdapter, ValidationError

from constants import PATHS_STORAGE_KEY
from path_store.data_models import PersistedPath
from path_store.events import (
    ACTION_ADDED,
    ACTION_CLEARED,
    ACTION_REMOVED,
    EventChannel,
    StoreEvent,
)
from path_store.storage import KeyValueStorage

logger = logging.getLogger(__name__)

_PATH_LIST = TypeAdapter(List[PersistedPath])


class PathStore:
    """
    Ordered, durable collection of PersistedPath records.

    Insertion order is creation order. Loading is lazy: the collection is
    read from storage on first use. Missing or corrupt content loads as an
    empty collection and is reported once per store.

    Usage:
        store = PathStore(JsonFileStorage('storage.json'), channel)
        store.append(path)
        for path in store.all():
            ...

    Args:
        storage: Durable key-value backend
        channel: Event channel notified of every mutation (a private one if None)
        key: Storage key holding the collection
    """

    def __init__(self, storage: KeyValueStorage, channel: Optional[EventChannel] = None,
                 key: str = PATHS_STORAGE_KEY):
        self.storage = storage
        self.channel = channel if channel is not None else EventChannel()
        self.key = key
        self._paths: Optional[List[PersistedPath]] = None
        self._warned_corrupt = False

    def _load(self) -> List[PersistedPath]:
        raw = self.storage.get_item(self.key)
        if not raw:
            return []
        try:
            return _PATH_LIST.validate_json(raw)
        except (ValidationError, ValueError) as e:
            if not self._warned_corrupt:
                logger.warning(f"Stored paths under '{self.key}' are unreadable, using empty list: {e}")
                self._warned_corrupt = True
            return []

    def _ensure_loaded(self) -> List[PersistedPath]:
        if self._paths is None:
            self._paths = self._load()
        return self._paths

    def _persist(self, paths: List[PersistedPath]) -> None:
        payload = json.dumps([p.to_json_dict() for p in paths])
        try:
            self.storage.set_item(self.key, payload)
        except OSError as e:
            logger.error(f"Failed to write stored paths: {e}")
            raise

    def reload(self) -> None:
        """Drop the in-memory copy so the next read goes to storage."""
        self._paths = None

    def all(self) -> Tuple[PersistedPath, ...]:
        """All paths in creation order."""
        return tuple(self._ensure_loaded())

    def get(self, path_id: str) -> Optional[PersistedPath]:
        for path in self._ensure_loaded():
            if path.id == path_id:
                return path
        return None

    def __len__(self) -> int:
        return len(self._ensure_loaded())

    def append(self, path: PersistedPath) -> PersistedPath:
        """Add a path at the end, persist, and notify.

        The in-memory collection only changes once the write succeeded.

        Raises:
            ValueError: A path with the same id is already stored
            OSError: The storage backend failed to write
        """
        paths = self._ensure_loaded()
        if any(p.id == path.id for p in paths):
            raise ValueError(f"Path id already stored: {path.id}")

        updated = paths + [path]
        self._persist(updated)
        self._paths = updated
        logger.info(
            f"Saved path {path.id} ({path.distance_km:.2f}km, {path.duration_min:.1f}min, "
            f"{path.point_count} points)"
        )
        self.channel.publish(StoreEvent(self.key, ACTION_ADDED, path))
        return path

    def clear_all(self) -> None:
        """Remove every path, persist the empty collection, and notify."""
        self._persist([])
        self._paths = []
        logger.info("Cleared all stored paths")
        self.channel.publish(StoreEvent(self.key, ACTION_CLEARED))

    def delete_by_id(self, path_id: str) -> bool:
        """Remove one path. An unknown id is a silent no-op.

        Returns:
            True if a path was removed
        """
        paths = self._ensure_loaded()
        remaining = [p for p in paths if p.id != path_id]
        if len(remaining) == len(paths):
            return False

        self._persist(remaining)
        self._paths = remaining
        logger.info(f"Deleted path {path_id}")
        self.channel.publish(StoreEvent(self.key, ACTION_REMOVED, path_id))
        return True
