"""
Durable store of recorded vehicle paths.

Keeps completed recordings as immutable records in a key-value backend,
notifies subscribers of mutations, and exports paths to GPX.
"""

from path_store.data_models import PathPoint, PersistedPath
from path_store.events import EventChannel, StoreEvent
from path_store.storage import JsonFileStorage, KeyValueStorage, MemoryStorage
from path_store.store import PathStore

__all__ = [
    "PathPoint",
    "PersistedPath",
    "EventChannel",
    "StoreEvent",
    "KeyValueStorage",
    "JsonFileStorage",
    "MemoryStorage",
    "PathStore",
]
