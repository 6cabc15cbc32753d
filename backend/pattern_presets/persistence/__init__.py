"""
Persistence layer for preset state.

Key-value storage media (JSON file, in-memory) behind one small protocol.
"""

from .errors import PersistenceError, StorageQuotaExceeded
from .storage import (
    KeyValueStorage,
    JsonFileStorage,
    MemoryStorage,
    PRESETS_KEY,
    LAST_ACTIVE_PRESET_KEY,
    DEFAULT_SIZE_LIMIT,
)

__all__ = [
    "PersistenceError",
    "StorageQuotaExceeded",
    "KeyValueStorage",
    "JsonFileStorage",
    "MemoryStorage",
    "PRESETS_KEY",
    "LAST_ACTIVE_PRESET_KEY",
    "DEFAULT_SIZE_LIMIT",
]
