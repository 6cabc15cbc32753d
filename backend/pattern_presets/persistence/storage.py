"""
Key-value storage medium for preset state.

The preset store keeps everything under two well-known keys:
- the serialized user-preset collection
- the scalar "last active preset id"

Two media are provided:
- JsonFileStorage: one JSON document on disk, atomic temp-file swap on write
- MemoryStorage: dict-backed, for tests and embedding

Both enforce an optional size limit on the total serialized payload.
A refused write leaves the previous state untouched.
"""

import json
import logging
from pathlib import Path
from typing import Dict, Optional, Protocol

from .errors import PersistenceError, StorageQuotaExceeded

logger = logging.getLogger(__name__)


# Storage keys
PRESETS_KEY = "pattern-generator-presets"
LAST_ACTIVE_PRESET_KEY = "pattern-generator-last-active-preset"

# 5 MiB, the same ceiling the browser medium imposed
DEFAULT_SIZE_LIMIT = 5 * 1024 * 1024


class KeyValueStorage(Protocol):
    """Minimal string key-value medium used by the preset store."""

    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def remove(self, key: str) -> None:
        ...


def _payload_size(values: Dict[str, str]) -> int:
    return sum(len(k) + len(v) for k, v in values.items())


class MemoryStorage:
    """
    In-memory storage medium.

    Nothing survives the process. Used by tests and by callers that
    embed the preset store without a backing file.
    """

    def __init__(self, size_limit: Optional[int] = DEFAULT_SIZE_LIMIT):
        self._values: Dict[str, str] = {}
        self.size_limit = size_limit

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        candidate = dict(self._values)
        candidate[key] = value
        if self.size_limit is not None:
            size = _payload_size(candidate)
            if size >= self.size_limit:
                raise StorageQuotaExceeded(key, size, self.size_limit)
        self._values = candidate

    def remove(self, key: str) -> None:
        self._values.pop(key, None)

    def keys(self):
        return list(self._values.keys())


class JsonFileStorage:
    """
    JSON file-backed storage medium.

    The whole key space lives in one JSON object on disk:
        {"version": 1, "values": {key: value, ...}}

    Every read goes to disk so that writes from other open contexts
    are picked up (last write wins, no merge). Writes go through a
    temp file and an atomic replace.

    Thread-safety: Not thread-safe. One execution context per instance.
    """

    FORMAT_VERSION = 1
    DEFAULT_PATH = Path.home() / ".pattern-presets" / "storage.json"

    def __init__(
        self,
        storage_path: Optional[Path] = None,
        size_limit: Optional[int] = DEFAULT_SIZE_LIMIT,
    ):
        """
        Initialize file storage.

        Args:
            storage_path: Path to JSON storage file (default: ~/.pattern-presets/storage.json)
            size_limit: Maximum total payload size in characters, None for unlimited
        """
        self.storage_path = Path(storage_path) if storage_path else self.DEFAULT_PATH
        self.size_limit = size_limit

    def _read_all(self) -> Dict[str, str]:
        if not self.storage_path.exists():
            return {}

        try:
            with open(self.storage_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Failed to read storage file {self.storage_path}, treating as empty: {e}")
            return {}

        values = data.get("values", {}) if isinstance(data, dict) else {}
        if not isinstance(values, dict):
            logger.warning(f"Storage file {self.storage_path} has no usable 'values' object")
            return {}
        return {str(k): v for k, v in values.items() if isinstance(v, str)}

    def _write_all(self, values: Dict[str, str]) -> None:
        self.storage_path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "version": self.FORMAT_VERSION,
            "values": values,
        }

        # Atomic write via temp file
        temp_path = self.storage_path.with_suffix(".tmp")
        try:
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            temp_path.replace(self.storage_path)
        except OSError as e:
            try:
                temp_path.unlink()
            except OSError:
                pass
            raise PersistenceError(f"Failed to write storage file {self.storage_path}: {e}") from e

    def get(self, key: str) -> Optional[str]:
        return self._read_all().get(key)

    def set(self, key: str, value: str) -> None:
        values = self._read_all()
        values[key] = value
        if self.size_limit is not None:
            size = _payload_size(values)
            if size >= self.size_limit:
                raise StorageQuotaExceeded(key, size, self.size_limit)
        self._write_all(values)

    def remove(self, key: str) -> None:
        values = self._read_all()
        if key not in values:
            return
        del values[key]
        self._write_all(values)

    def keys(self):
        return list(self._read_all().keys())
