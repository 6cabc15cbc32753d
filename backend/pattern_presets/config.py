"""
Runtime configuration from environment variables.

Environment:
- PATTERN_PRESETS_STORAGE_PATH: JSON storage file (default ~/.pattern-presets/storage.json)
- PATTERN_PRESETS_CATALOG_URL: factory catalog URL or path (default: packaged catalog)
- PATTERN_PRESETS_CATALOG_TIMEOUT: catalog fetch timeout in seconds (default 10)
- PATTERN_PRESETS_STORAGE_LIMIT: storage quota in bytes (default 5 MiB)
- PATTERN_PRESETS_POLL_INTERVAL: cross-context poll interval in seconds (0 disables)
- PATTERN_PRESETS_LOG_LEVEL: log level name (default INFO)

Invalid numeric values fall back to the default with a warning.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .persistence.storage import DEFAULT_SIZE_LIMIT, JsonFileStorage
from .presets.catalog import DEFAULT_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)

ENV_STORAGE_PATH = "PATTERN_PRESETS_STORAGE_PATH"
ENV_CATALOG_URL = "PATTERN_PRESETS_CATALOG_URL"
ENV_CATALOG_TIMEOUT = "PATTERN_PRESETS_CATALOG_TIMEOUT"
ENV_STORAGE_LIMIT = "PATTERN_PRESETS_STORAGE_LIMIT"
ENV_POLL_INTERVAL = "PATTERN_PRESETS_POLL_INTERVAL"
ENV_LOG_LEVEL = "PATTERN_PRESETS_LOG_LEVEL"

SIGNAL_FILENAME = "presets.signal"


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning(f"Invalid {name}={raw!r}, using default {default}")
        return default
    if value < 0:
        logger.warning(f"Negative {name}={raw!r}, using default {default}")
        return default
    return value


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"Invalid {name}={raw!r}, using default {default}")
        return default
    if value <= 0:
        logger.warning(f"Non-positive {name}={raw!r}, using default {default}")
        return default
    return value


@dataclass(frozen=True)
class Settings:
    """Resolved configuration for one process."""

    storage_path: Path = JsonFileStorage.DEFAULT_PATH
    catalog_url: Optional[str] = None
    catalog_timeout: float = DEFAULT_TIMEOUT_SECONDS
    storage_limit: int = DEFAULT_SIZE_LIMIT
    poll_interval: float = 0.0
    log_level: str = "INFO"

    @property
    def signal_path(self) -> Path:
        """Cross-context signal file, kept next to the storage file."""
        return self.storage_path.parent / SIGNAL_FILENAME

    @classmethod
    def from_env(cls) -> "Settings":
        storage_path = os.environ.get(ENV_STORAGE_PATH)
        return cls(
            storage_path=Path(storage_path).expanduser() if storage_path else JsonFileStorage.DEFAULT_PATH,
            catalog_url=os.environ.get(ENV_CATALOG_URL) or None,
            catalog_timeout=_env_float(ENV_CATALOG_TIMEOUT, DEFAULT_TIMEOUT_SECONDS),
            storage_limit=_env_int(ENV_STORAGE_LIMIT, DEFAULT_SIZE_LIMIT),
            poll_interval=_env_float(ENV_POLL_INTERVAL, 0.0),
            log_level=os.environ.get(ENV_LOG_LEVEL, "INFO").upper(),
        )
