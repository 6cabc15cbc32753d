"""
Factory catalog loader.

Factory presets are curated, read-only, and fetched fresh from a fixed
catalog resource on every call. Nothing here is cached or persisted.

Catalog format:
    {"version": "...", "presets": [RawFactoryPreset, ...]}

Raw entries may carry category, isDefault and mathematicalSignificance
on top of the user preset shape.

Failure policy: factory content is an enhancement, never a hard
dependency. Any failure (unreachable resource, bad status, malformed
body) is logged and yields an empty list. CatalogUnavailable never
leaves this module.

The fetch is the only blocking I/O in the preset system; it runs in a
worker thread so the event loop stays free. Timeouts belong to the
transport (urllib).
"""

import asyncio
import json
import logging
from concurrent.futures import ThreadPoolExecutor
from importlib import resources
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
from urllib.error import HTTPError, URLError
from urllib.parse import urlparse
from urllib.request import Request, urlopen

from pydantic import ValidationError

from .errors import CatalogUnavailable
from .hashing import content_hash
from .models import FactoryPreset, utcnow

logger = logging.getLogger(__name__)

# Transport timeout for remote catalogs (seconds)
DEFAULT_TIMEOUT_SECONDS = 10.0

# Executor for blocking catalog fetches
_catalog_executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="catalog_fetch")


def default_catalog_location() -> str:
    """Path of the catalog shipped with the package."""
    return str(resources.files("pattern_presets") / "data" / "factory-presets.json")


def normalize_entry(raw: Dict[str, Any]) -> FactoryPreset:
    """
    Convert a raw catalog entry into a FactoryPreset.

    The content hash is computed exactly as for user presets.
    isFactory is forced true by the origin tag.

    Raises:
        KeyError, TypeError, pydantic.ValidationError: If the entry is unusable
    """
    parameters = raw["parameters"]
    if not isinstance(parameters, dict):
        raise TypeError("parameters must be an object")

    return FactoryPreset(
        id=str(raw["id"]),
        name=raw["name"],
        generator_type=raw["generatorType"],
        parameters=parameters,
        created_at=utcnow(),
        description=raw.get("description"),
        content_hash=content_hash(raw["generatorType"], parameters),
        is_default=bool(raw.get("isDefault", False)),
        category=raw.get("category"),
        mathematical_significance=raw.get("mathematicalSignificance"),
    )


class FactoryCatalogLoader:
    """
    Fetches the factory catalog from a URL or filesystem path.

    Supported locations:
    - http:// and https:// URLs
    - file:// URLs
    - plain filesystem paths
    """

    def __init__(
        self,
        location: Optional[Union[str, Path]] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        """
        Initialize loader.

        Args:
            location: Catalog URL or path (default: catalog shipped with the package)
            timeout: Transport timeout for remote catalogs, in seconds
        """
        self.location = str(location) if location else default_catalog_location()
        self.timeout = timeout

    def _fetch_text(self) -> str:
        """
        Read the raw catalog body. Runs in a worker thread.

        Raises:
            CatalogUnavailable: On any transport failure
        """
        parsed = urlparse(self.location)

        if parsed.scheme in ("http", "https"):
            request = Request(self.location, headers={"Accept": "application/json"})
            try:
                with urlopen(request, timeout=self.timeout) as response:
                    return response.read().decode("utf-8")
            except HTTPError as e:
                raise CatalogUnavailable(self.location, f"HTTP {e.code}") from e
            except (URLError, TimeoutError, OSError, UnicodeDecodeError) as e:
                raise CatalogUnavailable(self.location, str(e)) from e

        path = Path(parsed.path) if parsed.scheme == "file" else Path(self.location)
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise CatalogUnavailable(self.location, str(e)) from e

    def _parse(self, text: str) -> List[FactoryPreset]:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise CatalogUnavailable(self.location, f"invalid JSON: {e}") from e

        if not isinstance(data, dict) or not isinstance(data.get("presets"), list):
            raise CatalogUnavailable(self.location, "missing 'presets' list")

        presets = []
        for raw in data["presets"]:
            try:
                presets.append(normalize_entry(raw))
            except (KeyError, TypeError, ValidationError) as e:
                name = raw.get("name") if isinstance(raw, dict) else raw
                logger.warning(f"Skipping malformed factory preset {name!r}: {e}")
        return presets

    def load_sync(self) -> List[FactoryPreset]:
        """Blocking variant of load(), for the CLI and other sync callers."""
        try:
            return self._parse(self._fetch_text())
        except CatalogUnavailable as e:
            logger.warning(f"Failed to load factory presets: {e}")
            return []

    async def load(self) -> List[FactoryPreset]:
        """
        Fetch and normalize the whole catalog.

        Returns:
            Factory presets, or an empty list if the catalog is unavailable
        """
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(_catalog_executor, self.load_sync)

    async def for_generator(self, generator_type: str) -> List[FactoryPreset]:
        return [p for p in await self.load() if p.generator_type == generator_type]

    async def categories(self) -> List[str]:
        """Sorted unique categories across the catalog."""
        return sorted({p.category for p in await self.load() if p.category})

    async def is_available(self) -> bool:
        """True if the catalog resource can currently be fetched."""
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(_catalog_executor, self._fetch_text)
        except CatalogUnavailable:
            return False
        return True
