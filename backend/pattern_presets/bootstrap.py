"""
Service construction from settings.

Shared by the FastAPI app and the CLI so both open the same storage,
catalog and signal file for a given environment.
"""

import logging

from .config import Settings
from .persistence.storage import JsonFileStorage
from .presets.catalog import FactoryCatalogLoader
from .presets.notifier import ChangeNotifier
from .presets.service import PresetService
from .presets.store import UserPresetStore

logger = logging.getLogger(__name__)


def build_service(settings: Settings) -> PresetService:
    """Wire storage, notifier, store and catalog into one PresetService."""
    storage = JsonFileStorage(settings.storage_path, size_limit=settings.storage_limit)
    notifier = ChangeNotifier(settings.signal_path)
    store = UserPresetStore(storage, notifier)
    catalog = FactoryCatalogLoader(settings.catalog_url, timeout=settings.catalog_timeout)

    logger.info(f"Preset storage: {settings.storage_path}; catalog: {catalog.location}")
    return PresetService(store, catalog, notifier)
