"""
Preset aggregation across origins.

Factory presets first, then user presets, filtered to one generator type.
Cross-origin content duplicates are kept: a user may recreate a factory
preset independently. Only within-origin duplicates are rejected, and
that happens at write time in the store.
"""

import logging
from typing import List, Union

from .catalog import FactoryCatalogLoader
from .models import FactoryPreset, UserPreset
from .store import UserPresetStore

logger = logging.getLogger(__name__)


class PresetAggregator:
    """Merges the factory catalog and the user store per generator type."""

    def __init__(self, store: UserPresetStore, catalog: FactoryCatalogLoader):
        self.store = store
        self.catalog = catalog

    async def get_for_generator(self, generator_type: str) -> List[Union[FactoryPreset, UserPreset]]:
        """
        All presets for a generator type.

        Returns:
            Factory presets (fetched fresh) followed by user presets in insertion order
        """
        factory = await self.catalog.for_generator(generator_type)
        user = self.store.read(generator_type)
        logger.debug(
            f"Aggregated {len(factory)} factory + {len(user)} user presets for {generator_type}"
        )
        return [*factory, *user]
