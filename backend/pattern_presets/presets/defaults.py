"""
Default preset resolution.

Per generator type, the user-default assignment is a small state machine:

    NoDefault  <->  UserDefault(X)
    UserDefault(X)  ->  UserDefault(Y)   (one write: X cleared, Y set)

At most one user preset per generator type carries is_user_default.

Effective default precedence:
1. the user default, if any
2. else the factory preset flagged is_default for the type (fetched fresh)
3. else None: the caller falls back to the generator's built-in defaults
"""

import logging
from typing import List, Optional, Union

from .catalog import FactoryCatalogLoader
from .models import FactoryPreset, PresetCore, UserPreset
from .store import UserPresetStore

logger = logging.getLogger(__name__)


class DefaultResolver:
    """Maintains the user-default invariant and computes effective defaults."""

    def __init__(self, store: UserPresetStore, catalog: FactoryCatalogLoader):
        self.store = store
        self.catalog = catalog

    def set_user_default(self, preset_id: str) -> UserPreset:
        """
        Make a user preset the default for its generator type.

        Every other user preset of the same type loses the flag in the
        same batch write.

        Raises:
            PresetNotFound: If no user preset has this id (factory ids included)
        """
        target = self.store.require(preset_id)

        updated = []
        for preset in self.store.all():
            if preset.generator_type != target.generator_type:
                updated.append(preset)
                continue
            flag = preset.id == preset_id
            if preset.is_user_default != flag:
                preset = preset.model_copy(update={"is_user_default": flag})
            updated.append(preset)

        self.store.write_batch(updated)
        logger.info(f"Set user default for {target.generator_type}: '{target.name}' ({preset_id})")
        return target.model_copy(update={"is_user_default": True})

    def get_user_default(self, generator_type: str) -> Optional[UserPreset]:
        for preset in self.store.read(generator_type):
            if preset.is_user_default:
                return preset
        return None

    def clear_user_default(self, generator_type: str) -> bool:
        """
        Remove the user default for a generator type.

        Returns:
            True if a default was cleared, False if there was none
        """
        presets = self.store.all()
        changed = False
        updated = []
        for preset in presets:
            if preset.generator_type == generator_type and preset.is_user_default:
                preset = preset.model_copy(update={"is_user_default": False})
                changed = True
            updated.append(preset)

        if not changed:
            return False

        self.store.write_batch(updated)
        logger.info(f"Cleared user default for {generator_type}")
        return True

    def is_user_default(self, preset: PresetCore) -> bool:
        if preset.is_factory:
            return False
        current = self.get_user_default(preset.generator_type)
        return current is not None and current.id == preset.id

    def all_user_defaults(self) -> List[UserPreset]:
        return [p for p in self.store.all() if p.is_user_default]

    async def get_effective_default(
        self, generator_type: str
    ) -> Optional[Union[UserPreset, FactoryPreset]]:
        """
        Resolve the preset to auto-load for a generator type.

        Returns:
            User default, else factory default, else None
        """
        user_default = self.get_user_default(generator_type)
        if user_default is not None:
            return user_default

        for preset in await self.catalog.for_generator(generator_type):
            if preset.is_default:
                return preset

        return None
