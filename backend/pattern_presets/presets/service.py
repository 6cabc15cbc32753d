"""
Preset service: the surface consumed by UI and API callers.

Constructed once at startup from a storage medium, a catalog loader and
a notifier, then injected wherever presets are needed (app.state for the
HTTP adapter, the CLI's command context, tests).

Callers subscribe to change signals and re-read; they never receive
deltas.
"""

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

from .aggregator import PresetAggregator
from .catalog import FactoryCatalogLoader
from .codec import ImportExportCodec
from .defaults import DefaultResolver
from .errors import PresetNotFound
from .models import (
    ExportEnvelope,
    FactoryPreset,
    ImportResult,
    LoadedPreset,
    ParameterControl,
    ParamValue,
    PresetPatch,
    UserPreset,
)
from .notifier import ChangeNotifier
from .store import UserPresetStore, build_user_preset
from .validation import filter_to_controls, validate_parameters

logger = logging.getLogger(__name__)

AnyPresetValue = Union[UserPreset, FactoryPreset]


class PresetService:
    """Facade over store, catalog, codec, default resolver and notifier."""

    def __init__(
        self,
        store: UserPresetStore,
        catalog: FactoryCatalogLoader,
        notifier: Optional[ChangeNotifier] = None,
    ):
        self.store = store
        self.catalog = catalog
        self.notifier = notifier or store.notifier
        self.aggregator = PresetAggregator(store, catalog)
        self.codec = ImportExportCodec(store)
        self.defaults = DefaultResolver(store, catalog)

    # Save / load / delete / rename

    def save(
        self,
        name: str,
        generator_type: str,
        parameters: Mapping[str, ParamValue],
        description: Optional[str] = None,
    ) -> UserPreset:
        """
        Save the current parameters as a new user preset.

        The saved preset becomes the last active one.

        Raises:
            EmptyName, InvalidName: If the name is unusable
            InvalidGeneratorType: If the generator type is blank
            DuplicateContent: If identical content is already saved for the type
            DuplicateName: If the name is taken for the type
        """
        preset = self.store.create(
            build_user_preset(name, generator_type, parameters, description)
        )
        self.store.set_last_active(preset.id)
        return preset

    async def find(self, preset_id: str) -> Optional[AnyPresetValue]:
        """Look up a preset by id in the user store, then the catalog."""
        preset = self.store.get(preset_id)
        if preset is not None:
            return preset
        for factory_preset in await self.catalog.load():
            if factory_preset.id == preset_id:
                return factory_preset
        return None

    async def load(
        self,
        preset_id: str,
        controls: Optional[Sequence[ParameterControl]] = None,
    ) -> LoadedPreset:
        """
        Prepare a preset for application to a generator.

        With controls given, parameters that no longer have a control are
        dropped and compatibility warnings are reported. Loading continues
        despite warnings. The preset becomes the last active one.

        Raises:
            PresetNotFound: If neither the store nor the catalog has the id
        """
        preset = await self.find(preset_id)
        if preset is None:
            raise PresetNotFound(preset_id)

        parameters: Dict[str, ParamValue] = dict(preset.parameters)
        warnings: List[str] = []
        if controls is not None:
            validation = validate_parameters(preset, controls)
            warnings = validation.warnings
            if warnings:
                logger.warning(f"Preset '{preset.name}' validation warnings: {warnings}")
            parameters = filter_to_controls(parameters, controls)

        self.store.set_last_active(preset.id)
        return LoadedPreset(preset=preset, parameters=parameters, warnings=warnings)

    def delete(self, preset_id: str) -> bool:
        """
        Delete a user preset.

        Returns:
            True if deleted, False if not found
        """
        deleted = self.store.delete(preset_id)
        if deleted and self.store.get_last_active() == preset_id:
            self.store.set_last_active(None)
        return deleted

    def rename(self, preset_id: str, new_name: str) -> UserPreset:
        return self.store.rename(preset_id, new_name)

    def update(self, preset_id: str, patch: Union[PresetPatch, Dict[str, Any]]) -> UserPreset:
        return self.store.update(preset_id, patch)

    async def list_for_generator_type(self, generator_type: str) -> List[AnyPresetValue]:
        return await self.aggregator.get_for_generator(generator_type)

    async def last_active(self) -> Optional[str]:
        """Last active preset id, or None when it no longer resolves."""
        preset_id = self.store.get_last_active()
        if preset_id is None:
            return None
        if await self.find(preset_id) is None:
            return None
        return preset_id

    # Import / export

    def export_selection(self, preset_ids: Optional[List[str]] = None) -> ExportEnvelope:
        return self.codec.export_selection(preset_ids)

    def import_envelope(self, envelope: Union[str, Dict[str, Any]]) -> ImportResult:
        """
        Import presets from an envelope (decoded or JSON text).

        The first imported preset becomes the last active one.
        """
        if isinstance(envelope, str):
            result = self.codec.import_json(envelope)
        else:
            result = self.codec.import_envelope(envelope)
        if result.imported_ids:
            self.store.set_last_active(result.imported_ids[0])
        return result

    # Defaults

    def set_user_default(self, preset_id: str) -> UserPreset:
        return self.defaults.set_user_default(preset_id)

    def clear_user_default(self, generator_type: str) -> bool:
        return self.defaults.clear_user_default(generator_type)

    def get_user_default(self, generator_type: str) -> Optional[UserPreset]:
        return self.defaults.get_user_default(generator_type)

    async def get_effective_default(self, generator_type: str) -> Optional[AnyPresetValue]:
        return await self.defaults.get_effective_default(generator_type)

    # Change signal

    def subscribe(self, listener: Callable[[], None]) -> Callable[[], None]:
        return self.notifier.subscribe(listener)
