"""
Preset system for pattern generators.

Presets are named snapshots of a generator's parameter values, from two
origins:
- user presets, persisted in a key-value medium and fully mutable
- factory presets, read-only, fetched fresh from a catalog resource

Identity for duplicate detection is a content hash of
(generator type, parameters), never the name.
"""

from .errors import (
    PresetError,
    DuplicateContent,
    DuplicateName,
    PresetNotFound,
    EmptyName,
    InvalidGeneratorType,
    InvalidName,
    MalformedImportPayload,
    CatalogUnavailable,
)
from .models import (
    UserPreset,
    FactoryPreset,
    PresetPatch,
    ParameterControl,
    LoadedPreset,
    ExportEnvelope,
    ImportResult,
    StorageStats,
)
from .hashing import content_hash
from .store import UserPresetStore, build_user_preset
from .catalog import FactoryCatalogLoader
from .aggregator import PresetAggregator
from .conflicts import ConflictPolicy, ConflictResolver
from .codec import ImportExportCodec, export_filename
from .defaults import DefaultResolver
from .notifier import ChangeNotifier
from .service import PresetService

__all__ = [
    "PresetError",
    "DuplicateContent",
    "DuplicateName",
    "PresetNotFound",
    "EmptyName",
    "InvalidGeneratorType",
    "InvalidName",
    "MalformedImportPayload",
    "CatalogUnavailable",
    "UserPreset",
    "FactoryPreset",
    "PresetPatch",
    "ParameterControl",
    "LoadedPreset",
    "ExportEnvelope",
    "ImportResult",
    "StorageStats",
    "content_hash",
    "UserPresetStore",
    "build_user_preset",
    "FactoryCatalogLoader",
    "PresetAggregator",
    "ConflictPolicy",
    "ConflictResolver",
    "ImportExportCodec",
    "export_filename",
    "DefaultResolver",
    "ChangeNotifier",
    "PresetService",
]
