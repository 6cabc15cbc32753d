"""
Import/export of user presets.

Envelope (wire):
    {"version": "1.0.0", "presets": [Preset, ...], "exportedAt": "<ISO 8601>"}

"formatVersion" is accepted in place of "version" on import. The version
is carried but not branched on.

Import rules, per incoming item:
- ids are always regenerated; external ids are never trusted
- content hashes are recomputed from (generatorType, parameters)
- factory presets are skipped; they only come from the catalog
- default flags are dropped; import never changes defaults
- identical content (against the store and earlier items of the same
  envelope) is skipped with a reason naming both presets
- a clashing name with different content is renamed "Name (N)"
- an unusable item is reported in errors and the rest continue

All accepted items land in one batch write at the end. An envelope that
cannot be decoded at all raises MalformedImportPayload before anything
is written.
"""

import json
import logging
from datetime import date
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from .conflicts import ConflictOutcome, ConflictResolver
from .errors import EmptyName, InvalidName, MalformedImportPayload
from .hashing import content_hash
from .models import (
    FORMAT_VERSION,
    ExportEnvelope,
    ImportResult,
    UserPreset,
    generate_preset_id,
    utcnow,
)
from .store import UserPresetStore
from .validation import clean_description, clean_name

logger = logging.getLogger(__name__)


class ItemError(Exception):
    """One envelope item could not be imported."""
    pass


def export_filename(generator_type: Optional[str] = None, today: Optional[date] = None) -> str:
    """pattern-presets[-<type>]-YYYY-MM-DD.json"""
    stamp = (today or date.today()).isoformat()
    suffix = f"-{generator_type}" if generator_type else ""
    return f"pattern-presets{suffix}-{stamp}.json"


def _item_label(item: Any) -> str:
    if isinstance(item, dict) and isinstance(item.get("name"), str):
        return item["name"]
    return "unnamed preset"


def _decode_item(item: Any) -> UserPreset:
    """Turn one envelope item into a fresh user preset (new id, fresh hash)."""
    if not isinstance(item, dict):
        raise ItemError("preset entry is not an object")

    generator_type = item.get("generatorType")
    if not isinstance(generator_type, str) or not generator_type.strip():
        raise ItemError("missing generatorType")

    parameters = item.get("parameters")
    if not isinstance(parameters, dict):
        raise ItemError("malformed parameter payload")

    try:
        name = clean_name(item.get("name"))
    except (EmptyName, InvalidName) as e:
        raise ItemError(str(e)) from e

    description = item.get("description")
    if description is not None and not isinstance(description, str):
        raise ItemError("description must be a string")

    try:
        fresh_hash = content_hash(generator_type, parameters)
    except TypeError as e:
        raise ItemError(f"malformed parameter payload: {e}") from e

    incoming_hash = item.get("contentHash")
    if incoming_hash and incoming_hash != fresh_hash:
        logger.warning(f"Imported preset '{name}' carried a stale content hash; recomputed")

    try:
        return UserPreset(
            id=generate_preset_id(),
            name=name,
            generator_type=generator_type,
            parameters=parameters,
            created_at=utcnow(),
            description=clean_description(description),
            content_hash=fresh_hash,
            is_user_default=False,
        )
    except ValidationError as e:
        raise ItemError(f"malformed parameter payload: {e.errors()[0]['msg']}") from e


class ImportExportCodec:
    """Versioned serialization of user presets."""

    def __init__(self, store: UserPresetStore):
        self.store = store

    # Export

    def export_selection(self, preset_ids: Optional[List[str]] = None) -> ExportEnvelope:
        """
        Build an export envelope.

        Args:
            preset_ids: Presets to export (default: all user presets).
                Unknown ids are dropped silently.
        """
        presets = self.store.all()
        if preset_ids is not None:
            wanted = set(preset_ids)
            presets = [p for p in presets if p.id in wanted]

        return ExportEnvelope(format_version=FORMAT_VERSION, presets=presets, exported_at=utcnow())

    def export_json(self, preset_ids: Optional[List[str]] = None) -> str:
        return json.dumps(self.export_selection(preset_ids).to_dict(), indent=2, ensure_ascii=False)

    # Import

    def import_envelope(self, envelope: Any) -> ImportResult:
        """
        Import an envelope into the user store.

        Args:
            envelope: Decoded envelope (dict with "presets")

        Returns:
            ImportResult with imported ids, skipped duplicates and errors

        Raises:
            MalformedImportPayload: If the envelope itself is unusable
        """
        if not isinstance(envelope, dict):
            raise MalformedImportPayload("envelope is not an object")
        items = envelope.get("presets")
        if not isinstance(items, list):
            raise MalformedImportPayload("envelope has no 'presets' list")

        version = envelope.get("version", envelope.get("formatVersion"))
        logger.info(f"Importing {len(items)} presets (format version {version})")

        working = self.store.all()
        resolver = ConflictResolver.for_import()
        result = ImportResult()

        for item in items:
            label = _item_label(item)

            if isinstance(item, dict) and item.get("isFactory"):
                result.skipped_duplicates.append(f'"{label}" (factory preset - skipped)')
                continue

            try:
                candidate = _decode_item(item)
            except ItemError as e:
                result.errors.append(f'"{label}": {e}')
                logger.warning(f"Failed to import preset '{label}': {e}")
                continue

            resolution = resolver.resolve(candidate, working)
            if resolution.outcome == ConflictOutcome.SKIPPED:
                result.skipped_duplicates.append(resolution.reason)
                continue
            if resolution.outcome == ConflictOutcome.RENAMED:
                logger.info(f"Renamed imported preset '{candidate.name}' to '{resolution.preset.name}'")

            working.append(resolution.preset)
            result.imported_ids.append(resolution.preset.id)

        if result.imported_ids:
            self.store.write_batch(working)

        logger.info(
            f"Import finished: {len(result.imported_ids)} imported, "
            f"{len(result.skipped_duplicates)} skipped, {len(result.errors)} failed"
        )
        return result

    def import_json(self, text: str) -> ImportResult:
        """
        Import an envelope from JSON text.

        Raises:
            MalformedImportPayload: If the text is not JSON or not an envelope
        """
        try:
            envelope = json.loads(text)
        except (json.JSONDecodeError, TypeError) as e:
            raise MalformedImportPayload(f"not valid JSON: {e}") from e
        return self.import_envelope(envelope)
