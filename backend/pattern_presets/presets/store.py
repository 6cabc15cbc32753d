"""
User preset store: CRUD over the persistent user collection.

The whole collection is one serialized list under a well-known storage
key. Every operation reads it fresh and every mutation writes it back in
a single set(), so a failed write never leaves a half-applied change.

Invariants enforced on write (per generator type, user origin only):
- no two presets share a content hash
- no two presets share a name

Factory presets never live here. Records flagged isFactory (left over
from older builds) are dropped on read.

Records this build cannot parse are skipped with a warning on read but
written back verbatim on every save, so an unreadable record is never
lost to an unrelated mutation. Only clear_all() removes them.

Migration-on-read: records without a contentHash get one computed and
persisted the first time they are loaded.

Deleting does not cascade. Anything pointing at a deleted preset
(active preset, default flag holders) reacts to the change signal.

The last active id is a UI pointer, not part of the collection:
set_last_active() does not fire the change signal, so loading a preset
never makes other instances re-read.
"""

import json
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from pydantic import ValidationError

from ..persistence.storage import KeyValueStorage, LAST_ACTIVE_PRESET_KEY, PRESETS_KEY
from .conflicts import ConflictResolver
from .errors import InvalidGeneratorType, PresetNotFound
from .hashing import content_hash
from .models import (
    ParamValue,
    PresetPatch,
    StorageStats,
    UserPreset,
    generate_preset_id,
    utcnow,
)
from .notifier import ChangeNotifier
from .validation import clean_description, clean_name

logger = logging.getLogger(__name__)


def build_user_preset(
    name: str,
    generator_type: str,
    parameters: Mapping[str, ParamValue],
    description: Optional[str] = None,
) -> UserPreset:
    """
    Create a new, unsaved user preset.

    The name is cleaned, a fresh id is assigned and the content hash
    is computed from (generator_type, parameters).

    Raises:
        EmptyName: If the name is empty after trimming
        InvalidName: If the name is too long or only markup
        InvalidGeneratorType: If the generator type is blank
        TypeError: If a parameter value is not a scalar
    """
    if not isinstance(generator_type, str) or not generator_type.strip():
        raise InvalidGeneratorType(generator_type)

    params = dict(parameters)
    return UserPreset(
        id=generate_preset_id(),
        name=clean_name(name),
        generator_type=generator_type,
        parameters=params,
        created_at=utcnow(),
        description=clean_description(description),
        content_hash=content_hash(generator_type, params),
    )


def _record_id(record: Any) -> str:
    if isinstance(record, dict):
        return str(record.get("id"))
    return repr(record)


class UserPresetStore:
    """
    Persistent store for user-owned presets.

    Constructed once at startup with its storage medium and notifier,
    then injected into the aggregator, codec and default resolver.
    """

    def __init__(self, storage: KeyValueStorage, notifier: Optional[ChangeNotifier] = None):
        """
        Initialize store.

        Args:
            storage: Key-value medium holding the collection
            notifier: Change notifier fired after every mutation
        """
        self.storage = storage
        self.notifier = notifier or ChangeNotifier()

    # Internal I/O

    def _read_records(self) -> List[Any]:
        raw = self.storage.get(PRESETS_KEY)
        if not raw:
            return []

        try:
            records = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning(f"Failed to decode stored presets, treating as empty: {e}")
            return []
        if not isinstance(records, list):
            logger.warning("Stored presets are not a list, treating as empty")
            return []
        return records

    def _split(
        self, records: List[Any], log: bool = True
    ) -> Tuple[List[UserPreset], List[Any], bool]:
        """
        Parse stored records.

        Returns:
            (presets, unparsed records kept verbatim, whether a rewrite is due)
        """
        presets: List[UserPreset] = []
        unparsed: List[Any] = []
        needs_save = False

        for record in records:
            # Factory presets come from the catalog, never from storage
            if isinstance(record, dict) and record.get("isFactory"):
                if log:
                    logger.info(f"Removing factory preset '{record.get('name')}' from user storage")
                needs_save = True
                continue

            try:
                fields = dict(record)
                migrated = not fields.get("contentHash")
                if migrated:
                    fields["contentHash"] = content_hash(
                        fields["generatorType"], fields["parameters"]
                    )
                presets.append(UserPreset.from_record(fields))
            except (KeyError, TypeError, ValueError, AttributeError, ValidationError) as e:
                if log:
                    logger.warning(f"Skipping unreadable preset record {_record_id(record)}: {e}")
                unparsed.append(record)
                continue

            if migrated:
                if log:
                    logger.info(f"Computed missing content hash for preset '{fields.get('name')}'")
                needs_save = True

        return presets, unparsed, needs_save

    def _load(self) -> List[UserPreset]:
        presets, unparsed, needs_save = self._split(self._read_records())
        if needs_save:
            self._write(presets, unparsed)
        return presets

    def _write(self, presets: Iterable[UserPreset], unparsed: List[Any]) -> None:
        records = [p.to_record() for p in presets] + unparsed
        self.storage.set(PRESETS_KEY, json.dumps(records, ensure_ascii=False))

    def _save(self, presets: Iterable[UserPreset]) -> None:
        # Records this build cannot read are carried through untouched
        _, unparsed, _ = self._split(self._read_records(), log=False)
        self._write(presets, unparsed)

    def _commit(self, presets: Iterable[UserPreset]) -> None:
        self._save(presets)
        self.notifier.notify()

    # Reads

    def all(self) -> List[UserPreset]:
        """Return every user preset in insertion order."""
        return self._load()

    def read(self, generator_type: str) -> List[UserPreset]:
        """Return the user presets for one generator type, in insertion order."""
        return [p for p in self._load() if p.generator_type == generator_type]

    def get(self, preset_id: str) -> Optional[UserPreset]:
        for preset in self._load():
            if preset.id == preset_id:
                return preset
        return None

    def require(self, preset_id: str) -> UserPreset:
        """
        Get a preset or fail.

        Raises:
            PresetNotFound: If no user preset has this id
        """
        preset = self.get(preset_id)
        if preset is None:
            raise PresetNotFound(preset_id)
        return preset

    # Mutations

    def create(self, preset: UserPreset) -> UserPreset:
        """
        Persist a new user preset.

        Raises:
            DuplicateContent: If a preset with the same content exists for the generator type
            DuplicateName: If the name is taken within the generator type
        """
        presets = self._load()
        ConflictResolver.strict().resolve(preset, presets)

        presets.append(preset)
        self._commit(presets)
        logger.info(f"Saved preset '{preset.name}' ({preset.id}) for {preset.generator_type}")
        return preset

    def update(self, preset_id: str, patch: Union[PresetPatch, Dict[str, Any]]) -> UserPreset:
        """
        Apply a patch to an existing preset.

        The id, generator type, creation time and default flag never
        change. A parameter change recomputes the content hash.

        Raises:
            PresetNotFound: If no user preset has this id
            EmptyName, InvalidName: If the new name is unusable
            DuplicateContent: If the new parameters match another preset
            DuplicateName: If the new name is taken within the generator type
        """
        if isinstance(patch, dict):
            patch = PresetPatch.model_validate(patch)

        presets = self._load()
        index = next((i for i, p in enumerate(presets) if p.id == preset_id), None)
        if index is None:
            raise PresetNotFound(preset_id)

        current = presets[index]
        changes: Dict[str, Any] = {}
        fields = patch.model_fields_set

        if "name" in fields:
            changes["name"] = clean_name(patch.name)
        if "description" in fields:
            changes["description"] = clean_description(patch.description)
        if "parameters" in fields and patch.parameters is not None:
            changes["parameters"] = dict(patch.parameters)
            changes["content_hash"] = content_hash(current.generator_type, changes["parameters"])

        if not changes:
            return current

        updated = current.model_copy(update=changes)
        ConflictResolver.strict().resolve(updated, presets)

        presets[index] = updated
        self._commit(presets)
        logger.info(f"Updated preset '{updated.name}' ({preset_id})")
        return updated

    def rename(self, preset_id: str, new_name: str) -> UserPreset:
        return self.update(preset_id, PresetPatch(name=new_name))

    def delete(self, preset_id: str) -> bool:
        """
        Delete a preset by id.

        Returns:
            True if deleted, False if not found
        """
        presets = self._load()
        remaining = [p for p in presets if p.id != preset_id]
        if len(remaining) == len(presets):
            return False

        self._commit(remaining)
        logger.info(f"Deleted preset {preset_id}")
        return True

    def write_batch(self, presets: List[UserPreset]) -> None:
        """
        Replace the whole collection in one write.

        Used by import and default toggling so that multi-preset changes
        land atomically. Callers are responsible for the invariants.
        """
        self._commit(presets)

    def clear_all(self) -> None:
        """Remove every user preset and the last-active id."""
        self.storage.remove(PRESETS_KEY)
        self.storage.remove(LAST_ACTIVE_PRESET_KEY)
        self.notifier.notify()
        logger.info("Cleared all user presets")

    # Last active preset

    def get_last_active(self) -> Optional[str]:
        """
        Stored last active preset id, as written.

        May point at a factory preset or at a preset deleted since;
        the service resolves it.
        """
        return self.storage.get(LAST_ACTIVE_PRESET_KEY) or None

    def set_last_active(self, preset_id: Optional[str]) -> None:
        if preset_id:
            self.storage.set(LAST_ACTIVE_PRESET_KEY, preset_id)
        else:
            self.storage.remove(LAST_ACTIVE_PRESET_KEY)

    # Diagnostics

    def stats(self) -> StorageStats:
        raw = self.storage.get(PRESETS_KEY) or ""
        presets = self._load()
        return StorageStats(
            user_preset_count=len(presets),
            total_storage_size=len(raw),
            last_modified=max((p.created_at for p in presets), default=None),
        )
