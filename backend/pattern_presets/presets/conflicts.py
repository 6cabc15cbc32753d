"""
Duplicate and name-collision policy.

Collisions are only ever checked within one generator type and one
origin (the caller passes the user collection). A user preset that
recreates a factory preset is fine.

Content collision is always evaluated before name collision.

Call sites pick the policy:
- direct save / rename: STRICT for both checks, nothing is written
- import: SKIP_WITH_REASON for content, AUTO_RENAME for names
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from .errors import DuplicateContent, DuplicateName
from .models import UserPreset


class ConflictPolicy(str, Enum):
    """How a collision is handled."""

    STRICT = "strict"
    AUTO_RENAME = "auto_rename"
    SKIP_WITH_REASON = "skip_with_reason"


class ConflictOutcome(str, Enum):
    ACCEPTED = "accepted"
    RENAMED = "renamed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class Resolution:
    """
    Result of resolving one candidate against a collection.

    preset is the version to write (possibly renamed), None when skipped.
    existing is the preset the candidate collided with, if any.
    """

    outcome: ConflictOutcome
    preset: Optional[UserPreset]
    existing: Optional[UserPreset] = None
    reason: Optional[str] = None


def find_content_duplicate(
    candidate: UserPreset,
    existing: Iterable[UserPreset],
) -> Optional[UserPreset]:
    for preset in existing:
        if preset.id == candidate.id:
            continue
        if (
            preset.generator_type == candidate.generator_type
            and preset.content_hash == candidate.content_hash
        ):
            return preset
    return None


def find_name_duplicate(
    candidate: UserPreset,
    existing: Iterable[UserPreset],
) -> Optional[UserPreset]:
    for preset in existing:
        if preset.id == candidate.id:
            continue
        if preset.generator_type == candidate.generator_type and preset.name == candidate.name:
            return preset
    return None


def unique_name(base_name: str, generator_type: str, existing: Iterable[UserPreset]) -> str:
    """Append " (N)" with the smallest N that is free within the generator type."""
    taken = {p.name for p in existing if p.generator_type == generator_type}
    counter = 1
    while f"{base_name} ({counter})" in taken:
        counter += 1
    return f"{base_name} ({counter})"


class ConflictResolver:
    """
    Applies one policy to content collisions and one to name collisions.

    Content policy must be STRICT or SKIP_WITH_REASON; renaming cannot
    resolve identical content.
    """

    def __init__(
        self,
        on_content: ConflictPolicy = ConflictPolicy.STRICT,
        on_name: ConflictPolicy = ConflictPolicy.STRICT,
    ):
        if on_content == ConflictPolicy.AUTO_RENAME:
            raise ValueError("Content collisions cannot be resolved by renaming")
        self.on_content = on_content
        self.on_name = on_name

    @classmethod
    def strict(cls) -> "ConflictResolver":
        """Policy for direct saves: any collision aborts."""
        return cls(ConflictPolicy.STRICT, ConflictPolicy.STRICT)

    @classmethod
    def for_import(cls) -> "ConflictResolver":
        """Policy for imports: skip identical content, rename clashing names."""
        return cls(ConflictPolicy.SKIP_WITH_REASON, ConflictPolicy.AUTO_RENAME)

    def resolve(self, candidate: UserPreset, existing: Iterable[UserPreset]) -> Resolution:
        """
        Resolve a candidate against an existing collection.

        Args:
            candidate: The preset about to be written
            existing: Presets already in the same origin

        Returns:
            Resolution describing what to write

        Raises:
            DuplicateContent: Content collision under STRICT
            DuplicateName: Name collision under STRICT
        """
        existing = list(existing)

        content_match = find_content_duplicate(candidate, existing)
        if content_match is not None:
            if self.on_content == ConflictPolicy.STRICT:
                raise DuplicateContent(content_match.name, candidate.generator_type, content_match.id)
            return Resolution(
                outcome=ConflictOutcome.SKIPPED,
                preset=None,
                existing=content_match,
                reason=f'"{candidate.name}" (identical to existing "{content_match.name}")',
            )

        name_match = find_name_duplicate(candidate, existing)
        if name_match is None:
            return Resolution(outcome=ConflictOutcome.ACCEPTED, preset=candidate)

        if self.on_name == ConflictPolicy.STRICT:
            raise DuplicateName(candidate.name, candidate.generator_type)
        if self.on_name == ConflictPolicy.SKIP_WITH_REASON:
            return Resolution(
                outcome=ConflictOutcome.SKIPPED,
                preset=None,
                existing=name_match,
                reason=f'"{candidate.name}" (name already used by existing "{name_match.name}")',
            )

        renamed = candidate.model_copy(
            update={"name": unique_name(candidate.name, candidate.generator_type, existing)}
        )
        return Resolution(outcome=ConflictOutcome.RENAMED, preset=renamed, existing=name_match)
