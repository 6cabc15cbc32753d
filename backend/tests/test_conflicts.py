"""
Tests for duplicate and name-collision policies.
"""

import pytest

from pattern_presets.presets.conflicts import (
    ConflictOutcome,
    ConflictPolicy,
    ConflictResolver,
    unique_name,
)
from pattern_presets.presets.errors import DuplicateContent, DuplicateName
from pattern_presets.presets.store import build_user_preset


NOISE = "pixelated-noise"


@pytest.fixture
def existing():
    return [
        build_user_preset("Original", NOISE, {"pixelSize": 8}),
        build_user_preset("Original (1)", NOISE, {"pixelSize": 9}),
        build_user_preset("Original (3)", NOISE, {"pixelSize": 10}),
        build_user_preset("Walk", "brownian-motion", {"stepSize": 1}),
    ]


class TestUniqueName:

    def test_smallest_free_suffix(self, existing):
        assert unique_name("Original", NOISE, existing) == "Original (2)"

    def test_first_suffix(self, existing):
        assert unique_name("Walk", "brownian-motion", existing) == "Walk (1)"

    def test_other_generator_types_ignored(self, existing):
        assert unique_name("Original", "brownian-motion", existing) == "Original (1)"


class TestStrictPolicy:
    """Direct saves: any collision aborts."""

    def test_no_collision_accepted(self, existing):
        candidate = build_user_preset("Fresh", NOISE, {"pixelSize": 99})
        resolution = ConflictResolver.strict().resolve(candidate, existing)
        assert resolution.outcome == ConflictOutcome.ACCEPTED
        assert resolution.preset is candidate

    def test_content_collision_raises(self, existing):
        candidate = build_user_preset("Other", NOISE, {"pixelSize": 8})
        with pytest.raises(DuplicateContent) as exc:
            ConflictResolver.strict().resolve(candidate, existing)
        assert exc.value.existing_name == "Original"
        assert exc.value.existing_id == existing[0].id

    def test_name_collision_raises(self, existing):
        candidate = build_user_preset("Original", NOISE, {"pixelSize": 99})
        with pytest.raises(DuplicateName):
            ConflictResolver.strict().resolve(candidate, existing)

    def test_candidate_does_not_collide_with_itself(self, existing):
        resolution = ConflictResolver.strict().resolve(existing[0], existing)
        assert resolution.outcome == ConflictOutcome.ACCEPTED


class TestImportPolicy:
    """Imports: skip identical content, rename clashing names."""

    def test_content_collision_skipped_with_both_names(self, existing):
        candidate = build_user_preset("Imported", NOISE, {"pixelSize": 8})
        resolution = ConflictResolver.for_import().resolve(candidate, existing)

        assert resolution.outcome == ConflictOutcome.SKIPPED
        assert resolution.preset is None
        assert resolution.existing is existing[0]
        assert '"Imported"' in resolution.reason
        assert '"Original"' in resolution.reason

    def test_content_checked_before_name(self, existing):
        candidate = build_user_preset("Original", NOISE, {"pixelSize": 8})
        resolution = ConflictResolver.for_import().resolve(candidate, existing)
        assert resolution.outcome == ConflictOutcome.SKIPPED

    def test_name_collision_renamed_hash_unchanged(self, existing):
        candidate = build_user_preset("Original", NOISE, {"pixelSize": 42})
        resolution = ConflictResolver.for_import().resolve(candidate, existing)

        assert resolution.outcome == ConflictOutcome.RENAMED
        assert resolution.preset.name == "Original (2)"
        assert resolution.preset.content_hash == candidate.content_hash
        assert resolution.preset.id == candidate.id

    def test_name_skip_policy(self, existing):
        resolver = ConflictResolver(ConflictPolicy.SKIP_WITH_REASON, ConflictPolicy.SKIP_WITH_REASON)
        candidate = build_user_preset("Original", NOISE, {"pixelSize": 42})
        resolution = resolver.resolve(candidate, existing)
        assert resolution.outcome == ConflictOutcome.SKIPPED
        assert "name already used" in resolution.reason

    def test_content_cannot_be_renamed(self):
        with pytest.raises(ValueError):
            ConflictResolver(on_content=ConflictPolicy.AUTO_RENAME)
