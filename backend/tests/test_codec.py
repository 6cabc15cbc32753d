"""
Tests for preset import and export.

These tests verify that:
1. Export defaults to every user preset and drops unknown ids
2. Import regenerates ids and recomputes hashes
3. Identical content is skipped with a reason naming both presets
4. Clashing names are renamed "Name (N)"
5. Accepted items land in one write; a broken envelope writes nothing
"""

import json
from datetime import date

import pytest

from pattern_presets.persistence.storage import PRESETS_KEY
from pattern_presets.presets.codec import ImportExportCodec, export_filename
from pattern_presets.presets.errors import MalformedImportPayload
from pattern_presets.presets.hashing import content_hash
from pattern_presets.presets.store import build_user_preset


NOISE = "pixelated-noise"


@pytest.fixture
def codec(store):
    return ImportExportCodec(store)


def _item(name, params, generator_type=NOISE, **extra):
    item = {
        "id": "external-id",
        "name": name,
        "generatorType": generator_type,
        "parameters": params,
        "createdAt": "2024-05-01T12:00:00Z",
    }
    item.update(extra)
    return item


def _envelope(*items):
    return {"version": "1.0.0", "presets": list(items), "exportedAt": "2024-05-01T12:00:00Z"}


class TestExport:

    def test_export_all(self, store, codec):
        a = store.create(build_user_preset("A", NOISE, {"x": 1}))
        b = store.create(build_user_preset("B", "brownian-motion", {"x": 1}))

        envelope = codec.export_selection()
        assert [p.id for p in envelope.presets] == [a.id, b.id]

    def test_export_selection_drops_unknown_ids(self, store, codec):
        a = store.create(build_user_preset("A", NOISE, {"x": 1}))
        store.create(build_user_preset("B", NOISE, {"x": 2}))

        envelope = codec.export_selection([a.id, "preset_unknown"])
        assert [p.id for p in envelope.presets] == [a.id]

    def test_wire_shape(self, store, codec):
        store.create(build_user_preset("A", NOISE, {"x": 1}, "desc"))
        data = json.loads(codec.export_json())

        assert data["version"] == "1.0.0"
        assert "exportedAt" in data
        item = data["presets"][0]
        assert item["name"] == "A"
        assert item["generatorType"] == NOISE
        assert item["contentHash"] == content_hash(NOISE, {"x": 1})
        assert item["isFactory"] is False
        assert item["description"] == "desc"

    def test_export_filename(self):
        day = date(2024, 5, 1)
        assert export_filename(today=day) == "pattern-presets-2024-05-01.json"
        assert export_filename(NOISE, today=day) == "pattern-presets-pixelated-noise-2024-05-01.json"


class TestImportConflicts:

    def test_content_duplicate_skipped_without_store_change(self, storage, store, codec):
        store.create(build_user_preset("Cosmic Storm", NOISE, {"pixelSize": 8, "colorIntensity": 0.7}))
        before = storage.get(PRESETS_KEY)

        result = codec.import_envelope(
            _envelope(_item("Digital Rain", {"colorIntensity": 0.7, "pixelSize": 8}))
        )

        assert result.imported_ids == []
        assert len(result.skipped_duplicates) == 1
        assert "Digital Rain" in result.skipped_duplicates[0]
        assert "Cosmic Storm" in result.skipped_duplicates[0]
        assert result.errors == []
        assert storage.get(PRESETS_KEY) == before

    def test_name_duplicate_renamed(self, store, codec):
        store.create(build_user_preset("Original", NOISE, {"pixelSize": 8}))

        result = codec.import_envelope(_envelope(_item("Original", {"pixelSize": 16})))

        assert len(result.imported_ids) == 1
        imported = store.get(result.imported_ids[0])
        assert imported.name == "Original (1)"
        assert imported.content_hash == content_hash(NOISE, {"pixelSize": 16})

    def test_duplicates_within_envelope(self, store, codec):
        result = codec.import_envelope(
            _envelope(
                _item("First", {"pixelSize": 8}),
                _item("Second", {"pixelSize": 8}),
                _item("First", {"pixelSize": 9}),
            )
        )

        assert len(result.imported_ids) == 2
        assert len(result.skipped_duplicates) == 1
        assert [p.name for p in store.read(NOISE)] == ["First", "First (1)"]

    def test_factory_items_skipped(self, store, codec):
        result = codec.import_envelope(_envelope(_item("Classic Static", {"pixelSize": 4}, isFactory=True)))
        assert result.imported_ids == []
        assert "factory preset" in result.skipped_duplicates[0]
        assert store.all() == []


class TestImportNormalization:

    def test_ids_regenerated(self, store, codec):
        result = codec.import_envelope(_envelope(_item("A", {"x": 1})))
        assert result.imported_ids[0] != "external-id"
        assert result.imported_ids[0].startswith("preset_")

    def test_missing_hash_computed(self, store, codec):
        result = codec.import_envelope(_envelope(_item("A", {"x": 1})))
        assert store.get(result.imported_ids[0]).content_hash == content_hash(NOISE, {"x": 1})

    def test_stale_hash_replaced(self, store, codec):
        result = codec.import_envelope(_envelope(_item("A", {"x": 1}, contentHash="bogus")))
        assert store.get(result.imported_ids[0]).content_hash == content_hash(NOISE, {"x": 1})

    def test_stale_hash_cannot_dodge_duplicate_check(self, store, codec):
        store.create(build_user_preset("Mine", NOISE, {"x": 1}))
        result = codec.import_envelope(_envelope(_item("Theirs", {"x": 1}, contentHash="bogus")))
        assert result.imported_ids == []

    def test_default_flags_dropped(self, store, codec):
        result = codec.import_envelope(_envelope(_item("A", {"x": 1}, isUserDefault=True)))
        assert store.get(result.imported_ids[0]).is_user_default is False

    def test_names_cleaned(self, store, codec):
        result = codec.import_envelope(_envelope(_item("  <b>Bold</b>  ", {"x": 1})))
        assert store.get(result.imported_ids[0]).name == "Bold"

    def test_format_version_key_accepted(self, store, codec):
        envelope = {"formatVersion": "0.9.0", "presets": [_item("A", {"x": 1})]}
        assert len(codec.import_envelope(envelope).imported_ids) == 1


class TestImportErrors:

    @pytest.mark.parametrize("envelope", [None, [], "text", {"presets": "nope"}, {"version": "1.0.0"}])
    def test_malformed_envelope_raises(self, storage, store, codec, envelope):
        store.create(build_user_preset("A", NOISE, {"x": 1}))
        before = storage.get(PRESETS_KEY)

        with pytest.raises(MalformedImportPayload):
            codec.import_envelope(envelope)
        assert storage.get(PRESETS_KEY) == before

    def test_invalid_json_text(self, codec):
        with pytest.raises(MalformedImportPayload):
            codec.import_json("{not json")

    def test_bad_items_reported_rest_imported(self, store, codec):
        result = codec.import_envelope(
            _envelope(
                _item("Good", {"x": 1}),
                _item("", {"x": 2}),
                _item("Nested", {"x": [1, 2]}),
                {"name": "No Type", "parameters": {"x": 3}},
                "garbage",
            )
        )

        assert len(result.imported_ids) == 1
        assert len(result.errors) == 4
        assert any("Nested" in e for e in result.errors)
        assert [p.name for p in store.all()] == ["Good"]


class TestImportWrites:

    def test_single_batch_write(self, store, codec):
        calls = []
        store.notifier.subscribe(lambda: calls.append(1))

        codec.import_envelope(_envelope(_item("A", {"x": 1}), _item("B", {"x": 2}), _item("C", {"x": 3})))

        assert calls == [1]
        assert len(store.all()) == 3

    def test_nothing_imported_writes_nothing(self, store, codec):
        calls = []
        store.notifier.subscribe(lambda: calls.append(1))
        codec.import_envelope(_envelope())
        assert calls == []

    def test_export_then_import_into_fresh_store(self, store, codec):
        from pattern_presets.persistence.storage import MemoryStorage
        from pattern_presets.presets.store import UserPresetStore

        store.create(build_user_preset("A", NOISE, {"x": 1}, "first"))
        store.create(build_user_preset("B", "brownian-motion", {"y": True}))
        text = codec.export_json()

        fresh = UserPresetStore(MemoryStorage())
        result = ImportExportCodec(fresh).import_json(text)

        assert len(result.imported_ids) == 2
        assert [(p.name, p.content_hash) for p in fresh.all()] == [
            (p.name, p.content_hash) for p in store.all()
        ]
        assert fresh.all()[0].description == "first"


class TestImportSummary:

    def test_summary_lines(self, store, codec):
        store.create(build_user_preset("Cosmic Storm", NOISE, {"x": 1}))
        result = codec.import_envelope(
            _envelope(_item("Digital Rain", {"x": 1}), _item("New", {"x": 2}), _item("", {"x": 3}))
        )
        summary = result.summary()

        assert "Imported 1 preset" in summary
        assert "Skipped 1 duplicate" in summary
        assert "Failed to import 1" in summary

    def test_empty_summary(self, codec):
        assert codec.import_envelope(_envelope()).summary() == "Nothing to import"
