"""
Tests for the preset service facade.

Covers the consumer-facing flows: save, load, delete, list, import and
the last active preset.
"""

import asyncio

import pytest

from pattern_presets.presets.errors import DuplicateContent, InvalidGeneratorType, PresetNotFound
from pattern_presets.presets.models import ParameterControl


NOISE = "pixelated-noise"


class TestSaveAndList:

    def test_cosmic_storm_scenario(self, service):
        storm = service.save("Cosmic Storm", NOISE, {"pixelSize": 8, "colorIntensity": 0.7})
        assert storm.name == "Cosmic Storm"

        with pytest.raises(DuplicateContent) as exc:
            service.save("Digital Rain", NOISE, {"pixelSize": 8, "colorIntensity": 0.7})
        assert exc.value.existing_name == "Cosmic Storm"

    def test_list_factory_first(self, service):
        mine = service.save("Mine", NOISE, {"pixelSize": 3})
        presets = asyncio.run(service.list_for_generator_type(NOISE))

        assert [p.id for p in presets] == ["factory-noise-classic", "factory-noise-blocks", mine.id]

    def test_user_may_recreate_factory_content(self, service):
        service.save("My Classic", NOISE, {"pixelSize": 4, "colorIntensity": 0.5})
        presets = asyncio.run(service.list_for_generator_type(NOISE))

        hashes = [p.content_hash for p in presets]
        assert hashes[0] == hashes[-1]

    def test_blank_generator_type(self, service):
        with pytest.raises(InvalidGeneratorType):
            service.save("Nameless", "   ", {"pixelSize": 3})
        assert service.store.all() == []

    def test_save_sets_last_active(self, service):
        preset = service.save("Mine", NOISE, {"pixelSize": 3})
        assert asyncio.run(service.last_active()) == preset.id


class TestLoad:

    def test_load_user_preset(self, service):
        preset = service.save("Mine", NOISE, {"pixelSize": 3})
        service.store.set_last_active(None)

        loaded = asyncio.run(service.load(preset.id))
        assert loaded.preset.id == preset.id
        assert loaded.parameters == {"pixelSize": 3}
        assert loaded.warnings == []
        assert asyncio.run(service.last_active()) == preset.id

    def test_load_factory_preset(self, service):
        loaded = asyncio.run(service.load("factory-noise-blocks"))
        assert loaded.preset.is_factory is True
        assert asyncio.run(service.last_active()) == "factory-noise-blocks"

    def test_load_with_controls(self, service):
        preset = service.save("Old", NOISE, {"pixelSize": 64, "retired": True})
        controls = [ParameterControl(id="pixelSize", min=1, max=32)]

        loaded = asyncio.run(service.load(preset.id, controls))
        assert loaded.parameters == {"pixelSize": 64}
        assert len(loaded.warnings) == 2

    def test_load_unknown(self, service):
        with pytest.raises(PresetNotFound):
            asyncio.run(service.load("preset_missing"))


class TestDelete:

    def test_delete_clears_last_active(self, service):
        preset = service.save("Mine", NOISE, {"pixelSize": 3})
        assert service.delete(preset.id) is True
        assert service.store.get_last_active() is None

    def test_delete_other_keeps_last_active(self, service):
        first = service.save("First", NOISE, {"pixelSize": 3})
        second = service.save("Second", NOISE, {"pixelSize": 4})
        service.delete(first.id)
        assert asyncio.run(service.last_active()) == second.id

    def test_stale_last_active_resolves_to_none(self, service):
        preset = service.save("Mine", NOISE, {"pixelSize": 3})
        service.store.delete(preset.id)
        assert service.store.get_last_active() == preset.id
        assert asyncio.run(service.last_active()) is None

    def test_delete_default(self, service):
        preset = service.save("Mine", NOISE, {"pixelSize": 3})
        service.set_user_default(preset.id)
        service.delete(preset.id)

        assert service.get_user_default(NOISE) is None
        effective = asyncio.run(service.get_effective_default(NOISE))
        assert effective.id == "factory-noise-classic"


class TestImportExport:

    def test_import_text_sets_last_active(self, service):
        result = service.import_envelope(
            '{"version": "1.0.0", "presets": [{"name": "A", "generatorType": "pixelated-noise",'
            ' "parameters": {"pixelSize": 3}}]}'
        )
        assert len(result.imported_ids) == 1
        assert service.store.get_last_active() == result.imported_ids[0]

    def test_export_selection(self, service):
        a = service.save("A", NOISE, {"pixelSize": 3})
        service.save("B", NOISE, {"pixelSize": 4})
        assert [p.id for p in service.export_selection([a.id]).presets] == [a.id]


class TestSubscribe:

    def test_mutations_signal_subscribers(self, service):
        calls = []
        unsubscribe = service.subscribe(lambda: calls.append(1))

        preset = service.save("A", NOISE, {"pixelSize": 3})
        service.rename(preset.id, "B")
        service.set_user_default(preset.id)
        service.clear_user_default(NOISE)
        service.delete(preset.id)
        assert len(calls) == 5

        unsubscribe()
        service.save("C", NOISE, {"pixelSize": 5})
        assert len(calls) == 5
