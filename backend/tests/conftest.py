"""
Pytest configuration for the preset test suite.
"""

import json
import sys
from pathlib import Path

import pytest

# Add backend to Python path for test imports
backend_path = Path(__file__).parent.parent
sys.path.insert(0, str(backend_path))

from pattern_presets.persistence.storage import MemoryStorage  # noqa: E402
from pattern_presets.presets.catalog import FactoryCatalogLoader  # noqa: E402
from pattern_presets.presets.notifier import ChangeNotifier  # noqa: E402
from pattern_presets.presets.service import PresetService  # noqa: E402
from pattern_presets.presets.store import UserPresetStore  # noqa: E402


TEST_CATALOG = {
    "version": "1.0.0",
    "presets": [
        {
            "id": "factory-noise-classic",
            "name": "Classic Static",
            "generatorType": "pixelated-noise",
            "parameters": {"pixelSize": 4, "colorIntensity": 0.5},
            "description": "Fine grain static",
            "category": "Classic",
            "isDefault": True,
        },
        {
            "id": "factory-noise-blocks",
            "name": "Chunky Blocks",
            "generatorType": "pixelated-noise",
            "parameters": {"pixelSize": 16, "colorIntensity": 0.9},
            "category": "Enhanced",
        },
        {
            "id": "factory-circle-lissajous",
            "name": "Lissajous 3:2",
            "generatorType": "trigonometric-circle",
            "parameters": {"frequencyX": 3, "frequencyY": 2},
            "category": "Enhanced",
        },
        {
            # Missing parameters: skipped by the loader
            "id": "factory-broken",
            "name": "Broken",
            "generatorType": "pixelated-noise",
        },
    ],
}


@pytest.fixture
def catalog_path(tmp_path):
    path = tmp_path / "factory-presets.json"
    path.write_text(json.dumps(TEST_CATALOG), encoding="utf-8")
    return path


@pytest.fixture
def catalog(catalog_path):
    return FactoryCatalogLoader(catalog_path)


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def notifier():
    return ChangeNotifier()


@pytest.fixture
def store(storage, notifier):
    return UserPresetStore(storage, notifier)


@pytest.fixture
def service(store, catalog, notifier):
    return PresetService(store, catalog, notifier)
