"""
Tests for name cleaning, parameter compatibility and modification detection.
"""

import pytest

from pattern_presets.presets.errors import EmptyName, InvalidName
from pattern_presets.presets.models import ParameterControl
from pattern_presets.presets.store import build_user_preset
from pattern_presets.presets.validation import (
    clean_description,
    clean_name,
    display_name,
    filter_to_controls,
    is_at_defaults,
    is_modified,
    is_valid_name,
    validate_parameters,
)


CONTROLS = [
    ParameterControl(id="pixelSize", min=1, max=32, default_value=4),
    ParameterControl(id="colorIntensity", min=0, max=1, default_value=0.5),
    ParameterControl(id="mode", type="select", default_value="mono"),
]


class TestNames:

    def test_trimmed(self):
        assert clean_name("  Cosmic Storm  ") == "Cosmic Storm"

    @pytest.mark.parametrize("name", ["", "   ", None])
    def test_empty(self, name):
        with pytest.raises(EmptyName):
            clean_name(name)

    def test_length_limit(self):
        assert clean_name("x" * 50) == "x" * 50
        with pytest.raises(InvalidName):
            clean_name("x" * 51)

    def test_markup_stripped(self):
        assert clean_name("<script>alert(1)</script>Storm") == "Storm"
        assert clean_name("<i>Storm</i>") == "Storm"
        assert clean_name("javascript:Storm") == "Storm"

    def test_only_markup(self):
        with pytest.raises(InvalidName):
            clean_name("<b></b>")

    def test_is_valid_name(self):
        assert is_valid_name("Storm") is True
        assert is_valid_name(" ") is False

    def test_description(self):
        assert clean_description(None) is None
        assert clean_description("   ") is None
        assert clean_description(" Windy ") == "Windy"


class TestParameterCompatibility:

    def test_compatible(self):
        preset = build_user_preset("A", "pixelated-noise", {"pixelSize": 8, "colorIntensity": 0.7})
        result = validate_parameters(preset, CONTROLS)
        assert result.valid is True
        assert result.warnings == []

    def test_missing_control_and_out_of_range(self):
        preset = build_user_preset(
            "A", "pixelated-noise", {"pixelSize": 64, "colorIntensity": -0.5, "retired": 1}
        )
        result = validate_parameters(preset, CONTROLS)

        assert result.valid is False
        assert len(result.warnings) == 3
        assert any("retired" in w and "no longer exists" in w for w in result.warnings)
        assert any("above maximum" in w for w in result.warnings)
        assert any("below minimum" in w for w in result.warnings)

    def test_non_range_controls_not_range_checked(self):
        preset = build_user_preset("A", "pixelated-noise", {"mode": "color"})
        assert validate_parameters(preset, CONTROLS).valid is True

    def test_filter_to_controls(self):
        params = {"pixelSize": 8, "retired": 1}
        assert filter_to_controls(params, CONTROLS) == {"pixelSize": 8}


class TestModification:

    @pytest.fixture
    def preset(self):
        return build_user_preset("Storm", "pixelated-noise", {"pixelSize": 8, "colorIntensity": 0.7})

    def test_unmodified(self, preset):
        assert is_modified({"pixelSize": 8, "colorIntensity": 0.7}, preset) is False
        assert display_name(preset, {"pixelSize": 8, "colorIntensity": 0.7}) == "Storm"

    def test_float_epsilon(self, preset):
        assert is_modified({"pixelSize": 8, "colorIntensity": 0.1 + 0.6}, preset) is False

    def test_modified(self, preset):
        assert is_modified({"pixelSize": 9}, preset) is True
        assert display_name(preset, {"pixelSize": 9}) == "Storm*"

    def test_type_change_is_modification(self, preset):
        assert is_modified({"pixelSize": "8"}, preset) is True

    def test_extra_keys_ignored(self, preset):
        assert is_modified({"pixelSize": 8, "newControl": 1}, preset) is False

    def test_no_preset(self):
        assert is_modified({"pixelSize": 8}, None) is False
        assert display_name(None, {"pixelSize": 8}) == ""

    def test_at_defaults(self):
        assert is_at_defaults({"pixelSize": 4, "colorIntensity": 0.5, "mode": "mono"}, CONTROLS) is True
        assert is_at_defaults({"pixelSize": 5, "colorIntensity": 0.5, "mode": "mono"}, CONTROLS) is False
        assert is_at_defaults({"pixelSize": 4}, CONTROLS) is False
