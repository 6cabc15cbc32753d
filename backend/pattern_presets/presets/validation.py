"""
Preset name cleaning, parameter compatibility checks, and modification detection.

Parameter checks are existence and range only. What a parameter means
is the generator's business, not the preset system's.
"""

import re
from typing import Dict, Mapping, Optional, Sequence

from .errors import EmptyName, InvalidName
from .models import ParameterControl, ParameterValidationResult, ParamValue, PresetCore

MAX_NAME_LENGTH = 50

# Epsilon for floating-point comparison
FLOAT_COMPARISON_EPSILON = 1e-10

_SCRIPT_BLOCK = re.compile(r"<script[^>]*>.*?</script>", re.IGNORECASE)
_HTML_TAG = re.compile(r"<[^>]*>")
_JS_SCHEME = re.compile(r"javascript:", re.IGNORECASE)
_INLINE_HANDLER = re.compile(r"on\w+\s*=", re.IGNORECASE)


def clean_name(name: Optional[str]) -> str:
    """
    Trim and sanitize a preset name.

    Markup, script blocks, javascript: schemes and inline event
    handlers are stripped.

    Raises:
        EmptyName: If nothing is left after trimming
        InvalidName: If the name is too long or only markup
    """
    if name is None or not isinstance(name, str):
        raise EmptyName()

    trimmed = name.strip()
    if not trimmed:
        raise EmptyName()
    if len(trimmed) > MAX_NAME_LENGTH:
        raise InvalidName(trimmed, f"must be at most {MAX_NAME_LENGTH} characters")

    cleaned = _SCRIPT_BLOCK.sub("", trimmed)
    cleaned = _HTML_TAG.sub("", cleaned)
    cleaned = _JS_SCHEME.sub("", cleaned)
    cleaned = _INLINE_HANDLER.sub("", cleaned)
    cleaned = cleaned.strip()

    if not cleaned:
        raise InvalidName(trimmed, "no usable text left after removing markup")
    return cleaned


def is_valid_name(name: Optional[str]) -> bool:
    try:
        clean_name(name)
    except (EmptyName, InvalidName):
        return False
    return True


def clean_description(description: Optional[str]) -> Optional[str]:
    if description is None:
        return None
    trimmed = description.strip()
    return trimmed or None


def validate_parameters(
    preset: PresetCore,
    controls: Sequence[ParameterControl],
) -> ParameterValidationResult:
    """
    Check a preset's parameters against the generator's current controls.

    Warnings are produced for:
    - parameters with no matching control
    - numeric values outside a range control's min/max

    Args:
        preset: The preset to check
        controls: The generator's current controls

    Returns:
        ParameterValidationResult (valid when there are no warnings)
    """
    by_id = {control.id: control for control in controls}
    warnings = []

    for param_id, value in preset.parameters.items():
        control = by_id.get(param_id)
        if control is None:
            warnings.append(f'Parameter "{param_id}" no longer exists in current pattern')
            continue

        if control.type != "range" or isinstance(value, bool) or not isinstance(value, (int, float)):
            continue
        if control.min is not None and value < control.min:
            warnings.append(f'Parameter "{param_id}" value {value} is below minimum {control.min}')
        if control.max is not None and value > control.max:
            warnings.append(f'Parameter "{param_id}" value {value} is above maximum {control.max}')

    return ParameterValidationResult(valid=not warnings, warnings=warnings)


def filter_to_controls(
    parameters: Mapping[str, ParamValue],
    controls: Sequence[ParameterControl],
) -> Dict[str, ParamValue]:
    """Drop parameters that no longer have a control."""
    control_ids = {control.id for control in controls}
    return {key: value for key, value in parameters.items() if key in control_ids}


def values_equal(a: ParamValue, b: ParamValue) -> bool:
    """Type-strict equality with an epsilon for numbers."""
    a_is_number = isinstance(a, (int, float)) and not isinstance(a, bool)
    b_is_number = isinstance(b, (int, float)) and not isinstance(b, bool)
    if a_is_number and b_is_number:
        return abs(a - b) < FLOAT_COMPARISON_EPSILON
    if type(a) is not type(b):
        return False
    return a == b


def is_modified(
    current_values: Mapping[str, ParamValue],
    preset: Optional[PresetCore],
) -> bool:
    """
    Report whether the current control values drift from a preset.

    Keys present on only one side are ignored (controls may be added
    or removed between versions).
    """
    if preset is None:
        return False

    for key, current in current_values.items():
        if key not in preset.parameters:
            continue
        if not values_equal(current, preset.parameters[key]):
            return True
    return False


def display_name(
    preset: Optional[PresetCore],
    current_values: Mapping[str, ParamValue],
) -> str:
    """Preset name, with a trailing '*' when the current values differ."""
    if preset is None:
        return ""
    return f"{preset.name}*" if is_modified(current_values, preset) else preset.name


def is_at_defaults(
    current_values: Mapping[str, ParamValue],
    controls: Sequence[ParameterControl],
) -> bool:
    """True when every control sits at its default value."""
    for control in controls:
        if control.default_value is None:
            continue
        if control.id not in current_values:
            return False
        if not values_equal(current_values[control.id], control.default_value):
            return False
    return True
