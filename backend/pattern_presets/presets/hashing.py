"""
Content hashing for duplicate detection.

A preset's content hash is a pure function of (generator_type, parameters).
Name, id and timestamps never take part, so two presets with identical
settings share a hash no matter what they are called.

The hash is persisted with every user preset, so the canonical form and
the rolling hash below must never change. Records written by the browser
build of the pattern generator carry hashes produced by exactly this
algorithm:

1. Sort parameter keys (UTF-16 code unit order; array-index keys first,
   ascending, the way a JS object orders them).
2. Serialize {"generatorType": ..., "parameters": {...}} as compact JSON,
   numbers formatted the way JSON.stringify formats them.
3. djb2 over the UTF-16 code units with 32-bit wraparound, XOR variant.
4. abs() of the signed 32-bit result, base 36.

This is a dedup heuristic, not a security boundary.
"""

import json
import math
from decimal import Decimal
from typing import Mapping, Union

ParamValue = Union[bool, int, float, str]

_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"
_DJB2_SEED = 5381
_MAX_ARRAY_INDEX = 2 ** 32 - 2


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    if value >= 0x80000000:
        value -= 0x100000000
    return value


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_DIGITS[remainder])
    return "".join(reversed(digits))


def _utf16_units(text: str):
    data = text.encode("utf-16-le", "surrogatepass")
    for i in range(0, len(data), 2):
        yield data[i] | (data[i + 1] << 8)


def _is_array_index(key: str) -> bool:
    if not key.isdigit() or not key.isascii():
        return False
    if len(key) > 1 and key[0] == "0":
        return False
    return int(key) <= _MAX_ARRAY_INDEX


def sort_parameter_keys(parameters: Mapping[str, ParamValue]) -> list:
    """Return parameter keys in canonical order."""
    keys = sorted(parameters.keys(), key=lambda k: k.encode("utf-16-be", "surrogatepass"))
    index_keys = sorted((k for k in keys if _is_array_index(k)), key=int)
    named_keys = [k for k in keys if not _is_array_index(k)]
    return index_keys + named_keys


def format_number(value: Union[int, float]) -> str:
    """Format a number the way JSON.stringify does."""
    if isinstance(value, int):
        return str(value)
    if not math.isfinite(value):
        return "null"
    if value.is_integer() and abs(value) < 1e21:
        return str(int(value))

    text = repr(value)
    if "e" not in text:
        return text
    if 1e-6 <= abs(value) < 1e21:
        return format(Decimal(text), "f")
    mantissa, exponent = text.split("e")
    exp = int(exponent)
    return f"{mantissa}e{'+' if exp > 0 else '-'}{abs(exp)}"


def _encode_value(value: ParamValue) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return format_number(value)
    if isinstance(value, str):
        return json.dumps(value, ensure_ascii=False)
    raise TypeError(f"Unsupported parameter value type: {type(value).__name__}")


def canonical_content(generator_type: str, parameters: Mapping[str, ParamValue]) -> str:
    """Build the canonical serialized form hashed by content_hash()."""
    body = ",".join(
        f"{json.dumps(key, ensure_ascii=False)}:{_encode_value(parameters[key])}"
        for key in sort_parameter_keys(parameters)
    )
    return (
        '{"generatorType":' + json.dumps(generator_type, ensure_ascii=False)
        + ',"parameters":{' + body + "}}"
    )


def djb2(text: str) -> int:
    h = _DJB2_SEED
    for unit in _utf16_units(text):
        h = _to_int32(h * 33) ^ unit
    return h


def content_hash(generator_type: str, parameters: Mapping[str, ParamValue]) -> str:
    """
    Compute the content hash for a generator type and parameter set.

    Args:
        generator_type: Parameter family identifier
        parameters: Parameter values (key order is irrelevant)

    Returns:
        Base-36 hash string

    Raises:
        TypeError: If a parameter value is not a bool, int, float or str
    """
    return _to_base36(abs(djb2(canonical_content(generator_type, parameters))))
