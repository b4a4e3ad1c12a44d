"""
StyleValue -> CSS string, plus structural equality.
"""

import math
from typing import List, Optional

from .color import color_to_string
from .numbers import format_number
from .values import (
    ColorValue,
    KeywordValue,
    NumberValue,
    StyleValue,
    TupleValue,
    UnitValue,
    UnparsedValue,
    VarValue,
)


SERIALIZER_CONFIG = {
    "max_decimals": 4,
    "color_format": None,     # None keeps each color's native form
    "use_shorthand": False,
    "color_tolerance": 1e-2,  # channel/alpha delta accepted by style_values_close
}

__all__ = [
    "SERIALIZER_CONFIG",
    "collapse_tuple_values",
    "format_number",
    "serialize_style_value",
    "style_values_close",
    "style_values_equal",
    "to_value",
]


def to_value(value: StyleValue) -> str:
    """Serialize a StyleValue with the default options."""
    return serialize_style_value(value)


def collapse_tuple_values(values: List[str]) -> Optional[str]:
    """
    Collapse four box values (top, right, bottom, left) into shorthand.

    ["10px", "10px", "10px", "10px"] -> "10px"
    ["10px", "20px", "10px", "20px"] -> "10px 20px"
    ["10px", "20px", "30px", "20px"] -> "10px 20px 30px"

    Returns:
        Collapsed string, or None when no shorter form applies
    """
    if len(values) != 4:
        return None

    top, right, bottom, left = values

    if top == right == bottom == left:
        return top
    if top == bottom and right == left:
        return f"{top} {right}"
    if right == left:
        return f"{top} {right} {bottom}"
    return None


def serialize_style_value(
    value: StyleValue,
    max_decimals: Optional[int] = None,
    color_format: Optional[str] = None,
    use_shorthand: Optional[bool] = None,
) -> str:
    """
    Convert a StyleValue to a CSS value string.

    Args:
        value: StyleValue to serialize
        max_decimals: Maximum decimal places for numbers
        color_format: Explicit color output format (hex, rgb, hsl, oklch, oklab)
        use_shorthand: Collapse four-value tuples where possible

    Returns:
        CSS value string
    """
    if max_decimals is None:
        max_decimals = SERIALIZER_CONFIG["max_decimals"]
    if color_format is None:
        color_format = SERIALIZER_CONFIG["color_format"]
    if use_shorthand is None:
        use_shorthand = SERIALIZER_CONFIG["use_shorthand"]

    if isinstance(value, UnitValue):
        return f"{format_number(value.value, max_decimals)}{value.unit}"

    if isinstance(value, NumberValue):
        return format_number(value.value, max_decimals)

    if isinstance(value, (KeywordValue, UnparsedValue)):
        return value.value

    if isinstance(value, ColorValue):
        return color_to_string(value, color_format, max_decimals)

    if isinstance(value, VarValue):
        if value.fallback is not None:
            fallback = serialize_style_value(value.fallback, max_decimals, color_format, use_shorthand)
            return f"var({value.name}, {fallback})"
        return f"var({value.name})"

    if isinstance(value, TupleValue):
        serialized = [
            serialize_style_value(v, max_decimals, color_format, use_shorthand)
            for v in value.values
        ]
        if use_shorthand:
            collapsed = collapse_tuple_values(serialized)
            if collapsed is not None:
                return collapsed
        return " ".join(serialized)

    raise TypeError(f"Not a StyleValue: {value!r}")


def _compare(a: StyleValue, b: StyleValue, color_tolerance: Optional[float]) -> bool:
    if type(a) is not type(b):
        return False

    if isinstance(a, UnitValue):
        return a.value == b.value and a.unit == b.unit

    if isinstance(a, (NumberValue, KeywordValue, UnparsedValue)):
        return a.value == b.value

    if isinstance(a, ColorValue):
        if a.color_space != b.color_space:
            return False
        if color_tolerance is None:
            return a.alpha == b.alpha and a.channels == b.channels
        pairs = zip(a.channels + (a.alpha,), b.channels + (b.alpha,))
        return all(math.isclose(x, y, abs_tol=color_tolerance) for x, y in pairs)

    if isinstance(a, VarValue):
        if a.name != b.name:
            return False
        if a.fallback is None or b.fallback is None:
            return a.fallback is None and b.fallback is None
        return _compare(a.fallback, b.fallback, color_tolerance)

    if isinstance(a, TupleValue):
        if len(a.values) != len(b.values):
            return False
        return all(_compare(x, y, color_tolerance) for x, y in zip(a.values, b.values))

    return False


def style_values_equal(a: StyleValue, b: StyleValue) -> bool:
    """Exact structural equality. Values of different types are never equal."""
    return _compare(a, b, None)


def style_values_close(a: StyleValue, b: StyleValue, tolerance: Optional[float] = None) -> bool:
    """
    Structural equality that accepts small color channel deltas.

    Used when comparing a value read back from a stylesheet against one the
    client computed, where color-space math loses precision.
    """
    if tolerance is None:
        tolerance = SERIALIZER_CONFIG["color_tolerance"]
    return _compare(a, b, tolerance)
