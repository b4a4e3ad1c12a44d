"""
CSS value parser: raw declaration value -> StyleValue.

Covers the common cases (dimensions, numbers, keywords, colors, var() and
space-separated lists). Math functions, gradients, image references and
multi-shadow lists pass through as UnparsedValue on purpose.
"""

import re
from typing import List

from alara.logging_config import logger
from .color import COLOR_FUNCTIONS, is_color_string, parse_color
from .values import (
    CSS_UNITS,
    StyleValue,
    TupleValue,
    create_keyword_value,
    create_number_value,
    create_tuple_value,
    create_unit_value,
    create_unparsed_value,
    create_var_value,
)


# Maximum var() fallback nesting accepted before giving up
MAX_NESTING_DEPTH = 16

COLOR_PROPERTIES = (
    "color",
    "background-color",
    "border-color",
    "border-top-color",
    "border-right-color",
    "border-bottom-color",
    "border-left-color",
    "outline-color",
    "text-decoration-color",
    "fill",
    "stroke",
    "caret-color",
    "accent-color",
)

_COMPLEX_PATTERNS = [
    re.compile(r"\bcalc\s*\("),
    re.compile(r"\bmin\s*\("),
    re.compile(r"\bmax\s*\("),
    re.compile(r"\bclamp\s*\("),
    re.compile(r"gradient\s*\("),
    re.compile(r"\burl\s*\("),
    re.compile(r"\bimage\s*\("),
]

_DIMENSION_RE = re.compile(r"^([+-]?(?:\d+\.?\d*|\.\d+)(?:e[+-]?\d+)?)([a-z%]*)$", re.IGNORECASE)
_IDENT_RE = re.compile(r"^-{0,2}[a-z_][a-z0-9_-]*$", re.IGNORECASE)
_FUNCTION_RE = re.compile(r"^([a-z-]+)\((.*)\)$", re.IGNORECASE | re.DOTALL)


def is_color_property(property: str) -> bool:
    return property.lower() in COLOR_PROPERTIES


def is_complex_value(value: str) -> bool:
    """Check whether a value is outside the parsed subset of CSS."""
    lower = value.lower()
    if any(pattern.search(lower) for pattern in _COMPLEX_PATTERNS):
        return True
    # Multiple shadows
    return "," in value and "shadow" in lower


def split_top_level(value: str, separator: str = " ") -> List[str]:
    """
    Split a value on a separator, ignoring separators nested in parentheses
    or quotes. A space separator splits on any whitespace run.
    """
    parts = []
    current = []
    depth = 0
    quote = None

    for ch in value:
        if quote:
            current.append(ch)
            if ch == quote:
                quote = None
            continue
        if ch in ("'", '"'):
            quote = ch
        elif ch == "(":
            depth += 1
        elif ch == ")":
            depth = max(0, depth - 1)
        elif depth == 0:
            is_separator = ch.isspace() if separator == " " else ch == separator
            if is_separator:
                parts.append("".join(current))
                current = []
                continue
        current.append(ch)

    if quote or depth:
        raise ValueError(f"Unbalanced value: {value}")

    parts.append("".join(current))
    if separator == " ":
        return [p for p in parts if p]
    return [p.strip() for p in parts]


def _parse_var(body: str, property: str, depth: int) -> StyleValue:
    pieces = split_top_level(body, ",")
    name = pieces[0].strip()
    if not name.startswith("--"):
        return create_unparsed_value(f"var({body})")

    fallback_text = ",".join(pieces[1:]).strip()
    if not fallback_text:
        return create_var_value(name)

    fallback = _parse(property, fallback_text, depth + 1)
    return create_var_value(name, fallback)


def _parse_token(token: str, property: str, depth: int) -> StyleValue:
    dimension = _DIMENSION_RE.match(token)
    if dimension:
        number = float(dimension.group(1))
        unit = dimension.group(2).lower()
        if not unit:
            return create_number_value(number)
        if unit in CSS_UNITS:
            return create_unit_value(number, unit)
        return create_unparsed_value(token)

    if token.startswith("#"):
        return parse_color(token) or create_unparsed_value(token)

    if token[0] in ("'", '"'):
        return create_keyword_value(token)

    function = _FUNCTION_RE.match(token)
    if function:
        name = function.group(1).lower()
        if name == "var":
            return _parse_var(function.group(2), property, depth)
        if name in COLOR_FUNCTIONS:
            color = parse_color(token)
            if color:
                return color
        return create_unparsed_value(token)

    if _IDENT_RE.match(token):
        if is_color_property(property) and is_color_string(token):
            color = parse_color(token)
            if color:
                return color
        return create_keyword_value(token)

    return create_unparsed_value(token)


def _parse(property: str, value: str, depth: int) -> StyleValue:
    trimmed = value.strip()
    if not trimmed:
        return create_unparsed_value("")

    if depth > MAX_NESTING_DEPTH or is_complex_value(trimmed):
        return create_unparsed_value(trimmed)

    # Comma lists (font stacks, transitions) stay opaque
    if len(split_top_level(trimmed, ",")) > 1:
        return create_unparsed_value(trimmed)

    tokens = split_top_level(trimmed)
    if len(tokens) == 1:
        return _parse_token(tokens[0], property, depth)
    return create_tuple_value(_parse_token(t, property, depth) for t in tokens)


def parse_css_value(property: str, value: str) -> StyleValue:
    """
    Parse a CSS property value into a StyleValue.

    Never raises: anything that cannot be understood becomes UnparsedValue.

    Args:
        property: CSS property name (e.g. 'padding', 'color')
        value: CSS value string (e.g. '16px', 'red', 'var(--spacing)')

    Returns:
        Parsed StyleValue
    """
    if not isinstance(value, str):
        return create_unparsed_value("" if value is None else str(value))

    try:
        return _parse(property or "", value, 0)
    except Exception as e:
        logger.debug(f"Falling back to unparsed for {property}: {value!r} ({e})")
        return create_unparsed_value(value.strip())


def parse_css_values(property: str, value: str) -> List[StyleValue]:
    """Parse a value and flatten a tuple into its members."""
    result = parse_css_value(property, value)
    if isinstance(result, TupleValue):
        return list(result.values)
    return [result]
