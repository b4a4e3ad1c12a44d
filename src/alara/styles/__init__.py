"""
Style value model: typed CSS values with parse/serialize round-tripping,
color conversion and a splice-editing stylesheet document.
"""

from .values import (
    CSS_UNITS,
    COLOR_SPACES,
    StyleValue,
    UnitValue,
    NumberValue,
    KeywordValue,
    ColorValue,
    VarValue,
    TupleValue,
    UnparsedValue,
    create_unit_value,
    create_number_value,
    create_keyword_value,
    create_color_value,
    create_var_value,
    create_tuple_value,
    create_unparsed_value,
    is_unit_value,
    is_number_value,
    is_keyword_value,
    is_color_value,
    is_var_value,
    is_tuple_value,
    is_unparsed_value,
)
from .numbers import format_number
from .color import parse_color, color_to_string, convert_color_space, is_color_string
from .parser import parse_css_value, parse_css_values, is_complex_value, is_color_property
from .serializer import (
    SERIALIZER_CONFIG,
    to_value,
    serialize_style_value,
    style_values_equal,
    style_values_close,
)

__all__ = [
    # Types
    "CSS_UNITS",
    "COLOR_SPACES",
    "StyleValue",
    "UnitValue",
    "NumberValue",
    "KeywordValue",
    "ColorValue",
    "VarValue",
    "TupleValue",
    "UnparsedValue",

    # Factories and guards
    "create_unit_value",
    "create_number_value",
    "create_keyword_value",
    "create_color_value",
    "create_var_value",
    "create_tuple_value",
    "create_unparsed_value",
    "is_unit_value",
    "is_number_value",
    "is_keyword_value",
    "is_color_value",
    "is_var_value",
    "is_tuple_value",
    "is_unparsed_value",

    # Parse / serialize
    "format_number",
    "parse_color",
    "color_to_string",
    "convert_color_space",
    "is_color_string",
    "parse_css_value",
    "parse_css_values",
    "is_complex_value",
    "is_color_property",
    "SERIALIZER_CONFIG",
    "to_value",
    "serialize_style_value",
    "style_values_equal",
    "style_values_close",
]
