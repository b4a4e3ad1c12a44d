"""
StyleValue: typed intermediate representation of a single CSS value.

A closed, recursive tagged union discriminated by ``type``:

    unit      16px, 1.5rem, 100%
    number    0, 1.5, 400
    keyword   auto, flex-start, solid
    color     #ff0000, rgb(255 0 0), oklch(0.7 0.15 30)
    var       var(--spacing), var(--spacing, 16px)
    tuple     10px 20px, 1px solid red
    unparsed  calc(100% - 20px), linear-gradient(...), url(...)

The models double as wire schemas: validating raw request data rejects
unknown units and alpha outside [0, 1].
"""

from typing import Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field
from typing_extensions import Annotated

from .numbers import format_number


CSS_UNITS = ("px", "rem", "em", "%", "vh", "vw", "vmin", "vmax")
CSSUnit = Literal["px", "rem", "em", "%", "vh", "vw", "vmin", "vmax"]

COLOR_SPACES = ("srgb", "hsl", "oklch", "oklab", "display-p3")
ColorSpace = Literal["srgb", "hsl", "oklch", "oklab", "display-p3"]


class WireModel(BaseModel):
    """Base for immutable models that travel as camelCase JSON."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class UnitValue(WireModel):
    type: Literal["unit"] = "unit"
    value: float
    unit: CSSUnit


class NumberValue(WireModel):
    type: Literal["number"] = "number"
    value: float


class KeywordValue(WireModel):
    type: Literal["keyword"] = "keyword"
    value: str


class ColorValue(WireModel):
    type: Literal["color"] = "color"
    color_space: ColorSpace = Field(alias="colorSpace")
    channels: Tuple[float, float, float]
    alpha: float = Field(default=1.0, ge=0.0, le=1.0)


class VarValue(WireModel):
    type: Literal["var"] = "var"
    name: str
    fallback: Optional["StyleValue"] = None


class TupleValue(WireModel):
    type: Literal["tuple"] = "tuple"
    values: Tuple["StyleValue", ...]


class UnparsedValue(WireModel):
    type: Literal["unparsed"] = "unparsed"
    value: str


StyleValue = Annotated[
    Union[
        UnitValue,
        NumberValue,
        KeywordValue,
        ColorValue,
        VarValue,
        TupleValue,
        UnparsedValue,
    ],
    Field(discriminator="type"),
]

VarValue.model_rebuild()
TupleValue.model_rebuild()


# ============================================================================
# Type guards
# ============================================================================

def is_unit_value(value) -> bool:
    return isinstance(value, UnitValue)


def is_number_value(value) -> bool:
    return isinstance(value, NumberValue)


def is_keyword_value(value) -> bool:
    return isinstance(value, KeywordValue)


def is_color_value(value) -> bool:
    return isinstance(value, ColorValue)


def is_var_value(value) -> bool:
    return isinstance(value, VarValue)


def is_tuple_value(value) -> bool:
    return isinstance(value, TupleValue)


def is_unparsed_value(value) -> bool:
    return isinstance(value, UnparsedValue)


# ============================================================================
# Factories
# ============================================================================

def create_unit_value(value: float, unit: str) -> Union[UnitValue, UnparsedValue]:
    """
    Create a dimension. Units outside the supported eight degrade to unparsed.
    """
    normalized = unit.lower()
    if normalized not in CSS_UNITS:
        return UnparsedValue(value=f"{format_number(value)}{unit}")
    return UnitValue(value=float(value), unit=normalized)


def create_number_value(value: float) -> NumberValue:
    return NumberValue(value=float(value))


def create_keyword_value(value: str) -> KeywordValue:
    return KeywordValue(value=value)


def create_color_value(
    color_space: str,
    channels: Tuple[float, float, float],
    alpha: float = 1.0,
) -> ColorValue:
    """Create a color, clamping alpha into [0, 1]."""
    clamped = min(1.0, max(0.0, float(alpha)))
    return ColorValue(
        color_space=color_space,
        channels=(float(channels[0]), float(channels[1]), float(channels[2])),
        alpha=clamped,
    )


def create_var_value(name: str, fallback=None) -> VarValue:
    return VarValue(name=name, fallback=fallback)


def create_tuple_value(values) -> TupleValue:
    return TupleValue(values=tuple(values))


def create_unparsed_value(value: str) -> UnparsedValue:
    return UnparsedValue(value=value)
