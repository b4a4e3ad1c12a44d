"""
Color parsing, serialization and color-space conversion.

Channel conventions per space:
    srgb, display-p3   r, g, b in [0, 1]
    hsl                hue in degrees, saturation and lightness in percent
    oklab              L in [0, 1], a, b roughly in [-0.4, 0.4]
    oklch              L in [0, 1], chroma, hue in degrees

Conversions go through CIE XYZ (D65) using the CSS Color 4 matrices.
"""

import colorsys
import math
import re
from typing import List, Optional, Tuple

import numpy as np

from alara.logging_config import logger
from .numbers import format_number
from .values import COLOR_SPACES, ColorValue, create_color_value


# ============================================================================
# Named colors
# ============================================================================

# Identifiers we treat as colors. Global keywords and currentcolor are listed so
# that is_color_string() recognizes them, but they have no concrete value and
# therefore stay keywords after parsing.
NAMED_COLORS = {
    "black": (0, 0, 0),
    "white": (255, 255, 255),
    "red": (255, 0, 0),
    "green": (0, 128, 0),
    "blue": (0, 0, 255),
    "yellow": (255, 255, 0),
    "orange": (255, 165, 0),
    "purple": (128, 0, 128),
    "pink": (255, 192, 203),
    "gray": (128, 128, 128),
    "grey": (128, 128, 128),
    "cyan": (0, 255, 255),
    "magenta": (255, 0, 255),
}

COLOR_KEYWORDS = ("transparent", "currentcolor", "inherit", "initial", "unset")

COLOR_FUNCTIONS = ("rgb", "rgba", "hsl", "hsla", "oklch", "oklab", "color")

COLOR_FORMATS = ("hex", "rgb", "hsl", "oklch", "oklab")


# ============================================================================
# Conversion matrices
# ============================================================================

_LINEAR_SRGB_TO_XYZ = np.array([
    [0.41239079926595934, 0.357584339383878, 0.1804807884018343],
    [0.21263900587151027, 0.715168678767756, 0.07219231536073371],
    [0.01933081871559182, 0.11919477979462598, 0.9505321522496607],
])
_XYZ_TO_LINEAR_SRGB = np.linalg.inv(_LINEAR_SRGB_TO_XYZ)

_LINEAR_P3_TO_XYZ = np.array([
    [0.4865709486482162, 0.26566769316909306, 0.1982172852343625],
    [0.2289745640697488, 0.6917385218365064, 0.079286914093745],
    [0.0, 0.04511338185890264, 1.043944368900976],
])
_XYZ_TO_LINEAR_P3 = np.linalg.inv(_LINEAR_P3_TO_XYZ)

_XYZ_TO_LMS = np.array([
    [0.8190224379967030, 0.3619062600528904, -0.1288737815209879],
    [0.0329836539323885, 0.9292868615863434, 0.0361446663506424],
    [0.0481771893596242, 0.2642395317527308, 0.6335478284694309],
])
_LMS_TO_XYZ = np.linalg.inv(_XYZ_TO_LMS)

_LMS_TO_OKLAB = np.array([
    [0.2104542683093140, 0.7936177747023054, -0.0040720430116193],
    [1.9779985324311684, -2.4285922420485799, 0.4505937096174110],
    [0.0259040424655478, 0.7827717124575296, -0.8086757549230774],
])
_OKLAB_TO_LMS = np.linalg.inv(_LMS_TO_OKLAB)


def _decode_gamma(channels: np.ndarray) -> np.ndarray:
    sign = np.sign(channels)
    magnitude = np.abs(channels)
    return np.where(
        magnitude <= 0.04045,
        channels / 12.92,
        sign * ((magnitude + 0.055) / 1.055) ** 2.4,
    )


def _encode_gamma(channels: np.ndarray) -> np.ndarray:
    sign = np.sign(channels)
    magnitude = np.abs(channels)
    return np.where(
        magnitude <= 0.0031308,
        channels * 12.92,
        sign * (1.055 * magnitude ** (1 / 2.4) - 0.055),
    )


def _hsl_to_srgb(h: float, s: float, l: float) -> Tuple[float, float, float]:
    return colorsys.hls_to_rgb((h % 360) / 360.0, l / 100.0, s / 100.0)


def _srgb_to_hsl(r: float, g: float, b: float) -> Tuple[float, float, float]:
    h, l, s = colorsys.rgb_to_hls(r, g, b)
    return (h * 360.0, s * 100.0, l * 100.0)


def _to_xyz(space: str, channels: Tuple[float, float, float]) -> np.ndarray:
    if space == "hsl":
        channels = _hsl_to_srgb(*channels)
        space = "srgb"
    if space == "oklch":
        lightness, chroma, hue = channels
        radians = math.radians(hue)
        channels = (lightness, chroma * math.cos(radians), chroma * math.sin(radians))
        space = "oklab"

    vector = np.array(channels, dtype=float)
    if space == "srgb":
        return _LINEAR_SRGB_TO_XYZ @ _decode_gamma(vector)
    if space == "display-p3":
        return _LINEAR_P3_TO_XYZ @ _decode_gamma(vector)
    if space == "oklab":
        lms = _OKLAB_TO_LMS @ vector
        return _LMS_TO_XYZ @ (lms ** 3)
    raise ValueError(f"Unknown color space: {space}")


def _from_xyz(space: str, xyz: np.ndarray) -> Tuple[float, float, float]:
    if space in ("srgb", "hsl"):
        rgb = _encode_gamma(_XYZ_TO_LINEAR_SRGB @ xyz)
        if space == "hsl":
            clipped = np.clip(rgb, 0.0, 1.0)
            return _srgb_to_hsl(*(float(c) for c in clipped))
        return tuple(float(c) for c in rgb)
    if space == "display-p3":
        return tuple(float(c) for c in _encode_gamma(_XYZ_TO_LINEAR_P3 @ xyz))
    if space in ("oklab", "oklch"):
        lab = _LMS_TO_OKLAB @ np.cbrt(_XYZ_TO_LMS @ xyz)
        if space == "oklab":
            return tuple(float(c) for c in lab)
        lightness, a, b = (float(c) for c in lab)
        chroma = math.hypot(a, b)
        hue = math.degrees(math.atan2(b, a)) % 360 if chroma > 1e-6 else 0.0
        return (lightness, chroma, hue)
    raise ValueError(f"Unknown color space: {space}")


def convert_color_space(color: ColorValue, target_space: str) -> ColorValue:
    """
    Convert a color to another color space.

    Alpha is carried over untouched. Channel values may lose precision. If
    the conversion fails the input is returned unchanged.
    """
    if color.color_space == target_space:
        return color

    try:
        if target_space not in COLOR_SPACES:
            raise ValueError(f"Unknown color space: {target_space}")
        if color.color_space == "srgb" and target_space == "hsl":
            channels = _srgb_to_hsl(*color.channels)
        elif color.color_space == "hsl" and target_space == "srgb":
            channels = _hsl_to_srgb(*color.channels)
        else:
            channels = _from_xyz(target_space, _to_xyz(color.color_space, color.channels))
        if not all(math.isfinite(c) for c in channels):
            raise ValueError("conversion produced non-finite channels")
    except Exception as e:
        logger.debug(f"Color conversion {color.color_space} -> {target_space} failed: {e}")
        return color

    return color.model_copy(update={"color_space": target_space, "channels": tuple(channels)})


# ============================================================================
# Parsing
# ============================================================================

_HEX_RE = re.compile(r"^#([0-9a-f]{3,4}|[0-9a-f]{6}|[0-9a-f]{8})$", re.IGNORECASE)
_FUNCTION_RE = re.compile(r"^([a-z-]+)\(\s*(.*?)\s*\)$", re.IGNORECASE | re.DOTALL)
_NUMBER_RE = re.compile(r"^([+-]?(?:\d+\.?\d*|\.\d+)(?:e[+-]?\d+)?)(%|deg|turn|rad|grad)?$", re.IGNORECASE)


def _split_arguments(body: str) -> Tuple[List[str], Optional[str]]:
    """Split color function arguments, supporting both comma and space syntax."""
    alpha = None
    if "/" in body:
        body, alpha = body.split("/", 1)
        alpha = alpha.strip()
    if "," in body:
        parts = [p.strip() for p in body.split(",")]
        if len(parts) == 4 and alpha is None:
            alpha = parts.pop()
    else:
        parts = body.split()
    return parts, alpha


def _parse_number(token: str, percent_scale: float = 1.0) -> float:
    if token.lower() == "none":
        return 0.0
    match = _NUMBER_RE.match(token)
    if not match:
        raise ValueError(f"Invalid number: {token}")
    number = float(match.group(1))
    unit = (match.group(2) or "").lower()
    if unit == "%":
        return number / 100.0 * percent_scale
    if unit == "turn":
        return number * 360.0
    if unit == "rad":
        return math.degrees(number)
    if unit == "grad":
        return number * 0.9
    return number


def _parse_alpha(token: Optional[str]) -> float:
    if token is None:
        return 1.0
    return _parse_number(token, percent_scale=1.0)


def _parse_hex(digits: str) -> ColorValue:
    if len(digits) in (3, 4):
        digits = "".join(ch * 2 for ch in digits)
    r, g, b = (int(digits[i:i + 2], 16) / 255.0 for i in (0, 2, 4))
    alpha = int(digits[6:8], 16) / 255.0 if len(digits) == 8 else 1.0
    return create_color_value("srgb", (r, g, b), alpha)


def _parse_function(name: str, body: str) -> Optional[ColorValue]:
    parts, alpha_token = _split_arguments(body)
    alpha = _parse_alpha(alpha_token)

    if name in ("rgb", "rgba"):
        if len(parts) != 3:
            return None
        channels = tuple(_parse_number(p, percent_scale=255.0) / 255.0 for p in parts)
        return create_color_value("srgb", channels, alpha)

    if name in ("hsl", "hsla"):
        if len(parts) != 3:
            return None
        hue = _parse_number(parts[0])
        saturation = _parse_number(parts[1], percent_scale=100.0)
        lightness = _parse_number(parts[2], percent_scale=100.0)
        return create_color_value("hsl", (hue, saturation, lightness), alpha)

    if name == "oklch":
        if len(parts) != 3:
            return None
        lightness = _parse_number(parts[0], percent_scale=1.0)
        chroma = _parse_number(parts[1], percent_scale=0.4)
        hue = _parse_number(parts[2])
        return create_color_value("oklch", (lightness, chroma, hue), alpha)

    if name == "oklab":
        if len(parts) != 3:
            return None
        lightness = _parse_number(parts[0], percent_scale=1.0)
        a = _parse_number(parts[1], percent_scale=0.4)
        b = _parse_number(parts[2], percent_scale=0.4)
        return create_color_value("oklab", (lightness, a, b), alpha)

    if name == "color":
        if len(parts) != 4:
            return None
        space = parts[0].lower()
        if space == "p3":
            space = "display-p3"
        if space not in ("srgb", "display-p3"):
            return None
        channels = tuple(_parse_number(p, percent_scale=1.0) for p in parts[1:])
        return create_color_value(space, channels, alpha)

    return None


def parse_color(text: str) -> Optional[ColorValue]:
    """
    Parse a CSS color string into a ColorValue.

    Supports hex, rgb(a), hsl(a), oklch, oklab, color(srgb|display-p3 ...)
    and a small set of named colors.

    Returns:
        ColorValue or None if the text is not a color we understand
    """
    if not text or not isinstance(text, str):
        return None

    trimmed = text.strip()
    lowered = trimmed.lower()

    try:
        hex_match = _HEX_RE.match(trimmed)
        if hex_match:
            return _parse_hex(hex_match.group(1))

        if lowered in NAMED_COLORS:
            r, g, b = NAMED_COLORS[lowered]
            return create_color_value("srgb", (r / 255.0, g / 255.0, b / 255.0), 1.0)

        if lowered == "transparent":
            return create_color_value("srgb", (0.0, 0.0, 0.0), 0.0)

        function_match = _FUNCTION_RE.match(trimmed)
        if function_match:
            return _parse_function(function_match.group(1).lower(), function_match.group(2))
    except (ValueError, IndexError) as e:
        logger.debug(f"Failed to parse color '{text}': {e}")

    return None


def is_color_string(value: str) -> bool:
    """Check if a string looks like a color value."""
    if not value or not isinstance(value, str):
        return False

    trimmed = value.strip().lower()

    if trimmed.startswith(("#", "rgb", "hsl", "oklch", "oklab", "color(")):
        return True

    return trimmed in NAMED_COLORS or trimmed in COLOR_KEYWORDS


# ============================================================================
# Serialization
# ============================================================================

def _alpha_suffix(alpha: float, max_decimals: int) -> str:
    if alpha >= 1.0:
        return ""
    return f" / {format_number(alpha, max_decimals)}"


def _to_hex(color: ColorValue) -> str:
    srgb = convert_color_space(color, "srgb")
    channels = [min(255, max(0, round(c * 255))) for c in srgb.channels]
    text = "#" + "".join(f"{c:02x}" for c in channels)
    if srgb.alpha < 1.0:
        text += f"{round(srgb.alpha * 255):02x}"
    return text


def _to_rgb(color: ColorValue, max_decimals: int) -> str:
    srgb = convert_color_space(color, "srgb")
    channels = " ".join(
        format_number(min(255.0, max(0.0, c * 255.0)), max_decimals) for c in srgb.channels
    )
    return f"rgb({channels}{_alpha_suffix(srgb.alpha, max_decimals)})"


def _to_hsl(color: ColorValue, max_decimals: int) -> str:
    hsl = convert_color_space(color, "hsl")
    h, s, l = hsl.channels
    return (
        f"hsl({format_number(h, max_decimals)} {format_number(s, max_decimals)}% "
        f"{format_number(l, max_decimals)}%{_alpha_suffix(hsl.alpha, max_decimals)})"
    )


def _to_function(name: str, color: ColorValue, max_decimals: int) -> str:
    converted = convert_color_space(color, name)
    channels = " ".join(format_number(c, max_decimals) for c in converted.channels)
    return f"{name}({channels}{_alpha_suffix(converted.alpha, max_decimals)})"


def color_to_string(color: ColorValue, format: Optional[str] = None, max_decimals: int = 4) -> str:
    """
    Convert a ColorValue to a CSS color string.

    Args:
        color: ColorValue to serialize
        format: Optional explicit format (hex, rgb, hsl, oklch, oklab)
        max_decimals: Maximum decimal places for channel values

    Returns:
        CSS color string. Without a format, opaque sRGB becomes hex,
        transparent sRGB becomes rgb(), other spaces use their own function.
    """
    if format is not None:
        if format == "hex":
            return _to_hex(color)
        if format == "rgb":
            return _to_rgb(color, max_decimals)
        if format == "hsl":
            return _to_hsl(color, max_decimals)
        if format in ("oklch", "oklab"):
            return _to_function(format, color, max_decimals)
        logger.warning(f"Unknown color format '{format}', using native format")

    space = color.color_space
    if space == "srgb":
        if color.alpha >= 1.0:
            return _to_hex(color)
        return _to_rgb(color, max_decimals)
    if space == "hsl":
        return _to_hsl(color, max_decimals)
    if space in ("oklch", "oklab"):
        return _to_function(space, color, max_decimals)

    channels = " ".join(format_number(c, max_decimals) for c in color.channels)
    return f"color({space} {channels}{_alpha_suffix(color.alpha, max_decimals)})"
