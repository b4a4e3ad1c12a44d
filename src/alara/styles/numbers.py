"""Numeric formatting shared by the value and color serializers."""

import math


def format_number(num: float, max_decimals: int = 4) -> str:
    """
    Format a number for CSS output.

    Rounds to ``max_decimals`` places and strips trailing zeros, so
    ``16.0 -> "16"`` and ``0.123456 -> "0.1235"``.
    """
    if not math.isfinite(num):
        return str(num)

    rounded = round(float(num), max_decimals)
    if rounded == 0:
        return "0"

    text = f"{rounded:.{max_decimals}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text
