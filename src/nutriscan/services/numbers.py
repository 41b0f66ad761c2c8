"""Numeric helpers shared by the calculators."""

import math


def round_half_up(value: float, digits: int = 0) -> float:
    """Round with halves going up, e.g. 2.5 -> 3 and -2.5 -> -2."""
    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor


def round_int(value: float) -> int:
    """Round half up to an integer."""
    return int(math.floor(value + 0.5))


def format_number(value: float, digits: int = 2) -> str:
    """Fixed-point text without trailing zeros, e.g. 72.50 -> "72.5"."""
    text = f"{round_half_up(value, digits):.{digits}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return "0" if text == "-0" else text
