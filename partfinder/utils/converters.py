"""Type conversion utilities for loosely-typed rows from the document store.

``safe_*`` helpers never fail and fall back to a default. ``parse_*`` helpers
return ``None`` when a value is unusable so the caller can drop the record.
"""

import math
from typing import Any

# Placeholder values the VIN decoder and older rows use for "no data"
MISSING_SENTINELS: frozenset[str] = frozenset(
    {"unknown", "n/a", "na", "not applicable", "null", "none"}
)


def safe_float(val: Any, default: float = 0.0) -> float:
    """Safely convert a value to float.

    Examples:
        >>> safe_float("3.14")
        3.14
        >>> safe_float(None)
        0.0
        >>> safe_float("invalid", default=-1.0)
        -1.0
    """
    if val is None or val == "":
        return default
    try:
        return float(val)
    except (ValueError, TypeError):
        return default


def safe_int(val: Any, default: int = 0) -> int:
    """Safely convert a value to int.

    Examples:
        >>> safe_int("42")
        42
        >>> safe_int(3.7)
        3
        >>> safe_int(None)
        0
    """
    if val is None or val == "":
        return default
    try:
        return int(float(val))  # Handle "3.0" -> 3
    except (ValueError, TypeError):
        return default


def clean_text(val: Any) -> str | None:
    """Return a stripped string, or None for non-strings, blanks and sentinels."""
    if not isinstance(val, str):
        return None
    text = val.strip()
    if not text or text.lower() in MISSING_SENTINELS:
        return None
    return text


def parse_int(val: Any) -> int | None:
    """Parse a well-formed integer.

    Accepts ints, integral floats and integer-looking strings ("2022",
    " 2022 ", "2022.0"). Booleans are rejected even though they are ints.

    Examples:
        >>> parse_int("2022")
        2022
        >>> parse_int(2022.0)
        2022
        >>> parse_int("20x2") is None
        True
        >>> parse_int(True) is None
        True
    """
    if isinstance(val, bool):
        return None
    if isinstance(val, int):
        return val
    if isinstance(val, float):
        if math.isfinite(val) and val.is_integer():
            return int(val)
        return None
    if isinstance(val, str):
        text = val.strip()
        if not text:
            return None
        try:
            return int(text)
        except ValueError:
            pass
        try:
            number = float(text)
        except ValueError:
            return None
        if math.isfinite(number) and number.is_integer():
            return int(number)
    return None


def parse_price(val: Any) -> float | None:
    """Parse a non-negative, finite price from a number or numeric string.

    Examples:
        >>> parse_price("19.99")
        19.99
        >>> parse_price(250)
        250.0
        >>> parse_price("-1") is None
        True
    """
    if isinstance(val, bool):
        return None
    if isinstance(val, (int, float)):
        number = float(val)
    elif isinstance(val, str):
        try:
            number = float(val.strip())
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(number) or number < 0:
        return None
    return number


def parse_in_stock(val: Any) -> bool:
    """Interpret stock flags.

    Real booleans pass through, the exact strings "true"/"false" are
    honored, and every other representation (including 1/0 and "True")
    means out of stock.
    """
    if isinstance(val, bool):
        return val
    if val == "true":
        return True
    return False
