# File: utils/math_utils.py
"""Duration and number utilities for Child Telemetry.

Pure Python functions with ZERO Home Assistant dependencies.

Functions:
    - is_finite_number: Real number check that rejects bools, NaN and inf
    - to_number: Tolerant float conversion for numeric strings
    - round_minutes: Consistent rounding to configured precision
    - minutes_to_hours: Chart-friendly hours with two decimals
    - parse_duration_text: "1h 30m" style strings to minutes
    - format_minutes: Minutes to "1h 30m" style labels
"""

from __future__ import annotations

import logging
import math
import re
from typing import Any

_LOGGER = logging.getLogger(__name__)

# ==============================================================================
# Constants (local copies to avoid circular imports)
# ==============================================================================

DATA_FLOAT_PRECISION = 2

_HOURS_PATTERN = re.compile(r"(\d+(?:\.\d+)?)\s*h", re.IGNORECASE)
_MINUTES_PATTERN = re.compile(r"(\d+(?:\.\d+)?)\s*m", re.IGNORECASE)
_LEADING_NUMBER = re.compile(r"^\s*[-+]?(\d+(\.\d*)?|\.\d+)")


# ==============================================================================
# Number Helpers
# ==============================================================================


def is_finite_number(value: Any) -> bool:
    """Return True for int/float values that are finite. Bools are rejected."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def to_number(value: Any) -> float | None:
    """Convert numbers and numeric strings to float.

    Strings are read like a lenient float parse: the leading numeric part is
    used ("12.5 min" → 12.5). Anything else returns None.
    """
    if is_finite_number(value):
        return float(value)
    if isinstance(value, str):
        match = _LEADING_NUMBER.match(value)
        if match:
            parsed = float(match.group(0))
            if math.isfinite(parsed):
                return parsed
    return None


def round_minutes(value: float, precision: int = DATA_FLOAT_PRECISION) -> float:
    """Round a minute value to the configured precision."""
    return round(value, precision)


def minutes_to_hours(minutes: float, precision: int = DATA_FLOAT_PRECISION) -> float:
    """Convert minutes to hours rounded for charting.

    Examples:
        minutes_to_hours(90) → 1.5
        minutes_to_hours(100) → 1.67
    """
    return round(minutes / 60, precision)


# ==============================================================================
# Duration Text
# ==============================================================================


def parse_duration_text(value: str | None) -> float:
    """Parse a free-text usage duration into minutes.

    Supported formats:
    - "1h 30m" → 90
    - "2h" → 120
    - "45m" → 45
    - "1.5h" → 90
    - "45" → 45 (bare number is minutes)
    - "" / unparsable → 0

    Args:
        value: Duration string as written by a producer

    Returns:
        Minutes as float, never negative-infinite or NaN.
    """
    if not value:
        return 0.0

    hour_match = _HOURS_PATTERN.search(value)
    minute_match = _MINUTES_PATTERN.search(value)

    hours = float(hour_match.group(1)) if hour_match else 0.0
    minutes = float(minute_match.group(1)) if minute_match else 0.0

    if hours == 0 and minutes == 0:
        bare = to_number(value)
        return bare if bare is not None else 0.0

    return hours * 60 + minutes


def format_minutes(total_minutes: float | None) -> str:
    """Format minutes as a compact label.

    Examples:
        format_minutes(90) → "1h 30m"
        format_minutes(120) → "2h"
        format_minutes(45.4) → "45m"
        format_minutes(None) → "0m"
    """
    if not is_finite_number(total_minutes) or not total_minutes:
        return "0m"

    minutes = max(0, round(total_minutes))
    hours, remaining = divmod(minutes, 60)

    if hours == 0:
        return f"{remaining}m"
    if remaining == 0:
        return f"{hours}h"
    return f"{hours}h {remaining}m"
