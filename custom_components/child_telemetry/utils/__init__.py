# File: utils/__init__.py
"""Pure Python utilities for Child Telemetry.

This module contains pure Python functions with ZERO Home Assistant dependencies.
All functions here can be unit tested without Home Assistant mocking.

Submodules:
    - dt_utils: Timestamp coercion, date keys, day labels
    - math_utils: Number checks, duration parsing and formatting

Usage:
    from . import dt_utils
    from .math_utils import format_minutes
"""

from . import dt_utils, math_utils

__all__ = ["dt_utils", "math_utils"]
