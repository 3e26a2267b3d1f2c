# File: helpers/__init__.py
"""Home Assistant-bound helper functions for Child Telemetry.

NOTE: Functions that need `hass` or dispatcher plumbing belong here, NOT in
utils/.

Submodules:
    - signal_helpers: Instance-scoped dispatcher signal names

Usage:
    from ..helpers.signal_helpers import get_event_signal
"""

from . import signal_helpers

__all__ = ["signal_helpers"]
