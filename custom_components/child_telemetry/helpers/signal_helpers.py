# File: helpers/signal_helpers.py
"""Dispatcher signal helpers for Child Telemetry managers."""

from __future__ import annotations

from .. import const


def get_event_signal(scope_id: str, suffix: str) -> str:
    """Build an instance-scoped signal name for the dispatcher.

    Every coordinator has its own scope id, so two coordinators watching
    different children never hear each other's updates.

    Format: 'child_telemetry_{scope_id}_{suffix}'

    Example:
        >>> get_event_signal("abc123", const.SIGNAL_SUFFIX_LOCATION_UPDATED)
        'child_telemetry_abc123_location_updated'
    """
    return f"{const.DOMAIN}_{scope_id}_{suffix}"
