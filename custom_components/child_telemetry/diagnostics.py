"""Diagnostics support for Child Telemetry.

Exports per-source status for troubleshooting schema drift: which sources
answered, which failed, whether fallbacks are in use, and record counts.
Coordinates and app names are not included.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .utils.dt_utils import dt_now_utc

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant

    from .coordinator import ChildTelemetryCoordinator


def build_diagnostics(coordinator: ChildTelemetryCoordinator) -> dict[str, Any]:
    """Return a JSON-serializable status report for the selected child."""
    data = coordinator.data
    telemetry = data["telemetry"]
    location = data["location"]
    usage = coordinator.usage_manager

    return {
        "generated_at": dt_now_utc().isoformat(),
        "child_id": coordinator.child_id,
        "options": dict(coordinator.options),
        "sources": {
            manager.__class__.__name__: manager.diagnostics()
            for manager in coordinator.managers
        },
        "summary": {
            "has_current_app": telemetry["current_app"] is not None,
            "history_days": len(telemetry["usage_history"]),
            "history_from_fallback": bool(usage and usage.using_fallback),
            "has_aggregate": telemetry["aggregates"] is not None,
            "location_points": len(location["location_history"]),
            "awaiting_first_fix": location["awaiting_first_fix"],
            "apps": data["apps"]["summary"]["total"],
        },
        "advisories": coordinator.advisories(),
    }


async def async_get_coordinator_diagnostics(
    hass: HomeAssistant, coordinator: ChildTelemetryCoordinator
) -> dict[str, Any]:
    """Return diagnostics for a coordinator."""
    # pylint: disable=unused-argument
    return build_diagnostics(coordinator)
