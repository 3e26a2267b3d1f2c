# File: __init__.py
"""Initialization file for the Child Telemetry integration.

The integration does not own a document store connection. Whoever holds one
(another integration, a test) calls async_create_coordinator() with it and
selects a child on the returned coordinator.

Optional YAML configuration provides coordinator defaults:

    child_telemetry:
      first_fix_timeout: 1.5
      location_trail_size: 20
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

import voluptuous as vol
from homeassistant.util import dt as dt_util

from . import const
from .coordinator import OPTIONS_SCHEMA, ChildTelemetryCoordinator
from .utils import dt_utils

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant
    from homeassistant.helpers.typing import ConfigType

    from .store import DocumentStore

CONFIG_SCHEMA = vol.Schema(
    {vol.Optional(const.DOMAIN, default={}): OPTIONS_SCHEMA},
    extra=vol.ALLOW_EXTRA,
)

DATA_OPTIONS = "options"
DATA_COORDINATORS = "coordinators"


async def async_setup(hass: HomeAssistant, config: ConfigType) -> bool:
    """Set up Child Telemetry from YAML defaults."""
    domain_data = hass.data.setdefault(const.DOMAIN, {})
    domain_data[DATA_OPTIONS] = dict(config.get(const.DOMAIN, {}))
    domain_data.setdefault(DATA_COORDINATORS, [])
    dt_utils.set_default_timezone(dt_util.get_default_time_zone())
    const.LOGGER.debug("Child Telemetry: set up with options %s", domain_data[DATA_OPTIONS])
    return True


async def async_create_coordinator(
    hass: HomeAssistant,
    store: DocumentStore,
    options: Mapping[str, Any] | None = None,
) -> ChildTelemetryCoordinator:
    """Create a coordinator bound to `store`.

    Options override the YAML defaults and are validated by OPTIONS_SCHEMA.

    Raises:
        vol.Invalid: If the merged options are invalid
    """
    domain_data = hass.data.setdefault(const.DOMAIN, {})
    merged = {**domain_data.get(DATA_OPTIONS, {}), **(options or {})}
    coordinator = ChildTelemetryCoordinator(hass, store, merged)
    domain_data.setdefault(DATA_COORDINATORS, []).append(coordinator)
    return coordinator


async def async_unload_coordinator(
    hass: HomeAssistant, coordinator: ChildTelemetryCoordinator
) -> None:
    """Detach all of a coordinator's subscriptions and forget it."""
    await coordinator.async_shutdown()
    coordinators = hass.data.get(const.DOMAIN, {}).get(DATA_COORDINATORS, [])
    if coordinator in coordinators:
        coordinators.remove(coordinator)
