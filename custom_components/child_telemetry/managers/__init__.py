"""Manager modules for Child Telemetry integration.

Managers own the store subscriptions for one child and feed engine output
into the coordinator. They are stateful, event-aware, and contain every
failure of the sources they own.
"""

from .activity_manager import ActivityManager
from .aggregate_manager import AggregateManager
from .app_manager import AppManager
from .base_manager import AliasFallbackManager, BaseManager
from .location_manager import LocationManager
from .usage_manager import UsageManager

__all__ = [
    "ActivityManager",
    "AggregateManager",
    "AliasFallbackManager",
    "AppManager",
    "BaseManager",
    "LocationManager",
    "UsageManager",
]
