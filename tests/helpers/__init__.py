"""Test helpers for Child Telemetry tests.

    from tests.helpers import FakeStore, load_scenario, seed_from_yaml

See individual modules for full documentation:
- fake_store.py: In-memory DocumentStore with synchronous deliveries
- setup.py: YAML scenario loading
"""

from tests.helpers.fake_store import FakeStore, FakeSubscription
from tests.helpers.setup import SCENARIO_DIR, load_scenario, seed_from_yaml

__all__ = [
    "SCENARIO_DIR",
    "FakeStore",
    "FakeSubscription",
    "load_scenario",
    "seed_from_yaml",
]
