"""YAML scenario setup for Child Telemetry tests.

A scenario file names the child under test and lists raw store documents by
full path, exactly as a producer would have written them:

    child_id: kid1
    documents:
      children/kid1:
        name: "Zoë"
        deviceId: "pixel-7"
      children/kid1/usageHistory/2025-04-07:
        date: "2025-04-07"
        totalMinutes: 90

Usage:
    child_id = seed_from_yaml(store, "modern_child.yaml")
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from tests.helpers.fake_store import FakeStore

SCENARIO_DIR = Path(__file__).parent.parent / "scenarios"


def load_scenario(name: str | Path) -> dict[str, Any]:
    """Load a scenario file by name (from tests/scenarios) or path."""
    path = Path(name)
    if not path.is_absolute() and not path.exists():
        path = SCENARIO_DIR / path
    with path.open(encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    data.setdefault("documents", {})
    return data


def seed_from_yaml(store: FakeStore, name: str | Path) -> str:
    """Seed `store` from a scenario file and return its child id."""
    scenario = load_scenario(name)
    store.seed(scenario["documents"])
    return scenario["child_id"]
