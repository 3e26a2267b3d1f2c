"""Shared fixtures for Child Telemetry tests."""

from typing import Any
from unittest.mock import MagicMock
from zoneinfo import ZoneInfo

import pytest

from custom_components.child_telemetry.coordinator import OPTIONS_SCHEMA
from custom_components.child_telemetry.utils import dt_utils
from tests.helpers import FakeStore

# pylint: disable=invalid-name
pytest_plugins = "pytest_homeassistant_custom_component"
# pylint: enable=invalid-name


@pytest.fixture(autouse=True)
def reset_default_timezone() -> Any:
    """Run every test with date keys derived in UTC."""
    dt_utils.set_default_timezone(ZoneInfo("UTC"))
    yield
    dt_utils.set_default_timezone(ZoneInfo("UTC"))


@pytest.fixture
def fake_store() -> FakeStore:
    """Empty in-memory document store."""
    return FakeStore()


@pytest.fixture
def mock_hass() -> MagicMock:
    """Mock Home Assistant instance for manager tests."""
    return MagicMock()


@pytest.fixture
def mock_coordinator(fake_store: FakeStore) -> MagicMock:
    """Mock coordinator exposing the attributes managers read."""
    coordinator = MagicMock()
    coordinator.store = fake_store
    coordinator.options = OPTIONS_SCHEMA({})
    coordinator.scope_id = "test-scope"
    return coordinator
