"""Tests for AppManager - installed app inventory."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from custom_components.child_telemetry import const
from custom_components.child_telemetry.managers.app_manager import AppManager
from tests.helpers import FakeStore, seed_from_yaml


@pytest.fixture
def manager(
    mock_hass: MagicMock, mock_coordinator: MagicMock, fake_store: FakeStore
) -> AppManager:
    """AppManager for the modern scenario child."""
    child_id = seed_from_yaml(fake_store, "modern_child.yaml")
    manager = AppManager(mock_hass, mock_coordinator, child_id)
    manager.emit = MagicMock()
    return manager


class TestAppManager:
    """Inventory normalization and failure handling."""

    def test_inventory(self, manager: AppManager) -> None:
        manager.async_attach()

        snapshot = manager.snapshot()
        assert [app["name"] for app in snapshot["apps"]] == ["Minecraft", "YouTube", "Messages"]
        assert snapshot["apps"][1]["usage_label"] == "1h 30m"
        assert snapshot["apps"][2]["usage_label"] == "15m"
        assert snapshot["summary"] == {
            "total": 3,
            "blocked": 1,
            "allowed": 2,
            "total_usage_minutes": 225,
        }
        assert snapshot["loading"] is False
        manager.emit.assert_called_once_with(count=3)

    def test_error_clears_inventory(self, manager: AppManager, fake_store: FakeStore) -> None:
        manager.async_attach()

        fake_store.fail("children/kid1/apps", RuntimeError("denied"))

        assert manager.apps == []
        assert manager.error == const.ERROR_APPS_UNAVAILABLE
        assert manager.status == const.SOURCE_STATUS_ERROR

    def test_update_replaces_inventory(
        self, manager: AppManager, fake_store: FakeStore
    ) -> None:
        manager.async_attach()

        fake_store.delete_document("children/kid1/apps/a2")

        assert [app["id"] for app in manager.apps] == ["a1", "a3"]
