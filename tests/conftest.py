"""Shared fixtures: an in-memory inventory and a live driver stub."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from fakes import FakeInventory


@pytest.fixture
def inventory():
    """Empty fake inventory; tests add devices to ``inventory.devices``."""
    return FakeInventory()


@pytest.fixture
def android_driver():
    """Live driver stub for an Android session."""
    driver = MagicMock()
    driver.platform_name = "Android"
    driver.execute = AsyncMock(return_value=None)
    return driver
