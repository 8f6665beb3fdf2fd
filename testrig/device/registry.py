"""Run-type → device bindings for the lifetime of one test orchestrator."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from testrig.models import Device

logger = logging.getLogger("testrig.registry")


class SessionRegistry:
    """In-memory map from run-type to the device assigned to that run.

    A later binding for the same run-type replaces the earlier one. Bindings
    are never removed: teardown consults them but leaves them in place, so a
    second stop for the same run-type finds the same device again.
    """

    def __init__(self) -> None:
        self._bindings: dict[str, Device] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def bind(self, run_type: str, device: Device) -> None:
        previous = self._bindings.get(run_type)
        if previous is not None and previous is not device:
            logger.debug(
                "Run type %s rebound from %s to %s", run_type, previous.describe(), device.describe()
            )
        self._bindings[run_type] = device

    def lookup(self, run_type: str) -> Device | None:
        return self._bindings.get(run_type)

    def run_types(self) -> list[str]:
        return list(self._bindings)

    def __contains__(self, run_type: object) -> bool:
        return run_type in self._bindings

    def __len__(self) -> int:
        return len(self._bindings)

    @asynccontextmanager
    async def lock(self, run_type: str) -> AsyncIterator[None]:
        """Serialize selection/teardown sequences for one run-type."""
        lock = self._locks.setdefault(run_type, asyncio.Lock())
        async with lock:
            yield
