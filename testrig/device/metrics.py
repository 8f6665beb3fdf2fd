"""Display metrics (density and touch offset) for a booted device."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from testrig.device.inventory import LiveDriver
from testrig.device.platforms import PlatformSupport
from testrig.device.screen import DENSITY_SCALE
from testrig.models import Device, DeviceConfig, Platform, TargetSpec

logger = logging.getLogger("testrig.metrics")

SESSION_DENSITY_KEY = "deviceScreenDensity"


class DisplayMetricsResolver:
    """Fills ``device.config`` with density and offset.

    Nothing here raises when a value cannot be found: the device is left
    without metrics and the gap is logged.
    """

    def __init__(self, platforms: dict[Platform, PlatformSupport]) -> None:
        self._platforms = platforms

    async def resolve(
        self,
        spec: TargetSpec,
        device: Device,
        driver: LiveDriver | None = None,
    ) -> None:
        """Look up metrics via the inventory, the device shell or static tables."""
        support = self._platforms[device.platform]
        await support.resolve_display_metrics(spec, device, driver)
        if device.config.density is None:
            logger.info("No density resolved for %s", device.name)

    async def apply_session_settings(
        self,
        spec: TargetSpec,
        device: Device,
        driver: LiveDriver | None,
        session_capabilities: Mapping[str, Any] | None,
    ) -> None:
        """Resolve metrics once an automation session has started.

        A density reported by the session handshake takes priority over any
        lookup. Devices that already carry an offset are left alone.
        """
        if device.config.offset_pixels:
            return

        device.config = DeviceConfig()
        reported = (session_capabilities or {}).get(SESSION_DENSITY_KEY)
        density = reported / DENSITY_SCALE if reported else None

        if density:
            logger.info("Density from automation session: %s", density)
            device.config.density = density
            device.config.offset_pixels = self._platforms[device.platform].offset_for_density(density)
        else:
            await self.resolve(spec, device, driver)

        if device.config.density:
            logger.info("Device settings: %s", device.config.model_dump())
        else:
            logger.warning(
                "Could not resolve device density for %s. Provide offsetPixels in the capabilities",
                device.name,
            )
