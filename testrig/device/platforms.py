"""Per-platform device behaviour, composed by a platform-keyed table."""

from __future__ import annotations

import logging
from typing import Any

from testrig.device.inventory import DeviceInventory, LiveDriver
from testrig.device.screen import match_screen_info, parse_wm_density
from testrig.models import Device, DeviceStatus, Platform, TargetSpec

logger = logging.getLogger("testrig.platforms")


async def execute_shell_command(
    driver: LiveDriver | None,
    command: str,
    args: list[Any],
) -> Any:
    """Run a raw shell command through the live driver.

    Only Android drivers support this; anything else yields None.
    """
    if driver is None or str(driver.platform_name).lower() != Platform.ANDROID.value:
        return None
    return await driver.execute("mobile: shell", {"command": command, "args": args})


def _first_with_status(candidates: list[Device], status: DeviceStatus) -> Device | None:
    for device in candidates:
        if device.status == status:
            return device
    return None


class PlatformSupport:
    """Selection, lifecycle and display metric policy shared by all platforms."""

    platform: Platform

    def __init__(self, inventory: DeviceInventory) -> None:
        self.inventory = inventory

    def select_preferred(self, candidates: list[Device], reuse: bool) -> Device | None:
        """Pick one candidate by status.

        Without reuse a shutdown device is preferred so the run starts clean.
        Otherwise a booted device is taken, and a shutdown one is still
        accepted when nothing is booted.
        """
        device = None
        if not reuse:
            device = _first_with_status(candidates, DeviceStatus.SHUTDOWN)
        if device is None:
            device = _first_with_status(candidates, DeviceStatus.BOOTED)
        if device is None:
            device = _first_with_status(candidates, DeviceStatus.SHUTDOWN)
        return device

    async def start_or_restart(self, device: Device, reuse: bool) -> None:
        """Bring the selected device into a running state.

        Booted emulators and simulators are reused as they are. A booted
        physical device is cycled unless reuse was requested.
        """
        if device.status == DeviceStatus.SHUTDOWN:
            await self.inventory.start(device)
            logger.info("Started device: %s", device.describe())
            return

        logger.info("Device is already started: %s", device.describe())
        if not reuse and not device.is_virtual:
            logger.info("Reuse not requested, restarting physical device %s", device.name)
            await self.inventory.kill(device)
            await self.inventory.start(device)

    def offset_for_density(self, density: float) -> int:
        return self.inventory.calculate_screen_offset(density)

    async def resolve_display_metrics(
        self,
        spec: TargetSpec,
        device: Device,
        driver: LiveDriver | None = None,
    ) -> None:
        raise NotImplementedError

    async def set_dont_keep_activities(
        self,
        spec: TargetSpec,
        device: Device,
        driver: LiveDriver | None,
        value: bool,
    ) -> None:
        return None

    def uninstall_id(self, spec: TargetSpec) -> str | None:
        raise NotImplementedError


class AndroidSupport(PlatformSupport):
    platform = Platform.ANDROID

    async def resolve_display_metrics(
        self,
        spec: TargetSpec,
        device: Device,
        driver: LiveDriver | None = None,
    ) -> None:
        density = None
        if not spec.skips_inventory:
            density = await self.inventory.get_physical_density(device)
            logger.debug("Inventory reported density %s for %s", density, device.name)

        if spec.relaxed_security:
            output = await execute_shell_command(driver, "wm", ["density"])
            shell_density = parse_wm_density(output)
            logger.info("Device density received from shell command: %s", shell_density)
            if shell_density:
                density = shell_density

        if density:
            device.config.density = density
            device.config.offset_pixels = self.offset_for_density(density)

    async def set_dont_keep_activities(
        self,
        spec: TargetSpec,
        device: Device,
        driver: LiveDriver | None,
        value: bool,
    ) -> None:
        if not spec.skips_inventory:
            await self.inventory.set_dont_keep_activities(device, value)
        elif spec.relaxed_security:
            status = 1 if value else 0
            await execute_shell_command(
                driver, "settings", ["put", "global", "always_finish_activities", status]
            )
            check = await execute_shell_command(
                driver, "settings", ["get", "global", "always_finish_activities"]
            )
            logger.info("always_finish_activities: %s", check)

    def uninstall_id(self, spec: TargetSpec) -> str | None:
        return spec.app_package


class IOSSupport(PlatformSupport):
    platform = Platform.IOS

    async def resolve_display_metrics(
        self,
        spec: TargetSpec,
        device: Device,
        driver: LiveDriver | None = None,
    ) -> None:
        info = match_screen_info(device.name, self.inventory.get_screen_info())
        if info is None:
            logger.debug("No screen info known for %s", device.name)
            return
        device.config.density = device.config.density or info.density
        device.config.offset_pixels = info.action_bar_height

    def uninstall_id(self, spec: TargetSpec) -> str | None:
        return spec.bundle_id


PLATFORM_SUPPORT: dict[Platform, type[PlatformSupport]] = {
    Platform.ANDROID: AndroidSupport,
    Platform.IOS: IOSSupport,
}


def build_platform_table(inventory: DeviceInventory) -> dict[Platform, PlatformSupport]:
    return {platform: cls(inventory) for platform, cls in PLATFORM_SUPPORT.items()}
