"""DeviceManager: selects, boots, reuses and tears down test devices."""

from __future__ import annotations

import logging
from typing import Any

from testrig.device.inventory import DeviceInventory, LiveDriver, filter_devices
from testrig.device.metrics import DisplayMetricsResolver
from testrig.device.platforms import build_platform_table, execute_shell_command
from testrig.device.registry import SessionRegistry
from testrig.models import Device, DeviceConfig, DeviceSelection, DeviceType, Platform, TargetSpec

logger = logging.getLogger("testrig.device-manager")


class DeviceManager:
    """Picks one device per run-type and remembers it for teardown.

    Selection order:
    1. Environment-provided device token → look it up and return it as is
    2. Remote lab / ignored inventory → synthesize a descriptor, no lookup
    3. Local inventory → filter by udid or name + version, then by status,
       booting or cycling the chosen device as the reuse policy requires
    """

    def __init__(
        self,
        inventory: DeviceInventory,
        registry: SessionRegistry | None = None,
    ) -> None:
        self.inventory = inventory
        self.registry = registry if registry is not None else SessionRegistry()
        self.platforms = build_platform_table(inventory)
        self.metrics = DisplayMetricsResolver(self.platforms)

    # ----------------------------------------------------------------
    # Lifecycle
    # ----------------------------------------------------------------

    async def start_device(self, spec: TargetSpec) -> DeviceSelection:
        """Select a device for ``spec.run_type`` and make sure it is running."""
        async with self.registry.lock(spec.run_type):
            return await self._select_and_start(spec)

    async def stop_device(self, spec: TargetSpec) -> bool:
        """Kill the device bound to ``spec.run_type`` unless policy says keep it.

        Returns True if a kill was issued. The binding stays in the registry.
        """
        async with self.registry.lock(spec.run_type):
            device = self.registry.lookup(spec.run_type)
            if device is None:
                logger.debug("No device bound to run type %s, nothing to stop", spec.run_type)
                return False
            if spec.reuse_device or spec.remote_lab or spec.ignore_inventory:
                logger.info(
                    "Leaving %s running (reuse=%s, remote_lab=%s, ignore_inventory=%s)",
                    device.name, spec.reuse_device, spec.remote_lab, spec.ignore_inventory,
                )
                return False
            await self.kill(device)
            logger.info("Stopped device %s for run type %s", device.name, spec.run_type)
            return True

    async def kill(self, device: Device) -> None:
        await self.inventory.kill(device)

    async def _select_and_start(self, spec: TargetSpec) -> DeviceSelection:
        device = self.default_device(spec)

        if spec.device_token:
            return await self._select_override(spec, device)

        if spec.skips_inventory:
            self.registry.bind(spec.run_type, device)
            logger.info("Inventory skipped, using requested device %s as is", device.name)
            return DeviceSelection(device=device, path="remote")

        all_devices = await self.inventory.get_devices(spec.platform)
        if not all_devices:
            logger.warning(
                "No %s devices found. Proceeding anyway; is the emulator/simulator tooling installed?",
                spec.platform.value,
            )

        if spec.udid:
            candidates = filter_devices(all_devices, token=spec.udid)
        else:
            candidates = filter_devices(
                all_devices, name=spec.device_name, os_version=spec.platform_version,
            )

        if not candidates:
            available = ", ".join(d.describe() for d in all_devices) or "none"
            logger.warning(
                "No such device %s! Check your device name. Available devices: %s",
                spec.udid or spec.device_name, available,
            )
            return DeviceSelection.not_found(
                f"No {spec.platform.value} device matching "
                f"{self._criteria(spec)}; available: {available}"
            )

        support = self.platforms[spec.platform]
        selected = support.select_preferred(candidates, spec.reuse_device)
        if selected is None:
            states = ", ".join(d.describe() for d in candidates)
            logger.warning("No booted or shutdown device among matches: %s", states)
            return DeviceSelection.not_found(
                f"Devices matching {self._criteria(spec)} are neither booted nor shutdown: {states}"
            )

        await support.start_or_restart(selected, spec.reuse_device)
        self.registry.bind(spec.run_type, selected)
        return DeviceSelection(device=selected, path="inventory")

    async def _select_override(self, spec: TargetSpec, default: Device) -> DeviceSelection:
        token = spec.device_token
        name = spec.device_name_override or default.name
        logger.info("Using device from environment: %s (%s)", name, token)

        all_devices = await self.inventory.get_devices(default.platform)
        matches = filter_devices(all_devices, token=token)
        if not matches:
            logger.warning("Device with token %s not found among %d devices", token, len(all_devices or []))
            return DeviceSelection.not_found(f"No device {name!r} with token {token}", path="override")

        logger.info("Device: %s", matches[0].describe())
        return DeviceSelection(device=matches[0], path="override")

    @staticmethod
    def default_device(spec: TargetSpec) -> Device:
        """Descriptor built purely from the request, without any lookup."""
        return Device(
            name=spec.device_name or "",
            token=spec.device_token,
            platform=spec.platform,
            os_version=spec.platform_version,
            config=DeviceConfig(density=spec.density, offset_pixels=spec.offset_pixels),
        )

    @staticmethod
    def _criteria(spec: TargetSpec) -> str:
        if spec.udid:
            return f"udid='{spec.udid}'"
        parts = [f"name='{spec.device_name}'"]
        if spec.platform_version:
            parts.append(f"os_version='{spec.platform_version}'")
        return ", ".join(parts)

    # ----------------------------------------------------------------
    # Display metrics
    # ----------------------------------------------------------------

    async def resolve_display_metrics(
        self,
        spec: TargetSpec,
        device: Device,
        driver: LiveDriver | None = None,
    ) -> None:
        await self.metrics.resolve(spec, device, driver)

    async def apply_session_settings(
        self,
        spec: TargetSpec,
        device: Device,
        driver: LiveDriver | None,
        session_capabilities: dict[str, Any] | None,
    ) -> None:
        await self.metrics.apply_session_settings(spec, device, driver, session_capabilities)

    # ----------------------------------------------------------------
    # App and device settings (delegated to the inventory)
    # ----------------------------------------------------------------

    async def install_app(self, spec: TargetSpec, device: Device) -> None:
        if not spec.app:
            logger.warning("No app given for %s, skipping install", device.name)
            return
        await self.inventory.install_app(device, spec.app)
        logger.info("Application %s installed on %s", spec.app, device.name)

    async def uninstall_app(self, spec: TargetSpec, device: Device) -> None:
        app_id = self.platforms[device.platform].uninstall_id(spec)
        await self.inventory.uninstall_app(device, app_id, spec.app)
        logger.info("Application %s uninstalled from %s", app_id, device.name)

    def get_package_id(self, device: Device, app_path: str) -> str:
        if device.device_type == DeviceType.EMULATOR or device.platform == Platform.ANDROID:
            return self.inventory.get_android_package_id(app_path)
        return self.inventory.get_ios_package_id(device.device_type, app_path)

    async def set_dont_keep_activities(
        self,
        spec: TargetSpec,
        device: Device,
        driver: LiveDriver | None,
        value: bool,
    ) -> None:
        await self.platforms[device.platform].set_dont_keep_activities(spec, device, driver, value)

    @staticmethod
    async def execute_shell_command(
        driver: LiveDriver | None,
        command: str,
        args: list[Any],
    ) -> Any:
        return await execute_shell_command(driver, command, args)
