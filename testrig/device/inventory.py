"""Boundaries to the external inventory service and the live automation driver.

Neither is implemented here: enumerating emulators/simulators/phones, booting
and killing them, and moving packages on and off them belong to whatever
inventory implementation is plugged in (see ``testrig.device.loader``).
"""

from __future__ import annotations

from typing import Any, Iterable, Protocol, runtime_checkable

from testrig.device.screen import IOS_SCREEN_INFO, ScreenInfo, android_screen_offset
from testrig.models import Device, DeviceType, Platform

EMULATOR_TOKEN_PREFIX = "emulator-"


@runtime_checkable
class DeviceInventory(Protocol):
    """Enumerates and controls device processes on the host."""

    async def get_devices(self, platform: Platform) -> list[Device]: ...

    async def start(self, device: Device) -> None:
        """Boot the device. Implementations update ``device.status``."""
        ...

    async def kill(self, device: Device) -> None: ...

    async def install_app(self, device: Device, app_path: str) -> None: ...

    async def uninstall_app(self, device: Device, app_id: str | None, app_path: str | None = None) -> None:
        """Remove the app by package or bundle id; iOS backends may also need the app path."""
        ...

    async def get_physical_density(self, device: Device) -> float | None: ...

    async def set_dont_keep_activities(self, device: Device, value: bool) -> None: ...

    def get_screen_info(self) -> dict[str, ScreenInfo]: ...

    def calculate_screen_offset(self, density: float) -> int: ...

    def get_android_package_id(self, app_path: str) -> str: ...

    def get_ios_package_id(self, device_type: DeviceType | None, app_path: str) -> str: ...


class StaticScreenInfoMixin:
    """Default screen tables for inventories that have nothing better."""

    def get_screen_info(self) -> dict[str, ScreenInfo]:
        return dict(IOS_SCREEN_INFO)

    def calculate_screen_offset(self, density: float) -> int:
        return android_screen_offset(density)


@runtime_checkable
class LiveDriver(Protocol):
    """The running automation session (e.g. an Appium driver wrapper)."""

    platform_name: str

    async def execute(self, command: str, args: dict[str, Any]) -> Any: ...


def normalize_token(token: str | None) -> str | None:
    """Strip the virtual-device address prefix ("emulator-5554" -> "5554")."""
    if token is None:
        return None
    if token.startswith(EMULATOR_TOKEN_PREFIX):
        return token[len(EMULATOR_TOKEN_PREFIX):]
    return token


def filter_devices(devices: Iterable[Device] | None, **criteria: Any) -> list[Device]:
    """Return devices whose attributes equal every given criterion.

    Criteria with a value of ``None`` are ignored, so a request without a
    platform version matches on name alone. Tokens are compared after
    stripping the emulator address prefix.
    """
    active = {k: v for k, v in criteria.items() if v is not None}
    if "token" in active:
        active["token"] = normalize_token(active["token"])

    matched = []
    for device in devices or []:
        for key, wanted in active.items():
            actual = getattr(device, key, None)
            if key == "token":
                actual = normalize_token(actual)
            if actual != wanted:
                break
        else:
            matched.append(device)
    return matched
