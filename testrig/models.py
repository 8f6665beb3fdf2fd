"""Core data models for devices, run requests and selection results."""

from __future__ import annotations

import enum
from typing import Any, Mapping

from pydantic import BaseModel, Field


class DeviceError(Exception):
    """Raised when a device operation or its configuration fails."""

    def __init__(self, message: str, tool: str = "") -> None:
        super().__init__(message)
        self.tool = tool


class Platform(str, enum.Enum):
    """Mobile platform a device belongs to."""

    ANDROID = "android"
    IOS = "ios"

    @classmethod
    def parse(cls, value: str | Platform) -> Platform:
        """Parse a platform name case-insensitively ("Android", "iOS", ...)."""
        if isinstance(value, Platform):
            return value
        return cls(value.strip().lower())


class DeviceType(str, enum.Enum):
    """Kind of test target."""

    EMULATOR = "emulator"
    SIMULATOR = "simulator"
    DEVICE = "device"
    REAL = "real"

    @property
    def is_virtual(self) -> bool:
        return self in (DeviceType.EMULATOR, DeviceType.SIMULATOR)


class DeviceStatus(str, enum.Enum):
    """Runtime status as reported by the inventory service."""

    SHUTDOWN = "shutdown"
    BOOTED = "booted"
    BOOTING = "booting"
    SHUTTING_DOWN = "shutting_down"
    BUSY = "busy"
    UNAVAILABLE = "unavailable"


class DeviceConfig(BaseModel):
    """Display metrics used to translate logical coordinates to physical taps."""

    density: float | None = Field(default=None, description="Physical pixels per logical unit")
    offset_pixels: int | None = Field(default=None, description="Status/action bar height in pixels")


class Device(BaseModel):
    """A single addressable test target.

    ``platform`` and ``device_type`` are fixed at creation. ``status`` mirrors
    the inventory's view of the device and may be stale between queries.
    """

    name: str
    token: str | None = Field(default=None, description="Unique serial / udid")
    platform: Platform = Field(frozen=True)
    device_type: DeviceType | None = Field(default=None, frozen=True)
    os_version: str | None = None
    status: DeviceStatus | None = None
    config: DeviceConfig = Field(default_factory=DeviceConfig)

    @property
    def is_virtual(self) -> bool:
        return self.device_type is not None and self.device_type.is_virtual

    def describe(self) -> str:
        """Short human-readable label for log lines."""
        status = self.status.value if self.status else "unknown"
        return f"{self.name} ({self.token or 'no token'}, {self.os_version or '?'}, {status})"


class TargetSpec(BaseModel):
    """What the caller wants to run on, plus reuse/ignore policy flags."""

    platform: Platform
    device_name: str | None = None
    platform_version: str | None = None
    udid: str | None = Field(default=None, description="Takes precedence over name + version")

    app: str | None = None
    app_package: str | None = None
    bundle_id: str | None = None

    # Explicit display metrics carried over to the synthesized device
    density: float | None = None
    offset_pixels: int | None = None

    run_type: str = "default"
    reuse_device: bool = False
    remote_lab: bool = False
    ignore_inventory: bool = False
    relaxed_security: bool = False

    # Environment overrides, highest precedence of all selection inputs
    device_token: str | None = None
    device_name_override: str | None = None

    @property
    def skips_inventory(self) -> bool:
        """True when the local inventory must not be consulted at all."""
        return self.remote_lab or self.ignore_inventory

    @classmethod
    def from_capabilities(cls, caps: Mapping[str, Any], **flags: Any) -> TargetSpec:
        """Build a spec from an Appium-style capabilities mapping."""
        if "platformName" not in caps:
            raise DeviceError("capabilities are missing 'platformName'", tool="config")
        try:
            platform = Platform.parse(caps["platformName"])
        except ValueError:
            raise DeviceError(
                f"Unsupported platformName {caps['platformName']!r}", tool="config"
            ) from None

        version = caps.get("platformVersion")
        return cls(
            platform=platform,
            device_name=caps.get("deviceName"),
            platform_version=str(version) if version is not None else None,
            udid=caps.get("udid"),
            app=caps.get("app"),
            app_package=caps.get("appPackage"),
            bundle_id=caps.get("bundleId"),
            density=caps.get("density"),
            offset_pixels=caps.get("offsetPixels"),
            **flags,
        )


class DeviceSelection(BaseModel):
    """Outcome of a selection: either a device or the reason there is none."""

    device: Device | None = None
    reason: str | None = None
    path: str = Field(default="inventory", description="'override', 'remote' or 'inventory'")

    @property
    def found(self) -> bool:
        return self.device is not None

    @classmethod
    def not_found(cls, reason: str, path: str = "inventory") -> DeviceSelection:
        return cls(device=None, reason=reason, path=path)
