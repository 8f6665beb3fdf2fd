"""Runner configuration: user config file, environment overrides, capabilities."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from testrig.models import DeviceError, TargetSpec

logger = logging.getLogger("testrig.config")

CONFIG_DIR = Path.home() / ".testrig"
USER_CONFIG_FILE = CONFIG_DIR / "config.json"

DEVICE_TOKEN_ENV = "DEVICE_TOKEN"
DEVICE_NAME_ENV = "DEVICE_NAME"


@dataclass
class DeviceOverrides:
    """Device chosen by the environment (CI lanes, device farms)."""

    device_token: str | None = None
    device_name: str | None = None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> DeviceOverrides:
        env = os.environ if environ is None else environ
        return cls(
            device_token=env.get(DEVICE_TOKEN_ENV) or None,
            device_name=env.get(DEVICE_NAME_ENV) or None,
        )


def read_user_config() -> dict:
    """Read user config from ~/.testrig/config.json. Returns {} if missing or invalid."""
    if not USER_CONFIG_FILE.exists():
        return {}
    try:
        return json.loads(USER_CONFIG_FILE.read_text())
    except Exception as e:
        logger.warning("Failed to read config file %s: %s", USER_CONFIG_FILE, e)
        return {}


def get_default_run_type() -> str:
    """Return the configured default run type, defaulting to 'default'."""
    return read_user_config().get("default_run_type", "default")


def get_inventory_path() -> str | None:
    """Return the configured inventory import path ("module:attr"), if any."""
    value = read_user_config().get("inventory")
    return str(value) if value else None


def load_capabilities(path: str | Path) -> dict[str, Any]:
    """Load an Appium-style capabilities JSON file."""
    path = Path(path)
    try:
        data = json.loads(path.read_text())
    except FileNotFoundError:
        raise DeviceError(f"Capabilities file not found: {path}", tool="config") from None
    except json.JSONDecodeError as exc:
        raise DeviceError(f"Invalid JSON in {path}: {exc}", tool="config") from None
    if not isinstance(data, dict):
        raise DeviceError(
            f"Expected a JSON object in {path}, got {type(data).__name__}", tool="config"
        )
    return data


def build_target_spec(
    caps: Mapping[str, Any],
    overrides: DeviceOverrides | None = None,
    **flags: Any,
) -> TargetSpec:
    """Combine capabilities, policy flags and environment overrides."""
    overrides = overrides if overrides is not None else DeviceOverrides.from_env()
    return TargetSpec.from_capabilities(
        caps,
        device_token=overrides.device_token,
        device_name_override=overrides.device_name,
        **flags,
    )
