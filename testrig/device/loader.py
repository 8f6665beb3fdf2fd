"""Load a DeviceInventory implementation from an import path."""

from __future__ import annotations

import importlib
import logging
from typing import Any

from testrig.device.inventory import DeviceInventory
from testrig.models import DeviceError

logger = logging.getLogger("testrig.loader")


def load_inventory(import_path: str) -> DeviceInventory:
    """Import ``module:attr`` and return an inventory instance.

    ``attr`` may be an inventory instance, a class, or a zero-argument
    factory function.
    """
    module_name, sep, attr = import_path.partition(":")
    if not sep or not module_name or not attr:
        raise DeviceError(
            f"inventory must be given as 'module:attr', got {import_path!r}", tool="loader"
        )

    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise DeviceError(f"failed to import inventory module {module_name}: {exc}", tool="loader") from exc

    target: Any = getattr(module, attr, None)
    if target is None:
        raise DeviceError(f"module {module_name} has no attribute {attr!r}", tool="loader")

    if isinstance(target, type):
        inventory = target()
    elif isinstance(target, DeviceInventory) or not callable(target):
        inventory = target
    else:
        inventory = target()

    if not isinstance(inventory, DeviceInventory):
        raise DeviceError(
            f"{import_path} does not implement the DeviceInventory protocol", tool="loader"
        )

    logger.debug("Loaded inventory %s from %s", type(inventory).__name__, import_path)
    return inventory
