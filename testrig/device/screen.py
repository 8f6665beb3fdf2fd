"""Screen metric tables and parsers shared by the platform helpers."""

from __future__ import annotations

import re
from typing import Any, NamedTuple


class ScreenInfo(NamedTuple):
    """Static display metrics for a known hardware model."""

    density: float
    action_bar_height: int


# Density values use the same 100:1 encoding the automation session reports
# ("Physical density: 420" -> 4.2).
DENSITY_SCALE = 100

ANDROID_STATUS_BAR_DP = 24
ANDROID_BASELINE_DPI = 160

# Known iPhone/iPad models: scale factor and status bar height in pixels.
IOS_SCREEN_INFO: dict[str, ScreenInfo] = {
    "iPhone SE": ScreenInfo(density=2, action_bar_height=40),
    "iPhone 8": ScreenInfo(density=2, action_bar_height=40),
    "iPhone 8 Plus": ScreenInfo(density=3, action_bar_height=60),
    "iPhone X": ScreenInfo(density=3, action_bar_height=132),
    "iPhone XR": ScreenInfo(density=2, action_bar_height=88),
    "iPhone 11": ScreenInfo(density=2, action_bar_height=96),
    "iPhone 11 Pro": ScreenInfo(density=3, action_bar_height=132),
    "iPhone 12": ScreenInfo(density=3, action_bar_height=141),
    "iPhone 13": ScreenInfo(density=3, action_bar_height=141),
    "iPhone 14": ScreenInfo(density=3, action_bar_height=141),
    "iPhone 14 Pro": ScreenInfo(density=3, action_bar_height=162),
    "iPhone 15": ScreenInfo(density=3, action_bar_height=162),
    "iPhone 15 Pro": ScreenInfo(density=3, action_bar_height=162),
    "iPhone 16": ScreenInfo(density=3, action_bar_height=162),
    "iPhone 16 Pro": ScreenInfo(density=3, action_bar_height=186),
    "iPad": ScreenInfo(density=2, action_bar_height=48),
    "iPad Pro": ScreenInfo(density=2, action_bar_height=48),
}

_OVERRIDE_DENSITY = re.compile(r"Override density:\s*(\d+)")
_PHYSICAL_DENSITY = re.compile(r"Physical density:\s*(\d+)")
_BARE_DENSITY = re.compile(r"^\s*(\d+)\s*$")


def parse_wm_density(output: Any) -> float | None:
    """Parse ``wm density`` output into a density value.

    The override density wins over the physical one because it is what the
    device currently renders with.
    """
    if output is None or isinstance(output, bool):
        return None
    if isinstance(output, (int, float)):
        return float(output) / DENSITY_SCALE if output > 0 else None

    text = str(output)
    for pattern in (_OVERRIDE_DENSITY, _PHYSICAL_DENSITY, _BARE_DENSITY):
        match = pattern.search(text)
        if match:
            return int(match.group(1)) / DENSITY_SCALE
    return None


def android_screen_offset(density: float) -> int:
    """Status bar height in pixels for an Android density value."""
    dpi = density * DENSITY_SCALE
    return round(ANDROID_STATUS_BAR_DP * dpi / ANDROID_BASELINE_DPI)


def match_screen_info(device_name: str | None, table: dict[str, ScreenInfo]) -> ScreenInfo | None:
    """Find the table entry whose model name occurs in the device name.

    "iPhone 8 Plus" contains both "iPhone 8" and "iPhone 8 Plus"; the longest
    match wins.
    """
    if not device_name:
        return None
    matches = [key for key in table if key in device_name]
    if not matches:
        return None
    return table[max(matches, key=len)]
