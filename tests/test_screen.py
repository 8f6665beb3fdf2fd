"""Tests for density parsing and screen tables."""

from __future__ import annotations

import pytest

from testrig.device.screen import (
    IOS_SCREEN_INFO,
    ScreenInfo,
    android_screen_offset,
    match_screen_info,
    parse_wm_density,
)


class TestParseWmDensity:

    @pytest.mark.parametrize(
        "output, expected",
        [
            ("Physical density: 420", 4.2),
            ("Physical density: 480\nOverride density: 320", 3.2),
            ("  560\n", 5.6),
            (420, 4.2),
        ],
    )
    def test_parses(self, output, expected):
        assert parse_wm_density(output) == pytest.approx(expected)

    @pytest.mark.parametrize("output", [None, "", "error: no devices", 0, True])
    def test_unparseable_is_none(self, output):
        assert parse_wm_density(output) is None


class TestAndroidScreenOffset:

    @pytest.mark.parametrize(
        "density, expected",
        [(1.6, 24), (2.4, 36), (4.2, 63), (5.6, 84)],
    )
    def test_status_bar_pixels(self, density, expected):
        assert android_screen_offset(density) == expected


class TestMatchScreenInfo:

    def test_exact_name(self):
        assert match_screen_info("iPhone 11 Pro", IOS_SCREEN_INFO) == IOS_SCREEN_INFO["iPhone 11 Pro"]

    def test_no_name(self):
        assert match_screen_info(None, IOS_SCREEN_INFO) is None

    def test_custom_table(self):
        table = {"Tab": ScreenInfo(1.0, 10), "Tablet X": ScreenInfo(2.0, 20)}
        assert match_screen_info("Tablet X (2nd gen)", table) == ScreenInfo(2.0, 20)
        assert match_screen_info("Phone", table) is None
