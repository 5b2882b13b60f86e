"""Unit tests for data models in fluxc.lib.models."""

import unittest
from datetime import datetime

from fluxc.lib.models import (
    BulbMode,
    BulbState,
    ClockValue,
    Config,
    DeviceDescriptor,
    NamedColor,
    Power,
    PresetPattern,
    RepeatDay,
    TimerEntry,
    TimerMode,
    lookup_pattern,
)


class TestConfigDataclass(unittest.TestCase):
    def test_config_defaults(self):
        config = Config(host="192.168.1.50")
        self.assertEqual(config.host, "192.168.1.50")
        self.assertEqual(config.port, 5577)
        self.assertEqual(config.timeout, 1.0)
        self.assertEqual(config.scan_window, 3.0)


class TestPresetPattern(unittest.TestCase):
    def test_codes_cover_the_preset_range(self):
        self.assertEqual(len(PresetPattern), 20)
        self.assertEqual([p.value for p in PresetPattern], list(range(0x25, 0x39)))

    def test_lookup_is_total(self):
        self.assertEqual(lookup_pattern(0x25), PresetPattern.seven_color_cross_fade)
        self.assertEqual(lookup_pattern(0x38), PresetPattern.seven_color_jumping)
        self.assertIsNone(lookup_pattern(0x24))
        self.assertIsNone(lookup_pattern(0x99))

    def test_from_name(self):
        self.assertEqual(
            PresetPattern.from_name("Seven-Color-Cross-Fade"),
            PresetPattern.seven_color_cross_fade,
        )
        self.assertEqual(
            PresetPattern.from_name("red strobe flash"), PresetPattern.red_strobe_flash
        )
        with self.assertRaises(ValueError):
            PresetPattern.from_name("disco")

    def test_label(self):
        self.assertEqual(PresetPattern.white_gradual_change.label, "white-gradual-change")


class TestNamedColor(unittest.TestCase):
    def test_rgb(self):
        self.assertEqual(NamedColor.blue.rgb, (0, 0, 205))
        self.assertEqual(NamedColor["orange"].rgb, (255, 165, 0))


class TestBulbState(unittest.TestCase):
    def make_state(self, mode, pattern):
        return BulbState(
            power=Power.on,
            mode=mode,
            speed=100,
            rgb=(0, 0, 0),
            warm_white_pct=0,
            pattern=pattern,
            pattern_code=0x25,
            delay=1,
        )

    def test_preset_requires_pattern(self):
        with self.assertRaises(ValueError):
            self.make_state(BulbMode.preset, None)

    def test_pattern_only_in_preset_mode(self):
        with self.assertRaises(ValueError):
            self.make_state(BulbMode.unknown, PresetPattern.seven_color_cross_fade)

    def test_valid_preset_state(self):
        state = self.make_state(BulbMode.preset, PresetPattern.seven_color_cross_fade)
        self.assertEqual(state.pattern, PresetPattern.seven_color_cross_fade)


class TestValues(unittest.TestCase):
    def test_device_descriptor_is_frozen(self):
        device = DeviceDescriptor(ip="192.168.1.50", id="ABCD1234", model="AK001-ZJ2101")
        with self.assertRaises(AttributeError):
            device.ip = "10.0.0.1"

    def test_clock_to_datetime(self):
        clock = ClockValue(year=2024, month=6, day=15, hour=8, minute=30, second=45)
        self.assertEqual(clock.to_datetime(), datetime(2024, 6, 15, 8, 30, 45))

    def test_timer_repeat_days(self):
        timer = TimerEntry(
            active=True,
            year=2000,
            month=0,
            day=0,
            hour=7,
            minute=0,
            repeat_mask=0x7F,
            pattern_code=0x00,
            mode=TimerMode.default,
            rgb=(0, 0, 0),
            delay=0,
        )
        days = timer.repeat_days
        self.assertEqual(
            [day.name for day in days],
            ["mo", "tu", "we", "th", "fr", "sa"],
        )
        self.assertNotIn(RepeatDay.su, days)
        self.assertIsNone(timer.pattern)


if __name__ == "__main__":
    unittest.main()
