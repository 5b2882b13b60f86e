"""Data models for flux bulb control, state and timer decoding."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime
from enum import Enum, IntEnum, IntFlag, StrEnum

DEFAULT_PORT = 5577
DEFAULT_TIMEOUT = 1.0
DEFAULT_SCAN_WINDOW = 3.0


@dataclass(frozen=True)
class Config:
    host: str | None
    port: int = DEFAULT_PORT
    timeout: float = DEFAULT_TIMEOUT
    scan_window: float = DEFAULT_SCAN_WINDOW


class Power(StrEnum):
    on = enum.auto()
    off = enum.auto()
    unknown = enum.auto()


class BulbMode(StrEnum):
    warm_white = enum.auto()
    color = enum.auto()
    custom = enum.auto()
    preset = enum.auto()
    unknown = enum.auto()


class TimerMode(StrEnum):
    color = enum.auto()
    default = enum.auto()
    preset = enum.auto()


class PresetPattern(IntEnum):
    """Factory color-cycling effects and their one-byte codes."""

    seven_color_cross_fade = 0x25
    red_gradual_change = 0x26
    green_gradual_change = 0x27
    blue_gradual_change = 0x28
    yellow_gradual_change = 0x29
    cyan_gradual_change = 0x2A
    purple_gradual_change = 0x2B
    white_gradual_change = 0x2C
    red_green_cross_fade = 0x2D
    red_blue_cross_fade = 0x2E
    green_blue_cross_fade = 0x2F
    seven_color_strobe_flash = 0x30
    red_strobe_flash = 0x31
    green_strobe_flash = 0x32
    blue_strobe_flash = 0x33
    yellow_strobe_flash = 0x34
    cyan_strobe_flash = 0x35
    purple_strobe_flash = 0x36
    white_strobe_flash = 0x37
    seven_color_jumping = 0x38

    @property
    def label(self) -> str:
        return self.name.replace("_", "-")

    @classmethod
    def from_name(cls, name: str) -> PresetPattern:
        """Accept `seven-color-cross-fade`, `seven_color_cross_fade` or any casing."""
        key = name.strip().lower().replace("-", "_").replace(" ", "_")
        try:
            return cls[key]
        except KeyError:
            raise ValueError(f"Unknown pattern: {name}") from None


def lookup_pattern(code: int) -> PresetPattern | None:
    """Return the preset for a pattern code, or None when the code is not a preset."""
    try:
        return PresetPattern(code)
    except ValueError:
        return None


class NamedColor(Enum):
    red = (255, 0, 0)
    green = (0, 128, 0)
    yellow = (255, 255, 0)
    purple = (128, 0, 128)
    blue = (0, 0, 205)
    indigo = (75, 0, 130)
    orange = (255, 165, 0)
    brown = (165, 42, 42)
    pink = (255, 192, 203)
    white = (255, 255, 255)

    @property
    def rgb(self) -> tuple[int, int, int]:
        return self.value


class RepeatDay(IntFlag):
    """Weekday bits of a timer repeat mask. Bit 0 is unused by the device."""

    mo = 0x02
    tu = 0x04
    we = 0x08
    th = 0x10
    fr = 0x20
    sa = 0x40
    su = 0x80


@dataclass(frozen=True)
class DeviceDescriptor:
    ip: str
    id: str
    model: str


@dataclass(frozen=True)
class BulbState:
    power: Power
    mode: BulbMode
    speed: int
    rgb: tuple[int, int, int]
    warm_white_pct: int
    pattern: PresetPattern | None
    pattern_code: int
    delay: int

    def __post_init__(self) -> None:
        if self.mode == BulbMode.preset and self.pattern is None:
            raise ValueError("Preset mode requires a known pattern.")
        if self.mode != BulbMode.preset and self.pattern is not None:
            raise ValueError(f"Pattern is only set in preset mode, got mode={self.mode}.")


@dataclass(frozen=True)
class ClockValue:
    year: int
    month: int
    day: int
    hour: int
    minute: int
    second: int

    def to_datetime(self) -> datetime:
        return datetime(self.year, self.month, self.day, self.hour, self.minute, self.second)


@dataclass(frozen=True)
class TimerEntry:
    """One of the six slots of the device timer table.

    `rgb[0]` and `delay` are read from the same slot byte. Which reading is
    meaningful for a given mode has not been verified against hardware, so
    both are exposed and the caller decides.
    """

    active: bool
    year: int
    month: int
    day: int
    hour: int
    minute: int
    repeat_mask: int
    pattern_code: int
    mode: TimerMode
    rgb: tuple[int, int, int]
    delay: int

    @property
    def repeat_days(self) -> RepeatDay:
        return RepeatDay(self.repeat_mask & 0xFE)

    @property
    def pattern(self) -> PresetPattern | None:
        return lookup_pattern(self.pattern_code)
