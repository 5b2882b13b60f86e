"""Frame encoding and reply decoding helpers for flux bulb control."""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from datetime import datetime

from fluxc.lib.models import (
    BulbMode,
    BulbState,
    ClockValue,
    DeviceDescriptor,
    Power,
    PresetPattern,
    TimerEntry,
    TimerMode,
    lookup_pattern,
)

POWER_ON = 0x23
POWER_OFF = 0x24
PERSIST = 0x31
NO_PERSIST = 0x41
COLOR_PATTERN = 0x61
WARM_WHITE_PATTERN = 0x62
CUSTOM_PATTERN = 0x60
TIMER_DEFAULT_PATTERN = 0x00
TIMER_ACTIVE = 0xF0
MAX_DELAY = 0x1F

QUERY_STATE = bytes([0x81, 0x8A, 0x8B])
QUERY_CLOCK = bytes([0x11, 0x1A, 0x1B, 0x0F])
QUERY_TIMERS = bytes([0x22, 0x2A, 0x2B, 0x0F])

STATE_RESPONSE_LENGTH = 14
CLOCK_RESPONSE_LENGTH = 12
TIMERS_RESPONSE_LENGTH = 88
TIMER_SLOT_COUNT = 6
TIMER_SLOT_LENGTH = 14
TIMER_SLOT_MIN_LENGTH = 12
TIMERS_OFFSET = 2

log = logging.getLogger("fluxc")


def hex_to_bin(value: str) -> bytes:
    cleaned = value.lower().replace("0x", "").replace(" ", "").replace("\n", "")
    if len(cleaned) % 2:
        raise ValueError("Hex payload must have an even number of characters.")
    try:
        return bytes.fromhex(cleaned)
    except ValueError as exc:
        raise ValueError(f"Invalid hex payload: {value}.") from exc


def bin_to_hex(data: bytes, width: int = 16) -> str:
    s = "\n"
    for i in range(0, len(data), width):
        chunk = data[i : i + width]
        hex_str = " ".join(f"{b:02x}" for b in chunk)
        s += f"{hex_str:48}\n"
    return s


def format_hex(data: bytes) -> str:
    return " ".join(f"{b:02x}" for b in data)


def to_unsigned(values: Iterable[int]) -> bytes:
    """Normalize every value to an unsigned byte. The only place masking happens."""
    return bytes(value & 0xFF for value in values)


def clamp(n: int, low: int, high: int) -> int:
    return max(low, min(n, high))


def percent_to_byte(percent: int) -> int:
    return int(clamp(percent, 0, 100) * 255 / 100)


def warm_white_percent(level: int) -> int:
    return math.ceil(clamp(level, 0, 255) * 100 / 255)


def delay_to_speed(delay: int) -> int:
    """Lower device delay means a faster effect. Delay 1 is speed 100, delay 31 is 0."""
    normalized = clamp(delay - 1, 0, MAX_DELAY - 1)
    return 100 - int(normalized * 100 / (MAX_DELAY - 1))


def speed_to_delay(speed: int) -> int:
    inverse = 100 - clamp(speed, 0, 100)
    return int(inverse * (MAX_DELAY - 1) / 100) + 1


def checksum(opcode: Iterable[int]) -> int:
    return sum(opcode) & 0xFF


def build_frame(opcode: Iterable[int]) -> bytes:
    data = to_unsigned(opcode)
    return data + bytes([checksum(data)])


def build_power_command(on: bool) -> bytes:
    return bytes([0x71, POWER_ON if on else POWER_OFF, 0x0F])


def _check_rgb(rgb: Iterable[int]) -> tuple[int, int, int]:
    r, g, b = rgb
    for component in (r, g, b):
        if not 0 <= component <= 0xFF:
            raise ValueError(f"Color components must be between 0 and 255, got {(r, g, b)}.")
    return r, g, b


def build_rgb_command(rgb: Iterable[int], persist: bool = True) -> bytes:
    r, g, b = _check_rgb(rgb)
    return bytes([PERSIST if persist else NO_PERSIST, r, g, b, 0x00, 0xF0, 0x0F])


def build_warm_white_command(percent: int, persist: bool = True) -> bytes:
    level = percent_to_byte(percent)
    return bytes([PERSIST if persist else NO_PERSIST, 0x00, 0x00, 0x00, level, 0x0F, 0x0F])


def build_pattern_command(pattern: PresetPattern, speed: int) -> bytes:
    return bytes([COLOR_PATTERN, int(pattern), speed_to_delay(speed), 0x0F])


def build_clock_command(now: datetime) -> bytes:
    """Build the clock-set command. Day of week is ISO numbered, Monday is 1."""
    if not 2000 <= now.year <= 2000 + 0xFF:
        raise ValueError(f"Device clock cannot hold year {now.year}.")
    body = [
        now.year - 2000,
        now.month,
        now.day,
        now.hour,
        now.minute,
        now.second,
        now.isoweekday(),
    ]
    return bytes([0x10, 0x14, *body, 0x00, 0x0F])


def _require_length(data: bytes, length: int, what: str) -> None:
    if len(data) < length:
        raise ValueError(f"{what} response too short: {len(data)} bytes, need {length}")


def decode_power(code: int) -> Power:
    if code == POWER_ON:
        return Power.on
    if code == POWER_OFF:
        return Power.off
    return Power.unknown


def decode_mode(pattern_code: int, warm_white_level: int) -> BulbMode:
    if pattern_code in (COLOR_PATTERN, WARM_WHITE_PATTERN):
        return BulbMode.warm_white if warm_white_level else BulbMode.color
    if pattern_code == CUSTOM_PATTERN:
        return BulbMode.custom
    if lookup_pattern(pattern_code) is not None:
        return BulbMode.preset
    return BulbMode.unknown


def parse_state(data: Iterable[int]) -> BulbState:
    """Parse the 14-byte state query response."""
    data = to_unsigned(data)
    _require_length(data, STATE_RESPONSE_LENGTH, "State")

    pattern_code = data[3]
    warm_white_level = data[9]
    mode = decode_mode(pattern_code, warm_white_level)

    return BulbState(
        power=decode_power(data[2]),
        mode=mode,
        speed=delay_to_speed(data[5]),
        rgb=(data[6], data[7], data[8]),
        warm_white_pct=warm_white_percent(warm_white_level),
        pattern=lookup_pattern(pattern_code) if mode == BulbMode.preset else None,
        pattern_code=pattern_code,
        delay=data[5],
    )


def parse_clock(data: Iterable[int]) -> ClockValue:
    data = to_unsigned(data)
    _require_length(data, CLOCK_RESPONSE_LENGTH, "Clock")
    year, month, day, hour, minute, second = data[3:9]
    return ClockValue(
        year=year + 2000,
        month=month,
        day=day,
        hour=hour,
        minute=minute,
        second=second,
    )


def decode_timer_mode(pattern_code: int) -> TimerMode:
    if pattern_code == COLOR_PATTERN:
        return TimerMode.color
    if pattern_code == TIMER_DEFAULT_PATTERN:
        return TimerMode.default
    return TimerMode.preset


def parse_timer(slot: Iterable[int]) -> TimerEntry:
    """Parse one timer slot. Inactive slots decode the same way as active ones."""
    slot = to_unsigned(slot)
    _require_length(slot, TIMER_SLOT_MIN_LENGTH, "Timer slot")
    return TimerEntry(
        active=slot[0] == TIMER_ACTIVE,
        year=slot[1] + 2000,
        month=slot[2],
        day=slot[3],
        hour=slot[4],
        minute=slot[5],
        repeat_mask=slot[7],
        pattern_code=slot[8],
        mode=decode_timer_mode(slot[8]),
        rgb=(slot[9], slot[10], slot[11]),
        # Same byte as rgb[0].
        delay=slot[9],
    )


def parse_timers(data: Iterable[int]) -> list[TimerEntry]:
    """Split the 88-byte timer table response into its six slots."""
    data = to_unsigned(data)
    _require_length(data, TIMERS_RESPONSE_LENGTH, "Timer table")

    timers = []
    for index in range(TIMER_SLOT_COUNT):
        offset = TIMERS_OFFSET + index * TIMER_SLOT_LENGTH
        timers.append(parse_timer(data[offset : offset + TIMER_SLOT_LENGTH]))
    return timers


def clean_reply(data: bytes) -> str:
    """Decode a discovery reply and drop the NUL padding of the receive buffer."""
    return data.decode("ascii", errors="replace").replace("\x00", "").strip()


def parse_discovery_reply(reply: str) -> DeviceDescriptor:
    fields = reply.split(",")
    if len(fields) != 3:
        raise ValueError(f"Expected 'ip,id,model' discovery reply, got {reply!r}")
    ip, device_id, model = fields
    return DeviceDescriptor(ip=ip, id=device_id, model=model)


def parse_discovery_replies(replies: Iterable[str]) -> list[DeviceDescriptor]:
    """Parse unique discovery replies, dropping the ones that do not parse."""
    devices = []
    for reply in set(replies):
        try:
            devices.append(parse_discovery_reply(reply))
        except ValueError as exc:
            log.debug("Dropping malformed discovery reply: %s", exc)
    return sorted(devices, key=lambda device: device.ip)
