"""Flux bulb TCP control primitives."""

from __future__ import annotations

import logging
import socket
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime

from fluxc.lib.models import (
    DEFAULT_PORT,
    DEFAULT_TIMEOUT,
    BulbState,
    ClockValue,
    NamedColor,
    PresetPattern,
    TimerEntry,
)
from fluxc.lib.parsers import (
    CLOCK_RESPONSE_LENGTH,
    QUERY_CLOCK,
    QUERY_STATE,
    QUERY_TIMERS,
    STATE_RESPONSE_LENGTH,
    TIMERS_RESPONSE_LENGTH,
    bin_to_hex,
    build_clock_command,
    build_frame,
    build_pattern_command,
    build_power_command,
    build_rgb_command,
    build_warm_white_command,
    format_hex,
    parse_clock,
    parse_state,
    parse_timers,
)

OFF_RGB = (0, 0, 0)

log = logging.getLogger("fluxc")


class TransportError(RuntimeError):
    """Raised when a command could not be exchanged with the bulb."""


class TransportTimeout(TransportError):
    """Connect, write or read did not complete before the timeout."""


class TransportFailure(TransportError):
    """Connection refused, reset, or closed before the full reply arrived."""


def _read_exactly(sock: socket.socket, length: int, deadline: float) -> bytes:
    buffer = bytearray()
    while len(buffer) < length:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise TimeoutError(f"Read {len(buffer)} of {length} bytes before the deadline")
        sock.settimeout(remaining)
        chunk = sock.recv(length - len(buffer))
        if not chunk:
            raise TransportFailure(
                f"Connection closed after {len(buffer)} of {length} reply bytes."
            )
        buffer.extend(chunk)
    return bytes(buffer)


def execute(
    ip: str,
    port: int,
    opcode: Iterable[int],
    response_length: int = 0,
    *,
    timeout: float = DEFAULT_TIMEOUT,
) -> bytes | None:
    """Send one command on a fresh connection and read a fixed-length reply.

    With `response_length` 0 the command is fire-and-forget and None is
    returned. The connection is closed on every exit path.
    """
    frame = build_frame(opcode)
    log.debug("SEND %s:%d data=%s", ip, port, format_hex(frame))
    deadline = time.monotonic() + timeout
    try:
        with socket.create_connection((ip, port), timeout=timeout) as sock:
            sock.sendall(frame)
            if response_length <= 0:
                return None
            response = _read_exactly(sock, response_length, deadline)
    except TimeoutError as exc:
        raise TransportTimeout(f"Timed out talking to {ip}:{port}: {exc}") from exc
    except OSError as exc:
        raise TransportFailure(f"Connection to {ip}:{port} failed: {exc}") from exc

    log.debug("RECV %s:%d data=%s", ip, port, bin_to_hex(response))
    return response


@dataclass(frozen=True)
class Bulb:
    ip: str
    port: int = DEFAULT_PORT
    timeout: float = DEFAULT_TIMEOUT

    def _send(self, opcode: bytes) -> None:
        execute(self.ip, self.port, opcode, timeout=self.timeout)

    def _query(self, opcode: bytes, response_length: int) -> bytes:
        response = execute(self.ip, self.port, opcode, response_length, timeout=self.timeout)
        assert response is not None
        return response

    def send_raw(self, opcode: bytes, response_length: int = 0) -> bytes | None:
        return execute(self.ip, self.port, opcode, response_length, timeout=self.timeout)

    def set_power(self, on: bool) -> None:
        self._send(build_power_command(on))

    def turn_on(self) -> None:
        self.set_power(True)

    def turn_off(self) -> None:
        self.set_power(False)

    def set_rgb(self, rgb: tuple[int, int, int], persist: bool = True) -> None:
        self._send(build_rgb_command(rgb, persist))

    def set_color(self, color: NamedColor, persist: bool = True) -> None:
        self.set_rgb(color.rgb, persist)

    def set_warm_white(self, percent: int, persist: bool = True) -> None:
        self._send(build_warm_white_command(percent, persist))

    def set_pattern(self, pattern: PresetPattern, speed: int) -> None:
        self._send(build_pattern_command(pattern, speed))

    def get_state(self) -> BulbState:
        return parse_state(self._query(QUERY_STATE, STATE_RESPONSE_LENGTH))

    def get_clock(self) -> ClockValue:
        return parse_clock(self._query(QUERY_CLOCK, CLOCK_RESPONSE_LENGTH))

    def sync_clock(self, now: datetime | None = None) -> None:
        """Set the bulb clock to `now`, host local time by default."""
        if now is None:
            now = datetime.now()
        log.debug("Synchronizing clock of %s to %s", self.ip, now.isoformat())
        self._send(build_clock_command(now))

    def get_timers(self) -> list[TimerEntry]:
        return parse_timers(self._query(QUERY_TIMERS, TIMERS_RESPONSE_LENGTH))

    def flash(
        self,
        count: int,
        color: NamedColor = NamedColor.blue,
        interval: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Alternate between `color` and black `count` times."""
        for index in range(count):
            self.set_rgb(color.rgb)
            sleep(interval)
            self.set_rgb(OFF_RGB)
            if index < count - 1:
                sleep(interval)
