"""Command-line controller for flux LAN bulbs."""

from __future__ import annotations

import argparse
import json
import logging
import sys

from fluxc.lib.bulb import Bulb
from fluxc.lib.discovery import scan
from fluxc.lib.models import (
    DEFAULT_PORT,
    DEFAULT_SCAN_WINDOW,
    DEFAULT_TIMEOUT,
    BulbState,
    Config,
    DeviceDescriptor,
    NamedColor,
    PresetPattern,
    TimerEntry,
    TimerMode,
)
from fluxc.lib.parsers import bin_to_hex, hex_to_bin

LOG_FORMAT = "%(asctime)s %(levelname)s %(message)s"
log = logging.getLogger("fluxc")


def configure_logging(debug: bool) -> None:
    logging.basicConfig(level=logging.WARNING, format=LOG_FORMAT, force=True)
    project_level = logging.DEBUG if debug else logging.WARNING
    log.setLevel(project_level)


def print_error(message: str) -> None:
    print(message, file=sys.stderr)


def parse_pattern(value: str) -> PresetPattern:
    try:
        return PresetPattern.from_name(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def parse_byte(value: str) -> int:
    number = int(value, 0)
    if not 0 <= number <= 0xFF:
        raise argparse.ArgumentTypeError(f"Expected a value between 0 and 255, got {value}.")
    return number


def build_args() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Control flux LED bulbs over the local network.")
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging for frames sent, replies received and discovery.",
    )
    parser.add_argument("-H", "--host", help="Bulb IP address. Use `scan` to find one.")
    parser.add_argument(
        "-p",
        "--port",
        type=int,
        default=DEFAULT_PORT,
        help=f"Bulb TCP port. Default is {DEFAULT_PORT}",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_TIMEOUT,
        help="Connect and read timeout in seconds.",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    scan_parser = subparsers.add_parser("scan", help="Discover bulbs on every local network.")
    scan_parser.add_argument(
        "--window",
        type=float,
        default=DEFAULT_SCAN_WINDOW,
        help="Seconds to wait for replies. Sleeping bulbs may need longer.",
    )
    scan_parser.add_argument("--json", action="store_true", help="Print results as JSON.")

    subparsers.add_parser("on", help="Turn the bulb on.")
    subparsers.add_parser("off", help="Turn the bulb off.")

    color = subparsers.add_parser("color", help="Set a fixed RGB color.")
    color_target = color.add_mutually_exclusive_group(required=True)
    color_target.add_argument(
        "--rgb",
        nargs=3,
        type=parse_byte,
        metavar=("R", "G", "B"),
        help="Red, green and blue components, 0-255.",
    )
    color_target.add_argument(
        "--name",
        choices=[c.name for c in NamedColor],
        help="Named color.",
    )
    color.add_argument(
        "--no-persist",
        dest="persist",
        action="store_false",
        help="Do not keep the color after a power cycle.",
    )

    warm_white = subparsers.add_parser("warm-white", help="Set warm white level.")
    warm_white.add_argument("percent", type=int, help="Level in percent, clamped to 0-100.")
    warm_white.add_argument(
        "--no-persist",
        dest="persist",
        action="store_false",
        help="Do not keep the level after a power cycle.",
    )

    pattern = subparsers.add_parser("pattern", help="Run a built-in preset pattern.")
    pattern.add_argument("name", type=parse_pattern, help="Pattern name, see `patterns`.")
    pattern.add_argument("--speed", type=int, default=50, help="Speed in percent.")

    subparsers.add_parser("patterns", help="List preset pattern names.")
    subparsers.add_parser("state", help="Query power, mode and color.")

    clock = subparsers.add_parser("clock", help="Read the bulb clock.")
    clock.add_argument(
        "--sync",
        action="store_true",
        help="Set the bulb clock to the local time before reading it.",
    )

    subparsers.add_parser("timers", help="List the six timer slots.")

    flash = subparsers.add_parser("flash", help="Blink the bulb.")
    flash.add_argument("--count", type=int, default=3, help="Number of blinks.")
    flash.add_argument(
        "--name",
        choices=[c.name for c in NamedColor],
        default=NamedColor.blue.name,
        help="Blink color.",
    )
    flash.add_argument("--interval", type=float, default=1.0, help="Seconds per half cycle.")

    dev = subparsers.add_parser("dev", help="Developer utilities.")
    dev_subparsers = dev.add_subparsers(dest="dev_command", required=True)

    dev_send = dev_subparsers.add_parser(
        "send",
        help="Send raw opcode bytes. The checksum byte is appended.",
    )
    dev_send.add_argument("--data", required=True, help="Hex opcode (e.g. '81 8a 8b').")
    dev_send.add_argument(
        "--response-length",
        dest="response_length",
        type=int,
        default=0,
        help="Reply bytes to wait for. 0 sends without reading.",
    )

    return parser


def print_devices(devices: list[DeviceDescriptor], as_json: bool) -> None:
    if as_json:
        print(json.dumps([vars(d) for d in devices], indent=2))
        return

    if not devices:
        print("No bulbs found. Sleeping bulbs may need a longer --window.")
        return

    print(f"{'IP':<16}  {'ID':<14}  {'Model'}")
    print("-" * 50)
    for device in devices:
        print(f"{device.ip:<16}  {device.id:<14}  {device.model}")


def print_state(state: BulbState) -> None:
    print(f"Power:       {state.power}")
    print(f"Mode:        {state.mode}")
    if state.pattern is not None:
        print(f"Pattern:     {state.pattern.label} (0x{state.pattern_code:02x})")
    print(f"Speed:       {state.speed}%")
    print(f"RGB:         {state.rgb}")
    print(f"Warm white:  {state.warm_white_pct}%")


def describe_timer(timer: TimerEntry) -> str:
    when = f"{timer.hour:02}:{timer.minute:02}"
    if timer.repeat_mask:
        when += "  " + ",".join(day.name for day in timer.repeat_days)
    else:
        when += f"  once {timer.year:04}-{timer.month:02}-{timer.day:02}"

    if timer.mode == TimerMode.color:
        action = f"color {timer.rgb}"
    elif timer.mode == TimerMode.default:
        action = "default"
    else:
        pattern = timer.pattern
        name = pattern.label if pattern else f"0x{timer.pattern_code:02x}"
        action = f"preset {name} delay={timer.delay}"
    return f"{when}  {action}"


def print_timer_report(timers: list[TimerEntry]) -> None:
    print(f"{'Slot':>4}  {'Active':>6}  Schedule")
    print("-" * 60)
    for index, timer in enumerate(timers):
        active_str = "YES" if timer.active else "NO"
        print(f"{index:>4}  {active_str:>6}  {describe_timer(timer)}")


def run(args: argparse.Namespace, config: Config) -> None:
    log.debug(
        "Handling command=%s dev_command=%s",
        args.command,
        getattr(args, "dev_command", None),
    )

    if args.command == "scan":
        devices = scan(window=config.scan_window, receive_timeout=config.timeout)
        print_devices(devices, args.json)
        return

    if args.command == "patterns":
        for pattern in PresetPattern:
            print(f"0x{pattern.value:02x}  {pattern.label}")
        return

    if config.host is None:
        raise SystemExit(f"The '{args.command}' command needs --host.")
    bulb = Bulb(config.host, port=config.port, timeout=config.timeout)

    if args.command in ("on", "off"):
        bulb.set_power(args.command == "on")
        return

    if args.command == "color":
        if args.name:
            bulb.set_color(NamedColor[args.name], persist=args.persist)
        else:
            bulb.set_rgb(tuple(args.rgb), persist=args.persist)
        return

    if args.command == "warm-white":
        bulb.set_warm_white(args.percent, persist=args.persist)
        return

    if args.command == "pattern":
        bulb.set_pattern(args.name, args.speed)
        return

    if args.command == "state":
        print_state(bulb.get_state())
        return

    if args.command == "clock":
        if args.sync:
            bulb.sync_clock()
        print(bulb.get_clock().to_datetime().isoformat(sep=" "))
        return

    if args.command == "timers":
        print_timer_report(bulb.get_timers())
        return

    if args.command == "flash":
        bulb.flash(args.count, NamedColor[args.name], interval=args.interval)
        return

    if args.command == "dev":
        handle_dev(args, bulb)


def handle_dev(args: argparse.Namespace, bulb: Bulb) -> None:
    if args.dev_command == "send":
        try:
            opcode = hex_to_bin(args.data)
        except ValueError as exc:
            raise SystemExit(str(exc)) from exc
        response = bulb.send_raw(opcode, args.response_length)
        if response is not None:
            print(bin_to_hex(response).strip())


def main() -> None:
    parser = build_args()
    args = parser.parse_args()
    configure_logging(args.debug)
    log.debug("CLI args: %s", args)

    config = Config(
        host=args.host,
        port=args.port,
        timeout=args.timeout,
        scan_window=getattr(args, "window", DEFAULT_SCAN_WINDOW),
    )
    log.debug("Using config=%s", config)

    try:
        run(args, config)
    except KeyboardInterrupt:
        raise SystemExit(130) from None
    except SystemExit as exc:
        if isinstance(exc.code, str) and exc.code:
            print_error(exc.code)
            raise SystemExit(1) from None
        raise
    except Exception as exc:
        log.debug("Operation failed with config=%s", config, exc_info=True)
        print_error(f"Operation failed: {exc}")
        raise SystemExit(1) from None


if __name__ == "__main__":
    main()
