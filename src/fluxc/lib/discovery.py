"""UDP broadcast discovery of flux bulbs on the local network."""

from __future__ import annotations

import ipaddress
import logging
import socket
import time
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from contextlib import ExitStack

import psutil

from fluxc.lib.models import DEFAULT_SCAN_WINDOW, DEFAULT_TIMEOUT, DeviceDescriptor
from fluxc.lib.parsers import clean_reply, parse_discovery_replies

DISCOVERY_PORT = 48899
DISCOVERY_PROBE = b"HF-A11ASSISTHREAD"
RECEIVE_BUFFER_SIZE = 64

log = logging.getLogger("fluxc")


def broadcast_addresses() -> list[str]:
    """Broadcast addresses of every IPv4 interface that is up and not loopback."""
    stats = psutil.net_if_stats()
    addresses = []
    for name, interface_addresses in psutil.net_if_addrs().items():
        if name not in stats or not stats[name].isup:
            continue
        for address in interface_addresses:
            if address.family != socket.AF_INET or not address.broadcast:
                continue
            if ipaddress.ip_address(address.address).is_loopback:
                continue
            log.debug(
                "Interface %s address=%s broadcast=%s",
                name,
                address.address,
                address.broadcast,
            )
            addresses.append(address.broadcast)
    return addresses


def open_probe_socket(
    address: str,
    port: int = DISCOVERY_PORT,
    receive_timeout: float = DEFAULT_TIMEOUT,
) -> socket.socket:
    """Open a broadcast UDP socket and send the discovery probe to `address`."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_BROADCAST, 1)
        sock.settimeout(receive_timeout)
        sock.sendto(DISCOVERY_PROBE, (address, port))
    except OSError:
        sock.close()
        raise
    log.debug("Sent discovery probe to %s:%d", address, port)
    return sock


def collect_replies(
    sock: socket.socket,
    window: float = DEFAULT_SCAN_WINDOW,
    receive_timeout: float = DEFAULT_TIMEOUT,
) -> set[str]:
    """Collect unique non-empty replies on one socket until the window elapses."""
    replies: set[str] = set()
    end_time = time.monotonic() + window
    while True:
        remaining = end_time - time.monotonic()
        if remaining <= 0:
            break
        sock.settimeout(min(receive_timeout, remaining))
        try:
            data = sock.recv(RECEIVE_BUFFER_SIZE)
        except TimeoutError:
            continue
        except OSError as exc:
            log.warning("Discovery socket error: %s", exc)
            break

        reply = clean_reply(data)
        if reply:
            log.debug("Discovery reply: %s", reply)
            replies.add(reply)
    return replies


def scan(
    window: float = DEFAULT_SCAN_WINDOW,
    receive_timeout: float = DEFAULT_TIMEOUT,
    port: int = DISCOVERY_PORT,
    addresses: Iterable[str] | None = None,
) -> list[DeviceDescriptor]:
    """Broadcast the probe on every interface and return the bulbs that answered.

    Best effort: bulbs that have been idle for a while may need a longer
    `window` to wake up and reply.
    """
    if addresses is None:
        addresses = broadcast_addresses()

    with ExitStack() as stack:
        sockets = []
        for address in addresses:
            try:
                sock = open_probe_socket(address, port=port, receive_timeout=receive_timeout)
            except OSError as exc:
                log.warning("Could not send discovery probe to %s: %s", address, exc)
                continue
            stack.callback(sock.close)
            sockets.append(sock)

        if not sockets:
            log.warning("No broadcast-capable interface found.")
            return []

        replies: set[str] = set()
        with ThreadPoolExecutor(max_workers=len(sockets)) as executor:
            for socket_replies in executor.map(
                lambda sock: collect_replies(sock, window, receive_timeout), sockets
            ):
                replies |= socket_replies

    devices = parse_discovery_replies(replies)
    log.debug("Discovered %d device(s) from %d reply(ies)", len(devices), len(replies))
    return devices
