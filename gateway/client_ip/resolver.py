"""
Process-wide resolution of the address presented to upstreams as the client.

Every proxied request carries the same value in ``X-Forwarded-For`` and
``X-Real-IP``: the first external IPv4 address of this host. The value lives in
a single cache slot that a background task clears on a fixed interval, so a
changed interface table is picked up on the next request after a sweep.
"""

import asyncio
import ipaddress
import logging
import socket
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

import psutil

from gateway.vars import CLIENT_IP_CACHE_TTL

logger = logging.getLogger("uvicorn.error")

LOOPBACK_IP = "127.0.0.1"

SOURCE_EXTERNAL = "external-interface"
SOURCE_ANY = "any-interface"
SOURCE_LOOPBACK = "loopback-fallback"


@dataclass(frozen=True)
class ClientIPCacheEntry:
    ip: str
    source: str
    created_at: float


def _is_loopback(address: str) -> bool:
    try:
        return ipaddress.ip_address(address).is_loopback
    except ValueError:
        return False


def discover_client_ip() -> Tuple[str, str]:
    """
    Pick the address to present upstream from the host interface table.

    Returns a ``(ip, source)`` pair. Never raises: the search falls back from
    the first non-loopback IPv4 address to the first IPv4 address of any
    interface and finally to ``127.0.0.1``.
    """
    try:
        interfaces = psutil.net_if_addrs()
    except (OSError, psutil.Error) as e:
        logger.warning(f"[ClientIP] Failed to enumerate network interfaces: {e}")
        interfaces = {}

    ipv4_addresses = [
        addr.address
        for addrs in interfaces.values()
        for addr in addrs
        if addr.family == socket.AF_INET and addr.address
    ]

    for address in ipv4_addresses:
        if not _is_loopback(address):
            return address, SOURCE_EXTERNAL
    if ipv4_addresses:
        return ipv4_addresses[0], SOURCE_ANY
    return LOOPBACK_IP, SOURCE_LOOPBACK


class ClientIPCache:
    """
    Single-slot cache for the resolved client IP.

    Readers load the slot without locking; population is serialized so that
    concurrent first requests run discovery once. ``clear`` is a plain
    reference swap and is safe to call from the sweeper at any time.
    """

    def __init__(
        self,
        ttl_seconds: float = CLIENT_IP_CACHE_TTL,
        discover: Callable[[], Tuple[str, str]] = discover_client_ip,
        clock: Callable[[], float] = time.time,
    ):
        self.ttl_seconds = ttl_seconds
        self._discover = discover
        self._clock = clock
        self._entry: Optional[ClientIPCacheEntry] = None
        self._lock = threading.Lock()
        self._sweeper: Optional[asyncio.Task] = None

    @property
    def entry(self) -> Optional[ClientIPCacheEntry]:
        return self._entry

    def get_entry(self) -> ClientIPCacheEntry:
        entry = self._entry
        if entry is not None:
            return entry

        with self._lock:
            if self._entry is None:
                ip, source = self._discover()
                self._entry = ClientIPCacheEntry(
                    ip=ip, source=source, created_at=self._clock()
                )
                logger.info(f"[ClientIP] Resolved outbound client IP {ip} ({source})")
            return self._entry

    def resolve(self) -> str:
        return self.get_entry().ip

    def clear(self) -> None:
        self._entry = None

    async def _sweep(self) -> None:
        while True:
            await asyncio.sleep(self.ttl_seconds)
            self.clear()
            logger.debug("[ClientIP] Cleared cached client IP")

    def start_sweeper(self) -> asyncio.Task:
        """Schedule the periodic clear on the running event loop."""
        if self._sweeper is None or self._sweeper.done():
            self._sweeper = asyncio.create_task(
                self._sweep(), name="client-ip-cache-sweeper"
            )
        return self._sweeper

    async def stop_sweeper(self) -> None:
        sweeper, self._sweeper = self._sweeper, None
        if sweeper is None or sweeper.done():
            return
        sweeper.cancel()
        try:
            await sweeper
        except asyncio.CancelledError:
            pass


client_ip_cache = ClientIPCache()


def resolve_client_ip() -> str:
    return client_ip_cache.resolve()
