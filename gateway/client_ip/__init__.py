from .resolver import (
    ClientIPCache,
    ClientIPCacheEntry,
    client_ip_cache,
    discover_client_ip,
    resolve_client_ip,
)

__all__ = [
    "ClientIPCache",
    "ClientIPCacheEntry",
    "client_ip_cache",
    "discover_client_ip",
    "resolve_client_ip",
]
