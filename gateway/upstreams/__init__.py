from .registry import (
    PROXY_PREFIX,
    UPSTREAMS,
    ForwardingMode,
    UpstreamTarget,
    all_upstreams,
    lookup,
    streaming_upstreams,
)

__all__ = [
    "PROXY_PREFIX",
    "UPSTREAMS",
    "ForwardingMode",
    "UpstreamTarget",
    "all_upstreams",
    "lookup",
    "streaming_upstreams",
]
