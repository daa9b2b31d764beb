from .transformer import (
    build_outbound_headers,
    merge_outbound_headers,
    sanitize_inbound_headers,
    strip_hop_by_hop,
)

__all__ = [
    "build_outbound_headers",
    "merge_outbound_headers",
    "sanitize_inbound_headers",
    "strip_hop_by_hop",
]
