"""
Header rewriting shared by every forwarding path.

Outbound requests are dressed up as a generic desktop browser at a stable IP.
Inbound responses lose the headers that block iframe embedding and gain
permissive CORS headers.
"""

from typing import Dict, Iterable, Mapping

# Literal values sent upstream on every proxied request
BROWSER_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
    "Accept-Encoding": "gzip, deflate",
    "Connection": "keep-alive",
    "Upgrade-Insecure-Requests": "1",
}

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Origin, X-Requested-With, Content-Type, Accept, Authorization",
}

# Response headers that would stop the front-end from framing the page
FRAMING_HEADERS = {
    "x-frame-options",
    "content-security-policy",
}

# Hop-by-hop headers that should NOT be forwarded (RFC 9110)
HOP_BY_HOP_HEADERS = {
    "connection",
    "keep-alive",
    "proxy-authenticate",
    "proxy-authorization",
    "te",
    "trailers",
    "transfer-encoding",
    "upgrade",
}


def build_outbound_headers(client_ip: str) -> Dict[str, str]:
    headers = dict(BROWSER_HEADERS)
    headers["X-Forwarded-For"] = client_ip
    headers["X-Real-IP"] = client_ip
    return headers


def merge_outbound_headers(incoming: Mapping[str, str], client_ip: str) -> Dict[str, str]:
    """
    Prepare the caller's headers for the streaming path.

    Hop-by-hop headers and ``Host`` are dropped (the upstream host comes from
    the target URL), then the browser headers overwrite whatever the caller
    sent under the same name, compared case-insensitively.
    """
    outbound = build_outbound_headers(client_ip)
    overridden = {name.lower() for name in outbound}

    headers = {}
    for name, value in incoming.items():
        name_lower = name.lower()
        if name_lower in HOP_BY_HOP_HEADERS or name_lower == "host":
            continue
        if name_lower in overridden:
            continue
        headers[name] = value

    headers.update(outbound)
    return headers


def strip_hop_by_hop(headers: Mapping[str, str], extra: Iterable[str] = ()) -> Dict[str, str]:
    excluded = HOP_BY_HOP_HEADERS | {name.lower() for name in extra}
    return {
        name: value for name, value in headers.items() if name.lower() not in excluded
    }


def sanitize_inbound_headers(headers: Mapping[str, str]) -> Dict[str, str]:
    cors_names = {name.lower() for name in CORS_HEADERS}

    sanitized = {}
    for name, value in headers.items():
        name_lower = name.lower()
        if name_lower in FRAMING_HEADERS or name_lower in cors_names:
            continue
        sanitized[name] = value

    sanitized.update(CORS_HEADERS)
    return sanitized
