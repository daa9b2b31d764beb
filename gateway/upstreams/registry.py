import re
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import List, Mapping, Optional

from gateway.vars import ALLORIGINS_URL, CORS_ANYWHERE_URL, CORSPROXY_URL

PROXY_PREFIX = "/proxy"


class ForwardingMode(str, Enum):
    STREAM = "stream"  # prefix-routed, relayed chunk by chunk
    FETCH = "fetch"  # query-routed, read in full then relayed
    DIRECT = "direct"  # loaded by the browser itself, never proxied


@dataclass(frozen=True)
class UpstreamTarget:
    id: str
    base_url: str
    path_prefix: str
    rewrite_pattern: str
    rewrite_replacement: str
    mode: ForwardingMode
    description: str

    def rewrite_path(self, path: str) -> str:
        """Apply the rewrite rule once, e.g. strip ``/proxy/<id>``."""
        return re.sub(self.rewrite_pattern, self.rewrite_replacement, path, count=1)

    def target_url(self, path: str, query: str = "") -> str:
        """Construct the upstream URL for an incoming request path."""
        remainder = self.rewrite_path(path)
        if not remainder.startswith("/"):
            remainder = "/" + remainder

        url = self.base_url.rstrip("/") + remainder
        if query:
            url = f"{url}?{query}"
        return url


def _upstream(
    upstream_id: str, base_url: str, mode: ForwardingMode, description: str
) -> UpstreamTarget:
    path_prefix = f"{PROXY_PREFIX}/{upstream_id}"
    return UpstreamTarget(
        id=upstream_id,
        base_url=base_url,
        path_prefix=path_prefix,
        rewrite_pattern="^" + re.escape(path_prefix),
        rewrite_replacement="",
        mode=mode,
        description=description,
    )


UPSTREAMS: Mapping[str, UpstreamTarget] = MappingProxyType(
    {
        upstream.id: upstream
        for upstream in (
            _upstream(
                "cors-anywhere",
                CORS_ANYWHERE_URL,
                ForwardingMode.STREAM,
                "CORS Anywhere - Bypass CORS restrictions",
            ),
            _upstream(
                "allorigins",
                ALLORIGINS_URL,
                ForwardingMode.STREAM,
                "AllOrigins - Universal CORS proxy",
            ),
            _upstream(
                "corsproxy",
                CORSPROXY_URL,
                ForwardingMode.STREAM,
                "CORS Proxy - Fast proxy for web apps",
            ),
            _upstream(
                "custom",
                "",
                ForwardingMode.FETCH,
                "Custom Proxy - Fetched and relayed by this server",
            ),
            _upstream(
                "none",
                "",
                ForwardingMode.DIRECT,
                "Direct - Loaded by the browser without a proxy",
            ),
        )
    }
)


def lookup(upstream_id: str) -> Optional[UpstreamTarget]:
    return UPSTREAMS.get(upstream_id)


def all_upstreams() -> List[UpstreamTarget]:
    return list(UPSTREAMS.values())


def streaming_upstreams() -> List[UpstreamTarget]:
    return [u for u in UPSTREAMS.values() if u.mode is ForwardingMode.STREAM]
