"""
Forwarders relay an incoming request to an upstream URL.

Both implementations share the header rules of ``gateway.headers`` and the
process-wide client IP; they differ only in how the upstream body travels:

- StreamingForwarder relays request and response chunk by chunk.
- BufferedForwarder issues a single GET, reads the whole body and relays it.
"""

import logging
from abc import ABC, abstractmethod
from typing import AsyncIterator, Optional

import httpx
from fastapi import Request
from fastapi.responses import Response, StreamingResponse
from opentelemetry import trace

from gateway.client_ip import ClientIPCache, client_ip_cache
from gateway.errors import UpstreamFailure
from gateway.headers import (
    build_outbound_headers,
    merge_outbound_headers,
    sanitize_inbound_headers,
    strip_hop_by_hop,
)
from gateway.utils.exception_logging import (
    format_exception_message,
    log_exception_with_details,
)
from gateway.vars import PROXY_TIMEOUT

tracer = trace.get_tracer(__name__)
logger = logging.getLogger("uvicorn.error")

DEFAULT_CONTENT_TYPE = "text/html"


class Forwarder(ABC):
    def __init__(
        self, ip_cache: ClientIPCache = client_ip_cache, timeout: float = PROXY_TIMEOUT
    ):
        self.ip_cache = ip_cache
        self.timeout = timeout

    @abstractmethod
    async def forward(self, target_url: str, request: Optional[Request] = None) -> Response:
        """Relay ``request`` to ``target_url`` and return the response to send."""


def _has_body(request: Request) -> bool:
    return "content-length" in request.headers or "transfer-encoding" in request.headers


class StreamingForwarder(Forwarder):
    """
    Stream-through forwarding for the prefix-routed upstreams.

    Redirects are relayed to the caller as-is. The upstream response stays open
    until its body has been passed on, then the client is closed.
    """

    async def forward(self, target_url: str, request: Optional[Request] = None) -> Response:
        if request is None:
            raise ValueError("StreamingForwarder requires the incoming request")

        with tracer.start_as_current_span("proxy_request") as span:
            span.set_attribute("proxy.target_url", target_url)
            span.set_attribute("proxy.method", request.method)

            logger.debug(f"[Proxy] {request.method} {request.url.path} -> {target_url}")

            headers = merge_outbound_headers(request.headers, self.ip_cache.resolve())
            content = request.stream() if _has_body(request) else None

            client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout), follow_redirects=False
            )
            upstream_request = client.build_request(
                request.method, target_url, headers=headers, content=content
            )
            try:
                upstream_response = await client.send(upstream_request, stream=True)
            except httpx.HTTPError as e:
                await client.aclose()
                span.set_attribute("proxy.error", format_exception_message(e))
                log_exception_with_details(logger, f"[Proxy] {target_url}", e)
                raise UpstreamFailure(target_url) from e

            span.set_attribute("proxy.status_code", upstream_response.status_code)

            response_headers = sanitize_inbound_headers(
                strip_hop_by_hop(upstream_response.headers)
            )

            return StreamingResponse(
                _relay_body(upstream_response, client),
                status_code=upstream_response.status_code,
                headers=response_headers,
            )


async def _relay_body(
    upstream_response: httpx.Response, client: httpx.AsyncClient
) -> AsyncIterator[bytes]:
    # Raw bytes keep Content-Encoding and Content-Length valid for the caller
    try:
        async for chunk in upstream_response.aiter_raw():
            yield chunk
    except httpx.HTTPError as e:
        log_exception_with_details(logger, "[Proxy] Upstream stream aborted", e)
    finally:
        await upstream_response.aclose()
        await client.aclose()


class BufferedForwarder(Forwarder):
    """Single-shot fetch-and-relay used by the custom proxy."""

    async def forward(self, target_url: str, request: Optional[Request] = None) -> Response:
        with tracer.start_as_current_span("proxy_custom_request") as span:
            span.set_attribute("proxy.target_url", target_url)

            headers = build_outbound_headers(self.ip_cache.resolve())
            try:
                async with httpx.AsyncClient(
                    timeout=httpx.Timeout(self.timeout), follow_redirects=True
                ) as client:
                    upstream_response = await client.get(target_url, headers=headers)
            except (httpx.HTTPError, httpx.InvalidURL) as e:
                span.set_attribute("proxy.error", format_exception_message(e))
                log_exception_with_details(logger, f"[Custom-Proxy] {target_url}", e)
                raise UpstreamFailure(target_url) from e

            span.set_attribute("proxy.status_code", upstream_response.status_code)

            # The body is relayed decoded, so the upstream framing no longer applies
            response_headers = sanitize_inbound_headers(
                strip_hop_by_hop(
                    upstream_response.headers,
                    extra=("content-encoding", "content-length", "content-type"),
                )
            )
            response_headers["Content-Type"] = upstream_response.headers.get(
                "content-type", DEFAULT_CONTENT_TYPE
            )

            return Response(
                content=upstream_response.content,
                status_code=200,
                headers=response_headers,
            )
