import logging
from typing import List, Optional

from fastapi import APIRouter, Query, Request
from fastapi.responses import Response

from gateway.errors import UnknownUpstreamError, UsageError
from gateway.forwarding.forwarder import BufferedForwarder, StreamingForwarder
from gateway.models import ErrorResponse, UpstreamInfo
from gateway.upstreams import PROXY_PREFIX, ForwardingMode, all_upstreams, lookup

router = APIRouter(prefix=PROXY_PREFIX)
logger = logging.getLogger("uvicorn.error")

PROXY_METHODS = ["GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS"]

streaming_forwarder = StreamingForwarder()
buffered_forwarder = BufferedForwarder()


async def handle_custom_proxy(
    target_url: Optional[str], request: Optional[Request] = None
) -> Response:
    """Fetch ``target_url`` once and relay the full body with sanitized headers."""
    if not target_url:
        raise UsageError("URL parameter is required")
    return await buffered_forwarder.forward(target_url, request)


@router.get("/services", response_model=List[UpstreamInfo])
async def list_services():
    return [
        UpstreamInfo(
            id=upstream.id,
            base_url=upstream.base_url,
            path_prefix=upstream.path_prefix,
            mode=upstream.mode.value,
            description=upstream.description,
        )
        for upstream in all_upstreams()
    ]


@router.get(
    "/custom",
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def proxy_custom(request: Request, url: Optional[str] = Query(None)):
    return await handle_custom_proxy(url, request)


@router.api_route("/{upstream_id}", methods=PROXY_METHODS)
@router.api_route("/{upstream_id}/{path:path}", methods=PROXY_METHODS)
async def proxy_upstream(request: Request, upstream_id: str):
    """Stream the request through to the upstream registered under ``upstream_id``."""
    upstream = lookup(upstream_id)
    if upstream is None or upstream.mode is not ForwardingMode.STREAM:
        logger.info(f"[Proxy] Rejected request for unknown upstream '{upstream_id}'")
        raise UnknownUpstreamError(upstream_id)

    # Raw path keeps escapes such as %2F and %3F intact for the upstream
    raw_path = request.scope.get("raw_path")
    path = raw_path.decode("latin-1") if raw_path else request.url.path
    target_url = upstream.target_url(path, str(request.url.query))
    return await streaming_forwarder.forward(target_url, request)
