"""
Error taxonomy for the gateway.

Every error raised by a proxy route is terminal for that request only and is
rendered as ``{"error": <message>}`` by :func:`gateway_error_handler`.
"""

from typing import Optional

from fastapi import Request
from fastapi.responses import JSONResponse


class GatewayError(Exception):
    status_code = 500
    message = "Internal gateway error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.message)
        if message:
            self.message = message


class UsageError(GatewayError):
    """The caller sent a request the gateway cannot act on."""

    status_code = 400
    message = "URL parameter is required"


class UnknownUpstreamError(GatewayError):
    status_code = 404

    def __init__(self, upstream_id: str):
        self.upstream_id = upstream_id
        super().__init__(f"Unknown proxy service: {upstream_id}")


class UpstreamFailure(GatewayError):
    """
    The upstream could not be reached or its response could not be read.
    The public message is fixed; the cause stays in the server log.
    """

    status_code = 500
    message = "Failed to fetch the requested URL"

    def __init__(self, target_url: str = ""):
        self.target_url = target_url
        super().__init__()


async def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})
