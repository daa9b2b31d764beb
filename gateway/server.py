import logging
from contextlib import asynccontextmanager
from typing import Sequence

import uvicorn
from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import ReadableSpan, TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    SpanExporter,
    SpanExportResult,
)
from prometheus_client import Info
from prometheus_fastapi_instrumentator import Instrumentator

from gateway.client_ip import client_ip_cache
from gateway.errors import GatewayError, gateway_error_handler
from gateway.forwarding import router as proxy_router
from gateway.routes import router
from gateway.upstreams import PROXY_PREFIX, streaming_upstreams
from gateway.vars import (
    HOST,
    LOG_LEVEL,
    OTLP_ENDPOINT,
    OTLP_HEADERS,
    PORT,
    SERVICE_NAME,
)

logger = logging.getLogger("uvicorn.error")


def log_available_endpoints() -> None:
    logger.info(f"Proxy server running on port {PORT}")
    logger.info("Available proxy endpoints:")
    for upstream in streaming_upstreams():
        logger.info(f"   - {upstream.path_prefix}/* -> {upstream.base_url}")
    logger.info(f"   - {PROXY_PREFIX}/custom?url=<encoded_url>")
    logger.info(f"Health check: http://localhost:{PORT}/health")


@asynccontextmanager
async def lifespan(app: FastAPI):
    client_ip_cache.start_sweeper()
    log_available_endpoints()
    try:
        yield
    finally:
        await client_ip_cache.stop_sweeper()


app = FastAPI(title=SERVICE_NAME, lifespan=lifespan)
app.add_exception_handler(GatewayError, gateway_error_handler)

instrumentator = Instrumentator()
instrumentator.instrument(app).expose(app)


class FilteringSpanExporter(SpanExporter):
    """
    Wrapper exporter that drops the per-chunk ASGI body spans produced by
    streamed proxy responses.
    """

    def __init__(self, exporter: SpanExporter):
        self.exporter = exporter

    def export(self, spans: Sequence[ReadableSpan]) -> SpanExportResult:
        filtered_spans = [
            span
            for span in spans
            if not (
                span.attributes
                and span.attributes.get("asgi.event.type") == "http.response.body"
            )
        ]
        if filtered_spans:
            return self.exporter.export(filtered_spans)
        return SpanExportResult.SUCCESS

    def shutdown(self):
        return self.exporter.shutdown()

    def force_flush(self, timeout_millis: int = 30000):
        return self.exporter.force_flush(timeout_millis)


trace.set_tracer_provider(
    TracerProvider(resource=Resource.create({"service.name": SERVICE_NAME}))
)
tracer_provider = trace.get_tracer_provider()
if OTLP_ENDPOINT:
    otlp_exporter = OTLPSpanExporter(
        endpoint=OTLP_ENDPOINT,
        headers=OTLP_HEADERS or None,
    )
    tracer_provider.add_span_processor(
        BatchSpanProcessor(FilteringSpanExporter(otlp_exporter))
    )

FastAPIInstrumentor.instrument_app(app)

app_info = Info("fastapi_app_info", "Application Info")
app_info.info({"app_name": SERVICE_NAME})

# Proxy routes first: the front-end router below catches every other GET
app.include_router(proxy_router)
app.include_router(router)


def main() -> None:
    uvicorn.run("gateway.server:app", host=HOST, port=PORT, log_level=LOG_LEVEL)


if __name__ == "__main__":
    main()
