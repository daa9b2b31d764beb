from .forwarder import BufferedForwarder, Forwarder, StreamingForwarder
from .route import handle_custom_proxy, router

__all__ = [
    "BufferedForwarder",
    "Forwarder",
    "StreamingForwarder",
    "handle_custom_proxy",
    "router",
]
