from .binding import SESSION_HEADER, ShutdownTimeoutError, StreamableHttpBinding
from .middleware import BearerAuth, FilterChain, FilterContext, OriginValidation, default_filters
from .server import BINDING_SHUTDOWN_GRACE, LISTENER_SHUTDOWN_GRACE, HttpServer, ListenerError, build_app

__all__ = [
    "BINDING_SHUTDOWN_GRACE",
    "LISTENER_SHUTDOWN_GRACE",
    "SESSION_HEADER",
    "BearerAuth",
    "FilterChain",
    "FilterContext",
    "HttpServer",
    "ListenerError",
    "OriginValidation",
    "ShutdownTimeoutError",
    "StreamableHttpBinding",
    "build_app",
    "default_filters",
]
