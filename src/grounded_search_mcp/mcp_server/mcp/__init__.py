from .engine import ServerSession, SessionClosedError, SessionEngine, SessionState
from .hooks import Hooks, logging_error_hook
from .protocol import McpProtocol
from .session import McpSession

__all__ = [
    "Hooks",
    "McpProtocol",
    "McpSession",
    "ServerSession",
    "SessionClosedError",
    "SessionEngine",
    "SessionState",
    "logging_error_hook",
]
