from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

from ...observability import Logger, NullLogger


# (request id, method, raw message or params, error)
ErrorHook = Callable[[Any, str, Any, Exception], None]
SessionHook = Callable[[str], None]


@dataclass
class Hooks:
    """Side-effect-only observers for the session engine.

    A failing observer is logged and skipped; it never changes the response
    being built for the request that triggered it.
    """

    logger: Logger = field(default_factory=NullLogger)
    _on_error: list[ErrorHook] = field(default_factory=list)
    _on_session_close: list[SessionHook] = field(default_factory=list)

    def add_on_error(self, hook: ErrorHook) -> None:
        self._on_error.append(hook)

    def add_on_session_close(self, hook: SessionHook) -> None:
        self._on_session_close.append(hook)

    def fire_error(self, req_id: Any, method: str, message: Any, err: Exception) -> None:
        for hook in self._on_error:
            try:
                hook(req_id, method, message, err)
            except Exception as e:
                self.logger.error("error hook failed", hook=getattr(hook, "__name__", repr(hook)), error=repr(e))

    def fire_session_close(self, session_id: str) -> None:
        for hook in self._on_session_close:
            try:
                hook(session_id)
            except Exception as e:
                self.logger.error("session close hook failed", session_id=session_id, error=repr(e))


def logging_error_hook(logger: Logger) -> ErrorHook:
    def _log(req_id: Any, method: str, message: Any, err: Exception) -> None:
        logger.error("MCP error occurred", id=req_id, method=method, error=str(err) or type(err).__name__)

    return _log
