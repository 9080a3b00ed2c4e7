from __future__ import annotations

import asyncio
import enum
import time
from dataclasses import dataclass, field
from typing import Any, Callable

from ...observability import Logger, NullLogger
from ..errors import map_exception_to_jsonrpc
from ..jsonrpc.codec import (
    INVALID_PARAMS,
    JsonRpcCodecError,
    encode_error,
    encode_response,
    is_client_response,
    parse_message,
    request_from_obj,
)
from ..jsonrpc.dispatcher import Dispatcher, JsonRpcAppError
from ..jsonrpc.models import JsonRpcRequest, JsonRpcResponse
from .hooks import Hooks
from .protocol import McpProtocol
from .session import McpSession


class SessionState(str, enum.Enum):
    IDLE = "idle"
    AWAITING_REQUEST = "awaiting_request"
    DISPATCHING = "dispatching"
    CLOSED = "closed"


class SessionClosedError(RuntimeError):
    pass


class ServerSession:
    """One client session: decodes messages, dispatches them, encodes replies.

    Transport-agnostic; stdio drives one instance for the life of the process,
    HTTP keeps one per `Mcp-Session-Id`.
    """

    def __init__(self, engine: "SessionEngine", info: McpSession) -> None:
        self.engine = engine
        self.info = info
        self.state = SessionState.IDLE
        self.initialized = False
        self.closed = asyncio.Event()
        self._inflight = 0
        self._streams = 0
        self.last_active = time.monotonic()
        self._close_callbacks: list[Callable[["ServerSession"], None]] = []
        self.dispatcher = engine.build_dispatcher(self)

    @property
    def session_id(self) -> str:
        return self.info.session_id

    @property
    def is_closed(self) -> bool:
        return self.state is SessionState.CLOSED

    @property
    def busy(self) -> bool:
        """A request is being dispatched or a GET stream is attached."""
        return self._inflight > 0 or self._streams > 0

    def touch(self) -> None:
        self.last_active = time.monotonic()

    def attach_stream(self) -> None:
        self._streams += 1
        self.touch()

    def detach_stream(self) -> None:
        self._streams = max(0, self._streams - 1)
        self.touch()

    def start(self) -> None:
        if self.state is SessionState.IDLE:
            self.state = SessionState.AWAITING_REQUEST

    async def handle(self, raw: str | bytes) -> str | None:
        """Handle one raw JSON-RPC message; return the encoded reply, or None when none is due."""
        self._ensure_open()
        try:
            obj = parse_message(raw)
            if is_client_response(obj):
                self.engine.logger.debug("client response received", session_id=self.session_id, id=obj.get("id"))
                return None
            req = request_from_obj(obj)
        except JsonRpcCodecError as e:
            self.engine.hooks.fire_error(e.req_id, "", raw, e)
            return encode_error(e.req_id, e.code, e.message, e.data)

        resp = await self.handle_request(req)
        return None if resp is None else encode_response(resp)

    async def handle_request(self, req: JsonRpcRequest) -> JsonRpcResponse | None:
        self._ensure_open()
        self.start()
        self.touch()

        if req.is_notification and req.method not in self.dispatcher.methods():
            self.engine.logger.debug("ignoring unknown notification", session_id=self.session_id, method=req.method)
            return None

        self._inflight += 1
        self.state = SessionState.DISPATCHING
        try:
            resp = await self.dispatcher.handle(req)
        finally:
            self._inflight -= 1
            self.touch()
            if self.state is not SessionState.CLOSED and self._inflight == 0:
                self.state = SessionState.AWAITING_REQUEST

        if req.is_notification:
            return None
        return resp

    def on_close(self, callback: Callable[["ServerSession"], None]) -> None:
        self._close_callbacks.append(callback)

    def close(self) -> None:
        if self.state is SessionState.CLOSED:
            return
        self.state = SessionState.CLOSED
        self.closed.set()
        for cb in self._close_callbacks:
            cb(self)
        self.engine.forget(self)

    def _ensure_open(self) -> None:
        if self.state is SessionState.CLOSED:
            raise SessionClosedError(f"session closed: {self.session_id}")


@dataclass
class SessionEngine:
    """Owns the session table and wires MCP methods into per-session dispatchers."""

    protocol: McpProtocol
    hooks: Hooks = field(default_factory=Hooks)
    logger: Logger = field(default_factory=NullLogger)
    _sessions: dict[str, ServerSession] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Tools are registered before the engine exists; nothing is added at runtime.
        self.protocol.tools.freeze()

    def open_session(self) -> ServerSession:
        session = ServerSession(self, McpSession.new())
        self._sessions[session.session_id] = session
        self.logger.debug("session opened", session_id=session.session_id)
        return session

    def get_session(self, session_id: str) -> ServerSession | None:
        return self._sessions.get(session_id)

    def sessions(self) -> list[ServerSession]:
        return list(self._sessions.values())

    def forget(self, session: ServerSession) -> None:
        if self._sessions.pop(session.session_id, None) is not None:
            self.logger.debug("session closed", session_id=session.session_id)
            self.hooks.fire_session_close(session.session_id)

    def close_all(self) -> None:
        for session in self.sessions():
            session.close()

    def close_idle(self, max_idle: float, now: float | None = None) -> int:
        """Close sessions untouched for more than `max_idle` seconds; return how many."""
        now = time.monotonic() if now is None else now
        stale = [s for s in self.sessions() if not s.busy and now - s.last_active > max_idle]
        for session in stale:
            self.logger.info("closing idle session", session_id=session.session_id, idle_seconds=int(now - session.last_active))
            session.close()
        return len(stale)

    def build_dispatcher(self, session: ServerSession) -> Dispatcher:
        proto = self.protocol
        disp = Dispatcher()
        disp.error_mapper = map_exception_to_jsonrpc
        disp.on_error = self._observe_error

        def initialize(req: JsonRpcRequest) -> dict[str, Any]:
            return proto.handle_initialize(req.params_dict())

        def initialized(req: JsonRpcRequest) -> None:
            session.initialized = True

        def ping(req: JsonRpcRequest) -> dict[str, Any]:
            return {}

        def tools_list(req: JsonRpcRequest) -> dict[str, Any]:
            return proto.handle_tools_list(session.info)

        async def tools_call(req: JsonRpcRequest) -> dict[str, Any]:
            params = req.params_dict()
            name = params.get("name")
            args = params.get("arguments")
            timeout_ms = params.get("timeout_ms")
            if not isinstance(name, str) or not name:
                raise JsonRpcAppError(INVALID_PARAMS, "missing tool name")
            sess = session.info
            if isinstance(timeout_ms, int) and not isinstance(timeout_ms, bool):
                sess = sess.with_deadline(timeout_ms)
            return await proto.handle_tools_call(sess, name=name, args=args)

        disp.register("initialize", initialize)
        disp.register("notifications/initialized", initialized)
        disp.register("ping", ping)
        disp.register("tools/list", tools_list)
        disp.register("tools/call", tools_call)
        return disp

    def _observe_error(self, req: JsonRpcRequest, exc: Exception) -> None:
        self.hooks.fire_error(req.id, req.method, req.params, exc)
