from __future__ import annotations

import asyncio
import itertools
from typing import AsyncIterator

from starlette.requests import Request
from starlette.responses import Response, StreamingResponse
from starlette.types import Receive, Scope, Send

from ...observability import Logger, NullLogger
from ..jsonrpc.codec import (
    INTERNAL_ERROR,
    INVALID_REQUEST,
    JsonRpcCodecError,
    encode_error,
    encode_request,
    encode_response,
    is_client_response,
    parse_message,
    request_from_obj,
)
from ..mcp.engine import ServerSession, SessionClosedError, SessionEngine


SESSION_HEADER = "Mcp-Session-Id"
JSON_MEDIA_TYPE = "application/json"
SSE_MEDIA_TYPE = "text/event-stream"


class ShutdownTimeoutError(TimeoutError):
    pass


def _error_response(status_code: int, code: int, message: str, req_id: object = None) -> Response:
    return Response(encode_error(req_id, code, message), status_code=status_code, media_type=JSON_MEDIA_TYPE)


class StreamableHttpBinding:
    """Binds a SessionEngine to one HTTP endpoint (MCP streamable HTTP).

    - POST: one JSON-RPC message; `initialize` opens a session and returns its id
      in the `Mcp-Session-Id` header, everything else must carry that header.
    - GET: server-sent-event stream for the session; carries heartbeat pings.
    - DELETE: terminates the session.
    """

    def __init__(
        self,
        engine: SessionEngine,
        *,
        heartbeat_seconds: float = 0,
        session_idle_seconds: float = 0,
        logger: Logger | None = None,
    ) -> None:
        self.engine = engine
        self.heartbeat_seconds = heartbeat_seconds
        # 0 keeps sessions until DELETE or shutdown.
        self.session_idle_seconds = session_idle_seconds
        self.logger = logger or NullLogger()
        self._draining = False
        self._inflight: set[asyncio.Task] = set()
        self._ping_ids = itertools.count(1)

    @property
    def draining(self) -> bool:
        return self._draining

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        request = Request(scope, receive)
        if request.method == "POST":
            response = await self.handle_post(request)
        elif request.method == "GET":
            response = await self.handle_get(request)
        elif request.method == "DELETE":
            response = await self.handle_delete(request)
        else:
            response = Response("Method Not Allowed", status_code=405, headers={"Allow": "GET, POST, DELETE"})
        await response(scope, receive, send)

    def _lookup(self, request: Request) -> ServerSession | Response:
        session_id = request.headers.get(SESSION_HEADER)
        if not session_id:
            return _error_response(400, INVALID_REQUEST, f"Bad Request: {SESSION_HEADER} header required")
        session = self.engine.get_session(session_id)
        if session is None or session.is_closed:
            return _error_response(404, INVALID_REQUEST, "session not found")
        return session

    async def handle_post(self, request: Request) -> Response:
        if self._draining:
            return _error_response(503, INTERNAL_ERROR, "server is shutting down")

        body = await request.body()
        try:
            obj = parse_message(body)
            if is_client_response(obj):
                found = self._lookup(request)
                if isinstance(found, Response):
                    return found
                found.touch()
                return Response(status_code=202)
            req = request_from_obj(obj)
        except JsonRpcCodecError as e:
            self.engine.hooks.fire_error(e.req_id, "", body, e)
            return _error_response(400, e.code, e.message, e.req_id)

        headers: dict[str, str] = {}
        if req.method == "initialize":
            if self.session_idle_seconds > 0:
                self.engine.close_idle(self.session_idle_seconds)
            session = self.engine.open_session()
            headers[SESSION_HEADER] = session.session_id
        else:
            found = self._lookup(request)
            if isinstance(found, Response):
                return found
            session = found

        task = asyncio.ensure_future(session.handle_request(req))
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)
        gone = asyncio.ensure_future(self._wait_disconnect(request))
        try:
            await asyncio.wait({task, gone}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            gone.cancel()

        if not task.done():
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
            self.logger.info("client disconnected, request cancelled", session_id=session.session_id, method=req.method)
            if req.method == "initialize":
                session.close()
            return _error_response(499, INTERNAL_ERROR, "request cancelled: client disconnected", req.id)

        try:
            resp = task.result()
        except asyncio.CancelledError:
            return _error_response(503, INTERNAL_ERROR, "request aborted by server shutdown", req.id)
        except SessionClosedError:
            return _error_response(404, INVALID_REQUEST, "session not found", req.id)

        if resp is None:
            return Response(status_code=202, headers=headers)
        if req.method == "initialize" and resp.error is not None:
            session.close()
            headers.pop(SESSION_HEADER, None)
        return Response(encode_response(resp), media_type=JSON_MEDIA_TYPE, headers=headers)

    async def _wait_disconnect(self, request: Request) -> None:
        # The body is already read, so the next ASGI message is the disconnect.
        while True:
            message = await request.receive()
            if message["type"] == "http.disconnect":
                return

    async def handle_get(self, request: Request) -> Response:
        if self._draining:
            return _error_response(503, INTERNAL_ERROR, "server is shutting down")
        found = self._lookup(request)
        if isinstance(found, Response):
            return found
        return StreamingResponse(
            self._event_stream(found),
            media_type=SSE_MEDIA_TYPE,
            headers={"Cache-Control": "no-cache", SESSION_HEADER: found.session_id},
        )

    async def handle_delete(self, request: Request) -> Response:
        found = self._lookup(request)
        if isinstance(found, Response):
            return found
        found.close()
        self.logger.info("session terminated by client", session_id=found.session_id)
        return Response(status_code=200)

    async def _event_stream(self, session: ServerSession) -> AsyncIterator[str]:
        interval = self.heartbeat_seconds if self.heartbeat_seconds > 0 else None
        session.attach_stream()
        try:
            while not session.is_closed:
                try:
                    await asyncio.wait_for(session.closed.wait(), timeout=interval)
                except asyncio.TimeoutError:
                    ping = encode_request("ping", req_id=f"ping-{next(self._ping_ids)}")
                    yield f"event: message\ndata: {ping}\n\n"
        finally:
            session.detach_stream()

    async def shutdown(self, grace: float) -> None:
        """
        Stop accepting requests, close every session and drain in-flight calls.

        Calls still running after `grace` seconds are cancelled and
        `ShutdownTimeoutError` is raised.
        """
        self._draining = True
        self.engine.close_all()

        pending = [t for t in self._inflight if not t.done()]
        if not pending:
            return
        self.logger.info("waiting for in-flight requests", count=len(pending), grace_seconds=grace)
        _, still_running = await asyncio.wait(pending, timeout=grace)
        if still_running:
            for t in still_running:
                t.cancel()
            await asyncio.gather(*still_running, return_exceptions=True)
            raise ShutdownTimeoutError(f"{len(still_running)} request(s) still running after {grace}s; cancelled")
