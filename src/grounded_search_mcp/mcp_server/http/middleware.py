from __future__ import annotations

import hmac
from dataclasses import dataclass, field
from typing import Protocol, Sequence

from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send


ALLOWED_METHODS = "GET, POST, DELETE, OPTIONS"
ALLOWED_HEADERS = "Content-Type, Authorization, Mcp-Session-Id, Mcp-Protocol-Version"


@dataclass
class FilterContext:
    """Headers a stage wants on the final response, whichever stage produces it."""

    response_headers: dict[str, str] = field(default_factory=dict)


class RequestFilter(Protocol):
    name: str

    def __call__(self, request: Request, ctx: FilterContext) -> Response | None:
        """Return None to continue with the next stage, or a response to stop here."""
        ...


@dataclass
class OriginValidation:
    allowed_origins: Sequence[str]
    name: str = "origin"

    def __call__(self, request: Request, ctx: FilterContext) -> Response | None:
        if not self.allowed_origins:
            return None
        origin = request.headers.get("origin", "")
        if origin and origin not in self.allowed_origins:
            return PlainTextResponse("Forbidden", status_code=403)
        if origin:
            ctx.response_headers["Access-Control-Allow-Origin"] = origin
            ctx.response_headers["Access-Control-Allow-Methods"] = ALLOWED_METHODS
            ctx.response_headers["Access-Control-Allow-Headers"] = ALLOWED_HEADERS
        if request.method == "OPTIONS":
            return Response(status_code=204)
        return None


@dataclass
class BearerAuth:
    token: str
    name: str = "auth"

    def __call__(self, request: Request, ctx: FilterContext) -> Response | None:
        if not self.token:
            return None
        got = request.headers.get("authorization", "")
        if not hmac.compare_digest(got.encode(), f"Bearer {self.token}".encode()):
            return PlainTextResponse("Unauthorized", status_code=401)
        return None


def default_filters(allowed_origins: Sequence[str], auth_token: str) -> list[RequestFilter]:
    # Origin first so a CORS preflight (no Authorization header) is answered before auth.
    return [OriginValidation(list(allowed_origins)), BearerAuth(auth_token)]


class FilterChain:
    """ASGI wrapper running request filters in order before the wrapped app.

    Written as plain ASGI so streamed (SSE) responses pass through unbuffered.
    """

    def __init__(self, app: ASGIApp, filters: Sequence[RequestFilter]) -> None:
        self.app = app
        self.filters = list(filters)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request(scope, receive)
        ctx = FilterContext()
        for f in self.filters:
            response = f(request, ctx)
            if response is not None:
                response.headers.update(ctx.response_headers)
                await response(scope, receive, send)
                return

        if not ctx.response_headers:
            await self.app(scope, receive, send)
            return

        extra = [(k.lower().encode("latin-1"), v.encode("latin-1")) for k, v in ctx.response_headers.items()]

        async def send_with_headers(message: Message) -> None:
            if message["type"] == "http.response.start":
                message = dict(message)
                message["headers"] = list(message.get("headers", [])) + extra
            await send(message)

        await self.app(scope, receive, send_with_headers)
