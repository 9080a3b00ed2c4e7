from __future__ import annotations

import asyncio
import sys
from typing import TextIO

from .. import NAME, version_string
from ..config import Settings
from ..observability import Logger
from ..search import GroundedSearchClient
from .http import HttpServer, StreamableHttpBinding
from .jsonrpc import StdioTransport
from .mcp import Hooks, McpProtocol, SessionEngine, logging_error_hook
from .mcp.tools import SearchDefaults, SearchInvoker, ToolRegistry, make_search_tool


def build_engine(settings: Settings, logger: Logger, client: GroundedSearchClient | None = None) -> SessionEngine:
    """Wire the search tool, protocol layer and hooks into a ready SessionEngine."""
    if client is None:
        from ..search.gemini import GeminiSearchClient

        client = GeminiSearchClient(api_key=settings.gemini.api_key, model_name=settings.gemini.model_name)

    invoker = SearchInvoker(
        client=client,
        defaults=SearchDefaults.from_settings(settings.gemini),
        logger=logger,
    )
    tools = ToolRegistry()
    tools.register(make_search_tool(invoker))

    hooks = Hooks(logger=logger)
    hooks.add_on_error(logging_error_hook(logger))

    proto = McpProtocol(tools=tools, server_name=NAME, server_version=version_string())
    return SessionEngine(protocol=proto, hooks=hooks, logger=logger)


async def serve_stdio(
    engine: SessionEngine,
    logger: Logger,
    stdin: TextIO | None = None,
    stdout: TextIO | None = None,
) -> None:
    session = engine.open_session()
    logger.info("starting MCP server over stdio", session_id=session.session_id)
    transport = StdioTransport(stdin=stdin or sys.stdin, stdout=stdout or sys.stdout)
    await transport.serve(session)
    logger.info("stdio stream closed")


async def serve_http(settings: Settings, engine: SessionEngine, logger: Logger, stop: asyncio.Event | None = None) -> None:
    binding = StreamableHttpBinding(
        engine,
        heartbeat_seconds=settings.http.heartbeat_seconds,
        session_idle_seconds=settings.http.session_idle_seconds,
        logger=logger,
    )
    server = HttpServer(settings.http, binding, logger=logger)
    await server.serve(stop)


def run_stdio(settings: Settings, logger: Logger, client: GroundedSearchClient | None = None) -> None:
    engine = build_engine(settings, logger, client)
    asyncio.run(serve_stdio(engine, logger))


def run_http(settings: Settings, logger: Logger, client: GroundedSearchClient | None = None) -> None:
    engine = build_engine(settings, logger, client)
    asyncio.run(serve_http(settings, engine, logger))
