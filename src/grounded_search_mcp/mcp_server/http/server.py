from __future__ import annotations

import asyncio
import contextlib
import math
import signal
from typing import Iterator

import uvicorn
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import PlainTextResponse
from starlette.routing import Route

from ...config import HttpSettings
from ...observability import Logger, NullLogger
from .binding import StreamableHttpBinding
from .middleware import FilterChain, default_filters


# Each shutdown stage gets its own deadline.
BINDING_SHUTDOWN_GRACE = 10.0
LISTENER_SHUTDOWN_GRACE = 10.0
# Extra time past uvicorn's own graceful timeout before the listener counts as stuck.
LISTENER_EXIT_MARGIN = 1.0

HEALTH_PATH = "/health"


class ListenerError(RuntimeError):
    """The HTTP listener failed to start, died, or did not stop in time."""


async def health(request: Request) -> PlainTextResponse:
    _ = request
    return PlainTextResponse("ok")


def build_app(http: HttpSettings, binding: StreamableHttpBinding) -> Starlette:
    guarded = FilterChain(binding, default_filters(http.allowed_origins, http.auth_token))
    return Starlette(
        routes=[
            Route(HEALTH_PATH, health, methods=["GET"]),
            Route(http.endpoint_path, guarded),
        ]
    )


class _Listener(uvicorn.Server):
    # Signals belong to HttpServer; uvicorn must not install its own handlers.
    def install_signal_handlers(self) -> None:
        return

    @contextlib.contextmanager
    def capture_signals(self) -> Iterator[None]:
        yield


class HttpServer:
    """Runs the streamable HTTP binding behind uvicorn and coordinates shutdown."""

    def __init__(
        self,
        http: HttpSettings,
        binding: StreamableHttpBinding,
        *,
        logger: Logger | None = None,
        binding_grace: float = BINDING_SHUTDOWN_GRACE,
        listener_grace: float = LISTENER_SHUTDOWN_GRACE,
        handle_signals: bool = True,
    ) -> None:
        self.http = http
        self.binding = binding
        self.logger = logger or NullLogger()
        self.binding_grace = binding_grace
        self.listener_grace = listener_grace
        self.handle_signals = handle_signals
        self.app = build_app(http, binding)
        self._listener = _Listener(
            uvicorn.Config(
                self.app,
                host=http.host,
                port=http.port,
                lifespan="off",
                log_config=None,
                access_log=False,
                timeout_graceful_shutdown=math.ceil(listener_grace),
            )
        )

    @property
    def started(self) -> bool:
        return self._listener.started

    @property
    def bound_port(self) -> int | None:
        for server in getattr(self._listener, "servers", []) or []:
            for sock in server.sockets:
                return sock.getsockname()[1]
        return None

    async def serve(self, stop: asyncio.Event | None = None) -> None:
        """
        Serve until `stop` is set (or SIGINT/SIGTERM arrives), then shut down.

        Shutdown order:
          1) binding: refuse new work, close sessions, drain in-flight calls
             (errors are logged, shutdown continues)
          2) listener: stop accepting and close connections
             (errors are raised as ListenerError)
        """
        stop = stop or asyncio.Event()
        loop = asyncio.get_running_loop()
        installed = self._install_signal_handlers(loop, stop) if self.handle_signals else []

        listener = asyncio.create_task(self._run_listener(), name="http-listener")
        stopped = asyncio.create_task(stop.wait(), name="http-stop")
        try:
            done, _ = await asyncio.wait({listener, stopped}, return_when=asyncio.FIRST_COMPLETED)
            if listener in done:
                exc = listener.exception()
                if isinstance(exc, ListenerError):
                    raise exc
                raise ListenerError("http listener exited unexpectedly") from exc

            self.logger.info("shutting down http server")
            try:
                await self.binding.shutdown(self.binding_grace)
            except Exception as e:
                self.logger.error("failed to shut down protocol binding", error=repr(e))

            await self._stop_listener(listener)
            self.logger.info("http server stopped")
        finally:
            stopped.cancel()
            for sig in installed:
                loop.remove_signal_handler(sig)

    async def _run_listener(self) -> None:
        self.logger.info(
            "starting http server",
            host=self.http.host,
            port=self.http.port,
            endpoint=self.http.endpoint_path,
        )
        try:
            await self._listener.serve()
        except SystemExit as e:
            # uvicorn exits the process when it cannot bind.
            raise ListenerError(f"failed to listen on {self.http.host}:{self.http.port}") from e

    async def _stop_listener(self, listener: asyncio.Task) -> None:
        self._listener.should_exit = True
        try:
            await asyncio.wait_for(listener, timeout=math.ceil(self.listener_grace) + LISTENER_EXIT_MARGIN)
        except asyncio.TimeoutError as e:
            self._listener.force_exit = True
            self.logger.error("http listener shutdown timed out", grace_seconds=self.listener_grace)
            raise ListenerError(f"http listener did not stop within {self.listener_grace}s") from e
        except ListenerError as e:
            self.logger.error("http listener failed", error=repr(e))
            raise
        except Exception as e:
            self.logger.error("http listener failed during shutdown", error=repr(e))
            raise ListenerError(f"http listener shutdown failed: {e}") from e

    def _install_signal_handlers(self, loop: asyncio.AbstractEventLoop, stop: asyncio.Event) -> list[int]:
        installed: list[int] = []
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, self._on_signal, sig, stop)
            except (NotImplementedError, RuntimeError, ValueError):
                continue
            installed.append(sig)
        return installed

    def _on_signal(self, sig: int, stop: asyncio.Event) -> None:
        self.logger.info("received signal", signal=signal.Signals(sig).name)
        stop.set()
