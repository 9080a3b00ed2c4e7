from __future__ import annotations

import asyncio
import sys
import threading
from dataclasses import dataclass
from typing import IO, Iterator, Protocol


class MessageSession(Protocol):
    async def handle(self, raw: str | bytes) -> str | None: ...

    def close(self) -> None: ...


_EOF = None


@dataclass
class StdioTransport:
    """Line-delimited JSON-RPC 2.0 transport over stdio."""

    stdin: IO = sys.stdin
    stdout: IO[str] = sys.stdout

    async def serve(self, session: MessageSession) -> None:
        """
        Feed stdin lines to `session` until EOF and write its replies to stdout.

        - Lines are handled one at a time, in arrival order.
        - Notifications (session returns None) produce no output.
        - Lines are passed on undecoded when stdin has a byte buffer, so invalid
          UTF-8 reaches the session as a parse error instead of killing the reader.
        - Blocking reads happen on a daemon thread so the event loop stays free
          for in-flight network calls and the process can exit on signal.
        """
        loop = asyncio.get_running_loop()
        queue: asyncio.Queue[bytes | str | None] = asyncio.Queue()
        reader = threading.Thread(
            target=self._pump,
            args=(loop, queue),
            name="stdio-reader",
            daemon=True,
        )
        reader.start()

        try:
            while True:
                line = await queue.get()
                if line is _EOF:
                    break
                line = line.strip()
                if not line:
                    continue
                out = await session.handle(line)
                if out is not None:
                    self._write(out)
        finally:
            session.close()

    def _pump(self, loop: asyncio.AbstractEventLoop, queue: asyncio.Queue[bytes | str | None]) -> None:
        try:
            for line in self._iter_lines():
                loop.call_soon_threadsafe(queue.put_nowait, line)
        finally:
            try:
                loop.call_soon_threadsafe(queue.put_nowait, _EOF)
            except RuntimeError:
                # Loop already closed: the process is exiting.
                pass

    def _iter_lines(self) -> Iterator[bytes | str]:
        source = getattr(self.stdin, "buffer", self.stdin)
        while True:
            line = source.readline()
            if not line:
                break
            yield line

    def _write(self, payload: str) -> None:
        self.stdout.write(payload + "\n")
        self.stdout.flush()
