from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol


LOGGER_NAME = "grounded_search_mcp"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


class Logger(Protocol):
    """Logging capability handed to every component at construction time."""

    def debug(self, msg: str, **fields: Any) -> None: ...

    def info(self, msg: str, **fields: Any) -> None: ...

    def error(self, msg: str, **fields: Any) -> None: ...


def _render(msg: str, fields: dict[str, Any]) -> str:
    if not fields:
        return msg
    pairs = " ".join(f"{k}={v!r}" if isinstance(v, str) else f"{k}={v}" for k, v in fields.items())
    return f"{msg} {pairs}"


@dataclass
class StdLogger:
    """`Logger` backed by a stdlib logger; fields are rendered as key=value pairs."""

    logger: logging.Logger

    def debug(self, msg: str, **fields: Any) -> None:
        if self.logger.isEnabledFor(logging.DEBUG):
            self.logger.debug(_render(msg, fields))

    def info(self, msg: str, **fields: Any) -> None:
        self.logger.info(_render(msg, fields))

    def error(self, msg: str, **fields: Any) -> None:
        self.logger.error(_render(msg, fields))

    def child(self, suffix: str) -> "StdLogger":
        return StdLogger(self.logger.getChild(suffix))


class NullLogger:
    def debug(self, msg: str, **fields: Any) -> None:
        return

    def info(self, msg: str, **fields: Any) -> None:
        return

    def error(self, msg: str, **fields: Any) -> None:
        return


def setup_logging(*, debug: bool = False, log_path: str | Path | None = None) -> StdLogger:
    """
    Configure the package logger and return a `StdLogger` bound to it.

    Output goes to `log_path` when given, otherwise to stderr. stdout is never
    used: in stdio mode it carries the protocol stream.
    """
    logger = logging.getLogger(LOGGER_NAME)
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()

    handler: logging.Handler
    if log_path:
        p = Path(log_path).expanduser()
        p.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(p, encoding="utf-8")
    else:
        handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if debug else logging.INFO)
    logger.propagate = False
    return StdLogger(logger)
