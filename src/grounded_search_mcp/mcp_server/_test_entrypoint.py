from __future__ import annotations

import argparse
import asyncio
import sys

from ..config import load_settings
from ..observability import setup_logging
from ..search import FakeSearchClient
from .entry import build_engine, serve_http, serve_stdio


def main() -> int:
    """Run the real transports against FakeSearchClient (subprocess tests)."""
    parser = argparse.ArgumentParser()
    parser.add_argument("mode", choices=["stdio", "http"])
    parser.add_argument("-c", "--config", default="config.yml")
    parser.add_argument("--delay", type=float, default=0.0)
    args = parser.parse_args()

    settings = load_settings(args.config)
    logger = setup_logging(debug=True, log_path=settings.log or None)
    client = FakeSearchClient(text="answer to: {prompt}", delay=args.delay)
    engine = build_engine(settings, logger, client=client)

    if args.mode == "stdio":
        asyncio.run(serve_stdio(engine, logger))
    else:
        asyncio.run(serve_http(settings, engine, logger))
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
