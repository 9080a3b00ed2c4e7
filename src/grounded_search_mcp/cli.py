from __future__ import annotations

import argparse
import sys
from typing import Sequence

from . import NAME, USAGE, version_string
from .config import ConfigError, THINKING_LEVELS, apply_overrides, load_settings, require_api_key
from .observability import setup_logging


DEFAULT_CONFIG_PATH = "config.yml"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=NAME, description=USAGE)
    parser.add_argument("--version", action="version", version=f"%(prog)s {version_string()}")
    sub = parser.add_subparsers(dest="command", metavar="<command>")
    sub.required = True

    stdio = sub.add_parser("server", aliases=["s"], help="Start the MCP server over stdio")
    stdio.add_argument("-c", "--config", default=DEFAULT_CONFIG_PATH, help="Path to the configuration file")
    stdio.add_argument("-l", "--log", default=None, help="Path to the log file (default: stderr)")
    stdio.add_argument("-d", "--debug", action="store_true", default=None, help="Enable debug logging")
    stdio.add_argument("-k", "--api-key", default=None, help="Gemini API key")
    stdio.add_argument("-m", "--model", default=None, help="Gemini model name")
    stdio.add_argument(
        "--thinking-level",
        default=None,
        type=str.upper,
        choices=THINKING_LEVELS,
        help="Default thinking level for the model",
    )
    stdio.add_argument("--thinking-budget", default=None, type=int, help="Default thinking budget in tokens")
    stdio.set_defaults(mode="stdio")

    http = sub.add_parser("httpserver", help="Start the MCP server over streamable HTTP")
    http.add_argument("-c", "--config", default=DEFAULT_CONFIG_PATH, help="Path to the configuration file")
    http.set_defaults(mode="http")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = load_settings(args.config)
        if args.mode == "stdio":
            settings = apply_overrides(
                settings,
                log=args.log,
                debug=args.debug,
                api_key=args.api_key,
                model_name=args.model,
                thinking_level=args.thinking_level,
                thinking_budget=args.thinking_budget,
            )
        require_api_key(settings)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    logger = setup_logging(debug=settings.debug, log_path=settings.log or None)
    logger.debug("configuration loaded", config=args.config, model=settings.gemini.model_name)

    # Deferred: the transports pull in the HTTP and Gemini stacks.
    from .mcp_server.entry import run_http, run_stdio
    from .mcp_server.http import ListenerError

    try:
        if args.mode == "stdio":
            run_stdio(settings, logger)
        else:
            run_http(settings, logger)
    except (ConfigError, ListenerError) as e:
        logger.error("server terminated", error=str(e))
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 0
    except Exception as e:
        logger.error("fatal error", error=repr(e))
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
