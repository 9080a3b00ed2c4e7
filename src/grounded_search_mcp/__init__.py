from __future__ import annotations

NAME = "mcp-gemini-grounded-search"
USAGE = "MCP server for Gemini grounded search"

__version__ = "0.1.0"
# Replaced at build time; "xxx" means unknown.
__revision__ = "xxx"


def version_string() -> str:
    if __revision__ and __revision__ != "xxx":
        return f"{__version__} ({__revision__})"
    return __version__
