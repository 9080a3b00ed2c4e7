from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Mapping

from ..config.models import THINKING_LEVELS


MISSING_QUERY_MESSAGE = "Missing or empty query parameter"


class DecodeError(ValueError):
    def __init__(self, field_name: str, message: str) -> None:
        super().__init__(message)
        self.field = field_name
        self.message = message


@dataclass(frozen=True)
class SearchQuery:
    question: str
    max_tokens: int | None = None
    thinking_level: str | None = None


@dataclass(frozen=True)
class Source:
    title: str
    domain: str
    url: str

    def to_dict(self) -> dict[str, str]:
        return {"title": self.title, "domain": self.domain, "url": self.url}


@dataclass
class SearchResult:
    text: str
    sources: list[Source] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"text": self.text, "groundings": [s.to_dict() for s in self.sources]}

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)

    @classmethod
    def from_json(cls, raw: str) -> "SearchResult":
        obj = json.loads(raw)
        if not isinstance(obj, dict):
            raise ValueError("search result must be a JSON object")
        groundings = obj.get("groundings") or []
        return cls(
            text=str(obj.get("text", "")),
            sources=[
                Source(title=str(g.get("title", "")), domain=str(g.get("domain", "")), url=str(g.get("url", "")))
                for g in groundings
                if isinstance(g, dict)
            ],
        )


def _non_blank(v: Any) -> bool:
    return isinstance(v, str) and bool(v.strip())


def decode_search_query(args: Mapping[str, Any] | None) -> SearchQuery:
    """
    Decode untyped wire arguments into a `SearchQuery`.

    - `query` (alias `question`): required, non-blank string.
    - `max_token` (alias `max_tokens`): JSON numbers are truncated to int;
      any other value counts as "not specified".
    - `thinking_level`: optional; must name a known level when non-empty.
    """
    args = args or {}

    question = next((v for v in (args.get("query"), args.get("question")) if _non_blank(v)), None)
    if question is None:
        raise DecodeError("query", MISSING_QUERY_MESSAGE)

    raw_max = args.get("max_token", args.get("max_tokens"))
    max_tokens: int | None = None
    if isinstance(raw_max, (int, float)) and not isinstance(raw_max, bool):
        try:
            max_tokens = int(raw_max)
        except (OverflowError, ValueError):
            max_tokens = None

    level = args.get("thinking_level")
    thinking_level: str | None = None
    if isinstance(level, str) and level.strip():
        thinking_level = level.strip().upper()
        if thinking_level not in THINKING_LEVELS:
            raise DecodeError(
                "thinking_level",
                f"Invalid thinking_level: must be one of {', '.join(THINKING_LEVELS)}",
            )
    elif level is not None and not isinstance(level, str):
        raise DecodeError("thinking_level", "Invalid thinking_level: must be a string")

    return SearchQuery(question=question, max_tokens=max_tokens, thinking_level=thinking_level)
