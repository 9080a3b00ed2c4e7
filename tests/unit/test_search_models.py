from __future__ import annotations

import json

import pytest

from grounded_search_mcp.search import (
    MISSING_QUERY_MESSAGE,
    DecodeError,
    SearchResult,
    Source,
    decode_search_query,
)


def test_decode_minimal_query() -> None:
    q = decode_search_query({"query": "What is MCP?"})
    assert q.question == "What is MCP?"
    assert q.max_tokens is None
    assert q.thinking_level is None


@pytest.mark.parametrize("args", [None, {}, {"query": ""}, {"query": "   "}, {"query": 42}])
def test_decode_missing_query(args: object) -> None:
    with pytest.raises(DecodeError) as e:
        decode_search_query(args)  # type: ignore[arg-type]
    assert e.value.message == MISSING_QUERY_MESSAGE
    assert e.value.field == "query"


def test_decode_accepts_question_alias() -> None:
    assert decode_search_query({"question": "why?"}).question == "why?"


@pytest.mark.parametrize("query", [None, "", "   ", 42])
def test_decode_falls_back_to_question_when_query_unusable(query: object) -> None:
    assert decode_search_query({"query": query, "question": "What is X?"}).question == "What is X?"


def test_decode_prefers_query_over_question() -> None:
    assert decode_search_query({"query": "a", "question": "b"}).question == "a"


@pytest.mark.parametrize(
    "raw, expected",
    [
        (1000, 1000),
        (1000.9, 1000),
        (0, 0),
        ("1000", None),
        (True, None),
        (None, None),
    ],
)
def test_decode_max_token(raw: object, expected: int | None) -> None:
    assert decode_search_query({"query": "q", "max_token": raw}).max_tokens == expected


def test_decode_max_tokens_alias() -> None:
    assert decode_search_query({"query": "q", "max_tokens": 12}).max_tokens == 12


def test_decode_thinking_level() -> None:
    assert decode_search_query({"query": "q", "thinking_level": "high"}).thinking_level == "HIGH"
    assert decode_search_query({"query": "q", "thinking_level": ""}).thinking_level is None

    with pytest.raises(DecodeError) as e:
        decode_search_query({"query": "q", "thinking_level": "EXTREME"})
    assert e.value.field == "thinking_level"

    with pytest.raises(DecodeError):
        decode_search_query({"query": "q", "thinking_level": 3})


def test_search_result_json_shape() -> None:
    r = SearchResult(text="answer", sources=[Source(title="t", domain="example.com", url="https://example.com/a")])
    obj = json.loads(r.to_json())
    assert obj == {
        "text": "answer",
        "groundings": [{"title": "t", "domain": "example.com", "url": "https://example.com/a"}],
    }
    assert SearchResult.from_json(r.to_json()) == r


def test_search_result_keeps_non_ascii() -> None:
    r = SearchResult(text="日本語の回答")
    assert "日本語の回答" in r.to_json()
    assert json.loads(r.to_json())["groundings"] == []
