from __future__ import annotations

from typing import Any
from urllib.parse import urlparse

from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from .client import Attribution, ContentBlockedError, GenerationParams, GroundedContent, SearchAPIError


# Finish reasons that mean the answer was withheld rather than completed.
BLOCKED_FINISH_REASONS = {"SAFETY", "BLOCKLIST", "PROHIBITED_CONTENT", "SPII", "RECITATION", "IMAGE_SAFETY"}


def _enum_name(v: Any) -> str:
    if v is None:
        return ""
    return str(getattr(v, "name", None) or getattr(v, "value", None) or v)


def _host(url: str) -> str:
    try:
        return urlparse(url).hostname or ""
    except ValueError:
        return ""


class GeminiSearchClient:
    """Grounded search through the Gemini API with the Google Search tool enabled."""

    def __init__(self, api_key: str, model_name: str, *, client: Any | None = None) -> None:
        if not api_key and client is None:
            raise ValueError("api_key must be non-empty")
        self.model_name = model_name
        self._client = client if client is not None else genai.Client(api_key=api_key)

    def build_config(self, params: GenerationParams) -> types.GenerateContentConfig:
        thinking: types.ThinkingConfig | None = None
        if params.thinking_level:
            thinking = types.ThinkingConfig(thinking_level=params.thinking_level)
        elif params.thinking_budget is not None:
            thinking = types.ThinkingConfig(thinking_budget=params.thinking_budget)

        return types.GenerateContentConfig(
            temperature=params.temperature,
            max_output_tokens=params.max_output_tokens,
            tools=[types.Tool(google_search=types.GoogleSearch())],
            thinking_config=thinking,
        )

    async def generate_grounded_content(self, params: GenerationParams) -> GroundedContent:
        try:
            resp = await self._client.aio.models.generate_content(
                model=params.model_name or self.model_name,
                contents=params.prompt,
                config=self.build_config(params),
            )
        except genai_errors.APIError as e:
            raise SearchAPIError(int(e.code or 0), str(e.message or e)) from e
        return to_grounded_content(resp)


def to_grounded_content(resp: Any) -> GroundedContent:
    """Map a `GenerateContentResponse` into text plus ordered attributions."""
    feedback = getattr(resp, "prompt_feedback", None)
    block_reason = _enum_name(getattr(feedback, "block_reason", None))
    if block_reason and block_reason != "BLOCK_REASON_UNSPECIFIED":
        raise ContentBlockedError(f"prompt blocked ({block_reason})")

    candidates = getattr(resp, "candidates", None) or []
    if not candidates:
        raise ContentBlockedError("no candidates returned")

    cand = candidates[0]
    finish = _enum_name(getattr(cand, "finish_reason", None))
    if finish in BLOCKED_FINISH_REASONS:
        raise ContentBlockedError(f"response blocked ({finish})")

    text = _candidate_text(cand)

    attributions: list[Attribution] = []
    meta = getattr(cand, "grounding_metadata", None)
    for chunk in getattr(meta, "grounding_chunks", None) or []:
        web = getattr(chunk, "web", None)
        if web is None:
            continue
        url = getattr(web, "uri", None) or ""
        title = getattr(web, "title", None) or ""
        domain = getattr(web, "domain", None) or title or _host(url)
        attributions.append(Attribution(title=title, domain=domain, url=url))

    return GroundedContent(generated_text=text, attributions=attributions)


def _candidate_text(cand: Any) -> str:
    content = getattr(cand, "content", None)
    parts = getattr(content, "parts", None) or []
    # Thought parts carry reasoning summaries, not the answer.
    return "".join(p.text for p in parts if getattr(p, "text", None) and not getattr(p, "thought", False))
