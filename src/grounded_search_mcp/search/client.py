from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol


class SearchError(RuntimeError):
    pass


class SearchAPIError(SearchError):
    """Upstream API rejected the call (HTTP-level status from the backend)."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(f"API error {status_code}: {message}")
        self.status_code = status_code
        self.message = message


class ContentBlockedError(SearchError):
    """The prompt or the generated answer was withheld by safety filtering."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"content blocked: {reason}")
        self.reason = reason


@dataclass(frozen=True)
class GenerationParams:
    prompt: str
    model_name: str
    max_output_tokens: int
    temperature: float = 0.0
    thinking_level: str | None = None
    thinking_budget: int | None = None


@dataclass(frozen=True)
class Attribution:
    title: str
    domain: str
    url: str


@dataclass
class GroundedContent:
    generated_text: str
    attributions: list[Attribution] = field(default_factory=list)


class GroundedSearchClient(Protocol):
    """Generative search backend that returns text plus source attributions."""

    async def generate_grounded_content(self, params: GenerationParams) -> GroundedContent:
        ...
