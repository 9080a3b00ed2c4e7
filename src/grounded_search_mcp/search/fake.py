from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

from .client import Attribution, GenerationParams, GroundedContent


@dataclass
class FakeSearchClient:
    """Deterministic search backend stub for tests and local runs."""

    text: str = "fake answer"
    attributions: list[Attribution] = field(
        default_factory=lambda: [Attribution(title="example.com", domain="example.com", url="https://example.com/")]
    )
    error: Exception | None = None
    delay: float = 0.0
    calls: list[GenerationParams] = field(default_factory=list)

    async def generate_grounded_content(self, params: GenerationParams) -> GroundedContent:
        self.calls.append(params)
        if self.delay > 0:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        text = self.text.replace("{prompt}", params.prompt)
        return GroundedContent(generated_text=text, attributions=list(self.attributions))
