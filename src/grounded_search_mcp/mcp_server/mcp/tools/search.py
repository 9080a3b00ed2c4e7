from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from ....config import THINKING_LEVELS, GeminiSettings, check_query_template
from ....observability import Logger, NullLogger
from ....search import (
    ContentBlockedError,
    DecodeError,
    GenerationParams,
    GroundedSearchClient,
    SearchAPIError,
    SearchQuery,
    SearchResult,
    Source,
    decode_search_query,
)
from ..schema import ParameterSpec
from ..session import McpSession
from .base import Failure, FunctionTool, InvocationResult, Success, ToolDescriptor


TOOL_NAME = "search"
TOOL_DESCRIPTION = (
    "Searches the web using Gemini Grounded Search. Expect more accurate results by searching "
    "in a natural language question format rather than by keywords."
)
QUERY_DESCRIPTION = (
    "The search query. Please describe it as if asking a question in natural language, rather than "
    "specifying keywords. Example: [What are the most contributive biological factors to human "
    "civilizational evolution, according to the latest research?]"
)

# Deterministic output for grounded answers; not exposed to callers.
TEMPERATURE = 0.0


@dataclass
class SearchDefaults:
    model_name: str
    max_tokens: int
    query_template: str = ""
    thinking_level: str = ""
    thinking_budget: int | None = None

    def __post_init__(self) -> None:
        if self.max_tokens <= 0:
            raise ValueError("default max_tokens must be positive")
        if self.query_template:
            check_query_template(self.query_template)

    @classmethod
    def from_settings(cls, g: GeminiSettings) -> "SearchDefaults":
        return cls(
            model_name=g.model_name,
            max_tokens=g.max_tokens,
            query_template=g.query_template,
            thinking_level=g.thinking_level,
            thinking_budget=g.thinking_budget,
        )


@dataclass
class SearchInvoker:
    """Turns tool arguments into one grounded-search call and its outcome into an InvocationResult."""

    client: GroundedSearchClient
    defaults: SearchDefaults
    logger: Logger = field(default_factory=NullLogger)

    async def invoke(self, arguments: Mapping[str, Any] | None) -> InvocationResult:
        try:
            query = decode_search_query(arguments)
        except DecodeError as e:
            return Failure(e.message)

        self.logger.debug("executing search", query=query.question, max_token=query.max_tokens)

        try:
            result = await self.search(query)
        except SearchAPIError as e:
            self.logger.error("API error in search", status_code=e.status_code, message=e.message)
            return Failure(f"failed to generate grounded content: {e}")
        except ContentBlockedError as e:
            self.logger.error("content blocked error in search", error=e.reason)
            return Failure(f"failed to generate grounded content: {e}")
        except Exception as e:
            self.logger.error("failed to search", query=query.question, error=repr(e))
            return Failure(f"failed to generate grounded content: {e}")

        try:
            return Success(result.to_json())
        except (TypeError, ValueError) as e:
            self.logger.error("failed to convert response to JSON", error=repr(e))
            return Failure(f"failed to convert response to JSON: {e}")

    async def search(self, query: SearchQuery) -> SearchResult:
        params = self.build_params(query)
        content = await self.client.generate_grounded_content(params)
        return SearchResult(
            text=content.generated_text,
            sources=[Source(title=a.title, domain=a.domain, url=a.url) for a in content.attributions],
        )

    def build_params(self, query: SearchQuery) -> GenerationParams:
        max_tokens = query.max_tokens if query.max_tokens is not None and query.max_tokens > 0 else self.defaults.max_tokens

        prompt = query.question
        if self.defaults.query_template:
            prompt = self.defaults.query_template % (prompt,)

        thinking_level = query.thinking_level or self.defaults.thinking_level or None
        # A budget only applies to models driven by budget rather than level.
        thinking_budget = None if thinking_level else self.defaults.thinking_budget

        return GenerationParams(
            prompt=prompt,
            model_name=self.defaults.model_name,
            max_output_tokens=max_tokens,
            temperature=TEMPERATURE,
            thinking_level=thinking_level,
            thinking_budget=thinking_budget,
        )


def make_tool(invoker: SearchInvoker) -> FunctionTool:
    async def _handler(session: McpSession, args: dict[str, Any]) -> InvocationResult:
        _ = session
        return await invoker.invoke(args)

    return FunctionTool(
        descriptor=ToolDescriptor(
            name=TOOL_NAME,
            description=TOOL_DESCRIPTION,
            parameters=(
                ParameterSpec("query", "string", QUERY_DESCRIPTION, required=True),
                ParameterSpec(
                    "max_token",
                    "number",
                    f"Maximum number of tokens for the response (default: {invoker.defaults.max_tokens})",
                ),
                ParameterSpec(
                    "thinking_level",
                    "string",
                    "Reasoning effort for the model (optional; server default applies when omitted)",
                    enum=THINKING_LEVELS,
                ),
            ),
        ),
        fn=_handler,
    )
