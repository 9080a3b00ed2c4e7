from .client import (
    Attribution,
    ContentBlockedError,
    GenerationParams,
    GroundedContent,
    GroundedSearchClient,
    SearchAPIError,
    SearchError,
)
from .fake import FakeSearchClient
from .models import MISSING_QUERY_MESSAGE, DecodeError, SearchQuery, SearchResult, Source, decode_search_query

__all__ = [
    "Attribution",
    "ContentBlockedError",
    "DecodeError",
    "FakeSearchClient",
    "GenerationParams",
    "GroundedContent",
    "GroundedSearchClient",
    "MISSING_QUERY_MESSAGE",
    "SearchAPIError",
    "SearchError",
    "SearchQuery",
    "SearchResult",
    "Source",
    "decode_search_query",
]
