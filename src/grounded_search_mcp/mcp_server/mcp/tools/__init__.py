from .base import Failure, FunctionTool, InvocationResult, Success, Tool, ToolDescriptor
from .registry import DuplicateToolError, RegistryFrozenError, ToolRegistry, ToolRegistryError, UnknownToolError
from .search import TOOL_NAME as SEARCH_TOOL_NAME
from .search import SearchDefaults, SearchInvoker
from .search import make_tool as make_search_tool

__all__ = [
    "Failure",
    "FunctionTool",
    "InvocationResult",
    "Success",
    "Tool",
    "ToolDescriptor",
    "ToolRegistry",
    "ToolRegistryError",
    "DuplicateToolError",
    "UnknownToolError",
    "RegistryFrozenError",
    "SEARCH_TOOL_NAME",
    "SearchDefaults",
    "SearchInvoker",
    "make_search_tool",
]
