"""Tool catalog, handlers and dispatch for the assistant."""

from .catalog import TOOL_CATALOG, TOOL_CATALOG_VERSION
from .guides import PLATFORM_GUIDES, get_platform_guide
from .registry import (
    ToolRegistry,
    build_tool_handlers,
    build_tool_registry,
    summarize_result,
)

__all__ = [
    "TOOL_CATALOG",
    "TOOL_CATALOG_VERSION",
    "PLATFORM_GUIDES",
    "get_platform_guide",
    "ToolRegistry",
    "build_tool_handlers",
    "build_tool_registry",
    "summarize_result",
]
