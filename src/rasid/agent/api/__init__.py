"""Agent API layer.

Provides the FastAPI router for the Smart Rasid assistant.
"""

from .router import router, create_agent_dependencies
from .schemas import (
    ChatRequest,
    ChatResponse,
    EmbeddingCacheClearResponse,
    EmbeddingCacheStatsResponse,
    ToolListResponse,
)

__all__ = [
    "router",
    "create_agent_dependencies",
    "ChatRequest",
    "ChatResponse",
    "EmbeddingCacheClearResponse",
    "EmbeddingCacheStatsResponse",
    "ToolListResponse",
]
