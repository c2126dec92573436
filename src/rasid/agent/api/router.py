"""
FastAPI Router for the Smart Rasid assistant.

Provides REST endpoints for chat, the tool catalog and embedding cache
operations. Authentication happens at the gateway, which forwards the
user's identity in the X-User-Id / X-User-Name headers.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, status

from ..domain.entities import ConversationTurn, HistoryMessage, MessageRole
from ..orchestrator import AgentOrchestrator
from ..search.embeddings import EmbeddingClient
from ..tools import TOOL_CATALOG_VERSION
from .schemas import (
    ChatRequest,
    ChatResponse,
    EmbeddingCacheClearResponse,
    EmbeddingCacheStatsResponse,
    ToolInfo,
    ToolListResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/agent", tags=["agent"])

ANONYMOUS_USER_NAME = "المستخدم"


# =============================================================================
# Dependencies
# =============================================================================


class AgentDependencies:
    """Container for agent dependencies.

    Injected at application startup.
    """

    orchestrator: Optional[AgentOrchestrator] = None
    embedding_client: Optional[EmbeddingClient] = None


_deps = AgentDependencies()


def create_agent_dependencies(
    orchestrator: Optional[AgentOrchestrator],
    embedding_client: Optional[EmbeddingClient] = None,
) -> None:
    """Initialize agent dependencies.

    Call this at application startup. Passing None resets them.

    Args:
        orchestrator: The agent orchestrator
        embedding_client: Embedding client whose cache the operator endpoints manage
    """
    _deps.orchestrator = orchestrator
    _deps.embedding_client = embedding_client


def get_orchestrator() -> AgentOrchestrator:
    """Get the agent orchestrator dependency."""
    if not _deps.orchestrator:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Agent not initialized",
        )
    return _deps.orchestrator


def get_embedding_client() -> EmbeddingClient:
    """Get the embedding client dependency."""
    if not _deps.embedding_client:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Semantic search not initialized",
        )
    return _deps.embedding_client


# =============================================================================
# REST Endpoints
# =============================================================================


@router.post("/chat", response_model=ChatResponse)
async def chat(
    request: ChatRequest,
    x_user_id: str = Header(..., min_length=1),
    x_user_name: Optional[str] = Header(None),
    orchestrator: AgentOrchestrator = Depends(get_orchestrator),
) -> ChatResponse:
    """Run one conversation turn and return the answer with its trace.

    Model and tool failures are folded into the response, so this
    endpoint answers 200 for every valid request.
    """
    turn = ConversationTurn(
        user_message=request.message,
        user_id=x_user_id,
        user_name=x_user_name or ANONYMOUS_USER_NAME,
        history=tuple(
            HistoryMessage(role=MessageRole(item.role), content=item.content)
            for item in request.history
        ),
    )

    result = await orchestrator.chat(turn)
    logger.info(
        f"Chat turn for user {x_user_id}: {len(result.tools_used)} tools, "
        f"{len(result.thinking_steps)} steps"
    )
    return ChatResponse.model_validate(result.to_dict())


@router.get("/tools", response_model=ToolListResponse)
async def list_tools(
    orchestrator: AgentOrchestrator = Depends(get_orchestrator),
) -> ToolListResponse:
    """List the tools the assistant can call."""
    return ToolListResponse(
        version=TOOL_CATALOG_VERSION,
        tools=[
            ToolInfo(
                name=tool.name,
                description=tool.description,
                label=tool.label,
                agent=tool.agent.value,
                parameters=tool.parameters,
            )
            for tool in orchestrator.tools.definitions
        ],
    )


@router.get("/embedding-cache/stats", response_model=EmbeddingCacheStatsResponse)
async def embedding_cache_stats(
    client: EmbeddingClient = Depends(get_embedding_client),
) -> EmbeddingCacheStatsResponse:
    """Report embedding cache size and hit counters."""
    if client.cache is None:
        return EmbeddingCacheStatsResponse(size=0, max_entries=0)
    return EmbeddingCacheStatsResponse(**client.cache.stats())


@router.post("/embedding-cache/clear", response_model=EmbeddingCacheClearResponse)
async def clear_embedding_cache(
    client: EmbeddingClient = Depends(get_embedding_client),
) -> EmbeddingCacheClearResponse:
    """Drop all cached embedding vectors."""
    cleared = client.clear_cache()
    logger.info(f"Embedding cache cleared via API ({cleared} entries)")
    return EmbeddingCacheClearResponse(cleared=cleared)
