"""
Pydantic schemas for the assistant API.

Defines request/response models for the chat and catalog endpoints.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, field_validator


# =============================================================================
# Constants
# =============================================================================

MAX_MESSAGE_LENGTH = 10000
MAX_HISTORY_MESSAGES = 100


# =============================================================================
# Chat Schemas
# =============================================================================


class HistoryItem(BaseModel):
    """A prior message in the conversation."""

    role: Literal["user", "assistant"]
    content: str = Field(..., max_length=MAX_MESSAGE_LENGTH * 4)


class ChatRequest(BaseModel):
    """Request to send a chat message."""

    message: str = Field(..., min_length=1, max_length=MAX_MESSAGE_LENGTH)
    history: list[HistoryItem] = Field(default_factory=list, max_length=MAX_HISTORY_MESSAGES)

    @field_validator("message")
    @classmethod
    def message_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("message must not be blank")
        return value

    class Config:
        json_schema_extra = {
            "example": {
                "message": "ما هي التسريبات الحرجة هذا الأسبوع؟",
                "history": [],
            }
        }


class ThinkingStepResponse(BaseModel):
    """One step of the reasoning trace."""

    id: str
    agent: str
    action: str
    description: str
    status: Literal["running", "completed", "error"]
    timestamp: datetime
    result: Optional[str] = None


class ChatResponse(BaseModel):
    """Final answer for one turn."""

    response: str
    tools_used: list[str] = Field(default_factory=list)
    thinking_steps: list[ThinkingStepResponse] = Field(default_factory=list)


# =============================================================================
# Catalog Schemas
# =============================================================================


class ToolInfo(BaseModel):
    """A tool the assistant can call."""

    name: str
    description: str
    label: str
    agent: str
    parameters: dict[str, Any]


class ToolListResponse(BaseModel):
    """The tool catalog."""

    version: str
    tools: list[ToolInfo]


# =============================================================================
# Embedding Cache Schemas
# =============================================================================


class EmbeddingCacheStatsResponse(BaseModel):
    """Embedding cache counters."""

    size: int
    max_entries: Optional[int] = None
    ttl_seconds: Optional[float] = None
    hits: int = 0
    misses: int = 0
    evictions: int = 0


class EmbeddingCacheClearResponse(BaseModel):
    """Result of clearing the embedding cache."""

    cleared: int
