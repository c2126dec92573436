"""
Smart Rasid Assistant Module.

An AI assistant for the Rasid data-leak monitoring platform. It answers
analyst questions by calling read-only platform tools and searching the
knowledge base.

Architecture:
- Domain: Core entities, exceptions and port interfaces
- Providers: LLM provider implementations (Claude, GPT)
- Search: Embedding cache, cosine similarity and hybrid semantic search
- Tools: Tool catalog, handlers and the registry/dispatcher
- Orchestrator: Governor loop, prompt builder and thinking trace
- Adapters: PostgreSQL and in-memory implementations of the ports
- API: FastAPI router

Key Features:
- Bounded tool-calling loop with a fixed apology on failure
- Per-turn thinking trace attributed to sub-agent roles
- Semantic knowledge search with keyword fallback
- Fire-and-forget audit of every turn
"""

# Domain entities
from .domain.entities import (
    AgentResponse,
    AgentRole,
    ConversationTurn,
    HistoryMessage,
    KnowledgeCategory,
    KnowledgeEntry,
    Message,
    MessageRole,
    SemanticSearchResult,
    StepStatus,
    ThinkingStep,
    ToolCall,
    ToolDefinition,
    ToolResult,
)

# Orchestrator
from .orchestrator import AgentConfig, AgentOrchestrator, ThinkingTracker

# Search
from .search import EmbeddingCache, EmbeddingClient, SemanticSearchEngine

# Tools
from .tools import TOOL_CATALOG, ToolRegistry, build_tool_registry

# Providers
from .providers import AnthropicProvider, LLMProviderConfig, OpenAIProvider

# Settings
from .config import AgentSettings

__all__ = [
    "AgentResponse",
    "AgentRole",
    "ConversationTurn",
    "HistoryMessage",
    "KnowledgeCategory",
    "KnowledgeEntry",
    "Message",
    "MessageRole",
    "SemanticSearchResult",
    "StepStatus",
    "ThinkingStep",
    "ToolCall",
    "ToolDefinition",
    "ToolResult",
    "AgentConfig",
    "AgentOrchestrator",
    "ThinkingTracker",
    "EmbeddingCache",
    "EmbeddingClient",
    "SemanticSearchEngine",
    "TOOL_CATALOG",
    "ToolRegistry",
    "build_tool_registry",
    "AnthropicProvider",
    "LLMProviderConfig",
    "OpenAIProvider",
    "AgentSettings",
]
