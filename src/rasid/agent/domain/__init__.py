"""Domain entities, exceptions and port interfaces for the agent module."""

from .entities import (
    AgentResponse,
    AgentRole,
    ConversationTurn,
    HistoryMessage,
    KnowledgeCategory,
    KnowledgeEntry,
    Message,
    MessageRole,
    ModelResponse,
    ResultSource,
    SemanticSearchResult,
    StepStatus,
    ThinkingStep,
    ToolCall,
    ToolDefinition,
    ToolResult,
)
from .exceptions import (
    ConfigurationError,
    DimensionMismatchError,
    EmbeddingProviderError,
    EmptyInputError,
    ModelInvocationError,
    RasidError,
    ToolExecutionError,
    ToolTimeoutError,
    UnknownToolError,
)
from .ports import (
    IAuditSink,
    IEmbeddingProvider,
    IKnowledgeBase,
    ILLMProvider,
    IPlatformData,
)

__all__ = [
    # Entities
    "AgentResponse",
    "AgentRole",
    "ConversationTurn",
    "HistoryMessage",
    "KnowledgeCategory",
    "KnowledgeEntry",
    "Message",
    "MessageRole",
    "ModelResponse",
    "ResultSource",
    "SemanticSearchResult",
    "StepStatus",
    "ThinkingStep",
    "ToolCall",
    "ToolDefinition",
    "ToolResult",
    # Exceptions
    "ConfigurationError",
    "DimensionMismatchError",
    "EmbeddingProviderError",
    "EmptyInputError",
    "ModelInvocationError",
    "RasidError",
    "ToolExecutionError",
    "ToolTimeoutError",
    "UnknownToolError",
    # Ports
    "IAuditSink",
    "IEmbeddingProvider",
    "IKnowledgeBase",
    "ILLMProvider",
    "IPlatformData",
]
