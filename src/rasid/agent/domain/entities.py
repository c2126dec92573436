"""
Domain entities for the Smart Rasid assistant.

These are pure domain objects with no infrastructure dependencies.
They define the core data structures used throughout the agent module.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

# ============================================
# Conversation Turn
# ============================================


class MessageRole(str, Enum):
    """Role of a message in a conversation."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"
    TOOL = "tool"


@dataclass(frozen=True)
class HistoryMessage:
    """A prior message supplied by the caller as conversation history."""

    role: MessageRole
    content: str


@dataclass(frozen=True)
class ConversationTurn:
    """One user request to the assistant.

    Built once per request and never mutated. Persistence of the
    conversation is the caller's concern.

    Attributes:
        user_message: The free-form request text
        history: Prior user/assistant messages, oldest first
        user_id: Requesting user identifier (for audit)
        user_name: Display name used in the system prompt
    """

    user_message: str
    user_id: str
    user_name: str
    history: tuple[HistoryMessage, ...] = ()

    def __post_init__(self):
        if not self.user_message or not self.user_message.strip():
            raise ValueError("user_message is required")
        for item in self.history:
            if item.role not in (MessageRole.USER, MessageRole.ASSISTANT):
                raise ValueError(f"history role must be user or assistant, got {item.role}")


# ============================================
# Sub-agent roles and thinking steps
# ============================================


class AgentRole(str, Enum):
    """Logical sub-agent that handles a thinking step.

    The value is the label shown to operators in the UI.
    """

    GOVERNOR = "راصد الذكي"
    EXECUTIVE = "الوكيل التنفيذي"
    ANALYTICS = "وكيل التحليلات"
    KNOWLEDGE = "وكيل المعرفة"
    AUDIT = "وكيل سجل المراجعة"
    FILES = "وكيل الملفات"
    PERSONALITY = "وكيل الشخصية"


class StepStatus(str, Enum):
    """Lifecycle status of a thinking step."""

    RUNNING = "running"
    COMPLETED = "completed"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self is not StepStatus.RUNNING


@dataclass(frozen=True)
class ThinkingStep:
    """One recorded unit of the assistant's reasoning trace.

    Steps are immutable records. A running step is superseded by a new
    record with the same id and a terminal status.

    Attributes:
        id: Step identifier, shared by the start and finish records
        agent: Sub-agent role that handled the step
        action: Tool or operation name
        description: Human-readable label
        status: running, completed or error
        timestamp: When this record was appended
        result: Short summary of the outcome
    """

    id: str
    agent: AgentRole
    action: str
    description: str
    status: StepStatus
    timestamp: datetime
    result: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "agent": self.agent.value,
            "action": self.action,
            "description": self.description,
            "status": self.status.value,
            "timestamp": self.timestamp.isoformat(),
            "result": self.result,
        }


# ============================================
# Tool System
# ============================================


@dataclass(frozen=True)
class ToolDefinition:
    """Definition of a tool the model may call.

    Attributes:
        name: Unique tool name (e.g., 'query_leaks')
        description: Description shown to the model
        parameters: JSON Schema for parameters
        agent: Sub-agent role that owns the tool
        label: Step description shown in the thinking trace
    """

    name: str
    description: str
    parameters: dict[str, Any]
    agent: AgentRole = AgentRole.EXECUTIVE
    label: str = ""

    def to_openai_format(self) -> dict[str, Any]:
        """Convert to OpenAI function calling format."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }

    def to_anthropic_format(self) -> dict[str, Any]:
        """Convert to Anthropic tool use format."""
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": self.parameters,
        }


@dataclass
class ToolCall:
    """A tool call requested by the model.

    Attributes:
        id: Tool call identifier (for correlation with the result)
        name: Tool name being called
        arguments: Arguments parsed from the model output
    """

    name: str
    arguments: dict[str, Any]
    id: str = field(default_factory=lambda: f"call_{uuid.uuid4().hex[:12]}")


@dataclass
class ToolResult:
    """Result of one tool call.

    Errors are carried as data: ``payload`` is ``{"error": "..."}``.

    Attributes:
        tool_call_id: ID of the tool call this is a result for
        tool_name: Name of the tool that was called
        payload: Structured handler output or an error mapping
        latency_ms: Execution time in milliseconds
    """

    tool_call_id: str
    tool_name: str
    payload: Any
    latency_ms: Optional[int] = None

    @property
    def is_error(self) -> bool:
        return isinstance(self.payload, dict) and "error" in self.payload


@dataclass
class Message:
    """A message in the model transcript for one turn.

    Attributes:
        role: Message role (system, user, assistant, tool)
        content: Message text content
        tool_calls: Tool calls requested by an assistant message
        tool_call_id: For tool messages, the call this result answers
        name: For tool messages, the tool that produced the result
    """

    role: MessageRole
    content: str = ""
    tool_calls: Optional[list[ToolCall]] = None
    tool_call_id: Optional[str] = None
    name: Optional[str] = None


@dataclass
class ModelResponse:
    """One non-streaming response from the language model.

    Attributes:
        content: Text content (may be empty when tools are requested)
        tool_calls: Tool calls requested by the model, in order
        model: Model that produced the response
        usage: Provider token usage, if reported
    """

    content: Optional[str] = None
    tool_calls: list[ToolCall] = field(default_factory=list)
    model: Optional[str] = None
    usage: Optional[dict[str, Any]] = None

    @property
    def has_tool_calls(self) -> bool:
        return bool(self.tool_calls)


@dataclass
class AgentResponse:
    """Final outcome of one conversation turn."""

    response: str
    tools_used: list[str] = field(default_factory=list)
    thinking_steps: list[ThinkingStep] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "response": self.response,
            "tools_used": list(self.tools_used),
            "thinking_steps": [s.to_dict() for s in self.thinking_steps],
        }


# ============================================
# Knowledge Base
# ============================================


class KnowledgeCategory(str, Enum):
    """Category of a knowledge base entry."""

    ARTICLE = "article"
    FAQ = "faq"
    GLOSSARY = "glossary"
    INSTRUCTION = "instruction"
    POLICY = "policy"
    REGULATION = "regulation"


@dataclass(frozen=True)
class KnowledgeEntry:
    """A knowledge base entry, read-only from the assistant's point of view.

    Attributes:
        entry_id: Stable entry identifier
        category: Entry category
        title: English title
        title_ar: Arabic title
        content: English content
        content_ar: Arabic content
        tags: Free-form tags, or None
        embedding: Precomputed vector, or None when not yet embedded
        view_count: Number of views
        helpful_count: Number of helpful votes
    """

    entry_id: str
    category: KnowledgeCategory
    title: str = ""
    title_ar: str = ""
    content: str = ""
    content_ar: str = ""
    tags: Optional[tuple[str, ...]] = None
    embedding: Optional[tuple[float, ...]] = None
    view_count: int = 0
    helpful_count: int = 0

    @property
    def has_embedding(self) -> bool:
        return bool(self.embedding)

    @property
    def display_title(self) -> str:
        return self.title_ar or self.title

    @property
    def display_content(self) -> str:
        return self.content_ar or self.content


class ResultSource(str, Enum):
    """Which search stage produced a result."""

    VECTOR = "vector"
    LEXICAL = "lexical"


@dataclass
class SemanticSearchResult:
    """A ranked knowledge search hit.

    ``similarity`` is a cosine similarity for vector results and a
    lexical heuristic score in (0, 1] for lexical results; ``source``
    tells the two apart.
    """

    entry: KnowledgeEntry
    similarity: float
    rank: int
    source: ResultSource = ResultSource.VECTOR
