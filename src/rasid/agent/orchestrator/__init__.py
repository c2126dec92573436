"""Agent orchestration: the governor loop, prompt building and the thinking trace."""

from .agent import ERROR_RESPONSE, FALLBACK_RESPONSE, AgentConfig, AgentOrchestrator
from .prompt_builder import PromptBuilder
from .thinking import ThinkingTracker
from .tool_executor import ToolExecutor

__all__ = [
    "AgentConfig",
    "AgentOrchestrator",
    "ERROR_RESPONSE",
    "FALLBACK_RESPONSE",
    "PromptBuilder",
    "ThinkingTracker",
    "ToolExecutor",
]
