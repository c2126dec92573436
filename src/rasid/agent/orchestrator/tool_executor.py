"""
Tool Executor.

Runs the tool calls of one model response through the ToolRegistry,
one at a time in the order received, and renders each result as a
size-bounded tool message for the next model call.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from ..domain.entities import Message, MessageRole, ToolCall, ToolResult
from ..tools.registry import ToolRegistry
from .thinking import ThinkingTracker

logger = logging.getLogger(__name__)

DEFAULT_MAX_RESULT_CHARS = 8000


class ToolExecutor:
    """Executes tool calls sequentially.

    A failed tool call does not stop execution of subsequent tools; the
    registry turns every failure into an error payload.

    Usage:
        executor = ToolExecutor(tool_registry)
        results = await executor.execute_tool_calls(response.tool_calls, tracker)
        messages.extend(executor.to_tool_message(r) for r in results)
    """

    def __init__(
        self,
        tool_registry: ToolRegistry,
        max_result_chars: int = DEFAULT_MAX_RESULT_CHARS,
    ):
        """Initialize the tool executor.

        Args:
            tool_registry: Registry for tool dispatch
            max_result_chars: Cap on the serialized result sent back to the model
        """
        self.tools = tool_registry
        self.max_result_chars = max_result_chars

    async def execute_tool_calls(
        self,
        tool_calls: list[ToolCall],
        tracker: ThinkingTracker,
    ) -> list[ToolResult]:
        """Execute tool calls in order, one result per call."""
        results = []
        for tool_call in tool_calls:
            results.append(await self.tools.execute(tool_call, tracker))
        return results

    def serialize(self, payload: Any) -> str:
        """Render a payload as compact JSON, truncated to max_result_chars."""
        if isinstance(payload, str):
            text = payload
        else:
            text = json.dumps(payload, ensure_ascii=False, separators=(",", ":"), default=str)

        if len(text) > self.max_result_chars:
            logger.debug(f"Truncating tool result from {len(text)} to {self.max_result_chars} chars")
            text = text[:self.max_result_chars]
        return text

    def to_tool_message(self, result: ToolResult) -> Message:
        return Message(
            role=MessageRole.TOOL,
            content=self.serialize(result.payload),
            tool_call_id=result.tool_call_id,
            name=result.tool_name,
        )
