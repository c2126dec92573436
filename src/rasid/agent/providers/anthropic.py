"""
Claude chat adapter.

Chat and tool calling only; the knowledge search always embeds with
OpenAI even when Claude answers.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import anthropic
from anthropic import AsyncAnthropic

from ..domain.entities import (
    Message,
    MessageRole,
    ModelResponse,
    ToolCall,
    ToolDefinition,
)
from .base import BaseLLMProvider, LLMProviderConfig

logger = logging.getLogger(__name__)


class AnthropicProvider(BaseLLMProvider):
    """Runs the governor on Claude.

    Usage:
        provider = AnthropicProvider(
            LLMProviderConfig(api_key="sk-ant-...", model="claude-sonnet-4-5-20250929")
        )
        response = await provider.chat(messages, tools)
    """

    DEFAULT_MODEL = "claude-sonnet-4-5-20250929"

    def __init__(self, config: LLMProviderConfig):
        super().__init__(config)
        self.client = AsyncAnthropic(
            api_key=config.api_key,
            base_url=config.base_url,
            timeout=config.timeout,
            max_retries=config.max_retries,
        )

    def _format_messages_for_api(
        self, messages: list[Message]
    ) -> tuple[Optional[str], list[dict[str, Any]]]:
        """Split out the system prompt and convert the rest of the transcript.

        Claude takes the system prompt as a separate parameter. Tool
        results must be ``tool_result`` blocks in a user message, and the
        results answering one assistant message share a single user message.

        Returns:
            (system prompt or None, Claude messages)
        """
        system_parts: list[str] = []
        converted: list[dict[str, Any]] = []

        for msg in messages:
            if msg.role == MessageRole.SYSTEM:
                system_parts.append(msg.content)
                continue

            if msg.role == MessageRole.TOOL:
                result_block = {
                    "type": "tool_result",
                    "tool_use_id": msg.tool_call_id or "unknown",
                    "content": msg.content,
                }
                last = converted[-1] if converted else None
                if last and last["role"] == "user" and isinstance(last["content"], list):
                    last["content"].append(result_block)
                else:
                    converted.append({"role": "user", "content": [result_block]})
                continue

            if msg.role == MessageRole.ASSISTANT and msg.tool_calls:
                blocks: list[dict[str, Any]] = []
                if msg.content:
                    blocks.append({"type": "text", "text": msg.content})
                blocks.extend(
                    {"type": "tool_use", "id": call.id, "name": call.name, "input": call.arguments}
                    for call in msg.tool_calls
                )
                converted.append({"role": "assistant", "content": blocks})
                continue

            converted.append({"role": msg.role.value, "content": msg.content})

        system = "\n\n".join(p for p in system_parts if p) or None
        return system, converted

    async def chat(
        self,
        messages: list[Message],
        tools: Optional[list[ToolDefinition]] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> ModelResponse:
        """Send the transcript to Claude and collect text and tool_use blocks.

        Raises:
            ModelInvocationError: When the SDK reports an error
        """
        system, claude_messages = self._format_messages_for_api(messages)

        request: dict[str, Any] = {
            "model": self.config.model,
            "messages": claude_messages,
            "max_tokens": max_tokens or self.config.max_tokens,
            "temperature": self._resolve_temperature(temperature),
        }
        if system:
            request["system"] = system
        if tools:
            request["tools"] = [tool.to_anthropic_format() for tool in tools]

        try:
            response = await self.client.messages.create(**request)
        except anthropic.APIError as e:
            raise self._invocation_error("Anthropic", e) from e

        self._begin_response()
        text = []
        calls: list[ToolCall] = []
        for position, block in enumerate(response.content or []):
            if block.type == "text":
                text.append(block.text)
            elif block.type == "tool_use":
                calls.append(self._build_tool_call(block.id, block.name, block.input, position))

        usage = getattr(response, "usage", None)
        return ModelResponse(
            content="".join(text) or None,
            tool_calls=calls,
            model=getattr(response, "model", self.config.model),
            usage=(
                {"prompt_tokens": usage.input_tokens, "completion_tokens": usage.output_tokens}
                if usage is not None
                else None
            ),
        )

    async def close(self) -> None:
        await self.client.close()
