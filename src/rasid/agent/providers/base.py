"""
Shared plumbing for the chat providers.

Both vendors return tool calls whose ids and argument JSON are not
guaranteed; the helpers here turn them into well-formed ToolCall values
and wrap SDK failures as ModelInvocationError.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional

from ..domain.entities import Message, ModelResponse, ToolCall, ToolDefinition
from ..domain.exceptions import ModelInvocationError
from ..domain.ports import ILLMProvider

logger = logging.getLogger(__name__)


@dataclass
class LLMProviderConfig:
    """Settings for one provider client.

    Attributes:
        api_key: Vendor API key
        model: Chat model identifier
        embedding_model: Embedding model identifier (OpenAI only)
        base_url: Alternative endpoint, e.g. an Azure or proxy deployment
        timeout: Per-request timeout in seconds
        max_retries: Retries performed by the vendor SDK itself
        temperature: Used when the caller passes no temperature
        max_tokens: Completion budget when the caller passes none
    """

    api_key: str
    model: str
    embedding_model: Optional[str] = None
    base_url: Optional[str] = None
    timeout: float = 60.0
    max_retries: int = 2
    temperature: float = 0.3
    max_tokens: int = 4096
    extra: dict[str, Any] = field(default_factory=dict)


class BaseLLMProvider(ILLMProvider, ABC):
    """Common behaviour for the OpenAI and Anthropic chat adapters."""

    def __init__(self, config: LLMProviderConfig):
        self.config = config
        self._response_count = 0

    @property
    def model_name(self) -> str:
        return self.config.model

    @property
    def supports_tools(self) -> bool:
        return True

    def _resolve_temperature(self, temperature: Optional[float]) -> float:
        return self.config.temperature if temperature is None else temperature

    def _build_tool_call(self, call_id: Optional[str], name: str, raw_arguments: Any, position: int) -> ToolCall:
        """Build a ToolCall, synthesizing an id when the vendor sent none.

        Synthesized ids are ``call_<response>_<position>`` so they stay
        unique across the responses of one provider instance.
        """
        return ToolCall(
            id=call_id or f"call_{self._response_count}_{position}",
            name=name,
            arguments=self._parse_arguments(raw_arguments),
        )

    def _begin_response(self) -> None:
        self._response_count += 1

    @staticmethod
    def _parse_arguments(raw: Any) -> dict[str, Any]:
        """Decode model-emitted arguments; anything but a JSON object becomes {}."""
        if isinstance(raw, dict):
            return raw
        if not raw:
            return {}
        try:
            parsed = json.loads(raw)
        except (json.JSONDecodeError, TypeError):
            logger.warning(f"Discarding unparsable tool arguments: {str(raw)[:100]}")
            return {}
        return parsed if isinstance(parsed, dict) else {}

    def _invocation_error(self, vendor: str, error: Exception) -> ModelInvocationError:
        logger.error(f"{vendor} request for {self.config.model} failed: {error}")
        return ModelInvocationError(
            f"{vendor} request failed: {error}",
            status_code=getattr(error, "status_code", None),
            cause=error,
        )

    @abstractmethod
    async def chat(
        self,
        messages: list[Message],
        tools: Optional[list[ToolDefinition]] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> ModelResponse:
        ...

    async def close(self) -> None:
        """Release the underlying HTTP client."""

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
