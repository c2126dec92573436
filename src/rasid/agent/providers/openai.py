"""
OpenAI adapter for chat completions and embeddings.

Serves both ports: the governor can run on GPT models, and the
knowledge search always uses this class for vectors.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

import openai
from openai import AsyncOpenAI

from ..domain.entities import (
    Message,
    MessageRole,
    ModelResponse,
    ToolDefinition,
)
from ..domain.exceptions import EmbeddingProviderError, ModelInvocationError
from ..domain.ports import IEmbeddingProvider
from .base import BaseLLMProvider, LLMProviderConfig

logger = logging.getLogger(__name__)


class OpenAIProvider(BaseLLMProvider, IEmbeddingProvider):
    """Chat (function calling) and embeddings over one AsyncOpenAI client.

    Usage:
        provider = OpenAIProvider(LLMProviderConfig(
            api_key="sk-...",
            model="gpt-4o",
            embedding_model="text-embedding-ada-002",
        ))
        response = await provider.chat(messages, tools)
        vector = await provider.embed("ما هو نظام حماية البيانات الشخصية؟")
    """

    DEFAULT_MODEL = "gpt-4o"
    DEFAULT_EMBEDDING_MODEL = "text-embedding-ada-002"

    EMBEDDING_DIMENSIONS = {
        "text-embedding-ada-002": 1536,
        "text-embedding-3-small": 1536,
        "text-embedding-3-large": 3072,
    }

    def __init__(self, config: LLMProviderConfig):
        super().__init__(config)
        self.embedding_model = config.embedding_model or self.DEFAULT_EMBEDDING_MODEL
        self.client = AsyncOpenAI(
            api_key=config.api_key,
            base_url=config.base_url,
            timeout=config.timeout,
            max_retries=config.max_retries,
        )

    @property
    def embedding_model_name(self) -> str:
        return self.embedding_model

    @property
    def embedding_dimension(self) -> Optional[int]:
        return self.EMBEDDING_DIMENSIONS.get(self.embedding_model)

    def _format_messages_for_api(self, messages: list[Message]) -> list[dict[str, Any]]:
        """Convert the transcript to chat-completions messages.

        Assistant turns that requested tools carry ``tool_calls`` with
        JSON-encoded arguments; each tool result answers one call id.
        """
        formatted = []
        for msg in messages:
            if msg.role == MessageRole.TOOL:
                formatted.append({
                    "role": "tool",
                    "tool_call_id": msg.tool_call_id or "unknown",
                    "content": msg.content,
                })
            elif msg.role == MessageRole.ASSISTANT and msg.tool_calls:
                formatted.append({
                    "role": "assistant",
                    "content": msg.content or None,
                    "tool_calls": [self._encode_tool_call(call) for call in msg.tool_calls],
                })
            else:
                formatted.append({"role": msg.role.value, "content": msg.content})
        return formatted

    @staticmethod
    def _encode_tool_call(call) -> dict[str, Any]:
        return {
            "id": call.id,
            "type": "function",
            "function": {
                "name": call.name,
                "arguments": json.dumps(call.arguments, ensure_ascii=False),
            },
        }

    async def chat(
        self,
        messages: list[Message],
        tools: Optional[list[ToolDefinition]] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> ModelResponse:
        """Request one completion, letting the model pick tools itself.

        Raises:
            ModelInvocationError: On SDK errors or a response without choices
        """
        request: dict[str, Any] = {
            "model": self.config.model,
            "messages": self._format_messages_for_api(messages),
            "temperature": self._resolve_temperature(temperature),
        }
        if max_tokens:
            request["max_tokens"] = max_tokens
        if tools:
            request["tools"] = [tool.to_openai_format() for tool in tools]
            request["tool_choice"] = "auto"

        try:
            completion = await self.client.chat.completions.create(**request)
        except openai.APIError as e:
            raise self._invocation_error("OpenAI", e) from e

        if not completion.choices or completion.choices[0].message is None:
            raise ModelInvocationError("Chat completion returned no choices")
        message = completion.choices[0].message

        self._begin_response()
        calls = [
            self._build_tool_call(tc.id, tc.function.name, tc.function.arguments, position)
            for position, tc in enumerate(message.tool_calls or [])
        ]

        usage = getattr(completion, "usage", None)
        return ModelResponse(
            content=message.content if isinstance(message.content, str) else None,
            tool_calls=calls,
            model=getattr(completion, "model", self.config.model),
            usage=(
                {"prompt_tokens": usage.prompt_tokens, "completion_tokens": usage.completion_tokens}
                if usage is not None
                else None
            ),
        )

    async def _create_embeddings(self, payload: Any) -> list[Any]:
        try:
            response = await self.client.embeddings.create(
                model=self.embedding_model,
                input=payload,
            )
        except openai.APIError as e:
            logger.error(f"OpenAI embeddings request failed: {e}")
            raise EmbeddingProviderError(
                f"Embeddings API failed: {e}",
                status_code=getattr(e, "status_code", None),
                cause=e,
            ) from e
        return list(response.data or [])

    async def embed(self, text: str) -> list[float]:
        """Embed a single text.

        Raises:
            EmbeddingProviderError: On SDK errors or an empty ``data`` array
        """
        data = await self._create_embeddings(text)
        if not data:
            raise EmbeddingProviderError("Embeddings API returned empty data")
        return list(data[0].embedding)

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Embed several texts in one request, in the caller's order.

        Items are re-sorted by ``index`` since the API does not promise
        to return them in input order.
        """
        if not texts:
            return []
        data = await self._create_embeddings(texts)
        return [list(item.embedding) for item in sorted(data, key=lambda item: item.index)]

    async def close(self) -> None:
        await self.client.close()
