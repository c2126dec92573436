"""
Embedding Client.

Converts text to vectors through an IEmbeddingProvider, with
deterministic truncation and a cache lookup in front of every call.
Provider failures propagate as EmbeddingProviderError; deciding whether
to degrade is the caller's job.
"""

from __future__ import annotations

import logging
from typing import Optional

from ..domain.exceptions import EmbeddingProviderError, EmptyInputError
from ..domain.ports import IEmbeddingProvider
from .cache import EmbeddingCache

logger = logging.getLogger(__name__)

# Roughly 8191 tokens for ada-002
DEFAULT_MAX_INPUT_CHARS = 30000
DEFAULT_CACHE_KEY_CHARS = 200


class EmbeddingClient:
    """Cached text-to-vector client.

    Usage:
        client = EmbeddingClient(openai_provider, cache=EmbeddingCache())

        vector = await client.generate_embedding("What is PDPL?")
        vectors = await client.generate_embeddings_batch(["a", "b"])
    """

    def __init__(
        self,
        provider: IEmbeddingProvider,
        cache: Optional[EmbeddingCache] = None,
        max_input_chars: int = DEFAULT_MAX_INPUT_CHARS,
        cache_key_chars: int = DEFAULT_CACHE_KEY_CHARS,
    ):
        """Initialize the client.

        Args:
            provider: Embedding service adapter
            cache: Shared vector cache (None disables caching)
            max_input_chars: Provider input limit; longer text is truncated
            cache_key_chars: Length of the normalized prefix used as cache key
        """
        self.provider = provider
        self.cache = cache
        self.max_input_chars = max_input_chars
        self.cache_key_chars = cache_key_chars

    @staticmethod
    def normalize(text: str) -> str:
        """Normalization applied before truncation and keying."""
        return text.strip()

    def cache_key(self, text: str) -> str:
        return self.normalize(text)[: self.cache_key_chars]

    def prepare_input(self, text: str) -> str:
        """Normalize and truncate text exactly as it is sent to the provider."""
        return self.normalize(text)[: self.max_input_chars]

    async def generate_embedding(self, text: str) -> list[float]:
        """Embed one text, serving from cache when possible.

        Raises:
            EmptyInputError: If text is empty or whitespace-only
            EmbeddingProviderError: If the provider call fails
        """
        self._require_text(text)

        key = self.cache_key(text)
        if self.cache is not None:
            cached = self.cache.get(key)
            if cached is not None:
                return cached

        vector = await self.provider.embed(self.prepare_input(text))
        if not vector:
            raise EmbeddingProviderError("Embeddings API returned empty data")

        if self.cache is not None:
            self.cache.set(key, vector)
        return vector

    async def generate_embeddings_batch(self, texts: list[str]) -> list[list[float]]:
        """Embed many texts with one provider call for the cache misses.

        Output order always matches input order.

        Raises:
            EmptyInputError: If any text is empty or whitespace-only
            EmbeddingProviderError: If the provider call fails
        """
        if not texts:
            return []
        for text in texts:
            self._require_text(text)

        results: list[Optional[list[float]]] = [None] * len(texts)
        missing: list[int] = []

        for i, text in enumerate(texts):
            cached = self.cache.get(self.cache_key(text)) if self.cache is not None else None
            if cached is not None:
                results[i] = cached
            else:
                missing.append(i)

        if missing:
            vectors = await self.provider.embed_batch(
                [self.prepare_input(texts[i]) for i in missing]
            )
            if len(vectors) != len(missing):
                raise EmbeddingProviderError(
                    f"Embeddings batch returned {len(vectors)} vectors for {len(missing)} inputs"
                )
            for i, vector in zip(missing, vectors):
                results[i] = vector
                if self.cache is not None:
                    self.cache.set(self.cache_key(texts[i]), vector)

        logger.debug(
            f"Batch embedded {len(texts)} texts ({len(texts) - len(missing)} from cache)"
        )
        return [r for r in results if r is not None]

    def clear_cache(self) -> int:
        """Operator action: drop all cached vectors."""
        if self.cache is None:
            return 0
        return self.cache.clear()

    @staticmethod
    def _require_text(text: str) -> None:
        if not text or not text.strip():
            raise EmptyInputError()
