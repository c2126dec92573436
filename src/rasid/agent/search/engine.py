"""
Semantic Search Engine.

Ranks knowledge base entries against a query:
1. Hard category filter
2. Cosine similarity against precomputed entry vectors
3. Threshold, sort, top-k
4. Lexical backfill when the vector stage is thin or unavailable

Result ordering: vector hits first by similarity descending, then
lexical backfill by lexical score descending. The two score scales are
never re-sorted together.
"""

from __future__ import annotations

import logging
from typing import Optional, Union

from ..domain.entities import (
    KnowledgeCategory,
    KnowledgeEntry,
    ResultSource,
    SemanticSearchResult,
)
from ..domain.exceptions import EmbeddingProviderError
from .embeddings import EmbeddingClient
from .lexical import keyword_fallback_search
from .similarity import cosine_similarity
from .text import prepare_embedding_text

logger = logging.getLogger(__name__)

DEFAULT_TOP_K = 5
SIMILARITY_THRESHOLD = 0.65
# Tunable: fewer vector hits than this triggers lexical backfill
MIN_VECTOR_RESULTS = 2


class SemanticSearchEngine:
    """Hybrid vector/lexical search over knowledge entries.

    The engine never mutates entries and never caches results; only
    query vectors are cached (inside EmbeddingClient).

    Usage:
        engine = SemanticSearchEngine(embedding_client)
        results = await engine.search("What is PDPL?", entries, top_k=3)
    """

    def __init__(
        self,
        embedding_client: EmbeddingClient,
        default_top_k: int = DEFAULT_TOP_K,
        default_threshold: float = SIMILARITY_THRESHOLD,
        min_vector_results: int = MIN_VECTOR_RESULTS,
    ):
        self.embeddings = embedding_client
        self.default_top_k = default_top_k
        self.default_threshold = default_threshold
        self.min_vector_results = min_vector_results

    async def search(
        self,
        query: str,
        entries: list[KnowledgeEntry],
        top_k: Optional[int] = None,
        threshold: Optional[float] = None,
        category: Optional[Union[KnowledgeCategory, str]] = None,
    ) -> list[SemanticSearchResult]:
        """Find the entries most relevant to ``query``.

        Args:
            query: Search text
            entries: Candidate entries
            top_k: Maximum results (default 5)
            threshold: Minimum cosine similarity for vector hits (default 0.65)
            category: Exact-match category filter applied before scoring

        Returns:
            Ranked results; empty if nothing qualifies
        """
        top_k = self.default_top_k if top_k is None else top_k
        threshold = self.default_threshold if threshold is None else threshold

        candidates = self._filter_category(entries, category)
        if not candidates or top_k <= 0 or not query.strip():
            return []

        embedded = [e for e in candidates if e.has_embedding]
        if not embedded:
            logger.debug("No embedded entries, using keyword search only")
            return keyword_fallback_search(query, candidates, top_k)

        try:
            query_vector = await self.embeddings.generate_embedding(query)
        except EmbeddingProviderError as e:
            logger.warning(f"Embedding provider unavailable, using keyword search: {e}")
            return keyword_fallback_search(query, candidates, top_k)

        scored = [
            (entry, cosine_similarity(query_vector, entry.embedding))
            for entry in embedded
        ]
        scored = [(entry, sim) for entry, sim in scored if sim >= threshold]
        scored.sort(key=lambda pair: pair[1], reverse=True)

        results = [
            SemanticSearchResult(
                entry=entry,
                similarity=sim,
                rank=i + 1,
                source=ResultSource.VECTOR,
            )
            for i, (entry, sim) in enumerate(scored[:top_k])
        ]

        if len(results) < self.min_vector_results:
            self._backfill(query, candidates, results, top_k)

        return results

    def _backfill(
        self,
        query: str,
        candidates: list[KnowledgeEntry],
        results: list[SemanticSearchResult],
        top_k: int,
    ) -> None:
        """Append non-duplicate lexical hits until top_k is reached."""
        seen = {r.entry.entry_id for r in results}
        for hit in keyword_fallback_search(query, candidates, len(candidates)):
            if len(results) >= top_k:
                break
            if hit.entry.entry_id in seen:
                continue
            seen.add(hit.entry.entry_id)
            hit.rank = len(results) + 1
            results.append(hit)

    async def embed_missing(self, entries: list[KnowledgeEntry]) -> dict[str, list[float]]:
        """Compute vectors for entries that have none.

        Returns a mapping of entry_id to vector for the knowledge base
        owner to persist. Provider errors propagate.
        """
        missing = [e for e in entries if not e.has_embedding]
        if not missing:
            return {}

        vectors = await self.embeddings.generate_embeddings_batch(
            [prepare_embedding_text(e) for e in missing]
        )
        logger.info(f"Generated embeddings for {len(missing)} knowledge entries")
        return {entry.entry_id: vector for entry, vector in zip(missing, vectors)}

    @staticmethod
    def _filter_category(
        entries: list[KnowledgeEntry],
        category: Optional[Union[KnowledgeCategory, str]],
    ) -> list[KnowledgeEntry]:
        if category is None or category == "all":
            return list(entries)
        value = category.value if isinstance(category, KnowledgeCategory) else category
        return [e for e in entries if e.category.value == value]
