"""Knowledge retrieval for the assistant.

Provides:
- Cosine similarity
- Embedding cache and cached embedding client
- Keyword fallback scoring
- Hybrid semantic search engine
- Text preparation for embeddings and prompt context
"""

from .cache import EmbeddingCache
from .embeddings import EmbeddingClient
from .engine import SemanticSearchEngine
from .lexical import keyword_fallback_search, lexical_score
from .similarity import cosine_similarity
from .text import build_knowledge_context, prepare_embedding_text

__all__ = [
    "EmbeddingCache",
    "EmbeddingClient",
    "SemanticSearchEngine",
    "keyword_fallback_search",
    "lexical_score",
    "cosine_similarity",
    "build_knowledge_context",
    "prepare_embedding_text",
]
