"""
Tests for the semantic search engine, keyword fallback and text preparation.
"""

import pytest

from src.rasid.agent.domain.entities import KnowledgeCategory, ResultSource
from src.rasid.agent.search.cache import EmbeddingCache
from src.rasid.agent.search.embeddings import EmbeddingClient
from src.rasid.agent.search.engine import SemanticSearchEngine
from src.rasid.agent.search.lexical import keyword_fallback_search, lexical_score
from src.rasid.agent.search.text import build_knowledge_context, prepare_embedding_text
from tests.agent.fakes import FakeEmbeddingProvider, make_entry


PDPL = make_entry(
    "KB-1",
    title="PDPL breach notification",
    content="Notify the authority within 72 hours",
    category=KnowledgeCategory.REGULATION,
    tags=("pdpl", "notification"),
    embedding=(1.0, 0.0, 0.0),
)
EVIDENCE = make_entry(
    "KB-2",
    title="Evidence hashing",
    content="Every evidence item is stored with a SHA-256 hash",
    category=KnowledgeCategory.INSTRUCTION,
    tags=("evidence",),
    embedding=(0.0, 1.0, 0.0),
)
FINES = make_entry(
    "KB-3",
    title="pdpl rules",
    content="Penalties for violations",
    category=KnowledgeCategory.REGULATION,
)


def make_engine(vectors=None, default=None, **kwargs):
    provider = FakeEmbeddingProvider(vectors=vectors, default=default)
    engine = SemanticSearchEngine(EmbeddingClient(provider, cache=EmbeddingCache()), **kwargs)
    return engine, provider


class TestLexicalScore:
    """Tests for the keyword scoring heuristic."""

    def test_full_match_is_clamped(self):
        assert lexical_score("pdpl", PDPL) == 1.0

    def test_partial_word_match(self):
        """Two of three query words found, no phrase, title or tag hit."""
        assert lexical_score("authority hours missing", PDPL) == pytest.approx(0.2)

    def test_repeated_words_count_once(self):
        """Every distinct word matching earns the whole word bonus."""
        entry = make_entry("KB-7", title="Retention", content="leak policy")
        assert lexical_score("leak leak policy", entry) == pytest.approx(0.3)

    def test_no_match(self):
        assert lexical_score("firmware", PDPL) == 0.0

    def test_blank_query(self):
        assert lexical_score("   ", PDPL) == 0.0

    def test_case_insensitive(self):
        assert lexical_score("NOTIFY THE AUTHORITY", PDPL) > 0.9

    def test_arabic_fields_are_searched(self):
        entry = make_entry("KB-9", title_ar="سلسلة الأدلة", content_ar="توثيق الأدلة الرقمية")
        assert lexical_score("الأدلة", entry) > 0.9


class TestKeywordFallbackSearch:
    """Tests for keyword_fallback_search."""

    def test_ranks_by_score(self):
        results = keyword_fallback_search("pdpl", [EVIDENCE, FINES, PDPL], top_k=5)

        # Equal scores keep input order
        assert [r.entry.entry_id for r in results] == ["KB-3", "KB-1"]
        assert [r.rank for r in results] == [1, 2]
        assert all(r.source == ResultSource.LEXICAL for r in results)

    def test_low_scores_dropped(self):
        """Scores at or below 0.1 are not results."""
        results = keyword_fallback_search("hours zzz qqq qqqq", [PDPL], top_k=5)
        assert results == []

    def test_top_k_cut(self):
        results = keyword_fallback_search("pdpl", [PDPL, FINES], top_k=1)
        assert len(results) == 1

    def test_non_positive_top_k(self):
        assert keyword_fallback_search("pdpl", [PDPL], top_k=0) == []


class TestSemanticSearchEngine:
    """Tests for the hybrid search pipeline."""

    @pytest.mark.asyncio
    async def test_vector_hit(self):
        engine, _ = make_engine({"breach notice": [1.0, 0.0, 0.0]})

        results = await engine.search("breach notice", [PDPL, EVIDENCE])

        assert len(results) == 1
        assert results[0].entry.entry_id == "KB-1"
        assert results[0].similarity == pytest.approx(1.0)
        assert results[0].rank == 1
        assert results[0].source == ResultSource.VECTOR

    @pytest.mark.asyncio
    async def test_sorted_by_similarity(self):
        engine, _ = make_engine({"q": [0.9, 0.8, 0.0]}, default_threshold=0.5)

        results = await engine.search("q", [EVIDENCE, PDPL])

        assert [r.entry.entry_id for r in results] == ["KB-1", "KB-2"]
        assert results[0].similarity >= results[1].similarity
        assert [r.rank for r in results] == [1, 2]

    @pytest.mark.asyncio
    async def test_threshold_excludes_weak_hits(self):
        engine, _ = make_engine({"q": [0.8, 0.6, 0.0]})

        results = await engine.search("q", [PDPL], threshold=0.9)

        assert results == []

    @pytest.mark.asyncio
    async def test_lexical_backfill_follows_vector_hits(self):
        """Backfill is appended after vector hits, even with a higher lexical score."""
        engine, _ = make_engine({"pdpl rules": [0.8, 0.6, 0.0]})

        results = await engine.search("pdpl rules", [PDPL, EVIDENCE, FINES])

        assert [r.entry.entry_id for r in results] == ["KB-1", "KB-3"]
        assert results[0].source == ResultSource.VECTOR
        assert results[0].similarity == pytest.approx(0.8)
        assert results[1].source == ResultSource.LEXICAL
        assert results[1].similarity == pytest.approx(1.0)
        assert [r.rank for r in results] == [1, 2]

    @pytest.mark.asyncio
    async def test_backfill_skips_duplicates(self):
        engine, _ = make_engine({"pdpl": [1.0, 0.0, 0.0]})

        results = await engine.search("pdpl", [PDPL])

        assert [r.entry.entry_id for r in results] == ["KB-1"]

    @pytest.mark.asyncio
    async def test_no_backfill_when_enough_vector_hits(self):
        engine, _ = make_engine({"q": [0.9, 0.8, 0.0]}, default_threshold=0.5)

        results = await engine.search("q", [PDPL, EVIDENCE, FINES])

        assert all(r.source == ResultSource.VECTOR for r in results)

    @pytest.mark.asyncio
    async def test_no_embedded_entries_uses_keywords_only(self):
        engine, provider = make_engine()

        results = await engine.search("pdpl rules", [FINES])

        assert [r.entry.entry_id for r in results] == ["KB-3"]
        assert results[0].source == ResultSource.LEXICAL
        assert provider.embed_calls == []

    @pytest.mark.asyncio
    async def test_provider_failure_degrades_to_keywords(self, embedding_down):
        engine = SemanticSearchEngine(EmbeddingClient(embedding_down, cache=EmbeddingCache()))

        results = await engine.search("pdpl", [PDPL, EVIDENCE])

        assert [r.entry.entry_id for r in results] == ["KB-1"]
        assert results[0].source == ResultSource.LEXICAL

    @pytest.mark.asyncio
    async def test_category_filter_applied_first(self):
        engine, _ = make_engine({"evidence hashing": [0.0, 1.0, 0.0]})

        results = await engine.search(
            "evidence hashing",
            [PDPL, EVIDENCE],
            category=KnowledgeCategory.REGULATION,
        )

        assert results == []

    @pytest.mark.asyncio
    async def test_category_accepts_string_and_all(self):
        engine, _ = make_engine({"evidence hashing": [0.0, 1.0, 0.0]})

        by_value = await engine.search("evidence hashing", [PDPL, EVIDENCE], category="instruction")
        unfiltered = await engine.search("evidence hashing", [PDPL, EVIDENCE], category="all")

        assert [r.entry.entry_id for r in by_value] == ["KB-2"]
        assert [r.entry.entry_id for r in unfiltered] == ["KB-2"]

    @pytest.mark.asyncio
    async def test_top_k_limits_results(self):
        engine, _ = make_engine({"q": [0.9, 0.8, 0.0]}, default_threshold=0.5)

        results = await engine.search("q", [PDPL, EVIDENCE], top_k=1)

        assert len(results) == 1

    @pytest.mark.asyncio
    async def test_empty_inputs(self):
        engine, provider = make_engine()

        assert await engine.search("pdpl", []) == []
        assert await engine.search("pdpl", [PDPL], top_k=0) == []
        assert provider.embed_calls == []

    @pytest.mark.asyncio
    async def test_entries_not_mutated(self):
        engine, _ = make_engine({"pdpl rules": [0.8, 0.6, 0.0]})
        entries = [PDPL, EVIDENCE, FINES]

        await engine.search("pdpl rules", entries)

        assert entries == [PDPL, EVIDENCE, FINES]
        assert FINES.embedding is None

    @pytest.mark.asyncio
    async def test_embed_missing(self):
        engine, provider = make_engine(default=[0.1, 0.2, 0.3])

        vectors = await engine.embed_missing([PDPL, FINES])

        assert vectors == {"KB-3": [0.1, 0.2, 0.3]}
        assert provider.batch_calls == [[prepare_embedding_text(FINES)]]

    @pytest.mark.asyncio
    async def test_embed_missing_nothing_to_do(self):
        engine, provider = make_engine()

        assert await engine.embed_missing([PDPL, EVIDENCE]) == {}
        assert provider.batch_calls == []


class TestTextPreparation:
    """Tests for embedding text and knowledge context rendering."""

    def test_prepare_embedding_text_prefers_arabic(self):
        entry = make_entry(
            "KB-5",
            title="Title",
            title_ar="عنوان",
            content="Body",
            category=KnowledgeCategory.FAQ,
            tags=("a", "b"),
        )

        assert prepare_embedding_text(entry) == "[faq]\nعنوان\nBody\nالعلامات: a, b"

    def test_prepare_embedding_text_without_tags(self):
        assert prepare_embedding_text(FINES) == "[regulation]\npdpl rules\nPenalties for violations"

    def test_knowledge_context_includes_entries(self):
        context = build_knowledge_context([PDPL, EVIDENCE])

        assert "## [regulation] PDPL breach notification" in context
        assert "Every evidence item" in context

    def test_knowledge_context_is_bounded(self):
        entries = [make_entry(f"KB-{i}", title=f"T{i}", content="x" * 1000) for i in range(50)]

        context = build_knowledge_context(entries, entry_chars=500, max_chars=2000)

        assert len(context) <= 2000
        assert "x" * 501 not in context

    def test_knowledge_context_empty(self):
        assert build_knowledge_context([]) == ""
