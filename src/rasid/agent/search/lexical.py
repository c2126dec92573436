"""Keyword fallback search over knowledge entries.

Pure scoring with no I/O, used when vectors are missing, the embedding
service is down, or the vector stage returns too few hits.
"""

from __future__ import annotations

from typing import Iterable

from ..domain.entities import KnowledgeEntry, ResultSource, SemanticSearchResult

PHRASE_WEIGHT = 0.9
WORDS_WEIGHT = 0.3
TITLE_WEIGHT = 0.2
TAG_WEIGHT = 0.15
MIN_SCORE = 0.1
MIN_WORD_LENGTH = 3


def lexical_score(query: str, entry: KnowledgeEntry) -> float:
    """Additive keyword score for one entry, clamped to 1.0."""
    query_lower = query.strip().lower()
    if not query_lower:
        return 0.0
    words = list(dict.fromkeys(w for w in query_lower.split() if len(w) >= MIN_WORD_LENGTH))

    searchable = " ".join(
        part
        for part in (
            entry.title,
            entry.title_ar,
            entry.content,
            entry.content_ar,
            *(entry.tags or ()),
        )
        if part
    ).lower()

    score = 0.0
    if query_lower in searchable:
        score += PHRASE_WEIGHT

    for word in words:
        if word in searchable:
            score += WORDS_WEIGHT / len(words)

    title_text = f"{entry.title} {entry.title_ar}".lower()
    if query_lower in title_text:
        score += TITLE_WEIGHT

    for tag in entry.tags or ():
        tag_lower = tag.lower()
        if tag_lower and (query_lower in tag_lower or tag_lower in query_lower):
            score += TAG_WEIGHT

    return min(score, 1.0)


def keyword_fallback_search(
    query: str,
    entries: Iterable[KnowledgeEntry],
    top_k: int,
) -> list[SemanticSearchResult]:
    """Rank entries by lexical score.

    Entries scoring at or below MIN_SCORE are dropped. Results are
    sorted by score descending, cut to ``top_k`` and ranked from 1.
    """
    if top_k <= 0:
        return []

    scored = [(entry, lexical_score(query, entry)) for entry in entries]
    kept = [(entry, score) for entry, score in scored if score > MIN_SCORE]
    kept.sort(key=lambda pair: pair[1], reverse=True)

    return [
        SemanticSearchResult(
            entry=entry,
            similarity=score,
            rank=i + 1,
            source=ResultSource.LEXICAL,
        )
        for i, (entry, score) in enumerate(kept[:top_k])
    ]
