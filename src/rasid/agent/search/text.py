"""Text preparation for knowledge entries."""

from __future__ import annotations

from typing import Iterable

from ..domain.entities import KnowledgeEntry

CONTEXT_ENTRY_CHARS = 500
CONTEXT_MAX_CHARS = 6000


def prepare_embedding_text(entry: KnowledgeEntry) -> str:
    """Combine category, title, content and tags into one embeddable string.

    Localized title/content win over the English fields.
    """
    parts = [
        f"[{entry.category.value}]",
        entry.display_title,
        entry.display_content,
    ]
    if entry.tags:
        parts.append(f"العلامات: {', '.join(entry.tags)}")
    return "\n".join(parts)


def build_knowledge_context(
    entries: Iterable[KnowledgeEntry],
    entry_chars: int = CONTEXT_ENTRY_CHARS,
    max_chars: int = CONTEXT_MAX_CHARS,
) -> str:
    """Render published entries as a bounded prompt section.

    Each entry contributes a heading and the first ``entry_chars`` of its
    content. Rendering stops before the section would exceed ``max_chars``.
    """
    blocks: list[str] = []
    used = 0
    for entry in entries:
        content = entry.display_content[:entry_chars]
        block = f"## [{entry.category.value}] {entry.display_title}\n{content}"
        if used + len(block) > max_chars:
            break
        blocks.append(block)
        used += len(block) + 2
    return "\n\n".join(blocks)
