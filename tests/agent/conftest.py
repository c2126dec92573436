"""Shared fixtures for the assistant tests."""

import pytest

from src.rasid.agent.adapters.memory import (
    InMemoryAuditSink,
    InMemoryKnowledgeBase,
    InMemoryPlatformData,
)
from src.rasid.agent.domain.entities import KnowledgeCategory
from src.rasid.agent.domain.exceptions import EmbeddingProviderError
from tests.agent.fakes import FakeEmbeddingProvider, make_entry, sample_dataset


@pytest.fixture
def platform():
    return InMemoryPlatformData(sample_dataset())


@pytest.fixture
def audit_sink():
    return InMemoryAuditSink()


@pytest.fixture
def knowledge_base():
    return InMemoryKnowledgeBase([
        make_entry(
            "KB-1",
            title="PDPL breach notification",
            content="Notify the authority within 72 hours",
            category=KnowledgeCategory.REGULATION,
            tags=("pdpl", "notification"),
            embedding=(1.0, 0.0, 0.0),
        ),
        make_entry(
            "KB-2",
            title="Evidence hashing",
            content="Every evidence item is stored with a SHA-256 hash",
            category=KnowledgeCategory.INSTRUCTION,
            tags=("evidence",),
            embedding=(0.0, 1.0, 0.0),
        ),
    ])


@pytest.fixture
def embedding_down():
    return FakeEmbeddingProvider(error=EmbeddingProviderError("service unavailable", status_code=503))
