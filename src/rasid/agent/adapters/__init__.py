"""Adapters implementing the domain ports."""

from .memory import (
    InMemoryAuditSink,
    InMemoryKnowledgeBase,
    InMemoryPlatformData,
    PlatformDataset,
)
from .postgres import PostgresAuditSink, PostgresKnowledgeBase, PostgresPlatformData

__all__ = [
    "InMemoryAuditSink",
    "InMemoryKnowledgeBase",
    "InMemoryPlatformData",
    "PlatformDataset",
    "PostgresAuditSink",
    "PostgresKnowledgeBase",
    "PostgresPlatformData",
]
