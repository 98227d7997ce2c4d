"""Durable JSON documents: source registry, policy and proposals."""

from sourcegate.registry.repository import (
    PolicyStore,
    ProposalStore,
    Repository,
    SourceRegistry,
)
from sourcegate.registry.store import MISSING_VERSION, JsonDocument, WriterLock

__all__ = [
    "MISSING_VERSION",
    "JsonDocument",
    "PolicyStore",
    "ProposalStore",
    "Repository",
    "SourceRegistry",
    "WriterLock",
]
