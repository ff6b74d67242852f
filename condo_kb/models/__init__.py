"""Knowledge-base domain models: re-exports all public model classes."""

from __future__ import annotations

from condo_kb.models.knowledge import (
    Document,
    DocumentChunk,
    DocumentSource,
    DocumentStatus,
    IngestionResult,
    SearchResult,
    SourceKind,
)

__all__ = [
    "Document",
    "DocumentChunk",
    "DocumentSource",
    "DocumentStatus",
    "IngestionResult",
    "SearchResult",
    "SourceKind",
]
