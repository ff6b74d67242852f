"""Shared pytest fixtures for the condo knowledge-base test suite."""

from __future__ import annotations

import hashlib
import math
import uuid

import pytest

from condo_kb.interfaces.document_store import IDocumentStore
from condo_kb.interfaces.embedding_provider import IEmbeddingProvider
from condo_kb.interfaces.file_extraction_provider import IFileExtractionProvider
from condo_kb.models.knowledge import (
    Document,
    DocumentChunk,
    DocumentStatus,
    SearchResult,
    SourceKind,
)
from condo_kb.utils.errors import EmbeddingError, StorageError

_EMBEDDING_DIM = 64


# ---------------------------------------------------------------------------
# Deterministic embeddings
# ---------------------------------------------------------------------------


def hash_to_vector(text: str, dim: int = _EMBEDDING_DIM) -> list[float]:
    """Generate a deterministic unit vector by hashing *text*.

    Same text always produces the same vector, so a query identical to a
    chunk's content has similarity 1.0 with it.
    """
    raw = hashlib.sha256(text.encode("utf-8")).digest()
    while len(raw) < dim:
        raw += hashlib.sha256(raw).digest()
    values = [(b - 127.5) / 127.5 for b in raw[:dim]]
    magnitude = max(math.sqrt(sum(v * v for v in values)), 1e-10)
    return [v / magnitude for v in values]


def cosine_distance(left: list[float], right: list[float]) -> float:
    dot = sum(a * b for a, b in zip(left, right))
    norm = math.sqrt(sum(a * a for a in left)) * math.sqrt(sum(b * b for b in right))
    return 1.0 - dot / norm if norm else 1.0


class FakeEmbeddingProvider(IEmbeddingProvider):
    """Hash-based embedding provider that records every call.

    Parameters
    ----------
    fail_on_batch:
        1-based index of the ``embed_batch`` call that raises
        :class:`EmbeddingError`; ``None`` never fails.
    """

    def __init__(self, fail_on_batch: int | None = None) -> None:
        self.batch_sizes: list[int] = []
        self.single_calls: list[str] = []
        self._fail_on_batch = fail_on_batch

    async def embed(self, text: str) -> list[float]:
        self.single_calls.append(text)
        return hash_to_vector(text)

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        self.batch_sizes.append(len(texts))
        if self._fail_on_batch is not None and len(self.batch_sizes) == self._fail_on_batch:
            raise EmbeddingError(message="rate limited", provider_name="fake_embedding")
        return [hash_to_vector(t) for t in texts]

    @property
    def call_count(self) -> int:
        return len(self.batch_sizes) + len(self.single_calls)

    def get_dimension(self) -> int:
        return _EMBEDDING_DIM

    def get_provider_name(self) -> str:
        return "fake_embedding"

    def is_available(self) -> bool:
        return True


class FakeFileExtractionProvider(IFileExtractionProvider):
    """Returns a fixed transcription and records the URLs it was given."""

    def __init__(self, text: str = "Transcribed document text.") -> None:
        self.text = text
        self.calls: list[tuple[str, str]] = []

    async def extract_text_from_file(self, url: str, mime_type: str) -> str:
        self.calls.append((url, mime_type))
        return self.text

    def get_provider_name(self) -> str:
        return "fake_extraction"

    def is_available(self) -> bool:
        return True


class InMemoryDocumentStore(IDocumentStore):
    """Dict-backed document store with brute-force cosine search.

    Parameters
    ----------
    fail_add_on_call:
        1-based index of the ``add_chunks`` call that raises
        :class:`StorageError`; ``None`` never fails.
    """

    def __init__(self, fail_add_on_call: int | None = None) -> None:
        self.documents: dict[str, Document] = {}
        self.chunks: dict[str, DocumentChunk] = {}
        self.status_updates: list[tuple[str, DocumentStatus]] = []
        self.add_calls = 0
        self._fail_add_on_call = fail_add_on_call

    async def initialize(self) -> None:
        return None

    async def close(self) -> None:
        return None

    async def create_document(self, document: Document) -> Document:
        self.documents[document.id] = document
        return document

    async def get_document(self, org_id: str, document_id: str) -> Document | None:
        document = self.documents.get(document_id)
        if document is None or document.org_id != org_id:
            return None
        return document

    async def list_documents(
        self,
        org_id: str,
        status: DocumentStatus | None = None,
    ) -> list[Document]:
        docs = [
            d
            for d in self.documents.values()
            if d.org_id == org_id and (status is None or d.status == status)
        ]
        return sorted(docs, key=lambda d: d.created_at, reverse=True)

    async def update_document_status(
        self,
        org_id: str,
        document_id: str,
        status: DocumentStatus,
    ) -> bool:
        document = await self.get_document(org_id, document_id)
        if document is None or document.status.is_terminal:
            return False
        self.documents[document_id] = document.model_copy(update={"status": status})
        self.status_updates.append((document_id, status))
        return True

    async def delete_document(self, org_id: str, document_id: str) -> bool:
        if await self.get_document(org_id, document_id) is None:
            return False
        del self.documents[document_id]
        await self.delete_chunks(org_id, document_id)
        return True

    async def add_chunks(self, chunks: list[DocumentChunk]) -> int:
        self.add_calls += 1
        if self._fail_add_on_call is not None and self.add_calls == self._fail_add_on_call:
            raise StorageError(message="connection reset", provider_name="in_memory")
        for chunk in chunks:
            self.chunks[chunk.id] = chunk
        return len(chunks)

    async def delete_chunks(self, org_id: str, document_id: str) -> int:
        doomed = [
            cid
            for cid, c in self.chunks.items()
            if c.document_id == document_id and c.org_id == org_id
        ]
        for cid in doomed:
            del self.chunks[cid]
        return len(doomed)

    async def get_document_chunks(self, org_id: str, document_id: str) -> list[DocumentChunk]:
        found = [
            c for c in self.chunks.values() if c.document_id == document_id and c.org_id == org_id
        ]
        return sorted(found, key=lambda c: c.chunk_index)

    async def search_chunks(
        self,
        org_id: str,
        embedding: list[float],
        limit: int,
    ) -> list[SearchResult]:
        scored = [
            (cosine_distance(embedding, c.embedding), c)
            for c in self.chunks.values()
            if c.org_id == org_id and c.embedding is not None
        ]
        scored.sort(key=lambda pair: pair[0])
        return [
            SearchResult(
                content=c.content,
                similarity=min(1.0, max(0.0, 1.0 - distance)),
                document_id=c.document_id,
                chunk_index=c.chunk_index,
            )
            for distance, c in scored[:limit]
        ]

    def get_provider_name(self) -> str:
        return "in_memory"


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def make_document(
    org_id: str = "org-a",
    source_kind: SourceKind = SourceKind.ARTICLE,
    **overrides,
) -> Document:
    """Build a ``processing`` document with a valid source for *source_kind*."""
    fields: dict = {
        "id": str(uuid.uuid4()),
        "org_id": org_id,
        "uploaded_by": "user-1",
        "source_kind": source_kind,
    }
    if source_kind is SourceKind.ARTICLE:
        fields.update(title="Pet policy", body="Dogs must be kept on a leash in common areas.")
    elif source_kind is SourceKind.URL:
        fields.update(source_url="https://example.com/rules")
    else:
        fields.update(
            file_name="minutes.pdf",
            file_url="https://files.example.com/minutes.pdf",
            mime_type="application/pdf",
            file_size=1024,
        )
    fields.update(overrides)
    return Document(**fields)


def make_chunk(
    document_id: str,
    org_id: str,
    content: str,
    chunk_index: int = 0,
    embed: bool = True,
) -> DocumentChunk:
    return DocumentChunk(
        id=str(uuid.uuid4()),
        document_id=document_id,
        org_id=org_id,
        content=content,
        chunk_index=chunk_index,
        embedding=hash_to_vector(content) if embed else None,
    )


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def embedding_provider() -> FakeEmbeddingProvider:
    return FakeEmbeddingProvider()


@pytest.fixture
def extraction_provider() -> FakeFileExtractionProvider:
    return FakeFileExtractionProvider()


@pytest.fixture
def document_store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()
