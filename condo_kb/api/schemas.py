"""Pydantic request/response schemas for the knowledge-base API.

Defines the public contract for the REST endpoints: document registration
(file, article, URL), listing, chunk inspection, semantic search, the
assistant tool payload and health.

# ─── HOW SCHEMAS WORK ─────────────────────────────────────────────────
#
# FastAPI validates request bodies against these models (invalid input
# gets a 422 with details) and serializes responses through them.
#
# Convention: Request schemas end with "Request", response schemas
# end with "Response".  Internal models from condo_kb.models are never
# returned directly so storage-only fields (embeddings, inline bodies)
# cannot leak into responses by accident.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, HttpUrl

from condo_kb.models.knowledge import Document, DocumentStatus, SourceKind


class RegisterFileRequest(BaseModel):
    """An uploaded file whose bytes are already in blob storage."""

    file_name: str = Field(..., min_length=1, max_length=512)
    file_url: HttpUrl
    mime_type: str = Field(..., min_length=1, max_length=128)
    file_size: int | None = Field(default=None, ge=0)
    title: str | None = Field(default=None, max_length=512)


class RegisterArticleRequest(BaseModel):
    """An article written directly in the app."""

    title: str = Field(..., min_length=1, max_length=512)
    body: str = Field(..., min_length=1)


class RegisterUrlRequest(BaseModel):
    """A public HTTPS web page to fetch and index."""

    source_url: HttpUrl
    title: str | None = Field(default=None, max_length=512)


class DocumentResponse(BaseModel):
    """A document's metadata and ingestion status."""

    id: str
    org_id: str
    uploaded_by: str
    source_kind: SourceKind
    title: str | None = None
    source_url: str | None = None
    file_name: str | None = None
    file_url: str | None = None
    file_size: int | None = None
    mime_type: str | None = None
    status: DocumentStatus
    created_at: datetime

    @classmethod
    def from_document(cls, document: Document) -> DocumentResponse:
        return cls(
            id=document.id,
            org_id=document.org_id,
            uploaded_by=document.uploaded_by,
            source_kind=document.source_kind,
            title=document.title,
            source_url=document.source_url,
            file_name=document.file_name,
            file_url=document.file_url,
            file_size=document.file_size,
            mime_type=document.mime_type,
            status=document.status,
            created_at=document.created_at,
        )


class DocumentListResponse(BaseModel):
    """An organization's documents, newest first."""

    documents: list[DocumentResponse] = Field(default_factory=list)
    total: int = 0


class ChunkResponse(BaseModel):
    """One stored chunk (without its embedding)."""

    chunk_index: int
    content: str


class DocumentChunksResponse(BaseModel):
    """All chunks of one document in index order."""

    document_id: str
    chunks: list[ChunkResponse] = Field(default_factory=list)


class SearchRequest(BaseModel):
    """Semantic search over the organization's ready documents."""

    query: str = Field(..., min_length=1, max_length=1000)
    limit: int | None = Field(default=None, ge=1, le=50)


class SearchResultItem(BaseModel):
    """A single ranked chunk."""

    content: str
    similarity: float = Field(ge=0.0, le=1.0)
    document_id: str | None = None
    chunk_index: int | None = None


class SearchResponse(BaseModel):
    """Ranked search results, highest similarity first."""

    query: str
    results: list[SearchResultItem] = Field(default_factory=list)


class AssistantSearchRequest(BaseModel):
    """Arguments of the assistant's ``search_documents`` tool call."""

    query: str = Field(..., min_length=1, max_length=1000)


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    version: str
    providers: dict[str, Any]


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: str | None = None
