"""Knowledge-base data models: documents, chunks, search results.

Defines Pydantic v2 models for the condominium knowledge base.  All models
use frozen config so a value read from the store cannot be mutated in place;
state changes (e.g. a status transition) go through the document store.

Knowledge-base overview:

    1. REGISTRATION: a manager uploads a file, pastes an article or adds a
       web page.  A :class:`Document` row is created in ``processing``.
    2. INGESTION: the document's :class:`DocumentSource` is turned into
       plain text, split into overlapping chunks, embedded in batches and
       persisted as :class:`DocumentChunk` rows.
    3. RETRIEVAL: the assistant's ``search_documents`` tool embeds a query
       and returns the nearest chunks of the caller's organization as
       :class:`SearchResult` objects.

See condo_kb/services/ingestion/ for the pipeline and
condo_kb/providers/store/ for the storage engines.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, model_validator


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SourceKind(str, Enum):
    """Where a document's authoritative content lives."""

    FILE = "file"
    ARTICLE = "article"
    URL = "url"


class DocumentStatus(str, Enum):
    """Ingestion lifecycle: ``processing`` -> ``ready`` | ``error`` (terminal)."""

    PROCESSING = "processing"
    READY = "ready"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self is not DocumentStatus.PROCESSING


# ---------------------------------------------------------------------------
# DocumentSource: the descriptor handed to the extractor.
# ---------------------------------------------------------------------------
class DocumentSource(BaseModel):
    """Content-source descriptor for one document.

    Exactly one content field is authoritative, selected by ``kind``:

    * ``file``    -> ``file_url`` + ``mime_type`` (remote blob, never
      downloaded for binary formats)
    * ``article`` -> ``body`` (inline text, used as-is)
    * ``url``     -> ``source_url`` (HTTPS page fetched at ingestion time)
    """

    model_config = ConfigDict(frozen=True)

    kind: SourceKind
    body: str | None = None
    source_url: str | None = None
    file_url: str | None = None
    mime_type: str | None = None

    @model_validator(mode="after")
    def _check_authoritative_field(self) -> DocumentSource:
        if self.kind is SourceKind.FILE:
            if not self.file_url or not self.mime_type:
                raise ValueError("file sources require file_url and mime_type")
        elif self.kind is SourceKind.ARTICLE:
            if self.body is None or not self.body.strip():
                raise ValueError("article sources require a non-blank body")
        elif self.kind is SourceKind.URL:
            if not self.source_url:
                raise ValueError("url sources require source_url")
            if urlparse(self.source_url).scheme != "https":
                raise ValueError("only https URLs are accepted")
        return self

    @property
    def location(self) -> str:
        """Return a short, log-safe description of where the content lives."""
        if self.kind is SourceKind.FILE:
            return self.file_url or ""
        if self.kind is SourceKind.URL:
            return self.source_url or ""
        return f"<inline article, {len(self.body or '')} chars>"


# ---------------------------------------------------------------------------
# Document: a unit of knowledge-base content owned by one organization.
# ---------------------------------------------------------------------------
class Document(BaseModel):
    """A knowledge-base document and its ingestion status."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Unique identifier (UUID) for this document.")
    org_id: str = Field(description="Owning organization; every query filters on it.")
    uploaded_by: str = Field(description="Identifier of the user who registered the document.")
    source_kind: SourceKind
    title: str | None = None
    body: str | None = Field(default=None, description="Inline text for article sources.")
    source_url: str | None = Field(default=None, description="Page URL for url sources.")
    file_name: str | None = None
    file_url: str | None = None
    file_size: int | None = Field(default=None, ge=0)
    mime_type: str | None = None
    status: DocumentStatus = DocumentStatus.PROCESSING
    created_at: datetime = Field(default_factory=_utcnow)

    def to_source(self) -> DocumentSource:
        """Build the :class:`DocumentSource` the pipeline ingests."""
        return DocumentSource(
            kind=self.source_kind,
            body=self.body,
            source_url=self.source_url,
            file_url=self.file_url,
            mime_type=self.mime_type,
        )

    @property
    def display_name(self) -> str:
        return self.title or self.file_name or self.source_url or self.id


# ---------------------------------------------------------------------------
# DocumentChunk: one embedded slice of a document's extracted text.
# ---------------------------------------------------------------------------
class DocumentChunk(BaseModel):
    """A contiguous, possibly overlapping slice of a document's text.

    ``chunk_index`` is the 0-based position in the document-level split
    order.  Indices of one document are contiguous; the embedding is
    written once and never patched.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Unique identifier (UUID) for this chunk.")
    document_id: str
    org_id: str = Field(description="Denormalized owner for org-scoped vector queries.")
    content: str
    chunk_index: int = Field(ge=0)
    embedding: list[float] | None = Field(default=None, repr=False)


# ---------------------------------------------------------------------------
# SearchResult: one ranked hit from the nearest-neighbor lookup.
# ---------------------------------------------------------------------------
class SearchResult(BaseModel):
    """A chunk returned by semantic search with its cosine similarity."""

    model_config = ConfigDict(frozen=True)

    content: str
    similarity: float = Field(
        ge=0.0,
        le=1.0,
        description="1 - cosine distance between the query and the chunk.",
    )
    document_id: str | None = None
    chunk_index: int | None = None


# ---------------------------------------------------------------------------
# IngestionResult: summary of one ingestion run.
# ---------------------------------------------------------------------------
class IngestionResult(BaseModel):
    """Summary of a single ingestion run, returned by the pipeline and logged."""

    model_config = ConfigDict(frozen=True)

    document_id: str
    status: DocumentStatus
    chunks_created: int = Field(default=0, ge=0)
    batches: int = Field(default=0, ge=0)
    ingestion_time: float = Field(default=0.0, ge=0.0)
    error: str | None = None
