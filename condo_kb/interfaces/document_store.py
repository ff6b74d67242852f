"""Abstract base class for the knowledge-base document store.

Defines the persistence contract for documents and their embedded chunks,
including the org-scoped nearest-neighbor query used by the retriever.
Implementations wrap a relational engine with vector support (PostgreSQL +
pgvector in production, SQLite for local development).
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from condo_kb.models.knowledge import Document, DocumentChunk, DocumentStatus, SearchResult


# Concrete implementations: PgVectorDocumentStore, SQLiteDocumentStore
# Located in: condo_kb/providers/store/
class IDocumentStore(ABC):
    """Contract for document and chunk persistence.

    **Organization scoping.**  Every method that reads or mutates rows takes
    an ``org_id`` and must filter on it.  A document id belonging to another
    organization behaves exactly like a missing id.  This is a tenant
    isolation guarantee, not a convenience.

    **Status transitions.**  :meth:`update_document_status` only moves a
    document out of ``processing``.  Once ``ready`` or ``error``, a
    document's status is never rewritten.
    """

    @abstractmethod
    async def initialize(self) -> None:
        """Create tables, indexes and extensions if they do not exist."""

    @abstractmethod
    async def close(self) -> None:
        """Release pooled connections."""

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    @abstractmethod
    async def create_document(self, document: Document) -> Document:
        """Insert *document* (expected in ``processing``) and return it."""

    @abstractmethod
    async def get_document(self, org_id: str, document_id: str) -> Document | None:
        """Return the document, or ``None`` if it is not in *org_id*."""

    @abstractmethod
    async def list_documents(
        self,
        org_id: str,
        status: DocumentStatus | None = None,
    ) -> list[Document]:
        """Return the organization's documents, newest first.

        Parameters
        ----------
        org_id:
            Owning organization.
        status:
            If provided, only documents in this status are returned.
        """

    @abstractmethod
    async def update_document_status(
        self,
        org_id: str,
        document_id: str,
        status: DocumentStatus,
    ) -> bool:
        """Transition a ``processing`` document to *status*.

        Returns
        -------
        bool
            ``True`` if a row changed; ``False`` if the document is missing,
            belongs to another organization, or is already terminal.
        """

    @abstractmethod
    async def delete_document(self, org_id: str, document_id: str) -> bool:
        """Delete the document and, by cascade, all of its chunks.

        Returns
        -------
        bool
            ``True`` if the document existed in *org_id* and was deleted.
        """

    # ------------------------------------------------------------------
    # Chunks
    # ------------------------------------------------------------------

    @abstractmethod
    async def add_chunks(self, chunks: list[DocumentChunk]) -> int:
        """Persist a batch of embedded chunks in one transaction.

        Returns
        -------
        int
            The number of rows inserted.

        Raises
        ------
        condo_kb.utils.errors.StorageError
            If the insert fails; no row of the batch is kept.
        """

    @abstractmethod
    async def delete_chunks(self, org_id: str, document_id: str) -> int:
        """Delete every chunk of a document and return how many were removed."""

    @abstractmethod
    async def get_document_chunks(self, org_id: str, document_id: str) -> list[DocumentChunk]:
        """Return a document's chunks ordered by ``chunk_index`` (no embeddings)."""

    @abstractmethod
    async def search_chunks(
        self,
        org_id: str,
        embedding: list[float],
        limit: int,
    ) -> list[SearchResult]:
        """Nearest-neighbor lookup by cosine distance.

        Only chunks of *org_id* with a non-null embedding are considered.
        Results are ordered by ascending cosine distance and carry
        ``similarity = 1 - distance``.

        Raises
        ------
        condo_kb.utils.errors.StorageError
            If the query fails.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"pgvector"``."""
