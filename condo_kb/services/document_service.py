"""Org-scoped document registration, listing and deletion.

Request handlers go through :class:`DocumentService` rather than the store
directly.  Registration validates the content source before the row is
written, so a document in ``processing`` always has something the pipeline
can ingest.  Ingestion itself is scheduled by the caller.
"""

from __future__ import annotations

import uuid

import structlog

from condo_kb.interfaces.document_store import IDocumentStore
from condo_kb.models.knowledge import (
    Document,
    DocumentChunk,
    DocumentSource,
    DocumentStatus,
    SourceKind,
)
from condo_kb.utils.errors import DocumentNotFoundError

logger = structlog.get_logger(logger_name=__name__)


class DocumentService:
    """Manages an organization's knowledge-base documents."""

    def __init__(self, document_store: IDocumentStore) -> None:
        self._store = document_store

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    async def register_file(
        self,
        org_id: str,
        uploaded_by: str,
        file_name: str,
        file_url: str,
        mime_type: str,
        file_size: int | None = None,
        title: str | None = None,
    ) -> tuple[Document, DocumentSource]:
        """Register an uploaded file whose bytes already live at *file_url*."""
        document = Document(
            id=str(uuid.uuid4()),
            org_id=org_id,
            uploaded_by=uploaded_by,
            source_kind=SourceKind.FILE,
            title=title or file_name,
            file_name=file_name,
            file_url=file_url,
            file_size=file_size,
            mime_type=mime_type,
        )
        return await self._register(document)

    async def register_article(
        self,
        org_id: str,
        uploaded_by: str,
        title: str,
        body: str,
    ) -> tuple[Document, DocumentSource]:
        """Register an article written in the app."""
        document = Document(
            id=str(uuid.uuid4()),
            org_id=org_id,
            uploaded_by=uploaded_by,
            source_kind=SourceKind.ARTICLE,
            title=title,
            body=body,
        )
        return await self._register(document)

    async def register_url(
        self,
        org_id: str,
        uploaded_by: str,
        source_url: str,
        title: str | None = None,
    ) -> tuple[Document, DocumentSource]:
        """Register an HTTPS web page to be fetched at ingestion time."""
        document = Document(
            id=str(uuid.uuid4()),
            org_id=org_id,
            uploaded_by=uploaded_by,
            source_kind=SourceKind.URL,
            title=title,
            source_url=source_url,
        )
        return await self._register(document)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def list_documents(self, org_id: str, ready_only: bool = False) -> list[Document]:
        """Return the organization's documents, newest first."""
        status = DocumentStatus.READY if ready_only else None
        return await self._store.list_documents(org_id, status)

    async def get_document(self, org_id: str, document_id: str) -> Document:
        """Return a document of *org_id* or raise :class:`DocumentNotFoundError`."""
        document = await self._store.get_document(org_id, document_id)
        if document is None:
            raise DocumentNotFoundError(
                message=f"Document {document_id} not found",
                provider_name="document_service",
            )
        return document

    async def get_document_chunks(self, org_id: str, document_id: str) -> list[DocumentChunk]:
        """Return a document's chunks ordered by index."""
        await self.get_document(org_id, document_id)
        return await self._store.get_document_chunks(org_id, document_id)

    async def delete_document(self, org_id: str, document_id: str) -> None:
        """Delete a document and its chunks.

        Raises
        ------
        DocumentNotFoundError
            If the document does not exist in *org_id*.
        """
        deleted = await self._store.delete_document(org_id, document_id)
        if not deleted:
            raise DocumentNotFoundError(
                message=f"Document {document_id} not found",
                provider_name="document_service",
            )
        logger.info("document_deleted", document_id=document_id, org_id=org_id)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _register(self, document: Document) -> tuple[Document, DocumentSource]:
        # Raises pydantic.ValidationError before anything is persisted.
        source = document.to_source()
        created = await self._store.create_document(document)
        logger.info(
            "document_registered",
            document_id=created.id,
            org_id=created.org_id,
            source_kind=created.source_kind.value,
            display_name=created.display_name,
        )
        return created, source
