"""Orchestrator for the document ingestion pipeline.

Pipeline stages: **extract -> chunk -> embed -> store -> mark ready**.

The :class:`IngestionService` coordinates four collaborators (text
extractor, chunker, embedding provider, document store) without any of them
knowing about each other:

    1. TextExtractor -- turns the document's source into plain text
    2. TextChunker -- splits it into 2000-char overlapping windows
    3. IEmbeddingProvider -- embeds the chunks in batches of 20
    4. IDocumentStore -- persists each embedded batch, then flips the
       document's status to ``ready``

:meth:`IngestionService.ingest` is scheduled as a background task right
after a document is registered, so it never raises: every failure ends in
the ``error`` status and a structured log event.  Chunks persisted before
a failure are deleted, so an ``error`` document never has searchable chunks.
A run for a document that is missing or no longer ``processing`` is skipped.
"""

from __future__ import annotations

import time
import uuid
from typing import TYPE_CHECKING

import structlog

from condo_kb.models.knowledge import (
    DocumentChunk,
    DocumentSource,
    DocumentStatus,
    IngestionResult,
)
from condo_kb.services.ingestion.chunker import TextChunker
from condo_kb.utils.logging import bound_context

if TYPE_CHECKING:
    from condo_kb.interfaces.document_store import IDocumentStore
    from condo_kb.interfaces.embedding_provider import IEmbeddingProvider
    from condo_kb.services.ingestion.text_extractor import TextExtractor

logger = structlog.get_logger(logger_name=__name__)

DEFAULT_BATCH_SIZE = 20


class IngestionService:
    """Runs one document through extract -> chunk -> embed -> store.

    Parameters
    ----------
    extractor:
        Turns a :class:`DocumentSource` into plain text.
    chunker:
        Splits extracted text into overlapping windows.
    embedding_provider:
        Generates one vector per chunk.
    document_store:
        Persists chunks and receives the terminal status.
    batch_size:
        Chunks embedded and stored per round trip (default 20).
    """

    def __init__(
        self,
        extractor: TextExtractor,
        chunker: TextChunker,
        embedding_provider: IEmbeddingProvider,
        document_store: IDocumentStore,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ) -> None:
        if batch_size < 1:
            msg = f"batch_size must be positive, got {batch_size}"
            raise ValueError(msg)
        self._extractor = extractor
        self._chunker = chunker
        self._embedding_provider = embedding_provider
        self._store = document_store
        self._batch_size = batch_size

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def ingest(
        self,
        document_id: str,
        org_id: str,
        source: DocumentSource,
    ) -> IngestionResult:
        """Ingest *source* as the content of document *document_id*.

        Never raises.  The returned :class:`IngestionResult` mirrors the
        terminal status written to the store.
        """
        start = time.monotonic()
        batches_done = 0
        chunks_stored = 0

        with bound_context(document_id=document_id, org_id=org_id):
            logger.info(
                "ingestion_started",
                source_kind=source.kind.value,
                location=source.location,
            )
            try:
                # Only a document still in ``processing`` is ingested; a
                # replayed run must not touch a finished document's chunks.
                document = await self._store.get_document(org_id, document_id)
                if document is None or document.status is not DocumentStatus.PROCESSING:
                    return self._skipped(document_id, document.status if document else None, start)

                # Step 1: extract.  Short or failed extraction never reaches
                # the embedding provider.
                text = await self._extractor.extract_text(source)

                # Step 2: chunk.
                pieces = self._chunker.chunk(text)

                # Steps 3-4: embed and store batch by batch.  Indices are
                # document-wide positions, fixed before any batch runs.
                for offset in range(0, len(pieces), self._batch_size):
                    batch = pieces[offset : offset + self._batch_size]
                    embeddings = await self._embedding_provider.embed_batch(batch)
                    chunks = [
                        DocumentChunk(
                            id=str(uuid.uuid4()),
                            document_id=document_id,
                            org_id=org_id,
                            content=content,
                            chunk_index=offset + i,
                            embedding=vector,
                        )
                        for i, (content, vector) in enumerate(zip(batch, embeddings, strict=True))
                    ]
                    chunks_stored += await self._store.add_chunks(chunks)
                    batches_done += 1
                    logger.debug(
                        "embedding_batch_stored",
                        batch=batches_done,
                        batch_size=len(batch),
                        first_index=offset,
                    )

                # Step 5: mark ready.
                updated = await self._store.update_document_status(
                    org_id, document_id, DocumentStatus.READY
                )
                if not updated:
                    logger.warning("document_status_unchanged", target=DocumentStatus.READY.value)
            except Exception as exc:
                return await self._fail(
                    document_id=document_id,
                    org_id=org_id,
                    exc=exc,
                    batches=batches_done,
                    chunks_stored=chunks_stored,
                    start=start,
                )

            result = IngestionResult(
                document_id=document_id,
                status=DocumentStatus.READY,
                chunks_created=chunks_stored,
                batches=batches_done,
                ingestion_time=round(time.monotonic() - start, 2),
            )
            logger.info(
                "ingestion_complete",
                chunks=chunks_stored,
                batches=batches_done,
                time_s=result.ingestion_time,
            )
            return result

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _skipped(
        document_id: str,
        current: DocumentStatus | None,
        start: float,
    ) -> IngestionResult:
        """Result for a run that found its document missing or already finished."""
        logger.warning(
            "ingestion_skipped",
            current_status=current.value if current else None,
        )
        return IngestionResult(
            document_id=document_id,
            status=current or DocumentStatus.ERROR,
            chunks_created=0,
            batches=0,
            ingestion_time=round(time.monotonic() - start, 2),
            error=None if current else "document not found",
        )

    async def _fail(
        self,
        document_id: str,
        org_id: str,
        exc: Exception,
        batches: int,
        chunks_stored: int,
        start: float,
    ) -> IngestionResult:
        """Roll back persisted chunks and mark the document ``error``."""
        logger.error(
            "ingestion_failed",
            error=str(exc),
            error_type=type(exc).__name__,
            batches_stored=batches,
            chunks_stored=chunks_stored,
        )

        if chunks_stored:
            try:
                removed = await self._store.delete_chunks(org_id, document_id)
                logger.info("partial_chunks_removed", removed=removed)
            except Exception as cleanup_exc:
                logger.error("partial_chunks_cleanup_failed", error=str(cleanup_exc))

        try:
            await self._store.update_document_status(org_id, document_id, DocumentStatus.ERROR)
        except Exception as status_exc:
            logger.error("error_status_update_failed", error=str(status_exc))

        return IngestionResult(
            document_id=document_id,
            status=DocumentStatus.ERROR,
            chunks_created=0,
            batches=batches,
            ingestion_time=round(time.monotonic() - start, 2),
            error=str(exc),
        )
