"""PostgreSQL + pgvector document store.

Uses SQLAlchemy's async engine over ``asyncpg``.  Nearest-neighbor search
orders by the pgvector cosine-distance operator (``<=>``) restricted to the
caller's organization, and chunk deletion is delegated to the
``ON DELETE CASCADE`` foreign key.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from sqlalchemy import delete, select, text, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from condo_kb.interfaces.document_store import IDocumentStore
from condo_kb.models.knowledge import (
    Document,
    DocumentChunk,
    DocumentStatus,
    SearchResult,
    SourceKind,
)
from condo_kb.providers.store.orm import EMBEDDING_DIMENSIONS, Base, ChunkRow, DocumentRow
from condo_kb.utils.errors import ConfigurationError, StorageError

logger = structlog.get_logger(logger_name=__name__)


def _to_document(row: DocumentRow) -> Document:
    return Document(
        id=row.id,
        org_id=row.org_id,
        uploaded_by=row.uploaded_by,
        source_kind=SourceKind(row.source_kind),
        title=row.title,
        body=row.body,
        source_url=row.source_url,
        file_name=row.file_name,
        file_url=row.file_url,
        file_size=row.file_size,
        mime_type=row.mime_type,
        status=DocumentStatus(row.status),
        created_at=row.created_at,
    )


class PgVectorDocumentStore(IDocumentStore):
    """Document and chunk persistence on PostgreSQL with the pgvector extension.

    Parameters
    ----------
    database_url:
        A ``postgresql+asyncpg://`` SQLAlchemy URL.
    embedding_dimensions:
        Must equal the width of the ``vector`` column.
    echo:
        Log every SQL statement (development only).
    """

    def __init__(
        self,
        database_url: str,
        embedding_dimensions: int = EMBEDDING_DIMENSIONS,
        echo: bool = False,
    ) -> None:
        if embedding_dimensions != EMBEDDING_DIMENSIONS:
            raise ConfigurationError(
                message=(
                    f"Embedding column is vector({EMBEDDING_DIMENSIONS}); "
                    f"configured dimensions are {embedding_dimensions}"
                ),
                provider_name=self.get_provider_name(),
            )
        self._engine = create_async_engine(
            database_url,
            echo=echo,
            pool_size=5,
            max_overflow=10,
            pool_pre_ping=True,
        )
        self._session_factory = async_sessionmaker(
            bind=self._engine,
            autoflush=False,
            expire_on_commit=False,
        )

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        """Yield a session; database errors surface as :class:`StorageError`."""
        try:
            async with self._session_factory() as session:
                yield session
        except SQLAlchemyError as exc:
            raise StorageError(
                message=f"PostgreSQL operation failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    async def initialize(self) -> None:
        """Enable pgvector and create tables and indexes if they don't exist."""
        try:
            async with self._engine.begin() as conn:
                await conn.execute(text("CREATE EXTENSION IF NOT EXISTS vector"))
                await conn.run_sync(Base.metadata.create_all)
        except SQLAlchemyError as exc:
            raise StorageError(
                message=f"Schema initialization failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        logger.info("knowledge_db_initialized", engine="postgresql")

    async def close(self) -> None:
        await self._engine.dispose()

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    async def create_document(self, document: Document) -> Document:
        async with self._session() as session:
            session.add(
                DocumentRow(
                    id=document.id,
                    org_id=document.org_id,
                    uploaded_by=document.uploaded_by,
                    source_kind=document.source_kind.value,
                    title=document.title,
                    body=document.body,
                    source_url=document.source_url,
                    file_name=document.file_name,
                    file_url=document.file_url,
                    file_size=document.file_size,
                    mime_type=document.mime_type,
                    status=document.status.value,
                    created_at=document.created_at,
                )
            )
            await session.commit()
        logger.info(
            "document_created",
            document_id=document.id,
            org_id=document.org_id,
            source_kind=document.source_kind.value,
        )
        return document

    async def get_document(self, org_id: str, document_id: str) -> Document | None:
        async with self._session() as session:
            result = await session.execute(
                select(DocumentRow).where(
                    DocumentRow.id == document_id,
                    DocumentRow.org_id == org_id,
                )
            )
            row = result.scalar_one_or_none()
        return _to_document(row) if row is not None else None

    async def list_documents(
        self,
        org_id: str,
        status: DocumentStatus | None = None,
    ) -> list[Document]:
        stmt = select(DocumentRow).where(DocumentRow.org_id == org_id)
        if status is not None:
            stmt = stmt.where(DocumentRow.status == status.value)
        stmt = stmt.order_by(DocumentRow.created_at.desc())

        async with self._session() as session:
            result = await session.execute(stmt)
            rows = result.scalars().all()
        return [_to_document(r) for r in rows]

    async def update_document_status(
        self,
        org_id: str,
        document_id: str,
        status: DocumentStatus,
    ) -> bool:
        if not status.is_terminal:
            msg = f"Documents can only move to a terminal status, got {status.value}"
            raise ValueError(msg)

        stmt = (
            update(DocumentRow)
            .where(
                DocumentRow.id == document_id,
                DocumentRow.org_id == org_id,
                DocumentRow.status == DocumentStatus.PROCESSING.value,
            )
            .values(status=status.value)
        )
        async with self._session() as session:
            result = await session.execute(stmt)
            await session.commit()
        changed = result.rowcount > 0
        logger.debug(
            "document_status_updated",
            document_id=document_id,
            status=status.value,
            changed=changed,
        )
        return changed

    async def delete_document(self, org_id: str, document_id: str) -> bool:
        stmt = delete(DocumentRow).where(
            DocumentRow.id == document_id,
            DocumentRow.org_id == org_id,
        )
        async with self._session() as session:
            result = await session.execute(stmt)
            await session.commit()
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Chunks
    # ------------------------------------------------------------------

    async def add_chunks(self, chunks: list[DocumentChunk]) -> int:
        if not chunks:
            return 0

        async with self._session() as session:
            session.add_all(
                ChunkRow(
                    id=c.id,
                    document_id=c.document_id,
                    org_id=c.org_id,
                    content=c.content,
                    chunk_index=c.chunk_index,
                    embedding=c.embedding,
                )
                for c in chunks
            )
            await session.commit()
        return len(chunks)

    async def delete_chunks(self, org_id: str, document_id: str) -> int:
        stmt = delete(ChunkRow).where(
            ChunkRow.document_id == document_id,
            ChunkRow.org_id == org_id,
        )
        async with self._session() as session:
            result = await session.execute(stmt)
            await session.commit()
        return result.rowcount

    async def get_document_chunks(self, org_id: str, document_id: str) -> list[DocumentChunk]:
        stmt = (
            select(ChunkRow.id, ChunkRow.document_id, ChunkRow.org_id, ChunkRow.content, ChunkRow.chunk_index)
            .where(ChunkRow.document_id == document_id, ChunkRow.org_id == org_id)
            .order_by(ChunkRow.chunk_index.asc())
        )
        async with self._session() as session:
            result = await session.execute(stmt)
            rows = result.all()
        return [
            DocumentChunk(
                id=r.id,
                document_id=r.document_id,
                org_id=r.org_id,
                content=r.content,
                chunk_index=r.chunk_index,
            )
            for r in rows
        ]

    async def search_chunks(
        self,
        org_id: str,
        embedding: list[float],
        limit: int,
    ) -> list[SearchResult]:
        distance = ChunkRow.embedding.cosine_distance(embedding).label("distance")
        stmt = (
            select(ChunkRow.content, ChunkRow.document_id, ChunkRow.chunk_index, distance)
            .where(ChunkRow.org_id == org_id, ChunkRow.embedding.is_not(None))
            .order_by(distance)
            .limit(limit)
        )
        async with self._session() as session:
            result = await session.execute(stmt)
            rows = result.all()

        # Cosine distance spans [0, 2]; opposite vectors clamp to 0.
        return [
            SearchResult(
                content=r.content,
                similarity=min(1.0, max(0.0, 1.0 - float(r.distance))),
                document_id=r.document_id,
                chunk_index=r.chunk_index,
            )
            for r in rows
        ]

    def get_provider_name(self) -> str:
        return "pgvector"
