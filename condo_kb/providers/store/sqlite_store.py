"""SQLite-backed document store for local development and tests.

Persists documents and chunks to ``data/knowledge.db`` via ``aiosqlite``.
Embeddings are stored as JSON arrays; cosine distance is computed by a
Python function registered on every connection, so nearest-neighbor
search is a full scan of the organization's chunks.  That is fine for a
single condominium's paperwork and keeps the development setup free of
a PostgreSQL server.
"""

from __future__ import annotations

import json
import math
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import aiosqlite
import structlog

from condo_kb.interfaces.document_store import IDocumentStore
from condo_kb.models.knowledge import Document, DocumentChunk, DocumentStatus, SearchResult
from condo_kb.utils.errors import StorageError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/knowledge.db")

_CREATE_DOCUMENTS_SQL = """\
CREATE TABLE IF NOT EXISTS documents (
    id           TEXT    PRIMARY KEY,
    org_id       TEXT    NOT NULL,
    uploaded_by  TEXT    NOT NULL,
    source_kind  TEXT    NOT NULL,
    title        TEXT,
    body         TEXT,
    source_url   TEXT,
    file_name    TEXT,
    file_url     TEXT,
    file_size    INTEGER,
    mime_type    TEXT,
    status       TEXT    NOT NULL DEFAULT 'processing',
    created_at   TEXT    NOT NULL
);
"""

_CREATE_CHUNKS_SQL = """\
CREATE TABLE IF NOT EXISTS document_chunks (
    id           TEXT    PRIMARY KEY,
    document_id  TEXT    NOT NULL REFERENCES documents(id) ON DELETE CASCADE,
    org_id       TEXT    NOT NULL,
    content      TEXT    NOT NULL,
    chunk_index  INTEGER NOT NULL,
    embedding    TEXT
);
"""

_CREATE_INDICES_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_documents_org ON documents(org_id, created_at);",
    "CREATE INDEX IF NOT EXISTS idx_chunks_org ON document_chunks(org_id);",
    "CREATE INDEX IF NOT EXISTS idx_chunks_document ON document_chunks(document_id, chunk_index);",
]

_DOCUMENT_COLUMNS = (
    "id, org_id, uploaded_by, source_kind, title, body, source_url, "
    "file_name, file_url, file_size, mime_type, status, created_at"
)

_INSERT_DOCUMENT_SQL = f"""\
INSERT INTO documents ({_DOCUMENT_COLUMNS})
VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
"""

_INSERT_CHUNK_SQL = """\
INSERT INTO document_chunks (id, document_id, org_id, content, chunk_index, embedding)
VALUES (?, ?, ?, ?, ?, ?);
"""

_UPDATE_STATUS_SQL = """\
UPDATE documents SET status = ?
WHERE id = ? AND org_id = ? AND status = 'processing';
"""

_SEARCH_SQL = """\
SELECT content, document_id, chunk_index,
       cosine_distance(embedding, ?) AS distance
FROM document_chunks
WHERE org_id = ? AND embedding IS NOT NULL
ORDER BY distance ASC
LIMIT ?;
"""


def _cosine_distance(left_json: str, right_json: str) -> float:
    """SQL function: ``1 - cos(a, b)`` for two JSON-encoded vectors."""
    left = json.loads(left_json)
    right = json.loads(right_json)
    dot = sum(a * b for a, b in zip(left, right))
    norm = math.sqrt(sum(a * a for a in left)) * math.sqrt(sum(b * b for b in right))
    if norm == 0.0:
        return 1.0
    return 1.0 - dot / norm


class SQLiteDocumentStore(IDocumentStore):
    """SQLite-backed document and chunk persistence."""

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)

    @asynccontextmanager
    async def _connect(self) -> AsyncIterator[aiosqlite.Connection]:
        """Open a connection with foreign keys and the distance function enabled."""
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                db.row_factory = aiosqlite.Row
                await db.execute("PRAGMA foreign_keys = ON;")
                await db.create_function("cosine_distance", 2, _cosine_distance, deterministic=True)
                yield db
        except aiosqlite.Error as exc:
            raise StorageError(
                message=f"SQLite operation failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    async def initialize(self) -> None:
        """Create the documents and chunks tables if they don't exist."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with self._connect() as db:
            await db.execute(_CREATE_DOCUMENTS_SQL)
            await db.execute(_CREATE_CHUNKS_SQL)
            for idx_sql in _CREATE_INDICES_SQL:
                await db.execute(idx_sql)
            await db.commit()
        logger.info("knowledge_db_initialized", path=str(self._db_path))

    async def close(self) -> None:
        # Connections are opened per operation.
        return None

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    async def create_document(self, document: Document) -> Document:
        async with self._connect() as db:
            await db.execute(
                _INSERT_DOCUMENT_SQL,
                (
                    document.id,
                    document.org_id,
                    document.uploaded_by,
                    document.source_kind.value,
                    document.title,
                    document.body,
                    document.source_url,
                    document.file_name,
                    document.file_url,
                    document.file_size,
                    document.mime_type,
                    document.status.value,
                    document.created_at.isoformat(),
                ),
            )
            await db.commit()
        logger.info(
            "document_created",
            document_id=document.id,
            org_id=document.org_id,
            source_kind=document.source_kind.value,
        )
        return document

    async def get_document(self, org_id: str, document_id: str) -> Document | None:
        async with self._connect() as db:
            cursor = await db.execute(
                f"SELECT {_DOCUMENT_COLUMNS} FROM documents WHERE id = ? AND org_id = ?",
                (document_id, org_id),
            )
            row = await cursor.fetchone()
        return Document(**dict(row)) if row else None

    async def list_documents(
        self,
        org_id: str,
        status: DocumentStatus | None = None,
    ) -> list[Document]:
        """Return the organization's documents, newest first."""
        query = f"SELECT {_DOCUMENT_COLUMNS} FROM documents WHERE org_id = ?"
        params: tuple = (org_id,)
        if status is not None:
            query += " AND status = ?"
            params = (org_id, status.value)
        query += " ORDER BY created_at DESC, rowid DESC"

        async with self._connect() as db:
            cursor = await db.execute(query, params)
            rows = await cursor.fetchall()
        return [Document(**dict(r)) for r in rows]

    async def update_document_status(
        self,
        org_id: str,
        document_id: str,
        status: DocumentStatus,
    ) -> bool:
        if not status.is_terminal:
            msg = f"Documents can only move to a terminal status, got {status.value}"
            raise ValueError(msg)

        async with self._connect() as db:
            cursor = await db.execute(_UPDATE_STATUS_SQL, (status.value, document_id, org_id))
            await db.commit()
            changed = cursor.rowcount > 0
        logger.debug(
            "document_status_updated",
            document_id=document_id,
            status=status.value,
            changed=changed,
        )
        return changed

    async def delete_document(self, org_id: str, document_id: str) -> bool:
        async with self._connect() as db:
            cursor = await db.execute(
                "DELETE FROM documents WHERE id = ? AND org_id = ?",
                (document_id, org_id),
            )
            await db.commit()
            return cursor.rowcount > 0

    # ------------------------------------------------------------------
    # Chunks
    # ------------------------------------------------------------------

    async def add_chunks(self, chunks: list[DocumentChunk]) -> int:
        """Insert a batch of chunks in a single transaction."""
        if not chunks:
            return 0

        rows = [
            (
                c.id,
                c.document_id,
                c.org_id,
                c.content,
                c.chunk_index,
                json.dumps(c.embedding) if c.embedding is not None else None,
            )
            for c in chunks
        ]
        # Nothing is committed unless every row of the batch inserts.
        async with self._connect() as db:
            await db.executemany(_INSERT_CHUNK_SQL, rows)
            await db.commit()
        return len(rows)

    async def delete_chunks(self, org_id: str, document_id: str) -> int:
        async with self._connect() as db:
            cursor = await db.execute(
                "DELETE FROM document_chunks WHERE document_id = ? AND org_id = ?",
                (document_id, org_id),
            )
            await db.commit()
            return cursor.rowcount

    async def get_document_chunks(self, org_id: str, document_id: str) -> list[DocumentChunk]:
        async with self._connect() as db:
            cursor = await db.execute(
                "SELECT id, document_id, org_id, content, chunk_index "
                "FROM document_chunks WHERE document_id = ? AND org_id = ? "
                "ORDER BY chunk_index ASC",
                (document_id, org_id),
            )
            rows = await cursor.fetchall()
        return [DocumentChunk(**dict(r)) for r in rows]

    async def search_chunks(
        self,
        org_id: str,
        embedding: list[float],
        limit: int,
    ) -> list[SearchResult]:
        async with self._connect() as db:
            cursor = await db.execute(_SEARCH_SQL, (json.dumps(embedding), org_id, limit))
            rows = await cursor.fetchall()

        return [
            SearchResult(
                content=r["content"],
                similarity=min(1.0, max(0.0, 1.0 - r["distance"])),
                document_id=r["document_id"],
                chunk_index=r["chunk_index"],
            )
            for r in rows
        ]

    def get_provider_name(self) -> str:
        return "sqlite_knowledge"
