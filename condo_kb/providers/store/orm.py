"""SQLAlchemy table mappings for the PostgreSQL + pgvector store.

Two tables:

* ``documents``: one row per knowledge-base document, scoped by ``org_id``.
* ``document_chunks``: embedded slices of a document.  ``org_id`` is
  denormalized so the nearest-neighbor query filters without a join, and
  the foreign key cascades so deleting a document removes its chunks.

The embedding column is ``vector(1024)``; the HNSW index uses the cosine
operator class to match the ``<=>`` operator used by the search query.
"""

from __future__ import annotations

from pgvector.sqlalchemy import Vector
from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase

EMBEDDING_DIMENSIONS = 1024


class Base(DeclarativeBase):
    pass


class DocumentRow(Base):
    __tablename__ = "documents"

    id = Column(String(36), primary_key=True)
    org_id = Column(String(64), nullable=False)
    uploaded_by = Column(String(64), nullable=False)
    source_kind = Column(String(16), nullable=False)
    title = Column(String(512), nullable=True)
    body = Column(Text, nullable=True)
    source_url = Column(String(2048), nullable=True)
    file_name = Column(String(512), nullable=True)
    file_url = Column(String(2048), nullable=True)
    file_size = Column(Integer, nullable=True)
    mime_type = Column(String(128), nullable=True)
    status = Column(String(16), nullable=False, default="processing")
    created_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (Index("idx_documents_org_created", "org_id", "created_at"),)


class ChunkRow(Base):
    __tablename__ = "document_chunks"

    id = Column(String(36), primary_key=True)
    document_id = Column(
        String(36),
        ForeignKey("documents.id", ondelete="CASCADE"),
        nullable=False,
    )
    org_id = Column(String(64), nullable=False)
    content = Column(Text, nullable=False)
    chunk_index = Column(Integer, nullable=False)
    # Nullable: rows without a vector are excluded from search.
    embedding = Column(Vector(EMBEDDING_DIMENSIONS), nullable=True)

    __table_args__ = (
        Index("idx_chunks_org", "org_id"),
        Index("idx_chunks_document", "document_id", "chunk_index"),
        Index(
            "idx_chunks_embedding_hnsw",
            "embedding",
            postgresql_using="hnsw",
            postgresql_ops={"embedding": "vector_cosine_ops"},
        ),
    )
