"""Document store implementations.

    PgVectorDocumentStore: PostgreSQL + pgvector (production).
    SQLiteDocumentStore  : aiosqlite with a Python cosine function (local dev, tests).
"""

from condo_kb.providers.store.pgvector_store import PgVectorDocumentStore
from condo_kb.providers.store.sqlite_store import SQLiteDocumentStore

__all__ = ["PgVectorDocumentStore", "SQLiteDocumentStore"]
