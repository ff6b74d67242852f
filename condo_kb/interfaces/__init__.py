"""Public interface definitions for all external collaborators.

Every external service used by the knowledge base (embedding model, LLM
document transcription, relational/vector store) is accessed exclusively
through the abstract base classes defined in this package.  Concrete
adapters live in ``condo_kb/providers/`` and are wired in ``condo_kb/main.py``;
tests inject in-memory fakes instead.

CONCRETE PROVIDER MAP:
    Interface                  →  Concrete implementations
    ─────────────────────────────────────────────────────────────────────
    IEmbeddingProvider         →  OpenAIEmbeddingProvider
    IFileExtractionProvider    →  OpenAIFileExtractionProvider
    IDocumentStore             →  PgVectorDocumentStore, SQLiteDocumentStore
"""

from condo_kb.interfaces.document_store import IDocumentStore
from condo_kb.interfaces.embedding_provider import IEmbeddingProvider
from condo_kb.interfaces.file_extraction_provider import IFileExtractionProvider

__all__ = [
    "IDocumentStore",
    "IEmbeddingProvider",
    "IFileExtractionProvider",
]
