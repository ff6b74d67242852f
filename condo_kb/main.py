"""Condominium knowledge-base FastAPI application entry point.

Wires together providers, services and routes via dependency injection.
Loads configuration from environment variables and ``.env``, configures
structured logging, and selects the document store from ``DATABASE_URL``
(PostgreSQL + pgvector in production, SQLite for local development).
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import structlog
import uvicorn
from fastapi import FastAPI

from condo_kb.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from condo_kb.api.routes import router as api_router
from condo_kb.config.settings import Settings
from condo_kb.interfaces.document_store import IDocumentStore
from condo_kb.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider
from condo_kb.providers.extraction.openai_file_extraction_provider import (
    OpenAIFileExtractionProvider,
)
from condo_kb.providers.store.pgvector_store import PgVectorDocumentStore
from condo_kb.providers.store.sqlite_store import SQLiteDocumentStore
from condo_kb.services.document_service import DocumentService
from condo_kb.services.ingestion.chunker import TextChunker
from condo_kb.services.ingestion.ingestion_service import IngestionService
from condo_kb.services.ingestion.text_extractor import TextExtractor
from condo_kb.services.retrieval_service import RetrievalService
from condo_kb.utils.logging import configure_logging, get_logger

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()

configure_logging(
    log_level=settings.log_level,
    json_output=(settings.app_env == "production"),
)
_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Component construction
# ---------------------------------------------------------------------------


def _build_document_store(app_settings: Settings) -> IDocumentStore:
    """Return the pgvector store for PostgreSQL URLs, SQLite otherwise."""
    if app_settings.uses_postgres:
        return PgVectorDocumentStore(
            database_url=app_settings.database_url,
            embedding_dimensions=app_settings.embedding_dimensions,
            echo=app_settings.database_echo,
        )
    return SQLiteDocumentStore(db_path=app_settings.sqlite_path())


def _build_all(app_settings: Settings) -> dict[str, Any]:
    """Construct every provider and service instance for the application.

    Returns a flat dict of named components to be stored on ``app.state``.
    """
    # -- Providers --
    embedding_provider = OpenAIEmbeddingProvider(settings=app_settings)
    extraction_provider = OpenAIFileExtractionProvider(settings=app_settings)
    document_store = _build_document_store(app_settings)

    # -- Ingestion --
    extractor = TextExtractor(
        extraction_provider=extraction_provider,
        min_chars=app_settings.min_extracted_chars,
        fetch_timeout=app_settings.url_fetch_timeout,
    )
    chunker = TextChunker(
        max_chars=app_settings.chunk_max_chars,
        overlap=app_settings.chunk_overlap,
    )
    ingestion_service = IngestionService(
        extractor=extractor,
        chunker=chunker,
        embedding_provider=embedding_provider,
        document_store=document_store,
        batch_size=app_settings.embedding_batch_size,
    )

    # -- Query side --
    retrieval_service = RetrievalService(
        embedding_provider=embedding_provider,
        document_store=document_store,
        default_limit=app_settings.search_default_limit,
    )
    document_service = DocumentService(document_store=document_store)

    provider_registry = {
        "embedding": embedding_provider.is_available(),
        "embedding_provider": embedding_provider.get_provider_name(),
        "file_extraction": extraction_provider.is_available(),
        "document_store": document_store.get_provider_name(),
    }

    return {
        "document_store": document_store,
        "text_extractor": extractor,
        "ingestion_service": ingestion_service,
        "retrieval_service": retrieval_service,
        "document_service": document_service,
        "provider_registry": provider_registry,
    }


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Initialise providers and the schema on startup, release them on shutdown."""
    components = _build_all(settings)

    for key, value in components.items():
        setattr(application.state, key, value)

    document_store: IDocumentStore = components["document_store"]
    await document_store.initialize()

    _logger.info(
        "app_startup",
        version="0.1.0",
        environment=settings.app_env,
        document_store=document_store.get_provider_name(),
        embedding_available=components["provider_registry"]["embedding"],
    )

    yield

    # -- Shutdown: close the HTTP client and the connection pool --
    extractor: TextExtractor = components["text_extractor"]
    await extractor.close()
    await document_store.close()
    _logger.info("app_shutdown", message="HTTP client and store closed")


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    application = FastAPI(
        title="Condo Knowledge Base API",
        version="0.1.0",
        description=(
            "Ingest condominium documents (uploaded files, articles, web pages) "
            "into overlapping embedded chunks and serve org-scoped semantic "
            "search for the building assistant."
        ),
        lifespan=_lifespan,
    )

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application)

    # -- API routes --
    application.include_router(api_router)

    return application


app = create_app()

# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(
        "condo_kb.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )
