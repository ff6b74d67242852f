"""FastAPI routes for the condominium knowledge base.

Provides REST endpoints for document registration, listing, inspection and
deletion, semantic search, the assistant's document-search tool, and
health.  Service dependencies are resolved from ``app.state`` via FastAPI's
``Depends`` using the ``Annotated`` pattern.

# ─── API ROUTE MAP ─────────────────────────────────────────────────────
#
# Endpoint (prefix /api/v1)                           Method  Description
# ─────────────────────────────────────────────────────────────────────
# /orgs/{org}/documents/files                         POST    Register uploaded file → ingest
# /orgs/{org}/documents/articles                      POST    Register article → ingest
# /orgs/{org}/documents/urls                          POST    Register web page → ingest
# /orgs/{org}/documents                               GET     List documents (?ready_only=)
# /orgs/{org}/documents/{doc}                         GET     Document metadata + status
# /orgs/{org}/documents/{doc}/chunks                  GET     Stored chunks in index order
# /orgs/{org}/documents/{doc}                         DELETE  Delete document + chunks
# /orgs/{org}/search                                  POST    Semantic search
# /orgs/{org}/assistant/search-documents              POST    Assistant tool payload
# /health                                             GET     Health + provider status
#
# Registration returns 202: the row exists in ``processing`` and ingestion
# runs as a BackgroundTask after the response is sent.  Clients poll
# GET /documents/{doc} until the status is ``ready`` or ``error``.
#
# The caller is identified by the ``X-User-Id`` header.  Authentication
# and org membership checks happen upstream of this service.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from typing import Annotated, Any

import structlog
from fastapi import APIRouter, BackgroundTasks, Depends, Header, HTTPException, Query, Request

from condo_kb.api.schemas import (
    AssistantSearchRequest,
    ChunkResponse,
    DocumentChunksResponse,
    DocumentListResponse,
    DocumentResponse,
    ErrorResponse,
    HealthResponse,
    RegisterArticleRequest,
    RegisterFileRequest,
    RegisterUrlRequest,
    SearchRequest,
    SearchResponse,
    SearchResultItem,
)
from condo_kb.models.knowledge import Document, DocumentSource
from condo_kb.services.assistant_tools import (
    SEARCH_DOCUMENTS_DESCRIPTION,
    search_documents_tool,
)
from condo_kb.services.document_service import DocumentService
from condo_kb.services.ingestion.ingestion_service import IngestionService
from condo_kb.services.retrieval_service import RetrievalService
from condo_kb.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

router = APIRouter(prefix="/api/v1")

_ORG_PREFIX = "/orgs/{org_id}"


# ---------------------------------------------------------------------------
# Dependency injection helpers: resolve singletons from app.state
# ---------------------------------------------------------------------------


def _get_document_service(request: Request) -> DocumentService:
    """Return the document service from application state."""
    return request.app.state.document_service


def _get_ingestion_service(request: Request) -> IngestionService:
    """Return the ingestion pipeline from application state."""
    return request.app.state.ingestion_service


def _get_retrieval_service(request: Request) -> RetrievalService:
    """Return the retriever from application state."""
    return request.app.state.retrieval_service


DocumentServiceDep = Annotated[DocumentService, Depends(_get_document_service)]
IngestionDep = Annotated[IngestionService, Depends(_get_ingestion_service)]
RetrievalDep = Annotated[RetrievalService, Depends(_get_retrieval_service)]
UserIdHeader = Annotated[str, Header(alias="X-User-Id", min_length=1)]


def _schedule_ingestion(
    background_tasks: BackgroundTasks,
    ingestion: IngestionService,
    document: Document,
    source: DocumentSource,
) -> DocumentResponse:
    background_tasks.add_task(ingestion.ingest, document.id, document.org_id, source)
    _logger.info(
        "ingestion_scheduled",
        document_id=document.id,
        org_id=document.org_id,
        source_kind=document.source_kind.value,
    )
    return DocumentResponse.from_document(document)


# ---------------------------------------------------------------------------
# Document registration
# ---------------------------------------------------------------------------


@router.post(
    f"{_ORG_PREFIX}/documents/files",
    response_model=DocumentResponse,
    status_code=202,
    responses={422: {"model": ErrorResponse}},
    summary="Register an uploaded file and start ingestion",
)
async def register_file(
    org_id: str,
    body: RegisterFileRequest,
    background_tasks: BackgroundTasks,
    user_id: UserIdHeader,
    documents: DocumentServiceDep,
    ingestion: IngestionDep,
) -> DocumentResponse:
    """Register a file already stored at ``file_url`` and ingest it in the background."""
    try:
        document, source = await documents.register_file(
            org_id=org_id,
            uploaded_by=user_id,
            file_name=body.file_name,
            file_url=str(body.file_url),
            mime_type=body.mime_type,
            file_size=body.file_size,
            title=body.title,
        )
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return _schedule_ingestion(background_tasks, ingestion, document, source)


@router.post(
    f"{_ORG_PREFIX}/documents/articles",
    response_model=DocumentResponse,
    status_code=202,
    responses={422: {"model": ErrorResponse}},
    summary="Register an article and start ingestion",
)
async def register_article(
    org_id: str,
    body: RegisterArticleRequest,
    background_tasks: BackgroundTasks,
    user_id: UserIdHeader,
    documents: DocumentServiceDep,
    ingestion: IngestionDep,
) -> DocumentResponse:
    """Register an in-app article and ingest it in the background."""
    try:
        document, source = await documents.register_article(
            org_id=org_id,
            uploaded_by=user_id,
            title=body.title,
            body=body.body,
        )
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return _schedule_ingestion(background_tasks, ingestion, document, source)


@router.post(
    f"{_ORG_PREFIX}/documents/urls",
    response_model=DocumentResponse,
    status_code=202,
    responses={422: {"model": ErrorResponse}},
    summary="Register a web page and start ingestion",
)
async def register_url(
    org_id: str,
    body: RegisterUrlRequest,
    background_tasks: BackgroundTasks,
    user_id: UserIdHeader,
    documents: DocumentServiceDep,
    ingestion: IngestionDep,
) -> DocumentResponse:
    """Register an HTTPS page; it is fetched during background ingestion."""
    try:
        document, source = await documents.register_url(
            org_id=org_id,
            uploaded_by=user_id,
            source_url=str(body.source_url),
            title=body.title,
        )
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return _schedule_ingestion(background_tasks, ingestion, document, source)


# ---------------------------------------------------------------------------
# Document queries
# ---------------------------------------------------------------------------


@router.get(
    f"{_ORG_PREFIX}/documents",
    response_model=DocumentListResponse,
    summary="List the organization's documents",
)
async def list_documents(
    org_id: str,
    documents: DocumentServiceDep,
    ready_only: Annotated[bool, Query()] = False,
) -> DocumentListResponse:
    """Return documents newest first; ``ready_only`` hides unfinished ones."""
    items = await documents.list_documents(org_id, ready_only=ready_only)
    return DocumentListResponse(
        documents=[DocumentResponse.from_document(d) for d in items],
        total=len(items),
    )


@router.get(
    f"{_ORG_PREFIX}/documents/{{document_id}}",
    response_model=DocumentResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Get a document and its ingestion status",
)
async def get_document(
    org_id: str,
    document_id: str,
    documents: DocumentServiceDep,
) -> DocumentResponse:
    document = await documents.get_document(org_id, document_id)
    return DocumentResponse.from_document(document)


@router.get(
    f"{_ORG_PREFIX}/documents/{{document_id}}/chunks",
    response_model=DocumentChunksResponse,
    responses={404: {"model": ErrorResponse}},
    summary="List a document's stored chunks",
)
async def get_document_chunks(
    org_id: str,
    document_id: str,
    documents: DocumentServiceDep,
) -> DocumentChunksResponse:
    chunks = await documents.get_document_chunks(org_id, document_id)
    return DocumentChunksResponse(
        document_id=document_id,
        chunks=[ChunkResponse(chunk_index=c.chunk_index, content=c.content) for c in chunks],
    )


@router.delete(
    f"{_ORG_PREFIX}/documents/{{document_id}}",
    status_code=204,
    responses={404: {"model": ErrorResponse}},
    summary="Delete a document and all of its chunks",
)
async def delete_document(
    org_id: str,
    document_id: str,
    documents: DocumentServiceDep,
) -> None:
    await documents.delete_document(org_id, document_id)


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------


@router.post(
    f"{_ORG_PREFIX}/search",
    response_model=SearchResponse,
    summary="Semantic search over the organization's documents",
)
async def search(
    org_id: str,
    body: SearchRequest,
    retriever: RetrievalDep,
) -> SearchResponse:
    try:
        results = await retriever.search(org_id, body.query, body.limit)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return SearchResponse(
        query=body.query,
        results=[
            SearchResultItem(
                content=r.content,
                similarity=r.similarity,
                document_id=r.document_id,
                chunk_index=r.chunk_index,
            )
            for r in results
        ],
    )


@router.post(
    f"{_ORG_PREFIX}/assistant/search-documents",
    summary="Execute the assistant's search_documents tool",
    description=SEARCH_DOCUMENTS_DESCRIPTION,
)
async def assistant_search_documents(
    org_id: str,
    body: AssistantSearchRequest,
    retriever: RetrievalDep,
) -> dict[str, Any]:
    """Return the tool payload exactly as the chat model receives it."""
    try:
        return await search_documents_tool(retriever, org_id, body.query)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


# ---------------------------------------------------------------------------
# System endpoints
# ---------------------------------------------------------------------------


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Application health check",
)
async def health_check(request: Request) -> HealthResponse:
    """Return application health, version, and provider availability."""
    providers: dict[str, Any] = {}
    if hasattr(request.app.state, "provider_registry"):
        providers = dict(request.app.state.provider_registry)

    status = "healthy" if providers.get("embedding", False) else "degraded"
    return HealthResponse(
        status=status,
        version="0.1.0",
        providers=providers,
    )
