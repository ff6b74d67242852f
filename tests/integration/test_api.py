"""Integration tests for FastAPI API endpoints using TestClient."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from condo_kb.api.middleware import ErrorHandlingMiddleware, RequestLoggingMiddleware
from condo_kb.api.routes import router as api_router
from condo_kb.services.assistant_tools import SEARCH_DOCUMENTS_DESCRIPTION
from condo_kb.services.document_service import DocumentService
from condo_kb.services.ingestion.chunker import TextChunker
from condo_kb.services.ingestion.ingestion_service import IngestionService
from condo_kb.services.ingestion.text_extractor import TextExtractor
from condo_kb.services.retrieval_service import RetrievalService
from condo_kb.utils.errors import EmbeddingError
from tests.conftest import FakeEmbeddingProvider, FakeFileExtractionProvider, InMemoryDocumentStore

_HEADERS = {"X-User-Id": "manager-1"}
_ORG = "/api/v1/orgs/org-a"

_PET_POLICY = (
    "Pets are welcome in the building.\n\n"
    "Dogs must be kept on a leash in all common areas, including the garden and the garage. "
    "Owners are responsible for cleaning up after their pets."
)


def _create_test_app(
    store: InMemoryDocumentStore | None = None,
    embedder=None,
) -> tuple[FastAPI, InMemoryDocumentStore]:
    """Create a FastAPI app wired to in-memory collaborators."""
    app = FastAPI()
    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.include_router(api_router)

    store = store or InMemoryDocumentStore()
    embedder = embedder or FakeEmbeddingProvider()
    extractor = TextExtractor(FakeFileExtractionProvider("Scanned insurance certificate, valid 2026."), http_client=AsyncMock())

    app.state.document_store = store
    app.state.document_service = DocumentService(store)
    app.state.ingestion_service = IngestionService(
        extractor=extractor,
        chunker=TextChunker(),
        embedding_provider=embedder,
        document_store=store,
    )
    app.state.retrieval_service = RetrievalService(embedder, store)
    app.state.provider_registry = {
        "embedding": True,
        "file_extraction": True,
        "document_store": store.get_provider_name(),
    }
    return app, store


@pytest.fixture
def client() -> TestClient:
    app, _ = _create_test_app()
    return TestClient(app)


def _post_article(client: TestClient, body: str = _PET_POLICY, org: str = _ORG) -> dict:
    response = client.post(
        f"{org}/documents/articles",
        json={"title": "Pet policy", "body": body},
        headers=_HEADERS,
    )
    assert response.status_code == 202
    return response.json()


# ======================================================================
# Registration
# ======================================================================


class TestRegistration:
    def test_article_accepted_and_ingested_in_background(self, client) -> None:
        created = _post_article(client)

        assert created["status"] == "processing"
        assert created["uploaded_by"] == "manager-1"
        assert created["source_kind"] == "article"

        # TestClient runs background tasks before returning.
        fetched = client.get(f"{_ORG}/documents/{created['id']}").json()
        assert fetched["status"] == "ready"

    def test_file_registration(self, client) -> None:
        response = client.post(
            f"{_ORG}/documents/files",
            json={
                "file_name": "insurance.pdf",
                "file_url": "https://files.example.com/insurance.pdf",
                "mime_type": "application/pdf",
                "file_size": 2048,
            },
            headers=_HEADERS,
        )

        assert response.status_code == 202
        doc_id = response.json()["id"]
        chunks = client.get(f"{_ORG}/documents/{doc_id}/chunks").json()["chunks"]
        assert chunks == [{"chunk_index": 0, "content": "Scanned insurance certificate, valid 2026."}]

    def test_short_article_ends_in_error(self, client) -> None:
        created = _post_article(client, body="Too short")

        fetched = client.get(f"{_ORG}/documents/{created['id']}").json()
        assert fetched["status"] == "error"

    def test_plain_http_url_rejected(self, client) -> None:
        response = client.post(
            f"{_ORG}/documents/urls",
            json={"source_url": "http://example.com/rules"},
            headers=_HEADERS,
        )
        assert response.status_code == 422

    def test_missing_user_header_rejected(self, client) -> None:
        response = client.post(
            f"{_ORG}/documents/articles",
            json={"title": "t", "body": "Some body text here."},
        )
        assert response.status_code == 422


# ======================================================================
# Queries and deletion
# ======================================================================


class TestDocumentQueries:
    def test_list_is_org_scoped(self, client) -> None:
        _post_article(client)
        _post_article(client, org="/api/v1/orgs/org-b")

        listing = client.get(f"{_ORG}/documents").json()

        assert listing["total"] == 1
        assert all(d["org_id"] == "org-a" for d in listing["documents"])

    def test_ready_only_filter(self, client) -> None:
        _post_article(client)
        _post_article(client, body="Too short")

        ready = client.get(f"{_ORG}/documents", params={"ready_only": "true"}).json()

        assert ready["total"] == 1
        assert ready["documents"][0]["status"] == "ready"

    def test_other_org_document_is_404(self, client) -> None:
        created = _post_article(client)

        response = client.get(f"/api/v1/orgs/org-b/documents/{created['id']}")

        assert response.status_code == 404
        assert response.json()["error"] == "DocumentNotFoundError"

    def test_delete_then_404(self, client) -> None:
        created = _post_article(client)

        assert client.delete(f"{_ORG}/documents/{created['id']}").status_code == 204
        assert client.get(f"{_ORG}/documents/{created['id']}").status_code == 404
        assert client.delete(f"{_ORG}/documents/{created['id']}").status_code == 404


# ======================================================================
# Search
# ======================================================================


class TestSearch:
    def test_search_returns_ranked_org_results(self, client) -> None:
        created = _post_article(client)
        _post_article(client, org="/api/v1/orgs/org-b")

        response = client.post(f"{_ORG}/search", json={"query": "dogs on a leash", "limit": 3})

        assert response.status_code == 200
        results = response.json()["results"]
        assert 1 <= len(results) <= 3
        assert all(r["document_id"] == created["id"] for r in results)

    def test_blank_query_rejected(self, client) -> None:
        response = client.post(f"{_ORG}/search", json={"query": "   "})
        assert response.status_code == 422

    def test_limit_out_of_range_rejected(self, client) -> None:
        response = client.post(f"{_ORG}/search", json={"query": "lift", "limit": 0})
        assert response.status_code == 422

    def test_assistant_tool_payload(self, client) -> None:
        _post_article(client)

        payload = client.post(
            f"{_ORG}/assistant/search-documents", json={"query": "pets in the garden"}
        ).json()

        assert payload["found"] is True
        assert isinstance(payload["chunks"][0]["relevance"], int)

    def test_assistant_tool_not_found(self, client) -> None:
        payload = client.post(
            f"{_ORG}/assistant/search-documents", json={"query": "pets in the garden"}
        ).json()

        assert payload["found"] is False

    def test_embedding_failure_is_500_error_response(self) -> None:
        embedder = MagicMock()
        embedder.embed = AsyncMock(side_effect=EmbeddingError(message="quota exceeded", provider_name="openai_embedding"))
        app, _ = _create_test_app(embedder=embedder)

        response = TestClient(app).post(f"{_ORG}/search", json={"query": "lift"})

        assert response.status_code == 500
        assert response.json() == {"error": "EmbeddingError", "detail": "quota exceeded"}


# ======================================================================
# System
# ======================================================================


def test_health(client) -> None:
    response = client.get("/api/v1/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["providers"]["document_store"] == "in_memory"


def test_assistant_tool_route_documents_the_tool(client) -> None:
    schema = client.get("/openapi.json").json()

    operation = schema["paths"]["/api/v1/orgs/{org_id}/assistant/search-documents"]["post"]
    assert operation["description"] == SEARCH_DOCUMENTS_DESCRIPTION
