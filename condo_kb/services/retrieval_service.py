"""Org-scoped semantic search over ingested document chunks.

The retriever embeds the query with the same provider used at ingestion
time and asks the document store for the nearest chunks of the caller's
organization.  It is read-only and uncached; failures propagate so the
assistant can tell the user the search did not run, rather than claiming
nothing was found.
"""

from __future__ import annotations

import structlog

from condo_kb.interfaces.document_store import IDocumentStore
from condo_kb.interfaces.embedding_provider import IEmbeddingProvider
from condo_kb.models.knowledge import SearchResult

logger = structlog.get_logger(logger_name=__name__)

DEFAULT_LIMIT = 5


class RetrievalService:
    """Semantic search restricted to one organization's documents.

    Parameters
    ----------
    embedding_provider:
        Embeds the query text.
    document_store:
        Runs the cosine nearest-neighbor lookup.
    default_limit:
        Result count used when a search does not pass one.
    """

    def __init__(
        self,
        embedding_provider: IEmbeddingProvider,
        document_store: IDocumentStore,
        default_limit: int = DEFAULT_LIMIT,
    ) -> None:
        self._embedding_provider = embedding_provider
        self._store = document_store
        self._default_limit = default_limit

    async def search(
        self,
        org_id: str,
        query: str,
        limit: int | None = None,
    ) -> list[SearchResult]:
        """Return up to *limit* chunks of *org_id* most similar to *query*.

        Parameters
        ----------
        org_id:
            Organization whose chunks are searched; no other org's chunk
            is ever returned.
        query:
            Natural-language question or keywords.
        limit:
            Maximum number of results; the service default (5) when omitted.

        Returns
        -------
        list[SearchResult]
            Ordered by descending similarity.

        Raises
        ------
        ValueError
            If *query* is blank or *limit* is less than 1.
        condo_kb.utils.errors.EmbeddingError
            If the query cannot be embedded.
        condo_kb.utils.errors.StorageError
            If the nearest-neighbor query fails.
        """
        if limit is None:
            limit = self._default_limit
        if not query or not query.strip():
            raise ValueError("query must not be blank")
        if limit < 1:
            msg = f"limit must be at least 1, got {limit}"
            raise ValueError(msg)

        query_vector = await self._embedding_provider.embed(query)
        results = await self._store.search_chunks(org_id, query_vector, limit)

        logger.info(
            "chunk_search_complete",
            org_id=org_id,
            query_length=len(query),
            limit=limit,
            results=len(results),
            top_similarity=round(results[0].similarity, 4) if results else None,
        )
        return results
