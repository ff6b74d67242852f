"""Tool handlers exposed to the condominium assistant.

The chat model calls ``search_documents`` when a resident asks about
building rules, meeting minutes, warranties or procedures.  The payload is
kept small: chunk text plus an integer relevance percentage the model can
quote or use to decide whether to answer.
"""

from __future__ import annotations

from typing import Any

from condo_kb.services.retrieval_service import RetrievalService

SEARCH_DOCUMENTS_DESCRIPTION = (
    "Search the condominium's documents (bylaws, meeting minutes, manuals, "
    "warranties). Use it when the user asks about rules, procedures or "
    "information about the building."
)

NO_RESULTS_MESSAGE = "No relevant documents found."


async def search_documents_tool(
    retriever: RetrievalService,
    org_id: str,
    query: str,
    limit: int | None = None,
) -> dict[str, Any]:
    """Run a document search on behalf of the assistant.

    Returns ``{"found": False, "message": ...}`` when nothing matches,
    otherwise ``{"found": True, "chunks": [{"content", "relevance"}]}``
    with ``relevance = round(similarity * 100)``.  Without *limit* the
    retriever's configured default applies.
    """
    results = await retriever.search(org_id, query, limit)
    if not results:
        return {"found": False, "message": NO_RESULTS_MESSAGE}
    return {
        "found": True,
        "chunks": [
            {"content": r.content, "relevance": round(r.similarity * 100)}
            for r in results
        ],
    }
