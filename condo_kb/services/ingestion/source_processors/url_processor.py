"""Source processor for web pages registered by URL.

Fetches the page with httpx and reduces the HTML to plain text with
BeautifulSoup: ``<script>``/``<style>`` blocks are dropped, the remaining
text nodes are joined and whitespace is collapsed.  Condo
documentation pages (municipal regulations, insurer FAQs, manufacturer
manuals) are mostly flat prose, and the embedding model tolerates the
occasional leftover navigation text.
"""

from __future__ import annotations

import httpx
import structlog
from bs4 import BeautifulSoup

from condo_kb.models.knowledge import DocumentSource
from condo_kb.utils.errors import ExtractionError

logger = structlog.get_logger(logger_name=__name__)

DEFAULT_FETCH_TIMEOUT = 10.0
DEFAULT_HEADERS = {
    "User-Agent": "Mozilla/5.0 (compatible; condo-kb/0.1; knowledge-base document ingestion)",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
}


def build_http_client(timeout: float = DEFAULT_FETCH_TIMEOUT) -> httpx.AsyncClient:
    """Return the shared client used for page and text-file fetches."""
    return httpx.AsyncClient(
        timeout=httpx.Timeout(timeout),
        headers=DEFAULT_HEADERS,
        follow_redirects=True,
    )


async def fetch_text(client: httpx.AsyncClient, url: str, provider_name: str) -> str:
    """GET *url* and return the decoded body; any failure is an :class:`ExtractionError`."""
    try:
        response = await client.get(url)
        response.raise_for_status()
    except httpx.TimeoutException as exc:
        raise ExtractionError(
            message=f"Timeout fetching {url}: {exc}",
            provider_name=provider_name,
        ) from exc
    except httpx.HTTPStatusError as exc:
        raise ExtractionError(
            message=f"HTTP {exc.response.status_code} for {url}",
            provider_name=provider_name,
        ) from exc
    except httpx.HTTPError as exc:
        raise ExtractionError(
            message=f"HTTP error fetching {url}: {exc}",
            provider_name=provider_name,
        ) from exc
    return response.text


def html_to_text(markup: str) -> str:
    """Strip scripts, styles and tags from *markup* and normalise whitespace."""
    soup = BeautifulSoup(markup, "html.parser")
    for tag in soup(["script", "style"]):
        tag.decompose()
    return " ".join(soup.get_text(" ").split())


class UrlProcessor:
    """Turns a ``url`` source into plain text."""

    def __init__(self, http_client: httpx.AsyncClient) -> None:
        self._client = http_client

    async def extract(self, source: DocumentSource) -> str:
        url = source.source_url or ""
        markup = await fetch_text(self._client, url, self.get_provider_name())
        text = html_to_text(markup)
        logger.info(
            "url_page_processed",
            url=url,
            html_length=len(markup),
            text_length=len(text),
        )
        return text

    def get_provider_name(self) -> str:
        return "url_processor"
