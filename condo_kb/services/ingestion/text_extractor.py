"""Dispatch a document source to its processor and validate the result.

The :class:`TextExtractor` is the single entry point the pipeline uses to
turn a :class:`~condo_kb.models.knowledge.DocumentSource` into plain text.
It selects the processor by ``source.kind`` and rejects results that are
too short to be worth embedding: an empty scan or an error page reduced to
"Not found" would otherwise become a searchable, misleading chunk.
"""

from __future__ import annotations

from typing import Protocol

import httpx
import structlog

from condo_kb.interfaces.file_extraction_provider import IFileExtractionProvider
from condo_kb.models.knowledge import DocumentSource, SourceKind
from condo_kb.services.ingestion.source_processors.article_processor import (
    ArticleProcessor,
)
from condo_kb.services.ingestion.source_processors.file_processor import FileProcessor
from condo_kb.services.ingestion.source_processors.url_processor import (
    DEFAULT_FETCH_TIMEOUT,
    UrlProcessor,
    build_http_client,
)
from condo_kb.utils.errors import ExtractionError

logger = structlog.get_logger(logger_name=__name__)

DEFAULT_MIN_CHARS = 10


class SourceProcessor(Protocol):
    async def extract(self, source: DocumentSource) -> str: ...

    def get_provider_name(self) -> str: ...


class TextExtractor:
    """Extracts plain text from any supported document source.

    Parameters
    ----------
    extraction_provider:
        LLM transcription collaborator for binary uploads.
    http_client:
        Optional shared client for URL and text-file fetches.  When omitted,
        one is created with a *fetch_timeout* second timeout and closed by
        :meth:`close`.
    min_chars:
        Extracted text shorter than this (after stripping) is rejected.
    fetch_timeout:
        Timeout in seconds for the internally created HTTP client.
    """

    def __init__(
        self,
        extraction_provider: IFileExtractionProvider,
        http_client: httpx.AsyncClient | None = None,
        min_chars: int = DEFAULT_MIN_CHARS,
        fetch_timeout: float = DEFAULT_FETCH_TIMEOUT,
    ) -> None:
        self._owns_client = http_client is None
        self._client = http_client or build_http_client(fetch_timeout)
        self._min_chars = min_chars
        self._processors: dict[SourceKind, SourceProcessor] = {
            SourceKind.FILE: FileProcessor(extraction_provider, self._client),
            SourceKind.ARTICLE: ArticleProcessor(),
            SourceKind.URL: UrlProcessor(self._client),
        }

    async def extract_text(self, source: DocumentSource) -> str:
        """Return the plain text of *source*.

        Raises
        ------
        ExtractionError
            If the fetch or transcription fails, or the text is shorter
            than the configured minimum.
        """
        processor = self._processors[source.kind]
        text = await processor.extract(source)

        if len(text.strip()) < self._min_chars:
            raise ExtractionError(
                message=(
                    f"Extracted text too short ({len(text.strip())} chars, "
                    f"minimum {self._min_chars}) from {source.location}"
                ),
                provider_name=processor.get_provider_name(),
            )

        logger.info(
            "text_extracted",
            source_kind=source.kind.value,
            text_length=len(text),
        )
        return text

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()
