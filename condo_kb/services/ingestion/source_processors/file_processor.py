"""Source processor for uploaded files.

Two paths, selected by MIME type:

- **Text formats** (``text/*``, JSON, XML, CSV, YAML) are fetched from the
  file URL and decoded directly.
- **Everything else** (PDF, images, office documents) is handed to the
  :class:`~condo_kb.interfaces.file_extraction_provider.IFileExtractionProvider`
  with the file's URL.  The binary is never downloaded here.  The model's
  transcription is tidied: runs of three or more newlines collapse to a
  single blank line.
"""

from __future__ import annotations

import re

import httpx
import structlog

from condo_kb.interfaces.file_extraction_provider import IFileExtractionProvider
from condo_kb.models.knowledge import DocumentSource
from condo_kb.services.ingestion.source_processors.url_processor import fetch_text

logger = structlog.get_logger(logger_name=__name__)

_TEXT_MIME_TYPES = frozenset(
    {
        "application/json",
        "application/xml",
        "application/csv",
        "application/x-yaml",
        "application/yaml",
        "application/x-ndjson",
    }
)

_EXCESS_NEWLINES_RE = re.compile(r"\n{3,}")


def is_text_mime_type(mime_type: str) -> bool:
    """Return ``True`` for MIME types that can be decoded without OCR."""
    base = mime_type.split(";", 1)[0].strip().lower()
    return base.startswith("text/") or base in _TEXT_MIME_TYPES


def tidy_transcription(text: str) -> str:
    """Collapse 3+ consecutive newlines to two and trim."""
    return _EXCESS_NEWLINES_RE.sub("\n\n", text).strip()


class FileProcessor:
    """Turns a ``file`` source into plain text.

    Parameters
    ----------
    extraction_provider:
        LLM transcription collaborator for binary and scanned formats.
    http_client:
        Client used to fetch text-format files.
    """

    def __init__(
        self,
        extraction_provider: IFileExtractionProvider,
        http_client: httpx.AsyncClient,
    ) -> None:
        self._extraction = extraction_provider
        self._client = http_client

    async def extract(self, source: DocumentSource) -> str:
        url = source.file_url or ""
        mime_type = source.mime_type or ""

        if is_text_mime_type(mime_type):
            text = await fetch_text(self._client, url, self.get_provider_name())
            logger.info("text_file_processed", mime_type=mime_type, text_length=len(text))
            return text

        raw = await self._extraction.extract_text_from_file(url, mime_type)
        text = tidy_transcription(raw)
        logger.info(
            "binary_file_processed",
            mime_type=mime_type,
            provider=self._extraction.get_provider_name(),
            text_length=len(text),
        )
        return text

    def get_provider_name(self) -> str:
        return "file_processor"
