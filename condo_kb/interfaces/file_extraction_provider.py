"""Abstract base class for LLM-backed file text extraction.

Binary uploads (PDFs, scanned pages, photographed notices) are not parsed
locally.  Their remote URL is handed to a model that can read documents and
images, which transcribes the text.  Implementations may wrap a hosted
multimodal model or a self-hosted OCR service.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementation: OpenAIFileExtractionProvider (condo_kb/providers/extraction/)
class IFileExtractionProvider(ABC):
    """Contract for the opaque OCR / document-transcription collaborator."""

    @abstractmethod
    async def extract_text_from_file(self, url: str, mime_type: str) -> str:
        """Transcribe the file at *url* into plain text.

        Parameters
        ----------
        url:
            Remote URL of the stored file.  The provider passes the URL
            to the model; the bytes are never loaded into this process.
        mime_type:
            MIME type recorded at upload time (e.g. ``application/pdf``).

        Returns
        -------
        str
            The raw transcription.  Normalisation (newline collapsing,
            trimming, length checks) is the caller's job.

        Raises
        ------
        condo_kb.utils.errors.ExtractionError
            If the model call fails or returns no content.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"openai_file_extraction"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider is configured (credentials present)."""
