"""File text-extraction provider implementations.

    OpenAIFileExtractionProvider: multimodal model transcription (OCR,
    tables as markdown) of PDFs and images referenced by URL.
"""

from condo_kb.providers.extraction.openai_file_extraction_provider import (
    OpenAIFileExtractionProvider,
)

__all__ = ["OpenAIFileExtractionProvider"]
