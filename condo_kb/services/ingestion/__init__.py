"""Document ingestion pipeline for the condominium knowledge base.

Orchestrates the full pipeline: **extract -> chunk -> embed -> store**.

Pipeline stages overview:

1. **Extract** (text_extractor.py + source_processors/) -- Uploaded files,
   inline articles and web pages are reduced to plain text.  Scanned PDFs
   and images go through an LLM transcription provider.

2. **Chunk** (chunker.py / TextChunker) -- Splits the text into
   2000-character windows with 200 characters of overlap, snapping to
   paragraph or sentence boundaries past the window midpoint.

3. **Embed** (via IEmbeddingProvider) -- Generates 1024-dim vectors in
   batches of 20, strictly one batch at a time.

4. **Store** (via IDocumentStore) -- Persists each batch of chunks, then
   marks the document ``ready``.  Any failure marks it ``error``.
"""

from condo_kb.services.ingestion.chunker import TextChunker, chunk_text
from condo_kb.services.ingestion.ingestion_service import IngestionService
from condo_kb.services.ingestion.text_extractor import TextExtractor

__all__ = [
    "IngestionService",
    "TextChunker",
    "TextExtractor",
    "chunk_text",
]
