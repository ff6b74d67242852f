"""Source processors for the knowledge-base ingestion pipeline.

Each processor turns one kind of :class:`~condo_kb.models.knowledge.DocumentSource`
into plain text.  The text is then validated by the TextExtractor and fed
through the chunk -> embed -> store stages.

- **FileProcessor**     -- uploaded files: text formats fetched directly,
  PDFs/images/office documents transcribed by an LLM (OCR, tables as markdown)
- **ArticleProcessor**  -- articles typed in the app; body used as-is
- **UrlProcessor**      -- HTTPS web pages; HTML reduced to text with BeautifulSoup
"""

from condo_kb.services.ingestion.source_processors.article_processor import (
    ArticleProcessor,
)
from condo_kb.services.ingestion.source_processors.file_processor import FileProcessor
from condo_kb.services.ingestion.source_processors.url_processor import UrlProcessor

__all__ = [
    "ArticleProcessor",
    "FileProcessor",
    "UrlProcessor",
]
