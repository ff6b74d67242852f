"""Source processor for articles written directly in the app.

The article body is already plain text (or markdown) typed by a manager,
so it is used as-is.  The minimum-length check happens in the extractor.
"""

from __future__ import annotations

import structlog

from condo_kb.models.knowledge import DocumentSource

logger = structlog.get_logger(logger_name=__name__)


class ArticleProcessor:
    """Returns an ``article`` source's inline body unchanged."""

    async def extract(self, source: DocumentSource) -> str:
        body = source.body or ""
        logger.debug("article_processed", text_length=len(body))
        return body

    def get_provider_name(self) -> str:
        return "article_processor"
