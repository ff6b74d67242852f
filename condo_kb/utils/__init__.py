"""Utility modules for the knowledge-base service.

- **errors** -- Domain exception hierarchy rooted at CondoKBError; each
  pipeline stage raises its own subclass so callers can handle failures
  granularly without broad ``except Exception`` blocks.
- **logging** -- structlog setup with a dual-renderer pattern: coloured
  console output in development, structured JSON in production.
"""

# -- Domain exception hierarchy --------------------------------------------
from condo_kb.utils.errors import (
    CondoKBError,
    ConfigurationError,
    DocumentNotFoundError,
    EmbeddingError,
    ExtractionError,
    StorageError,
)

# -- Structured logging setup ----------------------------------------------
from condo_kb.utils.logging import bound_context, configure_logging, get_logger

__all__ = [
    "CondoKBError",
    "ConfigurationError",
    "DocumentNotFoundError",
    "EmbeddingError",
    "ExtractionError",
    "StorageError",
    "bound_context",
    "configure_logging",
    "get_logger",
]
