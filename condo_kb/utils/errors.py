"""Custom exception hierarchy for the condominium knowledge base.

All application exceptions inherit from :class:`CondoKBError`, which
carries an optional ``provider_name`` so error handlers can identify which
external service (e.g. "openai_embedding", "pgvector", "url_fetch") caused
the failure.

The hierarchy is organized by pipeline stage:

    CondoKBError  (base -- catch-all for any knowledge-base error)
    +-- ExtractionError        (turning a source into plain text)
    +-- EmbeddingError         (embedding model call or response)
    +-- StorageError           (document / chunk persistence, NN query)
    +-- DocumentNotFoundError  (lookup outside the caller's organization)
    +-- ConfigurationError     (startup / missing config)

The ingestion pipeline catches every subclass at its top level and turns it
into an ``error`` status; the retrieval path lets them propagate.
"""


class CondoKBError(Exception):
    """Base exception for all knowledge-base errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which external service triggered the
    error.  ``__str__`` prefixes the provider name in brackets for
    structured log output, e.g. ``[url_fetch] HTTP 404 for https://...``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Ingestion errors
# ---------------------------------------------------------------------------

class ExtractionError(CondoKBError):
    """Raised when a source cannot be turned into usable plain text.

    Covers network errors, non-2xx HTTP responses, collaborator failures and
    extracted text below the minimum viable length.
    """

    def __init__(
        self,
        message: str = "Text extraction failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class EmbeddingError(CondoKBError):
    """Raised when the embedding model call fails or returns unusable vectors."""

    def __init__(
        self,
        message: str = "Embedding generation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Storage errors
# ---------------------------------------------------------------------------

class StorageError(CondoKBError):
    """Raised when a document-store read or write fails."""

    def __init__(
        self,
        message: str = "Document store operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class DocumentNotFoundError(CondoKBError):
    """Raised when a document does not exist within the caller's organization."""

    def __init__(
        self,
        message: str = "Document not found",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Configuration errors
# ---------------------------------------------------------------------------

class ConfigurationError(CondoKBError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
