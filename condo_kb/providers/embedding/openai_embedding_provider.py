"""OpenAI-compatible embedding provider adapter.

Wraps the ``openai`` async client to implement :class:`IEmbeddingProvider`.
Requests ``text-embedding-3-small`` truncated to the configured
dimensionality (1024 by default) so vectors fit the store's
``vector(1024)`` column.  Custom ``base_url`` and model settings allow
OpenAI-compatible hosts.
"""

from __future__ import annotations

import openai
import structlog

from condo_kb.config.settings import Settings
from condo_kb.interfaces.embedding_provider import IEmbeddingProvider
from condo_kb.utils.errors import EmbeddingError

logger = structlog.get_logger(logger_name=__name__)

# Per-request input limit of the embeddings endpoint.
_OPENAI_BATCH_LIMIT = 2048

# Models that accept the ``dimensions`` request parameter (Matryoshka
# truncation).  Other models must natively emit the configured size.
_SUPPORTS_DIMENSIONS = frozenset({"text-embedding-3-small", "text-embedding-3-large"})


class OpenAIEmbeddingProvider(IEmbeddingProvider):
    """Embedding provider backed by an OpenAI-compatible embeddings API.

    No retries are attempted here: the pipeline treats any failure as
    terminal for the ingestion run, and the retriever surfaces it to the
    assistant.
    """

    def __init__(self, settings: Settings) -> None:
        self._api_key = settings.openai_api_key
        self._base_url = settings.openai_base_url
        # Built on first use; the SDK refuses to construct without a key.
        self._client: openai.AsyncOpenAI | None = None
        self._model = settings.openai_embedding_model
        self._dimension = settings.embedding_dimensions
        self._provider_label = (
            "openai-compatible_embedding" if settings.openai_base_url else "openai_embedding"
        )

    # ------------------------------------------------------------------
    # IEmbeddingProvider implementation
    # ------------------------------------------------------------------

    async def embed(self, text: str) -> list[float]:
        """Generate an embedding vector for a single text string."""
        result = await self.embed_batch([text])
        return result[0]

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Generate embedding vectors for *texts*, preserving order.

        Splits into sub-requests of 2048 inputs if needed.  The pipeline
        already batches by 20, so in practice this is one request.
        """
        if not texts:
            return []

        request_kwargs: dict = {"model": self._model}
        if self._model in _SUPPORTS_DIMENSIONS:
            request_kwargs["dimensions"] = self._dimension

        client = self._get_client()
        try:
            all_embeddings: list[list[float]] = []
            for start in range(0, len(texts), _OPENAI_BATCH_LIMIT):
                batch = texts[start : start + _OPENAI_BATCH_LIMIT]
                response = await client.embeddings.create(input=batch, **request_kwargs)
                # The API may return items out of order; ``index`` is authoritative.
                ordered = sorted(response.data, key=lambda item: item.index)
                all_embeddings.extend(item.embedding for item in ordered)
                logger.debug(
                    "openai_embedding_batch",
                    model=self._model,
                    provider=self._provider_label,
                    batch_size=len(batch),
                    tokens=response.usage.total_tokens if response.usage else None,
                )
        except openai.APIError as exc:
            raise EmbeddingError(
                message=f"{self._provider_label} API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        self._validate(all_embeddings, expected_count=len(texts))
        return all_embeddings

    def get_dimension(self) -> int:
        return self._dimension

    def get_provider_name(self) -> str:
        return self._provider_label

    def is_available(self) -> bool:
        """Return ``True`` if an API key is configured."""
        return bool(self._api_key)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _get_client(self) -> openai.AsyncOpenAI:
        if not self._api_key:
            raise EmbeddingError(
                message="OPENAI_API_KEY is not configured",
                provider_name=self.get_provider_name(),
            )
        if self._client is None:
            client_kwargs: dict = {"api_key": self._api_key}
            if self._base_url:
                client_kwargs["base_url"] = self._base_url
            self._client = openai.AsyncOpenAI(**client_kwargs)
        return self._client

    def _validate(self, embeddings: list[list[float]], expected_count: int) -> None:
        """Reject responses that would corrupt the vector column."""
        if len(embeddings) != expected_count:
            raise EmbeddingError(
                message=(
                    f"Expected {expected_count} embeddings, received {len(embeddings)}"
                ),
                provider_name=self.get_provider_name(),
            )
        for vector in embeddings:
            if len(vector) != self._dimension:
                raise EmbeddingError(
                    message=(
                        f"Model {self._model} returned {len(vector)}-dim vectors; "
                        f"store expects {self._dimension}"
                    ),
                    provider_name=self.get_provider_name(),
                )
