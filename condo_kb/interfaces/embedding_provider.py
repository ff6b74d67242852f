"""Abstract base class for text-embedding service providers.

Defines the contract for turning text into fixed-dimension vectors.
Implementations may wrap a hosted API (OpenAI ``text-embedding-3-small``
truncated to 1024 dimensions), a local model, or a test double.  The
adapter pattern keeps the ingestion pipeline and the retriever independent
of the chosen backend.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementation: OpenAIEmbeddingProvider (condo_kb/providers/embedding/)
class IEmbeddingProvider(ABC):
    """Contract for the embedding collaborator.

    Embeddings produced here are written to the document store by the
    ingestion pipeline and compared against query embeddings by the
    retriever, so every vector must have :meth:`get_dimension` entries.

    Providers perform no retries and no caching: any network or model
    failure surfaces to the caller as
    :class:`~condo_kb.utils.errors.EmbeddingError`.
    """

    @abstractmethod
    async def embed(self, text: str) -> list[float]:
        """Generate the embedding vector for a single text string.

        Parameters
        ----------
        text:
            The text to embed (a chunk or a search query).

        Returns
        -------
        list[float]
            A vector with length equal to :meth:`get_dimension`.

        Raises
        ------
        condo_kb.utils.errors.EmbeddingError
            If the embedding call fails.
        """

    @abstractmethod
    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Generate embedding vectors for a batch of texts.

        Must be observably identical to calling :meth:`embed` once per
        item; the batch form exists only to cut round trips.

        Parameters
        ----------
        texts:
            Zero or more strings.  An empty list returns ``[]`` without
            contacting the provider.

        Returns
        -------
        list[list[float]]
            One vector per input, in input order.

        Raises
        ------
        condo_kb.utils.errors.EmbeddingError
            If the embedding call fails or returns the wrong number of
            vectors.
        """

    @abstractmethod
    def get_dimension(self) -> int:
        """Return the dimensionality of the embedding vectors.

        Must match the vector column of the document store (1024 by
        default).
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"openai_embedding"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider is configured (credentials present)."""
