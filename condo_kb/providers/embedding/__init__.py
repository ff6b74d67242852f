"""Embedding provider implementations.

Embeddings convert text into numeric vectors that capture semantic meaning.
They are stored alongside each chunk and compared by cosine distance at
query time.

    OpenAIEmbeddingProvider: text-embedding-3-small truncated to 1024 dims.
"""

from condo_kb.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

__all__ = ["OpenAIEmbeddingProvider"]
