"""Embedding service for semantic retrieval.

All embeddings (stored workout sets and incoming questions) go through this
service so both sides of a similarity comparison come from the same model
and dimension.
"""

import asyncio

from loguru import logger
from openai import AsyncOpenAI

from app.rag.errors import ProviderError


class EmbeddingService:
    """Computes text embeddings with the OpenAI embeddings API.

    Built once at startup and shared across requests; holds no per-request state.
    """

    def __init__(
        self,
        *,
        api_key: str,
        model: str = "text-embedding-3-small",
        dimension: int = 1536,
        timeout_seconds: float = 30.0,
        client: AsyncOpenAI | None = None,
    ) -> None:
        if client is None:
            if not api_key:
                raise RuntimeError(
                    "OPENAI_API_KEY not set. Embeddings require OpenAI API key. "
                    "Set OPENAI_API_KEY environment variable."
                )
            client = AsyncOpenAI(api_key=api_key)
        self._client = client
        self.model = model
        self.dimension = dimension
        self.timeout_seconds = timeout_seconds
        logger.info(f"Initialized EmbeddingService with model={model}, dim={dimension}")

    async def embed_text(self, text: str) -> list[float]:
        """Compute embedding for a single text string.

        Args:
            text: Text to embed

        Returns:
            Embedding vector of length `dimension`

        Raises:
            ValueError: If text is empty
            ProviderError: If the API call fails, times out, or returns a missing,
                zero or wrongly sized vector
        """
        if not text.strip():
            raise ValueError("Cannot embed empty text")

        try:
            response = await asyncio.wait_for(
                self._client.embeddings.create(
                    model=self.model,
                    input=text,
                    dimensions=self.dimension,
                ),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            logger.error(f"Embedding call timed out after {self.timeout_seconds}s")
            raise ProviderError("embedding", f"timed out after {self.timeout_seconds}s") from e
        except Exception as e:
            logger.error(f"Failed to compute embedding: {e}")
            raise ProviderError("embedding", f"embedding computation failed: {e}") from e

        if not response.data or not response.data[0].embedding:
            raise ProviderError("embedding", "provider returned no embedding")

        embedding = list(response.data[0].embedding)
        if len(embedding) != self.dimension:
            raise ProviderError(
                "embedding", f"expected dimension {self.dimension}, got {len(embedding)}"
            )
        if not any(embedding):
            raise ProviderError("embedding", "provider returned a zero vector")

        logger.debug(f"Computed embedding for text (length={len(text)}, dim={len(embedding)})")
        return embedding
