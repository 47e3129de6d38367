"""
Embedding capability.

The engine depends only on the Embedder protocol; OpenAIEmbedder is the
bundled implementation over the OpenAI embeddings API. Vectors are
numpy float32 arrays.
"""

import logging
from typing import List, Optional, Protocol, Sequence, runtime_checkable

import numpy as np
import openai

from ...core.config import settings

logger = logging.getLogger(__name__)


@runtime_checkable
class Embedder(Protocol):
    """Text embedding provider with a fixed dimension per model version."""

    async def embed(self, text: str) -> np.ndarray:
        ...

    async def embed_batch(self, texts: Sequence[str]) -> List[np.ndarray]:
        ...

    def model_version(self) -> str:
        ...


def cosine_similarity(a: Optional[np.ndarray], b: Optional[np.ndarray]) -> float:
    """
    Cosine similarity of two vectors.

    Returns 0.0 for missing vectors, mismatched dimensions or a zero norm.
    Otherwise the result is clipped to [-1, 1] against float rounding.
    """
    if a is None or b is None:
        return 0.0
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    if a.shape != b.shape:
        return 0.0

    norm_a = float(np.linalg.norm(a))
    norm_b = float(np.linalg.norm(b))
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0

    return float(np.clip(np.dot(a, b) / (norm_a * norm_b), -1.0, 1.0))


class OpenAIEmbedder:
    """
    Embedder backed by the OpenAI embeddings API.

    Example:
        >>> embedder = OpenAIEmbedder()
        >>> vector = await embedder.embed("Redis was approved for caching")
        >>> vector.shape
        (1536,)
    """

    DEFAULT_MODEL = "text-embedding-3-small"
    BATCH_SIZE = 100

    def __init__(
        self,
        model: Optional[str] = None,
        client: Optional[openai.AsyncOpenAI] = None,
    ):
        """
        Initialize embedder.

        Args:
            model: Embedding model (default: settings.EMBEDDING_MODEL)
            client: OpenAI client (created from settings.OPENAI_API_KEY if None)
        """
        self.model = model or settings.EMBEDDING_MODEL or self.DEFAULT_MODEL
        self.client = client or openai.AsyncOpenAI(api_key=settings.OPENAI_API_KEY)

    def model_version(self) -> str:
        return self.model

    async def embed(self, text: str) -> np.ndarray:
        vectors = await self.embed_batch([text])
        return vectors[0]

    async def embed_batch(self, texts: Sequence[str]) -> List[np.ndarray]:
        """
        Embed texts in batches of BATCH_SIZE.

        Raises:
            openai.OpenAIError: If the API call fails
        """
        vectors: List[np.ndarray] = []
        for i in range(0, len(texts), self.BATCH_SIZE):
            batch = list(texts[i:i + self.BATCH_SIZE])
            response = await self.client.embeddings.create(model=self.model, input=batch)
            vectors.extend(
                np.asarray(item.embedding, dtype=np.float32) for item in response.data
            )
            logger.debug(f"Embedded {len(batch)} texts via OpenAI (model={self.model})")
        return vectors
