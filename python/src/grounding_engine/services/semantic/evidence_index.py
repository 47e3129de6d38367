"""
Evidence Index.

Chunks embedded once in a single batch, plus an optional BM25 index and
participant set. An index belongs to exactly one validation call and is
not modified after it is built.
"""

import logging
from types import MappingProxyType
from typing import FrozenSet, Iterable, Mapping, Optional, Sequence, Tuple

import numpy as np

from ...exceptions import EvidenceIndexError
from ...models.evidence import EvidenceChunk
from ...models.thresholds import ValidatorOptions
from .bm25 import BM25Index
from .embedding import Embedder

logger = logging.getLogger(__name__)


class EvidenceIndex:
    """Searchable, read-only view of one call's evidence."""

    def __init__(
        self,
        chunks: Sequence[EvidenceChunk],
        embeddings: Mapping[str, np.ndarray],
        model_version: str,
        bm25: Optional[BM25Index] = None,
        participants: Iterable[str] = (),
        thread_id: str = "",
    ):
        self._chunks: Tuple[EvidenceChunk, ...] = tuple(chunks)
        self._embeddings = MappingProxyType(dict(embeddings))
        self._participants: FrozenSet[str] = frozenset(participants)
        self._bm25 = bm25
        self._model_version = model_version
        self._thread_id = thread_id

    @property
    def chunks(self) -> Tuple[EvidenceChunk, ...]:
        return self._chunks

    @property
    def embeddings(self) -> Mapping[str, np.ndarray]:
        return self._embeddings

    @property
    def participants(self) -> FrozenSet[str]:
        return self._participants

    @property
    def bm25(self) -> Optional[BM25Index]:
        return self._bm25

    @property
    def model_version(self) -> str:
        return self._model_version

    @property
    def thread_id(self) -> str:
        return self._thread_id

    def __len__(self) -> int:
        return len(self._chunks)


async def build_evidence_index(
    chunks: Sequence[EvidenceChunk],
    embedder: Embedder,
    options: Optional[ValidatorOptions] = None,
    participants: Iterable[str] = (),
    thread_id: str = "",
) -> EvidenceIndex:
    """
    Embed chunks and build the lexical index.

    Args:
        chunks: Evidence chunks (their embedding field is filled in)
        embedder: Embedding provider
        options: Validator options (lexical index only if use_lexical)
        participants: Real thread participants, if any
        thread_id: Thread identifier, if any

    Returns:
        A new EvidenceIndex

    Raises:
        EvidenceIndexError: If embedding fails; no partial index is returned
    """
    options = options or ValidatorOptions.default()
    model_version = embedder.model_version()

    if not chunks:
        return EvidenceIndex([], {}, model_version, participants=participants, thread_id=thread_id)

    try:
        vectors = await embedder.embed_batch([chunk.text for chunk in chunks])
    except Exception as e:
        logger.error(f"Evidence embedding failed for {len(chunks)} chunks: {e}")
        raise EvidenceIndexError(f"failed to build evidence index: {e}") from e

    if len(vectors) != len(chunks):
        raise EvidenceIndexError(
            f"failed to build evidence index: embedder returned {len(vectors)} "
            f"vectors for {len(chunks)} chunks"
        )

    embeddings = {}
    for chunk, vector in zip(chunks, vectors):
        vector = np.array(vector, dtype=np.float32)
        vector.setflags(write=False)
        chunk.embedding = vector
        embeddings[chunk.id] = chunk.embedding

    bm25 = BM25Index.build(chunks) if options.use_lexical else None

    logger.debug(
        f"Built evidence index: {len(chunks)} chunks, lexical={bm25 is not None}, "
        f"model={model_version}"
    )
    return EvidenceIndex(
        chunks,
        embeddings,
        model_version,
        bm25=bm25,
        participants=participants,
        thread_id=thread_id,
    )
