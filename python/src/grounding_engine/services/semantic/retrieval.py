"""
Hybrid Retrieval.

Per unit: BM25 search and embedding cosine search, each asking for
2 x top_k candidates, merged by (chunk id, chunk text) keeping the
higher score, re-sorted, truncated to top_k and re-ranked. An embedding
failure here degrades to lexical-only results.
"""

import logging
from typing import Dict, List, Optional

import numpy as np

from ...models.evidence import Evidence
from ...models.thresholds import ValidatorOptions
from ...monitoring.metrics import semantic_embedding_fallbacks_total
from .embedding import Embedder, cosine_similarity
from .evidence_index import EvidenceIndex

logger = logging.getLogger(__name__)


def search_by_similarity(query: np.ndarray, index: EvidenceIndex, top_k: int) -> List[Evidence]:
    """Top-k chunks by cosine similarity to the query vector."""
    scored = [
        (cosine_similarity(query, chunk.embedding), chunk)
        for chunk in index.chunks
    ]
    scored.sort(key=lambda item: item[0], reverse=True)
    return [
        Evidence(
            chunk_id=chunk.id,
            chunk_text=chunk.text,
            similarity=similarity,
            rank=rank,
            metadata=chunk.metadata,
        )
        for rank, (similarity, chunk) in enumerate(scored[:top_k], start=1)
    ]


def merge_candidates(candidates: List[Evidence], top_k: int) -> List[Evidence]:
    """Deduplicate by chunk id and text (higher score wins), sort, truncate, re-rank."""
    unique: Dict[str, Evidence] = {}
    for candidate in candidates:
        key = f"{candidate.chunk_id}:{candidate.chunk_text}"
        existing = unique.get(key)
        if existing is None or candidate.similarity > existing.similarity:
            unique[key] = candidate

    ranked = sorted(unique.values(), key=lambda e: e.similarity, reverse=True)[:top_k]
    return [
        Evidence(
            chunk_id=e.chunk_id,
            chunk_text=e.chunk_text,
            similarity=e.similarity,
            rank=rank,
            metadata=e.metadata,
        )
        for rank, e in enumerate(ranked, start=1)
    ]


async def retrieve_candidates(
    text: str,
    index: EvidenceIndex,
    embedder: Embedder,
    options: Optional[ValidatorOptions] = None,
) -> List[Evidence]:
    """
    Hybrid lexical + semantic retrieval for one unit.

    Args:
        text: Sentence or claim
        index: Evidence index for this call
        embedder: Embedding provider
        options: Validator options

    Returns:
        Up to top_k evidence, best first
    """
    options = options or ValidatorOptions.default()
    pool = options.top_k * 2
    candidates: List[Evidence] = []

    if options.use_lexical and index.bm25 is not None:
        candidates.extend(index.bm25.search(text, pool))

    if not index.chunks:
        return merge_candidates(candidates, options.top_k)

    try:
        query = await embedder.embed(text)
    except Exception as e:
        # Retrieval-time embedding failure degrades to lexical results
        logger.warning(f"Embedding failed during retrieval, using lexical only: {e}")
        semantic_embedding_fallbacks_total.inc()
        return merge_candidates(candidates, options.top_k)

    candidates.extend(search_by_similarity(query, index, pool))
    return merge_candidates(candidates, options.top_k)
