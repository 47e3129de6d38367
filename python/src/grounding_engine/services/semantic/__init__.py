"""Semantic grounding: chunking, hybrid retrieval, heuristics and per-unit validation."""

from .bm25 import BM25Index, lexical_score, tokenize
from .content_validator import validate_content_grounding, validate_text_grounding
from .embedding import Embedder, OpenAIEmbedder, cosine_similarity
from .evidence_index import EvidenceIndex, build_evidence_index
from .retrieval import retrieve_candidates
from .text import chunk_posts, chunk_texts, split_into_sentences
from .thread_validator import validate_thread_summary
from .unit_validator import UnitState, UnitStateMachine, validate_unit

__all__ = [
    "BM25Index",
    "Embedder",
    "EvidenceIndex",
    "OpenAIEmbedder",
    "UnitState",
    "UnitStateMachine",
    "build_evidence_index",
    "chunk_posts",
    "chunk_texts",
    "cosine_similarity",
    "lexical_score",
    "retrieve_candidates",
    "split_into_sentences",
    "tokenize",
    "validate_content_grounding",
    "validate_text_grounding",
    "validate_thread_summary",
    "validate_unit",
]
