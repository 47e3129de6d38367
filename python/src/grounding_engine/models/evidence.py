"""
Semantic validation models.

Evidence chunks and indices are scoped to a single validation call.
Result models are derived aggregates, recomputed on every call.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

import numpy as np
from pydantic import BaseModel, Field


class UnitStatus(str, Enum):
    """Grounding status of one sentence or claim."""
    GROUNDED = "grounded"
    MARGINAL = "marginal"
    UNGROUNDED = "ungrounded"


class Post(BaseModel):
    """A single post in a conversation thread."""

    id: str
    author: str = ""
    text: str
    timestamp: Optional[datetime] = None
    reply_to: str = ""


@dataclass
class EvidenceChunk:
    """
    A bounded span of evidence text.

    Attributes:
        id: Unique chunk id within the index
        text: Chunk text (one or more sentences)
        metadata: Source identity, e.g. {"post_id": ..., "author": ...}
        start_index: Approximate character start in the source text
        end_index: Approximate character end in the source text
        embedding: Vector, filled once when the index is built
    """
    id: str
    text: str
    metadata: Dict[str, str] = field(default_factory=dict)
    start_index: int = 0
    end_index: int = 0
    embedding: Optional[np.ndarray] = None


@dataclass
class Evidence:
    """A retrieved chunk with its retrieval score and 1-based rank."""
    chunk_id: str
    chunk_text: str
    similarity: float
    rank: int = 0
    metadata: Dict[str, str] = field(default_factory=dict)


@dataclass
class ValidationFlags:
    """Which checks passed for one unit."""
    has_semantic_support: bool = False
    has_lexical_support: bool = False
    entity_match: bool = False
    number_match: bool = False
    negation_consistent: bool = False
    attribution_correct: bool = False

    @property
    def required_checks_passed(self) -> bool:
        return (
            self.entity_match
            and self.number_match
            and self.negation_consistent
            and self.attribution_correct
        )

    @property
    def has_support(self) -> bool:
        return self.has_semantic_support or self.has_lexical_support


@dataclass
class UnitValidation:
    """Validation outcome for one sentence or claim."""
    text: str
    index: int
    status: UnitStatus
    best_similarity: float = 0.0
    top_evidence: List[Evidence] = field(default_factory=list)
    flags: ValidationFlags = field(default_factory=ValidationFlags)


class ValidationResult(BaseModel):
    """Aggregate semantic grounding result."""

    validations: List[UnitValidation] = Field(default_factory=list)
    total_units: int = 0
    grounded_count: int = 0
    marginal_count: int = 0
    ungrounded_count: int = 0
    grounding_score: float = 0.0
    weighted_score: float = 0.0
    strict_grounded_rate: float = 0.0
    passed: bool = False
    reasoning: str = ""
    model_version: str = ""


class ContentGroundingResult(ValidationResult):
    """Semantic result for a response checked against tool results."""

    response_length: int = 0
    tool_result_count: int = 0
    tool_results_provided: bool = False


class ThreadValidationResult(ValidationResult):
    """Semantic result for a thread summary."""

    thread_id: str = ""
    fabricated_participants: List[str] = Field(default_factory=list)
