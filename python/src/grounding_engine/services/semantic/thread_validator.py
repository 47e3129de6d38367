"""
Thread Summary Validator.

Checks a generated thread summary sentence by sentence against the
thread's posts, and fails any summary that names someone who never
posted in the thread.
"""

import logging
from typing import List, Optional, Sequence

from ...models.evidence import Post, ThreadValidationResult
from ...models.thresholds import ValidationThresholds, ValidatorOptions
from ...monitoring.metrics import semantic_validations_total
from .embedding import Embedder
from .evidence_index import build_evidence_index
from .text import (
    chunk_posts,
    extract_participant_names,
    extract_participants,
    find_fabricated_participants,
    split_into_sentences,
)
from .unit_validator import tally, validate_units

logger = logging.getLogger(__name__)


def thread_id_for(posts: Sequence[Post]) -> str:
    """Root post ID of the thread, or the first post's own ID."""
    if not posts:
        return ""
    first = posts[0]
    return first.reply_to or first.id


def _build_reasoning(
    total: int,
    grounded: int,
    marginal: int,
    ungrounded: int,
    score: float,
    fabricated: List[str],
    passed: bool,
) -> str:
    reasoning = (
        f"Thread summary grounding: {grounded}/{total} sentences grounded ({score * 100:.1f}%), "
        f"{marginal} marginal, {ungrounded} ungrounded"
    )
    if fabricated:
        reasoning += f". Fabricated participants: [{', '.join(fabricated)}]"
    if passed:
        reasoning += ". PASS - Summary is well-grounded in thread content"
    else:
        reasoning += ". FAIL - Summary contains ungrounded or fabricated content"
    return reasoning


async def validate_thread_summary(
    summary: str,
    posts: Sequence[Post],
    embedder: Embedder,
    thresholds: Optional[ValidationThresholds] = None,
    options: Optional[ValidatorOptions] = None,
) -> ThreadValidationResult:
    """
    Validate a thread summary against the thread's posts.

    Args:
        summary: Generated summary text
        posts: Posts of the summarized thread, in order
        embedder: Embedding provider
        thresholds: Semantic thresholds (default: ValidationThresholds.default())
        options: Validator options (default: ValidatorOptions.default())

    Returns:
        ThreadValidationResult; fails whenever a fabricated participant is named

    Raises:
        EvidenceIndexError: If evidence embedding fails
    """
    thresholds = thresholds or ValidationThresholds.default()
    options = options or ValidatorOptions.default()
    thread_id = thread_id_for(posts)

    sentences = split_into_sentences(summary)
    if not sentences:
        return ThreadValidationResult(
            grounding_score=1.0,
            weighted_score=1.0,
            strict_grounded_rate=1.0,
            passed=True,
            reasoning="Empty summary - no claims to validate",
            model_version=embedder.model_version(),
            thread_id=thread_id,
        )

    index = await build_evidence_index(
        chunk_posts(posts, options.chunk_size),
        embedder,
        options,
        participants=extract_participants(posts),
        thread_id=thread_id,
    )

    validations = await validate_units(sentences, index, embedder, thresholds, options)
    fabricated = find_fabricated_participants(
        extract_participant_names(summary), set(index.participants)
    )

    counts = tally(validations)
    passed = counts.meets(thresholds) and not fabricated

    if fabricated:
        logger.warning(f"Thread {thread_id} summary names non-participants: {fabricated}")

    semantic_validations_total.labels(kind="thread", result="pass" if passed else "fail").inc()

    return ThreadValidationResult(
        validations=validations,
        total_units=counts.total,
        grounded_count=counts.grounded,
        marginal_count=counts.marginal,
        ungrounded_count=counts.ungrounded,
        grounding_score=counts.grounding_score,
        weighted_score=counts.weighted_score,
        strict_grounded_rate=counts.strict_grounded_rate,
        passed=passed,
        reasoning=_build_reasoning(
            counts.total,
            counts.grounded,
            counts.marginal,
            counts.ungrounded,
            counts.grounding_score,
            fabricated,
            passed,
        ),
        model_version=embedder.model_version(),
        thread_id=thread_id,
        fabricated_participants=fabricated,
    )
