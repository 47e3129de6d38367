"""
Content Grounding Validator.

Checks whether an assistant response is supported by the tool results
it was generated from. A response produced without tool results should
score low; one produced from them should score high.
"""

import logging
from typing import Optional, Sequence

from ...models.evidence import ContentGroundingResult, ValidationResult
from ...models.thresholds import ValidationThresholds, ValidatorOptions
from ...monitoring.metrics import semantic_validations_total
from .embedding import Embedder
from .evidence_index import build_evidence_index
from .text import chunk_texts, split_into_sentences
from .unit_validator import tally, validate_units

logger = logging.getLogger(__name__)


def _build_reasoning(total: int, grounded: int, marginal: int, ungrounded: int, score: float, passed: bool) -> str:
    reasoning = (
        f"Content grounding: {grounded}/{total} claims grounded ({score * 100:.1f}%), "
        f"{marginal} marginal, {ungrounded} ungrounded"
    )
    if passed:
        reasoning += ". PASS - Content is well-grounded in evidence"
    else:
        reasoning += ". FAIL - Content contains ungrounded claims"
    return reasoning


async def validate_text_grounding(
    claim_text: str,
    evidence_texts: Sequence[str],
    embedder: Embedder,
    thresholds: Optional[ValidationThresholds] = None,
    options: Optional[ValidatorOptions] = None,
) -> ValidationResult:
    """
    Validate each sentence of claim_text against evidence_texts.

    Args:
        claim_text: Text whose sentences are the claims
        evidence_texts: Source texts the claims should be grounded in
        embedder: Embedding provider
        thresholds: Semantic thresholds (default: ValidationThresholds.default())
        options: Validator options (default: ValidatorOptions.default())

    Returns:
        ValidationResult with one UnitValidation per sentence

    Raises:
        EvidenceIndexError: If evidence embedding fails

    Example:
        >>> result = await validate_text_grounding(
        ...     "Redis was approved for caching.",
        ...     ["The team approved Redis for caching."],
        ...     embedder,
        ... )
        >>> result.passed
        True
    """
    thresholds = thresholds or ValidationThresholds.default()
    options = options or ValidatorOptions.default()

    claims = split_into_sentences(claim_text)
    if not claims:
        return ValidationResult(
            grounding_score=1.0,
            weighted_score=1.0,
            strict_grounded_rate=1.0,
            passed=True,
            reasoning="Empty claim text - no claims to validate",
            model_version=embedder.model_version(),
        )

    chunks = chunk_texts(evidence_texts, options.chunk_size, "evidence")
    index = await build_evidence_index(chunks, embedder, options)

    validations = await validate_units(claims, index, embedder, thresholds, options)
    counts = tally(validations)
    passed = counts.meets(thresholds)

    logger.info(
        f"Content grounding: {counts.grounded}/{counts.total} grounded, "
        f"{counts.marginal} marginal against {len(chunks)} evidence chunks"
    )

    return ValidationResult(
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
            passed,
        ),
        model_version=embedder.model_version(),
    )


async def validate_content_grounding(
    response: str,
    tool_results: Sequence[str],
    embedder: Embedder,
    thresholds: Optional[ValidationThresholds] = None,
    options: Optional[ValidatorOptions] = None,
) -> ContentGroundingResult:
    """
    Validate an assistant response against its tool results.

    Uses the content presets unless thresholds/options are given.
    """
    result = await validate_text_grounding(
        response,
        tool_results,
        embedder,
        thresholds or ValidationThresholds.content(),
        options or ValidatorOptions.content(),
    )
    semantic_validations_total.labels(
        kind="content", result="pass" if result.passed else "fail"
    ).inc()

    return ContentGroundingResult(
        **result.model_dump(exclude={"validations"}),
        validations=result.validations,
        response_length=len(response),
        tool_result_count=len(tool_results),
        tool_results_provided=len(tool_results) > 0,
    )
