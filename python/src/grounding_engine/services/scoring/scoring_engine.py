"""
Citation Grounding Scoring Engine.

Aggregates citation validity, claim accuracy and metadata usage into one
score with a pass/fail decision and a deterministic reasoning string.

Scoring:
- citation_score: valid rate over non-metadata citations, or 0 when
  nothing was validated (absence of validation is never assumed good)
- metadata_score: distinct metadata fields used / 5, capped at 1.0
- overall_score: citation_weight * citation_score + metadata_weight * metadata_score
- passed: validation occurred AND valid rate >= min_citation_rate
"""

import logging
from typing import List, Optional

from ...models.citation import (
    Citation,
    CitationType,
    GroundingResult,
    MetadataUsage,
    ValidationStatus,
)
from ...models.thresholds import Thresholds
from ...monitoring.metrics import evaluations_total, overall_score
from ..citations.extractor import analyze_metadata_usage

logger = logging.getLogger(__name__)

# Most roles expose four or five metadata fields
MAX_EXPECTED_FIELDS = 5.0

_VALID_STATUSES = {ValidationStatus.GROUNDED, ValidationStatus.UNGROUNDED_VALID}
_INVALID_STATUSES = {ValidationStatus.UNGROUNDED_BROKEN, ValidationStatus.FABRICATED}


def _citation_score(non_metadata: int, valid_rate: float, validated: bool) -> float:
    if non_metadata == 0 or not validated:
        return 0.0
    return valid_rate


def _metadata_score(usage: MetadataUsage) -> float:
    if usage.total_fields == 0:
        return 0.0
    return min(usage.total_fields / MAX_EXPECTED_FIELDS, 1.0)


def calculate_grounding_score(
    response: str,
    citations: List[Citation],
    thresholds: Optional[Thresholds] = None,
) -> GroundingResult:
    """
    Score a response's citations.

    Citations still NOT_CHECKED count toward the totals but are neither
    valid nor invalid. Metadata citations are excluded from rate
    denominators.

    Args:
        response: Full response text (used for citation density)
        citations: Validated citations
        thresholds: Pass/fail thresholds (default: Thresholds.default())

    Returns:
        GroundingResult

    Example:
        >>> result = calculate_grounding_score(text, citations, Thresholds.default())
        >>> result.reasoning
        'Citations: 3 (10.0 per 100 words), Grounded: 3, ...'
    """
    thresholds = thresholds or Thresholds.default()

    by_type = {}
    for citation in citations:
        by_type[citation.type] = by_type.get(citation.type, 0) + 1

    total = len(citations)
    word_count = len(response.split())
    density = total / word_count * 100 if word_count else 0.0
    usage = analyze_metadata_usage(citations)

    counts = {status: 0 for status in ValidationStatus}
    valid = invalid = 0
    validated = False

    for citation in citations:
        if citation.type == CitationType.METADATA:
            continue
        status = citation.validation_status
        counts[status] += 1
        if status == ValidationStatus.NOT_CHECKED:
            continue
        validated = True
        if status in _VALID_STATUSES:
            valid += 1
        elif status in _INVALID_STATUSES:
            invalid += 1

    grounded = counts[ValidationStatus.GROUNDED]
    ungrounded_valid = counts[ValidationStatus.UNGROUNDED_VALID]
    ungrounded_broken = counts[ValidationStatus.UNGROUNDED_BROKEN]
    fabricated = counts[ValidationStatus.FABRICATED]
    api_errors = counts[ValidationStatus.API_ERROR]

    claims = [claim for citation in citations for claim in citation.metadata_claims]
    accurate = sum(1 for claim in claims if claim.is_accurate)
    inaccurate = len(claims) - accurate
    claim_accuracy = accurate / len(claims) if claims else 0.0

    non_metadata = total - by_type.get(CitationType.METADATA, 0)
    valid_rate = valid / non_metadata if non_metadata else 0.0
    fabrication_rate = fabricated / non_metadata if non_metadata else 0.0

    score = (
        thresholds.citation_weight * _citation_score(non_metadata, valid_rate, validated)
        + thresholds.metadata_weight * _metadata_score(usage)
    )
    passed = validated and valid_rate >= thresholds.min_citation_rate

    # Reasoning
    parts = [f"Citations: {total} ({density:.1f} per 100 words)"]
    if validated:
        parts.append(
            f"Grounded: {grounded}, Ungrounded-valid: {ungrounded_valid}, "
            f"Ungrounded-broken: {ungrounded_broken}, Fabricated: {fabricated}, "
            f"API-errors: {api_errors}"
        )
        parts.append(f"Valid rate: {valid_rate * 100:.1f}%")
        if fabricated:
            parts.append(f"Fabrication rate: {fabrication_rate * 100:.1f}%")
    if claims:
        parts.append(
            f"Claims: {accurate} accurate, {inaccurate} inaccurate "
            f"({claim_accuracy * 100:.1f}% accuracy)"
        )
    parts.append(f"Metadata fields: {usage.total_fields}")
    parts.append(f"Score: {score:.2f}")
    reasoning = ", ".join(parts)

    if not validated:
        reasoning += " [FAIL: No validation performed - tool results or API clients required]"
    elif not passed:
        reasoning += (
            f" [FAIL: {valid_rate * 100:.1f}% valid rate < threshold "
            f"{thresholds.min_citation_rate * 100:.1f}%]"
        )

    evaluations_total.labels(result="pass" if passed else "fail").inc()
    overall_score.observe(score)

    logger.debug(f"Grounding score {score:.2f} (pass={passed}): {reasoning}")

    return GroundingResult(
        total_citations=total,
        citations_by_type=by_type,
        citation_density=density,
        metadata_field_counts=usage.field_counts,
        metadata_total_fields=usage.total_fields,
        valid_citations=valid,
        invalid_citations=invalid,
        valid_citation_rate=valid_rate,
        grounded_citations=grounded,
        ungrounded_valid_urls=ungrounded_valid,
        ungrounded_broken_urls=ungrounded_broken,
        fabricated_citations=fabricated,
        api_errors=api_errors,
        fabrication_rate=fabrication_rate,
        total_claims=len(claims),
        accurate_claims=accurate,
        inaccurate_claims=inaccurate,
        claim_accuracy_rate=claim_accuracy,
        overall_score=score,
        passed=passed,
        reasoning=reasoning,
        citations=citations,
    )
