"""
Claim Validator.

Checks metadata claims against the ground truth bound to each entity in
the reference index. Unknown entities leave their claims unvalidated.
"""

import logging
from typing import List

from ...models.citation import Citation, CitationType, MetadataClaim
from ...models.reference_index import ReferenceIndex
from ...models.role_metadata import RoleMetadata

logger = logging.getLogger(__name__)


def validate_claim(claim: MetadataClaim, metadata: RoleMetadata) -> MetadataClaim:
    """
    Fill in actual_value and is_accurate for one claim.

    Accuracy is case-insensitive equality against any ground-truth value,
    and is never true when the field has no values.
    """
    claim.actual_value = ""
    claim.is_accurate = False

    actual_values = metadata.get_field_value(claim.field)
    if not actual_values:
        return claim

    claim.actual_value = ", ".join(actual_values)
    claimed = claim.claimed_value.lower()
    claim.is_accurate = any(actual.lower() == claimed for actual in actual_values)
    return claim


def validate_metadata_claims(
    citations: List[Citation],
    reference_index: ReferenceIndex,
) -> List[Citation]:
    """
    Validate every claim attached to ticket and GitHub citations.

    Args:
        citations: Citations with extracted claims (mutated in place)
        reference_index: Per-request reference snapshot

    Returns:
        The same citations
    """
    checked = 0
    for citation in citations:
        if not citation.metadata_claims:
            continue

        metadata = None
        if citation.type == CitationType.JIRA_TICKET:
            ref = reference_index.jira_tickets.get(citation.value)
            metadata = ref.metadata if ref else None
        elif citation.type == CitationType.GITHUB:
            ref = reference_index.github_issues.get(citation.value)
            metadata = ref.metadata if ref else None

        if metadata is None:
            continue

        for claim in citation.metadata_claims:
            validate_claim(claim, metadata)
            checked += 1

    logger.debug(f"Validated {checked} metadata claims")
    return citations
