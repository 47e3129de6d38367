"""
Reference Validator.

Exact-match validation of citations against a ReferenceIndex snapshot.
Matches become GROUNDED; everything else stays NOT_CHECKED so it can be
escalated to an external existence check. No substring or prefix match
ever marks a citation valid.
"""

import logging
from typing import List, Optional

from ...models.citation import Citation, CitationType, ValidationStatus
from ...models.reference_index import ReferenceIndex
from ...monitoring.metrics import citation_status_total

logger = logging.getLogger(__name__)


def zendesk_ticket_id(value: str) -> str:
    """Trailing path segment of a Zendesk citation ("zendesk://123" -> "123")."""
    return value.split("/")[-1]


class ReferenceValidator:
    """
    Validates citations against a per-request reference index.

    Example:
        >>> validator = ReferenceValidator(index)
        >>> validated = validator.validate(citations)
        >>> validated[0].validation_status
        <ValidationStatus.GROUNDED: 'grounded'>
    """

    FOUND_DETAILS = "Found in reference index"
    METADATA_DETAILS = "Metadata always grounded"
    NEEDS_API_DETAILS = "Not in tool results, needs API check"

    def __init__(self, reference_index: Optional[ReferenceIndex] = None):
        self.index = reference_index or ReferenceIndex()

    def validate(self, citations: List[Citation]) -> List[Citation]:
        """
        Validate citations in place and return them in the same order.

        Citations already holding a terminal status are left untouched.
        """
        for citation in citations:
            self.validate_one(citation)

        grounded = sum(
            1 for c in citations if c.validation_status == ValidationStatus.GROUNDED
        )
        logger.debug(f"Reference validation: {grounded}/{len(citations)} grounded")
        return citations

    def validate_one(self, citation: Citation) -> Citation:
        if citation.validation_status.is_terminal:
            return citation

        if citation.type == CitationType.METADATA:
            citation.resolve(ValidationStatus.GROUNDED, self.METADATA_DETAILS, is_valid=True)
        elif self.in_index(citation):
            citation.resolve(ValidationStatus.GROUNDED, self.FOUND_DETAILS, is_valid=True)
        else:
            citation.is_valid = False
            citation.validation_details = self.NEEDS_API_DETAILS
            citation_status_total.labels(status=ValidationStatus.NOT_CHECKED.value).inc()
            return citation

        citation_status_total.labels(status=citation.validation_status.value).inc()
        return citation

    def in_index(self, citation: Citation) -> bool:
        """Exact-key lookup of a citation in the index."""
        if citation.type == CitationType.JIRA_TICKET:
            return citation.value in self.index.jira_tickets
        if citation.type == CitationType.GITHUB:
            return citation.value in self.index.github_issues
        if citation.type == CitationType.URL:
            return self.index.has_url(citation.value)
        if citation.type == CitationType.ZENDESK:
            ticket_id = zendesk_ticket_id(citation.value)
            return bool(ticket_id) and ticket_id in self.index.zendesk_tickets
        # ProductBoard and UserVoice are never indexed
        return False
