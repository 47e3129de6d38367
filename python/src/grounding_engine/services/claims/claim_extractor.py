"""
Claim Extractor.

Pulls role-specific metadata claims attached to cited entities out of
generated text. Two passes:

1. Inline metadata: "MM-12345 (Priority: high | Segments: enterprise, smb)"
2. Natural language: "MM-12345 is high priority" and the reverse form
   "enterprise customer MM-12345"

Short and long GitHub forms ("#123" / "owner/repo#123") refer to the
same citation.
"""

import logging
import re
from typing import List, Optional

from ...core.config import settings
from ...models.citation import Citation, MetadataClaim
from ...models.role_metadata import ExtractionPatterns, RoleMetadata

logger = logging.getLogger(__name__)


def find_citation_by_value(citations: List[Citation], value: str) -> Optional[Citation]:
    """
    Find the citation an entity reference points at.

    Matches case-insensitively, and treats "#123" and "owner/repo#123"
    as the same entity in either direction.
    """
    value_lower = value.lower()
    for citation in citations:
        citation_lower = citation.value.lower()
        if citation_lower == value_lower:
            return citation
        if value_lower.startswith("#") and citation_lower.endswith(value_lower):
            return citation
        if citation_lower.startswith("#") and value_lower.endswith(citation_lower):
            return citation
    return None


class ClaimExtractor:
    """
    Extracts metadata claims using one role's extraction patterns.

    A missing role makes extraction a no-op passthrough.

    Example:
        >>> extractor = ClaimExtractor(PMMetadata())
        >>> citations = extractor.extract(text, citations)
        >>> citations[0].metadata_claims[0]
        MetadataClaim(field='priority', claimed_value='high', actual_value='', is_accurate=False)
    """

    PART_SEPARATOR = re.compile(r'\s*[|]\s*')

    def __init__(
        self,
        role_metadata: Optional[RoleMetadata] = None,
        ticket_prefix: Optional[str] = None,
        patterns: Optional[ExtractionPatterns] = None,
    ):
        """
        Initialize extractor.

        Args:
            role_metadata: Role whose patterns to use
            ticket_prefix: Ticket project key (default: settings.TICKET_PREFIX)
            patterns: Explicit patterns, overriding role_metadata
        """
        if patterns is None and role_metadata is not None:
            patterns = role_metadata.get_extraction_patterns()
        self.patterns = patterns

        prefix = re.escape(ticket_prefix or settings.TICKET_PREFIX)
        self.entity_pattern = rf'({prefix}-\d+|#\d+|[a-zA-Z0-9-]+/[a-zA-Z0-9-]+#\d+)'
        self.inline_pattern = re.compile(
            self.entity_pattern + r'\s*\(\s*([^)]+)\)', re.IGNORECASE
        )
        self.short_entity_pattern = rf'({prefix}-\d+|#\d+)'

    def extract(self, text: str, citations: List[Citation]) -> List[Citation]:
        """
        Attach claims found in text to the matching citations.

        Args:
            text: Generated response text
            citations: Extracted citations (mutated in place)

        Returns:
            The same citations
        """
        if self.patterns is None:
            return citations

        self._extract_inline(text, citations)
        self._extract_value_patterns(text, citations)

        total = sum(len(c.metadata_claims) for c in citations)
        logger.debug(f"Extracted {total} metadata claims")
        return citations

    def parse_metadata(self, metadata: str) -> List[MetadataClaim]:
        """Parse "Priority: high | Segments: enterprise, smb" into claims."""
        claims: List[MetadataClaim] = []
        if self.patterns is None or not self.patterns.inline_field_pattern:
            return claims

        field_value = re.compile(self.patterns.inline_field_pattern)

        for part in self.PART_SEPARATOR.split(metadata):
            part = part.strip()
            if not part:
                continue

            match = field_value.search(part)
            if not match:
                continue

            field = match.group(1).lower()
            field = self.patterns.field_aliases.get(field, field)

            for value in match.group(2).strip().split(","):
                value = value.strip()
                if value:
                    claims.append(MetadataClaim(field=field, claimed_value=value.lower()))

        return claims

    def _extract_inline(self, text: str, citations: List[Citation]) -> None:
        if not self.patterns.inline_field_pattern:
            return

        for match in self.inline_pattern.finditer(text):
            citation = find_citation_by_value(citations, match.group(1))
            if citation is None:
                continue
            citation.metadata_claims.extend(self.parse_metadata(match.group(2)))

    def _extract_value_patterns(self, text: str, citations: List[Citation]) -> None:
        for field_name, value_pattern in self.patterns.value_patterns.items():
            # "MM-12345 is high priority"
            forward = re.compile(
                rf'{self.entity_pattern}\s+(?:is|has|shows?)\s+{value_pattern}\s+{field_name}',
                re.IGNORECASE,
            )
            for match in forward.finditer(text):
                citation = find_citation_by_value(citations, match.group(1))
                if citation is None:
                    continue
                if any(c.field == field_name for c in citation.metadata_claims):
                    continue
                citation.metadata_claims.append(
                    MetadataClaim(field=field_name, claimed_value=match.group(2).lower())
                )

            # "enterprise customer MM-12345", "high priority issue #123"
            reverse = re.compile(
                rf'(?:{value_pattern})\s+(?:issue|ticket|customer|item)\s+{self.short_entity_pattern}',
                re.IGNORECASE,
            )
            for match in reverse.finditer(text):
                value = match.group(1).lower()
                citation = find_citation_by_value(citations, match.group(2))
                if citation is None:
                    continue
                if any(
                    c.field == field_name and value in c.claimed_value.lower()
                    for c in citation.metadata_claims
                ):
                    continue
                citation.metadata_claims.append(
                    MetadataClaim(field=field_name, claimed_value=value)
                )
