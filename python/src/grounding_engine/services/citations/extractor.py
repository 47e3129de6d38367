"""
Citation Extractor.

Scans generated text line by line for citation forms:
- Ticket keys: MM-12345
- GitHub references: owner/repo#123 and bare #123
- Generic URLs (GitHub and ProductBoard URLs excluded)
- Vendor pseudo-URIs: productboard://, zendesk://, uservoice://

Citations are deduplicated keeping the first occurrence, and a ticket URL
on the tracker host collapses into an already-extracted ticket key.
Extraction never fails; unmatched text simply yields fewer citations.
"""

import logging
import re
from typing import Dict, List, Optional

from ...core.config import settings
from ...models.citation import Citation, CitationType, MetadataUsage

logger = logging.getLogger(__name__)


class CitationExtractor:
    """
    Extracts citations from free text.

    Example:
        >>> extractor = CitationExtractor()
        >>> citations = extractor.extract("See MM-123 and mattermost/server#45")
        >>> [(c.type.value, c.value) for c in citations]
        [('jira_ticket', 'MM-123'), ('github', 'mattermost/server#45')]
    """

    MAX_CONTEXT_LENGTH = 100

    GITHUB_PATTERN = re.compile(r'\b([a-zA-Z0-9_-]+/[a-zA-Z0-9_-]+#\d+)\b', re.IGNORECASE)
    SHORT_GITHUB_PATTERN = re.compile(r'(?<![\w/#&])(#\d+)\b')
    URL_PATTERN = re.compile(r'https?://[^\s)]+')
    PRODUCTBOARD_PATTERN = re.compile(r'productboard://[a-zA-Z0-9_-]+', re.IGNORECASE)
    ZENDESK_PATTERN = re.compile(r'zendesk://\d+', re.IGNORECASE)
    USERVOICE_PATTERN = re.compile(r'uservoice://\d+', re.IGNORECASE)

    # Sentence punctuation that trails a URL in prose
    URL_TRAILING_PUNCTUATION = '.,;:!?\'"'

    # URLs owned by more specific citation forms
    EXCLUDED_URL_MARKERS = ("github.com", "productboard")

    def __init__(
        self,
        ticket_prefix: Optional[str] = None,
        ticket_host: Optional[str] = None,
    ):
        """
        Initialize extractor.

        Args:
            ticket_prefix: Ticket project key (default: settings.TICKET_PREFIX)
            ticket_host: Tracker host for URL collapse (default: settings.TICKET_HOST)
        """
        self.ticket_prefix = ticket_prefix or settings.TICKET_PREFIX
        self.ticket_host = ticket_host or settings.TICKET_HOST

        prefix = re.escape(self.ticket_prefix)
        self.ticket_pattern = re.compile(rf'\b({prefix}-\d+)\b', re.IGNORECASE)
        self.ticket_url_pattern = re.compile(
            rf'https?://{re.escape(self.ticket_host)}/browse/({prefix}-\d+)',
            re.IGNORECASE,
        )

    def extract(self, text: str) -> List[Citation]:
        """
        Extract all citations from text.

        Args:
            text: Generated response text

        Returns:
            Deduplicated citations in order of first appearance
        """
        citations: List[Citation] = []

        for line_index, line in enumerate(text.split("\n")):
            line_number = line_index + 1
            context = self._truncate(line)

            def add(citation_type: CitationType, value: str) -> None:
                citations.append(Citation(
                    type=citation_type,
                    value=value,
                    line_number=line_number,
                    context=context,
                ))

            for match in self.ticket_pattern.finditer(line):
                add(CitationType.JIRA_TICKET, match.group(1).upper())

            for match in self.GITHUB_PATTERN.finditer(line):
                add(CitationType.GITHUB, match.group(1))

            for match in self.SHORT_GITHUB_PATTERN.finditer(line):
                add(CitationType.GITHUB, match.group(1))

            for match in self.URL_PATTERN.finditer(line):
                url = match.group(0).rstrip(self.URL_TRAILING_PUNCTUATION)
                if any(marker in url for marker in self.EXCLUDED_URL_MARKERS):
                    continue
                add(CitationType.URL, url)

            for match in self.PRODUCTBOARD_PATTERN.finditer(line):
                add(CitationType.PRODUCTBOARD, match.group(0))

            for match in self.ZENDESK_PATTERN.finditer(line):
                add(CitationType.ZENDESK, match.group(0))

            for match in self.USERVOICE_PATTERN.finditer(line):
                add(CitationType.USERVOICE, match.group(0))

        deduplicated = self._deduplicate(citations)
        logger.debug(
            f"Extracted {len(deduplicated)} citations "
            f"({len(citations) - len(deduplicated)} duplicates dropped)"
        )
        return deduplicated

    def ticket_from_url(self, url: str) -> Optional[str]:
        """Upper-cased ticket key if url is a tracker browse link, else None."""
        match = self.ticket_url_pattern.search(url)
        if match:
            return match.group(1).upper()
        return None

    def _deduplicate(self, citations: List[Citation]) -> List[Citation]:
        seen = set()
        tickets = set()
        deduplicated: List[Citation] = []

        for citation in citations:
            if citation.type == CitationType.JIRA_TICKET:
                tickets.add(citation.value)

            key = citation.dedup_key
            if key not in seen:
                seen.add(key)
                deduplicated.append(citation)

        # Same ticket cited as key and as tracker URL counts once
        filtered = []
        for citation in deduplicated:
            if citation.type == CitationType.URL:
                ticket = self.ticket_from_url(citation.value)
                if ticket and ticket in tickets:
                    continue
            filtered.append(citation)

        return filtered

    def _truncate(self, line: str) -> str:
        if len(line) <= self.MAX_CONTEXT_LENGTH:
            return line
        return line[:self.MAX_CONTEXT_LENGTH] + "..."


def extract_citations(text: str) -> List[Citation]:
    """Extract citations with a settings-configured extractor."""
    return CitationExtractor().extract(text)


def analyze_metadata_usage(citations: List[Citation]) -> MetadataUsage:
    """
    Count metadata claim fields across citations.

    Returns:
        MetadataUsage with per-field counts and the number of distinct fields
    """
    field_counts: Dict[str, int] = {}
    for citation in citations:
        for claim in citation.metadata_claims:
            field_counts[claim.field] = field_counts.get(claim.field, 0) + 1

    return MetadataUsage(field_counts=field_counts, total_fields=len(field_counts))
