"""
API Verifier.

Escalates citations the reference index could not ground to external
existence checks. Only NOT_CHECKED citations are escalated, so a
grounded citation never costs a network call.

Outcomes:
- exists        -> UNGROUNDED_VALID ("Verified via API")
- not found     -> FABRICATED ("Does not exist in external system")
- error/timeout -> API_ERROR ("API error: ...")
- bad reference -> API_ERROR ("Parse error: ...")

Checks run concurrently, each under its own 5 second deadline. A failing
check never aborts the batch.
"""

import asyncio
import logging
from typing import Awaitable, List, Optional, Tuple

from ...clients.existence import APIClients
from ...exceptions import CitationParseError
from ...models.citation import Citation, CitationType, ValidationStatus
from ...models.reference_index import ReferenceIndex
from ...monitoring.metrics import api_checks_total
from .reference_validator import ReferenceValidator

logger = logging.getLogger(__name__)


def parse_github_ref(ref: str) -> Tuple[str, str, int]:
    """
    Parse an "owner/repo#123" reference.

    Args:
        ref: GitHub reference string

    Returns:
        (owner, repo, number)

    Raises:
        CitationParseError: Short "#123" form, or any other malformed reference
    """
    if "/" in ref and "#" in ref:
        parts = ref.split("/")
        if len(parts) != 2:
            raise CitationParseError(ref, "invalid GitHub reference format")
        owner = parts[0]
        repo_parts = parts[1].split("#")
        if len(repo_parts) != 2:
            raise CitationParseError(ref, "invalid GitHub reference format")
        repo, number_text = repo_parts
        if not number_text.isdigit():
            raise CitationParseError(number_text, "invalid issue number")
        return owner, repo, int(number_text)

    if ref.startswith("#"):
        raise CitationParseError(ref, "cannot verify short GitHub reference without owner/repo")

    raise CitationParseError(ref, "invalid GitHub reference format")


class APIVerifier:
    """
    Reference validation followed by external existence checks.

    Example:
        >>> verifier = APIVerifier(index, APIClients(github=GitHubExistenceClient()))
        >>> citations = await verifier.validate(citations)
    """

    API_TIMEOUT_SECONDS = 5.0

    def __init__(
        self,
        reference_index: Optional[ReferenceIndex] = None,
        clients: Optional[APIClients] = None,
    ):
        self.reference_validator = ReferenceValidator(reference_index)
        self.clients = clients

    async def validate(self, citations: List[Citation]) -> List[Citation]:
        """
        Validate citations against the index, then escalate the rest.

        Args:
            citations: Citations to validate (mutated in place)

        Returns:
            The same citations, same order
        """
        self.reference_validator.validate(citations)

        if self.clients is None:
            return citations

        pending = [
            c for c in citations
            if c.validation_status == ValidationStatus.NOT_CHECKED
        ]
        if not pending:
            return citations

        logger.info(f"Escalating {len(pending)} ungrounded citations to API verification")
        await asyncio.gather(*(self.verify(c) for c in pending))
        return citations

    async def verify(self, citation: Citation) -> Citation:
        """Run the external existence check for a single NOT_CHECKED citation."""
        if citation.validation_status != ValidationStatus.NOT_CHECKED:
            return citation

        try:
            check = self._existence_check(citation)
        except CitationParseError as e:
            citation.resolve(
                ValidationStatus.API_ERROR,
                f"Parse error: {e}",
                verified_via_api=True,
            )
            api_checks_total.labels(outcome="parse_error").inc()
            return citation

        if check is None:
            return citation

        try:
            exists = await asyncio.wait_for(check, timeout=self.API_TIMEOUT_SECONDS)
        except asyncio.TimeoutError:
            logger.warning(f"API check timed out for {citation.value}")
            citation.resolve(
                ValidationStatus.API_ERROR,
                f"API error: timed out after {self.API_TIMEOUT_SECONDS:.0f}s",
                verified_via_api=True,
            )
            api_checks_total.labels(outcome="error").inc()
            return citation
        except Exception as e:
            # One failing check must not abort the batch
            logger.warning(f"API check failed for {citation.value}: {e}")
            citation.resolve(
                ValidationStatus.API_ERROR,
                f"API error: {e}",
                verified_via_api=True,
            )
            api_checks_total.labels(outcome="error").inc()
            return citation

        if exists:
            citation.resolve(
                ValidationStatus.UNGROUNDED_VALID,
                "Verified via API",
                is_valid=True,
                verified_via_api=True,
            )
            api_checks_total.labels(outcome="exists").inc()
        else:
            citation.resolve(
                ValidationStatus.FABRICATED,
                "Does not exist in external system",
                is_valid=False,
                verified_via_api=True,
            )
            api_checks_total.labels(outcome="not_found").inc()

        return citation

    def _existence_check(self, citation: Citation) -> Optional[Awaitable[bool]]:
        """
        Pick the check for a citation type.

        Returns None when no client covers the citation; it then stays
        NOT_CHECKED.
        """
        if citation.type == CitationType.JIRA_TICKET:
            if self.clients.jira is None:
                return None
            return self.clients.jira.issue_exists(citation.value)

        if citation.type == CitationType.GITHUB:
            if self.clients.github is None:
                return None
            owner, repo, number = parse_github_ref(citation.value)
            return self.clients.github.issue_exists(owner, repo, number)

        if citation.type == CitationType.URL:
            if self.clients.urls is None:
                return None
            return self.clients.urls.exists(citation.value)

        return None
