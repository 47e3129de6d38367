"""
Citation Grounding Pipeline.

Runs the citation side of grounding validation end to end:

1. Extract citations from the response
2. Attach role-specific metadata claims
3. Validate against the reference index, escalating the rest to APIs
4. Probe remaining URLs for liveness (optional)
5. Check metadata claims against ground truth
6. Score

Every stage mutates the same citation list; nothing is cached between
calls.
"""

import logging
import time
from typing import List, Optional

from ..core.config import settings
from ..models.citation import Citation, GroundingResult
from ..models.reference_index import ReferenceIndex
from ..models.role_metadata import RoleMetadata
from ..models.thresholds import Thresholds
from ..monitoring.metrics import citations_total
from ..clients.existence import APIClients
from .citations.api_verifier import APIVerifier
from .citations.extractor import CitationExtractor
from .citations.reference_validator import ReferenceValidator
from .citations.url_checker import URLAccessibilityChecker
from .claims.claim_extractor import ClaimExtractor
from .claims.claim_validator import validate_metadata_claims
from .claims.registry import RoleRegistry, default_role_registry
from .scoring.scoring_engine import calculate_grounding_score

logger = logging.getLogger(__name__)


def validate_citations_with_claims(
    response: str,
    citations: List[Citation],
    reference_index: ReferenceIndex,
    role_metadata: Optional[RoleMetadata] = None,
) -> List[Citation]:
    """
    Extract claims, validate citations against the index, then check claims.

    No network access; citations missing from the index stay NOT_CHECKED.
    """
    ClaimExtractor(role_metadata).extract(response, citations)
    ReferenceValidator(reference_index).validate(citations)
    return validate_metadata_claims(citations, reference_index)


class GroundingEvaluator:
    """
    End-to-end citation grounding for one response.

    Example:
        >>> evaluator = GroundingEvaluator(index, role="pm", api_clients=APIClients.from_settings())
        >>> result = await evaluator.evaluate(response)
        >>> result.passed
        True
    """

    def __init__(
        self,
        reference_index: Optional[ReferenceIndex] = None,
        role: Optional[str] = None,
        role_registry: Optional[RoleRegistry] = None,
        api_clients: Optional[APIClients] = None,
        thresholds: Optional[Thresholds] = None,
        check_urls: Optional[bool] = None,
        url_checker: Optional[URLAccessibilityChecker] = None,
        extractor: Optional[CitationExtractor] = None,
    ):
        """
        Initialize evaluator.

        Args:
            reference_index: Per-request reference snapshot (empty if None)
            role: Bot role whose claim patterns to apply (no claims if None)
            role_registry: Role implementations (default: pm and dev)
            api_clients: Existence-check clients (no escalation if None)
            thresholds: Scoring thresholds (default: settings.THRESHOLD_PRESET)
            check_urls: Probe unresolved URLs (default: settings.CHECK_URL_ACCESSIBILITY)
            url_checker: URL prober to use
            extractor: Citation extractor to use

        Raises:
            RoleNotRegisteredError: If role is not in the registry
        """
        self.reference_index = reference_index or ReferenceIndex()
        self.role_registry = role_registry or default_role_registry()
        self.thresholds = thresholds or Thresholds.preset(settings.THRESHOLD_PRESET)
        self.check_urls = settings.CHECK_URL_ACCESSIBILITY if check_urls is None else check_urls
        self.extractor = extractor or CitationExtractor()
        self.verifier = APIVerifier(self.reference_index, api_clients)
        self.url_checker = url_checker or URLAccessibilityChecker()

        patterns = self.role_registry.patterns(role) if role else None
        self.claim_extractor = ClaimExtractor(patterns=patterns)
        self.role = role

    async def evaluate(self, response: str) -> GroundingResult:
        """
        Extract, validate and score the citations in a response.

        Args:
            response: Generated response text

        Returns:
            GroundingResult
        """
        start = time.perf_counter()

        citations = self.extractor.extract(response)
        for citation in citations:
            citations_total.labels(type=citation.type.value).inc()
        logger.info(f"Extracted {len(citations)} citations (role: {self.role or 'none'})")

        self.claim_extractor.extract(response, citations)

        await self.verifier.validate(citations)

        if self.check_urls:
            await self.url_checker.check(citations)

        validate_metadata_claims(citations, self.reference_index)

        result = calculate_grounding_score(response, citations, self.thresholds)

        duration_ms = int((time.perf_counter() - start) * 1000)
        logger.info(
            f"Grounding evaluation complete: score={result.overall_score:.2f}, "
            f"passed={result.passed} ({duration_ms}ms)"
        )
        return result
