"""
Citation models.

A Citation is created by extraction, mutated only by validation stages
and read by scoring. Validation status only ever moves forward out of
NOT_CHECKED; terminal statuses are final for the lifetime of the
citation.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from ..exceptions import InvalidStatusTransition


class CitationType(str, Enum):
    """Kinds of references found in generated text."""
    JIRA_TICKET = "jira_ticket"
    GITHUB = "github"
    URL = "url"
    PRODUCTBOARD = "productboard"
    ZENDESK = "zendesk"
    USERVOICE = "uservoice"
    METADATA = "metadata"


class ValidationStatus(str, Enum):
    """How a citation was validated."""
    GROUNDED = "grounded"                    # Found in tool results
    UNGROUNDED_VALID = "ungrounded_valid"    # Not in tool results, verified externally
    UNGROUNDED_BROKEN = "ungrounded_broken"  # Not in tool results, URL is broken
    FABRICATED = "fabricated"                # Authoritatively does not exist
    API_ERROR = "api_error"                  # Verification could not complete
    NOT_CHECKED = "not_checked"              # Insufficient data so far

    @property
    def is_terminal(self) -> bool:
        return self is not ValidationStatus.NOT_CHECKED


@dataclass
class MetadataClaim:
    """
    A metadata field/value assertion attached to a cited entity.

    Attributes:
        field: Canonical field name (e.g. "priority", "severity")
        claimed_value: Lower-cased value asserted by the text
        actual_value: Comma-joined ground truth (empty if unknown)
        is_accurate: Whether the claim matched ground truth
    """
    field: str
    claimed_value: str
    actual_value: str = ""
    is_accurate: bool = False


@dataclass
class Citation:
    """
    A single reference extracted from generated text.

    Identity is (type, value), except metadata citations which are keyed
    by context.
    """
    type: CitationType
    value: str
    line_number: int = 0
    context: str = ""
    is_valid: bool = False
    validation_status: ValidationStatus = ValidationStatus.NOT_CHECKED
    validation_details: str = ""
    http_status_code: int = 0
    verified_via_api: bool = False
    metadata_claims: List[MetadataClaim] = field(default_factory=list)

    @property
    def dedup_key(self) -> str:
        if self.type == CitationType.METADATA:
            return f"{self.type.value}:{self.context}"
        return f"{self.type.value}:{self.value}"

    def resolve(
        self,
        status: ValidationStatus,
        details: str = "",
        *,
        is_valid: Optional[bool] = None,
        http_status_code: Optional[int] = None,
        verified_via_api: Optional[bool] = None,
    ) -> None:
        """
        Record a validation outcome.

        Args:
            status: New validation status
            details: Human-readable explanation
            is_valid: Validity flag (unchanged if None)
            http_status_code: HTTP status from a probe (unchanged if None)
            verified_via_api: Whether an external system was consulted

        Raises:
            InvalidStatusTransition: If the citation already holds a terminal status
        """
        if self.validation_status.is_terminal:
            raise InvalidStatusTransition(self.validation_status.value, status.value)

        self.validation_status = status
        if details:
            self.validation_details = details
        if is_valid is not None:
            self.is_valid = is_valid
        if http_status_code is not None:
            self.http_status_code = http_status_code
        if verified_via_api is not None:
            self.verified_via_api = verified_via_api


@dataclass
class MetadataUsage:
    """Usage of structured metadata fields across all claims."""
    field_counts: Dict[str, int] = field(default_factory=dict)
    total_fields: int = 0


class GroundingResult(BaseModel):
    """Multi-dimensional citation grounding score for one response."""

    total_citations: int = 0
    citations_by_type: Dict[CitationType, int] = Field(default_factory=dict)
    citation_density: float = 0.0
    metadata_field_counts: Dict[str, int] = Field(default_factory=dict)
    metadata_total_fields: int = 0

    valid_citations: int = 0
    invalid_citations: int = 0
    valid_citation_rate: float = 0.0
    grounded_citations: int = 0
    ungrounded_valid_urls: int = 0
    ungrounded_broken_urls: int = 0
    fabricated_citations: int = 0
    api_errors: int = 0
    fabrication_rate: float = 0.0

    total_claims: int = 0
    accurate_claims: int = 0
    inaccurate_claims: int = 0
    claim_accuracy_rate: float = 0.0

    overall_score: float = 0.0
    passed: bool = False
    reasoning: str = ""

    citations: List[Citation] = Field(default_factory=list)

    model_config = {"arbitrary_types_allowed": True}
