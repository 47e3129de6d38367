"""Role-specific metadata claim extraction and validation."""

from .claim_extractor import ClaimExtractor, find_citation_by_value
from .claim_validator import validate_claim, validate_metadata_claims
from .registry import RoleRegistry, default_role_registry

__all__ = [
    "ClaimExtractor",
    "RoleRegistry",
    "default_role_registry",
    "find_citation_by_value",
    "validate_claim",
    "validate_metadata_claims",
]
