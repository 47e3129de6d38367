"""Data models for citations, reference data, thresholds and evidence."""

from .citation import (
    Citation,
    CitationType,
    GroundingResult,
    MetadataClaim,
    MetadataUsage,
    ValidationStatus,
)
from .reference_index import (
    ConfluenceRef,
    GitHubRef,
    JiraRef,
    ReferenceIndex,
    ZendeskRef,
)
from .thresholds import Thresholds, ValidationThresholds, ValidatorOptions

__all__ = [
    "Citation",
    "CitationType",
    "ConfluenceRef",
    "GitHubRef",
    "GroundingResult",
    "JiraRef",
    "MetadataClaim",
    "MetadataUsage",
    "ReferenceIndex",
    "Thresholds",
    "ValidationStatus",
    "ValidationThresholds",
    "ValidatorOptions",
    "ZendeskRef",
]
