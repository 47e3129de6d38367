"""Citation extraction and validation."""

from .api_verifier import APIVerifier, parse_github_ref
from .extractor import CitationExtractor, analyze_metadata_usage, extract_citations
from .index_builder import EntityMetadata, ReferenceIndexBuilder
from .reference_validator import ReferenceValidator
from .url_checker import URLAccessibilityChecker

__all__ = [
    "APIVerifier",
    "CitationExtractor",
    "EntityMetadata",
    "ReferenceIndexBuilder",
    "ReferenceValidator",
    "URLAccessibilityChecker",
    "analyze_metadata_usage",
    "extract_citations",
    "parse_github_ref",
]
