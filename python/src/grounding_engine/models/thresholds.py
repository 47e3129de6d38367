"""
Threshold and option presets.

All of these are pure configuration: immutable once constructed.
"""

from pydantic import BaseModel, ConfigDict, Field


class Thresholds(BaseModel):
    """
    Pass/fail criteria for citation grounding.

    Attributes:
        min_citation_rate: Minimum share of valid citations (0.0-1.0)
        min_metadata_fields: Minimum distinct metadata fields expected
        citation_weight: Weight of the citation score in the overall score
        metadata_weight: Weight of the metadata score in the overall score
    """

    model_config = ConfigDict(frozen=True)

    min_citation_rate: float = Field(default=0.70, ge=0.0, le=1.0)
    min_metadata_fields: int = Field(default=0, ge=0)
    citation_weight: float = Field(default=0.8, ge=0.0, le=1.0)
    metadata_weight: float = Field(default=0.2, ge=0.0, le=1.0)

    @classmethod
    def lenient(cls) -> "Thresholds":
        return cls(min_citation_rate=0.50, min_metadata_fields=0,
                   citation_weight=0.9, metadata_weight=0.1)

    @classmethod
    def default(cls) -> "Thresholds":
        return cls()

    @classmethod
    def strict(cls) -> "Thresholds":
        return cls(min_citation_rate=0.90, min_metadata_fields=2,
                   citation_weight=0.7, metadata_weight=0.3)

    @classmethod
    def preset(cls, name: str) -> "Thresholds":
        """
        Look up a preset by name.

        Raises:
            ValueError: If the preset name is unknown
        """
        presets = {
            "lenient": cls.lenient,
            "default": cls.default,
            "strict": cls.strict,
        }
        factory = presets.get(name.lower())
        if factory is None:
            raise ValueError(f"Unknown threshold preset: {name}")
        return factory()


class ValidationThresholds(BaseModel):
    """
    Semantic grounding thresholds.

    Attributes:
        semantic_threshold: Minimum best-evidence similarity for semantic support
        lexical_threshold: Minimum query-token overlap for lexical support
        grounded_threshold: Similarity at or above which a unit is grounded
        marginal_threshold: Similarity at or above which a unit is marginal
        pass_threshold: Minimum (grounded + marginal) / total
        strict_pass_required: Minimum grounded / total
    """

    model_config = ConfigDict(frozen=True)

    semantic_threshold: float = 0.75
    lexical_threshold: float = 0.60
    grounded_threshold: float = 0.80
    marginal_threshold: float = 0.65
    pass_threshold: float = 0.75
    strict_pass_required: float = 0.50

    @classmethod
    def default(cls) -> "ValidationThresholds":
        return cls()

    @classmethod
    def content(cls) -> "ValidationThresholds":
        """Looser thresholds for responses checked against tool results."""
        return cls(
            semantic_threshold=0.70,
            lexical_threshold=0.55,
            grounded_threshold=0.75,
            marginal_threshold=0.60,
            pass_threshold=0.70,
            strict_pass_required=0.40,
        )


class ValidatorOptions(BaseModel):
    """Which retrieval modes and heuristic checks the semantic validator runs."""

    model_config = ConfigDict(frozen=True)

    top_k: int = Field(default=5, ge=1)
    chunk_size: int = Field(default=2, ge=1)
    use_lexical: bool = True
    require_entity_match: bool = True
    require_number_match: bool = True
    check_negation: bool = True
    check_attribution: bool = True

    @classmethod
    def default(cls) -> "ValidatorOptions":
        return cls()

    @classmethod
    def content(cls) -> "ValidatorOptions":
        """Content grounding has no speakers to attribute."""
        return cls(check_attribution=False)
