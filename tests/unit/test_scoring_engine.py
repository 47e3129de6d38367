"""
Unit Tests for the Citation Scoring Engine

Tests:
- Pass/fail against min_citation_rate
- No validation -> fail with explicit reason
- Metadata citations excluded from rates
- Claim accuracy and metadata field scoring
- Threshold presets
"""

import pytest

from grounding_engine.models.citation import (
    Citation,
    CitationType,
    MetadataClaim,
    ValidationStatus,
)
from grounding_engine.models.thresholds import Thresholds
from grounding_engine.services.scoring import calculate_grounding_score


def _citation(value, status=None, citation_type=CitationType.JIRA_TICKET, claims=None):
    citation = Citation(type=citation_type, value=value, metadata_claims=claims or [])
    if status is not None:
        citation.resolve(status, is_valid=status in (
            ValidationStatus.GROUNDED, ValidationStatus.UNGROUNDED_VALID,
        ))
    return citation


@pytest.fixture
def citation_only():
    return Thresholds(min_citation_rate=0.70, citation_weight=1.0, metadata_weight=0.0)


class TestPassFail:

    def test_three_grounded_citations_pass(self, citation_only):
        citations = [_citation(f"MM-{i}", ValidationStatus.GROUNDED) for i in range(3)]
        result = calculate_grounding_score("MM-0 MM-1 MM-2", citations, citation_only)

        assert result.passed is True
        assert result.valid_citation_rate == pytest.approx(1.0)
        assert result.overall_score == pytest.approx(1.0)
        assert "[FAIL" not in result.reasoning

    def test_one_fabricated_of_three_fails(self, citation_only):
        citations = [
            _citation("MM-1", ValidationStatus.GROUNDED),
            _citation("MM-2", ValidationStatus.GROUNDED),
            _citation("MM-3", ValidationStatus.FABRICATED),
        ]
        result = calculate_grounding_score("MM-1 MM-2 MM-3", citations, citation_only)

        assert result.passed is False
        assert result.valid_citation_rate == pytest.approx(2 / 3)
        assert result.fabrication_rate == pytest.approx(1 / 3)
        assert result.fabricated_citations == 1
        assert "[FAIL: 66.7% valid rate < threshold 70.0%]" in result.reasoning
        assert "Fabrication rate: 33.3%" in result.reasoning

    def test_no_citations_fail_without_validation(self):
        result = calculate_grounding_score("Nothing cited here.", [], Thresholds.default())

        assert result.passed is False
        assert result.overall_score == 0.0
        assert result.reasoning.endswith(
            "[FAIL: No validation performed - tool results or API clients required]"
        )

    def test_unvalidated_citations_score_zero(self, citation_only):
        citations = [_citation("MM-1"), _citation("MM-2")]
        result = calculate_grounding_score("MM-1 MM-2", citations, citation_only)

        assert result.passed is False
        assert result.overall_score == 0.0
        assert result.valid_citations == 0
        assert result.invalid_citations == 0
        assert "No validation performed" in result.reasoning


class TestStatusBuckets:

    def test_api_errors_are_neither_valid_nor_invalid(self, citation_only):
        citations = [
            _citation("MM-1", ValidationStatus.GROUNDED),
            _citation("MM-2", ValidationStatus.API_ERROR),
            _citation("https://x.example.com", ValidationStatus.UNGROUNDED_BROKEN, CitationType.URL),
            _citation("https://y.example.com", ValidationStatus.UNGROUNDED_VALID, CitationType.URL),
        ]
        result = calculate_grounding_score("text", citations, citation_only)

        assert result.valid_citations == 2
        assert result.invalid_citations == 1
        assert result.api_errors == 1
        assert result.valid_citation_rate == pytest.approx(0.5)
        assert (
            "Grounded: 1, Ungrounded-valid: 1, Ungrounded-broken: 1, "
            "Fabricated: 0, API-errors: 1"
        ) in result.reasoning

    def test_metadata_citations_are_excluded_from_rates(self, citation_only):
        citations = [
            _citation("MM-1", ValidationStatus.GROUNDED),
            _citation("priority", ValidationStatus.GROUNDED, CitationType.METADATA),
        ]
        result = calculate_grounding_score("MM-1", citations, citation_only)

        assert result.total_citations == 2
        assert result.citations_by_type[CitationType.METADATA] == 1
        assert result.valid_citations == 1
        assert result.valid_citation_rate == pytest.approx(1.0)

    def test_citation_density(self, citation_only):
        citations = [_citation("MM-1", ValidationStatus.GROUNDED)]
        result = calculate_grounding_score(" ".join(["word"] * 20), citations, citation_only)
        assert result.citation_density == pytest.approx(5.0)
        assert result.reasoning.startswith("Citations: 1 (5.0 per 100 words)")


class TestClaimsAndMetadata:

    def test_claim_accuracy(self):
        claims = [
            MetadataClaim(field="priority", claimed_value="high", actual_value="high", is_accurate=True),
            MetadataClaim(field="segments", claimed_value="smb", actual_value="enterprise"),
        ]
        citations = [_citation("MM-1", ValidationStatus.GROUNDED, claims=claims)]
        result = calculate_grounding_score("MM-1", citations, Thresholds.default())

        assert result.total_claims == 2
        assert result.accurate_claims == 1
        assert result.inaccurate_claims == 1
        assert result.claim_accuracy_rate == pytest.approx(0.5)
        assert "Claims: 1 accurate, 1 inaccurate (50.0% accuracy)" in result.reasoning

    def test_metadata_score_uses_distinct_fields(self):
        claims = [MetadataClaim(field="priority", claimed_value="high", is_accurate=True)]
        citations = [_citation("MM-1", ValidationStatus.GROUNDED, claims=claims)]
        result = calculate_grounding_score("MM-1", citations, Thresholds.default())

        # 0.8 * 1.0 + 0.2 * (1 / 5)
        assert result.overall_score == pytest.approx(0.84)
        assert result.metadata_total_fields == 1
        assert "Metadata fields: 1" in result.reasoning
        assert "Score: 0.84" in result.reasoning

    def test_metadata_score_is_capped(self):
        fields = ["a", "b", "c", "d", "e", "f", "g"]
        claims = [MetadataClaim(field=f, claimed_value="x") for f in fields]
        citations = [_citation("MM-1", ValidationStatus.GROUNDED, claims=claims)]
        result = calculate_grounding_score("MM-1", citations, Thresholds.default())
        assert result.overall_score == pytest.approx(1.0)


class TestThresholdPresets:

    def test_presets(self):
        assert Thresholds.preset("lenient").min_citation_rate == 0.5
        assert Thresholds.preset("DEFAULT") == Thresholds.default()
        assert Thresholds.preset("strict").min_metadata_fields == 2

    def test_unknown_preset(self):
        with pytest.raises(ValueError):
            Thresholds.preset("relaxed")

    def test_lenient_passes_where_default_fails(self):
        citations = [
            _citation("MM-1", ValidationStatus.GROUNDED),
            _citation("MM-2", ValidationStatus.GROUNDED),
            _citation("MM-3", ValidationStatus.FABRICATED),
        ]
        assert calculate_grounding_score("x", citations, Thresholds.lenient()).passed is True
        assert calculate_grounding_score("x", citations, Thresholds.default()).passed is False
