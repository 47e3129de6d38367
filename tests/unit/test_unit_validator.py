"""
Unit Tests for the Per-Unit Validation State Machine

Tests:
- Grounded / marginal / ungrounded classification by similarity
- Short-circuits: no evidence, failed heuristic, no support
- State history recorded on every transition
- Flag computation honours disabled checks
- Tally aggregation (grounding, weighted and strict rates)
"""

import pytest
from transitions import MachineError

from grounding_engine.models.evidence import (
    Evidence,
    UnitStatus,
    UnitValidation,
    ValidationFlags,
)
from grounding_engine.models.thresholds import ValidationThresholds, ValidatorOptions
from grounding_engine.services.semantic.unit_validator import (
    UnitState,
    UnitStateMachine,
    compute_flags,
    tally,
)


@pytest.fixture
def thresholds():
    return ValidationThresholds.default()


@pytest.fixture
def passing_flags():
    return ValidationFlags(
        has_semantic_support=True,
        has_lexical_support=False,
        entity_match=True,
        number_match=True,
        negation_consistent=True,
        attribution_correct=True,
    )


def _evidence(similarity, text="Redis was approved for the caching layer."):
    return [Evidence(chunk_id="c0", chunk_text=text, similarity=similarity, rank=1)]


# ============================================================================
# Classification
# ============================================================================

class TestClassification:

    @pytest.mark.parametrize("similarity,expected", [
        (0.95, UnitStatus.GROUNDED),
        (0.80, UnitStatus.GROUNDED),
        (0.70, UnitStatus.MARGINAL),
        (0.65, UnitStatus.MARGINAL),
        (0.50, UnitStatus.UNGROUNDED),
    ])
    def test_similarity_bands(self, thresholds, passing_flags, similarity, expected):
        machine = UnitStateMachine("Redis was approved.", _evidence(similarity), passing_flags, thresholds)
        assert machine.run() == expected

    def test_full_path_history(self, thresholds, passing_flags):
        machine = UnitStateMachine("Redis was approved.", _evidence(0.9), passing_flags, thresholds)
        machine.run()
        assert machine.history == [
            UnitState.RETRIEVED.value,
            UnitState.CHECKED.value,
            UnitState.SUPPORTED.value,
            UnitState.GROUNDED.value,
        ]


class TestShortCircuits:

    def test_no_evidence(self, thresholds, passing_flags):
        machine = UnitStateMachine("Redis was approved.", [], passing_flags, thresholds)
        assert machine.run() == UnitStatus.UNGROUNDED
        assert machine.history == [UnitState.UNGROUNDED.value]
        assert machine.best_similarity == 0.0

    def test_failed_heuristic(self, thresholds, passing_flags):
        passing_flags.negation_consistent = False
        machine = UnitStateMachine("Redis was not approved.", _evidence(0.99), passing_flags, thresholds)
        assert machine.run() == UnitStatus.UNGROUNDED
        assert machine.history == [UnitState.RETRIEVED.value, UnitState.UNGROUNDED.value]

    def test_no_support(self, thresholds, passing_flags):
        passing_flags.has_semantic_support = False
        machine = UnitStateMachine("Redis was approved.", _evidence(0.99), passing_flags, thresholds)
        assert machine.run() == UnitStatus.UNGROUNDED
        assert machine.history[-2:] == [UnitState.CHECKED.value, UnitState.UNGROUNDED.value]

    def test_lexical_support_is_enough(self, thresholds, passing_flags):
        passing_flags.has_semantic_support = False
        passing_flags.has_lexical_support = True
        machine = UnitStateMachine("Redis was approved.", _evidence(0.99), passing_flags, thresholds)
        assert machine.run() == UnitStatus.GROUNDED

    def test_terminal_state_rejects_triggers(self, thresholds, passing_flags):
        machine = UnitStateMachine("Redis was approved.", [], passing_flags, thresholds)
        machine.run()
        with pytest.raises(MachineError):
            machine.classify()


# ============================================================================
# Flags
# ============================================================================

class TestComputeFlags:

    def test_no_evidence_fails_everything(self, thresholds):
        flags = compute_flags("Redis was approved.", [], thresholds, ValidatorOptions.default())
        assert flags == ValidationFlags()

    def test_matching_evidence(self, thresholds):
        evidence = _evidence(0.9)
        flags = compute_flags("Redis was approved for the caching layer.", evidence, thresholds, ValidatorOptions.default())
        assert flags.has_semantic_support
        assert flags.has_lexical_support
        assert flags.required_checks_passed

    def test_disabled_checks_pass(self, thresholds):
        options = ValidatorOptions(
            use_lexical=False,
            require_entity_match=False,
            require_number_match=False,
            check_negation=False,
            check_attribution=False,
        )
        flags = compute_flags("Mallory said 99 servers were not approved.", _evidence(0.3), thresholds, options)
        assert flags.required_checks_passed
        assert not flags.has_lexical_support
        assert not flags.has_semantic_support


# ============================================================================
# Tally
# ============================================================================

class TestTally:

    def _unit(self, text, status):
        return UnitValidation(text=text, index=0, status=status)

    def test_rates(self):
        counts = tally([
            self._unit("a" * 10, UnitStatus.GROUNDED),
            self._unit("b" * 20, UnitStatus.MARGINAL),
            self._unit("c" * 10, UnitStatus.UNGROUNDED),
            self._unit("d" * 10, UnitStatus.GROUNDED),
        ])

        assert (counts.total, counts.grounded, counts.marginal, counts.ungrounded) == (4, 2, 1, 1)
        assert counts.grounding_score == pytest.approx(0.75)
        assert counts.strict_grounded_rate == pytest.approx(0.5)
        # (10 + 10 + 20 * 0.5) / 50
        assert counts.weighted_score == pytest.approx(0.6)

    def test_meets_thresholds(self):
        counts = tally([
            self._unit("one", UnitStatus.GROUNDED),
            self._unit("two", UnitStatus.MARGINAL),
            self._unit("three", UnitStatus.MARGINAL),
            self._unit("four", UnitStatus.GROUNDED),
        ])
        assert counts.grounding_score == pytest.approx(1.0)
        assert counts.meets(ValidationThresholds.default())

        mostly_marginal = tally([
            self._unit("one", UnitStatus.GROUNDED),
            self._unit("two", UnitStatus.MARGINAL),
            self._unit("three", UnitStatus.MARGINAL),
        ])
        assert not mostly_marginal.meets(ValidationThresholds.default())

    def test_empty(self):
        counts = tally([])
        assert counts.total == 0
        assert counts.grounding_score == 0.0
        assert counts.weighted_score == 0.0
