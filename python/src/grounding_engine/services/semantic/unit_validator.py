"""
Per-Unit Validation State Machine.

Classifies one sentence or claim with a finite state machine:

    UNVALIDATED --retrieve--> RETRIEVED --check_heuristics--> CHECKED
        --check_support--> SUPPORTED --classify--> GROUNDED | MARGINAL | UNGROUNDED

Any stage can short-circuit to UNGROUNDED:
- retrieve: no evidence candidates
- check_heuristics: a required heuristic failed
- check_support: neither semantic nor lexical support
- classify: best similarity below the marginal threshold

Uses the `transitions` library; conditional transitions sharing a
trigger are tried in the order listed.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Sequence

from transitions import Machine

from ...models.evidence import Evidence, UnitStatus, UnitValidation, ValidationFlags
from ...models.thresholds import ValidationThresholds, ValidatorOptions
from ...monitoring.metrics import semantic_units_total
from .bm25 import lexical_score
from .embedding import Embedder
from .evidence_index import EvidenceIndex
from .heuristics import (
    check_attribution,
    check_entity_match,
    check_negation_consistency,
    check_number_match,
)
from .retrieval import retrieve_candidates

logger = logging.getLogger(__name__)


class UnitState(str, Enum):
    """States of the per-unit validation workflow."""
    UNVALIDATED = "unvalidated"
    RETRIEVED = "retrieved"
    CHECKED = "checked"
    SUPPORTED = "supported"
    GROUNDED = "grounded"
    MARGINAL = "marginal"
    UNGROUNDED = "ungrounded"


TERMINAL_STATES = {UnitState.GROUNDED, UnitState.MARGINAL, UnitState.UNGROUNDED}


class UnitStateMachine:
    """
    Finite state machine for classifying one unit.

    Example:
        >>> machine = UnitStateMachine("Redis was approved.", evidence, flags, thresholds)
        >>> machine.run()
        <UnitStatus.GROUNDED: 'grounded'>
    """

    TRIGGERS = ["retrieve", "check_heuristics", "check_support", "classify"]

    TRANSITIONS = [
        {
            'trigger': 'retrieve',
            'source': UnitState.UNVALIDATED.value,
            'dest': UnitState.UNGROUNDED.value,
            'conditions': 'lacks_evidence'
        },
        {
            'trigger': 'retrieve',
            'source': UnitState.UNVALIDATED.value,
            'dest': UnitState.RETRIEVED.value
        },
        {
            'trigger': 'check_heuristics',
            'source': UnitState.RETRIEVED.value,
            'dest': UnitState.CHECKED.value,
            'conditions': 'passes_required_checks'
        },
        {
            'trigger': 'check_heuristics',
            'source': UnitState.RETRIEVED.value,
            'dest': UnitState.UNGROUNDED.value
        },
        {
            'trigger': 'check_support',
            'source': UnitState.CHECKED.value,
            'dest': UnitState.SUPPORTED.value,
            'conditions': 'has_support'
        },
        {
            'trigger': 'check_support',
            'source': UnitState.CHECKED.value,
            'dest': UnitState.UNGROUNDED.value
        },
        {
            'trigger': 'classify',
            'source': UnitState.SUPPORTED.value,
            'dest': UnitState.GROUNDED.value,
            'conditions': 'meets_grounded_threshold'
        },
        {
            'trigger': 'classify',
            'source': UnitState.SUPPORTED.value,
            'dest': UnitState.MARGINAL.value,
            'conditions': 'meets_marginal_threshold'
        },
        {
            'trigger': 'classify',
            'source': UnitState.SUPPORTED.value,
            'dest': UnitState.UNGROUNDED.value
        },
    ]

    def __init__(
        self,
        text: str,
        evidence: Sequence[Evidence],
        flags: ValidationFlags,
        thresholds: ValidationThresholds,
    ):
        self.text = text
        self.evidence = list(evidence)
        self.flags = flags
        self.thresholds = thresholds
        self.best_similarity = self.evidence[0].similarity if self.evidence else 0.0
        self.history: List[str] = []

        self.machine = Machine(
            model=self,
            states=[state.value for state in UnitState],
            transitions=self.TRANSITIONS,
            initial=UnitState.UNVALIDATED.value,
            auto_transitions=False,
            after_state_change=self._on_state_change
        )

    def _on_state_change(self):
        self.history.append(self.state)

    # Conditions
    def lacks_evidence(self) -> bool:
        return not self.evidence

    def passes_required_checks(self) -> bool:
        return self.flags.required_checks_passed

    def has_support(self) -> bool:
        return self.flags.has_support

    def meets_grounded_threshold(self) -> bool:
        return self.best_similarity >= self.thresholds.grounded_threshold

    def meets_marginal_threshold(self) -> bool:
        return self.best_similarity >= self.thresholds.marginal_threshold

    def run(self) -> UnitStatus:
        """Fire triggers until a terminal state is reached."""
        for trigger in self.TRIGGERS:
            if UnitState(self.state) in TERMINAL_STATES:
                break
            getattr(self, trigger)()

        logger.debug(
            f"Unit classified as {self.state} via {' → '.join(self.history)} "
            f"(similarity: {self.best_similarity:.3f})"
        )
        return UnitStatus(self.state)


def compute_flags(
    text: str,
    evidence: Sequence[Evidence],
    thresholds: ValidationThresholds,
    options: ValidatorOptions,
) -> ValidationFlags:
    """Run every enabled check against the retrieved evidence; disabled checks pass."""
    flags = ValidationFlags()
    if not evidence:
        return flags

    best = evidence[0]
    flags.has_semantic_support = best.similarity >= thresholds.semantic_threshold
    flags.has_lexical_support = (
        options.use_lexical
        and lexical_score(text, best.chunk_text) >= thresholds.lexical_threshold
    )
    flags.entity_match = (
        check_entity_match(text, evidence) if options.require_entity_match else True
    )
    flags.number_match = (
        check_number_match(text, evidence) if options.require_number_match else True
    )
    flags.negation_consistent = (
        check_negation_consistency(text, best.chunk_text) if options.check_negation else True
    )
    flags.attribution_correct = (
        check_attribution(text, evidence) if options.check_attribution else True
    )
    return flags


async def validate_unit(
    text: str,
    position: int,
    index: EvidenceIndex,
    embedder: Embedder,
    thresholds: ValidationThresholds,
    options: ValidatorOptions,
) -> UnitValidation:
    """
    Retrieve evidence for one unit and classify it.

    Args:
        text: Sentence or claim
        position: Unit index within the validated text
        index: Evidence index for this call
        embedder: Embedding provider
        thresholds: Semantic thresholds
        options: Validator options

    Returns:
        UnitValidation with status, flags and top evidence
    """
    evidence = await retrieve_candidates(text, index, embedder, options)
    flags = compute_flags(text, evidence, thresholds, options)

    machine = UnitStateMachine(text, evidence, flags, thresholds)
    status = machine.run()
    semantic_units_total.labels(status=status.value).inc()

    return UnitValidation(
        text=text,
        index=position,
        status=status,
        best_similarity=machine.best_similarity,
        top_evidence=evidence,
        flags=flags,
    )


@dataclass
class UnitTally:
    """Roll-up of unit statuses."""
    total: int
    grounded: int
    marginal: int
    ungrounded: int
    grounding_score: float
    weighted_score: float
    strict_grounded_rate: float

    def meets(self, thresholds: ValidationThresholds) -> bool:
        return (
            self.grounding_score >= thresholds.pass_threshold
            and self.strict_grounded_rate >= thresholds.strict_pass_required
        )


def tally(validations: Sequence[UnitValidation]) -> UnitTally:
    """
    Aggregate unit statuses.

    grounding_score is (grounded + marginal) / total; weighted_score
    weights each unit by its length with half credit for marginal units;
    strict_grounded_rate is grounded / total.
    """
    total = len(validations)
    grounded = marginal = ungrounded = 0
    total_length = 0
    weighted_grounded = 0.0

    for v in validations:
        length = len(v.text)
        total_length += length
        if v.status == UnitStatus.GROUNDED:
            grounded += 1
            weighted_grounded += length
        elif v.status == UnitStatus.MARGINAL:
            marginal += 1
            weighted_grounded += length * 0.5
        else:
            ungrounded += 1

    return UnitTally(
        total=total,
        grounded=grounded,
        marginal=marginal,
        ungrounded=ungrounded,
        grounding_score=(grounded + marginal) / total if total else 0.0,
        weighted_score=weighted_grounded / total_length if total_length else 0.0,
        strict_grounded_rate=grounded / total if total else 0.0,
    )


async def validate_units(
    units: Sequence[str],
    index: EvidenceIndex,
    embedder: Embedder,
    thresholds: ValidationThresholds,
    options: ValidatorOptions,
) -> List[UnitValidation]:
    """Validate units in order against one evidence index."""
    validations = []
    for position, text in enumerate(units):
        validations.append(
            await validate_unit(text, position, index, embedder, thresholds, options)
        )
    return validations
