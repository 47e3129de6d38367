"""
Heuristic Validators.

Independent consistency gates applied to a unit and its retrieved
evidence:

| Check       | Passes when                                                        |
|-------------|--------------------------------------------------------------------|
| Entity      | every capitalized non-common word appears in some evidence         |
| Number      | every number appears in some evidence within 1% relative tolerance |
| Negation    | no decision verb, or unit and best evidence agree on negation      |
| Attribution | attributed speaker is the top evidence's author or quoted in it    |

Each check passes vacuously when the unit has nothing to check.
"""

import logging
import re
from typing import List, Optional, Sequence

from ...models.evidence import Evidence
from .text import SENTENCE_STARTERS, contains_name, is_capitalized, is_common_word

logger = logging.getLogger(__name__)

NUMBER_TOLERANCE = 0.01

NEGATION_WORDS = [
    "not", "no", "never", "neither", "nor", "none",
    "nothing", "nobody", "nowhere", "without",
    "didn't", "don't", "doesn't", "won't", "wouldn't",
    "can't", "cannot", "couldn't", "shouldn't",
    "isn't", "aren't", "wasn't", "weren't",
]

DECISION_VERBS = [
    "decide", "decided", "decision",
    "approve", "approved", "approval",
    "reject", "rejected", "rejection",
    "agree", "agreed", "agreement",
    "accept", "accepted",
    "deny", "denied",
    "confirm", "confirmed",
    "choose", "chose", "chosen",
]

ATTRIBUTION_PATTERNS = [
    re.compile(
        r"(\w+)\s+(?:said|says|mentioned|suggested|proposed|stated|explained"
        r"|noted|argued|claimed|believes|thinks)"
    ),
    re.compile(r"(?:according to|as per)\s+(\w+)"),
    re.compile(r"(\w+)'s\s+(?:suggestion|proposal|idea|view|opinion)"),
]

_NEGATION_PATTERN = re.compile(
    r"\b(?:" + "|".join(re.escape(w) for w in NEGATION_WORDS) + r")\b"
)
_DECISION_PATTERN = re.compile(
    r"\b(?:" + "|".join(re.escape(w) for w in DECISION_VERBS) + r")\b"
)
_NUMBER_PATTERN = re.compile(r"\b(\d+(?:,\d{3})*(?:\.\d+)?%?)\b")
_ENTITY_STRIP = ".,!?;:\"'"


# ============================================================================
# Entity Match
# ============================================================================

def extract_entities(text: str) -> List[str]:
    """Capitalized, non-common words; a leading sentence starter is skipped."""
    entities = []
    for i, word in enumerate(text.split()):
        word = word.strip(_ENTITY_STRIP)
        if len(word) < 2 or not is_capitalized(word):
            continue
        if is_common_word(word):
            continue
        if i == 0 and word in SENTENCE_STARTERS:
            continue
        entities.append(word)
    return entities


def check_entity_match(text: str, evidence: Sequence[Evidence]) -> bool:
    for entity in extract_entities(text):
        found = any(
            contains_name(ev.chunk_text, entity)
            or any(contains_name(value, entity) for value in ev.metadata.values())
            for ev in evidence
        )
        if not found:
            logger.debug(f"Entity '{entity}' not found in evidence")
            return False
    return True


# ============================================================================
# Number Match
# ============================================================================

def extract_numbers(text: str) -> List[float]:
    """Numbers with thousands separators and percent signs removed."""
    numbers = []
    for match in _NUMBER_PATTERN.finditer(text):
        cleaned = match.group(1).replace(",", "").rstrip("%")
        try:
            numbers.append(float(cleaned))
        except ValueError:
            continue
    return numbers


def contains_number(text: str, target: float, tolerance: float = NUMBER_TOLERANCE) -> bool:
    return any(abs(n - target) <= target * tolerance for n in extract_numbers(text))


def check_number_match(text: str, evidence: Sequence[Evidence]) -> bool:
    for number in extract_numbers(text):
        if not any(contains_number(ev.chunk_text, number) for ev in evidence):
            logger.debug(f"Number {number} not found in evidence")
            return False
    return True


# ============================================================================
# Negation Consistency
# ============================================================================

def has_negation(text: str) -> bool:
    return _NEGATION_PATTERN.search(text.lower()) is not None


def has_decision_verb(text: str) -> bool:
    return _DECISION_PATTERN.search(text.lower()) is not None


def check_negation_consistency(text: str, evidence_text: str) -> bool:
    """
    Detect negation flips around decisions.

    Example:
        >>> check_negation_consistency("Redis was not approved", "Redis was approved")
        False
    """
    if not (has_decision_verb(text) or has_decision_verb(evidence_text)):
        return True
    return has_negation(text) == has_negation(evidence_text)


# ============================================================================
# Attribution
# ============================================================================

def extract_attribution(text: str) -> Optional[str]:
    """Name a statement is attributed to ("Alice said ..." -> "Alice")."""
    for pattern in ATTRIBUTION_PATTERNS:
        match = pattern.search(text)
        if match:
            person = match.group(1)
            if is_capitalized(person) and not is_common_word(person):
                return person
    return None


def contains_quote_from(text: str, person: str) -> bool:
    lower_text = text.lower()
    name = re.escape(person.lower())
    patterns = [
        name + r"\s*:",
        "@" + name + r"\s+(?:said|says)",
        name + r"\s+(?:said|says)",
    ]
    return any(re.search(p, lower_text) for p in patterns)


def check_attribution(text: str, evidence: Sequence[Evidence]) -> bool:
    person = extract_attribution(text)
    if person is None:
        return True
    if not evidence:
        return False

    top = evidence[0]
    author = top.metadata.get("author")
    if author and author.lower() == person.lower():
        return True
    return contains_quote_from(top.chunk_text, person)
