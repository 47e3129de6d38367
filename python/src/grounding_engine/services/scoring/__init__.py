"""Citation grounding scoring."""

from .scoring_engine import MAX_EXPECTED_FIELDS, calculate_grounding_score

__all__ = ["MAX_EXPECTED_FIELDS", "calculate_grounding_score"]
