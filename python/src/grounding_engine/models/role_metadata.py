"""
Role metadata capability.

Each bot role (PM, Dev, ...) describes the structured metadata it tracks
for an entity and how claims about that metadata are phrased in text.
Implementations are registered by role name in a RoleRegistry.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Protocol, runtime_checkable


@dataclass(frozen=True)
class ExtractionPatterns:
    """
    Regex patterns for pulling metadata claims out of generated text.

    Attributes:
        inline_field_pattern: Matches "Field: value" inside parentheses,
            e.g. "MM-12345 (Priority: high | Segments: enterprise)"
        value_patterns: Field name -> value alternation, e.g.
            "priority" -> "(high|medium|low|critical)"
        field_aliases: Alternative field name -> canonical field name
    """
    inline_field_pattern: str
    value_patterns: Dict[str, str] = field(default_factory=dict)
    field_aliases: Dict[str, str] = field(default_factory=dict)


@runtime_checkable
class RoleMetadata(Protocol):
    """Ground-truth metadata for one entity, as seen by one role."""

    def get_field_names(self) -> List[str]:
        """Fields that carry a value for this entity."""
        ...

    def get_field_value(self, field_name: str) -> List[str]:
        """All values for a field (empty list if absent)."""
        ...

    def validate_claim(self, field_name: str, value: str) -> bool:
        """Case-insensitive membership of value in the field's values."""
        ...

    def get_extraction_patterns(self) -> ExtractionPatterns:
        ...
