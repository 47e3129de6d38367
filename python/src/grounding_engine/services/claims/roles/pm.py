"""PM role metadata: priority, customer segments, categories, competitive notes."""

from dataclasses import dataclass, field
from typing import Any, Dict, List

from ....models.role_metadata import ExtractionPatterns


@dataclass
class PMMetadata:
    """
    Product-management metadata for one entity.

    Example:
        >>> meta = PMMetadata(priority="high", segments=["enterprise"])
        >>> meta.validate_claim("Priority", "HIGH")
        True
    """
    priority: str = ""
    segments: List[str] = field(default_factory=list)
    categories: List[str] = field(default_factory=list)
    competitive: str = ""

    EXTRACTION_PATTERNS = ExtractionPatterns(
        inline_field_pattern=r'(?i)(Priority|Segments?|Categories|Competitive):\s*(.+)',
        value_patterns={
            "priority": r'(high|medium|low|critical)',
            "segments": r'(enterprise|smb|federal|government|mid-market|startup)',
        },
        field_aliases={
            "segment": "segments",
            "category": "categories",
            "categor": "categories",
        },
    )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PMMetadata":
        return cls(
            priority=str(data.get("priority") or ""),
            segments=[str(s) for s in data.get("segments") or []],
            categories=[str(c) for c in data.get("categories") or []],
            competitive=str(data.get("competitive") or ""),
        )

    def get_field_names(self) -> List[str]:
        fields = []
        if self.priority:
            fields.append("priority")
        if self.segments:
            fields.append("segments")
        if self.categories:
            fields.append("categories")
        if self.competitive:
            fields.append("competitive")
        return fields

    def get_field_value(self, field_name: str) -> List[str]:
        name = field_name.lower()
        if name == "priority":
            return [self.priority] if self.priority else []
        if name == "segments":
            return list(self.segments)
        if name == "categories":
            return list(self.categories)
        if name == "competitive":
            return [self.competitive] if self.competitive else []
        return []

    def validate_claim(self, field_name: str, value: str) -> bool:
        value_lower = value.lower()
        return any(v.lower() == value_lower for v in self.get_field_value(field_name))

    def get_extraction_patterns(self) -> ExtractionPatterns:
        return self.EXTRACTION_PATTERNS
