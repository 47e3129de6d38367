"""Dev role metadata: severity, issue type, components, languages, complexity."""

from dataclasses import dataclass, field
from typing import Any, Dict, List

from ....models.role_metadata import ExtractionPatterns


@dataclass
class DevMetadata:
    """
    Engineering metadata for one entity.

    Field lookups accept the aliases used in text ("type", "issuetype",
    "component", "language").
    """
    severity: str = ""
    issue_type: str = ""
    components: List[str] = field(default_factory=list)
    languages: List[str] = field(default_factory=list)
    complexity: str = ""

    EXTRACTION_PATTERNS = ExtractionPatterns(
        inline_field_pattern=r'(?i)(Severity|IssueType|Type|Components?|Languages?|Complexity):\s*(.+)',
        value_patterns={
            "severity": r'(critical|major|minor|trivial)',
            "issue_type": r'(bug|feature|improvement|task)',
            "complexity": r'(high|medium|low)',
        },
        field_aliases={
            "component": "components",
            "language": "languages",
            "type": "issue_type",
            "issuetype": "issue_type",
        },
    )

    SEVERITY_TO_PRIORITY = {
        "critical": "high",
        "major": "medium",
        "minor": "low",
        "trivial": "low",
    }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DevMetadata":
        return cls(
            severity=str(data.get("severity") or ""),
            issue_type=str(data.get("issue_type") or ""),
            components=[str(c) for c in data.get("components") or []],
            languages=[str(lang) for lang in data.get("languages") or []],
            complexity=str(data.get("complexity") or ""),
        )

    def get_field_names(self) -> List[str]:
        fields = []
        if self.severity:
            fields.append("severity")
        if self.issue_type:
            fields.append("issue_type")
        if self.components:
            fields.append("components")
        if self.languages:
            fields.append("languages")
        if self.complexity:
            fields.append("complexity")
        return fields

    def get_field_value(self, field_name: str) -> List[str]:
        name = field_name.lower()
        if name == "severity":
            return [self.severity] if self.severity else []
        if name in ("issue_type", "issuetype", "type"):
            return [self.issue_type] if self.issue_type else []
        if name in ("components", "component"):
            return list(self.components)
        if name in ("languages", "language"):
            return list(self.languages)
        if name == "complexity":
            return [self.complexity] if self.complexity else []
        return []

    def validate_claim(self, field_name: str, value: str) -> bool:
        value_lower = value.lower()
        return any(v.lower() == value_lower for v in self.get_field_value(field_name))

    def get_extraction_patterns(self) -> ExtractionPatterns:
        return self.EXTRACTION_PATTERNS

    def get_priority(self) -> str:
        """Severity mapped onto a priority label ("none" if unknown)."""
        return self.SEVERITY_TO_PRIORITY.get(self.severity.lower(), "none")
