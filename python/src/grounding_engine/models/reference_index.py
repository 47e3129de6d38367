"""
Reference index models.

A ReferenceIndex is an exact-match snapshot of the entities that tool
results mentioned during one request. Lookups never use substring or
prefix matching.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from .role_metadata import RoleMetadata


def normalize_url(raw_url: str) -> str:
    """
    Normalize a URL for index comparison.

    Lower-cases, strips one leading ``https://`` or ``http://`` and one
    trailing slash.

    Example:
        >>> normalize_url("HTTPS://Docs.Example.com/Page/")
        'docs.example.com/page'
    """
    normalized = raw_url.lower()
    if normalized.startswith("https://"):
        normalized = normalized[len("https://"):]
    elif normalized.startswith("http://"):
        normalized = normalized[len("http://"):]
    if normalized.endswith("/"):
        normalized = normalized[:-1]
    return normalized


@dataclass
class GitHubRef:
    """GitHub issue or PR mentioned by tool results."""
    owner: str
    repo: str
    number: int
    sources: List[str] = field(default_factory=list)
    metadata: Optional[RoleMetadata] = None


@dataclass
class JiraRef:
    """Jira ticket mentioned by tool results."""
    key: str
    project: str = ""
    number: int = 0
    sources: List[str] = field(default_factory=list)
    metadata: Optional[RoleMetadata] = None


@dataclass
class ConfluenceRef:
    space: str
    page_id: str
    url: str
    sources: List[str] = field(default_factory=list)


@dataclass
class ZendeskRef:
    ticket_id: str
    url: str = ""
    sources: List[str] = field(default_factory=list)


@dataclass
class ReferenceIndex:
    """
    Per-request snapshot of known entities.

    Keys:
        github_issues: "owner/repo#123" and short "#123"
        jira_tickets: "MM-12345"
        confluence_pages: normalized page URL
        zendesk_tickets: ticket id
        urls: normalized URLs seen in tool-result text
    """
    github_issues: Dict[str, GitHubRef] = field(default_factory=dict)
    jira_tickets: Dict[str, JiraRef] = field(default_factory=dict)
    confluence_pages: Dict[str, ConfluenceRef] = field(default_factory=dict)
    zendesk_tickets: Dict[str, ZendeskRef] = field(default_factory=dict)
    urls: Set[str] = field(default_factory=set)

    def has_url(self, url: str) -> bool:
        """Exact lookup of a URL (normalized) among scraped URLs and Confluence pages."""
        normalized = normalize_url(url)
        return normalized in self.urls or normalized in self.confluence_pages

    @property
    def size(self) -> int:
        return (
            len(self.github_issues)
            + len(self.jira_tickets)
            + len(self.confluence_pages)
            + len(self.zendesk_tickets)
            + len(self.urls)
        )
