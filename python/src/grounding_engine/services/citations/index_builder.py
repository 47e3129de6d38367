"""
Reference Index Builder.

Builds the per-request ReferenceIndex from already-fetched tool results:
entity metadata describing the primary entities (with role metadata),
the cross-references those entities carry, and URLs scraped from the
raw tool-result text. It never fetches anything itself.
"""

import logging
import re
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from ...models.reference_index import (
    ConfluenceRef,
    GitHubRef,
    JiraRef,
    ReferenceIndex,
    ZendeskRef,
    normalize_url,
)
from ...models.role_metadata import RoleMetadata
from ..claims.registry import RoleRegistry, default_role_registry

logger = logging.getLogger(__name__)


class EntityType(str, Enum):
    JIRA = "jira"
    GITHUB = "github"
    CONFLUENCE = "confluence"
    ZENDESK = "zendesk"
    OTHER = "other"


class GitHubItem(BaseModel):
    owner: str = ""
    repo: str = ""
    number: int


class JiraItem(BaseModel):
    key: str
    project: str = ""
    number: int = 0


class ConfluencePage(BaseModel):
    url: str
    space: str = ""
    page_id: str = ""


class ZendeskTicket(BaseModel):
    ticket_id: str
    url: str = ""


class EntityMetadata(BaseModel):
    """
    Structured metadata returned alongside one tool result.

    Attributes:
        entity_type: Kind of primary entity the tool result describes
        entity_id: "MM-12345" or "owner/repo#123"
        role: Role name whose metadata is attached (e.g. "pm", "dev")
        role_metadata: Raw role fields (e.g. {"priority": "high"})
        github_issues / github_prs / jira_tickets / confluence_pages /
        zendesk_tickets: Cross-references mentioned by the entity
    """
    entity_type: EntityType = EntityType.OTHER
    entity_id: str = ""
    role: Optional[str] = None
    role_metadata: Dict[str, Any] = Field(default_factory=dict)

    github_issues: List[GitHubItem] = Field(default_factory=list)
    github_prs: List[GitHubItem] = Field(default_factory=list)
    jira_tickets: List[JiraItem] = Field(default_factory=list)
    confluence_pages: List[ConfluencePage] = Field(default_factory=list)
    zendesk_tickets: List[ZendeskTicket] = Field(default_factory=list)


class ReferenceIndexBuilder:
    """
    Builds exact-match reference indexes.

    Example:
        >>> builder = ReferenceIndexBuilder()
        >>> index = builder.build(
        ...     ["See https://docs.example.com/setup"],
        ...     [EntityMetadata(entity_type="jira", entity_id="MM-1",
        ...                     role="pm", role_metadata={"priority": "high"})],
        ... )
        >>> sorted(index.jira_tickets)
        ['MM-1']
    """

    URL_PATTERN = re.compile(r'https?://[^\s<>"]+')
    URL_TRAILING_PUNCTUATION = '.,;:!?\')'

    def __init__(self, role_registry: Optional[RoleRegistry] = None):
        self.role_registry = role_registry or default_role_registry()

    def build(
        self,
        tool_results: List[str],
        entities: Optional[List[Optional[EntityMetadata]]] = None,
    ) -> ReferenceIndex:
        """
        Build an index from tool results.

        Args:
            tool_results: Raw tool-result texts
            entities: Entity metadata, positionally matched to tool results

        Returns:
            A new ReferenceIndex
        """
        index = ReferenceIndex()

        for i, entity in enumerate(entities or []):
            if entity is None:
                continue
            source_id = f"tool_{i}"
            metadata = self._convert(entity)

            if entity.entity_type == EntityType.JIRA and entity.entity_id:
                self._add_jira_entity(index, entity.entity_id, metadata, source_id)

            if entity.entity_type == EntityType.GITHUB and entity.entity_id:
                self._add_github_entity(index, entity.entity_id, metadata, source_id)

            for item in entity.github_issues + entity.github_prs:
                self._add_github_reference(index, item, source_id)

            for ticket in entity.jira_tickets:
                existing = index.jira_tickets.get(ticket.key)
                if existing is not None:
                    existing.sources.append(source_id)
                else:
                    index.jira_tickets[ticket.key] = JiraRef(
                        key=ticket.key,
                        project=ticket.project,
                        number=ticket.number,
                        sources=[source_id],
                    )

            for page in entity.confluence_pages:
                key = normalize_url(page.url)
                existing = index.confluence_pages.get(key)
                if existing is not None:
                    existing.sources.append(source_id)
                else:
                    index.confluence_pages[key] = ConfluenceRef(
                        space=page.space,
                        page_id=page.page_id,
                        url=page.url,
                        sources=[source_id],
                    )

            for ticket in entity.zendesk_tickets:
                existing = index.zendesk_tickets.get(ticket.ticket_id)
                if existing is not None:
                    existing.sources.append(source_id)
                else:
                    index.zendesk_tickets[ticket.ticket_id] = ZendeskRef(
                        ticket_id=ticket.ticket_id,
                        url=ticket.url,
                        sources=[source_id],
                    )

        for content in tool_results:
            for match in self.URL_PATTERN.finditer(content):
                url = match.group(0).rstrip(self.URL_TRAILING_PUNCTUATION)
                index.urls.add(normalize_url(url))

        logger.info(
            f"Built reference index: {len(index.github_issues)} GitHub, "
            f"{len(index.jira_tickets)} Jira, {len(index.confluence_pages)} Confluence, "
            f"{len(index.zendesk_tickets)} Zendesk, {len(index.urls)} URLs"
        )
        return index

    def _convert(self, entity: EntityMetadata) -> Optional[RoleMetadata]:
        if not entity.role or not entity.role_metadata:
            return None
        if entity.role not in self.role_registry:
            logger.warning(f"No role metadata registered for role '{entity.role}', skipping")
            return None
        return self.role_registry.create(entity.role, entity.role_metadata)

    @staticmethod
    def _add_jira_entity(
        index: ReferenceIndex,
        key: str,
        metadata: Optional[RoleMetadata],
        source_id: str,
    ) -> None:
        existing = index.jira_tickets.get(key)
        if existing is not None:
            existing.metadata = metadata
            existing.sources.append(source_id)
            return

        project, number = "", 0
        parts = key.split("-")
        if len(parts) == 2:
            project = parts[0]
            number = int(parts[1]) if parts[1].isdigit() else 0

        index.jira_tickets[key] = JiraRef(
            key=key,
            project=project,
            number=number,
            sources=[source_id],
            metadata=metadata,
        )

    @staticmethod
    def _add_github_entity(
        index: ReferenceIndex,
        entity_id: str,
        metadata: Optional[RoleMetadata],
        source_id: str,
    ) -> None:
        parts = entity_id.split("/")
        if len(parts) < 2:
            return
        repo_parts = parts[1].split("#")
        if len(repo_parts) != 2:
            return

        owner, repo = parts[0], repo_parts[0]
        number = int(repo_parts[1]) if repo_parts[1].isdigit() else 0

        for key in (entity_id, f"#{number}"):
            existing = index.github_issues.get(key)
            if existing is not None:
                existing.metadata = metadata
                existing.sources.append(source_id)
            else:
                index.github_issues[key] = GitHubRef(
                    owner=owner,
                    repo=repo,
                    number=number,
                    sources=[source_id],
                    metadata=metadata,
                )

    @staticmethod
    def _add_github_reference(index: ReferenceIndex, item: GitHubItem, source_id: str) -> None:
        keys = []
        if item.owner and item.repo:
            keys.append(f"{item.owner}/{item.repo}#{item.number}")
        keys.append(f"#{item.number}")

        ref = GitHubRef(owner=item.owner, repo=item.repo, number=item.number)
        for key in keys:
            existing = index.github_issues.get(key)
            if existing is not None:
                existing.sources.append(source_id)
            else:
                ref.sources = [source_id]
                index.github_issues[key] = ref
