"""
Existence-check clients for external systems.

Each client answers one question: does this entity exist?
- True: the system confirmed it (200, or 2xx-3xx for plain URLs)
- False: the system authoritatively reported 404
- ExistenceCheckError: anything else (unexpected status, transport failure)

Clients never retry. Callers bound each check with their own deadline.
"""

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, Optional, Protocol

import httpx

from ..core.config import settings
from ..exceptions import ExistenceCheckError

logger = logging.getLogger(__name__)


class JiraClient(Protocol):
    async def issue_exists(self, key: str) -> bool:
        ...


class GitHubClient(Protocol):
    async def issue_exists(self, owner: str, repo: str, number: int) -> bool:
        ...


class URLClient(Protocol):
    async def exists(self, url: str) -> bool:
        ...


class _HTTPExistenceClient:
    """Shared httpx plumbing: reuse an injected client or open one per call."""

    TIMEOUT = 10.0

    def __init__(self, http_client: Optional[httpx.AsyncClient] = None):
        self._http_client = http_client

    @asynccontextmanager
    async def _client(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._http_client is not None:
            yield self._http_client
            return
        async with httpx.AsyncClient(timeout=self.TIMEOUT) as client:
            yield client

    @staticmethod
    def _interpret(response: httpx.Response) -> bool:
        if response.status_code == 200:
            return True
        if response.status_code == 404:
            return False
        raise ExistenceCheckError(
            f"unexpected status code: {response.status_code}",
            status_code=response.status_code,
        )


class GitHubExistenceClient(_HTTPExistenceClient):
    """
    Checks GitHub issues/PRs via the REST API.

    Example:
        >>> client = GitHubExistenceClient(token="ghp_...")
        >>> await client.issue_exists("mattermost", "mattermost", 19234)
        True
    """

    API_BASE_URL = "https://api.github.com"

    def __init__(
        self,
        token: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__(http_client)
        self.token = token if token is not None else settings.GITHUB_TOKEN

    async def issue_exists(self, owner: str, repo: str, number: int) -> bool:
        """
        Check whether owner/repo#number exists.

        Raises:
            ExistenceCheckError: Invalid reference, unexpected status or transport failure
        """
        if not owner or not repo or number == 0:
            raise ExistenceCheckError(
                f"invalid GitHub reference: owner={owner}, repo={repo}, number={number}"
            )

        url = f"{self.API_BASE_URL}/repos/{owner}/{repo}/issues/{number}"
        headers = {"Accept": "application/vnd.github.v3+json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        async with self._client() as client:
            try:
                response = await client.get(url, headers=headers)
            except httpx.HTTPError as e:
                logger.warning(f"GitHub existence check failed for {owner}/{repo}#{number}: {e}")
                raise ExistenceCheckError(f"API request failed: {e}") from e

        return self._interpret(response)


class JiraExistenceClient(_HTTPExistenceClient):
    """Checks Jira issues via the REST API (v2)."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        auth: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__(http_client)
        self.base_url = (base_url if base_url is not None else settings.JIRA_BASE_URL).rstrip("/")
        self.auth = auth if auth is not None else settings.JIRA_AUTH

    async def issue_exists(self, key: str) -> bool:
        """
        Check whether a Jira key exists.

        Raises:
            ExistenceCheckError: Empty key, unexpected status or transport failure
        """
        if not key:
            raise ExistenceCheckError("invalid Jira key: empty")

        url = f"{self.base_url}/rest/api/2/issue/{key}"
        headers = {"Accept": "application/json"}
        if self.auth:
            headers["Authorization"] = f"Basic {self.auth}"

        async with self._client() as client:
            try:
                response = await client.get(url, headers=headers)
            except httpx.HTTPError as e:
                logger.warning(f"Jira existence check failed for {key}: {e}")
                raise ExistenceCheckError(f"API request failed: {e}") from e

        return self._interpret(response)


class URLExistenceClient(_HTTPExistenceClient):
    """
    Checks plain URLs: HEAD first, GET fallback.

    2xx-3xx means the URL exists and 404 means it does not. Any other
    answer from the GET fallback is an error.
    """

    async def exists(self, url: str) -> bool:
        async with self._client() as client:
            try:
                response = await client.head(url, follow_redirects=True)
                if 200 <= response.status_code < 400:
                    return True
                if response.status_code == 404:
                    return False
            except httpx.HTTPError as e:
                logger.debug(f"HEAD {url} failed, falling back to GET: {e}")

            try:
                response = await client.get(url, follow_redirects=True)
            except httpx.HTTPError as e:
                raise ExistenceCheckError(f"GET request failed: {e}") from e

        if 200 <= response.status_code < 400:
            return True
        if response.status_code == 404:
            return False
        raise ExistenceCheckError(f"HTTP {response.status_code}", status_code=response.status_code)


@dataclass
class APIClients:
    """
    Existence-check clients available for escalation.

    Any missing client leaves the citations it covers NOT_CHECKED.
    """
    github: Optional[GitHubClient] = None
    jira: Optional[JiraClient] = None
    urls: Optional[URLClient] = field(default_factory=URLExistenceClient)

    @classmethod
    def from_settings(cls, http_client: Optional[httpx.AsyncClient] = None) -> "APIClients":
        """Build clients for the systems configured in settings."""
        github = GitHubExistenceClient(http_client=http_client)
        jira = JiraExistenceClient(http_client=http_client) if settings.JIRA_BASE_URL else None
        return cls(github=github, jira=jira, urls=URLExistenceClient(http_client))
