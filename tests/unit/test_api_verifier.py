"""
Unit Tests for API Escalation

Tests:
- GitHub reference parsing
- exists / not found / error / parse error classification
- Per-check deadline
- Grounded citations never reach the network
- Missing clients leave citations NOT_CHECKED
"""

import asyncio

import pytest

from grounding_engine.clients.existence import APIClients
from grounding_engine.exceptions import CitationParseError, ExistenceCheckError
from grounding_engine.models.citation import Citation, CitationType, ValidationStatus
from grounding_engine.services.citations.api_verifier import APIVerifier, parse_github_ref


# ============================================================================
# Fake Clients
# ============================================================================

class FakeJiraClient:

    def __init__(self, existing=(), error_keys=(), delay=0.0):
        self.existing = set(existing)
        self.error_keys = set(error_keys)
        self.delay = delay
        self.calls = []

    async def issue_exists(self, key: str) -> bool:
        self.calls.append(key)
        if self.delay:
            await asyncio.sleep(self.delay)
        if key in self.error_keys:
            raise ExistenceCheckError("unexpected status code: 500", status_code=500)
        return key in self.existing


class FakeGitHubClient:

    def __init__(self, existing=()):
        self.existing = set(existing)
        self.calls = []

    async def issue_exists(self, owner: str, repo: str, number: int) -> bool:
        self.calls.append((owner, repo, number))
        return (owner, repo, number) in self.existing


class FakeURLClient:

    def __init__(self, existing=()):
        self.existing = set(existing)
        self.calls = []

    async def exists(self, url: str) -> bool:
        self.calls.append(url)
        return url in self.existing


@pytest.fixture
def jira():
    return FakeJiraClient(existing={"MM-777"}, error_keys={"MM-500"})


@pytest.fixture
def github():
    return FakeGitHubClient(existing={("mattermost", "server", 1)})


@pytest.fixture
def urls():
    return FakeURLClient(existing={"https://example.com/live"})


@pytest.fixture
def verifier(reference_index, jira, github, urls):
    return APIVerifier(reference_index, APIClients(github=github, jira=jira, urls=urls))


# ============================================================================
# parse_github_ref
# ============================================================================

class TestParseGitHubRef:

    def test_long_form(self):
        assert parse_github_ref("mattermost/server#123") == ("mattermost", "server", 123)

    def test_short_form_cannot_be_verified(self):
        with pytest.raises(CitationParseError, match="without owner/repo"):
            parse_github_ref("#123")

    def test_non_numeric_issue(self):
        with pytest.raises(CitationParseError, match="invalid issue number"):
            parse_github_ref("owner/repo#abc")

    @pytest.mark.parametrize("ref", ["a/b/c#1", "owner/repo", "garbage"])
    def test_malformed(self, ref):
        with pytest.raises(CitationParseError):
            parse_github_ref(ref)


# ============================================================================
# Escalation
# ============================================================================

class TestEscalation:

    @pytest.mark.asyncio
    async def test_outcomes_are_distinguished(self, verifier):
        citations = [
            Citation(type=CitationType.JIRA_TICKET, value="MM-777"),
            Citation(type=CitationType.JIRA_TICKET, value="MM-404"),
            Citation(type=CitationType.JIRA_TICKET, value="MM-500"),
            Citation(type=CitationType.GITHUB, value="#42"),
        ]
        await verifier.validate(citations)

        assert [c.validation_status for c in citations] == [
            ValidationStatus.UNGROUNDED_VALID,
            ValidationStatus.FABRICATED,
            ValidationStatus.API_ERROR,
            ValidationStatus.API_ERROR,
        ]
        assert citations[0].is_valid is True
        assert citations[0].validation_details == "Verified via API"
        assert citations[1].validation_details == "Does not exist in external system"
        assert citations[2].validation_details.startswith("API error:")
        assert citations[3].validation_details.startswith("Parse error:")
        assert all(c.verified_via_api for c in citations)

    @pytest.mark.asyncio
    async def test_grounded_citations_are_never_escalated(self, verifier, jira, github):
        citations = [
            Citation(type=CitationType.JIRA_TICKET, value="MM-12345"),
            Citation(type=CitationType.GITHUB, value="mattermost/mattermost#19234"),
        ]
        await verifier.validate(citations)

        assert all(c.validation_status == ValidationStatus.GROUNDED for c in citations)
        assert not any(c.verified_via_api for c in citations)
        assert jira.calls == []
        assert github.calls == []

    @pytest.mark.asyncio
    async def test_github_and_url_checks(self, verifier, github, urls):
        citations = [
            Citation(type=CitationType.GITHUB, value="mattermost/server#1"),
            Citation(type=CitationType.URL, value="https://example.com/live"),
            Citation(type=CitationType.URL, value="https://example.com/gone"),
        ]
        await verifier.validate(citations)

        assert github.calls == [("mattermost", "server", 1)]
        assert [c.validation_status for c in citations] == [
            ValidationStatus.UNGROUNDED_VALID,
            ValidationStatus.UNGROUNDED_VALID,
            ValidationStatus.FABRICATED,
        ]

    @pytest.mark.asyncio
    async def test_unsupported_types_stay_not_checked(self, verifier):
        citation = Citation(type=CitationType.PRODUCTBOARD, value="productboard://x")
        await verifier.validate([citation])
        assert citation.validation_status == ValidationStatus.NOT_CHECKED

    @pytest.mark.asyncio
    async def test_missing_client_leaves_citation_not_checked(self, reference_index, urls):
        verifier = APIVerifier(reference_index, APIClients(urls=urls))
        citation = Citation(type=CitationType.JIRA_TICKET, value="MM-1")
        await verifier.validate([citation])
        assert citation.validation_status == ValidationStatus.NOT_CHECKED

    @pytest.mark.asyncio
    async def test_missing_url_client_leaves_url_not_checked(self, reference_index, jira):
        verifier = APIVerifier(reference_index, APIClients(jira=jira, urls=None))
        citations = [
            Citation(type=CitationType.URL, value="https://example.com/live"),
            Citation(type=CitationType.JIRA_TICKET, value="MM-777"),
        ]
        await verifier.validate(citations)

        assert [c.validation_status for c in citations] == [
            ValidationStatus.NOT_CHECKED,
            ValidationStatus.UNGROUNDED_VALID,
        ]

    @pytest.mark.asyncio
    async def test_without_clients_only_reference_validation_runs(self, reference_index):
        citations = [
            Citation(type=CitationType.JIRA_TICKET, value="MM-12345"),
            Citation(type=CitationType.JIRA_TICKET, value="MM-1"),
        ]
        await APIVerifier(reference_index).validate(citations)
        assert [c.validation_status for c in citations] == [
            ValidationStatus.GROUNDED,
            ValidationStatus.NOT_CHECKED,
        ]

    @pytest.mark.asyncio
    async def test_slow_check_times_out_as_api_error(self, reference_index, monkeypatch):
        monkeypatch.setattr(APIVerifier, "API_TIMEOUT_SECONDS", 0.05)
        slow = FakeJiraClient(existing={"MM-9"}, delay=1.0)
        verifier = APIVerifier(reference_index, APIClients(jira=slow))

        citation = Citation(type=CitationType.JIRA_TICKET, value="MM-9")
        await verifier.validate([citation])

        assert citation.validation_status == ValidationStatus.API_ERROR
        assert "timed out" in citation.validation_details

    @pytest.mark.asyncio
    async def test_single_citation_parse_error_path(self, verifier):
        citation = Citation(type=CitationType.GITHUB, value="#5")
        await verifier.verify(citation)
        assert citation.validation_status == ValidationStatus.API_ERROR
        assert "cannot verify short GitHub reference" in citation.validation_details
