"""
Pytest configuration and fixtures.

Provides shared fixtures for all tests including:
- Deterministic embedders (hashing bag-of-words, failing variants)
- A sample reference index with PM and Dev metadata
- Sample thread posts
"""

import re
import zlib
from typing import List, Sequence

import numpy as np
import pytest

from grounding_engine.models.evidence import Post
from grounding_engine.models.reference_index import (
    ConfluenceRef,
    GitHubRef,
    JiraRef,
    ReferenceIndex,
    ZendeskRef,
)
from grounding_engine.services.claims.roles import DevMetadata, PMMetadata


# ============================================================================
# Embedders
# ============================================================================

class HashingEmbedder:
    """
    Bag-of-words embedder: each token adds 1.0 at crc32(token) % DIM.

    Identical texts always have cosine similarity 1.0; texts sharing no
    tokens are (collisions aside) orthogonal.
    """

    DIM = 512
    TOKEN_PATTERN = re.compile(r"[a-z0-9']+")

    def __init__(self):
        self.embed_calls = 0
        self.batch_calls = 0

    def model_version(self) -> str:
        return "hashing-test-v1"

    def vector(self, text: str) -> np.ndarray:
        vector = np.zeros(self.DIM, dtype=np.float32)
        for token in self.TOKEN_PATTERN.findall(text.lower()):
            vector[zlib.crc32(token.encode()) % self.DIM] += 1.0
        return vector

    async def embed(self, text: str) -> np.ndarray:
        self.embed_calls += 1
        return self.vector(text)

    async def embed_batch(self, texts: Sequence[str]) -> List[np.ndarray]:
        self.batch_calls += 1
        return [self.vector(text) for text in texts]


class FailingEmbedder(HashingEmbedder):
    """Every embedding call fails."""

    async def embed(self, text: str) -> np.ndarray:
        raise RuntimeError("embedding service unavailable")

    async def embed_batch(self, texts: Sequence[str]) -> List[np.ndarray]:
        raise RuntimeError("embedding service unavailable")


class QueryFailingEmbedder(HashingEmbedder):
    """Batch indexing works; per-unit query embedding fails."""

    async def embed(self, text: str) -> np.ndarray:
        raise RuntimeError("rate limited")


@pytest.fixture
def embedder():
    return HashingEmbedder()


@pytest.fixture
def failing_embedder():
    return FailingEmbedder()


@pytest.fixture
def query_failing_embedder():
    return QueryFailingEmbedder()


# ============================================================================
# Reference Data
# ============================================================================

@pytest.fixture
def pm_metadata():
    return PMMetadata(priority="high", segments=["enterprise", "federal"], categories=["auth"])


@pytest.fixture
def dev_metadata():
    return DevMetadata(severity="critical", issue_type="bug", components=["server"], languages=["go"])


@pytest.fixture
def reference_index(pm_metadata, dev_metadata):
    """Index mentioning one PM ticket, one Dev issue, a Confluence page, a Zendesk ticket and a URL."""
    github_ref = GitHubRef(
        owner="mattermost", repo="mattermost", number=19234,
        sources=["tool_1"], metadata=dev_metadata,
    )
    return ReferenceIndex(
        jira_tickets={
            "MM-12345": JiraRef(
                key="MM-12345", project="MM", number=12345,
                sources=["tool_0"], metadata=pm_metadata,
            ),
        },
        github_issues={
            "mattermost/mattermost#19234": github_ref,
            "#19234": github_ref,
        },
        confluence_pages={
            "wiki.example.com/spaces/eng/pages/42": ConfluenceRef(
                space="eng", page_id="42",
                url="https://wiki.example.com/spaces/eng/pages/42",
            ),
        },
        zendesk_tickets={"5551": ZendeskRef(ticket_id="5551")},
        urls={"docs.mattermost.com/deploy"},
    )


@pytest.fixture
def thread_posts():
    return [
        Post(id="p1", author="Alice", text="Redis was approved for the caching layer."),
        Post(id="p2", author="Bob", text="The rollout starts with 25% of traffic.", reply_to="p1"),
    ]
