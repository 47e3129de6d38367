"""External existence-check clients."""

from .existence import (
    APIClients,
    GitHubExistenceClient,
    JiraExistenceClient,
    URLExistenceClient,
)

__all__ = [
    "APIClients",
    "GitHubExistenceClient",
    "JiraExistenceClient",
    "URLExistenceClient",
]
