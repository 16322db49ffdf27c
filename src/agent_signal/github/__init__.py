"""GitHub repository data source."""

from .client import GITHUB_API, GitHubClient, RepositoryDataSource
from .errors import (
    AuthenticationError,
    InvalidResponseError,
    NetworkError,
    NotConfiguredError,
    RateLimitedError,
    RepositoryError,
    TransientFetchError,
)
from .models import IssueSnapshot, PullRequestSnapshot

__all__ = [
    "GITHUB_API",
    "AuthenticationError",
    "GitHubClient",
    "InvalidResponseError",
    "IssueSnapshot",
    "NetworkError",
    "NotConfiguredError",
    "PullRequestSnapshot",
    "RateLimitedError",
    "RepositoryDataSource",
    "RepositoryError",
    "TransientFetchError",
]
