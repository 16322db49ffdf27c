"""Async GitHub REST client used as the repository data source."""

from __future__ import annotations

import logging
from typing import Any, Protocol, Sequence

import httpx
from pydantic import ValidationError

from .errors import (
    AuthenticationError,
    InvalidResponseError,
    NetworkError,
    NotConfiguredError,
    RateLimitedError,
)
from .models import IssueSnapshot, PullRequestSnapshot

logger = logging.getLogger(__name__)

GITHUB_API = "https://api.github.com"
DEFAULT_TIMEOUT_SECONDS = 30.0


class RepositoryDataSource(Protocol):
    """Narrow interface the remote tracker depends on."""

    def configure(self, token: str | None) -> None: ...

    def is_configured(self) -> bool: ...

    async def fetch_open_issues(self, repository: str) -> Sequence[IssueSnapshot]: ...

    async def fetch_pull_request(self, url: str) -> PullRequestSnapshot: ...


class GitHubClient:
    """Fetch issue and pull request snapshots over the GitHub REST API."""

    def __init__(
        self,
        token: str | None = None,
        *,
        base_url: str = GITHUB_API,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._token: str | None = None
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        if token:
            self.configure(token)

    def configure(self, token: str | None) -> None:
        self._token = token or None
        if self._token:
            logger.info("GitHub API client configured")
        else:
            logger.warning("GitHub API client token cleared")

    def is_configured(self) -> bool:
        return self._token is not None

    def _headers(self) -> dict[str, str]:
        if self._token is None:
            raise NotConfiguredError("GitHub token not configured")
        return {
            "Authorization": f"Bearer {self._token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout, transport=self._transport)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def fetch_open_issues(self, repository: str) -> list[IssueSnapshot]:
        """Return the open issues of ``owner/name`` in response order."""

        headers = self._headers()
        url = f"{self._base_url}/repos/{repository}/issues"
        logger.debug("Fetching issues for repository %s", repository)
        payload = await self._get_json(url, headers=headers, params={"state": "open", "per_page": 100})
        if not isinstance(payload, list):
            raise InvalidResponseError(f"Expected a list of issues for {repository}")
        try:
            issues = [IssueSnapshot.model_validate(item) for item in payload]
        except ValidationError as exc:
            raise InvalidResponseError(f"Malformed issue payload for {repository}: {exc}") from exc
        logger.debug("Fetched %d issues for %s", len(issues), repository)
        return issues

    async def fetch_pull_request(self, url: str) -> PullRequestSnapshot:
        """Return the pull request behind an issue's ``pull_request.url``."""

        headers = self._headers()
        logger.debug("Fetching pull request %s", url)
        payload = await self._get_json(url, headers=headers)
        try:
            pull_request = PullRequestSnapshot.model_validate(payload)
        except ValidationError as exc:
            raise InvalidResponseError(f"Malformed pull request payload from {url}: {exc}") from exc
        logger.debug("Fetched pull request #%d", pull_request.number)
        return pull_request

    async def _get_json(
        self,
        url: str,
        *,
        headers: dict[str, str],
        params: dict[str, Any] | None = None,
    ) -> Any:
        try:
            response = await self._http().get(url, headers=headers, params=params)
        except httpx.InvalidURL as exc:
            raise InvalidResponseError(f"Invalid GitHub API URL: {url}") from exc
        except httpx.HTTPError as exc:
            raise NetworkError(f"Network error: {exc}") from exc

        status = response.status_code
        if status == 401:
            raise AuthenticationError("GitHub API authentication failed")
        if status in (403, 429):
            raise RateLimitedError("GitHub API rate limit exceeded")
        if status >= 500:
            raise NetworkError(f"GitHub API returned server error {status}")
        if status != 200:
            logger.error("GitHub API returned status code %d", status)
            raise InvalidResponseError(f"Unexpected status {status} from GitHub API")

        try:
            return response.json()
        except ValueError as exc:
            raise InvalidResponseError("Invalid JSON in GitHub API response") from exc


__all__ = ["GITHUB_API", "GitHubClient", "RepositoryDataSource"]
