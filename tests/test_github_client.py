from __future__ import annotations

import asyncio

import httpx
import pytest

from agent_signal.github import (
    AuthenticationError,
    GitHubClient,
    InvalidResponseError,
    NetworkError,
    NotConfiguredError,
    RateLimitedError,
    TransientFetchError,
)

ISSUE_PAYLOAD = [
    {
        "id": 101,
        "number": 42,
        "state": "open",
        "title": "Add retries",
        "assignee": {"login": "copilot-swe-agent"},
        "reactions": {"eyes": 2, "+1": 0},
        "pull_request": {"url": "https://api.github.com/repos/org/repo/pulls/7"},
        "labels": [],
    },
    {
        "id": 102,
        "number": 43,
        "state": "open",
        "title": "Docs",
        "assignee": None,
        "reactions": {"eyes": 0},
    },
]


def _client(handler, token: str | None = "secret") -> GitHubClient:
    return GitHubClient(token, transport=httpx.MockTransport(handler))


def _fetch_issues(client: GitHubClient, repository: str = "org/repo"):
    async def scenario():
        try:
            return await client.fetch_open_issues(repository)
        finally:
            await client.aclose()

    return asyncio.run(scenario())


def test_fetch_open_issues_sends_expected_request() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=ISSUE_PAYLOAD)

    issues = _fetch_issues(_client(handler))

    [request] = seen
    assert request.url.path == "/repos/org/repo/issues"
    assert request.url.params["state"] == "open"
    assert request.url.params["per_page"] == "100"
    assert request.headers["Authorization"] == "Bearer secret"
    assert request.headers["Accept"] == "application/vnd.github+json"
    assert request.headers["X-GitHub-Api-Version"] == "2022-11-28"

    assert [issue.number for issue in issues] == [42, 43]
    first, second = issues
    assert first.assignee_login == "copilot-swe-agent"
    assert first.eyes_reaction_count == 2
    assert first.pull_request_url == "https://api.github.com/repos/org/repo/pulls/7"
    assert second.assignee_login is None
    assert second.pull_request_url is None


def test_fetch_pull_request_reads_draft_flag() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/repos/org/repo/pulls/7"
        return httpx.Response(200, json={"number": 7, "state": "open", "draft": True, "title": "WIP"})

    client = _client(handler)

    async def scenario():
        try:
            return await client.fetch_pull_request("https://api.github.com/repos/org/repo/pulls/7")
        finally:
            await client.aclose()

    pull_request = asyncio.run(scenario())

    assert pull_request.number == 7
    assert pull_request.is_draft is True


@pytest.mark.parametrize(
    ("status", "error"),
    [
        (401, AuthenticationError),
        (403, RateLimitedError),
        (429, RateLimitedError),
        (500, NetworkError),
        (503, NetworkError),
        (404, InvalidResponseError),
        (302, InvalidResponseError),
    ],
)
def test_status_codes_map_to_typed_errors(status: int, error: type[Exception]) -> None:
    client = _client(lambda request: httpx.Response(status, json={"message": "nope"}))

    with pytest.raises(error):
        _fetch_issues(client)


def test_rate_limit_and_network_errors_are_transient() -> None:
    assert issubclass(RateLimitedError, TransientFetchError)
    assert issubclass(NetworkError, TransientFetchError)
    assert not issubclass(AuthenticationError, TransientFetchError)


def test_transport_failure_is_network_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(NetworkError):
        _fetch_issues(_client(handler))


def test_undecodable_body_is_invalid_response() -> None:
    client = _client(lambda request: httpx.Response(200, content=b"<html>not json</html>"))

    with pytest.raises(InvalidResponseError):
        _fetch_issues(client)


def test_non_list_issue_payload_is_invalid_response() -> None:
    client = _client(lambda request: httpx.Response(200, json={"message": "Moved"}))

    with pytest.raises(InvalidResponseError):
        _fetch_issues(client)


def test_missing_required_issue_field_is_invalid_response() -> None:
    client = _client(lambda request: httpx.Response(200, json=[{"number": 1, "state": "open"}]))

    with pytest.raises(InvalidResponseError):
        _fetch_issues(client)


def test_unconfigured_client_raises_before_any_request() -> None:
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json=[])

    client = _client(handler, token=None)

    assert client.is_configured() is False
    with pytest.raises(NotConfiguredError):
        _fetch_issues(client)
    assert calls == []


def test_configure_sets_and_clears_token() -> None:
    client = GitHubClient()

    client.configure("abc")
    assert client.is_configured() is True

    client.configure("")
    assert client.is_configured() is False


def test_custom_base_url_is_used() -> None:
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        return httpx.Response(200, json=[])

    client = GitHubClient(
        "secret",
        base_url="https://github.example.com/api/v3/",
        transport=httpx.MockTransport(handler),
    )

    assert _fetch_issues(client, "team/service") == []
    assert seen[0].startswith("https://github.example.com/api/v3/repos/team/service/issues?")
