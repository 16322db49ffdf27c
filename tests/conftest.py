from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Iterable, Mapping

import pytest

from agent_signal.github import IssueSnapshot, PullRequestSnapshot
from agent_signal.local import WindowSnapshot


class ScriptedDataSource:
    """In-memory repository data source with per-repository scripted responses."""

    def __init__(self, token: str | None = "test-token") -> None:
        self.token = token
        self.issues: dict[str, list[IssueSnapshot] | BaseException] = {}
        self.pulls: dict[str, PullRequestSnapshot | BaseException] = {}
        self.issue_calls: list[str] = []
        self.pull_calls: list[str] = []
        self.gate: asyncio.Event | None = None
        self.fetch_started: asyncio.Event | None = None
        self.closed = False

    def configure(self, token: str | None) -> None:
        self.token = token

    def is_configured(self) -> bool:
        return self.token is not None

    async def fetch_open_issues(self, repository: str) -> list[IssueSnapshot]:
        self.issue_calls.append(repository)
        if self.fetch_started is not None:
            self.fetch_started.set()
        if self.gate is not None:
            await self.gate.wait()
        result = self.issues.get(repository, [])
        if isinstance(result, BaseException):
            raise result
        return list(result)

    async def fetch_pull_request(self, url: str) -> PullRequestSnapshot:
        self.pull_calls.append(url)
        result = self.pulls[url]
        if isinstance(result, BaseException):
            raise result
        return result

    async def aclose(self) -> None:
        self.closed = True


class FakeWindowSource:
    """Replays scripted editor window lists.

    Each call to :meth:`list_editor_windows` consumes one frame; the last frame
    keeps being returned once the script runs out.
    """

    def __init__(
        self,
        frames: Iterable[Iterable[WindowSnapshot]] | None = None,
        *,
        elevated: bool = False,
        accessibility: Mapping[int, Iterable[str]] | None = None,
    ) -> None:
        self._frames = [list(frame) for frame in (frames or [])]
        self.elevated = elevated
        self.accessibility = {pid: list(titles) for pid, titles in (accessibility or {}).items()}
        self.calls = 0

    def list_editor_windows(self) -> list[WindowSnapshot]:
        self.calls += 1
        if not self._frames:
            return []
        if len(self._frames) > 1:
            return self._frames.pop(0)
        return list(self._frames[0])

    def is_elevated_access_granted(self) -> bool:
        return self.elevated

    def accessibility_titles(self, process_id: int) -> list[str]:
        return list(self.accessibility.get(process_id, []))


class FakeClock:
    def __init__(self) -> None:
        self.now = datetime(2025, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def data_source() -> ScriptedDataSource:
    return ScriptedDataSource()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    for name in (
        "GITHUB_TOKEN",
        "AGENT_SIGNAL_GITHUB_TOKEN",
        "AGENT_SIGNAL_REPOSITORIES",
        "AGENT_SIGNAL_POLL_INTERVAL",
        "AGENT_SIGNAL_SESSION_TIMEOUT",
        "AGENT_SIGNAL_REQUEST_TIMEOUT",
        "AGENT_SIGNAL_HEURISTICS_PATH",
        "AGENT_SIGNAL_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
