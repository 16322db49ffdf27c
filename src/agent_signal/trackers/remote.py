"""Session tracking for agents working through GitHub issues and pull requests."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Callable, Iterable, Sequence, Union

from ..events import MonitoringError, PullRequestCreated, RemoteSessionCompleted
from ..github import (
    AuthenticationError,
    IssueSnapshot,
    PullRequestSnapshot,
    RepositoryDataSource,
    RepositoryError,
)
from ..heuristics import HeuristicSet

logger = logging.getLogger(__name__)

DEFAULT_SESSION_TIMEOUT_SECONDS = 3600.0

RemoteEvent = Union[PullRequestCreated, RemoteSessionCompleted, MonitoringError]
SessionKey = tuple[str, int]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class AgentSession:
    issue_number: int
    repository: str
    start_time: datetime
    has_eyes_reaction: bool
    has_draft_pr: bool = False
    is_completed: bool = False

    @property
    def key(self) -> SessionKey:
        return (self.repository, self.issue_number)


@dataclass(frozen=True, slots=True)
class ActiveSessionView:
    issue_number: int
    repository: str
    duration_seconds: float


class RemoteSessionTracker:
    """Infers agent sessions from issue reactions, assignees and linked pull requests.

    Sessions are keyed by ``(repository, issue_number)`` and live from the first
    poll in which the issue looks agent-driven until the linked pull request is
    marked ready for review, or until the session times out without ever
    having had an eyes reaction.
    """

    def __init__(
        self,
        data_source: RepositoryDataSource,
        repositories: Iterable[str] = (),
        *,
        heuristics: HeuristicSet | None = None,
        session_timeout: float = DEFAULT_SESSION_TIMEOUT_SECONDS,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._data_source = data_source
        self._repositories: list[str] = list(repositories)
        self._heuristics = heuristics or HeuristicSet()
        self._session_timeout = session_timeout
        self._clock = clock or _utcnow
        self._sessions: dict[SessionKey, AgentSession] = {}
        self._lock = asyncio.Lock()
        self._monitoring = False
        self._generation = 0
        self._missing_config_reported = False
        self._auth_failure_reported = False

    @property
    def is_monitoring(self) -> bool:
        return self._monitoring

    @property
    def repositories(self) -> list[str]:
        return list(self._repositories)

    @property
    def poll_in_flight(self) -> bool:
        return self._lock.locked()

    def start(self) -> None:
        if self._monitoring:
            return
        logger.info("Starting GitHub agent monitoring")
        self._monitoring = True
        self._generation += 1
        self._missing_config_reported = False
        logger.info("Loaded configuration: %d repositories", len(self._repositories))

    def stop(self) -> None:
        if not self._monitoring:
            return
        logger.info("Stopping GitHub agent monitoring")
        self._monitoring = False
        self._generation += 1
        self._sessions.clear()

    def configure_repositories(self, repositories: Sequence[str]) -> None:
        self._repositories = list(repositories)
        self._missing_config_reported = False
        logger.info("Updated monitored repositories: %s", self._repositories)

    def configure_token(self, token: str | None) -> None:
        self._data_source.configure(token)
        self._missing_config_reported = False
        self._auth_failure_reported = False

    def active_session_count(self) -> int:
        return len(self._sessions)

    def active_sessions(self) -> list[ActiveSessionView]:
        now = self._clock()
        return [
            ActiveSessionView(
                issue_number=session.issue_number,
                repository=session.repository,
                duration_seconds=(now - session.start_time).total_seconds(),
            )
            for session in self._sessions.values()
        ]

    def get_session(self, repository: str, issue_number: int) -> AgentSession | None:
        return self._sessions.get((repository, issue_number))

    async def aclose(self) -> None:
        """Release the data source's connections, if it holds any."""

        close = getattr(self._data_source, "aclose", None)
        if close is not None:
            await close()

    async def poll(self) -> list[RemoteEvent]:
        """Run one polling pass over every configured repository.

        Fetches are issued concurrently, but their effects are applied in
        configured repository order and issue response order. A pass that
        starts while another one is still in flight is skipped.
        """

        if not self._monitoring:
            return []
        if not self._data_source.is_configured() or not self._repositories:
            if not self._missing_config_reported:
                logger.warning("GitHub token or repositories not configured; skipping remote tracking")
                self._missing_config_reported = True
            if self._lock.locked():
                return []
            return self._collect_completed_sessions()
        if self._lock.locked():
            logger.debug("Remote poll still in flight; skipping this cycle")
            return []

        async with self._lock:
            generation = self._generation
            repositories = list(self._repositories)

            issue_results = await asyncio.gather(
                *(self._data_source.fetch_open_issues(repository) for repository in repositories),
                return_exceptions=True,
            )

            events: list[RemoteEvent] = []
            auth_failed = False
            fetched_any = False
            candidates: list[tuple[str, IssueSnapshot]] = []
            for repository, result in zip(repositories, issue_results):
                if isinstance(result, BaseException):
                    auth_failed |= self._handle_fetch_error(f"issues for {repository}", result, events)
                    continue
                fetched_any = True
                candidates.extend((repository, issue) for issue in result if self._is_candidate(issue))

            pr_results = await asyncio.gather(
                *(self._fetch_pull_request(issue) for _, issue in candidates),
                return_exceptions=True,
            )

            if generation != self._generation or not self._monitoring:
                logger.debug("Tracker stopped during poll; discarding results")
                return []

            for (repository, issue), pr_result in zip(candidates, pr_results):
                session = self._upsert_session(repository, issue)
                if isinstance(pr_result, BaseException):
                    auth_failed |= self._handle_fetch_error(
                        f"pull request for issue #{issue.number}", pr_result, events
                    )
                elif pr_result is not None:
                    session = self._apply_pull_request(session, pr_result, events)
                self._sessions[session.key] = session

            if fetched_any and not auth_failed:
                self._auth_failure_reported = False

            events.extend(self._collect_completed_sessions())
            return events

    def _is_candidate(self, issue: IssueSnapshot) -> bool:
        if not issue.is_open:
            return False
        return issue.eyes_reaction_count > 0 or self._heuristics.matches_assignee(issue.assignee_login)

    async def _fetch_pull_request(self, issue: IssueSnapshot) -> PullRequestSnapshot | None:
        if not issue.pull_request_url:
            return None
        return await self._data_source.fetch_pull_request(issue.pull_request_url)

    def _upsert_session(self, repository: str, issue: IssueSnapshot) -> AgentSession:
        has_eyes_reaction = issue.eyes_reaction_count > 0
        existing = self._sessions.get((repository, issue.number))
        if existing is not None:
            return replace(existing, has_eyes_reaction=has_eyes_reaction)

        logger.info("Started tracking agent session for issue #%d in %s", issue.number, repository)
        return AgentSession(
            issue_number=issue.number,
            repository=repository,
            start_time=self._clock(),
            has_eyes_reaction=has_eyes_reaction,
        )

    def _apply_pull_request(
        self,
        session: AgentSession,
        pr: PullRequestSnapshot,
        events: list[RemoteEvent],
    ) -> AgentSession:
        was_draft = session.has_draft_pr
        updated = replace(session, has_draft_pr=pr.is_draft)

        if pr.is_draft and not was_draft:
            logger.info("Draft PR #%d created for issue #%d", pr.number, session.issue_number)
            events.append(PullRequestCreated(pr_number=pr.number, repository=session.repository))

        if not pr.is_draft and pr.state == "open" and was_draft:
            logger.info("PR #%d ready for review - agent session completed", pr.number)
            updated = replace(updated, is_completed=True)

        return updated

    def _collect_completed_sessions(self) -> list[RemoteEvent]:
        now = self._clock()
        completed: list[AgentSession] = []
        for session in self._sessions.values():
            if session.is_completed:
                completed.append(session)
                continue
            elapsed = (now - session.start_time).total_seconds()
            if elapsed > self._session_timeout and not session.has_eyes_reaction:
                logger.info("Session timeout for issue #%d - assuming completed", session.issue_number)
                completed.append(session)

        events: list[RemoteEvent] = []
        for session in completed:
            logger.info(
                "Agent completed work on issue #%d in %s", session.issue_number, session.repository
            )
            events.append(
                RemoteSessionCompleted(issue_number=session.issue_number, repository=session.repository)
            )
            del self._sessions[session.key]
        return events

    def _handle_fetch_error(self, what: str, exc: BaseException, events: list[RemoteEvent]) -> bool:
        """Log a failed fetch and report whether it was an authentication failure."""

        if not isinstance(exc, Exception):
            raise exc
        if not isinstance(exc, RepositoryError):
            logger.error("Unexpected error fetching %s", what, exc_info=exc)
            return False
        if isinstance(exc, AuthenticationError):
            logger.error("Failed to fetch %s: %s; check the configured GitHub token", what, exc)
            if not self._auth_failure_reported:
                self._auth_failure_reported = True
                events.append(MonitoringError(message=f"GitHub authentication failed: {exc}"))
            return True
        logger.warning("Failed to fetch %s: %s", what, exc)
        return False


__all__ = [
    "ActiveSessionView",
    "AgentSession",
    "DEFAULT_SESSION_TIMEOUT_SECONDS",
    "RemoteEvent",
    "RemoteSessionTracker",
]
