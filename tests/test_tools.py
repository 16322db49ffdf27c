from __future__ import annotations

import asyncio

import pytest

from agent_signal.config import AgentSignalSettings
from agent_signal.github import IssueSnapshot
from agent_signal.notifications import LoggingNotificationSink
from agent_signal.scheduler import MonitoringScheduler
from agent_signal.tools import register_tools
from agent_signal.trackers import EditorSessionTracker, RemoteSessionTracker

from conftest import FakeWindowSource


class StubTool:
    def __init__(self, fn, name):
        self.fn = fn
        self.name = name


class StubServer:
    def __init__(self) -> None:
        self._tools: dict[str, StubTool] = {}

    def tool(self, *args, **kwargs):
        provided_name = None
        if args and isinstance(args[0], str):
            provided_name = args[0]
        provided_name = kwargs.get("name", provided_name)

        def decorator(fn):
            tool_name = provided_name or fn.__name__
            tool = StubTool(fn, tool_name)
            self._tools[tool_name] = tool
            return tool

        return decorator


class RecordingContext:
    def __init__(self) -> None:
        self.messages: list[tuple[str, str]] = []
        self.logger = self

    def info(self, message, extra=None):
        self.messages.append(("info", message))

    def debug(self, message, extra=None):
        self.messages.append(("debug", message))


def _setup(data_source, clock, **settings_overrides):
    settings = AgentSignalSettings(**settings_overrides)
    sink = LoggingNotificationSink()
    scheduler = MonitoringScheduler(
        EditorSessionTracker(FakeWindowSource()),
        RemoteSessionTracker(data_source, settings.monitored_repositories, clock=clock),
        sink,
        interval_seconds=60,
    )
    server = StubServer()
    handles = register_tools(server, scheduler=scheduler, sink=sink, settings=settings)
    return server, handles, scheduler, settings


def test_register_tools_exposes_named_tools(data_source, clock) -> None:
    server, _, _, _ = _setup(data_source, clock)

    assert sorted(server._tools) == [
        "configure_repositories",
        "configure_token",
        "list_sessions",
        "recent_notifications",
        "start_monitoring",
        "stop_monitoring",
        "toggle_monitoring",
    ]


def test_start_and_stop_monitoring_tools(data_source, clock) -> None:
    _, handles, scheduler, _ = _setup(data_source, clock)

    async def scenario():
        started = await handles.start_monitoring.fn()
        again = await handles.start_monitoring.fn()
        stopped = await handles.stop_monitoring.fn()
        return started, again, stopped

    started, again, stopped = asyncio.run(scenario())

    assert started["started"] is True
    assert started["is_monitoring"] is True
    assert again["started"] is False
    assert stopped["stopped"] is True
    assert stopped["is_monitoring"] is False
    assert scheduler.is_monitoring is False


def test_toggle_monitoring_tool(data_source, clock) -> None:
    _, handles, _, _ = _setup(data_source, clock)

    async def scenario():
        first = await handles.toggle_monitoring.fn()
        second = await handles.toggle_monitoring.fn()
        return first, second

    first, second = asyncio.run(scenario())

    assert first["is_monitoring"] is True
    assert second["is_monitoring"] is False


def test_configure_repositories_normalizes_and_updates_tracker(data_source, clock) -> None:
    _, handles, scheduler, settings = _setup(data_source, clock)
    context = RecordingContext()

    result = handles.configure_repositories.fn(
        [" org/a ", "org/b", "org/a", ""],
        context=context,
    )

    assert result == {"repositories": ["org/a", "org/b"]}
    assert scheduler.remote_tracker.repositories == ["org/a", "org/b"]
    assert settings.monitored_repositories == ("org/a", "org/b")
    assert ("info", "Monitored repositories updated") in context.messages


def test_configure_repositories_rejects_malformed_names(data_source, clock) -> None:
    _, handles, scheduler, _ = _setup(data_source, clock, AGENT_SIGNAL_REPOSITORIES="org/keep")

    with pytest.raises(ValueError, match="Invalid repository list"):
        handles.configure_repositories.fn(["org/a", "not-a-repo"])

    assert scheduler.remote_tracker.repositories == ["org/keep"]


def test_configure_token_updates_data_source(data_source, clock) -> None:
    _, handles, _, settings = _setup(data_source, clock)

    assert handles.configure_token.fn("  ghp_new  ") == {"configured": True}
    assert data_source.token == "ghp_new"
    assert settings.github_token == "ghp_new"

    assert handles.configure_token.fn("   ") == {"configured": False}
    assert data_source.is_configured() is False
    assert settings.github_token is None


def test_list_sessions_and_recent_notifications(data_source, clock) -> None:
    data_source.issues["org/repo"] = [IssueSnapshot(id=1, number=12, state="open", assignee_login="bot")]
    _, handles, scheduler, _ = _setup(data_source, clock, AGENT_SIGNAL_REPOSITORIES="org/repo")

    async def scenario():
        await scheduler.start()
        await scheduler.run_cycle()

    asyncio.run(scenario())
    clock.advance(30)

    sessions = handles.list_sessions.fn()
    assert sessions == [{"issue_number": 12, "repository": "org/repo", "duration_seconds": 30.0}]

    notifications = handles.recent_notifications.fn(limit=1)
    assert len(notifications) == 1
    assert notifications[0]["body"] == "Monitoring started"
    assert len(handles.recent_notifications.fn(limit=0)) == 1
