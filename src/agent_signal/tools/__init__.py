"""Tool registration for the Agent Signal MCP surface."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from fastmcp import Context, FastMCP

from ..config import AgentSignalSettings, parse_repositories
from ..notifications import LoggingNotificationSink
from ..scheduler import MonitoringScheduler

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ToolHandles:
    start_monitoring: Any
    stop_monitoring: Any
    toggle_monitoring: Any
    list_sessions: Any
    configure_repositories: Any
    configure_token: Any
    recent_notifications: Any


def register_tools(
    server: FastMCP,
    *,
    scheduler: MonitoringScheduler,
    sink: LoggingNotificationSink,
    settings: AgentSignalSettings,
) -> ToolHandles:
    """Register Agent Signal's MCP tools on the server."""

    remote = scheduler.remote_tracker

    async def _start_monitoring(context: Context | None = None) -> dict[str, Any]:
        """Start polling the editor and the configured repositories."""

        started = await scheduler.start()
        _emit_log(context, "info", "Start monitoring requested", extra={"started": started})
        return {"started": started, **scheduler.status()}

    async def _stop_monitoring(context: Context | None = None) -> dict[str, Any]:
        """Stop polling and forget every tracked GitHub session."""

        stopped = await scheduler.stop()
        _emit_log(context, "info", "Stop monitoring requested", extra={"stopped": stopped})
        return {"stopped": stopped, **scheduler.status()}

    async def _toggle_monitoring(context: Context | None = None) -> dict[str, Any]:
        is_monitoring = await scheduler.toggle()
        _emit_log(context, "info", "Monitoring toggled", extra={"is_monitoring": is_monitoring})
        return scheduler.status()

    def _list_sessions(context: Context | None = None) -> list[dict[str, Any]]:
        """List GitHub agent sessions currently being tracked."""

        sessions = scheduler.status()["active_sessions"]
        _emit_log(context, "debug", "Listing tracked sessions", extra={"count": len(sessions)})
        return sessions

    def _configure_repositories(
        repositories: list[str],
        context: Context | None = None,
    ) -> dict[str, Any]:
        """Replace the ordered list of monitored repositories."""

        try:
            normalized = parse_repositories(repositories)
        except ValueError as exc:
            raise ValueError(f"Invalid repository list: {exc}") from exc

        remote.configure_repositories(normalized)
        settings.monitored_repositories = normalized
        _emit_log(
            context,
            "info",
            "Monitored repositories updated",
            extra={"count": len(normalized)},
        )
        return {"repositories": list(normalized)}

    def _configure_token(token: str, context: Context | None = None) -> dict[str, Any]:
        """Set the GitHub API token used for issue and pull request fetches."""

        cleaned = token.strip() or None
        remote.configure_token(cleaned)
        settings.github_token = cleaned
        _emit_log(context, "info", "GitHub token updated", extra={"configured": cleaned is not None})
        return {"configured": cleaned is not None}

    def _recent_notifications(limit: int = 20, context: Context | None = None) -> list[dict[str, Any]]:
        """Return the most recent notifications, newest last."""

        history = sink.history()
        if limit > 0:
            history = history[-limit:]
        return history

    tool_start = server.tool(
        name="start_monitoring",
        description="Start watching the editor and GitHub repositories for agent activity.",
    )(_start_monitoring)

    tool_stop = server.tool(
        name="stop_monitoring",
        description="Stop watching for agent activity. Clears tracked GitHub sessions.",
    )(_stop_monitoring)

    tool_toggle = server.tool(
        name="toggle_monitoring",
        description="Start monitoring if it is stopped, stop it otherwise.",
    )(_toggle_monitoring)

    tool_sessions = server.tool(
        name="list_sessions",
        description="List tracked GitHub agent sessions with their repository and age.",
    )(_list_sessions)

    tool_repositories = server.tool(
        name="configure_repositories",
        description="Set the ordered list of 'owner/name' repositories to monitor.",
    )(_configure_repositories)

    tool_token = server.tool(
        name="configure_token",
        description="Set the GitHub API token. An empty string clears it.",
        annotations={
            "safety": {
                "level": "caution",
                "notes": "The token is held in memory only and never echoed back",
            }
        },
    )(_configure_token)

    tool_notifications = server.tool(
        name="recent_notifications",
        description="Show the latest notifications emitted by Agent Signal.",
    )(_recent_notifications)

    return ToolHandles(
        start_monitoring=tool_start,
        stop_monitoring=tool_stop,
        toggle_monitoring=tool_toggle,
        list_sessions=tool_sessions,
        configure_repositories=tool_repositories,
        configure_token=tool_token,
        recent_notifications=tool_notifications,
    )


def _emit_log(
    context: Context | None,
    level: str,
    message: str,
    *,
    extra: dict[str, Any] | None = None,
) -> None:
    """Best-effort logging that prefers the MCP context logger when available."""

    payload = extra or {}

    if context is not None:
        ctx_logger = getattr(context, "logger", None)
        if ctx_logger is not None:
            log_method = getattr(ctx_logger, level, None)
            if callable(log_method):
                log_method(message, extra=payload)
                return

    fallback = getattr(logger, level, logger.info)
    fallback(message, extra=payload)


__all__ = ["register_tools", "ToolHandles"]
