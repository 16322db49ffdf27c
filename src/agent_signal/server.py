"""FastMCP server bootstrap for Agent Signal."""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Optional

from fastmcp import FastMCP

from . import __version__
from .config import AgentSignalSettings, get_settings
from .github import GitHubClient, RepositoryDataSource
from .heuristics import HeuristicsLoadError, HeuristicSet, load_heuristics
from .local import LocalActivitySource, default_window_source
from .notifications import LoggingNotificationSink
from .scheduler import MonitoringScheduler
from .tools import register_tools
from .trackers import EditorSessionTracker, RemoteSessionTracker


def configure_logging(level: str) -> None:
    """Configure root logging for the Agent Signal server."""

    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="[%(asctime)s] [%(levelname)s] %(name)s: %(message)s",
    )


def build_scheduler(
    settings: AgentSignalSettings,
    *,
    heuristics: HeuristicSet | None = None,
    data_source: RepositoryDataSource | None = None,
    window_source: LocalActivitySource | None = None,
    sink: LoggingNotificationSink | None = None,
) -> MonitoringScheduler:
    """Wire trackers, data sources and the sink from settings."""

    heuristics = heuristics or load_heuristics(settings.heuristics_path)
    if data_source is None:
        data_source = GitHubClient(
            settings.github_token,
            base_url=settings.github_api_url,
            timeout=settings.request_timeout_seconds,
        )
    elif settings.github_token:
        data_source.configure(settings.github_token)

    editor_tracker = EditorSessionTracker(
        window_source or default_window_source(heuristics),
        heuristics,
    )
    remote_tracker = RemoteSessionTracker(
        data_source,
        settings.monitored_repositories,
        heuristics=heuristics,
        session_timeout=settings.session_timeout_seconds,
    )
    return MonitoringScheduler(
        editor_tracker,
        remote_tracker,
        sink or LoggingNotificationSink(),
        interval_seconds=settings.poll_interval_seconds,
    )


def create_server(
    settings: Optional[AgentSignalSettings] = None,
    *,
    data_source: RepositoryDataSource | None = None,
    window_source: LocalActivitySource | None = None,
) -> FastMCP:
    """Instantiate the FastMCP server with the monitoring scheduler attached."""

    settings = settings or get_settings()
    log = logging.getLogger(__name__)

    heuristics_error: str | None = None
    try:
        heuristics = load_heuristics(settings.heuristics_path)
    except HeuristicsLoadError as exc:
        log.error("Falling back to default heuristics: %s", exc)
        heuristics_error = str(exc)
        heuristics = HeuristicSet()

    sink = LoggingNotificationSink()
    scheduler = build_scheduler(
        settings,
        heuristics=heuristics,
        data_source=data_source,
        window_source=window_source,
        sink=sink,
    )

    if not settings.remote_tracking_configured:
        log.warning(
            "GitHub tracking disabled until a token and repositories are configured",
            extra={"repositories": len(settings.monitored_repositories)},
        )

    server = FastMCP(
        name="Agent Signal",
        version=__version__,
        instructions=(
            "Agent Signal watches the editor and GitHub repositories for coding agent "
            "activity and emits notifications when agents start and finish work. Use "
            "the provided tools to start or stop monitoring and inspect sessions."
        ),
    )

    handles = register_tools(server, scheduler=scheduler, sink=sink, settings=settings)

    def render_status() -> str:
        """Return a JSON string summarizing the monitoring state."""

        payload: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "server_version": __version__,
            "log_level": settings.log_level,
            "monitoring": scheduler.status(),
            "configuration": {
                "repositories": scheduler.remote_tracker.repositories,
                "token_configured": bool(settings.github_token),
                "poll_interval_seconds": settings.poll_interval_seconds,
                "session_timeout_seconds": settings.session_timeout_seconds,
                "heuristics_path": str(settings.heuristics_path) if settings.heuristics_path else None,
                "heuristics_error": heuristics_error,
            },
            "notifications": sink.history()[-5:],
        }
        return json.dumps(payload)

    server.resource(
        "resource://agent-signal/status",
        name="agent_signal_status",
        description="Provides the current monitoring status for Agent Signal.",
        mime_type="application/json",
    )(render_status)

    setattr(server, "scheduler", scheduler)
    setattr(server, "notification_sink", sink)
    setattr(server, "tool_handles", handles)
    setattr(server, "render_status", render_status)
    return server


def main() -> None:
    """Entry point for running the Agent Signal server via CLI."""

    settings = get_settings()
    configure_logging(settings.log_level)

    server = create_server(settings)
    logging.getLogger(__name__).info(
        "Launching Agent Signal server",
        extra={
            "version": __version__,
            "log_level": settings.log_level,
            "repositories": len(settings.monitored_repositories),
        },
    )
    server.run()


if __name__ == "__main__":
    main()
