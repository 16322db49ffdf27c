"""Periodic driver for the editor and GitHub trackers."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Any, Callable

from .events import (
    EditorStarted,
    EditorStopped,
    MonitoringError,
    MonitoringStarted,
    MonitoringStopped,
    NotificationEvent,
)
from .notifications import NotificationSink
from .trackers import EditorSessionTracker, RemoteSessionTracker

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 5.0
REMOTE_DRAIN_TIMEOUT_SECONDS = 1.0

StatusObserver = Callable[[NotificationEvent], None]


class MonitoringScheduler:
    """Owns the monitoring lifecycle and fans tracker events out to the sink.

    Every tick runs the editor pass inline and starts a remote pass in the
    background unless the previous remote pass is still running, so a slow
    GitHub fetch never delays editor ticks.
    """

    def __init__(
        self,
        editor_tracker: EditorSessionTracker,
        remote_tracker: RemoteSessionTracker,
        sink: NotificationSink,
        *,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        status_observer: StatusObserver | None = None,
    ) -> None:
        self.editor_tracker = editor_tracker
        self.remote_tracker = remote_tracker
        self._sink = sink
        self._interval = interval_seconds
        self._status_observer = status_observer
        self._toggle_lock = asyncio.Lock()
        self._monitoring = False
        self._is_agent_active = False
        self._ticker: asyncio.Task[None] | None = None
        self._remote_task: asyncio.Task[list[NotificationEvent]] | None = None

    @property
    def is_monitoring(self) -> bool:
        return self._monitoring

    @property
    def interval_seconds(self) -> float:
        return self._interval

    async def start(self) -> bool:
        """Start periodic monitoring. Returns ``False`` if it was already running."""

        async with self._toggle_lock:
            if self._monitoring:
                logger.warning("Monitoring already active")
                return False

            logger.info("Starting agent monitoring", extra={"interval_seconds": self._interval})
            self._monitoring = True
            self.editor_tracker.start()
            self.remote_tracker.start()
            self._deliver(MonitoringStarted())
            self._ticker = asyncio.get_running_loop().create_task(self._run())
            logger.info("Agent monitoring started successfully")
            return True

    async def stop(self) -> bool:
        """Stop periodic monitoring. Returns ``False`` if it was not running."""

        async with self._toggle_lock:
            if not self._monitoring:
                logger.warning("Monitoring not active")
                return False

            logger.info("Stopping agent monitoring")
            self._monitoring = False
            ticker, self._ticker = self._ticker, None
            if ticker is not None:
                ticker.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await ticker
            await self._drain_remote_task()

            self.editor_tracker.stop()
            self.remote_tracker.stop()
            self._is_agent_active = False
            self._deliver(MonitoringStopped())
            logger.info("Agent monitoring stopped")
            return True

    async def toggle(self) -> bool:
        """Flip the monitoring state and return the new state."""

        if self._monitoring:
            await self.stop()
        else:
            await self.start()
        return self._monitoring

    async def run_cycle(self) -> list[NotificationEvent]:
        """Run one editor pass followed by one remote pass and return what was delivered."""

        events = self._editor_pass()
        events.extend(await self._remote_pass())
        return events

    def status(self) -> dict[str, Any]:
        return {
            "is_monitoring": self._monitoring,
            "is_agent_active": self._is_agent_active,
            "interval_seconds": self._interval,
            "remote_poll_in_flight": self.remote_tracker.poll_in_flight,
            "active_sessions": [
                {
                    "issue_number": view.issue_number,
                    "repository": view.repository,
                    "duration_seconds": round(view.duration_seconds, 1),
                }
                for view in self.remote_tracker.active_sessions()
            ],
        }

    async def _run(self) -> None:
        while True:
            self._tick()
            await asyncio.sleep(self._interval)

    def _tick(self) -> None:
        logger.debug("Performing monitoring cycle")
        self._editor_pass()
        if self._remote_task is not None and not self._remote_task.done():
            logger.debug("Previous remote pass still running; skipping remote poll this tick")
            return
        self._remote_task = asyncio.get_running_loop().create_task(self._background_remote_pass())

    async def _drain_remote_task(self) -> None:
        task, self._remote_task = self._remote_task, None
        if task is None or task.done():
            return
        _, pending = await asyncio.wait({task}, timeout=REMOTE_DRAIN_TIMEOUT_SECONDS)
        if pending:
            logger.debug("Cancelling remote pass still running after stop")
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

    def _editor_pass(self) -> list[NotificationEvent]:
        try:
            event = self.editor_tracker.poll()
        except Exception as exc:
            logger.exception("Error during editor monitoring pass")
            return self._deliver_all([MonitoringError(message=f"Editor monitoring failed: {exc}")])
        return self._deliver_all([event] if event is not None else [])

    async def _collect_remote_events(self) -> list[NotificationEvent]:
        try:
            return list(await self.remote_tracker.poll())
        except Exception as exc:
            logger.exception("Error during GitHub monitoring pass")
            return [MonitoringError(message=f"GitHub monitoring failed: {exc}")]

    async def _remote_pass(self) -> list[NotificationEvent]:
        return self._deliver_all(await self._collect_remote_events())

    async def _background_remote_pass(self) -> list[NotificationEvent]:
        events = await self._collect_remote_events()
        if not self._monitoring:
            logger.debug("Monitoring stopped during remote pass; dropping %d events", len(events))
            return []
        return self._deliver_all(events)

    def _deliver_all(self, events: list[NotificationEvent]) -> list[NotificationEvent]:
        for event in events:
            self._deliver(event)
        return events

    def _deliver(self, event: NotificationEvent) -> None:
        if isinstance(event, EditorStarted):
            self._is_agent_active = True
        elif isinstance(event, EditorStopped):
            self._is_agent_active = False

        try:
            self._sink.deliver(event)
        except Exception:
            logger.exception("Notification sink failed", extra={"event": type(event).__name__})

        if self._status_observer is not None:
            try:
                self._status_observer(event)
            except Exception:
                logger.exception("Status observer failed", extra={"event": type(event).__name__})


__all__ = ["DEFAULT_INTERVAL_SECONDS", "MonitoringScheduler", "StatusObserver"]
