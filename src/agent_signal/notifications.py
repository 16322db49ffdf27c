"""Notification rendering and delivery sinks."""

from __future__ import annotations

import logging
import time
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

from .events import (
    EditorStarted,
    EditorStopped,
    MonitoringError,
    MonitoringStarted,
    MonitoringStopped,
    NotificationEvent,
    PullRequestCreated,
    RemoteSessionCompleted,
    event_to_dict,
)

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_SIZE = 100


class NotificationCategory(Enum):
    """Categories a notification surface can group or style by."""

    EDITOR_AGENT = "VSCODE_AGENT"
    GITHUB_AGENT = "GITHUB_AGENT"
    GITHUB_PR = "GITHUB_PR"
    STATUS = "STATUS"
    ERROR = "ERROR"


@dataclass(frozen=True, slots=True)
class Notification:
    title: str
    body: str
    category: NotificationCategory
    sound: bool = True


def render_notification(event: NotificationEvent) -> Notification:
    """Translate an event into the user-facing title and body."""

    if isinstance(event, EditorStopped):
        return Notification(
            "VS Code Agent Complete",
            f"Task completed: {event.task_description}",
            NotificationCategory.EDITOR_AGENT,
        )
    if isinstance(event, EditorStarted):
        return Notification(
            "VS Code Agent Active",
            "Agent started working",
            NotificationCategory.STATUS,
            sound=False,
        )
    if isinstance(event, RemoteSessionCompleted):
        return Notification(
            "GitHub Agent Complete",
            f"Issue #{event.issue_number} completed in {event.repository}",
            NotificationCategory.GITHUB_AGENT,
        )
    if isinstance(event, PullRequestCreated):
        return Notification(
            "Pull Request Created",
            f"PR #{event.pr_number} created in {event.repository}",
            NotificationCategory.GITHUB_PR,
        )
    if isinstance(event, MonitoringStarted):
        return Notification("AgentSignal", "Monitoring started", NotificationCategory.STATUS, sound=False)
    if isinstance(event, MonitoringStopped):
        return Notification("AgentSignal", "Monitoring stopped", NotificationCategory.STATUS, sound=False)
    if isinstance(event, MonitoringError):
        return Notification("AgentSignal Error", event.message, NotificationCategory.ERROR)
    raise TypeError(f"Unsupported event type: {type(event).__name__}")


class NotificationSink(Protocol):
    """Receives every event the scheduler emits, in emission order."""

    def deliver(self, event: NotificationEvent) -> None: ...


class LoggingNotificationSink:
    """Logs rendered notifications and keeps a bounded delivery history."""

    def __init__(self, history_size: int = DEFAULT_HISTORY_SIZE) -> None:
        self._history: deque[dict[str, Any]] = deque(maxlen=history_size)

    def deliver(self, event: NotificationEvent) -> None:
        notification = render_notification(event)
        level = logging.ERROR if notification.category is NotificationCategory.ERROR else logging.INFO
        logger.log(level, "%s: %s", notification.title, notification.body)
        self._history.append(
            {
                "title": notification.title,
                "body": notification.body,
                "category": notification.category.value,
                "sound": notification.sound,
                "event": event_to_dict(event),
                "timestamp": time.time(),
            }
        )

    def history(self) -> list[dict[str, Any]]:
        """Return a copy of the delivery history, newest last."""
        return list(self._history)


__all__ = [
    "LoggingNotificationSink",
    "Notification",
    "NotificationCategory",
    "NotificationSink",
    "render_notification",
]
