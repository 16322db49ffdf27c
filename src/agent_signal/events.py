"""Event values emitted by the trackers and the scheduler."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Union


@dataclass(frozen=True, slots=True)
class EditorStarted:
    """The editor agent went from idle to busy."""


@dataclass(frozen=True, slots=True)
class EditorStopped:
    """The editor agent went from busy to idle."""

    task_description: str


@dataclass(frozen=True, slots=True)
class PullRequestCreated:
    pr_number: int
    repository: str


@dataclass(frozen=True, slots=True)
class RemoteSessionCompleted:
    issue_number: int
    repository: str


@dataclass(frozen=True, slots=True)
class MonitoringStarted:
    pass


@dataclass(frozen=True, slots=True)
class MonitoringStopped:
    pass


@dataclass(frozen=True, slots=True)
class MonitoringError:
    message: str


TransitionEvent = Union[EditorStarted, EditorStopped, PullRequestCreated, RemoteSessionCompleted]
NotificationEvent = Union[TransitionEvent, MonitoringStarted, MonitoringStopped, MonitoringError]


def event_to_dict(event: NotificationEvent) -> dict[str, Any]:
    """Serialize an event with its type name, for logs and JSON payloads."""

    return {"type": type(event).__name__, **asdict(event)}


__all__ = [
    "EditorStarted",
    "EditorStopped",
    "MonitoringError",
    "MonitoringStarted",
    "MonitoringStopped",
    "NotificationEvent",
    "PullRequestCreated",
    "RemoteSessionCompleted",
    "TransitionEvent",
    "event_to_dict",
]
