"""Editor and GitHub session trackers."""

from .editor import INITIAL_TASK_DESCRIPTION, EditorSessionTracker
from .remote import (
    DEFAULT_SESSION_TIMEOUT_SECONDS,
    ActiveSessionView,
    AgentSession,
    RemoteEvent,
    RemoteSessionTracker,
)

__all__ = [
    "DEFAULT_SESSION_TIMEOUT_SECONDS",
    "INITIAL_TASK_DESCRIPTION",
    "ActiveSessionView",
    "AgentSession",
    "EditorSessionTracker",
    "RemoteEvent",
    "RemoteSessionTracker",
]
