"""Heuristic string lists used to recognise agent activity."""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator


class TaskKeyword(BaseModel):
    """Maps a keyword found in a window title to a human readable task."""

    keyword: str = Field(..., description="Case-sensitive substring searched in the title.")
    description: str = Field(..., description="Description reported when the keyword matches.")

    @field_validator("keyword", "description")
    @classmethod
    def _require_text(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Task keyword entries must not be empty")
        return value


def _default_task_keywords() -> list[TaskKeyword]:
    return [
        TaskKeyword(keyword="edit_file", description="Editing files"),
        TaskKeyword(keyword="read_file", description="Reading files"),
        TaskKeyword(keyword="run_in_terminal", description="Running terminal commands"),
        TaskKeyword(keyword="thinking", description="Planning approach"),
        TaskKeyword(keyword="analyzing", description="Analyzing code"),
    ]


class HeuristicSet(BaseModel):
    """Ordered indicator lists for the editor and GitHub trackers."""

    assignee_markers: list[str] = Field(
        default_factory=lambda: ["bot", "agent", "copilot"],
        description="Substrings of an assignee login that mark a bot-like assignee.",
    )
    window_indicators: list[str] = Field(
        default_factory=lambda: [
            "Claude is thinking",
            "Agent mode",
            "Tool invocation:",
            "read_file",
            "edit_file",
            "run_in_terminal",
            "Working on your request",
            "Analyzing",
            "Processing",
            "Running command",
        ],
        description="Window title substrings that indicate a busy agent; first match wins.",
    )
    accessibility_indicators: list[str] = Field(
        default_factory=lambda: [
            "thinking...",
            "processing...",
            "working...",
            "agent mode",
            "tool:",
            "running:",
        ],
        description="Lower-case substrings matched against accessibility element titles.",
    )
    task_descriptions: list[TaskKeyword] = Field(default_factory=_default_task_keywords)
    fallback_description: str = Field(default="Processing request")
    editor_bundle_ids: list[str] = Field(
        default_factory=lambda: ["com.microsoft.VSCode", "com.microsoft.VSCodeInsiders"],
    )
    editor_process_names: list[str] = Field(
        default_factory=lambda: ["code", "code-insiders", "Code", "Code - Insiders", "codium"],
    )

    @field_validator(
        "assignee_markers",
        "window_indicators",
        "accessibility_indicators",
        "editor_bundle_ids",
        "editor_process_names",
        mode="before",
    )
    @classmethod
    def _ensure_string_list(cls, value):
        if value is None:
            return []
        if isinstance(value, str) or not isinstance(value, (list, tuple)):
            raise ValueError("Heuristic indicators must be sequences of strings")
        items = [str(item) for item in value]
        if any(not item.strip() for item in items):
            raise ValueError("Heuristic indicators must not contain empty strings")
        return items

    @field_validator("accessibility_indicators")
    @classmethod
    def _lowercase_accessibility(cls, value: list[str]) -> list[str]:
        return [item.lower() for item in value]

    def matches_assignee(self, login: str | None) -> bool:
        if not login:
            return False
        return any(marker in login for marker in self.assignee_markers)

    def match_window_title(self, title: str) -> str | None:
        for indicator in self.window_indicators:
            if indicator in title:
                return indicator
        return None

    def match_accessibility_title(self, title: str) -> str | None:
        lowered = title.lower()
        for indicator in self.accessibility_indicators:
            if indicator in lowered:
                return indicator
        return None

    def describe_task(self, title: str) -> str:
        for entry in self.task_descriptions:
            if entry.keyword in title:
                return entry.description
        return self.fallback_description


__all__ = ["HeuristicSet", "TaskKeyword"]
