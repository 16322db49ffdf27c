"""Snapshot models decoded from the GitHub REST API."""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator


class IssueSnapshot(BaseModel):
    """Open issue as seen in one poll.

    Accepts either the flat field names or a raw GitHub issue payload, in which
    case ``assignee.login``, ``reactions.eyes`` and ``pull_request.url`` are
    lifted onto the snapshot.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    id: int
    number: int
    state: str
    title: str = ""
    assignee_login: str | None = None
    eyes_reaction_count: int = 0
    pull_request_url: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _flatten_api_payload(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        payload = dict(data)
        assignee = payload.pop("assignee", None)
        if isinstance(assignee, dict) and "assignee_login" not in payload:
            payload["assignee_login"] = assignee.get("login")
        reactions = payload.pop("reactions", None)
        if isinstance(reactions, dict) and "eyes_reaction_count" not in payload:
            payload["eyes_reaction_count"] = reactions.get("eyes") or 0
        pull_request = payload.pop("pull_request", None)
        if isinstance(pull_request, dict) and "pull_request_url" not in payload:
            payload["pull_request_url"] = pull_request.get("url")
        return payload

    @property
    def is_open(self) -> bool:
        return self.state == "open"


class PullRequestSnapshot(BaseModel):
    """Pull request state needed for the draft/ready transitions."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    number: int
    state: str
    is_draft: bool = Field(default=False, validation_alias=AliasChoices("is_draft", "draft"))
    title: str = ""


__all__ = ["IssueSnapshot", "PullRequestSnapshot"]
