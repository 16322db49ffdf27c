"""Configuration management for Agent Signal."""

from __future__ import annotations

import re
from functools import lru_cache
from pathlib import Path
from typing import Annotated

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

_REPOSITORY_SPLIT = re.compile(r"[,\s]+")


def parse_repositories(value) -> tuple[str, ...]:
    """Normalize a repository list given as a sequence or a comma-separated string."""

    if value is None or value == "":
        return ()
    if isinstance(value, str):
        items = [part for part in _REPOSITORY_SPLIT.split(value) if part]
    elif isinstance(value, (list, tuple)):
        items = [str(item).strip() for item in value if str(item).strip()]
    else:
        raise ValueError("AGENT_SIGNAL_REPOSITORIES must be a list or a comma-separated string")

    ordered: list[str] = []
    for item in items:
        if item.count("/") != 1 or item.startswith("/") or item.endswith("/"):
            raise ValueError(f"Repository '{item}' must look like 'owner/name'")
        if item not in ordered:
            ordered.append(item)
    return tuple(ordered)


class AgentSignalSettings(BaseSettings):
    """Runtime configuration sourced from environment variables and optional .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    github_token: str | None = Field(
        default=None,
        validation_alias=AliasChoices("AGENT_SIGNAL_GITHUB_TOKEN", "GITHUB_TOKEN"),
    )
    monitored_repositories: Annotated[tuple[str, ...], NoDecode] = Field(
        default=(), validation_alias="AGENT_SIGNAL_REPOSITORIES"
    )
    poll_interval_seconds: float = Field(default=5.0, validation_alias="AGENT_SIGNAL_POLL_INTERVAL")
    session_timeout_seconds: float = Field(
        default=3600.0, validation_alias="AGENT_SIGNAL_SESSION_TIMEOUT"
    )
    request_timeout_seconds: float = Field(
        default=30.0, validation_alias="AGENT_SIGNAL_REQUEST_TIMEOUT"
    )
    github_api_url: str = Field(
        default="https://api.github.com", validation_alias="AGENT_SIGNAL_GITHUB_API_URL"
    )
    heuristics_path: Path | None = Field(default=None, validation_alias="AGENT_SIGNAL_HEURISTICS_PATH")
    log_level: str = Field(default="INFO", validation_alias="AGENT_SIGNAL_LOG_LEVEL")

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        normalized = value.strip().upper()
        if normalized not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}:
            raise ValueError(
                "AGENT_SIGNAL_LOG_LEVEL must be one of CRITICAL, ERROR, WARNING, INFO, DEBUG"
            )
        return normalized

    @field_validator("github_token", mode="before")
    @classmethod
    def _blank_token_is_missing(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value.strip() if isinstance(value, str) else value

    @field_validator("monitored_repositories", mode="before")
    @classmethod
    def _parse_repositories(cls, value):
        return parse_repositories(value)

    @field_validator("poll_interval_seconds", "session_timeout_seconds", "request_timeout_seconds")
    @classmethod
    def _validate_positive(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("Intervals and timeouts must be greater than zero")
        return value

    @field_validator("github_api_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.strip().rstrip("/")

    @property
    def remote_tracking_configured(self) -> bool:
        return bool(self.github_token) and bool(self.monitored_repositories)


@lru_cache(maxsize=1)
def get_settings() -> AgentSignalSettings:
    """Return cached settings instance."""

    settings = AgentSignalSettings()
    if settings.heuristics_path is not None:
        settings.heuristics_path = settings.heuristics_path.expanduser().resolve()
    return settings


__all__ = ["AgentSignalSettings", "get_settings", "parse_repositories"]
