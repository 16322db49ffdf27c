"""Heuristic loading utilities."""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import ValidationError

from .models import HeuristicSet


class HeuristicsLoadError(RuntimeError):
    """Raised when a heuristics file cannot be parsed or validated."""


def load_heuristics(path: Path | None = None) -> HeuristicSet:
    """Load heuristics from a YAML file, falling back to the built-in defaults.

    Keys missing from the document keep their default values, so a file only
    needs to list the indicator groups it overrides.
    """

    if path is None:
        return HeuristicSet()

    source = Path(path)
    if not source.exists():
        return HeuristicSet()

    try:
        document = yaml.safe_load(source.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise HeuristicsLoadError(f"Failed to parse YAML in {source}: {exc}") from exc

    if document is None:
        return HeuristicSet()
    if not isinstance(document, dict):
        raise HeuristicsLoadError(f"Heuristics file {source} must contain a mapping")

    try:
        return HeuristicSet.model_validate(document)
    except ValidationError as exc:
        raise HeuristicsLoadError(f"Heuristics validation error in {source}: {exc}") from exc


__all__ = ["HeuristicsLoadError", "load_heuristics"]
