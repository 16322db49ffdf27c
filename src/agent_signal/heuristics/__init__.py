"""Heuristic models and loader exports."""

from .loader import HeuristicsLoadError, load_heuristics
from .models import HeuristicSet, TaskKeyword

__all__ = [
    "HeuristicSet",
    "HeuristicsLoadError",
    "TaskKeyword",
    "load_heuristics",
]
