"""Edge detection over the local editor activity signal."""

from __future__ import annotations

import logging

from ..events import EditorStarted, EditorStopped, TransitionEvent
from ..heuristics import HeuristicSet
from ..local import LocalActivitySource, WindowSnapshot

logger = logging.getLogger(__name__)

INITIAL_TASK_DESCRIPTION = "Unknown task"


class EditorSessionTracker:
    """Tracks the single implicit editor agent session.

    The local source cannot tell concurrent editor tasks apart, so the tracker
    only knows whether some editor window currently looks busy.
    """

    def __init__(self, source: LocalActivitySource, heuristics: HeuristicSet | None = None) -> None:
        self._source = source
        self._heuristics = heuristics or HeuristicSet()
        self._monitoring = False
        self.was_agent_active = False
        self.current_task_description = INITIAL_TASK_DESCRIPTION

    @property
    def is_monitoring(self) -> bool:
        return self._monitoring

    def start(self) -> None:
        if self._monitoring:
            return
        logger.info("Starting editor agent monitoring")
        self._monitoring = True
        if not self._source.is_elevated_access_granted():
            logger.warning("Accessibility permissions not granted - editor monitoring may be limited")

    def stop(self) -> None:
        if not self._monitoring:
            return
        logger.info("Stopping editor agent monitoring")
        self._monitoring = False
        self.was_agent_active = False
        self.current_task_description = INITIAL_TASK_DESCRIPTION

    def poll(self) -> TransitionEvent | None:
        """Sample the editor windows once and report a busy/idle edge, if any."""

        if not self._monitoring:
            return None

        is_currently_active = self._detect_agent_activity()

        event: TransitionEvent | None = None
        if self.was_agent_active and not is_currently_active:
            logger.info("Editor agent completed task: %s", self.current_task_description)
            event = EditorStopped(task_description=self.current_task_description)
        elif not self.was_agent_active and is_currently_active:
            logger.info("Editor agent started")
            event = EditorStarted()

        self.was_agent_active = is_currently_active
        return event

    def _detect_agent_activity(self) -> bool:
        windows = self._source.list_editor_windows()
        if not windows:
            return False

        elevated = self._source.is_elevated_access_granted()
        for window in windows:
            if self._window_in_agent_mode(window, elevated=elevated):
                return True
        return False

    def _window_in_agent_mode(self, window: WindowSnapshot, *, elevated: bool) -> bool:
        if self._heuristics.match_window_title(window.title) is not None:
            self.current_task_description = self._heuristics.describe_task(window.title)
            logger.debug("Agent mode detected in window: %s", window.title)
            return True

        if not elevated:
            return False

        for title in self._source.accessibility_titles(window.process_id):
            if self._heuristics.match_accessibility_title(title) is not None:
                self.current_task_description = self._heuristics.describe_task(title)
                logger.debug("Agent activity detected through accessibility: %s", title)
                return True
        return False


__all__ = ["EditorSessionTracker", "INITIAL_TASK_DESCRIPTION"]
