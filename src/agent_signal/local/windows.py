"""Editor window inspection for the local activity tracker."""

from __future__ import annotations

import logging
import shutil
import subprocess
import sys
from dataclasses import dataclass
from typing import Any, Protocol, cast

import psutil

from ..heuristics import HeuristicSet

if sys.platform == "darwin":
    from AppKit import NSWorkspace  # pyright: ignore[reportMissingImports]
    from ApplicationServices import (  # pyright: ignore[reportMissingImports]
        AXIsProcessTrusted,
        AXUIElementCopyAttributeValue,
        AXUIElementCreateApplication,
        kAXTitleAttribute,
        kAXWindowsAttribute,
    )
    from Quartz import (  # pyright: ignore[reportMissingImports]
        CGWindowListCopyWindowInfo,
        kCGNullWindowID,
        kCGWindowListOptionOnScreenOnly,
    )
else:  # pragma: no cover
    NSWorkspace = cast("Any", None)
    AXIsProcessTrusted = cast("Any", None)
    AXUIElementCopyAttributeValue = cast("Any", None)
    AXUIElementCreateApplication = cast("Any", None)
    kAXTitleAttribute = cast("Any", None)
    kAXWindowsAttribute = cast("Any", None)
    CGWindowListCopyWindowInfo = cast("Any", None)
    kCGNullWindowID = cast("Any", None)
    kCGWindowListOptionOnScreenOnly = cast("Any", None)

logger = logging.getLogger(__name__)

WMCTRL_TIMEOUT_SECONDS = 2.0


@dataclass(frozen=True, slots=True)
class WindowSnapshot:
    title: str
    process_id: int


class LocalActivitySource(Protocol):
    """Inspects running editor windows. Implementations never raise."""

    def list_editor_windows(self) -> list[WindowSnapshot]: ...

    def is_elevated_access_granted(self) -> bool: ...

    def accessibility_titles(self, process_id: int) -> list[str]: ...


class MacOSWindowSource:
    """Reads on-screen editor windows through Quartz and the accessibility API."""

    def __init__(self, heuristics: HeuristicSet | None = None) -> None:
        self._heuristics = heuristics or HeuristicSet()

    def _editor_pids(self) -> set[int]:
        pids: set[int] = set()
        for app in NSWorkspace.sharedWorkspace().runningApplications():
            bundle_id = app.bundleIdentifier()
            if not bundle_id:
                continue
            if any(marker in bundle_id for marker in self._heuristics.editor_bundle_ids):
                pids.add(int(app.processIdentifier()))
        return pids

    def list_editor_windows(self) -> list[WindowSnapshot]:
        try:
            return self._read_editor_windows()
        except Exception as exc:
            logger.debug("Quartz window listing failed: %s", exc)
            return []

    def _read_editor_windows(self) -> list[WindowSnapshot]:
        pids = self._editor_pids()
        if not pids:
            return []

        windows: list[WindowSnapshot] = []
        for info in CGWindowListCopyWindowInfo(kCGWindowListOptionOnScreenOnly, kCGNullWindowID) or []:
            owner = info.get("kCGWindowOwnerPID")
            title = info.get("kCGWindowName") or ""
            if owner is None or int(owner) not in pids or not title:
                continue
            windows.append(WindowSnapshot(title=str(title), process_id=int(owner)))
        return windows

    def is_elevated_access_granted(self) -> bool:
        try:
            return bool(AXIsProcessTrusted())
        except Exception as exc:
            logger.debug("Accessibility trust check failed: %s", exc)
            return False

    def accessibility_titles(self, process_id: int) -> list[str]:
        if not self.is_elevated_access_granted():
            return []
        try:
            return self._read_accessibility_titles(process_id)
        except Exception as exc:
            logger.debug("Accessibility title lookup failed for pid %d: %s", process_id, exc)
            return []

    def _read_accessibility_titles(self, process_id: int) -> list[str]:
        app_ref = AXUIElementCreateApplication(process_id)
        error, ax_windows = AXUIElementCopyAttributeValue(app_ref, kAXWindowsAttribute, None)
        if error != 0 or not ax_windows:
            return []

        titles: list[str] = []
        for ax_window in ax_windows:
            error, title = AXUIElementCopyAttributeValue(ax_window, kAXTitleAttribute, None)
            if error == 0 and title:
                titles.append(str(title))
        return titles


class WmctrlWindowSource:
    """Lists X11 windows with ``wmctrl -lp`` and keeps those owned by an editor."""

    def __init__(self, heuristics: HeuristicSet | None = None, *, executable: str = "wmctrl") -> None:
        self._heuristics = heuristics or HeuristicSet()
        self._executable = executable

    def _run_wmctrl(self) -> str:
        binary = shutil.which(self._executable)
        if binary is None:
            return ""
        try:
            process = subprocess.run(
                [binary, "-lp"],
                capture_output=True,
                text=True,
                timeout=WMCTRL_TIMEOUT_SECONDS,
                check=False,
            )
        except (OSError, subprocess.TimeoutExpired) as exc:
            logger.debug("wmctrl failed: %s", exc)
            return ""
        if process.returncode != 0:
            return ""
        return process.stdout

    def _is_editor_process(self, pid: int) -> bool:
        try:
            name = psutil.Process(pid).name()
        except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
            return False
        return name in self._heuristics.editor_process_names

    def list_editor_windows(self) -> list[WindowSnapshot]:
        windows: list[WindowSnapshot] = []
        for line in self._run_wmctrl().splitlines():
            parts = line.split(None, 4)
            if len(parts) < 5:
                continue
            _window_id, _desktop, pid_text, _host, title = parts
            try:
                pid = int(pid_text)
            except ValueError:
                continue
            if pid <= 0 or not title.strip():
                continue
            if self._is_editor_process(pid):
                windows.append(WindowSnapshot(title=title, process_id=pid))
        return windows

    def is_elevated_access_granted(self) -> bool:
        return False

    def accessibility_titles(self, process_id: int) -> list[str]:
        return []


def default_window_source(heuristics: HeuristicSet | None = None) -> LocalActivitySource:
    """Return the window source for the current platform."""

    if sys.platform == "darwin":
        return MacOSWindowSource(heuristics)
    return WmctrlWindowSource(heuristics)


__all__ = [
    "LocalActivitySource",
    "MacOSWindowSource",
    "WindowSnapshot",
    "WmctrlWindowSource",
    "default_window_source",
]
