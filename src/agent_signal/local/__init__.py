"""Local editor window inspection."""

from .windows import (
    LocalActivitySource,
    MacOSWindowSource,
    WindowSnapshot,
    WmctrlWindowSource,
    default_window_source,
)

__all__ = [
    "LocalActivitySource",
    "MacOSWindowSource",
    "WindowSnapshot",
    "WmctrlWindowSource",
    "default_window_source",
]
