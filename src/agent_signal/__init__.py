"""Agent Signal: notifications for coding agent activity."""

__version__ = "0.1.0"

__all__ = ["__version__"]
