"""Global CLI context."""

from __future__ import annotations

from pathlib import Path


class _Context:
    """Holds options given to the root command."""

    def __init__(self) -> None:
        self.config_path: Path | None = None


# Singleton instance
_context = _Context()


def get_config_path() -> Path | None:
    """Get the settings file path given on the command line."""
    return _context.config_path


def set_config_path(path: Path | None) -> None:
    """Set the settings file path given on the command line."""
    _context.config_path = path
