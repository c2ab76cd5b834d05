"""Collaborator interfaces the core talks to, and the owner liveness guard."""

from __future__ import annotations

import threading
from pathlib import Path
from typing import BinaryIO, Protocol

import typer


class UiHost(Protocol):
    """The presentation layer hosting the settings."""

    def recreate(self) -> None:
        """Reload all endpoint-dependent state."""
        ...

    def notify(self, message: str) -> None:
        """Show a short message to the user."""
        ...


class FileAccess(Protocol):
    """Resolves user-chosen import sources and export destinations to streams."""

    def open_source(self, handle: object) -> BinaryIO | None:
        """Open a readable stream, or return None if the handle can't be resolved."""
        ...

    def open_destination(self, handle: object) -> BinaryIO | None:
        """Open a writable stream, or return None if the handle can't be resolved."""
        ...


class OwnerScope:
    """Liveness flag of whatever owns an asynchronous request.

    Completion callbacks check `is_alive()` and drop their result once the
    owner has been closed.
    """

    def __init__(self) -> None:
        self._alive = threading.Event()
        self._alive.set()

    def is_alive(self) -> bool:
        return self._alive.is_set()

    def close(self) -> None:
        self._alive.clear()


class ConsoleHost:
    """UiHost for the command line: messages go to stderr, recreate is a no-op."""

    def __init__(self) -> None:
        self.recreate_count = 0

    def recreate(self) -> None:
        # Every CLI invocation re-reads the settings file
        self.recreate_count += 1

    def notify(self, message: str) -> None:
        typer.echo(message, err=True)


class LocalFileAccess:
    """FileAccess treating handles as filesystem paths."""

    def open_source(self, handle: object) -> BinaryIO | None:
        path = self._as_path(handle)
        if path is None or not path.is_file():
            return None
        return path.open("rb")

    def open_destination(self, handle: object) -> BinaryIO | None:
        path = self._as_path(handle)
        if path is None or not path.parent.is_dir():
            return None
        return path.open("wb")

    @staticmethod
    def _as_path(handle: object) -> Path | None:
        if isinstance(handle, Path):
            return handle
        if isinstance(handle, str) and handle:
            return Path(handle).expanduser()
        return None
