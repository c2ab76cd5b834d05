"""Pytest configuration and fixtures for tubelink tests."""

from __future__ import annotations

import io
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pytest

from tubelink.api_client import PipedClient, Subscription
from tubelink.exceptions import ApiError, AuthError
from tubelink.logger import reset_logger
from tubelink.settings import InstanceSettings

DEFAULT_URL = "https://pipedapi.kavin.rocks"
OTHER_URL = "https://api.piped.example.org"


class RecordingHost:
    """UiHost that records the signals it receives."""

    def __init__(self) -> None:
        self.recreates = 0
        self.messages: list[str] = []

    def recreate(self) -> None:
        self.recreates += 1

    def notify(self, message: str) -> None:
        self.messages.append(message)


class _CapturingStream(io.BytesIO):
    def __init__(self, files: dict[str, bytes], handle: str) -> None:
        super().__init__()
        self._files = files
        self._handle = handle

    def close(self) -> None:
        if not self.closed:
            self._files[self._handle] = self.getvalue()
        super().close()


class MemoryFiles:
    """FileAccess keeping file contents in a dict keyed by handle."""

    def __init__(self) -> None:
        self.files: dict[str, bytes] = {}

    def open_source(self, handle: object) -> io.BytesIO | None:
        if not isinstance(handle, str) or handle not in self.files:
            return None
        return io.BytesIO(self.files[handle])

    def open_destination(self, handle: object) -> io.BytesIO | None:
        if not isinstance(handle, str) or not handle:
            return None
        return _CapturingStream(self.files, handle)


class FakeServer:
    """Accounts and subscriptions of a fake Piped instance."""

    def __init__(self) -> None:
        self.accounts: dict[str, str] = {"alice": "secret"}
        self.tokens: dict[str, str] = {}
        self.subscriptions: dict[str, dict[str, str]] = {}
        self.fail_subscribe_after: int | None = None
        self.fail_fetch = False
        self.subscribe_calls = 0


class FakePipedClient(PipedClient):
    """PipedClient answering from a FakeServer instead of HTTP."""

    def __init__(self, server: FakeServer, base_url: str, auth_url: str, token: str) -> None:
        super().__init__(base_url, auth_url, token=token, timeout=1.0, session=None)
        self.server = server

    def login(self, username: str, password: str) -> str:
        if self.server.accounts.get(username) != password:
            raise AuthError("Invalid username or password")
        token = f"token-{username}"
        self.server.tokens[token] = username
        return token

    def register(self, username: str, password: str) -> str:
        if username in self.server.accounts:
            raise AuthError("The username you have used is already taken.")
        self.server.accounts[username] = password
        return self.login(username, password)

    def delete_account(self, password: str) -> None:
        user = self._user()
        if self.server.accounts[user] != password:
            raise AuthError("Invalid password")
        del self.server.accounts[user]

    def subscriptions(self) -> list[Subscription]:
        if self.server.fail_fetch:
            raise ApiError("Request failed: 502 Bad Gateway")
        subs = self.server.subscriptions.get(self._user(), {})
        return [Subscription(channel_id=cid, name=name) for cid, name in subs.items()]

    def subscribe(self, channel_id: str) -> None:
        limit = self.server.fail_subscribe_after
        if limit is not None and self.server.subscribe_calls >= limit:
            raise ApiError("Request failed: timed out")
        self.server.subscribe_calls += 1
        self.server.subscriptions.setdefault(self._user(), {})[channel_id] = channel_id

    def _user(self) -> str:
        if self.token not in self.server.tokens:
            raise AuthError("Not logged in")
        return self.server.tokens[self.token]


@pytest.fixture(autouse=True)
def clean_logger() -> Iterator[None]:
    """Reset the package logger around every test."""
    reset_logger()
    yield
    reset_logger()


@pytest.fixture
def host() -> RecordingHost:
    return RecordingHost()


@pytest.fixture
def files() -> MemoryFiles:
    return MemoryFiles()


@pytest.fixture
def server() -> FakeServer:
    return FakeServer()


@pytest.fixture
def directory() -> list[dict[str, Any]]:
    """Raw public instance directory returned by the fake fetch."""
    return [
        {"name": "kavin.rocks", "api_url": DEFAULT_URL, "locations": "IN", "cdn": True},
        {"name": "example", "api_url": OTHER_URL, "version": "2024-01-01"},
    ]


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    return tmp_path / "settings.yaml"


@pytest.fixture
def settings(
    config_path: Path,
    host: RecordingHost,
    files: MemoryFiles,
    server: FakeServer,
    directory: list[dict[str, Any]],
) -> Iterator[InstanceSettings]:
    """A settings session wired to fakes."""
    with InstanceSettings(
        config_path,
        host=host,
        files=files,
        fetch_directory=lambda: directory,
        client_factory=lambda d, a, t: FakePipedClient(server, d, a, t),
    ) as instance_settings:
        yield instance_settings
