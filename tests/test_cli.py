"""Tests for CLI commands."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock, Mock, patch

import pytest
from typer.testing import CliRunner

from tubelink.api_client import Subscription
from tubelink.cli import app
from tubelink.config import DEFAULT_INSTANCE_URL, ConfigStore
from tubelink.exceptions import ApiError, AuthError

runner = CliRunner()

OTHER_URL = "https://api.piped.example.org"


@pytest.fixture
def mock_client() -> Mock:
    """Create a mock API client."""
    client = Mock()
    client.login.return_value = "cli-token"
    client.register.return_value = "new-token"
    client.subscriptions.return_value = [Subscription("UCa", "Alpha")]
    client.auth_url = DEFAULT_INSTANCE_URL
    return client


@pytest.fixture
def patched(mock_client: Mock) -> Any:
    """Patch the network: client construction and directory fetch."""
    with (
        patch("tubelink.settings.PipedClient", return_value=mock_client) as client_class,
        patch(
            "tubelink.registry.fetch_instance_directory",
            return_value=[{"name": "kavin.rocks", "api_url": DEFAULT_INSTANCE_URL}],
        ),
    ):
        yield client_class


def _invoke(config_path: Path, *args: str, input: str | None = None) -> Any:
    return runner.invoke(app, ["-c", str(config_path), *args], input=input)


def _login(config_path: Path) -> None:
    store = ConfigStore(config_path)
    settings = store.read()
    settings.token = "existing"
    store.write(settings)


class TestStatusCommand:
    """Test the status command."""

    def test_fresh_settings(self, config_path: Path, patched: Any) -> None:
        """Test status with no settings file."""
        result = _invoke(config_path, "status")

        assert result.exit_code == 0
        assert DEFAULT_INSTANCE_URL in result.stdout
        assert "same as instance" in result.stdout
        assert "Logged in:     no" in result.stdout

    def test_corrupt_settings(self, config_path: Path, patched: Any) -> None:
        """Test that a broken settings file is reported, not a traceback."""
        config_path.write_text("- not a mapping\n")
        result = _invoke(config_path, "status")

        assert result.exit_code == 1
        assert "must contain a mapping" in result.output


class TestInstancesCommands:
    """Test the instances sub-commands."""

    def test_add_and_list(self, config_path: Path, patched: Any) -> None:
        """Test that custom instances are listed after public ones."""
        assert _invoke(config_path, "instances", "add", "Home", "https://home.lan/").exit_code == 0

        result = _invoke(config_path, "instances", "list")

        assert result.exit_code == 0
        lines = result.stdout.splitlines()
        assert "kavin.rocks" in lines[0]
        assert lines[0].startswith("*A")
        assert "Home" in lines[1]
        assert "https://home.lan" in lines[1]

    def test_list_offline(self, config_path: Path) -> None:
        """Test listing when the directory can't be reached."""
        with patch(
            "tubelink.registry.fetch_instance_directory", side_effect=ApiError("offline")
        ):
            _invoke(config_path, "instances", "add", "Home", "https://home.lan")
            result = _invoke(config_path, "instances", "list")

        assert result.exit_code == 0
        assert "Home" in result.stdout
        assert "kavin.rocks" not in result.stdout

    def test_add_invalid(self, config_path: Path, patched: Any) -> None:
        """Test that a malformed URL is rejected."""
        result = _invoke(config_path, "instances", "add", "Home", "home.lan")

        assert result.exit_code == 1
        assert "Invalid custom instance" in result.output

    def test_remove(self, config_path: Path, patched: Any) -> None:
        """Test removing a custom instance."""
        _invoke(config_path, "instances", "add", "Home", "https://home.lan")

        assert _invoke(config_path, "instances", "remove", "https://home.lan").exit_code == 0
        result = _invoke(config_path, "instances", "remove", "https://home.lan")
        assert result.exit_code == 1
        assert "No custom instance" in result.output

    def test_clear(self, config_path: Path, patched: Any) -> None:
        """Test clearing custom instances after confirmation."""
        _invoke(config_path, "instances", "add", "Home", "https://home.lan")

        result = _invoke(config_path, "instances", "clear", input="y\n")

        assert result.exit_code == 0
        assert ConfigStore(config_path).load().custom_instances == []

    def test_clear_aborted(self, config_path: Path, patched: Any) -> None:
        """Test that declining the confirmation keeps the instances."""
        _invoke(config_path, "instances", "add", "Home", "https://home.lan")

        result = _invoke(config_path, "instances", "clear", input="n\n")

        assert result.exit_code == 1
        assert len(ConfigStore(config_path).load().custom_instances) == 1


class TestEndpointCommands:
    """Test use, auth-instance and auth-toggle."""

    def test_use_logs_out(self, config_path: Path, patched: Any) -> None:
        """Test that switching instance ends the session."""
        _login(config_path)

        result = _invoke(config_path, "use", OTHER_URL)

        assert result.exit_code == 0
        assert "Logged out" in result.output
        settings = ConfigStore(config_path).load()
        assert settings.default_url == OTHER_URL
        assert settings.auth_url == OTHER_URL
        assert settings.token == ""

    def test_use_invalid_url(self, config_path: Path, patched: Any) -> None:
        """Test that a malformed URL is rejected."""
        result = _invoke(config_path, "use", "nonsense")

        assert result.exit_code == 1
        assert "Error: Not a valid http(s) API URL" in result.output
        assert "Unexpected error" not in result.output

    def test_auth_instance_while_disabled(self, config_path: Path, patched: Any) -> None:
        """Test that the auth instance is remembered until enabled."""
        result = _invoke(config_path, "auth-instance", OTHER_URL)

        assert result.exit_code == 0
        assert "auth-toggle on" in result.stdout

        result = _invoke(config_path, "auth-toggle", "on")
        assert result.exit_code == 0
        assert OTHER_URL in result.stdout

        result = _invoke(config_path, "auth-toggle", "off")
        assert DEFAULT_INSTANCE_URL in result.stdout


class TestAccountCommands:
    """Test login, register, logout and delete-account."""

    def test_login_with_options(
        self, config_path: Path, patched: Any, mock_client: Mock
    ) -> None:
        """Test login with credentials on the command line."""
        result = _invoke(config_path, "login", "-u", "alice", "-p", "secret")

        assert result.exit_code == 0
        assert "Logged in" in result.stdout
        mock_client.login.assert_called_once_with("alice", "secret")
        assert ConfigStore(config_path).load().token == "cli-token"

    @patch("tubelink.cli.get_credentials_from_netrc")
    def test_login_from_netrc(
        self, mock_netrc: MagicMock, config_path: Path, patched: Any, mock_client: Mock
    ) -> None:
        """Test that missing credentials come from .netrc."""
        mock_netrc.return_value = ("alice", "from-netrc")

        result = _invoke(config_path, "login")

        assert result.exit_code == 0
        mock_netrc.assert_called_once_with(DEFAULT_INSTANCE_URL)
        mock_client.login.assert_called_once_with("alice", "from-netrc")

    @patch("tubelink.cli.get_credentials_from_netrc", return_value=(None, None))
    def test_login_prompts(
        self, mock_netrc: MagicMock, config_path: Path, patched: Any, mock_client: Mock
    ) -> None:
        """Test prompting when neither options nor .netrc give credentials."""
        result = _invoke(config_path, "login", input="alice\nsecret\n")

        assert result.exit_code == 0
        mock_client.login.assert_called_once_with("alice", "secret")

    def test_login_rejected(self, config_path: Path, patched: Any, mock_client: Mock) -> None:
        """Test that a rejected login exits with an error."""
        mock_client.login.side_effect = AuthError("Invalid username or password")

        result = _invoke(config_path, "login", "-u", "alice", "-p", "wrong")

        assert result.exit_code == 1
        assert "Authentication error: Invalid username or password" in result.output

    def test_register(self, config_path: Path, patched: Any, mock_client: Mock) -> None:
        """Test account registration."""
        result = _invoke(config_path, "register", "-u", "bob", "-p", "pw")

        assert result.exit_code == 0
        mock_client.register.assert_called_once_with("bob", "pw")
        assert ConfigStore(config_path).load().token == "new-token"

    def test_logout(self, config_path: Path, patched: Any) -> None:
        """Test logout clears the stored token."""
        _login(config_path)

        result = _invoke(config_path, "logout")

        assert result.exit_code == 0
        assert "Logged out" in result.output
        assert ConfigStore(config_path).load().token == ""

    def test_delete_account(self, config_path: Path, patched: Any, mock_client: Mock) -> None:
        """Test deleting the account with confirmation flag and password."""
        _login(config_path)

        result = _invoke(config_path, "delete-account", "-y", "-p", "secret")

        assert result.exit_code == 0
        mock_client.delete_account.assert_called_once_with("secret")
        assert ConfigStore(config_path).load().token == ""

    def test_delete_account_logged_out(self, config_path: Path, patched: Any) -> None:
        """Test that deletion needs a session."""
        result = _invoke(config_path, "delete-account", "-y", "-p", "secret")

        assert result.exit_code == 1
        assert "Not logged in" in result.output


class TestTransferCommands:
    """Test import and export."""

    def test_export(self, config_path: Path, tmp_path: Path, patched: Any) -> None:
        """Test exporting subscriptions to a file."""
        _login(config_path)
        output = tmp_path / "subs.json"

        result = _invoke(config_path, "export", str(output))

        assert result.exit_code == 0
        assert "Exported 1 subscriptions" in result.stdout
        data = json.loads(output.read_text())
        assert data["subscriptions"][0]["url"] == "https://www.youtube.com/channel/UCa"

    def test_export_to_directory(self, config_path: Path, tmp_path: Path, patched: Any) -> None:
        """Test that an unwritable destination is reported without a traceback."""
        _login(config_path)

        result = _invoke(config_path, "export", str(tmp_path))

        assert result.exit_code == 1
        assert "Error: Failed to write subscriptions" in result.output
        assert "Unexpected error" not in result.output

    def test_import(
        self, config_path: Path, tmp_path: Path, patched: Any, mock_client: Mock
    ) -> None:
        """Test importing subscriptions from a file."""
        _login(config_path)
        source = tmp_path / "subs.json"
        source.write_text('["UCa", "UCb"]')

        result = _invoke(config_path, "import", str(source))

        assert result.exit_code == 0
        assert "Imported 2 subscriptions" in result.stdout
        assert [c.args[0] for c in mock_client.subscribe.call_args_list] == ["UCa", "UCb"]

    def test_import_missing_file(self, config_path: Path, tmp_path: Path, patched: Any) -> None:
        """Test importing a file that doesn't exist."""
        _login(config_path)

        result = _invoke(config_path, "import", str(tmp_path / "missing.json"))

        assert result.exit_code == 1
        assert "Cannot read" in result.output

    def test_import_logged_out(self, config_path: Path, tmp_path: Path, patched: Any) -> None:
        """Test that import needs a session."""
        source = tmp_path / "subs.json"
        source.write_text('["UCa"]')

        result = _invoke(config_path, "import", str(source))

        assert result.exit_code == 1
        assert "Log in before importing" in result.output
