"""Settings schema and the durable settings file.

The settings file is a small YAML document holding the selected endpoints,
the session token and the user's custom instances. It is rewritten with
ruamel.yaml in round-trip mode so comments and keys the user added by hand
survive every save.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator
from ruamel.yaml import YAML
from ruamel.yaml.comments import CommentedMap
from ruamel.yaml.error import YAMLError

from .exceptions import ConfigError
from .logger import get_logger
from .models import CustomInstance, SessionState

# Load environment variables from .env file
load_dotenv()

logger = get_logger()

DEFAULT_INSTANCE_URL = "https://pipedapi.kavin.rocks"
DEFAULT_INSTANCES_URL = "https://piped-instances.kavin.rocks/"
DEFAULT_TIMEOUT = 10.0
DEFAULT_CONFIG_PATH = Path.home() / ".config" / "tubelink" / "settings.yaml"

# Keys written to the file, in the order they are laid out for a fresh file
PERSISTED_KEYS = (
    "default_url",
    "auth_url",
    "auth_enabled",
    "explicit_auth_url",
    "token",
    "custom_instances",
)


class Settings(BaseModel):
    """Everything tubelink persists between runs."""

    default_url: str = DEFAULT_INSTANCE_URL
    auth_url: str = DEFAULT_INSTANCE_URL
    auth_enabled: bool = False
    explicit_auth_url: str | None = None
    token: str = ""
    custom_instances: list[CustomInstance] = Field(default_factory=list[CustomInstance])

    @field_validator("default_url", "auth_url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Ensure URLs don't have a trailing slash."""
        return v.rstrip("/")

    def session_state(self) -> SessionState:
        """Build the session state held by these settings."""
        return SessionState(
            default_url=self.default_url,
            auth_url=self.auth_url,
            auth_enabled=self.auth_enabled,
            explicit_auth_url=self.explicit_auth_url,
            token=self.token,
        )

    def with_session_state(self, state: SessionState) -> Settings:
        """Return a copy whose session fields come from `state`."""
        return self.model_copy(
            update={
                "default_url": state.default_url,
                "auth_url": state.auth_url,
                "auth_enabled": state.auth_enabled,
                "explicit_auth_url": state.explicit_auth_url,
                "token": state.token,
            }
        )


def default_config_path() -> Path:
    """Settings file location, honouring TUBELINK_CONFIG."""
    env_path = os.getenv("TUBELINK_CONFIG")
    if env_path:
        return Path(env_path).expanduser()
    return DEFAULT_CONFIG_PATH


def instances_url() -> str:
    """Public instance directory URL, honouring TUBELINK_INSTANCES_URL."""
    return os.getenv("TUBELINK_INSTANCES_URL") or DEFAULT_INSTANCES_URL


def request_timeout() -> float:
    """HTTP timeout in seconds, honouring TUBELINK_TIMEOUT."""
    raw = os.getenv("TUBELINK_TIMEOUT")
    if not raw:
        return DEFAULT_TIMEOUT
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring invalid TUBELINK_TIMEOUT=%r", raw)
        return DEFAULT_TIMEOUT


class ConfigStore:
    """Durable key-value store backed by a YAML file.

    Reads are served from memory. Every write goes to disk before returning,
    so a read right after a write always sees it.
    """

    def __init__(self, path: Path | str | None = None) -> None:
        self.path = Path(path) if path is not None else default_config_path()
        self._settings: Settings | None = None
        self._dirty = False

    def load(self) -> Settings:
        """Read the settings file, falling back to defaults when it doesn't exist.

        Raises:
            ConfigError: If the file exists but is not valid
        """
        if not self.path.exists():
            logger.checks(f"No settings file at {self.path}, using defaults")
            self._settings = Settings()
            return self._settings.model_copy(deep=True)

        data = self._read_document()
        values = {key: data[key] for key in PERSISTED_KEYS if key in data}
        try:
            self._settings = Settings.model_validate(values)
        except ValidationError as e:
            raise ConfigError(f"Invalid settings file {self.path}: {e}") from e

        logger.checks(f"Loaded settings from {self.path}")
        return self._settings.model_copy(deep=True)

    def read(self) -> Settings:
        """Current settings (loads the file on first access)."""
        if self._settings is None:
            return self.load()
        return self._settings.model_copy(deep=True)

    def write(self, settings: Settings) -> None:
        """Persist `settings` and make them the current settings.

        Raises:
            ConfigError: If the file cannot be written
        """
        self._settings = settings.model_copy(deep=True)
        self._dirty = True
        self.flush()

    def flush(self) -> None:
        """Write pending changes to disk."""
        if not self._dirty or self._settings is None:
            return

        yaml_rt = YAML()
        data: Any = self._read_document() if self.path.exists() else CommentedMap()
        dumped = self._settings.model_dump(mode="json")
        for key in PERSISTED_KEYS:
            data[key] = dumped[key]

        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tmp_path.open("w", encoding="utf-8") as f:
                yaml_rt.dump(data, f)  # type: ignore[no-untyped-call]
            # The file holds the session token
            tmp_path.chmod(0o600)
            tmp_path.replace(self.path)
        except OSError as e:
            raise ConfigError(f"Failed to write settings file {self.path}: {e}") from e

        self._dirty = False
        logger.debug(f"Wrote settings to {self.path}")

    def _read_document(self) -> Any:
        yaml_rt = YAML()
        try:
            with self.path.open(encoding="utf-8") as f:
                data: Any = yaml_rt.load(f)  # type: ignore[no-untyped-call]
        except (OSError, YAMLError) as e:
            raise ConfigError(f"Failed to read settings file {self.path}: {e}") from e

        if data is None:
            return CommentedMap()
        if not isinstance(data, dict):
            raise ConfigError(f"Settings file {self.path} must contain a mapping")
        return data
