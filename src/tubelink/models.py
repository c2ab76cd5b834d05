"""Data model for instances and session state."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator


def normalize_api_url(url: str) -> str:
    """Strip whitespace and trailing slashes, and require an http(s) URL with a host.

    Raises:
        ValueError: If the URL is not usable as an API endpoint
    """
    value = url.strip().rstrip("/")
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError(f"Not a valid http(s) API URL: {url!r}")
    return value


class CustomInstance(BaseModel):
    """A user-added API endpoint."""

    name: str = Field(..., description="Display name shown in the instance list")
    api_url: str = Field(..., description="Base URL of the instance API")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Reject blank names."""
        v = v.strip()
        if not v:
            raise ValueError("Instance name must not be blank")
        return v

    @field_validator("api_url")
    @classmethod
    def validate_api_url(cls, v: str) -> str:
        """Ensure the URL is http(s) and has no trailing slash."""
        return normalize_api_url(v)


class PublicInstance(BaseModel):
    """An entry of the remote public instance directory.

    Only the fields the choice list needs are read; the directory's other
    informational fields are ignored. Both are optional since the directory is
    not trusted to be complete.
    """

    model_config = ConfigDict(extra="ignore")

    name: str | None = None
    api_url: str | None = None

    def is_complete(self) -> bool:
        """Whether the entry can be offered as a choice."""
        return bool(self.name) and bool(self.api_url)


@dataclass(frozen=True)
class InstanceChoice:
    """One selectable entry of the instance list."""

    display_name: str
    api_url: str


class SessionState(BaseModel):
    """Endpoint selection and authentication token.

    `token == ""` means logged out. While `auth_enabled` is false,
    `auth_url` mirrors `default_url`. `explicit_auth_url` remembers the last
    auth endpoint the user picked so that re-enabling restores it.
    """

    default_url: str
    auth_url: str
    auth_enabled: bool = False
    explicit_auth_url: str | None = None
    token: str = ""

    @field_validator("default_url", "auth_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Ensure URLs don't have a trailing slash."""
        return v.rstrip("/")

    def model_post_init(self, __context: Any) -> None:
        """Repair a state whose auth URL drifted from the default URL."""
        if not self.auth_enabled and self.auth_url != self.default_url:
            self.auth_url = self.default_url

    @property
    def logged_in(self) -> bool:
        return self.token != ""
