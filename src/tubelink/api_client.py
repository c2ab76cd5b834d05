"""Piped API client wrapper."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, cast

import requests

from .config import request_timeout
from .exceptions import ApiError, AuthError
from .logger import get_logger

logger = get_logger()


@dataclass(frozen=True)
class Subscription:
    """A channel the logged-in user is subscribed to."""

    channel_id: str
    name: str


def channel_id_from_url(url: str) -> str:
    """Extract the channel id from a `/channel/<id>` URL or path."""
    return url.rstrip("/").split("/channel/")[-1]


class PipedClient:
    """Wrapper around the Piped REST API.

    One client talks to the default endpoint (public calls) and the auth
    endpoint (account and subscription calls). Both may be the same host.
    """

    def __init__(
        self,
        base_url: str,
        auth_url: str | None = None,
        token: str = "",
        timeout: float | None = None,
        session: requests.Session | None = None,
    ):
        """Initialize the client.

        Args:
            base_url: Default API endpoint
            auth_url: Endpoint for authenticated calls (defaults to base_url)
            token: Session token, empty when logged out
            timeout: Request timeout in seconds (defaults to TUBELINK_TIMEOUT or 10)
            session: Optional requests session to reuse
        """
        self.base_url = base_url.rstrip("/")
        self.auth_url = (auth_url or base_url).rstrip("/")
        self.token = token
        self.timeout = timeout if timeout is not None else request_timeout()
        self._owns_session = session is None
        self.session = session or requests.Session()

    def login(self, username: str, password: str) -> str:
        """Exchange credentials for a session token at the auth endpoint.

        Raises:
            AuthError: If the instance rejects the credentials
            ApiError: If the request fails
        """
        return self._token_request("/login", username, password)

    def register(self, username: str, password: str) -> str:
        """Create an account at the auth endpoint and return its session token.

        Raises:
            AuthError: If the instance refuses the registration
            ApiError: If the request fails
        """
        return self._token_request("/register", username, password)

    def delete_account(self, password: str) -> None:
        """Delete the logged-in account.

        Raises:
            AuthError: If not logged in or the password is wrong
            ApiError: If the request fails
        """
        data = self._request("POST", "/user/delete", json={"password": password}, auth=True)
        if isinstance(data, dict) and data.get("error"):
            raise AuthError(f"Account deletion refused: {data['error']}")

    def subscriptions(self) -> list[Subscription]:
        """Fetch the subscription list of the logged-in user."""
        data = self._request("GET", "/subscriptions", auth=True)
        if not isinstance(data, list):
            raise ApiError(f"Unexpected subscriptions response from {self.auth_url}")

        result: list[Subscription] = []
        for item in cast(list[Any], data):
            if not isinstance(item, dict):
                continue
            entry = cast(dict[str, Any], item)
            url = entry.get("url")
            if not url:
                continue
            result.append(
                Subscription(
                    channel_id=channel_id_from_url(str(url)),
                    name=str(entry.get("name") or ""),
                )
            )
        return result

    def subscribe(self, channel_id: str) -> None:
        """Subscribe the logged-in user to a channel."""
        self._request("POST", "/subscribe", json={"channelId": channel_id}, auth=True)

    def close(self) -> None:
        """Release the HTTP connections of a session this client created."""
        if self._owns_session:
            self.session.close()

    def _token_request(self, path: str, username: str, password: str) -> str:
        data = self._request("POST", path, json={"username": username, "password": password})
        if not isinstance(data, dict):
            raise ApiError(f"Unexpected response from {self.auth_url}{path}")
        body = cast(dict[str, Any], data)
        if body.get("error"):
            raise AuthError(str(body["error"]))
        token = body.get("token")
        if not token:
            raise AuthError(f"No token in response from {self.auth_url}{path}")
        return str(token)

    def _request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        auth: bool = False,
    ) -> Any:
        """Send a request to the auth endpoint and decode the JSON body.

        Raises:
            AuthError: If `auth` is set and there is no token, or the token is rejected
            ApiError: On transport errors, HTTP errors or undecodable bodies
        """
        headers: dict[str, str] = {}
        if auth:
            if not self.token:
                raise AuthError("Not logged in")
            headers["Authorization"] = self.token

        url = f"{self.auth_url}{path}"
        logger.debug(f"{method} {url}")
        try:
            response = self.session.request(
                method, url, json=json, headers=headers, timeout=self.timeout
            )
        except requests.RequestException as e:
            raise ApiError(f"Request to {url} failed: {e}") from e

        if response.status_code in (401, 403):
            raise AuthError(f"Instance rejected the session token ({response.status_code})")
        try:
            response.raise_for_status()
        except requests.HTTPError as e:
            raise ApiError(f"Request to {url} failed: {e}") from e

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise ApiError(f"Invalid JSON from {url}: {e}") from e


def fetch_instance_directory(
    url: str, session: requests.Session | None = None, timeout: float | None = None
) -> list[dict[str, Any]]:
    """Fetch the raw public instance directory.

    Raises:
        ApiError: On any transport, HTTP or decoding failure
    """
    if session is None:
        with requests.Session() as http:
            return fetch_instance_directory(url, http, timeout)

    try:
        response = session.get(url, timeout=timeout if timeout is not None else request_timeout())
        response.raise_for_status()
        data = response.json()
    except (requests.RequestException, ValueError) as e:
        raise ApiError(f"Failed to fetch instance directory {url}: {e}") from e

    if not isinstance(data, list):
        raise ApiError(f"Instance directory {url} did not return a list")
    return [cast(dict[str, Any], item) for item in cast(list[Any], data) if isinstance(item, dict)]


class ClientCache:
    """Lazily builds the API client and drops it when the endpoints change."""

    def __init__(self, factory: Callable[[], PipedClient]) -> None:
        self._factory = factory
        self._client: PipedClient | None = None

    @property
    def client(self) -> PipedClient:
        if self._client is None:
            self._client = self._factory()
        return self._client

    def reset(self) -> None:
        """Close and forget the cached client; the next access builds a new one."""
        if self._client is not None:
            self._client.close()
        self._client = None

    def is_built(self) -> bool:
        return self._client is not None
