"""Endpoint selection rules."""

from __future__ import annotations

from .api_client import ClientCache
from .exceptions import InvalidInstanceError
from .host import UiHost
from .logger import get_logger
from .models import SessionState, normalize_api_url
from .session import SessionStore

logger = get_logger()


def _endpoint_url(url: str) -> str:
    try:
        return normalize_api_url(url)
    except ValueError as e:
        raise InvalidInstanceError(str(e)) from e


class EndpointResolver:
    """Decides the default and authenticated endpoints.

    A session token is only valid on the host that issued it, so every
    endpoint event ends logged out, drops the cached API client and asks the
    host to rebuild its endpoint-dependent state.
    """

    def __init__(self, session: SessionStore, clients: ClientCache, host: UiHost) -> None:
        self.session = session
        self.clients = clients
        self.host = host

    @property
    def default_url(self) -> str:
        return self.session.state.default_url

    def default_endpoint_changed(self, new_url: str) -> SessionState:
        """The user picked a new default instance.

        Raises:
            InvalidInstanceError: If the URL is not a usable http(s) URL
        """
        url = _endpoint_url(new_url)
        state = self.session.state
        auth_url = state.auth_url if state.auth_enabled else url
        logger.changes(f"Default instance: {state.default_url} -> {url}")
        self.session.update_endpoints(
            default_url=url,
            auth_url=auth_url,
            auth_enabled=state.auth_enabled,
            explicit_auth_url=state.explicit_auth_url,
        )
        return self._invalidate()

    def auth_endpoint_changed(self, new_url: str) -> SessionState:
        """The user picked a new instance for authenticated calls.

        The choice is remembered even while the separate auth instance is
        disabled; it takes effect once enabled.

        Raises:
            InvalidInstanceError: If the URL is not a usable http(s) URL
        """
        url = _endpoint_url(new_url)
        state = self.session.state
        auth_url = url if state.auth_enabled else state.default_url
        logger.changes(f"Auth instance: {state.auth_url} -> {auth_url}")
        self.session.update_endpoints(
            default_url=state.default_url,
            auth_url=auth_url,
            auth_enabled=state.auth_enabled,
            explicit_auth_url=url,
        )
        return self._invalidate()

    def auth_enabled_toggled(self, enabled: bool) -> SessionState:
        """The user switched the separate auth instance on or off."""
        state = self.session.state
        if enabled:
            auth_url = state.explicit_auth_url or state.default_url
        else:
            auth_url = state.default_url
        logger.changes(
            f"Separate auth instance {'enabled' if enabled else 'disabled'}, using {auth_url}"
        )
        self.session.update_endpoints(
            default_url=state.default_url,
            auth_url=auth_url,
            auth_enabled=enabled,
            explicit_auth_url=state.explicit_auth_url,
        )
        return self._invalidate()

    def _invalidate(self) -> SessionState:
        self.session.logout()
        self.clients.reset()
        self.host.recreate()
        return self.session.state
