"""Session token and endpoint state."""

from __future__ import annotations

from .api_client import ClientCache
from .config import ConfigStore
from .exceptions import AuthError
from .host import UiHost
from .logger import get_logger
from .models import SessionState

logger = get_logger()

LOGGED_OUT_MESSAGE = "Logged out"


class SessionStore:
    """Owns the SessionState and persists every change to the settings file.

    Endpoint fields are changed only through `update_endpoints`, which the
    EndpointResolver calls; everything else goes through the token primitives.
    """

    def __init__(
        self, store: ConfigStore, host: UiHost, clients: ClientCache | None = None
    ) -> None:
        self.store = store
        self.host = host
        self.clients = clients
        self._state = store.read().session_state()

    @property
    def state(self) -> SessionState:
        """A copy of the current session state."""
        return self._state.model_copy()

    def get_token(self) -> str:
        return self._state.token

    def set_token(self, token: str) -> None:
        self._state.token = token
        self._persist()
        if self.clients is not None:
            self.clients.reset()

    def is_logged_in(self) -> bool:
        return self.get_token() != ""

    def login(self, token: str) -> None:
        """Store a token obtained from the auth endpoint."""
        if not token:
            raise AuthError("Cannot log in with an empty token")
        self.set_token(token)
        logger.changes(f"Logged in at {self._state.auth_url}")

    def logout(self) -> None:
        """Drop the token and tell the user."""
        self.set_token("")
        logger.changes("Logged out")
        self.host.notify(LOGGED_OUT_MESSAGE)

    def update_endpoints(
        self,
        *,
        default_url: str,
        auth_url: str,
        auth_enabled: bool,
        explicit_auth_url: str | None,
    ) -> SessionState:
        """Replace the endpoint fields in one write."""
        self._state = SessionState(
            default_url=default_url,
            auth_url=auth_url,
            auth_enabled=auth_enabled,
            explicit_auth_url=explicit_auth_url,
            token=self._state.token,
        )
        self._persist()
        return self.state

    def request_login(self, username: str, password: str) -> None:
        """Log in with credentials at the auth endpoint.

        Raises:
            AuthError: If the instance rejects the credentials
            ApiError: If the request fails
        """
        token = self._require_clients().client.login(username, password)
        self.login(token)

    def request_register(self, username: str, password: str) -> None:
        """Create an account at the auth endpoint and log in to it."""
        token = self._require_clients().client.register(username, password)
        self.login(token)

    def request_logout(self) -> None:
        self.logout()

    def request_delete_account(self, password: str) -> None:
        """Delete the logged-in account, then log out.

        Raises:
            AuthError: If not logged in or the password is rejected
            ApiError: If the request fails
        """
        if not self.is_logged_in():
            raise AuthError("Not logged in")
        self._require_clients().client.delete_account(password)
        logger.changes(f"Deleted account at {self._state.auth_url}")
        self.logout()

    def flush(self) -> None:
        """Write any pending state to disk."""
        self.store.flush()

    def _persist(self) -> None:
        settings = self.store.read().with_session_state(self._state)
        self.store.write(settings)

    def _require_clients(self) -> ClientCache:
        if self.clients is None:
            raise AuthError("No API client configured for account commands")
        return self.clients
