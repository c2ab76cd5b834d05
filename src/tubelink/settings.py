"""The instance settings session: one owner for registry, session, resolver and transfer."""

from __future__ import annotations

from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from types import TracebackType

from .api_client import ClientCache, PipedClient
from .config import ConfigStore
from .host import ConsoleHost, FileAccess, LocalFileAccess, OwnerScope, UiHost
from .logger import get_logger
from .models import InstanceChoice
from .registry import DirectoryFetcher, InstanceRegistry
from .resolver import EndpointResolver
from .session import SessionStore
from .transfer import SubscriptionTransfer

logger = get_logger()


class InstanceSettings:
    """Loads the settings file on open and flushes it on close.

    Use as a context manager. Closing also marks the owner scope dead, so
    instance lists still being fetched in the background are discarded.
    """

    def __init__(
        self,
        config_path: Path | str | None = None,
        *,
        host: UiHost | None = None,
        files: FileAccess | None = None,
        fetch_directory: DirectoryFetcher | None = None,
        client_factory: Callable[[str, str, str], PipedClient] | None = None,
    ) -> None:
        """Wire up the components.

        Args:
            config_path: Settings file (defaults to TUBELINK_CONFIG or ~/.config/tubelink)
            host: Receives recreate and notify signals
            files: Resolves import/export handles
            fetch_directory: Override for the public instance directory fetch
            client_factory: Builds a client from (default_url, auth_url, token)
        """
        self.store = ConfigStore(config_path)
        self.host = host or ConsoleHost()
        self.files = files or LocalFileAccess()
        self.owner = OwnerScope()
        self._client_factory = client_factory or (
            lambda default_url, auth_url, token: PipedClient(default_url, auth_url, token=token)
        )
        self._executor: ThreadPoolExecutor | None = None

        self.clients = ClientCache(self._build_client)
        self.session = SessionStore(self.store, self.host, self.clients)
        self.registry = InstanceRegistry(self.store, fetch_directory)
        self.resolver = EndpointResolver(self.session, self.clients, self.host)
        self.transfer = SubscriptionTransfer(self.session, self.clients, self.files)

    def __enter__(self) -> InstanceSettings:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def load_instance_choices(
        self, callback: Callable[[list[InstanceChoice]], None]
    ) -> Future[list[InstanceChoice]]:
        """Fetch the instance list in the background and hand it to `callback`."""
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="tubelink")
        return self.registry.build_choices_async(self._executor, self.owner, callback)

    def close(self) -> None:
        """Tear down the session and flush the settings file."""
        self.owner.close()
        if self._executor is not None:
            self._executor.shutdown(wait=False, cancel_futures=True)
            self._executor = None
        self.clients.reset()
        self.session.flush()

    def _build_client(self) -> PipedClient:
        state = self.session.state
        logger.debug(f"Building API client for {state.default_url} (auth: {state.auth_url})")
        return self._client_factory(state.default_url, state.auth_url, state.token)
