"""Subscription import and export against the current session."""

from __future__ import annotations

from dataclasses import dataclass, field

from .api_client import ClientCache
from .exceptions import ApiError, AuthError, TransferError
from .host import FileAccess
from .logger import get_logger
from .session import SessionStore
from .subscription_format import parse_subscriptions, serialize_subscriptions

logger = get_logger()


@dataclass
class TransferReport:
    """Outcome of an import or export."""

    channel_ids: list[str] = field(default_factory=list[str])

    @property
    def count(self) -> int:
        return len(self.channel_ids)


class SubscriptionTransfer:
    """Moves a subscription list between a file and the authenticated instance.

    Byte I/O goes through the FileAccess collaborator. A handle it can't
    resolve (for example a cancelled file picker) makes the call a no-op.
    """

    def __init__(self, session: SessionStore, clients: ClientCache, files: FileAccess) -> None:
        self.session = session
        self.clients = clients
        self.files = files

    def import_subscriptions(self, source_handle: object | None) -> TransferReport | None:
        """Subscribe to every channel listed in the source file.

        Returns:
            Report of imported channels, or None if there was nothing to read

        Raises:
            AuthError: If not logged in
            SubscriptionFormatError: If the file can't be decoded
            TransferError: If the source can't be opened or a subscribe call fails
        """
        if source_handle is None:
            return None
        try:
            stream = self.files.open_source(source_handle)
        except OSError as e:
            raise TransferError(f"Failed to read subscriptions: {e}") from e
        if stream is None:
            logger.checks(f"Import source {source_handle!r} unavailable, nothing to do")
            return None

        with stream:
            self._require_session()
            payload = stream.read()
        channels = parse_subscriptions(payload)

        client = self.clients.client
        report = TransferReport()
        for channel in channels:
            try:
                client.subscribe(channel.channel_id)
            except AuthError:
                raise
            except ApiError as e:
                raise TransferError(
                    f"Import stopped after {report.count} of {len(channels)} channels: {e}"
                ) from e
            report.channel_ids.append(channel.channel_id)

        logger.changes(f"Imported {report.count} subscriptions into {client.auth_url}")
        return report

    def export_subscriptions(self, destination_handle: object | None) -> TransferReport | None:
        """Write the current subscription list to the destination file.

        Returns:
            Report of exported channels, or None if there was nowhere to write

        Raises:
            AuthError: If not logged in
            TransferError: If the subscription list can't be fetched or written
        """
        if destination_handle is None:
            return None

        self._require_session()
        client = self.clients.client
        try:
            subscriptions = client.subscriptions()
        except AuthError:
            raise
        except ApiError as e:
            raise TransferError(f"Failed to fetch subscriptions: {e}") from e

        try:
            stream = self.files.open_destination(destination_handle)
            if stream is None:
                logger.checks(
                    f"Export destination {destination_handle!r} unavailable, nothing to do"
                )
                return None
            with stream:
                stream.write(serialize_subscriptions(subscriptions))
        except OSError as e:
            raise TransferError(f"Failed to write subscriptions: {e}") from e

        logger.changes(f"Exported {len(subscriptions)} subscriptions from {client.auth_url}")
        return TransferReport(channel_ids=[s.channel_id for s in subscriptions])

    def _require_session(self) -> None:
        if not self.session.is_logged_in():
            raise AuthError("Log in before importing or exporting subscriptions")
