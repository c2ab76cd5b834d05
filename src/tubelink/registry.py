"""Registry of custom instances merged with the public instance directory."""

from __future__ import annotations

from collections.abc import Callable
from concurrent.futures import Executor, Future
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from .api_client import fetch_instance_directory
from .config import ConfigStore, instances_url
from .exceptions import InvalidInstanceError
from .host import OwnerScope
from .logger import get_logger
from .models import CustomInstance, InstanceChoice, PublicInstance

logger = get_logger()

DirectoryFetcher = Callable[[], list[dict[str, Any]]]


class InstanceRegistry:
    """Stores user-added instances and builds the list of selectable instances."""

    def __init__(
        self,
        store: ConfigStore,
        fetch_directory: DirectoryFetcher | None = None,
    ) -> None:
        """Initialize the registry.

        Args:
            store: Durable settings store holding the custom instances
            fetch_directory: Returns the raw public directory entries; defaults to
                fetching TUBELINK_INSTANCES_URL over HTTP
        """
        self.store = store
        self._fetch_directory = fetch_directory or (
            lambda: fetch_instance_directory(instances_url())
        )

    def list_custom(self) -> list[CustomInstance]:
        """Custom instances in insertion order."""
        return self.store.read().custom_instances

    def add_custom(self, instance: CustomInstance | dict[str, Any]) -> CustomInstance:
        """Store a custom instance.

        An instance whose URL is already registered replaces the stored name
        in place rather than being added twice.

        Raises:
            InvalidInstanceError: If the name is blank or the URL is not http(s)
        """
        try:
            if isinstance(instance, CustomInstance):
                validated = CustomInstance.model_validate(instance.model_dump())
            else:
                validated = CustomInstance.model_validate(instance)
        except PydanticValidationError as e:
            raise InvalidInstanceError(f"Invalid custom instance: {e}") from e

        settings = self.store.read()
        for i, existing in enumerate(settings.custom_instances):
            if existing.api_url == validated.api_url:
                settings.custom_instances[i] = validated
                logger.changes(f"Renamed custom instance {validated.api_url} to {validated.name}")
                break
        else:
            settings.custom_instances.append(validated)
            logger.changes(f"Added custom instance {validated.name} ({validated.api_url})")

        self.store.write(settings)
        return validated

    def remove_custom(self, api_url: str) -> bool:
        """Remove the custom instance with this URL. Returns whether one was removed."""
        target = api_url.strip().rstrip("/")
        settings = self.store.read()
        remaining = [i for i in settings.custom_instances if i.api_url != target]
        if len(remaining) == len(settings.custom_instances):
            return False

        settings.custom_instances = remaining
        self.store.write(settings)
        logger.changes(f"Removed custom instance {target}")
        return True

    def clear_all(self) -> None:
        """Remove every custom instance."""
        settings = self.store.read()
        settings.custom_instances = []
        self.store.write(settings)
        logger.changes("Cleared all custom instances")

    def fetch_public(self) -> list[PublicInstance]:
        """Fetch the public instance directory.

        Never raises: a failed fetch is logged and yields an empty list, so the
        instance list keeps working offline with custom instances only. An
        entry that doesn't validate is skipped on its own.
        """
        try:
            raw = self._fetch_directory()
        except Exception as e:  # noqa: BLE001 - directory is optional
            logger.checks(f"Public instance directory unavailable: {e}")
            return []

        instances: list[PublicInstance] = []
        for entry in raw:
            try:
                instances.append(PublicInstance.model_validate(entry))
            except PydanticValidationError as e:
                logger.checks(f"Skipping malformed directory entry {entry!r}: {e}")

        logger.checks(f"Fetched {len(instances)} public instances")
        return instances

    def build_choices(self) -> list[InstanceChoice]:
        """Public instances (directory order) followed by custom instances (registry order)."""
        choices: list[InstanceChoice] = []
        for instance in self.fetch_public():
            if not instance.is_complete():
                logger.checks(f"Skipping incomplete directory entry: {instance.model_dump()}")
                continue
            assert instance.name is not None and instance.api_url is not None
            choices.append(InstanceChoice(instance.name, instance.api_url))

        choices.extend(InstanceChoice(c.name, c.api_url) for c in self.list_custom())
        return choices

    def build_choices_async(
        self,
        executor: Executor,
        owner: OwnerScope,
        callback: Callable[[list[InstanceChoice]], None],
    ) -> Future[list[InstanceChoice]]:
        """Build the choices on `executor` and hand them to `callback`.

        The callback only runs if `owner` is still alive when the fetch
        completes; otherwise the result is dropped. Callers may ignore the
        returned future.
        """
        future = executor.submit(self.build_choices)

        def deliver(done: Future[list[InstanceChoice]]) -> None:
            if done.cancelled() or not owner.is_alive():
                logger.debug("Instance list owner is gone, dropping result")
                return
            error = done.exception()
            if error is not None:
                logger.error(f"Failed to build instance list: {error}")
                return
            callback(done.result())

        future.add_done_callback(deliver)
        return future
