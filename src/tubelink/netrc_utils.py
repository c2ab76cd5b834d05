"""Account credentials for an instance, looked up in the user's netrc file."""

from __future__ import annotations

import netrc
import os
from pathlib import Path
from urllib.parse import urlparse

from .logger import get_logger

logger = get_logger()

NO_CREDENTIALS: tuple[str | None, str | None] = (None, None)


def netrc_path() -> Path:
    """Location of the netrc file: $NETRC if set, else ~/.netrc (~/_netrc on Windows)."""
    override = os.getenv("NETRC")
    if override:
        return Path(override).expanduser()
    return Path.home() / (".netrc" if os.name != "nt" else "_netrc")


def instance_host(api_url: str) -> str:
    """Host name an instance is filed under in netrc.

    The scheme, port and path of the API URL play no part, so one
    `machine pipedapi.example.org` entry serves every endpoint on that host.
    A bare host name without scheme is accepted too.
    """
    parsed = urlparse(api_url.strip())
    if parsed.hostname:
        return parsed.hostname
    return parsed.path.split("/")[0].split(":")[0].lower()


def get_credentials_from_netrc(api_url: str) -> tuple[str | None, str | None]:
    """Look up the login and password stored for the instance behind `api_url`.

    Falls back to the file's `default` entry when it has one. The lookup is a
    convenience for the account commands, so a missing or unreadable file only
    means there are no stored credentials.

    Returns:
        (login, password), or (None, None) if nothing is stored for the host
    """
    host = instance_host(api_url)
    if not host:
        return NO_CREDENTIALS

    path = netrc_path()
    if not path.exists():
        return NO_CREDENTIALS

    try:
        entry = netrc.netrc(str(path)).authenticators(host)
    except (netrc.NetrcParseError, OSError) as e:
        logger.checks(f"Ignoring unreadable netrc file {path}: {e}")
        return NO_CREDENTIALS

    if entry is None:
        logger.checks(f"No netrc entry for {host}")
        return NO_CREDENTIALS

    login, _, password = entry
    logger.checks(f"Using netrc credentials for {host}")
    return login or None, password or None
