"""Subscription list codecs.

Import understands three layouts:

- NewPipe JSON: ``{"subscriptions": [{"url": ".../channel/<id>", "name": ...}]}``
- YouTube takeout CSV: one channel per row, channel id in the first column,
  with a header row
- A bare JSON array of channel ids

Export always writes NewPipe JSON, which every client in the ecosystem reads.
"""

from __future__ import annotations

import csv
import io
import json
from dataclasses import dataclass
from typing import Any, cast

from .api_client import Subscription, channel_id_from_url
from .exceptions import SubscriptionFormatError

YOUTUBE_CHANNEL_URL = "https://www.youtube.com/channel/"
NEWPIPE_SERVICE_ID = 0  # YouTube


@dataclass(frozen=True)
class ImportedChannel:
    """A channel read from an import file."""

    channel_id: str
    name: str = ""


def parse_subscriptions(payload: bytes) -> list[ImportedChannel]:
    """Decode a subscription file, dropping duplicate channel ids.

    Raises:
        SubscriptionFormatError: If the payload matches none of the known layouts
    """
    try:
        text = payload.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise SubscriptionFormatError(f"Subscription file is not UTF-8: {e}") from e

    stripped = text.strip()
    if not stripped:
        raise SubscriptionFormatError("Subscription file is empty")

    if stripped[0] in "[{":
        channels = _parse_json(stripped)
    else:
        channels = _parse_csv(stripped)

    return _dedupe(channels)


def _parse_json(text: str) -> list[ImportedChannel]:
    try:
        data: Any = json.loads(text)
    except json.JSONDecodeError as e:
        raise SubscriptionFormatError(f"Invalid JSON subscription file: {e}") from e

    if isinstance(data, list):
        ids = cast(list[Any], data)
        if not all(isinstance(i, str) for i in ids):
            raise SubscriptionFormatError("Channel id list must contain only strings")
        return [ImportedChannel(channel_id_from_url(i)) for i in ids if i.strip()]

    if isinstance(data, dict) and isinstance(data.get("subscriptions"), list):
        channels: list[ImportedChannel] = []
        for entry in cast(list[Any], data["subscriptions"]):
            if not isinstance(entry, dict) or not entry.get("url"):
                continue
            item = cast(dict[str, Any], entry)
            channels.append(
                ImportedChannel(
                    channel_id=channel_id_from_url(str(item["url"])),
                    name=str(item.get("name") or ""),
                )
            )
        return channels

    raise SubscriptionFormatError("Unrecognized JSON layout, expected NewPipe subscriptions")


def _parse_csv(text: str) -> list[ImportedChannel]:
    rows = [row for row in csv.reader(io.StringIO(text)) if row and row[0].strip()]
    if not rows:
        raise SubscriptionFormatError("CSV subscription file has no rows")

    # Takeout exports start with a "Channel Id,Channel Url,Channel Title" header
    if not rows[0][0].strip().startswith("UC"):
        rows = rows[1:]

    return [
        ImportedChannel(
            channel_id=row[0].strip(),
            name=row[2].strip() if len(row) > 2 else "",  # noqa: PLR2004 - title column
        )
        for row in rows
    ]


def _dedupe(channels: list[ImportedChannel]) -> list[ImportedChannel]:
    seen: set[str] = set()
    result: list[ImportedChannel] = []
    for channel in channels:
        if channel.channel_id in seen:
            continue
        seen.add(channel.channel_id)
        result.append(channel)
    return result


def serialize_subscriptions(subscriptions: list[Subscription]) -> bytes:
    """Encode subscriptions as NewPipe JSON."""
    document = {
        "app_version": "",
        "app_version_int": 0,
        "subscriptions": [
            {
                "service_id": NEWPIPE_SERVICE_ID,
                "url": f"{YOUTUBE_CHANNEL_URL}{sub.channel_id}",
                "name": sub.name,
            }
            for sub in subscriptions
        ],
    }
    return json.dumps(document, indent=2).encode("utf-8")
