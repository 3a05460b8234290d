"""Download one source URL and return its list of raw records."""

from __future__ import annotations

import logging
from typing import Any

import feedparser
import requests

from common.config import SourceConfig
from common.errors import SourceFetchError
from common.utils import get_path
from fetch_sources.adapters.base import SourceAdapter

logger = logging.getLogger(__name__)

USER_AGENT = "feed-pipeline/1.0 (feed reader)"
REQUEST_TIMEOUT = 30


def fetch_records(source: SourceConfig, url: str, adapter: SourceAdapter) -> list[Any]:
    """Fetch the records of one source URL.

    Feed sources are parsed with feedparser, JSON sources are navigated with
    the source's ``items_path`` or the adapter default.

    Raises:
        SourceFetchError: If the request fails or the payload has no record list.
    """
    try:
        response = requests.get(
            url,
            timeout=REQUEST_TIMEOUT,
            headers={"User-Agent": USER_AGENT},
        )
        response.raise_for_status()
    except requests.RequestException as e:
        raise SourceFetchError(source.id, url, str(e)) from e

    if adapter.feed:
        feed = feedparser.parse(response.content)
        if feed.bozo and not feed.entries:
            raise SourceFetchError(source.id, url, f"invalid feed: {feed.get('bozo_exception')}")
        return list(feed.entries)

    try:
        payload = response.json()
    except ValueError as e:
        raise SourceFetchError(source.id, url, f"invalid JSON: {e}") from e

    items_path = source.items_path or adapter.items_path
    records = get_path(payload, items_path) if items_path else payload
    if not isinstance(records, list):
        raise SourceFetchError(source.id, url, f"no item list at path {items_path!r}")
    return records
