"""RSS/Atom feed entries parsed by feedparser."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from dateutil.parser import parse as parse_date

from common.datetime import TZINFOS
from common.hashing import generate_item_id
from fetch_sources.adapters.base import SourceAdapter
from fetch_sources.models import Author, NormalizedItem

logger = logging.getLogger(__name__)


class RssAdapter(SourceAdapter):
    type = "rss"
    items_path = "entries"
    feed = True

    def normalize(self, payload: Any) -> Optional[NormalizedItem]:
        url = payload.get("link")
        if not url:
            return None

        title = (payload.get("title") or "").strip()
        if not title:
            return None

        published_at = _parse_published_date(payload)
        if published_at is None:
            return None

        authors = []
        if payload.get("author"):
            authors.append(Author(name=payload["author"]))

        tags = [tag.get("term") for tag in payload.get("tags") or [] if tag.get("term")]

        image = _entry_image(payload)
        return NormalizedItem(
            id=generate_item_id(self.type, payload.get("id") or url),
            type=self.type,
            language=self.language,
            original_published=published_at,
            url=url,
            translations={"title": title},
            tags=tags,
            authors=authors,
            image=image,
            image_lookup=image is None,
        )


def _entry_image(entry: Any) -> Optional[str]:
    """Pick an image from media thumbnails or image enclosures."""
    for thumbnail in entry.get("media_thumbnail") or []:
        if thumbnail.get("url"):
            return thumbnail["url"]
    for enclosure in entry.get("enclosures") or []:
        if (enclosure.get("type") or "").startswith("image/") and enclosure.get("href"):
            return enclosure["href"]
    return None


def _parse_published_date(entry: Any) -> datetime | None:
    """Extract and parse the published date from an RSS entry."""
    published = entry.get("published") or entry.get("updated")
    if not published:
        return None

    try:
        dt = parse_date(published, tzinfos=TZINFOS)
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt
    except (ValueError, OverflowError) as e:
        logger.debug("Unparseable date %r: %s", published, e)
        return None
