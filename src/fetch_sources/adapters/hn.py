"""Hacker News stories from the Algolia search API."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from fetch_sources.adapters.base import SourceAdapter
from fetch_sources.models import Author, Link, NormalizedItem

HN_ITEM_URL = "https://news.ycombinator.com/item?id={}"
HN_USER_URL = "https://news.ycombinator.com/user?id={}"


class HnAdapter(SourceAdapter):
    type = "hn"
    items_path = "hits"

    def normalize(self, payload: Any) -> Optional[NormalizedItem]:
        object_id = payload.get("objectID")
        title = (payload.get("title") or "").strip()
        created_at_i = payload.get("created_at_i")
        if not object_id or not title or created_at_i is None:
            return None

        discussion_url = HN_ITEM_URL.format(object_id)
        score = payload.get("points") or 0
        links = [
            Link(
                url=discussion_url,
                name=f"&uarr; {score} HN Points" if score else "HN Link",
            )
        ]
        authors = []
        if payload.get("author"):
            authors.append(Author(name=payload["author"], url=HN_USER_URL.format(payload["author"])))

        tags = [tag for tag in payload.get("_tags") or [] if tag in ("show_hn", "ask_hn")]

        return NormalizedItem(
            id=str(object_id),
            type=self.type,
            language=self.language,
            original_published=datetime.fromtimestamp(created_at_i, tz=timezone.utc),
            url=payload.get("url") or discussion_url,
            translations={"title": title},
            tags=tags,
            authors=authors,
            score=score,
            links=links,
            image_lookup=False,
            external_url=discussion_url,
        )
