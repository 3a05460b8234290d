"""Reddit listing children (``/r/<sub>/top.json``)."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from fetch_sources.adapters.base import SourceAdapter
from fetch_sources.models import Author, Link, NormalizedItem

REDDIT_URL = "https://www.reddit.com"


class RedditAdapter(SourceAdapter):
    type = "reddit"
    items_path = "data.children"

    def normalize(self, payload: Any) -> Optional[NormalizedItem]:
        data = payload.get("data") or {}
        post_id = data.get("id")
        title = (data.get("title") or "").strip()
        created_utc = data.get("created_utc")
        if not post_id or not title or created_utc is None:
            return None

        permalink_url = f"{REDDIT_URL}{data.get('permalink', '')}"
        score = data.get("score") or 0
        links = [
            Link(
                url=permalink_url,
                name=f"&uarr; {score} Reddit Upvotes" if score else "Reddit Link",
            )
        ]
        authors = []
        if data.get("author"):
            authors.append(Author(name=data["author"], url=f"{REDDIT_URL}/user/{data['author']}"))

        preview = data.get("thumbnail") or ""
        return NormalizedItem(
            id=str(post_id),
            type=self.type,
            language=self.language,
            original_published=datetime.fromtimestamp(created_utc, tz=timezone.utc),
            url=data.get("url_overridden_by_dest") or data.get("url") or permalink_url,
            translations={"title": title},
            tags=[data["subreddit"]] if data.get("subreddit") else [],
            authors=authors,
            score=score,
            links=links,
            image=preview if preview.startswith("http") else None,
            image_lookup=False,
            sensitive=bool(data.get("over_18")),
            external_url=permalink_url,
        )
