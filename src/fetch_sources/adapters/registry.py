"""Adapter registry keyed by source type."""

from fetch_sources.adapters.base import SourceAdapter
from fetch_sources.adapters.hn import HnAdapter
from fetch_sources.adapters.reddit import RedditAdapter
from fetch_sources.adapters.rss import RssAdapter

# Registry mapping source types to their adapter classes
ADAPTERS: dict[str, type[SourceAdapter]] = {
    "rss": RssAdapter,
    "hn": HnAdapter,
    "reddit": RedditAdapter,
}


def get_adapter(source_type: str, language: str = "en") -> SourceAdapter:
    """Get an adapter instance for a given source type."""
    if source_type not in ADAPTERS:
        raise ValueError(f"Unknown source type: {source_type}. Valid types: {list(ADAPTERS.keys())}")
    return ADAPTERS[source_type](language=language)
