"""Data models for the fetch_sources pipeline stage."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Optional

from common.datetime import parse_datetime, to_iso


@dataclass
class Author:
    name: str
    url: str = ""
    avatar: Optional[str] = None

    def to_dict(self) -> dict:
        data = {"name": self.name, "url": self.url}
        if self.avatar:
            data["avatar"] = self.avatar
        return data


@dataclass
class Link:
    url: str
    name: str


@dataclass
class VideoSource:
    url: str
    type: Optional[str] = None


@dataclass
class Video:
    sources: list[VideoSource]
    poster: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None

    def to_dict(self) -> dict:
        data: dict[str, Any] = {
            "sources": [
                {k: v for k, v in asdict(source).items() if v is not None}
                for source in self.sources
            ]
        }
        for key in ("poster", "width", "height"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        return data

    @classmethod
    def from_dict(cls, data: dict) -> Video:
        return cls(
            sources=[VideoSource(**source) for source in data.get("sources", [])],
            poster=data.get("poster"),
            width=data.get("width"),
            height=data.get("height"),
        )


@dataclass
class NormalizedItem:
    """Common fields an adapter extracts from one fetched record.

    ``translations`` maps field name to original-language text; these are the
    fields the translation stage works on.
    """
    id: str
    type: str
    language: str
    original_published: datetime
    url: str
    translations: dict[str, str]
    tags: list[str] = field(default_factory=list)
    authors: list[Author] = field(default_factory=list)
    score: float = 0
    links: list[Link] = field(default_factory=list)
    image: Optional[str] = None
    image_lookup: bool = False
    video: Optional[Video] = None
    sensitive: bool = False
    title_prefix: str = ""
    title_suffix: str = ""
    external_url: Optional[str] = None

    @property
    def title(self) -> str:
        return self.translations.get("title", "")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type,
            "language": self.language,
            "original_published": to_iso(self.original_published),
            "url": self.url,
            "translations": dict(self.translations),
            "tags": list(self.tags),
            "authors": [author.to_dict() for author in self.authors],
            "score": self.score,
            "links": [asdict(link) for link in self.links],
            "image": self.image,
            "image_lookup": self.image_lookup,
            "video": self.video.to_dict() if self.video else None,
            "sensitive": self.sensitive,
            "title_prefix": self.title_prefix,
            "title_suffix": self.title_suffix,
            "external_url": self.external_url,
        }

    @classmethod
    def from_dict(cls, data: dict) -> NormalizedItem:
        return cls(
            id=data["id"],
            type=data["type"],
            language=data["language"],
            original_published=parse_datetime(data["original_published"]),
            url=data["url"],
            translations=dict(data.get("translations") or {}),
            tags=list(data.get("tags") or []),
            authors=[Author(**author) for author in data.get("authors") or []],
            score=data.get("score") or 0,
            links=[Link(**link) for link in data.get("links") or []],
            image=data.get("image"),
            image_lookup=data.get("image_lookup", False),
            video=Video.from_dict(data["video"]) if data.get("video") else None,
            sensitive=data.get("sensitive", False),
            title_prefix=data.get("title_prefix", ""),
            title_suffix=data.get("title_suffix", ""),
            external_url=data.get("external_url"),
        )


@dataclass
class RawCapture:
    """A fetched item persisted in the raw stage, shared by every target site."""
    fetched_at: datetime
    source_id: str
    target_site_identifiers: list[str]
    item: NormalizedItem

    def to_dict(self) -> dict:
        return {
            "fetched_at": to_iso(self.fetched_at),
            "source_id": self.source_id,
            "target_site_identifiers": list(self.target_site_identifiers),
            "item": self.item.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> RawCapture:
        return cls(
            fetched_at=parse_datetime(data["fetched_at"]),
            source_id=data["source_id"],
            target_site_identifiers=list(data["target_site_identifiers"]),
            item=NormalizedItem.from_dict(data["item"]),
        )


@dataclass
class FetchResult:
    """Counters of one fetch run."""
    captured: int = 0
    skipped: int = 0
    filtered: int = 0
    replaced: int = 0
    failed_urls: list[str] = field(default_factory=list)
