"""Formatted item record shared by the format, translate and publish stages."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Optional

from fetch_sources.models import Author, Link, Video
from item_identifier.identifier import ItemIdentifier, decode


@dataclass
class FormattedItem:
    """A site-specific item ready for translation.

    ``translations`` maps language code to ``{field: text}``; the entry of
    ``original_language`` holds the translatable fields verbatim. Empty
    optional fields are left out of the JSON form.
    """
    id: str
    url: str
    date_published: str
    date_modified: str
    original_published: str
    original_language: str
    translations: dict[str, dict[str, str]]
    image: Optional[str] = None
    external_url: Optional[str] = None
    tags: list[str] = field(default_factory=list)
    authors: list[Author] = field(default_factory=list)
    score: float = 0
    video: Optional[Video] = None
    sensitive: bool = False
    title_prefix: str = ""
    title_suffix: str = ""
    links: list[Link] = field(default_factory=list)

    @property
    def identifier(self) -> ItemIdentifier:
        return decode(self.id)

    @property
    def translatable_fields(self) -> dict[str, str]:
        return self.translations.get(self.original_language, {})

    def missing_translations(self, language_codes: list[str]) -> dict[str, list[str]]:
        """Return ``{language: [field, ...]}`` for every field without a value.

        A field whose original text is empty only needs to be present.
        """
        missing: dict[str, list[str]] = {}
        for code in language_codes:
            existing = self.translations.get(code, {})
            fields = [
                name for name, text in self.translatable_fields.items()
                if name not in existing or (text and not existing[name])
            ]
            if fields:
                missing[code] = fields
        return missing

    def is_complete(self, language_codes: list[str]) -> bool:
        return not self.missing_translations(language_codes)

    def to_json(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "url": self.url,
            "date_published": self.date_published,
            "date_modified": self.date_modified,
        }
        if self.image:
            data["image"] = self.image
        if self.external_url:
            data["external_url"] = self.external_url
        if self.tags:
            data["tags"] = list(self.tags)
        if self.authors:
            data["authors"] = [author.to_dict() for author in self.authors]
        if self.score:
            data["_score"] = self.score
        if self.video:
            data["_video"] = self.video.to_dict()
        if self.sensitive:
            data["_sensitive"] = True
        data["_original_published"] = self.original_published
        data["_original_language"] = self.original_language
        if self.title_prefix:
            data["_title_prefix"] = self.title_prefix
        if self.title_suffix:
            data["_title_suffix"] = self.title_suffix
        if self.links:
            data["_links"] = [asdict(link) for link in self.links]
        data["_translations"] = {
            code: dict(fields) for code, fields in self.translations.items()
        }
        return data

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> FormattedItem:
        return cls(
            id=data["id"],
            url=data["url"],
            date_published=data["date_published"],
            date_modified=data.get("date_modified", data["date_published"]),
            original_published=data["_original_published"],
            original_language=data["_original_language"],
            translations={
                code: dict(fields) for code, fields in (data.get("_translations") or {}).items()
            },
            image=data.get("image"),
            external_url=data.get("external_url"),
            tags=list(data.get("tags") or []),
            authors=[Author(**author) for author in data.get("authors") or []],
            score=data.get("_score") or 0,
            video=Video.from_dict(data["_video"]) if data.get("_video") else None,
            sensitive=bool(data.get("_sensitive", False)),
            title_prefix=data.get("_title_prefix", ""),
            title_suffix=data.get("_title_suffix", ""),
            links=[Link(**link) for link in data.get("_links") or []],
        )


@dataclass
class FormatResult:
    formatted: int = 0
    skipped: int = 0
    malformed: int = 0
