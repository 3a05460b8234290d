"""Item identifier codec.

An identifier names one content item for one target site:

    {year}_{month}_{day}_{language}_{type}_{targetSiteIdentifier}__{id}

The part before the first ``__`` is the "safe" segment of single-underscore
joined tokens; everything after it is the raw id and is kept verbatim, even
when it contains ``__`` itself. The cache key drops the target site so the
same content fetched for two sites collides on it.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timezone

from common.datetime import date_parts
from common.errors import MalformedIdentifierError

SEPARATOR = "__"
TOKEN_SEPARATOR = "_"
SAFE_TOKEN_COUNT = 6
JSON_SUFFIX = ".json"


@dataclass(frozen=True)
class ItemIdentifier:
    year: str
    month: str
    day: str
    language: str
    type: str
    target_site_identifier: str
    id: str

    @classmethod
    def from_published(
        cls,
        published: datetime,
        language: str,
        type: str,
        target_site_identifier: str,
        id: str,
    ) -> ItemIdentifier:
        """Build an identifier whose date tokens come from the original published time (UTC)."""
        year, month, day = date_parts(published)
        return cls(year, month, day, language, type, target_site_identifier, id)

    def __str__(self) -> str:
        return encode(self)


def _check_tokens(tokens: list[str]) -> None:
    for token in tokens:
        if not token:
            raise ValueError(f"Identifier tokens must not be empty: {tokens}")
        if TOKEN_SEPARATOR in token:
            raise ValueError(f"Identifier token must not contain '{TOKEN_SEPARATOR}': {token!r}")


def _safe_tokens(identifier: ItemIdentifier, with_site: bool = True) -> list[str]:
    tokens = [identifier.year, identifier.month, identifier.day, identifier.language, identifier.type]
    if with_site:
        tokens.append(identifier.target_site_identifier)
    return tokens


def encode(identifier: ItemIdentifier) -> str:
    """Encode an identifier to its string form."""
    tokens = _safe_tokens(identifier)
    _check_tokens(tokens)
    if not identifier.id:
        raise ValueError("Identifier id must not be empty")
    return TOKEN_SEPARATOR.join(tokens) + SEPARATOR + identifier.id


def strip_json_suffix(name: str) -> str:
    return name[: -len(JSON_SUFFIX)] if name.endswith(JSON_SUFFIX) else name


def split_identifier(value: str) -> tuple[list[str], str]:
    """Split an identifier string into (safe tokens, raw id).

    Raises:
        MalformedIdentifierError: If there is no ``__`` separator.
    """
    value = strip_json_suffix(value)
    safe, sep, item_id = value.partition(SEPARATOR)
    if not sep or not item_id:
        raise MalformedIdentifierError(f"Identifier has no id part: {value!r}")
    return safe.split(TOKEN_SEPARATOR), item_id


def decode(value: str) -> ItemIdentifier:
    """Decode an identifier string (a trailing ``.json`` is ignored).

    Raises:
        MalformedIdentifierError: If the safe segment does not hold exactly
            six tokens or the id part is missing.
    """
    tokens, item_id = split_identifier(value)
    if len(tokens) != SAFE_TOKEN_COUNT or not all(tokens):
        raise MalformedIdentifierError(
            f"Identifier safe segment must have {SAFE_TOKEN_COUNT} tokens, got {len(tokens)}: {value!r}"
        )
    year, month, day, language, type_, site = tokens
    return ItemIdentifier(year, month, day, language, type_, site, item_id)


def cache_key(identifier: ItemIdentifier | str) -> str:
    """Identifier without the target site, shared by every site carrying the same content."""
    if isinstance(identifier, str):
        identifier = decode(identifier)
    tokens = _safe_tokens(identifier, with_site=False)
    return TOKEN_SEPARATOR.join(tokens) + SEPARATOR + identifier.id


def with_target_site(identifier: ItemIdentifier, target_site_identifier: str) -> ItemIdentifier:
    return replace(identifier, target_site_identifier=target_site_identifier)


def encode_raw_filename(fetched_at: datetime, order: int, key: str) -> str:
    """File name of a raw capture: fetch stamp, capture order, then the cache key.

    The stamp is ``YYYY_MM_DD_HH_mm_ss_SSS_NNNN`` in UTC so names sort by fetch time.
    """
    fetched_at = fetched_at.astimezone(timezone.utc)
    stamp = fetched_at.strftime("%Y_%m_%d_%H_%M_%S") + f"_{fetched_at.microsecond // 1000:03d}_{order:04d}"
    return f"{stamp}{SEPARATOR}{key}{JSON_SUFFIX}"


def decode_raw_filename(name: str) -> tuple[datetime, int, str]:
    """Return (fetched_at, order, cache key) of a raw capture file name.

    Raises:
        MalformedIdentifierError: If the stamp or the cache key is invalid.
    """
    stamp, sep, key = strip_json_suffix(name).partition(SEPARATOR)
    parts = stamp.split(TOKEN_SEPARATOR)
    if not sep or len(parts) != 8 or not all(part.isdigit() for part in parts):
        raise MalformedIdentifierError(f"Invalid raw capture file name: {name!r}")
    year, month, day, hour, minute, second, millisecond, order = (int(part) for part in parts)
    try:
        fetched_at = datetime(
            year, month, day, hour, minute, second, millisecond * 1000, tzinfo=timezone.utc
        )
    except ValueError as exc:
        raise MalformedIdentifierError(f"Invalid raw capture timestamp: {name!r}") from exc

    tokens, _ = split_identifier(key)
    if len(tokens) != SAFE_TOKEN_COUNT - 1 or not all(tokens):
        raise MalformedIdentifierError(f"Invalid cache key in raw capture file name: {name!r}")
    return fetched_at, order, key
