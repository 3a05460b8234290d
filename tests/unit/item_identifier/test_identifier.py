"""Tests for item_identifier.identifier module."""

from datetime import datetime, timezone

import pytest

from common.errors import MalformedIdentifierError
from item_identifier.identifier import (
    ItemIdentifier,
    cache_key,
    decode,
    decode_raw_filename,
    encode,
    encode_raw_filename,
    with_target_site,
)


def _identifier(**overrides) -> ItemIdentifier:
    values = dict(year="2024", month="03", day="05", language="en", type="hn", target_site_identifier="hn", id="39551234")
    values.update(overrides)
    return ItemIdentifier(**values)


class TestEncodeDecode:
    def test_encode_form(self) -> None:
        assert encode(_identifier()) == "2024_03_05_en_hn_hn__39551234"

    def test_round_trip(self) -> None:
        identifier = _identifier(id="t3_abc")
        assert decode(encode(identifier)) == identifier

    def test_id_keeps_double_underscores(self) -> None:
        identifier = decode("2024_03_05_en_rss_blog__a__b_c")
        assert identifier.id == "a__b_c"
        assert identifier.target_site_identifier == "blog"

    def test_decode_strips_json_suffix(self) -> None:
        assert decode("2024_03_05_en_hn_hn__1.json").id == "1"

    def test_from_published_uses_utc_date(self) -> None:
        published = datetime(2024, 3, 5, 23, 30, tzinfo=timezone.utc)
        identifier = ItemIdentifier.from_published(published, "en", "rss", "blog", "x")
        assert str(identifier) == "2024_03_05_en_rss_blog__x"

    def test_encode_rejects_underscore_in_token(self) -> None:
        with pytest.raises(ValueError):
            encode(_identifier(target_site_identifier="my_site"))

    def test_encode_rejects_empty_token(self) -> None:
        with pytest.raises(ValueError):
            encode(_identifier(language=""))

    @pytest.mark.parametrize(
        "value",
        [
            "2024_03_05_en_hn_hn",
            "2024_03_05_en_hn__1",
            "2024_03_05_en_hn_hn_extra__1",
            "en_hn__1",
            "2024_03_05_en_hn_hn__",
        ],
    )
    def test_decode_rejects_malformed(self, value) -> None:
        with pytest.raises(MalformedIdentifierError):
            decode(value)


class TestCacheKey:
    def test_drops_target_site(self) -> None:
        assert cache_key(_identifier()) == "2024_03_05_en_hn__39551234"

    def test_same_for_different_sites(self) -> None:
        identifier = _identifier()
        other = with_target_site(identifier, "devnews")
        assert other.target_site_identifier == "devnews"
        assert cache_key(identifier) == cache_key(other)

    def test_accepts_string(self) -> None:
        assert cache_key("2024_03_05_en_hn_hn__1.json") == "2024_03_05_en_hn__1"


class TestRawFilename:
    def test_encode_form(self) -> None:
        fetched_at = datetime(2024, 3, 5, 8, 9, 10, 123000, tzinfo=timezone.utc)
        name = encode_raw_filename(fetched_at, 7, "2024_03_05_en_hn__1")
        assert name == "2024_03_05_08_09_10_123_0007__2024_03_05_en_hn__1.json"

    def test_decode(self) -> None:
        fetched_at, order, key = decode_raw_filename("2024_03_05_08_09_10_123_0007__2024_03_05_en_hn__1.json")
        assert fetched_at == datetime(2024, 3, 5, 8, 9, 10, 123000, tzinfo=timezone.utc)
        assert order == 7
        assert key == "2024_03_05_en_hn__1"

    @pytest.mark.parametrize(
        "name",
        [
            "2024_03_05_en_hn__1.json",
            "2024_03_05_08_09_10_123__2024_03_05_en_hn__1.json",
            "2024_13_05_08_09_10_123_0001__2024_03_05_en_hn__1.json",
            "2024_03_05_08_09_10_123_0001__2024_03_05_en_hn_hn__1.json",
        ],
    )
    def test_decode_rejects_malformed(self, name) -> None:
        with pytest.raises(MalformedIdentifierError):
            decode_raw_filename(name)
