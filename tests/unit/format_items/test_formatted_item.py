"""Tests for format_items.models module."""

from fetch_sources.models import Link
from format_items.models import FormattedItem


def _item(translations) -> FormattedItem:
    return FormattedItem(
        id="2024_03_05_en_hn_hn__1",
        url="https://example.com",
        date_published="2024-03-06T08:00:00.000Z",
        date_modified="2024-03-06T08:00:00.000Z",
        original_published="2024-03-05T10:00:00.000Z",
        original_language="en",
        translations=translations,
    )


class TestFormattedItem:
    def test_omits_empty_optional_fields(self) -> None:
        data = _item({"en": {"title": "Hi"}}).to_json()
        assert set(data) == {
            "id", "url", "date_published", "date_modified",
            "_original_published", "_original_language", "_translations",
        }

    def test_json_round_trip_with_optional_fields(self) -> None:
        item = _item({"en": {"title": "Hi"}})
        item.score = 12
        item.sensitive = True
        item.links = [Link(url="https://news.example/1", name="HN Link")]
        data = item.to_json()
        assert data["_score"] == 12
        assert data["_sensitive"] is True
        assert FormattedItem.from_json(data) == item

    def test_identifier(self) -> None:
        assert _item({}).identifier.target_site_identifier == "hn"

    def test_missing_translations(self) -> None:
        item = _item({"en": {"title": "Hi", "summary": "Text"}, "ja": {"title": "やあ"}})
        assert item.missing_translations(["ja", "zh-Hans"]) == {
            "ja": ["summary"],
            "zh-Hans": ["title", "summary"],
        }
        assert not item.is_complete(["ja"])

    def test_empty_original_only_needs_presence(self) -> None:
        item = _item({"en": {"title": ""}, "ja": {"title": ""}})
        assert item.is_complete(["ja"])
