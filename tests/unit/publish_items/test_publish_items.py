"""Tests for publish_items.publish_items module."""

from common.config import LanguageConfig
from common.errors import UnsupportedLanguageError
from common.local_io import read_json_file, walk_json_files, write_json_file
from common.paths import DataPaths
from format_items.models import FormattedItem
from publish_items.publish_items import publish_items
from translate_items.engine import TranslationEngine

LANGUAGES = [LanguageConfig("en", "English"), LanguageConfig("ja", "日本語")]


class _FailingFactory:
    """Session factory for engines that must not reach the session."""

    def __call__(self):
        raise AssertionError("session should not be created")


def _write_translated(paths: DataPaths, n: int, translations: dict, title: str = "Story") -> str:
    identifier = f"2024_03_05_en_hn_hn__{n}"
    item = FormattedItem(
        id=identifier,
        url=f"https://example.com/{n}",
        date_published="2024-03-06T08:00:00.000Z",
        date_modified="2024-03-06T08:00:00.000Z",
        original_published="2024-03-05T10:00:00.000Z",
        original_language="en",
        translations={"en": {"title": title}, **translations},
    )
    write_json_file(paths.translated_file("hn", "2024", "03", "05", identifier), item.to_json())
    return identifier


class TestPublishItems:
    def test_merges_complete_items_and_removes_translated(self, tmp_path) -> None:
        paths = DataPaths(tmp_path)
        identifier = _write_translated(paths, 1, {"ja": {"title": "物語"}})
        engine = TranslationEngine(LANGUAGES, _FailingFactory(), mock=False)

        result = publish_items(paths, ["hn"], engine)

        assert result.published == 1
        store = read_json_file(paths.items_file("hn"))
        assert store["items"][identifier]["_translations"]["ja"] == {"title": "物語"}
        assert list(walk_json_files(paths.translated)) == []

    def test_replaces_existing_entry(self, tmp_path) -> None:
        paths = DataPaths(tmp_path)
        identifier = _write_translated(paths, 1, {"ja": {"title": "新"}}, title="New")
        write_json_file(paths.items_file("hn"), {
            "meta": {"title": "HN"},
            "items": {
                identifier: {"id": identifier, "url": "old"},
                "2024_03_04_en_hn_hn__0": {"id": "2024_03_04_en_hn_hn__0"},
            },
        })

        publish_items(paths, ["hn"], TranslationEngine(LANGUAGES, _FailingFactory(), mock=False))

        store = read_json_file(paths.items_file("hn"))
        assert store["meta"] == {"title": "HN"}
        assert len(store["items"]) == 2
        assert store["items"][identifier]["_translations"]["en"]["title"] == "New"

    def test_completes_missing_translations(self, tmp_path) -> None:
        paths = DataPaths(tmp_path)
        identifier = _write_translated(paths, 1, {})
        engine = TranslationEngine(LANGUAGES, _FailingFactory(), mock=True)

        publish_items(paths, ["hn"], engine)

        store = read_json_file(paths.items_file("hn"))
        assert store["items"][identifier]["_translations"]["ja"] == {"title": "Story"}

    def test_incomplete_item_stays_in_translated_stage(self, tmp_path) -> None:
        paths = DataPaths(tmp_path)
        identifier = _write_translated(paths, 1, {})
        engine = TranslationEngine(LANGUAGES, _FailingFactory(), local_translations={}, mock=False)
        engine.session = _UnsupportedSession()

        result = publish_items(paths, ["hn"], engine)

        assert result.incomplete == [identifier]
        assert result.published == 0
        assert paths.translated_file("hn", "2024", "03", "05", identifier).exists()
        assert not paths.items_file("hn").exists()


class _UnsupportedSession:
    def translate(self, text, source_language, target_languages):
        raise UnsupportedLanguageError(target_languages[0])

    def close(self) -> None:
        pass
