"""Tests for translate_items.translate_items module."""

from common.config import LanguageConfig
from common.local_io import read_json_file, walk_json_files, write_json_file
from common.store import ItemsFile, write_items_file
from common.paths import DataPaths
from fakes import SessionFactory
from format_items.models import FormattedItem
from translate_items.engine import TranslationEngine
from translate_items.translate_items import translate_items

LANGUAGES = [LanguageConfig("en", "English"), LanguageConfig("ja", "日本語")]


def _write_formatted(paths: DataPaths, n: int) -> str:
    identifier = f"2024_03_05_en_hn_hn__{n}"
    item = FormattedItem(
        id=identifier,
        url="https://example.com",
        date_published="2024-03-06T08:00:00.000Z",
        date_modified="2024-03-06T08:00:00.000Z",
        original_published="2024-03-05T10:00:00.000Z",
        original_language="en",
        translations={"en": {"title": f"Story {n}"}},
    )
    write_json_file(paths.formatted_file("hn", "2024", "03", "05", identifier), item.to_json())
    return identifier


def _engine(factory) -> TranslationEngine:
    engine = TranslationEngine(LANGUAGES, factory, local_translations={}, mock=False)
    engine.init()
    return engine


class TestTranslateItems:
    def test_moves_items_to_translated_stage(self, tmp_path) -> None:
        paths = DataPaths(tmp_path)
        identifier = _write_formatted(paths, 1)

        result = translate_items(paths, ["hn"], _engine(SessionFactory()))

        assert result.translated == 1
        assert list(walk_json_files(paths.formatted)) == []
        data = read_json_file(paths.translated_file("hn", "2024", "03", "05", identifier))
        assert data["_translations"]["ja"] == {"title": "ja:Story 1"}

    def test_writes_partial_translation(self, tmp_path) -> None:
        paths = DataPaths(tmp_path)
        identifier = _write_formatted(paths, 1)

        result = translate_items(paths, ["hn"], _engine(SessionFactory({"unsupported": {"ja"}})))

        assert result.partial == 1
        data = read_json_file(paths.translated_file("hn", "2024", "03", "05", identifier))
        assert "ja" not in data["_translations"]

    def test_stale_item_keeps_formatted_file(self, tmp_path) -> None:
        paths = DataPaths(tmp_path)
        first = _write_formatted(paths, 1)
        _write_formatted(paths, 2)

        # item 1 goes stale on both sessions, item 2 succeeds on the second one
        factory = SessionFactory({"stale": 1}, {"stale": 1})
        result = translate_items(paths, ["hn"], _engine(factory))

        assert result.failed_items == [first]
        assert paths.formatted_file("hn", "2024", "03", "05", first).exists()
        assert result.translated == 1

    def test_translated_item_is_not_sent_again(self, tmp_path) -> None:
        paths = DataPaths(tmp_path)
        identifier = _write_formatted(paths, 1)
        translated = paths.translated_file("hn", "2024", "03", "05", identifier)
        write_json_file(translated, {
            "id": identifier,
            "_translations": {"en": {"title": "Story 1"}, "ja": {"title": "物語"}},
        })
        factory = SessionFactory()

        result = translate_items(paths, ["hn"], _engine(factory))

        assert factory.sessions[0].calls == []
        assert result.skipped == 1
        assert result.translated == 0
        assert not paths.formatted_file("hn", "2024", "03", "05", identifier).exists()
        assert read_json_file(translated)["_translations"]["ja"] == {"title": "物語"}

    def test_published_item_is_not_sent_again(self, tmp_path) -> None:
        paths = DataPaths(tmp_path)
        identifier = _write_formatted(paths, 1)
        published = {"id": identifier, "_translations": {"ja": {"title": "物語"}}}
        write_items_file(paths.items_file("hn"), ItemsFile(items={identifier: published}))
        factory = SessionFactory()

        result = translate_items(paths, ["hn"], _engine(factory))

        assert factory.sessions[0].calls == []
        assert result.skipped == 1
        assert list(walk_json_files(paths.formatted)) == []
        assert not paths.translated_file("hn", "2024", "03", "05", identifier).exists()
