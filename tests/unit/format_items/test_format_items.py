"""Tests for format_items.format_items module."""

from datetime import datetime, timezone
from unittest.mock import patch

from common.config import PipelineConfig, SiteConfig, SourceConfig
from common.local_io import read_json_file, walk_json_files, write_json_file
from common.paths import DataPaths
from fetch_sources.models import NormalizedItem, RawCapture
from format_items.format_items import format_items
from item_identifier.identifier import cache_key, encode_raw_filename

FETCHED_AT = datetime(2024, 3, 6, 8, 0, tzinfo=timezone.utc)


def _config(mock_image: bool = True) -> PipelineConfig:
    return PipelineConfig(
        mock_image=mock_image,
        sources=[SourceConfig(id="blog", type="rss")],
        sites={"devnews": SiteConfig(sources=["blog"]), "python": SiteConfig(sources=["blog"])},
    )


def _item(item_id: str = "abc", image=None, image_lookup: bool = False) -> NormalizedItem:
    return NormalizedItem(
        id=item_id,
        type="rss",
        language="en",
        original_published=datetime(2024, 3, 5, 10, 0, tzinfo=timezone.utc),
        url=f"https://blog.example/{item_id}",
        translations={"title": "Hello"},
        tags=["release"],
        image=image,
        image_lookup=image_lookup,
    )


def _write_raw(paths: DataPaths, item: NormalizedItem, sites: list[str], order: int = 0):
    key = cache_key(f"2024_03_05_en_rss_x__{item.id}")
    path = paths.raw / "2024" / "03" / "06" / encode_raw_filename(FETCHED_AT, order, key)
    capture = RawCapture(fetched_at=FETCHED_AT, source_id="blog", target_site_identifiers=sites, item=item)
    write_json_file(path, capture.to_dict())
    return path


class TestFormatItems:
    def test_fans_out_to_each_site_and_removes_raw(self, tmp_path) -> None:
        paths = DataPaths(tmp_path)
        raw = _write_raw(paths, _item(), ["devnews", "python"])

        result = format_items(_config(), paths, ["devnews", "python"])

        assert result.formatted == 2
        assert not raw.exists()
        devnews = read_json_file(paths.formatted_file("devnews", "2024", "03", "05", "2024_03_05_en_rss_devnews__abc"))
        assert devnews["id"] == "2024_03_05_en_rss_devnews__abc"
        assert devnews["date_published"] == "2024-03-06T08:00:00.000Z"
        assert devnews["date_modified"] == devnews["date_published"]
        assert devnews["_original_published"] == "2024-03-05T10:00:00.000Z"
        assert devnews["_translations"] == {"en": {"title": "Hello"}}
        assert devnews["tags"] == ["release"]
        assert "image" not in devnews
        assert paths.formatted_file("python", "2024", "03", "05", "2024_03_05_en_rss_python__abc").exists()

    def test_keeps_raw_for_sites_outside_run(self, tmp_path) -> None:
        paths = DataPaths(tmp_path)
        raw = _write_raw(paths, _item(), ["devnews", "python"])

        format_items(_config(), paths, ["devnews"])

        assert read_json_file(raw)["target_site_identifiers"] == ["python"]

    def test_skips_identifier_already_in_store(self, tmp_path) -> None:
        paths = DataPaths(tmp_path)
        _write_raw(paths, _item(), ["devnews"])
        identifier = "2024_03_05_en_rss_devnews__abc"
        write_json_file(paths.items_file("devnews"), {"items": {identifier: {"id": identifier}}})

        result = format_items(_config(), paths, ["devnews"])

        assert result.formatted == 0
        assert result.skipped == 1
        assert list(walk_json_files(paths.formatted)) == []
        assert list(walk_json_files(paths.raw)) == []

    def test_malformed_raw_filename_is_skipped(self, tmp_path) -> None:
        paths = DataPaths(tmp_path)
        bad = paths.raw / "2024" / "03" / "06" / "not-a-capture.json"
        write_json_file(bad, {})
        _write_raw(paths, _item(), ["devnews"])

        result = format_items(_config(), paths, ["devnews"])

        assert result.malformed == 1
        assert result.formatted == 1
        assert bad.exists()

    @patch("format_items.format_items.load_image")
    def test_looks_up_image_when_enabled(self, mock_load_image, tmp_path) -> None:
        mock_load_image.return_value = "https://blog.example/og.png"
        paths = DataPaths(tmp_path)
        _write_raw(paths, _item(image_lookup=True), ["devnews"])

        format_items(_config(mock_image=False), paths, ["devnews"])

        mock_load_image.assert_called_once_with("https://blog.example/abc", referrer_site="devnews")
        data = read_json_file(paths.formatted_file("devnews", "2024", "03", "05", "2024_03_05_en_rss_devnews__abc"))
        assert data["image"] == "https://blog.example/og.png"

    @patch("format_items.format_items.load_image")
    def test_mock_image_skips_lookup(self, mock_load_image, tmp_path) -> None:
        paths = DataPaths(tmp_path)
        _write_raw(paths, _item(image_lookup=True), ["devnews"])
        format_items(_config(mock_image=True), paths, ["devnews"])
        mock_load_image.assert_not_called()
