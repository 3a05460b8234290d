"""Tests for pipeline.cli module."""

from unittest.mock import patch

import pytest

from common.config import LanguageConfig, PipelineConfig, SiteConfig, SourceConfig
from common.errors import MissingDependencyError
from common.local_io import read_json_file, walk_json_files
from common.paths import DataPaths
from pipeline.cli import main, run_stages


def _entries() -> list[dict]:
    return [
        {
            "id": f"post-{n}",
            "link": f"https://blog.example/{n}",
            "title": f"Post {n}",
            "published": f"Tue, 05 Mar 2024 1{n}:00:00 GMT",
        }
        for n in (1, 2, 3)
    ]


def _config(tmp_path) -> PipelineConfig:
    return PipelineConfig(
        data_dir=str(tmp_path),
        mock=True,
        mock_image=True,
        languages=[
            LanguageConfig("en", "English"),
            LanguageConfig("zh-Hans", "简体中文"),
            LanguageConfig("zh-Hant", "繁體中文", derived_from="zh-Hans"),
            LanguageConfig("ja", "日本語"),
        ],
        sources=[SourceConfig(id="blog", type="rss", urls=["https://blog.example/rss"])],
        sites={"devnews": SiteConfig(sources=["blog"])},
    )


class TestRunStages:
    @patch("fetch_sources.fetch_sources.fetch_records")
    def test_mock_run_publishes_every_item_once(self, mock_fetch, tmp_path) -> None:
        mock_fetch.return_value = _entries()
        config = _config(tmp_path)
        paths = DataPaths(tmp_path)
        stages = ["fetch", "format", "translate", "publish"]

        assert run_stages(config, stages, ["devnews"]) is True

        store = read_json_file(paths.items_file("devnews"))["items"]
        assert len(store) == 3
        for identifier, item in store.items():
            assert item["id"] == identifier
            assert set(item["_translations"]) == {"en", "zh-Hans", "zh-Hant", "ja"}
            assert item["_translations"]["ja"] == item["_translations"]["en"]
        for stage_dir in (paths.raw, paths.formatted, paths.translated):
            assert list(walk_json_files(stage_dir)) == []

        assert run_stages(config, stages, ["devnews"]) is True

        assert read_json_file(paths.items_file("devnews"))["items"] == store
        assert list(walk_json_files(paths.raw)) == []

    @patch("fetch_sources.fetch_sources.fetch_records")
    def test_second_fetch_before_format_adds_no_captures(self, mock_fetch, tmp_path) -> None:
        mock_fetch.return_value = _entries()
        config = _config(tmp_path)
        paths = DataPaths(tmp_path)

        run_stages(config, ["fetch"], ["devnews"])
        first = sorted(walk_json_files(paths.raw))
        run_stages(config, ["fetch"], ["devnews"])

        assert len(first) == 3
        assert sorted(walk_json_files(paths.raw)) == first


class TestMain:
    @patch("pipeline.cli.run_stages")
    @patch("pipeline.cli.load_config")
    def test_runs_requested_stage_for_sites(self, mock_load_config, mock_run_stages, tmp_path) -> None:
        mock_load_config.return_value = _config(tmp_path)
        mock_run_stages.return_value = True
        with patch("sys.argv", ["feed-pipeline", "format", "--sites", "devnews", "--no-mock"]):
            main()
        config, stages, sites = mock_run_stages.call_args[0]
        assert stages == ["format"]
        assert sites == ["devnews"]
        assert config.mock is False

    @patch("pipeline.cli.run_stages")
    @patch("pipeline.cli.load_config")
    def test_failed_items_exit_non_zero(self, mock_load_config, mock_run_stages, tmp_path) -> None:
        mock_load_config.return_value = _config(tmp_path)
        mock_run_stages.return_value = False
        with patch("sys.argv", ["feed-pipeline"]), pytest.raises(SystemExit) as exc_info:
            main()
        assert exc_info.value.code == 1

    @patch("pipeline.cli.run_stages")
    @patch("pipeline.cli.load_config")
    def test_fatal_error_exits_non_zero(self, mock_load_config, mock_run_stages, tmp_path) -> None:
        mock_load_config.return_value = _config(tmp_path)
        mock_run_stages.side_effect = MissingDependencyError("zh-Hant", "zh-Hans")
        with patch("sys.argv", ["feed-pipeline", "translate"]), pytest.raises(SystemExit) as exc_info:
            main()
        assert exc_info.value.code == 1
