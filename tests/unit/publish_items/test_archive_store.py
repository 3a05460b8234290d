"""Tests for publish_items.archive_store module."""

from unittest.mock import Mock, patch

import pytest
from botocore.exceptions import ClientError

from common.config import ArchiveConfig, PipelineConfig
from publish_items.archive_store import LocalArchiveStore, S3ArchiveStore, build_archive_store


class TestLocalArchiveStore:
    def test_put_get_list(self, tmp_path) -> None:
        store = LocalArchiveStore(tmp_path)
        store.put("hn/2024/9/items.json", b"{}")
        store.put("hn/archive.json", b"[]")
        assert store.get("hn/2024/9/items.json") == b"{}"
        assert store.get("hn/2024/8/items.json") is None
        assert store.list("hn/2024/") == ["hn/2024/9/items.json"]

    def test_rejects_keys_outside_root(self, tmp_path) -> None:
        with pytest.raises(ValueError):
            LocalArchiveStore(tmp_path / "archive").put("../escape.json", b"{}")


class TestS3ArchiveStore:
    def test_put_and_get_use_bucket(self) -> None:
        s3 = Mock()
        s3.get_object.return_value = {"Body": Mock(read=Mock(return_value=b"[]"))}
        store = S3ArchiveStore("feedarchive", s3=s3)
        store.put("hn/archive.json", b"[]")
        assert store.get("hn/archive.json") == b"[]"
        s3.put_object.assert_called_once_with(
            Bucket="feedarchive", Key="hn/archive.json", Body=b"[]", ContentType="application/json"
        )

    def test_missing_key_returns_none(self) -> None:
        s3 = Mock()
        s3.get_object.side_effect = ClientError({"Error": {"Code": "NoSuchKey"}}, "GetObject")
        assert S3ArchiveStore("feedarchive", s3=s3).get("hn/archive.json") is None


class TestBuildArchiveStore:
    def test_local_backend(self, tmp_path) -> None:
        config = PipelineConfig(data_dir=str(tmp_path), archive=ArchiveConfig(backend="local"))
        store = build_archive_store(config)
        assert isinstance(store, LocalArchiveStore)
        assert store.root == tmp_path / "archive"

    @patch("publish_items.archive_store.get_s3_client")
    def test_dev_s3_backend_uses_dev_bucket(self, mock_client) -> None:
        config = PipelineConfig(dev=True, archive=ArchiveConfig(backend="s3", bucket="feedarchive"))
        store = build_archive_store(config)
        assert store.bucket == "dev-feedarchive"
