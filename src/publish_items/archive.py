"""Weekly archive sweep of the live item stores."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from common.aws import build_archive_key
from common.config import PipelineConfig
from common.datetime import parse_datetime
from common.local_io import read_json_file, write_json_file
from common.paths import DataPaths
from common.store import ItemsFile, read_items_file, write_items_file
from publish_items.archive_store import ArchiveStore

logger = logging.getLogger(__name__)

ARCHIVE_ITEMS_FILE = "items.json"
ARCHIVE_INDEX_FILE = "archive.json"


@dataclass(frozen=True)
class ArchiveWindow:
    """An ISO-8601 week."""
    year: int
    week: int

    def __post_init__(self) -> None:
        if not 1 <= self.week <= 53:
            raise ValueError(f"ISO week must be in 1..53, got {self.week}")

    @property
    def number(self) -> int:
        return self.year * 100 + self.week

    @property
    def path(self) -> str:
        return f"{self.year}/{self.week}"

    @classmethod
    def from_datetime(cls, value: datetime) -> ArchiveWindow:
        year, week, _ = value.astimezone(timezone.utc).isocalendar()
        return cls(year, week)

    @classmethod
    def from_path(cls, path: str) -> ArchiveWindow:
        year, sep, week = path.partition("/")
        if not sep:
            raise ValueError(f"Invalid archive window path: {path!r}")
        return cls(int(year), int(week))


def sort_archive_paths(paths: list[str]) -> list[str]:
    """Deduplicate window paths and sort them newest first; invalid paths are dropped."""
    windows = set()
    for path in paths:
        try:
            windows.add(ArchiveWindow.from_path(path))
        except ValueError as e:
            logger.warning("Dropping archive index entry: %s", e)
    return [window.path for window in sorted(windows, key=lambda w: w.number, reverse=True)]


@dataclass
class ArchiveResult:
    archived: int = 0
    windows: list[str] = field(default_factory=list)


def _group_by_window(
    items: dict[str, dict],
    current: ArchiveWindow,
) -> dict[ArchiveWindow, dict[str, dict]]:
    groups: dict[ArchiveWindow, dict[str, dict]] = {}
    for identifier, item in items.items():
        try:
            window = ArchiveWindow.from_datetime(parse_datetime(item.get("date_published")))
        except (TypeError, ValueError) as e:
            logger.warning("Cannot archive %s: %s", identifier, e)
            continue
        if window.number < current.number:
            groups.setdefault(window, {})[identifier] = item
    return groups


def _merge_window(
    store: ArchiveStore,
    site_identifier: str,
    window: ArchiveWindow,
    items: dict[str, dict],
) -> None:
    key = build_archive_key(site_identifier, window.year, window.week, ARCHIVE_ITEMS_FILE)
    existing = store.get(key)
    archived = ItemsFile()
    if existing:
        data = json.loads(existing)
        archived = ItemsFile(items=dict(data.get("items") or {}), meta=data.get("meta"))
    archived.items.update(items)
    body = json.dumps(archived.to_dict(), ensure_ascii=False, indent=2).encode("utf-8")
    store.put(key, body)
    logger.info("Archived %d items of %s to %s", len(items), site_identifier, key)


def archive_site(
    paths: DataPaths,
    site_identifier: str,
    store: ArchiveStore,
    now: datetime,
) -> ArchiveResult:
    result = ArchiveResult()
    items_file = read_items_file(paths.items_file(site_identifier))
    groups = _group_by_window(items_file.items, ArchiveWindow.from_datetime(now))
    if not groups:
        logger.info("No items of %s to archive", site_identifier)
        return result

    for window, items in groups.items():
        _merge_window(store, site_identifier, window, items)
        result.archived += len(items)

    index_path = paths.archive_index_file(site_identifier)
    previous = read_json_file(index_path) if index_path.exists() else []
    index = sort_archive_paths(list(previous) + [window.path for window in groups])
    write_json_file(index_path, index)
    store.put(
        f"{site_identifier}/{ARCHIVE_INDEX_FILE}",
        json.dumps(index, indent=2).encode("utf-8"),
    )
    result.windows = index

    for items in groups.values():
        for identifier in items:
            del items_file.items[identifier]
    write_items_file(paths.items_file(site_identifier), items_file)
    return result


def archive_items(
    config: PipelineConfig,
    paths: DataPaths,
    site_identifiers: list[str],
    store: ArchiveStore,
    now: Optional[datetime] = None,
) -> ArchiveResult:
    """Move store entries published before the current ISO week to the archive.

    Each window is written to the archive before the entries leave the live
    store, so an interrupted sweep only repeats work.
    """
    now = now or datetime.now(timezone.utc)
    total = ArchiveResult()
    for site_identifier in site_identifiers:
        site = config.sites.get(site_identifier)
        if site is None or not site.archive:
            logger.debug("Archive disabled for %s, skip", site_identifier)
            continue
        result = archive_site(paths, site_identifier, store, now)
        total.archived += result.archived
        total.windows.extend(f"{site_identifier}/{path}" for path in result.windows)
    logger.info("Archive finished: %d items archived", total.archived)
    return total
