"""Raw capture index and pruning sweep."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path

from common.errors import MalformedIdentifierError
from common.local_io import remove_file, walk_json_files
from item_identifier.identifier import decode_raw_filename

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RawCaptureFile:
    path: Path
    fetched_at: datetime
    order: int
    cache_key: str

    @property
    def sort_key(self) -> tuple[datetime, int]:
        return self.fetched_at, self.order


def scan_raw_captures(raw_dir: Path) -> dict[str, list[RawCaptureFile]]:
    """Group raw capture files by cache key, newest first.

    Files whose names do not decode are logged and left alone.
    """
    index: dict[str, list[RawCaptureFile]] = {}
    for path in walk_json_files(raw_dir):
        try:
            fetched_at, order, key = decode_raw_filename(path.name)
        except MalformedIdentifierError as e:
            logger.warning("Skipping raw file %s: %s", path, e)
            continue
        index.setdefault(key, []).append(RawCaptureFile(path, fetched_at, order, key))

    for captures in index.values():
        captures.sort(key=lambda capture: capture.sort_key, reverse=True)
    return index


def prune_raw_captures(
    raw_dir: Path,
    now: datetime,
    retention_days: int,
) -> dict[str, list[RawCaptureFile]]:
    """Keep only the newest capture per cache key and drop captures past retention.

    Returns the surviving index (at most one capture per cache key).
    """
    index = scan_raw_captures(raw_dir)
    cutoff = now - timedelta(days=retention_days)
    survivors: dict[str, list[RawCaptureFile]] = {}

    for key, captures in index.items():
        newest, older = captures[0], captures[1:]
        for capture in older:
            logger.info("Removing duplicated raw file %s", capture.path)
            remove_file(capture.path)

        if newest.fetched_at < cutoff:
            logger.info("Removing expired raw file %s", newest.path)
            remove_file(newest.path)
            continue
        survivors[key] = [newest]

    return survivors
