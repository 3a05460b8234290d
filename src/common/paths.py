"""On-disk layout of the pipeline stages."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class DataPaths:
    """Stage directories below the data root.

    ``dev`` keeps development runs in ``dev-current`` so they never touch the
    production store.
    """
    root: Path
    dev: bool = False

    @property
    def base(self) -> Path:
        return Path(self.root) / ("dev-current" if self.dev else "current")

    @property
    def raw(self) -> Path:
        return self.base / "1-raw"

    @property
    def formatted(self) -> Path:
        return self.base / "2-formatted"

    @property
    def translated(self) -> Path:
        return self.base / "3-translated"

    @property
    def current(self) -> Path:
        return self.base / "4-data"

    def items_file(self, site_identifier: str) -> Path:
        return self.current / site_identifier / "items.json"

    def archive_index_file(self, site_identifier: str) -> Path:
        return self.current / site_identifier / "archive.json"

    def formatted_file(self, site_identifier: str, year: str, month: str, day: str, identifier: str) -> Path:
        return self.formatted / site_identifier / year / month / day / f"{identifier}.json"

    def translated_file(self, site_identifier: str, year: str, month: str, day: str, identifier: str) -> Path:
        return self.translated / site_identifier / year / month / day / f"{identifier}.json"
