"""Per-site item store file (``items.json``)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from common.local_io import read_json_file, write_json_file
from common.paths import DataPaths
from item_identifier.identifier import ItemIdentifier, encode


@dataclass
class ItemsFile:
    """``{meta?: {str: str}, items: {identifier: item}}``."""
    items: dict[str, dict[str, Any]] = field(default_factory=dict)
    meta: dict[str, str] | None = None

    def to_dict(self) -> dict:
        data: dict[str, Any] = {}
        if self.meta:
            data["meta"] = dict(self.meta)
        data["items"] = self.items
        return data


def read_items_file(path: Path) -> ItemsFile:
    """Read a store file; a missing file is an empty store."""
    path = Path(path)
    if not path.exists():
        return ItemsFile()
    data = read_json_file(path) or {}
    return ItemsFile(items=dict(data.get("items") or {}), meta=data.get("meta"))


def write_items_file(path: Path, items_file: ItemsFile) -> None:
    write_json_file(path, items_file.to_dict())


class SiteProgress:
    """Identifiers a site already carries beyond the formatted stage.

    An item has progressed when its site store holds it or its translated
    file exists.
    """

    def __init__(self, paths: DataPaths):
        self.paths = paths
        self._stores: dict[str, set[str]] = {}

    def has(self, site_identifier: str, identifier: ItemIdentifier) -> bool:
        if site_identifier not in self._stores:
            self._stores[site_identifier] = set(
                read_items_file(self.paths.items_file(site_identifier)).items
            )
        value = encode(identifier)
        if value in self._stores[site_identifier]:
            return True
        return self.paths.translated_file(
            site_identifier, identifier.year, identifier.month, identifier.day, value
        ).exists()
