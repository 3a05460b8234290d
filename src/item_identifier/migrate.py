"""One-time migration of legacy item identifiers.

Early stores keyed items as ``{language}_{type}__{id}``, without the original
published date or the target site. This utility re-keys such entries to the
current identifier form using each item's ``date_published`` and the site the
store belongs to.

Usage:
    feed-fix-identifiers data/current/4-data
"""

from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from common.cli_helpers import setup_logging
from common.datetime import parse_datetime
from common.errors import MalformedIdentifierError
from common.local_io import read_json_file, walk_json_files, write_json_file
from item_identifier.identifier import ItemIdentifier, encode, split_identifier

logger = logging.getLogger(__name__)

LEGACY_TOKEN_COUNT = 2
STORE_FILENAMES = ("items.json", "to-be-archived-items.json")


@dataclass(frozen=True)
class LegacyIdentifier:
    language: str
    type: str
    id: str


def parse_legacy_identifier(value: str) -> LegacyIdentifier | None:
    """Return the legacy parts of ``language_type__id``, or None for any other form."""
    try:
        tokens, item_id = split_identifier(value)
    except MalformedIdentifierError:
        return None
    if len(tokens) != LEGACY_TOKEN_COUNT or not all(tokens):
        return None
    language, type_ = tokens
    return LegacyIdentifier(language=language, type=type_, id=item_id)


def upgrade_identifier(value: str, published: datetime | str, target_site_identifier: str) -> str:
    """Convert a legacy identifier to the current form.

    Raises:
        MalformedIdentifierError: If value is not a legacy identifier.
    """
    legacy = parse_legacy_identifier(value)
    if legacy is None:
        raise MalformedIdentifierError(f"Not a legacy identifier: {value!r}")
    return encode(
        ItemIdentifier.from_published(
            parse_datetime(published),
            legacy.language,
            legacy.type,
            target_site_identifier,
            legacy.id,
        )
    )


def migrate_items_file(path: Path, target_site_identifier: str) -> int:
    """Re-key legacy entries of one store file. Returns the number of entries changed."""
    items_json = read_json_file(path)
    items = items_json.get("items") or {}
    migrated = {}
    changed = 0
    for key, item in items.items():
        if parse_legacy_identifier(key) is None:
            migrated[key] = item
            continue
        new_key = upgrade_identifier(key, item["date_published"], target_site_identifier)
        migrated[new_key] = {**item, "id": new_key}
        changed += 1

    if changed:
        items_json["items"] = migrated
        write_json_file(path, items_json)
    return changed


def migrate_store(current_dir: Path) -> tuple[int, int]:
    """Migrate every site store below ``current_dir`` (``4-data``).

    The site identifier is the first directory below ``current_dir``.
    Returns (files changed, entries changed).
    """
    files_changed = 0
    entries_changed = 0
    for path in walk_json_files(current_dir):
        if path.name not in STORE_FILENAMES:
            continue
        site_identifier = path.relative_to(current_dir).parts[0]
        changed = migrate_items_file(path, site_identifier)
        if changed:
            files_changed += 1
            entries_changed += changed
            logger.info("Migrated %d identifiers in %s", changed, path)
    return files_changed, entries_changed


def main() -> None:
    parser = argparse.ArgumentParser(description="Upgrade legacy item identifiers in site stores")
    parser.add_argument("current_dir", type=Path, help="Directory holding <site>/items.json files")
    parser.add_argument("--debug", action="store_true")
    args = parser.parse_args()

    setup_logging(args.debug)
    files_changed, entries_changed = migrate_store(args.current_dir)
    logger.info("Fixed %d identifiers in %d files", entries_changed, files_changed)


if __name__ == "__main__":
    main()
