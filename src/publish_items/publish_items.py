"""Merge translated items into the per-site stores."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from common.errors import MalformedIdentifierError, SessionStaleError
from common.local_io import read_json_file, remove_file, walk_json_files, write_json_file
from common.paths import DataPaths
from common.store import read_items_file, write_items_file
from format_items.models import FormattedItem
from item_identifier.identifier import decode
from translate_items.engine import TranslationEngine

logger = logging.getLogger(__name__)


@dataclass
class PublishResult:
    published: int = 0
    incomplete: list[str] = field(default_factory=list)


def publish_site(
    paths: DataPaths,
    site_identifier: str,
    engine: TranslationEngine,
    result: PublishResult,
) -> None:
    merged: list[Path] = []
    items_file = read_items_file(paths.items_file(site_identifier))
    codes = engine.language_codes

    for path in walk_json_files(paths.translated / site_identifier):
        try:
            decode(path.name)
        except MalformedIdentifierError as e:
            logger.warning("Skipping translated file %s: %s", path, e)
            continue

        item = FormattedItem.from_json(read_json_file(path))
        if not item.is_complete(codes):
            try:
                engine.translate_item(item)
            except SessionStaleError as e:
                logger.error("Failed to complete translations of %s: %s", item.id, e)
            if not item.is_complete(codes):
                logger.warning(
                    "%s is still missing translations: %s",
                    item.id, item.missing_translations(codes),
                )
                # keep what was filled in for the next run
                write_json_file(path, item.to_json())
                result.incomplete.append(item.id)
                continue

        items_file.items[item.id] = item.to_json()
        merged.append(path)

    if not merged:
        return
    write_items_file(paths.items_file(site_identifier), items_file)
    for path in merged:
        remove_file(path)
    logger.info("Published %d items to %s", len(merged), site_identifier)
    result.published += len(merged)


def publish_items(
    paths: DataPaths,
    site_identifiers: list[str],
    engine: TranslationEngine,
) -> PublishResult:
    """Merge every complete translated item into its site's ``items.json``.

    The store is rewritten as a whole before the translated files are
    deleted. Items that remain incomplete stay in the translated stage.
    """
    result = PublishResult()
    for site_identifier in site_identifiers:
        publish_site(paths, site_identifier, engine, result)
    return result
