"""Translate formatted items into every configured language."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from common.errors import MalformedIdentifierError, SessionStaleError
from common.local_io import read_json_file, remove_file, walk_json_files, write_json_file
from common.paths import DataPaths
from common.store import SiteProgress
from format_items.models import FormattedItem
from item_identifier.identifier import decode
from translate_items.engine import TranslationEngine

logger = logging.getLogger(__name__)


@dataclass
class TranslateResult:
    translated: int = 0
    partial: int = 0
    skipped: int = 0
    failed_items: list[str] = field(default_factory=list)


def translate_items(
    paths: DataPaths,
    site_identifiers: list[str],
    engine: TranslationEngine,
) -> TranslateResult:
    """Move every formatted item of the given sites to the translated stage.

    The translated file is written even when some languages failed; those
    are completed at publish time. An item whose session went stale twice
    keeps its formatted file and is reported as failed. A formatted file
    left behind for an item that is already translated or published is
    removed without translating it again.
    """
    result = TranslateResult()
    progress = SiteProgress(paths)
    for site_identifier in site_identifiers:
        total = 0
        for path in walk_json_files(paths.formatted / site_identifier):
            try:
                identifier = decode(path.name)
            except MalformedIdentifierError as e:
                logger.warning("Skipping formatted file %s: %s", path, e)
                continue

            if progress.has(site_identifier, identifier):
                logger.debug("%s already progressed, removing formatted file", path.name)
                remove_file(path)
                result.skipped += 1
                continue

            item = FormattedItem.from_json(read_json_file(path))
            try:
                outcome = engine.translate_item(item)
            except SessionStaleError as e:
                logger.error("Failed to translate %s: %s", item.id, e)
                result.failed_items.append(item.id)
                continue

            for (field_name, language), reason in outcome.failures.items():
                logger.warning("Missing %s translation of %s for %s: %s", language, field_name, item.id, reason)
            if outcome.failures:
                result.partial += 1

            target = paths.translated_file(
                site_identifier, identifier.year, identifier.month, identifier.day, item.id
            )
            write_json_file(target, item.to_json())
            remove_file(path)
            total += 1

        logger.info("Translated %d items for %s", total, site_identifier)
        result.translated += total
    return result
