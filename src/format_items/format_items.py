"""Turn raw captures into per-site formatted items."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from common.config import PipelineConfig
from common.datetime import to_iso
from common.errors import MalformedIdentifierError
from common.local_io import read_json_file, remove_file, walk_json_files, write_json_file
from common.paths import DataPaths
from common.store import SiteProgress
from fetch_sources.models import NormalizedItem, RawCapture
from format_items.load_image import image_disabled, load_image
from format_items.models import FormatResult, FormattedItem
from item_identifier.identifier import ItemIdentifier, decode_raw_filename, encode

logger = logging.getLogger(__name__)


def build_formatted_item(
    item: NormalizedItem,
    identifier: ItemIdentifier,
    fetched_at: datetime,
    image: Optional[str],
) -> FormattedItem:
    modified = to_iso(fetched_at)
    return FormattedItem(
        id=encode(identifier),
        url=item.url,
        date_published=modified,
        date_modified=modified,
        original_published=to_iso(item.original_published),
        original_language=item.language,
        translations={item.language: dict(item.translations)},
        image=image,
        external_url=item.external_url,
        tags=list(item.tags),
        authors=list(item.authors),
        score=item.score,
        video=item.video,
        sensitive=item.sensitive,
        title_prefix=item.title_prefix,
        title_suffix=item.title_suffix,
        links=list(item.links),
    )


def resolve_image(item: NormalizedItem, target_site_identifier: str, mock_image: bool) -> Optional[str]:
    """Adapter image, or a page lookup when the adapter left it undetermined."""
    if item.image:
        return item.image
    if not item.image_lookup or mock_image or image_disabled(item.url):
        return None
    return load_image(item.url, referrer_site=target_site_identifier)


def format_capture(
    path: Path,
    paths: DataPaths,
    site_identifiers: list[str],
    progress: SiteProgress,
    mock_image: bool,
    result: FormatResult,
) -> None:
    capture = RawCapture.from_dict(read_json_file(path))
    item = capture.item
    run_sites = [s for s in capture.target_site_identifiers if s in site_identifiers]
    other_sites = [s for s in capture.target_site_identifiers if s not in site_identifiers]
    if not run_sites:
        return

    image = None
    image_resolved = False
    for site_identifier in run_sites:
        identifier = ItemIdentifier.from_published(
            item.original_published, item.language, item.type, site_identifier, item.id
        )
        if progress.has(site_identifier, identifier):
            logger.debug("%s already progressed, skip", identifier)
            result.skipped += 1
            continue

        if not image_resolved:
            image = resolve_image(item, site_identifier, mock_image)
            image_resolved = True

        formatted = build_formatted_item(item, identifier, capture.fetched_at, image)
        target = paths.formatted_file(
            site_identifier, identifier.year, identifier.month, identifier.day, formatted.id
        )
        write_json_file(target, formatted.to_json())
        logger.debug("Formatted %s to %s", formatted.id, target)
        result.formatted += 1

    if other_sites:
        # keep the capture for the sites outside this run
        capture.target_site_identifiers = other_sites
        write_json_file(path, capture.to_dict())
    else:
        remove_file(path)


def format_items(
    config: PipelineConfig,
    paths: DataPaths,
    site_identifiers: list[str],
) -> FormatResult:
    """Format every raw capture for each of its target sites in this run.

    Raw files are processed in fetch order; a raw file is deleted once all of
    its target sites are formatted.
    """
    result = FormatResult()
    progress = SiteProgress(paths)
    for path in sorted(walk_json_files(paths.raw), key=lambda p: p.name):
        try:
            decode_raw_filename(path.name)
            format_capture(path, paths, site_identifiers, progress, config.mock_image, result)
        except MalformedIdentifierError as e:
            logger.warning("Skipping raw file %s: %s", path, e)
            result.malformed += 1
        except (KeyError, TypeError, ValueError) as e:
            logger.error("Failed to format raw file %s: %s", path, e)
            result.malformed += 1

    logger.info(
        "Format finished: %d formatted, %d skipped, %d malformed",
        result.formatted, result.skipped, result.malformed,
    )
    return result
