"""Fetch configured sources, deduplicate and persist raw captures."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path

from common.config import PipelineConfig, SourceConfig
from common.errors import MalformedIdentifierError, SourceFetchError
from common.local_io import read_json_file, remove_file, walk_json_files, write_json_file
from common.paths import DataPaths
from common.store import read_items_file
from fetch_sources.adapters.base import SourceAdapter
from fetch_sources.adapters.registry import get_adapter
from fetch_sources.fetch_payload import fetch_records
from fetch_sources.models import FetchResult, NormalizedItem, RawCapture
from fetch_sources.prune import RawCaptureFile, prune_raw_captures
from fetch_sources.rules import filter_by_rules, validate_rules
from item_identifier.identifier import ItemIdentifier, cache_key, encode_raw_filename

logger = logging.getLogger(__name__)


def item_cache_key(item: NormalizedItem, target_site_identifier: str) -> str:
    return cache_key(
        ItemIdentifier.from_published(
            item.original_published, item.language, item.type, target_site_identifier, item.id
        )
    )


def group_sources_by_site(
    config: PipelineConfig, site_identifiers: list[str]
) -> tuple[list[SourceConfig], dict[str, list[str]]]:
    """Return the unique sources of the given sites and the target sites of each source."""
    sources: list[SourceConfig] = []
    targets: dict[str, list[str]] = {}
    for site_identifier in site_identifiers:
        site = config.sites[site_identifier]
        if not site.sources:
            logger.info("Site %s has no sources, skip fetch sources", site_identifier)
            continue
        for source_id in site.sources:
            if source_id not in targets:
                sources.append(config.get_source(source_id))
                targets[source_id] = []
            if site_identifier not in targets[source_id]:
                targets[source_id].append(site_identifier)
    return sources, targets


def load_progressed_keys(paths: DataPaths, site_identifiers: list[str]) -> set[str]:
    """Cache keys that already moved past the raw stage.

    Covers the current stores of the given sites and every formatted or
    translated stage file.
    """
    keys: set[str] = set()
    for site_identifier in site_identifiers:
        for identifier in read_items_file(paths.items_file(site_identifier)).items:
            try:
                keys.add(cache_key(identifier))
            except MalformedIdentifierError as e:
                logger.warning("Skipping store key of %s: %s", site_identifier, e)

    for stage_dir in (paths.formatted, paths.translated):
        for path in walk_json_files(stage_dir):
            try:
                keys.add(cache_key(path.name))
            except MalformedIdentifierError as e:
                logger.warning("Skipping stage file %s: %s", path, e)
    return keys


def normalize_records(records: list, adapter: SourceAdapter, source: SourceConfig) -> list[NormalizedItem]:
    items = []
    for record in records:
        try:
            item = adapter.normalize(record)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.warning("Failed to normalize %s record: %s", source.id, e)
            continue
        if item is not None:
            items.append(item)
    return items


def _raw_path(paths: DataPaths, fetched_at: datetime, order: int, key: str) -> Path:
    return (
        paths.raw
        / f"{fetched_at.year:04d}"
        / f"{fetched_at.month:02d}"
        / f"{fetched_at.day:02d}"
        / encode_raw_filename(fetched_at, order, key)
    )


def _is_unchanged(existing: list[RawCaptureFile], capture: RawCapture) -> bool:
    if len(existing) != 1:
        return False
    previous = RawCapture.from_dict(read_json_file(existing[0].path))
    return (
        previous.item.to_dict() == capture.item.to_dict()
        and sorted(previous.target_site_identifiers) == sorted(capture.target_site_identifiers)
    )


def fetch_sources(
    config: PipelineConfig,
    paths: DataPaths,
    site_identifiers: list[str],
    now: datetime | None = None,
) -> FetchResult:
    """Fetch every source of the given sites and persist new raw captures.

    A source URL that fails is logged and skipped. Items whose cache key
    already progressed past the raw stage are skipped. A re-fetched item
    replaces its earlier raw capture unless the capture is unchanged.
    """
    now = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    result = FetchResult()

    sources, targets = group_sources_by_site(config, site_identifiers)
    progressed = load_progressed_keys(paths, site_identifiers)
    raw_index = prune_raw_captures(paths.raw, now, config.raw_retention_days)
    captured_this_run: dict[str, tuple[Path, RawCapture]] = {}
    order = 0

    for source_order, source in enumerate(sources, start=1):
        adapter = get_adapter(source.type, source.language)
        validate_rules(source.rules)
        target_sites = targets[source.id]
        logger.debug("%s current keys length: %d", source.id, len(progressed))

        for url in source.urls:
            try:
                records = fetch_records(source, url, adapter)
            except SourceFetchError as e:
                logger.error("%s", e)
                result.failed_urls.append(url)
                continue

            logger.info(
                "%d/%d %s fetched %d raw items from %s",
                source_order, len(sources), source.id, len(records), url,
            )
            items = normalize_records(records, adapter, source)
            kept = filter_by_rules(items, source.rules)
            result.filtered += len(items) - len(kept)
            logger.info("Got %d valid items by rules", len(kept))

            # oldest first so capture order follows publication order
            kept.sort(key=lambda item: item.original_published)

            saved = 0
            for item in kept:
                key = item_cache_key(item, target_sites[0])
                if key in progressed:
                    logger.debug("%s exists, skip", key)
                    result.skipped += 1
                    continue

                if key in captured_this_run:
                    path, capture = captured_this_run[key]
                    extra_sites = [s for s in target_sites if s not in capture.target_site_identifiers]
                    if extra_sites:
                        capture.target_site_identifiers.extend(extra_sites)
                        write_json_file(path, capture.to_dict())
                    result.skipped += 1
                    continue

                capture = RawCapture(
                    fetched_at=now,
                    source_id=source.id,
                    target_site_identifiers=list(target_sites),
                    item=item,
                )
                existing = raw_index.get(key, [])
                if existing:
                    if _is_unchanged(existing, capture):
                        logger.debug("%s raw capture unchanged, skip", key)
                        result.skipped += 1
                        continue
                    for stale in existing:
                        remove_file(stale.path)
                        logger.info("Removed duplicated raw file: %s", stale.path)
                    result.replaced += 1

                path = _raw_path(paths, now, order, key)
                write_json_file(path, capture.to_dict())
                logger.debug("Fetched raw data to %s", path)
                raw_index[key] = [RawCaptureFile(path, now, order, key)]
                captured_this_run[key] = (path, capture)
                order += 1
                saved += 1

            result.captured += saved
            logger.info("Saved %d items by unique keys", saved)

    logger.info(
        "Fetch finished: %d captured, %d skipped, %d filtered, %d failed urls",
        result.captured, result.skipped, result.filtered, len(result.failed_urls),
    )
    return result
