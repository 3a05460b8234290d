"""CLI for running the feed pipeline stages."""

from __future__ import annotations

import argparse
import logging
import sys
from functools import partial
from pathlib import Path

from common.cli_helpers import parse_sites, setup_logging
from common.config import PipelineConfig, load_config
from common.errors import PipelineError
from common.paths import DataPaths
from fetch_sources.fetch_sources import fetch_sources
from format_items.format_items import format_items
from publish_items.archive import archive_items
from publish_items.archive_store import build_archive_store
from publish_items.publish_items import publish_items
from translate_items.engine import TranslationEngine
from translate_items.session import DeepLBrowserSession
from translate_items.translate_items import translate_items

logger = logging.getLogger(__name__)

STAGES = ["fetch", "format", "translate", "publish", "archive"]


def build_engine(config: PipelineConfig) -> TranslationEngine:
    return TranslationEngine(
        languages=config.languages,
        session_factory=partial(DeepLBrowserSession, headless=config.headless),
        i18n_dir=Path(config.i18n_dir),
        mock=config.mock,
        items_per_session=config.translated_items_per_session,
    )


def run_stages(config: PipelineConfig, stages: list[str], site_identifiers: list[str]) -> bool:
    """Run the stages in order. Returns False when some items failed."""
    paths = DataPaths(Path(config.data_dir), dev=config.dev)
    ok = True

    if "fetch" in stages:
        result = fetch_sources(config, paths, site_identifiers)
        if result.failed_urls:
            logger.warning("%d source urls failed: %s", len(result.failed_urls), ", ".join(result.failed_urls))

    if "format" in stages:
        format_items(config, paths, site_identifiers)

    if "translate" in stages or "publish" in stages:
        with build_engine(config) as engine:
            if "translate" in stages:
                result = translate_items(paths, site_identifiers, engine)
                if result.failed_items:
                    logger.error("%d items failed to translate", len(result.failed_items))
                    ok = False
            if "publish" in stages:
                result = publish_items(paths, site_identifiers, engine)
                logger.info("Published %d items", result.published)
                if result.incomplete:
                    logger.warning("%d items kept for missing translations", len(result.incomplete))

    if "archive" in stages:
        archive_items(config, paths, site_identifiers, build_archive_store(config))

    return ok


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the multi-language feed pipeline.")
    parser.add_argument(
        "stage",
        nargs="?",
        default="all",
        choices=STAGES + ["all"],
        help="Stage to run (default: all).",
    )
    parser.add_argument("--config", default=None, help="Config name or path (default: $CONFIG_ENV or prod).")
    parser.add_argument(
        "--sites",
        default=None,
        help="Comma-separated list of site identifiers (default: all non-test sites).",
    )
    parser.add_argument(
        "--mock",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Resolve translations to the original text without a session.",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    setup_logging(args.debug)

    try:
        config = load_config(args.config)
        if args.mock is not None:
            config.mock = args.mock
        if args.sites is None:
            site_identifiers = config.feed_site_identifiers()
        else:
            site_identifiers = parse_sites(args.sites, list(config.sites))
        stages = STAGES if args.stage == "all" else [args.stage]
        logger.info("Running %s for sites %s", ", ".join(stages), ", ".join(site_identifiers))
        ok = run_stages(config, stages, site_identifiers)
    except (PipelineError, FileNotFoundError, ValueError) as e:
        logger.error("Pipeline failed: %s", e)
        sys.exit(1)

    if not ok:
        sys.exit(1)


if __name__ == "__main__":
    main()
