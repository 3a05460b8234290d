"""YAML configuration loader for the feed pipeline."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml
from dotenv import load_dotenv

# Load .env file if it exists
load_dotenv()

# Config directory relative to the repository root
CONFIG_DIR = Path(__file__).resolve().parents[2] / "configs"

DEFAULT_ITEMS_PER_SESSION = 10
DEFAULT_RAW_RETENTION_DAYS = 7


@dataclass
class LanguageConfig:
    """A target language; ``derived_from`` marks languages computed from another one."""
    code: str
    name: str
    derived_from: str | None = None


@dataclass
class RuleConfig:
    type: str
    value: str | int | float | bool
    key: str | None = None


@dataclass
class SourceConfig:
    id: str
    type: str
    urls: list[str] = field(default_factory=list)
    items_path: str = ""
    language: str = "en"
    rules: list[RuleConfig] = field(default_factory=list)


@dataclass
class SiteConfig:
    sources: list[str] = field(default_factory=list)
    archive: bool = True
    test: bool = False


@dataclass
class ArchiveConfig:
    backend: str = "local"  # "s3" or "local"
    local_path: str = "archive"
    bucket: str = "feedarchive"

    def __post_init__(self) -> None:
        if self.backend not in ("s3", "local"):
            raise ValueError(f"Invalid archive backend: {self.backend}. Must be 's3' or 'local'")


@dataclass
class PipelineConfig:
    data_dir: str = "data"
    i18n_dir: str = "i18n"
    translated_items_per_session: int = DEFAULT_ITEMS_PER_SESSION
    raw_retention_days: int = DEFAULT_RAW_RETENTION_DAYS
    mock: bool = True
    mock_image: bool = True
    dev: bool = False
    headless: bool = True
    languages: list[LanguageConfig] = field(default_factory=list)
    sites: dict[str, SiteConfig] = field(default_factory=dict)
    sources: list[SourceConfig] = field(default_factory=list)
    archive: ArchiveConfig = field(default_factory=ArchiveConfig)

    def __post_init__(self) -> None:
        if self.translated_items_per_session < 1:
            raise ValueError("translated_items_per_session must be at least 1")
        if self.raw_retention_days < 1:
            raise ValueError("raw_retention_days must be at least 1")

        codes = [language.code for language in self.languages]
        if len(set(codes)) != len(codes):
            raise ValueError(f"Duplicate language codes: {codes}")
        for language in self.languages:
            if language.derived_from and language.derived_from not in codes:
                raise ValueError(
                    f"Language {language.code} is derived from unknown language {language.derived_from}"
                )

        source_ids = {source.id for source in self.sources}
        for site_identifier, site in self.sites.items():
            if "_" in site_identifier:
                raise ValueError(f"Site identifier must not contain '_': {site_identifier}")
            for source_id in site.sources:
                if source_id not in source_ids:
                    raise ValueError(f"Site {site_identifier} references unknown source {source_id}")

    def get_source(self, source_id: str) -> SourceConfig:
        for source in self.sources:
            if source.id == source_id:
                return source
        raise KeyError(source_id)

    def feed_site_identifiers(self) -> list[str]:
        """Sites that are built for real, excluding test-only ones."""
        return [site_id for site_id, site in self.sites.items() if not site.test]


def find_config_path(config_name: str | None, config_dir: Path = CONFIG_DIR) -> Path:
    """Find config file path from a name, a path, or the CONFIG_ENV env var.

    Raises:
        FileNotFoundError: If config file doesn't exist
    """
    if config_name is None:
        config_name = os.environ.get("CONFIG_ENV", "prod")

    candidate = Path(config_name)
    if candidate.suffix in (".yaml", ".yml") and candidate.exists():
        return candidate

    config_path = config_dir / f"{config_name}.yaml"
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")
    return config_path


def load_config(config_name: str | None = None) -> PipelineConfig:
    """Load configuration from YAML file and apply environment flags."""
    with open(find_config_path(config_name)) as f:
        data = yaml.safe_load(f) or {}
    return apply_env_overrides(_parse_config(data))


def apply_env_overrides(config: PipelineConfig) -> PipelineConfig:
    """Apply MOCK, MOCK_IMAGE, DEV and HEADLESS environment flags."""
    if "MOCK" in os.environ:
        config.mock = os.environ["MOCK"] != "0"
    if "MOCK_IMAGE" in os.environ:
        config.mock_image = os.environ["MOCK_IMAGE"] != "0"
    if "DEV" in os.environ:
        config.dev = os.environ["DEV"] == "1"
    if "HEADLESS" in os.environ:
        config.headless = os.environ["HEADLESS"] != "0"
    return config


def _parse_source(data: dict) -> SourceConfig:
    urls = data.get("urls") or []
    if data.get("url"):
        urls = [data["url"], *urls]
    return SourceConfig(
        id=data["id"],
        type=data["type"],
        urls=list(urls),
        items_path=data.get("items_path", ""),
        language=data.get("language", "en"),
        rules=[RuleConfig(**rule) for rule in data.get("rules", [])],
    )


def _parse_config(data: dict) -> PipelineConfig:
    """Parse config dictionary into PipelineConfig object."""
    languages = [
        LanguageConfig(
            code=lang["code"],
            name=lang.get("name", lang["code"]),
            derived_from=lang.get("derived_from"),
        )
        for lang in data.get("languages", [])
    ]

    sites = {
        site_identifier: SiteConfig(
            sources=list((site or {}).get("sources", [])),
            archive=(site or {}).get("archive", True),
            test=(site or {}).get("test", False),
        )
        for site_identifier, site in (data.get("sites") or {}).items()
    }

    archive_data = data.get("archive", {})
    archive = ArchiveConfig(
        backend=archive_data.get("backend", "local"),
        local_path=archive_data.get("local_path", "archive"),
        bucket=archive_data.get("bucket", "feedarchive"),
    )

    return PipelineConfig(
        data_dir=data.get("data_dir", "data"),
        i18n_dir=data.get("i18n_dir", "i18n"),
        translated_items_per_session=data.get("translated_items_per_session", DEFAULT_ITEMS_PER_SESSION),
        raw_retention_days=data.get("raw_retention_days", DEFAULT_RAW_RETENTION_DAYS),
        mock=data.get("mock", True),
        mock_image=data.get("mock_image", True),
        dev=data.get("dev", False),
        headless=data.get("headless", True),
        languages=languages,
        sites=sites,
        sources=[_parse_source(source) for source in data.get("sources", [])],
        archive=archive,
    )

