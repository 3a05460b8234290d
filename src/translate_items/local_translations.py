"""Local translation overrides loaded from i18n language packs."""

import logging
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)


def load_local_translations(i18n_dir: Path) -> dict[str, dict[str, str]]:
    """Load ``{language: {original text: translation}}`` from ``{code}.yml`` files.

    A missing directory means no overrides.
    """
    i18n_dir = Path(i18n_dir)
    translations: dict[str, dict[str, str]] = {}
    if not i18n_dir.is_dir():
        logger.debug("No i18n directory at %s", i18n_dir)
        return translations

    for path in sorted(i18n_dir.iterdir()):
        if not path.is_file() or path.suffix not in (".yml", ".yaml"):
            continue
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Language pack {path} must be a mapping")
        translations[path.stem] = {str(k): str(v) for k, v in data.items()}
        logger.debug("Loaded %d local translations for %s", len(data), path.stem)
    return translations
