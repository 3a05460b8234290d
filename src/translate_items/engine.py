"""Multi-language translation engine.

Every requested language of a field is resolved by exactly one of:

1. a local override from the i18n language packs,
2. a derivation from another language's resolved text (``derived_from``),
3. the external translation session, batching consecutive languages into
   one session call.

The engine owns one session at a time and recycles it after a fixed number
of items that used it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

from common.config import DEFAULT_ITEMS_PER_SESSION, LanguageConfig
from common.errors import (
    MissingDependencyError,
    PipelineError,
    SessionStaleError,
    UnsupportedLanguageError,
    UnsupportedSourceLanguageError,
)
from format_items.models import FormattedItem
from translate_items.languages import get_derivation
from translate_items.local_translations import load_local_translations
from translate_items.session import TranslationSession

logger = logging.getLogger(__name__)

MAX_TEXT_LENGTH = 4500


class FieldState(str, Enum):
    PENDING = "pending"
    LOCAL = "locally-resolved"
    DERIVED = "derived"
    EXTERNAL = "externally-translated"
    FAILED = "failed"


@dataclass
class FieldTranslation:
    """Outcome of translating one text to several languages."""
    text: str
    source_language: str
    values: dict[str, str] = field(default_factory=dict)
    states: dict[str, FieldState] = field(default_factory=dict)
    errors: dict[str, str] = field(default_factory=dict)

    def resolve(self, language: str, value: str, state: FieldState) -> None:
        self.values[language] = value
        self.states[language] = state

    def fail(self, language: str, reason: str) -> None:
        self.states[language] = FieldState.FAILED
        self.errors[language] = reason

    @property
    def failed(self) -> list[str]:
        return [language for language, state in self.states.items() if state == FieldState.FAILED]


@dataclass
class ItemTranslation:
    """Outcome of completing one item's translations."""
    translated: int = 0
    used_session: bool = False
    failures: dict[tuple[str, str], str] = field(default_factory=dict)


class TranslationEngine:
    """Resolve field translations for the configured target languages.

    Args:
        languages: Configured target languages, in resolution order.
        session_factory: Builds a new, unopened translation session.
        local_translations: Overrides ``{language: {text: translation}}``;
            loaded from ``i18n_dir`` by ``init()`` when not given.
        mock: Resolve every language to the original text without a session.
        items_per_session: Items that may use one session before it is recycled.
    """

    def __init__(
        self,
        languages: list[LanguageConfig],
        session_factory: Callable[[], TranslationSession],
        local_translations: Optional[dict[str, dict[str, str]]] = None,
        i18n_dir: Optional[Path] = None,
        mock: bool = True,
        items_per_session: int = DEFAULT_ITEMS_PER_SESSION,
    ):
        if items_per_session < 1:
            raise ValueError("items_per_session must be at least 1")
        self.languages = languages
        self.session_factory = session_factory
        self.local_translations = local_translations
        self.i18n_dir = i18n_dir
        self.mock = mock
        self.items_per_session = items_per_session
        self.items_since_recycle = 0
        self.session: Optional[TranslationSession] = None
        self._derived_from = {
            language.code: language.derived_from
            for language in languages
            if language.derived_from
        }
        self._used_session = False

    @property
    def language_codes(self) -> list[str]:
        return [language.code for language in self.languages]

    def init(self) -> None:
        if self.mock:
            logger.info("Mock mode: translations resolve to the original text")
            return
        if self.local_translations is None:
            self.local_translations = load_local_translations(self.i18n_dir) if self.i18n_dir else {}
        self._open_session()

    def close(self) -> None:
        if self.session is not None:
            self.session.close()
            self.session = None
            logger.info("Closed translation session")

    def __enter__(self) -> TranslationEngine:
        self.init()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def recycle(self) -> None:
        """Replace the session with a fresh one from the factory."""
        logger.info("Recycling translation session after %d items", self.items_since_recycle)
        self.close()
        self._open_session()

    def _open_session(self) -> None:
        self.session = self.session_factory()
        self.session.open()
        self.items_since_recycle = 0

    def _call_session(self, text: str, source_language: str, languages: list[str]) -> dict[str, str]:
        if self.session is None:
            raise PipelineError("Translation session is not open, call init() first")
        self._used_session = True
        try:
            return self.session.translate(text, source_language, languages)
        except SessionStaleError as e:
            logger.warning("Translation session went stale, retrying once: %s", e)
            self.recycle()
            return self.session.translate(text, source_language, languages)

    def _is_external(self, language: str, text: str, source_language: str) -> bool:
        if language == source_language or language in self._derived_from:
            return False
        return not (self.local_translations or {}).get(language, {}).get(text)

    def translate(
        self,
        text: str,
        source_language: str,
        target_languages: list[str],
        resolved: Optional[dict[str, str]] = None,
    ) -> FieldTranslation:
        """Resolve text for every target language.

        ``resolved`` holds texts already known for other languages (the source
        language is always known). Derived languages need their source
        language resolved earlier in ``target_languages`` or in ``resolved``.

        Raises:
            MissingDependencyError: If a derived language comes before its source.
            SessionStaleError: If the session goes stale twice in a row.
        """
        result = FieldTranslation(text, source_language)
        for language in target_languages:
            result.states[language] = FieldState.PENDING

        if self.mock:
            for language in target_languages:
                result.resolve(language, text, FieldState.EXTERNAL)
            return result

        if not text:
            for language in target_languages:
                result.resolve(language, text, FieldState.LOCAL)
            return result

        known = {source_language: text, **(resolved or {})}
        local_translations = self.local_translations or {}
        position = 0
        while position < len(target_languages):
            language = target_languages[position]

            if language == source_language:
                result.resolve(language, text, FieldState.LOCAL)
                position += 1
                continue

            local = local_translations.get(language, {}).get(text)
            if local:
                logger.debug("Local translation of %r to %s", text, language)
                result.resolve(language, local, FieldState.LOCAL)
                position += 1
                continue

            derived_from = self._derived_from.get(language)
            if derived_from:
                if derived_from in result.values:
                    base = result.values[derived_from]
                elif result.states.get(derived_from) == FieldState.FAILED:
                    result.fail(language, f"{derived_from} failed")
                    position += 1
                    continue
                elif derived_from in known:
                    base = known[derived_from]
                else:
                    raise MissingDependencyError(language, derived_from)
                derive = get_derivation(derived_from, language)
                result.resolve(language, derive(base), FieldState.DERIVED)
                position += 1
                continue

            batch = [language]
            position += 1
            while position < len(target_languages) and self._is_external(
                target_languages[position], text, source_language
            ):
                batch.append(target_languages[position])
                position += 1
            self._translate_batch(text, source_language, batch, result)

        return result

    def _translate_batch(
        self,
        text: str,
        source_language: str,
        languages: list[str],
        result: FieldTranslation,
    ) -> None:
        if len(text) > MAX_TEXT_LENGTH:
            logger.debug("Truncating text of %d characters", len(text))
            text = text[:MAX_TEXT_LENGTH]

        remaining = list(languages)
        while remaining:
            try:
                translated = self._call_session(text, source_language, remaining)
            except UnsupportedSourceLanguageError as e:
                for language in remaining:
                    result.fail(language, str(e))
                return
            except UnsupportedLanguageError as e:
                logger.warning("%s", e)
                if e.language not in remaining:
                    for language in remaining:
                        result.fail(language, str(e))
                    return
                result.fail(e.language, str(e))
                remaining.remove(e.language)
                continue

            for language in remaining:
                if language in translated:
                    result.resolve(language, translated[language], FieldState.EXTERNAL)
                else:
                    result.fail(language, "no translation returned")
            remaining = []

    def translate_item(self, item: FormattedItem) -> ItemTranslation:
        """Fill the missing translations of an item in place.

        Only (field, language) pairs without a value are requested, so calling
        this again on a partially translated item is safe.
        """
        if not self.mock and self.session is not None and self.items_since_recycle >= self.items_per_session:
            self.recycle()

        outcome = ItemTranslation()
        self._used_session = False
        codes = [code for code in self.language_codes if code != item.original_language]
        missing = item.missing_translations(codes)

        for field_name, text in item.translatable_fields.items():
            todo = [code for code in codes if field_name in missing.get(code, [])]
            if not todo:
                logger.debug("Field %s of %s already translated, skip", field_name, item.id)
                continue
            resolved = {
                code: item.translations[code][field_name]
                for code in codes
                if code not in todo and item.translations.get(code, {}).get(field_name)
            }
            logger.debug("Translating %s %s: %s", item.id, field_name, text)
            translation = self.translate(text, item.original_language, todo, resolved=resolved)
            for code, value in translation.values.items():
                item.translations.setdefault(code, {})[field_name] = value
                outcome.translated += 1
            for code, reason in translation.errors.items():
                outcome.failures[(field_name, code)] = reason

        outcome.used_session = self._used_session
        if outcome.used_session:
            self.items_since_recycle += 1
        return outcome
