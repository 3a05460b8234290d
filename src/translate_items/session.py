"""Translation sessions backed by an external translation service.

A session is an opened, stateful connection to the service. It remembers the
last configured (source, target) language pair so consecutive requests for
the same pair skip reconfiguration.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Optional

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeout
from playwright.sync_api import sync_playwright

from common.errors import (
    SessionLayoutError,
    SessionStaleError,
    UnsupportedLanguageError,
    UnsupportedSourceLanguageError,
)
from translate_items.languages import (
    SOURCE_LANGUAGE_PATTERN,
    TARGET_LANGUAGE_PATTERN,
    to_session_language,
)

logger = logging.getLogger(__name__)


class TranslationSession(ABC):
    """Interface of an external translation session."""

    def __init__(self) -> None:
        self._source_language: Optional[str] = None
        self._target_language: Optional[str] = None

    @property
    def last_language_pair(self) -> Optional[tuple[str, str]]:
        if self._source_language is None or self._target_language is None:
            return None
        return self._source_language, self._target_language

    def check_language_pair(self, source_language: str, target_language: str) -> tuple[str, str]:
        """Return the service codes of a language pair.

        Raises:
            UnsupportedSourceLanguageError: If the source code is not ``auto`` or two letters.
            UnsupportedLanguageError: If the target does not map to two letters.
        """
        if not SOURCE_LANGUAGE_PATTERN.match(source_language):
            raise UnsupportedSourceLanguageError(source_language)
        target = to_session_language(target_language)
        if not TARGET_LANGUAGE_PATTERN.match(target):
            raise UnsupportedLanguageError(target_language)
        return source_language, target

    @abstractmethod
    def open(self) -> None:
        ...

    @abstractmethod
    def close(self) -> None:
        ...

    @abstractmethod
    def translate(self, text: str, source_language: str, target_languages: list[str]) -> dict[str, str]:
        """Translate text to every target language, returning ``{target: text}``."""


HOMEPAGE = "https://www.deepl.com/en/translator-mobile"

SOURCE_LANG_SELECT = "button[dl-test=translator-source-lang-btn]"
TARGET_LANG_SELECT = "button[dl-test=translator-target-lang-btn]"
SOURCE_LANG_MENU = "div[dl-test=translator-source-lang-list]"
TARGET_LANG_MENU = "div[dl-test=translator-target-lang-list]"
SOURCE_INPUT = "textarea[dl-test=translator-source-input]"
TARGET_INPUT = "textarea[dl-test=translator-target-input]"
COPY_BUTTON = "button[aria-label='Copy to clipboard']"
CLEAR_BUTTON = "xpath=//span[text()='Delete source text']/parent::button"
READY_MARKER = "xpath=//span[@data-testid='deepl-ui-tooltip-target']"

USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

DEFAULT_TIMEOUT = 30000
OPTION_TIMEOUT = 5000


def _option_selector(language: str) -> str:
    return f"button[dl-test=translator-lang-option-{language}]"


class DeepLBrowserSession(TranslationSession):
    """DeepL mobile translator page driven by a Playwright browser."""

    def __init__(self, headless: bool = True, timeout: int = DEFAULT_TIMEOUT):
        super().__init__()
        self.headless = headless
        self.timeout = timeout
        self._playwright = None
        self._browser = None
        self._page = None

    def open(self) -> None:
        try:
            self._playwright = sync_playwright().start()
            self._browser = self._playwright.chromium.launch(
                headless=self.headless,
                args=["--lang=zh-Hans,zh", "--disable-gpu", "--no-sandbox"],
            )
            context = self._browser.new_context(
                user_agent=USER_AGENT,
                viewport={"width": 393, "height": 851},
                is_mobile=True,
                extra_http_headers={"referer": "https://www.google.com/"},
            )
            self._page = context.new_page()
            self._page.set_default_timeout(self.timeout)
            self._page.goto(HOMEPAGE, wait_until="domcontentloaded")
            self._page.wait_for_selector(READY_MARKER)
        except PlaywrightTimeout as e:
            raise SessionStaleError(f"Translator page did not load: {e}") from e
        except PlaywrightError as e:
            raise SessionStaleError(f"Failed to open translator page: {e}") from e
        logger.info("Opened translation session")

    def close(self) -> None:
        try:
            if self._browser is not None:
                self._browser.close()
            if self._playwright is not None:
                self._playwright.stop()
        except PlaywrightError as e:
            logger.warning("Failed to close translation session cleanly: %s", e)
        finally:
            self._browser = None
            self._playwright = None
            self._page = None
            self._source_language = None
            self._target_language = None

    def translate(self, text: str, source_language: str, target_languages: list[str]) -> dict[str, str]:
        if self._page is None:
            raise SessionStaleError("Session is not open")
        if not target_languages:
            raise ValueError("target_languages must have at least one language")

        results: dict[str, str] = {}
        try:
            for position, target_language in enumerate(target_languages):
                source, target = self.check_language_pair(source_language, target_language)
                self._select_source(source)
                self._select_target(target_language, target)
                if position == 0:
                    self._enter_text(text)
                self._page.wait_for_selector(COPY_BUTTON, state="visible")
                value = self._page.input_value(TARGET_INPUT)
                results[target_language] = value.rstrip("\n")
            self._page.click(CLEAR_BUTTON)
            self._page.wait_for_timeout(1000)
        except PlaywrightTimeout as e:
            raise SessionStaleError(f"Translator page timed out: {e}") from e
        except PlaywrightError as e:
            raise SessionStaleError(f"Translator page failed: {e}") from e
        return results

    def _select_source(self, source: str) -> None:
        if self._source_language == source:
            return
        page = self._page
        page.wait_for_selector(SOURCE_LANG_SELECT, state="visible")
        page.click(SOURCE_LANG_SELECT)
        page.wait_for_selector(SOURCE_LANG_MENU, state="visible")
        try:
            page.click(_option_selector(source), timeout=OPTION_TIMEOUT)
        except PlaywrightTimeout:
            raise UnsupportedSourceLanguageError(source) from None
        page.wait_for_selector(SOURCE_LANG_MENU, state="hidden")
        self._source_language = source

    def _select_target(self, target_language: str, target: str) -> None:
        if self._target_language == target:
            return
        page = self._page
        page.click(TARGET_LANG_SELECT)
        page.wait_for_selector(TARGET_LANG_MENU, state="visible")
        try:
            page.click(_option_selector(target), timeout=OPTION_TIMEOUT)
        except PlaywrightTimeout:
            raise UnsupportedLanguageError(target_language) from None
        self._target_language = target

    def _enter_text(self, text: str) -> None:
        field = self._page.query_selector(SOURCE_INPUT)
        if field is None:
            raise SessionLayoutError(f"Cannot find source input field {SOURCE_INPUT}")
        field.fill(text)
        self._page.wait_for_timeout(1500)
        field.press("Enter")
