"""Derived languages computed from another language's translation."""

from __future__ import annotations

import re
from typing import Callable

from opencc import OpenCC

_S2T = OpenCC("s2t")

SOURCE_LANGUAGE_PATTERN = re.compile(r"^(auto|[a-z]{2})$")
TARGET_LANGUAGE_PATTERN = re.compile(r"^[a-z]{2}$")


def to_zh_hant(text: str) -> str:
    """Convert Simplified Chinese text to Traditional Chinese."""
    return _S2T.convert(text)


# (source language, derived language) -> derivation function
DERIVATIONS: dict[tuple[str, str], Callable[[str], str]] = {
    ("zh-Hans", "zh-Hant"): to_zh_hant,
}


def get_derivation(source_language: str, language: str) -> Callable[[str], str]:
    try:
        return DERIVATIONS[(source_language, language)]
    except KeyError:
        raise ValueError(f"No derivation from {source_language} to {language}") from None


def to_session_language(code: str) -> str:
    """Map a target language code to the two-letter code of the translation service."""
    if code.startswith("zh"):
        return "zh"
    return code.split("-")[0].lower()
