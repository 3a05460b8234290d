"""Adapter interface turning one fetched record into a NormalizedItem."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional

from fetch_sources.models import NormalizedItem


class SourceAdapter(ABC):
    """One adapter per source type, selected by the source's ``type`` tag.

    ``items_path`` is the dotted path to the list of records inside a JSON
    payload; a source config may override it.
    """

    type: str = ""
    items_path: str = ""
    feed: bool = False

    def __init__(self, language: str = "en"):
        self.language = language

    @abstractmethod
    def normalize(self, payload: Any) -> Optional[NormalizedItem]:
        """Map a record to common fields, or None when the record is unusable."""
