"""Error taxonomy shared by all pipeline stages."""

from __future__ import annotations


class PipelineError(Exception):
    """Base class for pipeline errors."""


class SourceFetchError(PipelineError):
    """One source URL could not be fetched or parsed."""

    def __init__(self, source_id: str, url: str, reason: str):
        super().__init__(f"Failed to fetch {source_id} from {url}: {reason}")
        self.source_id = source_id
        self.url = url


class MalformedIdentifierError(PipelineError, ValueError):
    """An item identifier or stage filename does not decode."""


class MissingDependencyError(PipelineError):
    """A derived language was requested before its source language resolved."""

    def __init__(self, language: str, source_language: str):
        super().__init__(
            f"{source_language} must be resolved before {language}; "
            f"list {source_language} ahead of {language} in the target languages"
        )
        self.language = language
        self.source_language = source_language


class UnsupportedLanguageError(PipelineError):
    """The translation session rejected a target language."""

    def __init__(self, language: str, message: str | None = None):
        super().__init__(message or f"Unsupported target language: {language}")
        self.language = language


class UnsupportedSourceLanguageError(UnsupportedLanguageError):
    """The translation session rejected the source language."""

    def __init__(self, language: str):
        super().__init__(language, f"Unsupported source language: {language}")


class SessionStaleError(PipelineError):
    """The translation session stopped responding or is in an unexpected state."""


class SessionLayoutError(PipelineError):
    """The translation session could not find a required input element."""


class FileIOError(PipelineError):
    """Reading, writing or deleting a stage file failed."""
