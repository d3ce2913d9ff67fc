"""Exceptions raised by the chunking pipeline."""

from __future__ import annotations

from pathlib import Path


class BigContextError(Exception):
    """Base exception for all pipeline errors."""


class PreconditionError(BigContextError):
    """A required input (such as the API key) is missing."""


class DocumentReadError(BigContextError):
    """The input document could not be read."""

    def __init__(self, path: Path, reason: str | None = None) -> None:
        self.path = Path(path)
        msg = f"failed to read file: {self.path}"
        if reason:
            msg = f"{msg} ({reason})"
        super().__init__(msg)


class EstimationUnavailable(BigContextError):
    """The token counting backend could not be initialized."""

    def __init__(self, encoding_name: str, reason: str | None = None) -> None:
        self.encoding_name = encoding_name
        msg = f"failed to get tokenizer '{encoding_name}'"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg)


class ChunkingError(BigContextError):
    """The document could not be split into chunks."""


class ProviderError(BigContextError):
    """The generation API returned an error."""

    def __init__(self, provider: str, message: str, status_code: int | None = None) -> None:
        self.provider = provider
        self.status_code = status_code
        super().__init__(f"{provider} error: {message}")


class GenerationError(BigContextError):
    """Generation failed for one chunk; the whole run is aborted."""

    def __init__(self, index: int, message: str) -> None:
        self.index = index
        super().__init__(f"failed to generate chat completion for chunk {index}: {message}")


class CacheWriteWarning(BigContextError):
    """A fresh result could not be persisted. Callers treat this as non-fatal."""

    def __init__(self, index: int, path: Path, reason: str) -> None:
        self.index = index
        self.path = Path(path)
        super().__init__(f"failed to cache result for chunk {index} at {self.path}: {reason}")


class CacheClearError(BigContextError):
    """The cache directory exists but could not be removed."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = Path(path)
        super().__init__(f"failed to remove cache directory {self.path}: {reason}")


class MergeWriteError(BigContextError):
    """The combined output file could not be written."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = Path(path)
        super().__init__(f"failed to write combined results to {self.path}: {reason}")


__all__ = [
    "BigContextError",
    "PreconditionError",
    "DocumentReadError",
    "EstimationUnavailable",
    "ChunkingError",
    "ProviderError",
    "GenerationError",
    "CacheWriteWarning",
    "CacheClearError",
    "MergeWriteError",
]
