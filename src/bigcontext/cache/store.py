"""Directory-backed cache of per-chunk inputs and results."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import List, Optional

from bigcontext.exceptions import CacheClearError, CacheWriteWarning
from bigcontext.utils.files import cache_directory, write_text_atomic

LOGGER = logging.getLogger(__name__)


class ChunkCacheStore:
    """Persistence layer for one document's chunk inputs and generated results.

    Layout under ``directory``::

        chunk<N>.txt    input text of chunk N (1-based), kept for inspection
        result<N>.txt   generated output of chunk N; its presence is a cache hit

    Each chunk index owns its own pair of files, so concurrent tasks working
    on different indices never touch the same path.
    """

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)

    @classmethod
    def for_document(cls, document_path: Path) -> "ChunkCacheStore":
        return cls(cache_directory(document_path))

    def chunk_path(self, index: int) -> Path:
        return self.directory / f"chunk{index}.txt"

    def result_path(self, index: int) -> Path:
        return self.directory / f"result{index}.txt"

    def has(self, index: int) -> bool:
        return self.result_path(index).is_file()

    def get(self, index: int) -> Optional[str]:
        """Return the cached result for ``index``, or ``None`` on a miss."""
        path = self.result_path(index)
        try:
            # bytes round-trip so CR and CRLF survive
            return path.read_bytes().decode("utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as exc:
            LOGGER.warning("Ignoring unreadable cached result %s: %s", path, exc)
            return None

    def cached_indices(self, total: int) -> List[int]:
        return [index for index in range(1, total + 1) if self.has(index)]

    def put(self, index: int, text: str) -> Path:
        """Persist a generated result, replacing any previous one.

        Raises:
            CacheWriteWarning: If the file could not be written.
        """
        path = self.result_path(index)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            write_text_atomic(path, text)
        except OSError as exc:
            raise CacheWriteWarning(index, path, exc.strerror or str(exc)) from exc
        LOGGER.debug("Chunk %d: result cached -> %s", index, path)
        return path

    def save_chunk(self, index: int, text: str) -> bool:
        """Best-effort write of a chunk's input text. Never raises."""
        path = self.chunk_path(index)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            write_text_atomic(path, text)
        except OSError as exc:
            LOGGER.warning("Failed to write chunk %d to %s: %s", index, path, exc)
            return False
        return True

    def clear(self) -> bool:
        """Remove the whole cache directory.

        Returns ``False`` when there was nothing to remove.

        Raises:
            CacheClearError: If the directory exists but could not be removed.
        """
        if not self.directory.exists():
            LOGGER.info("No cache directory found: %s", self.directory)
            return False
        try:
            shutil.rmtree(self.directory)
        except OSError as exc:
            raise CacheClearError(self.directory, exc.strerror or str(exc)) from exc
        LOGGER.info("Removed cache directory: %s", self.directory)
        return True
