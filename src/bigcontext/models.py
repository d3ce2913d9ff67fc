"""Core data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

ProgressCallback = Callable[[int, int, int, bool], None]


@dataclass(slots=True, frozen=True)
class Chunk:
    """Slice of the document sent to the model as one unit of work."""

    index: int
    text: str


class RunStatus(str, Enum):
    COMPLETED = "completed"
    CANCELLED = "cancelled"


@dataclass(slots=True)
class RunReport:
    """Summary of one pipeline run."""

    status: RunStatus
    document_path: Path
    output_path: Optional[Path] = None
    chunk_count: int = 0
    cached_count: int = 0
    generated_count: int = 0
    total_tokens: int = 0
    cache_write_failures: list[int] = field(default_factory=list)

    @property
    def completed(self) -> bool:
        return self.status is RunStatus.COMPLETED


@dataclass(slots=True)
class ProgressTracker:
    """Counts finished chunks and forwards each update to an optional callback.

    Only mutated from the event loop thread, never across an await.
    """

    total: int
    callback: Optional[ProgressCallback] = None
    completed: int = 0

    def advance(self, index: int, *, cached: bool) -> int:
        self.completed += 1
        if self.callback is not None:
            self.callback(self.completed, self.total, index, cached)
        return self.completed
