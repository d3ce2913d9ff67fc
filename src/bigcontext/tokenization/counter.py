"""Token counting backed by tiktoken."""

from __future__ import annotations

import logging
from typing import List, Protocol

import tiktoken

from bigcontext.config import DEFAULT_ENCODING
from bigcontext.exceptions import EstimationUnavailable

logger = logging.getLogger(__name__)


class TokenCounterLike(Protocol):
    def count(self, text: str) -> int: ...


class TokenCounter:
    """Thin wrapper around a tiktoken encoding.

    The encoding is loaded eagerly so that a missing or unreachable BPE file
    surfaces as ``EstimationUnavailable`` at construction time rather than in
    the middle of a split.
    """

    def __init__(self, encoding_name: str = DEFAULT_ENCODING) -> None:
        self.encoding_name = encoding_name
        try:
            self._encoding = tiktoken.get_encoding(encoding_name)
        except Exception as exc:
            raise EstimationUnavailable(encoding_name, str(exc)) from exc
        logger.debug(f"Loaded tokenizer: {encoding_name}")

    def encode(self, text: str) -> List[int]:
        # Special-token text in user documents is counted as ordinary text.
        return self._encoding.encode(text, disallowed_special=())

    def count(self, text: str) -> int:
        if not text:
            return 0
        return len(self.encode(text))
