"""Shared fixtures: a whitespace token counter and a scripted chat generator."""

from __future__ import annotations

import asyncio
from typing import Callable, List, Optional, Tuple

import pytest


class WhitespaceCounter:
    """Counts whitespace-delimited words. Deterministic and offline."""

    def count(self, text: str) -> int:
        return len(text.split())

    def encode(self, text: str) -> List[str]:
        return text.split()


class ScriptedGenerator:
    """Chat generator double that records calls and answers from callables."""

    def __init__(
        self,
        respond: Optional[Callable[[str], str]] = None,
        *,
        fail_on: Optional[Callable[[str], bool]] = None,
        delay: Optional[Callable[[str], float]] = None,
    ) -> None:
        self.respond = respond or (lambda text: "mock response")
        self.fail_on = fail_on
        self.delay = delay
        self.calls: List[Tuple[str, str]] = []

    async def generate(self, system_prompt: str, user_content: str) -> str:
        self.calls.append((system_prompt, user_content))
        await asyncio.sleep(self.delay(user_content) if self.delay else 0)
        if self.fail_on is not None and self.fail_on(user_content):
            raise RuntimeError("mock error: simulated API failure")
        return self.respond(user_content)


@pytest.fixture
def counter() -> WhitespaceCounter:
    return WhitespaceCounter()
