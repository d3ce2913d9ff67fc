"""Application configuration defaults."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Dict, Mapping

from bigcontext.exceptions import PreconditionError

API_KEY_ENV = "OPENAI_API_KEY"

DEFAULT_MODEL = "gpt-5-nano"
DEFAULT_ENCODING = "cl100k_base"
DEFAULT_CHUNK_TOKENS = 2000

# Cost per million input tokens, in USD
DEFAULT_MODEL_COSTS: Dict[str, float] = {
    "gpt-5-nano": 0.05,
    "gpt-5-mini": 0.25,
    "gpt-5": 1.25,
    "gpt-5.1": 1.25,
}


@dataclass(slots=True)
class AppConfig:
    model_name: str = DEFAULT_MODEL
    chunk_tokens: int = DEFAULT_CHUNK_TOKENS
    encoding_name: str = DEFAULT_ENCODING
    max_concurrency: int | None = None
    request_timeout: float = 300.0
    service_tier: str | None = "flex"
    model_costs: Dict[str, float] = field(default_factory=lambda: dict(DEFAULT_MODEL_COSTS))

    def __post_init__(self) -> None:
        if self.chunk_tokens <= 0:
            raise ValueError(f"chunk_tokens must be positive, got {self.chunk_tokens}")
        if self.max_concurrency is not None and self.max_concurrency <= 0:
            raise ValueError(f"max_concurrency must be positive, got {self.max_concurrency}")
        if self.request_timeout <= 0:
            raise ValueError(f"request_timeout must be positive, got {self.request_timeout}")


def resolve_api_key(environ: Mapping[str, str] | None = None) -> str:
    """Return the OpenAI API key from the environment.

    Raises:
        PreconditionError: If the variable is unset or blank.
    """
    env = os.environ if environ is None else environ
    api_key = env.get(API_KEY_ENV, "").strip()
    if not api_key:
        raise PreconditionError(f"{API_KEY_ENV} environment variable must be set")
    return api_key
