"""Token and cost estimates for a document."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Mapping

from bigcontext.tokenization.counter import TokenCounterLike


@dataclass(slots=True)
class TokenEstimation:
    tokens_count: int
    bytes_count: int
    costs: Dict[str, float] = field(default_factory=dict)


def estimate_costs(tokens: int, model_costs: Mapping[str, float]) -> Dict[str, float]:
    """Return the input cost in USD per model for ``tokens`` tokens.

    ``model_costs`` maps a model name to its price per million input tokens.
    """
    return {model: tokens * per_million / 1_000_000 for model, per_million in model_costs.items()}


def estimate_tokens(
    text: str,
    counter: TokenCounterLike,
    model_costs: Mapping[str, float] | None = None,
) -> TokenEstimation:
    """Count tokens in ``text`` and price them against ``model_costs``."""
    tokens = counter.count(text)
    return TokenEstimation(
        tokens_count=tokens,
        bytes_count=len(text.encode("utf-8")),
        costs=estimate_costs(tokens, model_costs or {}),
    )
