from bigcontext.tokenization.counter import TokenCounter, TokenCounterLike
from bigcontext.tokenization.estimation import TokenEstimation, estimate_costs, estimate_tokens

__all__ = [
    "TokenCounter",
    "TokenCounterLike",
    "TokenEstimation",
    "estimate_costs",
    "estimate_tokens",
]
