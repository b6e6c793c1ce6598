"""Evaluation metrics for learned strategies."""

from scrabcfr.metrics.evaluator import HeadToHeadEvaluator, MatchResult
from scrabcfr.metrics.exploitability import (
    average_policy,
    best_response_value,
    compute_exploitability,
)

__all__ = [
    "HeadToHeadEvaluator",
    "MatchResult",
    "average_policy",
    "best_response_value",
    "compute_exploitability",
]
