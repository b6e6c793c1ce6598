"""Regret matching utilities for CFR."""

import numpy as np
import numpy.typing as npt


def regret_matching(regrets: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
    """Convert regrets to a strategy using Regret Matching.

    Regret Matching is the core strategy update rule in CFR:
    - Strategy for action a is proportional to max(0, regret_a)
    - If no action has positive regret (always the case on the first
      visit), every action gets probability 1 / num_actions

    Args:
        regrets: Array of cumulative regrets for each action

    Returns:
        Probability distribution over actions (sums to 1.0)
    """
    num_actions = len(regrets)
    if num_actions == 0:
        return np.zeros(0, dtype=np.float64)

    positive_regrets = np.maximum(regrets, 0.0)
    regret_sum = positive_regrets.sum()

    if regret_sum > 0.0:
        return positive_regrets / regret_sum

    return np.full(num_actions, 1.0 / num_actions, dtype=np.float64)


def segmented_regret_matching(
    regrets: npt.NDArray[np.float64],
    offsets: npt.NDArray[np.int64],
) -> npt.NDArray[np.float64]:
    """Regret matching for many information sets stored back to back.

    Information set i owns regrets[offsets[i]:offsets[i + 1]]; every segment
    must be non-empty. Each segment is normalized exactly as regret_matching
    would normalize it on its own.

    Args:
        regrets: Concatenated cumulative regrets
        offsets: Segment boundaries, length num_infosets + 1

    Returns:
        Concatenated strategies, same shape as regrets
    """
    positive_regrets = np.maximum(regrets, 0.0)
    counts = np.diff(offsets)
    segment_ids = np.repeat(np.arange(len(counts)), counts)

    regret_sums = np.add.reduceat(positive_regrets, offsets[:-1])[segment_ids]
    uniform = 1.0 / counts[segment_ids]

    safe_sums = np.where(regret_sums > 0.0, regret_sums, 1.0)
    return np.where(regret_sums > 0.0, positive_regrets / safe_sums, uniform)


def sample_action(strategy: npt.NDArray[np.float64], rng: np.random.Generator) -> int:
    """Sample an action according to a strategy.

    Args:
        strategy: Probability distribution over actions
        rng: NumPy random number generator

    Returns:
        Sampled action index
    """
    # Renormalize to absorb floating point drift before handing to rng.choice
    strategy_sum = strategy.sum()
    if strategy_sum > 0:
        normalized_strategy = strategy / strategy_sum
    else:
        normalized_strategy = np.ones_like(strategy) / len(strategy)

    return int(rng.choice(len(normalized_strategy), p=normalized_strategy))
