"""Baseline bots for benchmarking learned strategies.

These agents provide baselines to evaluate CFR strategies in head-to-head play:
- RandomBot: Uniform random policy over the legal actions
- StrategyBot: Plays a trained average strategy (sampled or greedy)

Used for evaluation on games where exact exploitability is computationally
infeasible (e.g., Scrabble).
"""

import random
from typing import Any, Hashable, Optional

import numpy as np

from scrabcfr.games.base import Game


class BaselineBot:
    """Base class for baseline bots."""

    def get_action(self, game: Game, state: Any) -> Hashable:
        """Get action for current state.

        Args:
            game: Game rules
            state: Current (non-terminal) game state

        Returns:
            One of game.legal_actions(state)
        """
        raise NotImplementedError


class RandomBot(BaselineBot):
    """Bot that picks a uniformly random legal action.

    This is the weakest baseline - any learned strategy should easily beat it.

    Example:
        bot = RandomBot(seed=0)
        action = bot.get_action(game, state)  # Random legal action
    """

    def __init__(self, seed: Optional[int] = None):
        """Initialize RandomBot.

        Args:
            seed: Random seed for reproducibility (optional)
        """
        self.rng = random.Random(seed)

    def get_action(self, game: Game, state: Any) -> Hashable:
        legal = game.legal_actions(state)
        if not legal:
            raise ValueError("No legal actions available")
        return self.rng.choice(legal)

    def __repr__(self) -> str:
        return "RandomBot()"


class StrategyBot(BaselineBot):
    """Bot that plays from a table of average strategies.

    Information sets missing from the table (never visited in training) are
    played uniformly at random. Actions the table does not know get
    probability zero.

    Example:
        bot = StrategyBot(store.all_average_strategies(), greedy=True)
        action = bot.get_action(game, state)
    """

    def __init__(
        self,
        strategies: dict[str, dict[Hashable, float]],
        greedy: bool = False,
        seed: Optional[int] = None,
    ):
        """Initialize StrategyBot.

        Args:
            strategies: information set key -> {action: probability}
            greedy: Always play the most likely action instead of sampling
            seed: Random seed for sampling (optional)
        """
        self.strategies = strategies
        self.greedy = greedy
        self.rng = np.random.default_rng(seed)

    def action_probabilities(self, game: Game, state: Any) -> tuple[list[Hashable], np.ndarray]:
        """Legal actions of state and the bot's probability for each."""
        legal = list(game.legal_actions(state))
        if not legal:
            raise ValueError("No legal actions available")

        key = game.information_set_key(state, game.acting_player(state))
        table = self.strategies.get(key)
        if table is None:
            return legal, np.full(len(legal), 1.0 / len(legal))

        probs = np.array([table.get(action, 0.0) for action in legal], dtype=np.float64)
        total = probs.sum()
        if total <= 0.0:
            return legal, np.full(len(legal), 1.0 / len(legal))
        return legal, probs / total

    def get_action(self, game: Game, state: Any) -> Hashable:
        legal, probs = self.action_probabilities(game, state)
        if self.greedy:
            # Ties go to the first legal action
            return legal[int(np.argmax(probs))]
        return legal[int(self.rng.choice(len(legal), p=probs))]

    def __repr__(self) -> str:
        return f"StrategyBot(infosets={len(self.strategies)}, greedy={self.greedy})"
