"""Outcome-sampling Monte Carlo CFR.

Each pass samples a single trajectory from the root to a terminal state.
At the update player's nodes actions are drawn from the exploration policy

    q(a) = epsilon / |A| + (1 - epsilon) * sigma(a)

and elsewhere from sigma itself. The sampled value is importance weighted by
the sampling probability, which keeps the counterfactual value estimates
unbiased. Average strategies are updated with "simple" averaging at the
nodes of the player who acts after the update player.

Reference:
- Lanctot et al. (2009): "Monte Carlo Sampling for Regret Minimization in
  Extensive Games"
"""

from __future__ import annotations

import logging
from typing import Any, Hashable

import numpy as np

from scrabcfr.cfr.regret_matching import sample_action
from scrabcfr.cfr.store import InformationSetStore
from scrabcfr.games.base import Game

logger = logging.getLogger(__name__)

DEFAULT_EPSILON = 0.6


class OutcomeSamplingCFR:
    """Outcome-sampling MCCFR solver.

    All randomness comes from one numpy Generator seeded at construction, so
    two solvers with the same seed, game and store produce identical stores.

    Attributes:
        game: Game rules
        store: Regret and strategy statistics (created if not given)
        root: State every pass starts from (the initial state by default)
        epsilon: Exploration weight of the update player's sampling policy
        iteration: Number of completed iterations
        rng: Random number generator for sampling
    """

    def __init__(
        self,
        game: Game,
        store: InformationSetStore | None = None,
        root: Any = None,
        epsilon: float = DEFAULT_EPSILON,
        seed: int | None = 42,
    ):
        if not 0.0 < epsilon <= 1.0:
            raise ValueError(f"epsilon must be in (0, 1], got {epsilon}")

        self.game = game
        self.store = store if store is not None else InformationSetStore()
        self.root = root if root is not None else game.initial_state()
        self.epsilon = epsilon
        self.seed = seed
        self.rng = np.random.default_rng(seed)
        self.iteration = 0

        if game.is_terminal(self.root):
            raise ValueError("Cannot run CFR from a terminal state")

    def traverse(
        self,
        state: Any,
        update_player: int,
        my_reach: float,
        opp_reach: float,
        sample_reach: float,
    ) -> float:
        """Sample one trajectory below state and update the store along it.

        Args:
            state: Current game state
            update_player: The player whose regrets are updated on this pass
            my_reach: update_player's own reach probability
            opp_reach: Reach probability of all other players
            sample_reach: Probability that the sampling policy reached this state

        Returns:
            Sampled (importance weighted) value for update_player at this state
        """
        game = self.game
        if game.is_terminal(state):
            return game.utility(state, update_player)

        player = game.acting_player(state)
        key = game.information_set_key(state, player)
        entry = self.store.get_or_create(key, game.legal_actions(state))
        actions = entry.actions
        num_actions = len(actions)
        strategy = entry.current_strategy()

        if player == update_player:
            sample_policy = self.epsilon / num_actions + (1.0 - self.epsilon) * strategy
        else:
            sample_policy = strategy

        idx = sample_action(sample_policy, self.rng)
        next_state = game.apply(state, actions[idx])
        next_sample_reach = sample_reach * sample_policy[idx]

        if player == update_player:
            child_value = self.traverse(
                next_state, update_player, my_reach * strategy[idx], opp_reach, next_sample_reach
            )
        else:
            child_value = self.traverse(
                next_state, update_player, my_reach, opp_reach * strategy[idx], next_sample_reach
            )

        # Unsampled actions keep an estimate of zero
        child_values = np.zeros(num_actions, dtype=np.float64)
        child_values[idx] = child_value / sample_policy[idx]
        value_estimate = float(np.dot(strategy, child_values))

        if player == update_player:
            weight = opp_reach / sample_reach
            self.store.accumulate_regrets(key, weight * (child_values - value_estimate))
        elif player == (update_player + 1) % game.num_players:
            self.store.accumulate_strategies(key, (opp_reach / sample_reach) * strategy)

        return value_estimate

    def run_iteration(self) -> list[float]:
        """Run one iteration (one sampled pass per player).

        Returns:
            Sampled root value estimate for each player
        """
        values = [
            self.traverse(self.root, player, 1.0, 1.0, 1.0)
            for player in range(self.game.num_players)
        ]
        self.iteration += 1
        logger.debug(f"Iteration {self.iteration}: sampled root values {values}")
        return values

    def train(self, num_iterations: int) -> list[float]:
        """Run several iterations, returning the last iteration's root estimates."""
        values: list[float] = []
        for _ in range(num_iterations):
            values = self.run_iteration()
        return values

    def get_average_strategy(self, key: str) -> dict[Hashable, float]:
        return self.store.average_strategy(key)

    def get_all_average_strategies(self) -> dict[str, dict[Hashable, float]]:
        return self.store.all_average_strategies()
