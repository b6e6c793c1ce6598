"""Vanilla CFR (Counterfactual Regret Minimization) implementation.

Textbook full-tree CFR over any Game: every action at every node is
evaluated on every pass, one pass per player per iteration. All passes of
an iteration play the same strategy profile (simultaneous updates).
Statistics are kept in an InformationSetStore.

This solver walks the game tree, so its cost per iteration is the size of
the tree below its root. For full tic-tac-toe use VanillaGraphCFR, which
performs the same update over the transposition-merged game graph.

Reference:
- Zinkevich et al. (2007): "Regret Minimization in Games with Incomplete Information"
"""

from __future__ import annotations

import logging
from typing import Any, Hashable

import numpy as np
import numpy.typing as npt

from scrabcfr.cfr.store import InformationSetStore, RegretTableEntry
from scrabcfr.games.base import Game

logger = logging.getLogger(__name__)


class VanillaCFR:
    """Vanilla CFR solver using a tabular information set store.

    Attributes:
        game: Game rules
        store: Regret and strategy statistics (created if not given)
        root: State every pass starts from (the initial state by default)
        iteration: Number of completed iterations
    """

    def __init__(self, game: Game, store: InformationSetStore | None = None, root: Any = None):
        """Initialize the CFR solver.

        Args:
            game: Game rules
            store: Store to update in place; a new empty store if None
            root: Optional non-terminal state to solve from
        """
        self.game = game
        self.store = store if store is not None else InformationSetStore()
        self.root = root if root is not None else game.initial_state()
        self.iteration = 0

        if game.is_terminal(self.root):
            raise ValueError("Cannot run CFR from a terminal state")

        # Strategy profile of the current iteration, fixed once per information set
        self._pass_strategies: dict[str, npt.NDArray[np.float64]] = {}

    def _entry_and_strategy(self, state: Any, player: int) -> tuple[RegretTableEntry, npt.NDArray[np.float64]]:
        key = self.game.information_set_key(state, player)
        entry = self.store.get_or_create(key, self.game.legal_actions(state))
        strategy = self._pass_strategies.get(key)
        if strategy is None:
            strategy = entry.current_strategy()
            self._pass_strategies[key] = strategy
        return entry, strategy

    def traverse(self, state: Any, update_player: int, reach: npt.NDArray[np.float64]) -> float:
        """Recursively traverse the game tree and update regrets.

        Args:
            state: Current game state
            update_player: The player whose regrets are updated on this pass
            reach: Probability that each player plays to this state

        Returns:
            Expected value for update_player at this state
        """
        game = self.game
        if game.is_terminal(state):
            return game.utility(state, update_player)

        player = game.acting_player(state)
        entry, strategy = self._entry_and_strategy(state, player)
        actions = entry.actions

        action_values = np.zeros(len(actions), dtype=np.float64)
        for i, action in enumerate(actions):
            child_reach = reach.copy()
            child_reach[player] *= strategy[i]
            action_values[i] = self.traverse(game.apply(state, action), update_player, child_reach)

        node_value = float(np.dot(strategy, action_values))

        if player == update_player:
            opponent_reach = float(np.prod(reach[:player]) * np.prod(reach[player + 1 :]))
            entry.regret_sum += opponent_reach * (action_values - node_value)
            entry.strategy_sum += reach[player] * strategy

        return node_value

    def run_iteration(self) -> list[float]:
        """Run one CFR iteration (one pass per player, same strategy profile).

        Returns:
            Root value for each player under the iteration's strategy profile
        """
        num_players = self.game.num_players
        values = []
        # Strategies are cached on first visit, before that node's update, so
        # keeping the cache across passes freezes the profile for the iteration
        self._pass_strategies.clear()
        for player in range(num_players):
            values.append(self.traverse(self.root, player, np.ones(num_players, dtype=np.float64)))
        self._pass_strategies.clear()
        self.iteration += 1
        logger.debug(f"Iteration {self.iteration}: root values {values}")
        return values

    def train(self, num_iterations: int) -> list[float]:
        """Run several iterations, returning the last iteration's root values."""
        values: list[float] = []
        for _ in range(num_iterations):
            values = self.run_iteration()
        return values

    def get_average_strategy(self, key: str) -> dict[Hashable, float]:
        """Average strategy for an information set (converges to equilibrium)."""
        return self.store.average_strategy(key)

    def get_all_average_strategies(self) -> dict[str, dict[Hashable, float]]:
        return self.store.all_average_strategies()
