"""Exploitability of average strategies in two-player zero-sum games.

Exploitability = (BR_0 + BR_1) / 2, where BR_p is the value player p gets
with a best response against the other player's policy. It is zero exactly
at a Nash equilibrium.

In perfect-information games a best response can pick its action state by
state, so the computation is a single memoized recursion over states. For
imperfect-information games (Scrabble) the best response would have to be
consistent across information sets; this module refuses those games.
"""

from __future__ import annotations

import logging
from typing import Any, Hashable

from scrabcfr.cfr.store import InformationSetStore
from scrabcfr.games.base import Game

logger = logging.getLogger(__name__)

Policy = dict[str, dict[Hashable, float]]


def average_policy(store: InformationSetStore) -> Policy:
    """Average strategy of every information set in the store."""
    return store.all_average_strategies()


def _check_supported(game: Game) -> None:
    if game.num_players != 2:
        raise ValueError(f"Exploitability needs a two-player game, got {game.num_players} players")
    if not game.perfect_information:
        raise ValueError("Exploitability is only implemented for perfect-information games")


def best_response_value(game: Game, policy: Policy, player: int, root: Any = None) -> float:
    """Value of a best response for player against policy.

    Information sets missing from the policy are played uniformly.

    Args:
        game: Two-player zero-sum perfect-information game
        policy: information set key -> {action: probability}
        player: The best-responding player
        root: State to evaluate from (the initial state by default)

    Returns:
        Best-response value for player
    """
    _check_supported(game)
    if root is None:
        root = game.initial_state()
    cache: dict[Any, float] = {}

    def value(state: Any) -> float:
        if game.is_terminal(state):
            return game.utility(state, player)
        cached = cache.get(state)
        if cached is not None:
            return cached

        acting = game.acting_player(state)
        legal = game.legal_actions(state)
        if acting == player:
            result = max(value(game.apply(state, a)) for a in legal)
        else:
            probs = policy.get(game.information_set_key(state, acting))
            if probs is None or any(a not in probs for a in legal):
                probs = {a: 1.0 / len(legal) for a in legal}
            result = sum(
                probs[a] * value(game.apply(state, a)) for a in legal if probs[a] > 0.0
            )
        cache[state] = result
        return result

    return value(root)


def compute_exploitability(game: Game, policy: Policy, root: Any = None) -> float:
    """Exploitability of a policy profile.

    Args:
        game: Two-player zero-sum perfect-information game
        policy: information set key -> {action: probability}, for both players
        root: State to evaluate from (the initial state by default)

    Returns:
        Mean best-response value over both players (>= 0 up to rounding
        when the game value from root is zero)
    """
    values = [best_response_value(game, policy, p, root) for p in range(2)]
    exploitability = sum(values) / 2.0
    logger.debug(f"Best responses: {values}, exploitability {exploitability:.6f}")
    return exploitability
