"""Head-to-head evaluation for learned strategies.

When exploitability is computationally infeasible (e.g., Scrabble), learned
strategies are evaluated by playing matches against baseline bots.

Metrics:
- Wins, draws and losses from the agent's point of view
- Mean utility per game and its standard error
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

import numpy as np

from scrabcfr.baselines import BaselineBot
from scrabcfr.games.base import Game

logger = logging.getLogger(__name__)


@dataclass
class MatchResult:
    """Results from head-to-head evaluation.

    Attributes:
        num_games: Number of games played
        wins: Games with positive agent utility
        draws: Games with zero agent utility
        losses: Games with negative agent utility
        mean_utility: Average agent utility per game
        std_error: Standard error of the mean utility
    """

    num_games: int
    wins: int
    draws: int
    losses: int
    mean_utility: float
    std_error: float

    @property
    def win_rate(self) -> float:
        return self.wins / self.num_games if self.num_games else 0.0

    @property
    def draw_rate(self) -> float:
        return self.draws / self.num_games if self.num_games else 0.0

    @property
    def loss_rate(self) -> float:
        return self.losses / self.num_games if self.num_games else 0.0

    def __str__(self) -> str:
        """Pretty print results."""
        return (
            f"MatchResult(\n"
            f"  Games: {self.num_games}\n"
            f"  W/D/L: {self.wins}/{self.draws}/{self.losses} "
            f"({self.win_rate:.1%} / {self.draw_rate:.1%} / {self.loss_rate:.1%})\n"
            f"  Mean utility: {self.mean_utility:+.3f} ± {1.96 * self.std_error:.3f}\n"
            f")"
        )


class HeadToHeadEvaluator:
    """Evaluator for playing head-to-head matches.

    The agent takes one seat and the opponent plays every other seat. Seats
    rotate from game to game so that no side keeps the first-move advantage.

    Example:
        evaluator = HeadToHeadEvaluator(TicTacToe())
        agent = StrategyBot(store.all_average_strategies(), greedy=True)

        result = evaluator.evaluate(agent, RandomBot(seed=0), num_games=1000)
        print(f"Win rate: {result.win_rate:.1%}")
    """

    def __init__(self, game: Game, initial_state: Optional[Any] = None):
        """Initialize evaluator.

        Args:
            game: Game rules
            initial_state: State every game starts from (a fresh
                game.initial_state() per game if None)
        """
        self.game = game
        self.initial_state = initial_state

    def play_game(self, agent: BaselineBot, opponent: BaselineBot, agent_seat: int = 0) -> float:
        """Play a single game.

        Args:
            agent: Bot under evaluation
            opponent: Bot playing all other seats
            agent_seat: Player index of the agent

        Returns:
            Agent utility at the end of the game
        """
        game = self.game
        state = self.initial_state if self.initial_state is not None else game.initial_state()

        while not game.is_terminal(state):
            current = game.acting_player(state)
            bot = agent if current == agent_seat else opponent
            state = game.apply(state, bot.get_action(game, state))

        return game.utility(state, agent_seat)

    def evaluate(
        self,
        agent: BaselineBot,
        opponent: BaselineBot,
        num_games: int = 1000,
        alternate_positions: bool = True,
    ) -> MatchResult:
        """Evaluate an agent against an opponent.

        Args:
            agent: Bot under evaluation
            opponent: Baseline bot to play against
            num_games: Number of games to play (default: 1000)
            alternate_positions: Rotate the agent's seat every game (default: True)

        Returns:
            MatchResult with statistics
        """
        if num_games <= 0:
            raise ValueError(f"num_games must be positive, got {num_games}")

        utilities = np.zeros(num_games, dtype=np.float64)
        for game_num in range(num_games):
            seat = game_num % self.game.num_players if alternate_positions else 0
            utilities[game_num] = self.play_game(agent, opponent, seat)

        result = MatchResult(
            num_games=num_games,
            wins=int((utilities > 0).sum()),
            draws=int((utilities == 0).sum()),
            losses=int((utilities < 0).sum()),
            mean_utility=float(utilities.mean()),
            std_error=float(utilities.std() / np.sqrt(num_games)),
        )
        logger.debug(f"{agent!r} vs {opponent!r}: {result.wins}/{result.draws}/{result.losses}")
        return result

    def evaluate_against_multiple(
        self,
        agent: BaselineBot,
        opponents: dict[str, BaselineBot],
        num_games: int = 1000,
    ) -> dict[str, MatchResult]:
        """Evaluate against multiple baseline bots.

        Returns:
            Dictionary of {name: MatchResult}
        """
        return {name: self.evaluate(agent, bot, num_games) for name, bot in opponents.items()}
