"""Training driver for tabular CFR solvers.

Runs a solver for a fixed number of iterations, logging progress, evaluating
the average strategy periodically (exploitability where it is computable,
head-to-head against a random bot otherwise as well) and checkpointing the
information set store.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Optional, Protocol, Any, Hashable

from scrabcfr.baselines import RandomBot, StrategyBot
from scrabcfr.cfr.outcome_sampling import OutcomeSamplingCFR
from scrabcfr.cfr.store import InformationSetStore
from scrabcfr.cfr.vanilla import VanillaCFR
from scrabcfr.cfr.vanilla_graph import VanillaGraphCFR
from scrabcfr.config import AlgorithmConfig, GameConfig, ScrabCFRConfig, TrainingConfig
from scrabcfr.games.base import Game
from scrabcfr.games.tictactoe import new_tictactoe_game
from scrabcfr.metrics.evaluator import HeadToHeadEvaluator, MatchResult
from scrabcfr.metrics.exploitability import compute_exploitability

logger = logging.getLogger(__name__)


class Solver(Protocol):
    """Protocol shared by the CFR solvers (duck typing)."""

    game: Game
    store: InformationSetStore
    iteration: int

    @property
    def root(self) -> Any: ...
    def run_iteration(self) -> list[float]: ...
    def get_all_average_strategies(self) -> dict[str, dict[Hashable, float]]: ...


@dataclass
class TrainingMetrics:
    """Snapshot of a training run at one iteration.

    Attributes:
        iteration: Completed iterations
        elapsed_seconds: Wall-clock time since training started
        num_infosets: Information sets in the store
        root_values: Root values (or sampled estimates) of the last iteration
        exploitability: Exploitability of the average strategy, if computed
        vs_random: Greedy average strategy against RandomBot, if evaluated
    """

    iteration: int
    elapsed_seconds: float
    num_infosets: int
    root_values: list[float] = field(default_factory=list)
    exploitability: Optional[float] = None
    vs_random: Optional[MatchResult] = None


class CFRTrainer:
    """Runs a CFR solver and evaluates its average strategy.

    Example:
        game = new_tictactoe_game()
        trainer = CFRTrainer(game, VanillaGraphCFR(game), TrainingConfig(iterations=1000))
        history = trainer.train()
        trainer.store.save("ttt_strategy.npz")
    """

    def __init__(self, game: Game, solver: Solver, config: Optional[TrainingConfig] = None, seed: int = 42):
        """Initialize trainer.

        Args:
            game: Game rules
            solver: Solver to run (owns the store being trained)
            config: Training loop settings (defaults if None)
            seed: Seed for evaluation games
        """
        self.game = game
        self.solver = solver
        self.config = config if config is not None else TrainingConfig()
        self.seed = seed
        self.history: list[TrainingMetrics] = []

    @property
    def store(self) -> InformationSetStore:
        return self.solver.store

    def average_strategies(self) -> dict[str, dict[Hashable, float]]:
        return self.solver.get_all_average_strategies()

    def evaluate(self, root_values: Optional[list[float]] = None, elapsed_seconds: float = 0.0) -> TrainingMetrics:
        """Evaluate the current average strategy.

        Exploitability is computed for two-player perfect-information games;
        the head-to-head match runs whenever eval_games > 0.
        """
        policy = self.average_strategies()

        exploitability = None
        if self.game.num_players == 2 and self.game.perfect_information:
            exploitability = compute_exploitability(self.game, policy, self.solver.root)

        vs_random = None
        if self.config.eval_games > 0:
            evaluator = HeadToHeadEvaluator(self.game, self.solver.root)
            agent = StrategyBot(policy, greedy=True, seed=self.seed)
            vs_random = evaluator.evaluate(agent, RandomBot(seed=self.seed), self.config.eval_games)

        metrics = TrainingMetrics(
            iteration=self.solver.iteration,
            elapsed_seconds=elapsed_seconds,
            num_infosets=len(self.store),
            root_values=list(root_values or []),
            exploitability=exploitability,
            vs_random=vs_random,
        )

        message = f"Eval at iteration {metrics.iteration}:"
        if exploitability is not None:
            message += f" exploitability={exploitability:.6f}"
        if vs_random is not None:
            message += (
                f" vs random W/D/L={vs_random.wins}/{vs_random.draws}/{vs_random.losses}"
                f" ({vs_random.win_rate:.1%} wins)"
            )
        logger.info(message)
        return metrics

    def save_checkpoint(self) -> None:
        if self.config.checkpoint_path is None:
            return
        self.store.save(self.config.checkpoint_path)

    def train(self, callback: Optional[Callable[[TrainingMetrics], None]] = None) -> list[TrainingMetrics]:
        """Run the configured number of iterations.

        Args:
            callback: Called with every evaluation snapshot

        Returns:
            Evaluation snapshots, the last one taken after the final iteration

        Raises:
            GameError: If the game model rejects a traversal step
            InconsistentInformationSetError: If information set keys collide

        Any exception from an iteration is logged with the failing iteration
        number and re-raised.
        """
        cfg = self.config
        start = time.perf_counter()
        root_values: list[float] = []
        logger.info(
            f"Training {type(self.solver).__name__} for {cfg.iterations} iterations "
            f"(starting at iteration {self.solver.iteration})"
        )

        for i in range(1, cfg.iterations + 1):
            try:
                root_values = self.solver.run_iteration()
            except Exception as e:
                logger.exception(f"Traversal failed at iteration {self.solver.iteration + 1}: {e}")
                raise

            if cfg.log_every and i % cfg.log_every == 0:
                elapsed = time.perf_counter() - start
                values = ", ".join(f"{v:+.4f}" for v in root_values)
                logger.info(
                    f"Iteration {self.solver.iteration}: root values [{values}], "
                    f"{len(self.store)} infosets, {elapsed:.1f}s"
                )

            if cfg.checkpoint_every and i % cfg.checkpoint_every == 0 and i < cfg.iterations:
                self.save_checkpoint()

            if (cfg.eval_every and i % cfg.eval_every == 0) or i == cfg.iterations:
                snapshot = self.evaluate(root_values, time.perf_counter() - start)
                self.history.append(snapshot)
                if callback is not None:
                    callback(snapshot)

        self.save_checkpoint()
        logger.info(f"Training completed in {time.perf_counter() - start:.1f}s")
        return self.history


def create_game(config: GameConfig) -> Game:
    """Create the game named by a GameConfig."""
    if config.name == "tictactoe":
        return new_tictactoe_game(config.board_dim)
    raise ValueError(f"Unknown game: {config.name}")


def create_solver(
    game: Game,
    config: AlgorithmConfig,
    seed: int = 42,
    store: Optional[InformationSetStore] = None,
) -> Solver:
    """Create the solver named by an AlgorithmConfig."""
    if config.name == "vanilla_graph":
        logger.info("Using vanilla CFR over the game graph")
        return VanillaGraphCFR(game, store)
    if config.name == "vanilla":
        logger.info("Using recursive vanilla CFR")
        return VanillaCFR(game, store)
    if config.name == "outcome_sampling":
        logger.info(f"Using outcome-sampling MCCFR (epsilon={config.epsilon}, seed={seed})")
        return OutcomeSamplingCFR(game, store, epsilon=config.epsilon, seed=seed)
    raise ValueError(f"Unknown algorithm: {config.name}")


def build_trainer(config: ScrabCFRConfig, store: Optional[InformationSetStore] = None) -> CFRTrainer:
    """Create game, solver and trainer from a complete configuration.

    Args:
        config: Experiment configuration
        store: Store to continue training (a new store if None)
    """
    logger.info(f"Building trainer: {config!r}")
    game = create_game(config.game)
    solver = create_solver(game, config.algorithm, config.seed, store)
    return CFRTrainer(game, solver, config.training, seed=config.seed)
