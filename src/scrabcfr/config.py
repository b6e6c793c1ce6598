"""Configuration system for reproducible CFR training runs.

Dataclass sections serialized to and from YAML.
"""

from __future__ import annotations

from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Literal, Any
import yaml

GAME_NAMES = ("tictactoe",)
ALGORITHM_NAMES = ("vanilla_graph", "vanilla", "outcome_sampling")


@dataclass
class GameConfig:
    """Game selection and parameters."""

    name: Literal["tictactoe"] = "tictactoe"
    board_dim: int = 3

    def __post_init__(self):
        if self.name not in GAME_NAMES:
            raise ValueError(f"Unknown game: {self.name!r} (expected one of {GAME_NAMES})")
        if self.board_dim < 1:
            raise ValueError(f"board_dim must be positive, got {self.board_dim}")


@dataclass
class TrainingConfig:
    """Training loop settings."""

    iterations: int = 10000
    log_every: int = 1000  # Log progress every N iterations
    eval_every: int = 2000  # Evaluate the average strategy every N iterations (0 = only at the end)
    eval_games: int = 200  # Games per head-to-head evaluation
    checkpoint_every: int = 0  # Save the store every N iterations (0 = only at the end)
    checkpoint_path: str | None = None  # No checkpoints if None

    def __post_init__(self):
        if self.iterations <= 0:
            raise ValueError(f"iterations must be positive, got {self.iterations}")
        for name in ("log_every", "eval_every", "eval_games", "checkpoint_every"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative, got {getattr(self, name)}")


@dataclass
class AlgorithmConfig:
    """CFR algorithm variant configuration."""

    name: Literal["vanilla_graph", "vanilla", "outcome_sampling"] = "vanilla_graph"
    epsilon: float = 0.6  # Exploration for outcome sampling

    def __post_init__(self):
        if self.name not in ALGORITHM_NAMES:
            raise ValueError(f"Unknown algorithm: {self.name!r} (expected one of {ALGORITHM_NAMES})")
        if not 0.0 < self.epsilon <= 1.0:
            raise ValueError(f"epsilon must be in (0, 1], got {self.epsilon}")


@dataclass
class ScrabCFRConfig:
    """Complete configuration for a CFR training run.

    Example:
        >>> config = ScrabCFRConfig(
        ...     game=GameConfig(name="tictactoe"),
        ...     algorithm=AlgorithmConfig(name="outcome_sampling", epsilon=0.6)
        ... )
        >>> config.to_yaml("experiment.yaml")
        >>> loaded = ScrabCFRConfig.from_yaml("experiment.yaml")
    """

    game: GameConfig = field(default_factory=GameConfig)
    training: TrainingConfig = field(default_factory=TrainingConfig)
    algorithm: AlgorithmConfig = field(default_factory=AlgorithmConfig)

    # Experiment metadata
    name: str = "default_experiment"
    seed: int = 42

    @classmethod
    def from_yaml(cls, path: str | Path) -> ScrabCFRConfig:
        """Load configuration from YAML file.

        Args:
            path: Path to YAML configuration file.

        Returns:
            ScrabCFRConfig instance.

        Raises:
            FileNotFoundError: If path does not exist.
            yaml.YAMLError: If file is not valid YAML.
            ValueError: If a setting is invalid.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ScrabCFRConfig:
        """Build a configuration from nested dictionaries (as produced by to_dict)."""
        game = GameConfig(**data.get("game", {}))
        training = TrainingConfig(**data.get("training", {}))
        algorithm = AlgorithmConfig(**data.get("algorithm", {}))

        metadata = {k: v for k, v in data.items() if k not in ["game", "training", "algorithm"]}

        return cls(game=game, training=training, algorithm=algorithm, **metadata)

    def to_yaml(self, path: str | Path) -> None:
        """Save configuration to YAML file.

        Args:
            path: Destination path for YAML file.
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)

    def to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary."""
        return {
            "name": self.name,
            "seed": self.seed,
            "game": asdict(self.game),
            "training": asdict(self.training),
            "algorithm": asdict(self.algorithm),
        }

    def __repr__(self) -> str:
        """Human-readable representation."""
        return (
            f"ScrabCFRConfig(name='{self.name}', "
            f"game={self.game.name}, "
            f"algo={self.algorithm.name}, "
            f"iters={self.training.iterations})"
        )


# Preset configurations for common experiments
def tictactoe_vanilla_config() -> ScrabCFRConfig:
    """Full tic-tac-toe with vanilla CFR over the game graph."""
    return ScrabCFRConfig(
        name="tictactoe_vanilla",
        game=GameConfig(name="tictactoe", board_dim=3),
        training=TrainingConfig(iterations=10000, log_every=1000, eval_every=2000, eval_games=200),
        algorithm=AlgorithmConfig(name="vanilla_graph"),
    )


def tictactoe_outcome_sampling_config() -> ScrabCFRConfig:
    """Full tic-tac-toe with outcome-sampling MCCFR.

    Sampled passes are far cheaper than full passes but each visits only one
    trajectory, so many more iterations are needed.
    """
    return ScrabCFRConfig(
        name="tictactoe_outcome_sampling",
        game=GameConfig(name="tictactoe", board_dim=3),
        training=TrainingConfig(iterations=200000, log_every=10000, eval_every=50000, eval_games=200),
        algorithm=AlgorithmConfig(name="outcome_sampling", epsilon=0.6),
    )
