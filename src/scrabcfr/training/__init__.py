"""Training driver for the CFR solvers."""

from scrabcfr.training.trainer import (
    CFRTrainer,
    TrainingMetrics,
    build_trainer,
    create_game,
    create_solver,
)

__all__ = ["CFRTrainer", "TrainingMetrics", "build_trainer", "create_game", "create_solver"]
