#!/usr/bin/env python3
"""Training script for tic-tac-toe with tabular CFR.

Trains vanilla CFR (or outcome-sampling MCCFR) on tic-tac-toe, logs
exploitability and win rates against a random bot, writes the evaluation
history to CSV and saves the trained strategy.

Example usage:
    python scripts/train.py --iterations 10000 --output ttt_strategy.npz
    python scripts/train.py --config configs/tictactoe_os.yaml
    python scripts/train.py --algorithm outcome_sampling --iterations 200000 --resume ttt_os.npz
"""

import argparse
import csv
import logging
from pathlib import Path

from scrabcfr.cfr.store import InformationSetStore
from scrabcfr.config import (
    AlgorithmConfig,
    ScrabCFRConfig,
    tictactoe_outcome_sampling_config,
    tictactoe_vanilla_config,
)
from scrabcfr.training.trainer import build_trainer


def build_config(args: argparse.Namespace) -> ScrabCFRConfig:
    if args.config:
        config = ScrabCFRConfig.from_yaml(args.config)
    elif args.algorithm == "outcome_sampling":
        config = tictactoe_outcome_sampling_config()
    else:
        config = tictactoe_vanilla_config()
        config.algorithm = AlgorithmConfig(name=args.algorithm)

    # Command line overrides
    if args.iterations is not None:
        config.training.iterations = args.iterations
    if args.log_every is not None:
        config.training.log_every = args.log_every
    if args.eval_every is not None:
        config.training.eval_every = args.eval_every
    if args.seed is not None:
        config.seed = args.seed
    if args.checkpoint_every is not None:
        config.training.checkpoint_every = args.checkpoint_every
    config.training.checkpoint_path = args.output

    # Re-run validation after overrides
    return ScrabCFRConfig.from_dict(config.to_dict())


def main():
    parser = argparse.ArgumentParser(description="Train CFR on tic-tac-toe")
    parser.add_argument("--config", type=str, default=None, help="YAML experiment config")
    parser.add_argument(
        "--algorithm",
        choices=["vanilla_graph", "vanilla", "outcome_sampling"],
        default="vanilla_graph",
        help="CFR variant when no config is given (default: vanilla_graph)",
    )
    parser.add_argument("--iterations", type=int, default=None, help="Number of CFR iterations to run")
    parser.add_argument("--log-every", type=int, default=None, help="Log progress every N iterations")
    parser.add_argument("--eval-every", type=int, default=None, help="Evaluate every N iterations")
    parser.add_argument("--checkpoint-every", type=int, default=None, help="Save the store every N iterations")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for reproducibility")
    parser.add_argument(
        "--output",
        type=str,
        default="ttt_strategy.npz",
        help="Output strategy file (default: ttt_strategy.npz)",
    )
    parser.add_argument("--resume", type=str, default=None, help="Continue training from a saved strategy")
    parser.add_argument("--metrics", type=str, default=None, help="Output CSV file for evaluation metrics")
    parser.add_argument("--verbose", action="store_true", help="Log per-iteration details")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = build_config(args)
    store = InformationSetStore.load(args.resume) if args.resume else None

    print(f"scrabcfr: tic-tac-toe CFR training")
    print(f"=" * 60)
    print(f"Config: {config!r}")
    print(f"Output file: {args.output}")
    print(f"=" * 60)
    print()

    trainer = build_trainer(config, store)
    history = trainer.train()

    if args.metrics:
        with open(Path(args.metrics), "w", newline="") as csv_file:
            csv_writer = csv.DictWriter(
                csv_file,
                fieldnames=["iteration", "exploitability", "win_rate", "draw_rate", "loss_rate", "elapsed_time"],
            )
            csv_writer.writeheader()
            for m in history:
                csv_writer.writerow({
                    "iteration": m.iteration,
                    "exploitability": m.exploitability,
                    "win_rate": m.vs_random.win_rate if m.vs_random else None,
                    "draw_rate": m.vs_random.draw_rate if m.vs_random else None,
                    "loss_rate": m.vs_random.loss_rate if m.vs_random else None,
                    "elapsed_time": m.elapsed_seconds,
                })

    final = history[-1]
    print()
    print(f"=" * 60)
    print(f"Training complete!")
    if final.exploitability is not None:
        print(f"Final exploitability: {final.exploitability:.6f}")
    if final.vs_random is not None:
        print(f"Versus random: {final.vs_random}")
    print(f"Information sets: {final.num_infosets}")
    print(f"Strategy saved to: {args.output}")
    print()

    # Opening move of the average strategy
    opening = "-" * (config.game.board_dim ** 2)
    if opening in trainer.store:
        print("Opening strategy (Average):")
        print("-" * 60)
        probs = trainer.store.average_strategy(opening)
        dim = config.game.board_dim
        for row in range(dim):
            print("  " + " ".join(f"{probs.get(row * dim + col, 0.0):.3f}" for col in range(dim)))
    print(f"=" * 60)


if __name__ == "__main__":
    main()
