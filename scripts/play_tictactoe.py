#!/usr/bin/env python3
"""Play tic-tac-toe against a trained CFR strategy.

Example usage:
    python scripts/play_tictactoe.py ttt_strategy.npz
    python scripts/play_tictactoe.py ttt_strategy.npz --human-player 1 --sample
"""

import argparse

from scrabcfr.baselines import StrategyBot
from scrabcfr.cfr.store import InformationSetStore
from scrabcfr.games.base import IllegalActionError
from scrabcfr.games.tictactoe import CELL_CHARS, TicTacToe


def read_move(game: TicTacToe, state) -> int:
    while True:
        text = input("Your move (cell index): ").strip()
        try:
            action = int(text)
            game.apply(state, action)
            return action
        except IllegalActionError as e:
            print(f"Illegal move: {e}")
        except ValueError:
            print(f"Not a cell index: {text!r}")


def main():
    parser = argparse.ArgumentParser(description="Play tic-tac-toe against a trained strategy")
    parser.add_argument("strategy", type=str, help="Strategy file written by scripts/train.py")
    parser.add_argument("--human-player", type=int, choices=[0, 1], default=0, help="0 plays X (first), 1 plays O")
    parser.add_argument("--sample", action="store_true", help="Sample bot moves instead of playing greedily")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for sampled bot moves")
    args = parser.parse_args()

    store = InformationSetStore.load(args.strategy)
    game = TicTacToe(board_dim=3)
    bot = StrategyBot(store.all_average_strategies(), greedy=not args.sample, seed=args.seed)

    state = game.initial_state()
    print(f"You are {CELL_CHARS[args.human_player + 1]}")
    while not game.is_terminal(state):
        print()
        print(state)
        if game.acting_player(state) == args.human_player:
            action = read_move(game, state)
        else:
            legal, probs = bot.action_probabilities(game, state)
            action = bot.get_action(game, state)
            shown = ", ".join(f"{a}:{p:.2f}" for a, p in zip(legal, probs) if p > 0.005)
            print(f"Bot plays {action}  ({shown})")
        state = game.apply(state, action)

    print()
    print(state)
    result = game.utility(state, args.human_player)
    print("You win!" if result > 0 else "You lose." if result < 0 else "Draw.")


if __name__ == "__main__":
    main()
