"""Game implementations for the CFR engine.

Available games:
- Tic-tac-toe: perfect-information sanity check (any board dimension)
- Scrabble: 15x15 word game with moves from a pluggable move generator
"""

from scrabcfr.games.base import (
    Game,
    GameError,
    IllegalActionError,
    TerminalStateError,
    UndefinedUtilityError,
)
from scrabcfr.games.scrabble import (
    PASS,
    MoveGenerator,
    Placement,
    ScrabbleGame,
    ScrabbleMove,
    ScrabbleState,
)
from scrabcfr.games.tictactoe import TicTacToe, TicTacToeState, new_tictactoe_game

__all__ = [
    "Game",
    "GameError",
    "IllegalActionError",
    "TerminalStateError",
    "UndefinedUtilityError",
    "PASS",
    "MoveGenerator",
    "Placement",
    "ScrabbleGame",
    "ScrabbleMove",
    "ScrabbleState",
    "TicTacToe",
    "TicTacToeState",
    "new_tictactoe_game",
]
