"""Tic-tac-toe implementation.

Tic-tac-toe is the sanity-check game for the CFR engine: it is small enough
to solve exactly, its optimal value is a draw, and its information sets
coincide with board positions (perfect information).

Rules:
- Two players, X (player 0) moves first, then O (player 1)
- An action places the mover's mark on an empty cell (row-major index)
- A player wins by filling a whole row, column or diagonal
- The game is drawn when the board is full with no winner
- Utilities: +1 win, -1 loss, 0 draw

The board dimension is configurable; 3 is the standard game.
"""

from dataclasses import dataclass
from math import isqrt

from scrabcfr.games.base import (
    IllegalActionError,
    TerminalStateError,
    UndefinedUtilityError,
)


# Cell constants
EMPTY = 0
CROSS = 1
NOUGHT = 2
CELL_CHARS = "-XO"


@dataclass(frozen=True)
class TicTacToeState:
    """Tic-tac-toe position (immutable).

    Attributes:
        board: Row-major cells, each EMPTY, CROSS or NOUGHT
        player: Player to move (0 plays CROSS, 1 plays NOUGHT)
    """

    board: tuple[int, ...] = (EMPTY,) * 9
    player: int = 0

    @property
    def board_dim(self) -> int:
        return isqrt(len(self.board))

    def __str__(self) -> str:
        """Human-readable board with the cell index guide next to it."""
        dim = self.board_dim
        lines = []
        for row in range(dim):
            cells = " ".join(CELL_CHARS[c] for c in self.board[row * dim : (row + 1) * dim])
            guide = " ".join(str(row * dim + col) for col in range(dim))
            lines.append(f"{cells}\t{guide}")
        return "\n".join(lines)


class TicTacToe:
    """Rules for tic-tac-toe on a board_dim x board_dim board."""

    num_players = 2
    perfect_information = True

    def __init__(self, board_dim: int = 3):
        if board_dim < 1:
            raise ValueError(f"Board dimension must be positive, got {board_dim}")
        self.board_dim = board_dim
        self.num_cells = board_dim * board_dim
        self.lines = self._build_lines(board_dim)

    @staticmethod
    def _build_lines(dim: int) -> tuple[tuple[int, ...], ...]:
        """All rows, columns and both diagonals as tuples of cell indices."""
        rows = [tuple(r * dim + c for c in range(dim)) for r in range(dim)]
        cols = [tuple(r * dim + c for r in range(dim)) for c in range(dim)]
        diagonals = [
            tuple(i * dim + i for i in range(dim)),
            tuple(i * dim + (dim - 1 - i) for i in range(dim)),
        ]
        return tuple(rows + cols + diagonals)

    def initial_state(self) -> TicTacToeState:
        return TicTacToeState(board=(EMPTY,) * self.num_cells, player=0)

    def state_from_string(self, cells: str, player: int | None = None) -> TicTacToeState:
        """Build a state from a row-major string such as "XO--X----".

        If player is omitted it is inferred from the mark counts.
        """
        if len(cells) != self.num_cells:
            raise ValueError(f"Expected {self.num_cells} cells, got {len(cells)}")
        try:
            board = tuple(CELL_CHARS.index(c) for c in cells.upper())
        except ValueError:
            raise ValueError(f"Invalid board string: {cells!r}") from None
        if player is None:
            player = 0 if board.count(CROSS) == board.count(NOUGHT) else 1
        return TicTacToeState(board=board, player=player)

    def winner(self, state: TicTacToeState) -> int | None:
        """Get the winning player, or None if no line is complete."""
        board = state.board
        for line in self.lines:
            first = board[line[0]]
            if first != EMPTY and all(board[i] == first for i in line):
                return first - 1
        return None

    def is_full(self, state: TicTacToeState) -> bool:
        return EMPTY not in state.board

    def is_terminal(self, state: TicTacToeState) -> bool:
        return self.winner(state) is not None or self.is_full(state)

    def legal_actions(self, state: TicTacToeState) -> list[int]:
        if self.is_terminal(state):
            return []
        return [i for i, cell in enumerate(state.board) if cell == EMPTY]

    def apply(self, state: TicTacToeState, action: int) -> TicTacToeState:
        if self.is_terminal(state):
            raise IllegalActionError(f"Cannot apply action {action} to terminal state")
        if action not in range(self.num_cells):
            raise IllegalActionError(f"Invalid cell index: {action!r}")
        if state.board[action] != EMPTY:
            raise IllegalActionError(f"Cell {action} is already occupied")

        board = list(state.board)
        board[int(action)] = state.player + 1
        return TicTacToeState(board=tuple(board), player=1 - state.player)

    def utility(self, state: TicTacToeState, player: int) -> float:
        if not self.is_terminal(state):
            raise UndefinedUtilityError("Cannot get utility of non-terminal state")
        winner = self.winner(state)
        if winner is None:
            return 0.0
        return 1.0 if winner == player else -1.0

    def acting_player(self, state: TicTacToeState) -> int:
        if self.is_terminal(state):
            raise TerminalStateError("Terminal state has no acting player")
        return state.player

    def information_set_key(self, state: TicTacToeState, player: int) -> str:
        """One character per cell, row-major ("X", "O" or "-").

        The position to move is implied by the mark counts, so the board
        alone identifies the information set for either player.
        """
        return "".join(CELL_CHARS[c] for c in state.board)


def new_tictactoe_game(board_dim: int = 3) -> TicTacToe:
    """Create tic-tac-toe rules for the given board dimension."""
    return TicTacToe(board_dim)
