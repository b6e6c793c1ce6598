"""Scrabble game model.

The rules object implements the Game protocol for Scrabble while leaving
move enumeration to an external MoveGenerator. The generator decides what
an action is at the word level (all dictionary plays, a compressed set of
candidate plays, one play per row/column/length bucket, ...); the game
validates the geometry of whatever it receives, scores it and advances the
position. This keeps the CFR engine independent of the action encoding.

Rules implemented:
- 15x15 board with the standard premium layout (centre square doubles the word)
- 100 tiles in the English distribution, two blanks (value 0)
- Racks of 7, refilled from the front of the bag after every play
- Scores count the main word and every cross word formed; premiums apply
  only under newly placed tiles; 50 point bonus for playing all 7 tiles
- Passing is always legal; tile exchanges are not modelled
- The game ends when the bag is empty and a player has emptied their rack,
  or after 2 * num_players consecutive scoreless turns
- Leftover tiles are subtracted from their holder and, if a player went
  out, added to that player

Information sets hide the opponents' racks and the order of the bag.
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable, Optional, Protocol, Sequence

import numpy as np

from scrabcfr.games.base import (
    IllegalActionError,
    TerminalStateError,
    UndefinedUtilityError,
)


BOARD_SIZE = 15
RACK_SIZE = 7
BINGO_BONUS = 50
BLANK = "?"
EMPTY_SQUARE = "."
CENTER = (7, 7)

LETTERS = "ABCDEFGHIJKLMNOPQRSTUVWXYZ" + BLANK
TILE_COUNTS = dict(zip(LETTERS, (
    9, 2, 2, 4, 12, 2, 3, 2, 9, 1, 1, 4, 2, 6, 8, 2, 1, 6, 4, 6, 4, 2, 2, 1, 2, 1, 2,
)))
TILE_VALUES = dict(zip(LETTERS, (
    1, 3, 3, 2, 1, 4, 2, 4, 1, 8, 5, 1, 3, 1, 1, 3, 10, 1, 1, 1, 1, 4, 4, 8, 4, 10, 0,
)))

# Premium squares of the top-left quadrant; the rest of the board mirrors them
_PREMIUM_QUADRANT = {
    "TW": [(0, 0), (0, 7), (7, 0)],
    "DW": [(1, 1), (2, 2), (3, 3), (4, 4), (7, 7)],
    "TL": [(1, 5), (5, 1), (5, 5)],
    "DL": [(0, 3), (2, 6), (3, 0), (3, 7), (6, 2), (6, 6), (7, 3)],
}
LETTER_MULTIPLIERS = {"DL": 2, "TL": 3}
WORD_MULTIPLIERS = {"DW": 2, "TW": 3}


def _mirror(row: int, col: int) -> set[tuple[int, int]]:
    last = BOARD_SIZE - 1
    return {(row, col), (row, last - col), (last - row, col), (last - row, last - col)}


PREMIUM_SQUARES: dict[tuple[int, int], str] = {
    square: kind
    for kind, quadrant in _PREMIUM_QUADRANT.items()
    for row, col in quadrant
    for square in _mirror(row, col)
}


def full_bag() -> list[str]:
    """All 100 tiles in alphabetical order (blanks last)."""
    return [tile for tile, count in TILE_COUNTS.items() for _ in range(count)]


def empty_board() -> tuple[str, ...]:
    return (EMPTY_SQUARE * BOARD_SIZE,) * BOARD_SIZE


@dataclass(frozen=True, order=True)
class Placement:
    """A single tile put on the board.

    Attributes:
        row: Board row (0-14)
        col: Board column (0-14)
        letter: Upper-case letter the tile shows
        is_blank: True if a blank tile stands in for the letter
    """

    row: int
    col: int
    letter: str
    is_blank: bool = False

    @property
    def tile(self) -> str:
        """Rack tile consumed by this placement."""
        return BLANK if self.is_blank else self.letter

    @property
    def board_char(self) -> str:
        """Character written to the board (blanks are lower-case)."""
        return self.letter.lower() if self.is_blank else self.letter


@dataclass(frozen=True, order=True)
class ScrabbleMove:
    """A play: the set of placements made in one turn. No placements = pass."""

    placements: tuple[Placement, ...] = field(default=())

    def __post_init__(self):
        object.__setattr__(self, "placements", tuple(sorted(self.placements)))

    @property
    def is_pass(self) -> bool:
        return not self.placements

    def __str__(self) -> str:
        if self.is_pass:
            return "PASS"
        return " ".join(f"{p.row},{p.col}:{p.board_char}" for p in self.placements)


PASS = ScrabbleMove()


class MoveGenerator(Protocol):
    """External collaborator enumerating candidate plays.

    Implementations typically search a word list against the board; each
    returned move is one action of the game's action space.
    """

    def generate(self, board: tuple[str, ...], rack: str) -> Iterable[ScrabbleMove]:
        """Get the plays available with a rack on a board.

        Args:
            board: BOARD_SIZE rows of BOARD_SIZE characters ("." for empty)
            rack: Tiles on the rack, "?" for blanks

        Returns:
            Candidate plays (the pass move is added by the game)
        """
        ...


@dataclass(frozen=True)
class ScrabbleState:
    """Scrabble position (immutable).

    Attributes:
        board: Rows of the board, "." empty, upper-case letter, lower-case blank
        racks: Sorted rack string per player
        bag: Remaining tiles in draw order
        scores: Score per player
        player: Player to act
        scoreless_turns: Consecutive turns without points
    """

    board: tuple[str, ...]
    racks: tuple[str, ...]
    bag: tuple[str, ...]
    scores: tuple[int, ...]
    player: int = 0
    scoreless_turns: int = 0

    def __str__(self) -> str:
        rows = "\n".join(self.board)
        return f"{rows}\nracks={list(self.racks)} scores={list(self.scores)} bag={len(self.bag)}"


def _letter_value(char: str) -> int:
    # Blanks are stored in lower case and score nothing
    return 0 if char.islower() else TILE_VALUES[char]


class ScrabbleGame:
    """Rules for Scrabble with moves supplied by a MoveGenerator."""

    perfect_information = False

    def __init__(self, move_generator: MoveGenerator, num_players: int = 2, seed: Optional[int] = None):
        if not 2 <= num_players <= 4:
            raise ValueError(f"Scrabble needs 2-4 players, got {num_players}")
        self.move_generator = move_generator
        self.num_players = num_players
        self.rng = np.random.default_rng(seed)

    def initial_state(self, bag: Optional[Sequence[str]] = None) -> ScrabbleState:
        """Deal the opening racks.

        Args:
            bag: Tiles in draw order; a seeded shuffle of the full set if omitted

        Returns:
            Initial state with an empty board
        """
        if bag is None:
            tiles = full_bag()
            order = self.rng.permutation(len(tiles))
            bag = [tiles[i] for i in order]
        bag = tuple(bag)

        racks = []
        for _ in range(self.num_players):
            racks.append("".join(sorted(bag[:RACK_SIZE])))
            bag = bag[RACK_SIZE:]

        return ScrabbleState(
            board=empty_board(),
            racks=tuple(racks),
            bag=bag,
            scores=(0,) * self.num_players,
        )

    def is_terminal(self, state: ScrabbleState) -> bool:
        if state.scoreless_turns >= 2 * self.num_players:
            return True
        return not state.bag and any(not rack for rack in state.racks)

    def legal_actions(self, state: ScrabbleState) -> list[ScrabbleMove]:
        if self.is_terminal(state):
            return []
        rack = state.racks[state.player]
        plays = set()
        for move in self.move_generator.generate(state.board, rack):
            if move.is_pass:
                continue
            problem = self.validate_move(state, move)
            if problem is not None:
                raise IllegalActionError(f"Move generator produced invalid move {move}: {problem}")
            plays.add(move)
        return sorted(plays) + [PASS]

    def validate_move(self, state: ScrabbleState, move: ScrabbleMove) -> Optional[str]:
        """Check the geometry and tiles of a play.

        Word validity is the move generator's concern; this only checks
        that the play could physically be made.

        Returns:
            None if the play is well formed, otherwise the reason it is not
        """
        board = state.board
        squares = [(p.row, p.col) for p in move.placements]
        if len(set(squares)) != len(squares):
            return "two tiles on one square"
        for p in move.placements:
            if not (0 <= p.row < BOARD_SIZE and 0 <= p.col < BOARD_SIZE):
                return f"square {p.row},{p.col} is off the board"
            if len(p.letter) != 1 or not ("A" <= p.letter <= "Z"):
                return f"invalid letter {p.letter!r}"
            if board[p.row][p.col] != EMPTY_SQUARE:
                return f"square {p.row},{p.col} is occupied"

        needed = Counter(p.tile for p in move.placements)
        available = Counter(state.racks[state.player])
        if any(available[tile] < count for tile, count in needed.items()):
            return "tiles not on rack"

        rows = {r for r, _ in squares}
        cols = {c for _, c in squares}
        if len(rows) > 1 and len(cols) > 1:
            return "tiles not in one line"

        placed = set(squares)
        if len(rows) == 1:
            row = next(iter(rows))
            line = [(row, c) for c in range(min(cols), max(cols) + 1)]
        else:
            col = next(iter(cols))
            line = [(r, col) for r in range(min(rows), max(rows) + 1)]
        if any(sq not in placed and board[sq[0]][sq[1]] == EMPTY_SQUARE for sq in line):
            return "gap in play"

        if all(row == EMPTY_SQUARE * BOARD_SIZE for row in board):
            if CENTER not in placed:
                return "first play must cover the centre square"
        elif not any(sq not in placed for sq in line) and not self._touches_tiles(board, squares):
            return "play does not connect to existing tiles"
        return None

    @staticmethod
    def _touches_tiles(board: tuple[str, ...], squares: list[tuple[int, int]]) -> bool:
        for row, col in squares:
            for dr, dc in ((1, 0), (-1, 0), (0, 1), (0, -1)):
                r, c = row + dr, col + dc
                if 0 <= r < BOARD_SIZE and 0 <= c < BOARD_SIZE and board[r][c] != EMPTY_SQUARE:
                    return True
        return False

    @staticmethod
    def place(board: tuple[str, ...], move: ScrabbleMove) -> tuple[str, ...]:
        """Board after writing the move's tiles."""
        rows = [list(row) for row in board]
        for p in move.placements:
            rows[p.row][p.col] = p.board_char
        return tuple("".join(row) for row in rows)

    @staticmethod
    def score_move(board: tuple[str, ...], move: ScrabbleMove) -> int:
        """Points scored by a play on a board (before it is placed).

        Every maximal run of two or more tiles through a newly placed tile
        counts as a word, which covers the main word and all cross words.
        """
        if move.is_pass:
            return 0
        after = ScrabbleGame.place(board, move)
        placed = {(p.row, p.col) for p in move.placements}

        words = set()
        for row, col in placed:
            for dr, dc in ((0, 1), (1, 0)):
                r, c = row, col
                while 0 <= r - dr and 0 <= c - dc and after[r - dr][c - dc] != EMPTY_SQUARE:
                    r, c = r - dr, c - dc
                run = []
                while r < BOARD_SIZE and c < BOARD_SIZE and after[r][c] != EMPTY_SQUARE:
                    run.append((r, c))
                    r, c = r + dr, c + dc
                if len(run) > 1:
                    words.add(tuple(run))
        if not words:
            # A lone tile with no neighbours scores as a one letter word
            words = {tuple(placed)}

        total = 0
        for word in words:
            word_score = 0
            word_multiplier = 1
            for r, c in word:
                value = _letter_value(after[r][c])
                if (r, c) in placed:
                    premium = PREMIUM_SQUARES.get((r, c))
                    value *= LETTER_MULTIPLIERS.get(premium, 1)
                    word_multiplier *= WORD_MULTIPLIERS.get(premium, 1)
                word_score += value
            total += word_score * word_multiplier

        if len(placed) == RACK_SIZE:
            total += BINGO_BONUS
        return total

    def apply(self, state: ScrabbleState, action: ScrabbleMove) -> ScrabbleState:
        if self.is_terminal(state):
            raise IllegalActionError(f"Cannot apply move {action} to terminal state")
        if action not in self.legal_actions(state):
            raise IllegalActionError(f"Move {action} is not legal for player {state.player}")

        next_player = (state.player + 1) % self.num_players
        if action.is_pass:
            return ScrabbleState(
                board=state.board,
                racks=state.racks,
                bag=state.bag,
                scores=state.scores,
                player=next_player,
                scoreless_turns=state.scoreless_turns + 1,
            )

        points = self.score_move(state.board, action)

        rack = list(state.racks[state.player])
        for p in action.placements:
            rack.remove(p.tile)
        draw = min(RACK_SIZE - len(rack), len(state.bag))
        rack.extend(state.bag[:draw])

        racks = list(state.racks)
        racks[state.player] = "".join(sorted(rack))
        scores = list(state.scores)
        scores[state.player] += points

        return ScrabbleState(
            board=self.place(state.board, action),
            racks=tuple(racks),
            bag=state.bag[draw:],
            scores=tuple(scores),
            player=next_player,
            scoreless_turns=0 if points > 0 else state.scoreless_turns + 1,
        )

    def final_scores(self, state: ScrabbleState) -> tuple[int, ...]:
        """Scores after the leftover-tile adjustment."""
        leftovers = [sum(TILE_VALUES[t] for t in rack) for rack in state.racks]
        scores = [score - left for score, left in zip(state.scores, leftovers)]
        if not state.bag:
            for player, rack in enumerate(state.racks):
                if not rack:
                    scores[player] += sum(leftovers)
                    break
        return tuple(scores)

    def utility(self, state: ScrabbleState, player: int) -> float:
        """Final score margin over the average opponent (zero-sum)."""
        if not self.is_terminal(state):
            raise UndefinedUtilityError("Cannot get utility of non-terminal state")
        scores = self.final_scores(state)
        others = [s for p, s in enumerate(scores) if p != player]
        return float(scores[player] - sum(others) / len(others))

    def acting_player(self, state: ScrabbleState) -> int:
        if self.is_terminal(state):
            raise TerminalStateError("Terminal state has no acting player")
        return state.player

    def information_set_key(self, state: ScrabbleState, player: int) -> str:
        """Board, own rack and public counters; opponents' tiles and bag order stay hidden."""
        board = "".join(state.board)
        scores = ",".join(str(s) for s in state.scores)
        rack_sizes = ",".join(str(len(r)) for r in state.racks)
        return (
            f"{player}|{board}|{state.racks[player]}|{scores}|{rack_sizes}"
            f"|{len(state.bag)}|{state.scoreless_turns}"
        )
