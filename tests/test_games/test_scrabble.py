"""Tests for the Scrabble game model with a scripted move generator."""

from collections import Counter
from dataclasses import replace

import pytest

from scrabcfr.games.base import IllegalActionError, TerminalStateError, UndefinedUtilityError
from scrabcfr.games.scrabble import (
    BINGO_BONUS,
    BOARD_SIZE,
    PASS,
    PREMIUM_SQUARES,
    TILE_COUNTS,
    Placement,
    ScrabbleGame,
    ScrabbleMove,
    ScrabbleState,
    full_bag,
)


class ScriptedMoveGenerator:
    """Offers a fixed list of plays whenever their squares are free and tiles are on the rack."""

    def __init__(self, moves=()):
        self.moves = list(moves)

    def generate(self, board, rack):
        available = Counter(rack)
        for move in self.moves:
            needed = Counter(p.tile for p in move.placements)
            if any(available[t] < n for t, n in needed.items()):
                continue
            if all(board[p.row][p.col] == "." for p in move.placements):
                yield move


class RawMoveGenerator:
    """Returns its moves unconditionally."""

    def __init__(self, moves):
        self.moves = list(moves)

    def generate(self, board, rack):
        return list(self.moves)


def word(row, col, letters, vertical=False, blanks=()):
    placements = []
    for i, letter in enumerate(letters):
        r, c = (row + i, col) if vertical else (row, col + i)
        placements.append(Placement(r, c, letter, i in blanks))
    return ScrabbleMove(tuple(placements))


CAT = word(7, 6, "CAT")
# Player 0 draws CATSXYZ, player 1 draws EEEEEES, then the bag holds QUIRKED
BAG = tuple("CATSXYZ" + "EEEEEES" + "QUIRKED")


def make_game(moves=(CAT,), num_players=2):
    return ScrabbleGame(ScriptedMoveGenerator(moves), num_players=num_players, seed=0)


class TestTileSet:
    """Test the tile distribution and board layout."""

    def test_hundred_tiles(self):
        assert len(full_bag()) == 100
        assert TILE_COUNTS["?"] == 2
        assert TILE_COUNTS["E"] == 12

    def test_premium_layout(self):
        assert PREMIUM_SQUARES[(7, 7)] == "DW"
        assert PREMIUM_SQUARES[(0, 0)] == "TW"
        assert PREMIUM_SQUARES[(14, 14)] == "TW"
        assert PREMIUM_SQUARES[(5, 9)] == "TL"
        assert PREMIUM_SQUARES[(14, 11)] == "DL"
        counts = Counter(PREMIUM_SQUARES.values())
        assert counts == {"TW": 8, "DW": 17, "TL": 12, "DL": 24}


class TestScrabbleSetup:
    """Test dealing the opening racks."""

    def test_deal_from_given_bag(self):
        game = make_game()
        state = game.initial_state(BAG)
        assert state.racks == ("ACSTXYZ", "EEEEEES")
        assert state.bag == tuple("QUIRKED")
        assert state.scores == (0, 0)
        assert game.acting_player(state) == 0
        assert all(row == "." * BOARD_SIZE for row in state.board)

    def test_seeded_shuffle_is_reproducible(self):
        a = ScrabbleGame(ScriptedMoveGenerator(), seed=3).initial_state()
        b = ScrabbleGame(ScriptedMoveGenerator(), seed=3).initial_state()
        assert a == b
        assert len(a.bag) == 100 - 2 * 7
        assert Counter("".join(a.racks) + "".join(a.bag)) == Counter(full_bag())

    def test_player_count(self):
        with pytest.raises(ValueError):
            ScrabbleGame(ScriptedMoveGenerator(), num_players=1)
        assert len(ScrabbleGame(ScriptedMoveGenerator(), num_players=4).initial_state().racks) == 4


class TestScrabbleMoves:
    """Test legal actions and move application."""

    def test_legal_actions_end_with_pass(self):
        game = make_game()
        state = game.initial_state(BAG)
        assert game.legal_actions(state) == [CAT, PASS]

    def test_apply_play(self):
        game = make_game()
        state = game.apply(game.initial_state(BAG), CAT)
        assert state.board[7][6:9] == "CAT"
        assert state.scores == (10, 0)
        # S, X, Y, Z kept; Q, U, I drawn from the front of the bag
        assert state.racks[0] == "IQSUXYZ"
        assert state.bag == tuple("RKED")
        assert state.player == 1
        assert state.scoreless_turns == 0

    def test_apply_does_not_mutate_input(self):
        game = make_game()
        state = game.initial_state(BAG)
        game.apply(state, CAT)
        assert state == game.initial_state(BAG)

    def test_pass(self):
        game = make_game()
        state = game.apply(game.initial_state(BAG), PASS)
        assert state.player == 1
        assert state.scoreless_turns == 1
        assert state.racks == ("ACSTXYZ", "EEEEEES")

    def test_unlisted_move_is_illegal(self):
        game = make_game()
        with pytest.raises(IllegalActionError):
            game.apply(game.initial_state(BAG), word(7, 7, "AT"))

    def test_invalid_generated_move_raises(self):
        """Moves from the generator are checked before they become actions."""
        game = ScrabbleGame(RawMoveGenerator([word(0, 0, "CAT")]))
        with pytest.raises(IllegalActionError):
            game.legal_actions(game.initial_state(BAG))

    def test_move_placements_are_sorted(self):
        a = ScrabbleMove((Placement(7, 8, "T"), Placement(7, 7, "A")))
        b = ScrabbleMove((Placement(7, 7, "A"), Placement(7, 8, "T")))
        assert a == b
        assert hash(a) == hash(b)
        assert str(PASS) == "PASS"


class TestMoveValidation:
    """Test geometric validation of plays."""

    @pytest.fixture
    def game(self):
        return make_game()

    @pytest.fixture
    def state(self, game):
        return game.initial_state(BAG)

    def test_valid_opening(self, game, state):
        assert game.validate_move(state, CAT) is None

    def test_must_cover_centre(self, game, state):
        assert "centre" in game.validate_move(state, word(0, 0, "CAT"))

    def test_tiles_must_be_on_rack(self, game, state):
        assert game.validate_move(state, word(7, 7, "QI")) == "tiles not on rack"

    def test_one_line(self, game, state):
        move = ScrabbleMove((Placement(7, 7, "C"), Placement(8, 8, "A")))
        assert game.validate_move(state, move) == "tiles not in one line"

    def test_no_gaps(self, game, state):
        move = ScrabbleMove((Placement(7, 7, "C"), Placement(7, 9, "A")))
        assert game.validate_move(state, move) == "gap in play"

    def test_must_connect(self, game, state):
        after = game.apply(state, CAT)
        far = word(0, 0, "EE")
        assert "connect" in game.validate_move(after, far)
        assert game.validate_move(after, word(8, 7, "E")) is None

    def test_occupied_square(self, game, state):
        after = game.apply(state, CAT)
        assert "occupied" in game.validate_move(after, word(7, 7, "E"))


class TestScoring:
    """Test move scores."""

    def test_opening_doubles_word(self):
        game = make_game()
        assert game.score_move(game.initial_state(BAG).board, CAT) == (3 + 1 + 1) * 2

    def test_premium_only_under_new_tiles(self):
        """Extending CAT to CATS does not reuse the centre double word."""
        game = make_game()
        board = game.place(game.initial_state(BAG).board, CAT)
        assert game.score_move(board, word(7, 9, "S")) == 3 + 1 + 1 + 1

    def test_cross_word(self):
        """A tile under the A forms the vertical word AE."""
        game = make_game()
        board = game.place(game.initial_state(BAG).board, CAT)
        assert game.score_move(board, word(8, 7, "E")) == 1 + 1

    def test_blank_scores_zero(self):
        game = make_game()
        move = word(7, 6, "CAT", blanks=(0,))
        assert move.placements[0].tile == "?"
        assert game.score_move(game.initial_state(BAG).board, move) == (0 + 1 + 1) * 2

    def test_bingo_bonus(self):
        game = make_game()
        move = word(7, 4, "RETAINS")
        assert game.score_move(game.initial_state(BAG).board, move) == 7 * 2 + BINGO_BONUS


class TestScrabbleTerminal:
    """Test game end and utilities."""

    def test_consecutive_passes_end_the_game(self):
        game = make_game(moves=())
        state = game.initial_state(BAG)
        for _ in range(4):
            assert not game.is_terminal(state)
            state = game.apply(state, PASS)
        assert game.is_terminal(state)
        assert game.legal_actions(state) == []
        # Leftovers: ACSTXYZ = 28, EEEEEES = 7
        assert game.final_scores(state) == (-28, -7)
        assert game.utility(state, 0) == -21.0
        assert game.utility(state, 1) == 21.0

    def test_going_out_collects_leftovers(self):
        game = make_game()
        board = game.place(game.initial_state(BAG).board, CAT)
        state = ScrabbleState(board=board, racks=("", "EE"), bag=(), scores=(10, 5), player=1)
        assert game.is_terminal(state)
        assert game.final_scores(state) == (12, 3)
        assert game.utility(state, 0) == 9.0
        assert game.utility(state, 0) + game.utility(state, 1) == 0.0

    def test_utility_against_average_opponent(self):
        game = ScrabbleGame(ScriptedMoveGenerator(), num_players=3)
        state = ScrabbleState(
            board=game.initial_state().board,
            racks=("", "", ""),
            bag=(),
            scores=(30, 20, 10),
        )
        utilities = [game.utility(state, p) for p in range(3)]
        assert utilities == [15.0, 0.0, -15.0]
        assert sum(utilities) == 0.0

    def test_errors_on_wrong_phase(self):
        game = make_game(moves=())
        state = game.initial_state(BAG)
        with pytest.raises(UndefinedUtilityError):
            game.utility(state, 0)
        for _ in range(4):
            state = game.apply(state, PASS)
        with pytest.raises(TerminalStateError):
            game.acting_player(state)
        with pytest.raises(IllegalActionError):
            game.apply(state, PASS)


class TestScrabbleInformationSets:
    """Information set keys hide private information."""

    def test_opponent_rack_is_hidden(self):
        game = make_game()
        state = game.initial_state(BAG)
        other = replace(state, racks=(state.racks[0], "AAAAAAA"))
        assert game.information_set_key(state, 0) == game.information_set_key(other, 0)
        assert game.information_set_key(state, 1) != game.information_set_key(other, 1)

    def test_bag_order_is_hidden(self):
        game = make_game()
        state = game.initial_state(BAG)
        shuffled = replace(state, bag=tuple(reversed(state.bag)))
        for player in range(2):
            assert game.information_set_key(state, player) == game.information_set_key(shuffled, player)

    def test_public_information_is_visible(self):
        game = make_game()
        state = game.initial_state(BAG)
        after = game.apply(state, CAT)
        assert game.information_set_key(state, 1) != game.information_set_key(after, 1)
        assert "CAT" in game.information_set_key(after, 1)
