"""Tests for baseline bots and head-to-head evaluation."""

import numpy as np
import pytest

from scrabcfr.baselines import BaselineBot, RandomBot, StrategyBot
from scrabcfr.games.tictactoe import TicTacToe
from scrabcfr.metrics.evaluator import HeadToHeadEvaluator, MatchResult


class FirstCellBot(BaselineBot):
    """Always plays the lowest free cell."""

    def get_action(self, game, state):
        return game.legal_actions(state)[0]


class TestBaselineBots:
    """Test baseline bot behaviour."""

    def test_random_bot_plays_legal_moves(self):
        game = TicTacToe()
        bot = RandomBot(seed=0)
        state = game.initial_state()
        while not game.is_terminal(state):
            action = bot.get_action(game, state)
            assert action in game.legal_actions(state)
            state = game.apply(state, action)

    def test_random_bot_is_seeded(self):
        game = TicTacToe()
        state = game.initial_state()
        a = [RandomBot(seed=5).get_action(game, state) for _ in range(3)]
        b = [RandomBot(seed=5).get_action(game, state) for _ in range(3)]
        assert a == b

    def test_strategy_bot_greedy(self):
        game = TicTacToe()
        bot = StrategyBot({"-" * 9: {0: 0.1, 4: 0.7, 8: 0.2}}, greedy=True)
        assert bot.get_action(game, game.initial_state()) == 4

    def test_strategy_bot_unknown_key_is_uniform(self):
        game = TicTacToe()
        bot = StrategyBot({}, seed=0)
        legal, probs = bot.action_probabilities(game, game.initial_state())
        assert legal == list(range(9))
        np.testing.assert_allclose(probs, np.full(9, 1 / 9))

    def test_strategy_bot_samples_from_table(self):
        game = TicTacToe()
        bot = StrategyBot({"-" * 9: {2: 1.0}}, seed=0)
        for _ in range(5):
            assert bot.get_action(game, game.initial_state()) == 2

    def test_base_bot_is_abstract(self):
        game = TicTacToe()
        with pytest.raises(NotImplementedError):
            BaselineBot().get_action(game, game.initial_state())


class TestHeadToHeadEvaluator:
    """Test match play."""

    def test_play_game_deterministic(self):
        """First-cell play: X fills 0, 2, 4, 6 and wins on the anti-diagonal."""
        game = TicTacToe()
        evaluator = HeadToHeadEvaluator(game)
        assert evaluator.play_game(FirstCellBot(), FirstCellBot(), agent_seat=0) == 1.0
        assert evaluator.play_game(FirstCellBot(), FirstCellBot(), agent_seat=1) == -1.0

    def test_evaluate_counts_games(self):
        game = TicTacToe()
        evaluator = HeadToHeadEvaluator(game)
        result = evaluator.evaluate(RandomBot(seed=1), RandomBot(seed=2), num_games=50)
        assert isinstance(result, MatchResult)
        assert result.num_games == 50
        assert result.wins + result.draws + result.losses == 50
        assert abs(result.win_rate + result.draw_rate + result.loss_rate - 1.0) < 1e-12

    def test_alternating_seats(self):
        """With seats alternating, deterministic mirror play splits the games."""
        game = TicTacToe()
        evaluator = HeadToHeadEvaluator(game)
        result = evaluator.evaluate(FirstCellBot(), FirstCellBot(), num_games=10)
        assert result.wins == 5
        assert result.losses == 5
        assert result.mean_utility == 0.0

        fixed = evaluator.evaluate(FirstCellBot(), FirstCellBot(), num_games=10, alternate_positions=False)
        assert fixed.wins == 10

    def test_custom_start(self):
        game = TicTacToe()
        evaluator = HeadToHeadEvaluator(game, initial_state=game.state_from_string("XOXXOOOX-"))
        assert evaluator.play_game(RandomBot(seed=0), RandomBot(seed=0)) == 0.0

    def test_invalid_game_count(self):
        with pytest.raises(ValueError):
            HeadToHeadEvaluator(TicTacToe()).evaluate(RandomBot(), RandomBot(), num_games=0)

    def test_result_str(self):
        result = MatchResult(num_games=4, wins=2, draws=1, losses=1, mean_utility=0.25, std_error=0.1)
        text = str(result)
        assert "2/1/1" in text
        assert result.win_rate == 0.5
