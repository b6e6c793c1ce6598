"""Tests for the CFR training driver."""

import logging

import numpy as np
import pytest

from scrabcfr.cfr.outcome_sampling import OutcomeSamplingCFR
from scrabcfr.cfr.store import InformationSetStore
from scrabcfr.cfr.vanilla import VanillaCFR
from scrabcfr.cfr.vanilla_graph import VanillaGraphCFR
from scrabcfr.config import AlgorithmConfig, GameConfig, ScrabCFRConfig, TrainingConfig
from scrabcfr.games.base import IllegalActionError
from scrabcfr.games.tictactoe import TicTacToe
from scrabcfr.training.trainer import CFRTrainer, build_trainer, create_game, create_solver


class TestFactories:
    """Test game and solver construction from configuration."""

    def test_create_game(self):
        game = create_game(GameConfig(name="tictactoe", board_dim=4))
        assert isinstance(game, TicTacToe)
        assert len(game.legal_actions(game.initial_state())) == 16

    @pytest.mark.parametrize(
        "name, expected",
        [
            ("vanilla_graph", VanillaGraphCFR),
            ("vanilla", VanillaCFR),
            ("outcome_sampling", OutcomeSamplingCFR),
        ],
    )
    def test_create_solver(self, name, expected):
        store = InformationSetStore()
        solver = create_solver(TicTacToe(), AlgorithmConfig(name=name), seed=3, store=store)
        assert isinstance(solver, expected)
        assert solver.store is store

    def test_build_trainer(self):
        config = ScrabCFRConfig(algorithm=AlgorithmConfig(name="outcome_sampling", epsilon=0.4), seed=9)
        trainer = build_trainer(config)
        assert isinstance(trainer.solver, OutcomeSamplingCFR)
        assert trainer.solver.epsilon == 0.4
        assert trainer.seed == 9


class TestTrainingLoop:
    """Test running, evaluating and checkpointing."""

    def test_vanilla_graph_training(self):
        game = TicTacToe()
        config = TrainingConfig(iterations=20, log_every=5, eval_every=10, eval_games=20)
        trainer = CFRTrainer(game, VanillaGraphCFR(game), config)
        history = trainer.train()

        assert [m.iteration for m in history] == [10, 20]
        final = history[-1]
        assert final.num_infosets == 4520
        assert len(final.root_values) == 2
        assert final.exploitability is not None
        assert final.exploitability >= 0.0
        assert final.vs_random.num_games == 20

    def test_outcome_sampling_training(self):
        game = TicTacToe()
        config = TrainingConfig(iterations=200, log_every=0, eval_every=0, eval_games=10)
        trainer = CFRTrainer(game, OutcomeSamplingCFR(game, seed=0), config)
        history = trainer.train()

        # Evaluated only after the final iteration
        assert len(history) == 1
        assert history[0].iteration == 200
        assert 0 < history[0].num_infosets < 4520

    def test_callback_receives_snapshots(self):
        game = TicTacToe()
        root = game.state_from_string("XOX-O----")
        seen = []
        config = TrainingConfig(iterations=6, eval_every=2, eval_games=0)
        CFRTrainer(game, VanillaCFR(game, root=root), config).train(callback=seen.append)
        assert [m.iteration for m in seen] == [2, 4, 6]
        assert all(m.vs_random is None for m in seen)

    def test_checkpoint_matches_store(self, tmp_path):
        path = tmp_path / "checkpoints" / "ttt.npz"
        config = ScrabCFRConfig(
            training=TrainingConfig(iterations=6, eval_every=0, eval_games=0, checkpoint_every=2, checkpoint_path=str(path)),
        )
        trainer = build_trainer(config)
        trainer.train()

        assert path.exists()
        loaded = InformationSetStore.load(path)
        assert len(loaded) == len(trainer.store)
        for key in trainer.store.keys():
            np.testing.assert_array_equal(loaded.entry(key).regret_sum, trainer.store.entry(key).regret_sum)
            np.testing.assert_array_equal(loaded.entry(key).strategy_sum, trainer.store.entry(key).strategy_sum)

    def test_resume_from_store(self):
        game = TicTacToe()
        root = game.state_from_string("XOX-O----")
        reference = VanillaCFR(game, root=root)
        reference.train(4)

        store = InformationSetStore()
        config = TrainingConfig(iterations=2, eval_games=0)
        CFRTrainer(game, VanillaCFR(game, store=store, root=root), config).train()
        CFRTrainer(game, VanillaCFR(game, store=store, root=root), config).train()

        np.testing.assert_allclose(store.entry("XOX-O----").regret_sum, reference.store.entry("XOX-O----").regret_sum)


class TestTrainingErrors:
    """Traversal errors abort training and are logged."""

    def test_game_error_is_logged_and_raised(self, caplog):
        class BrokenTicTacToe(TicTacToe):
            def apply(self, state, action):
                raise IllegalActionError(f"cell {action} is broken")

        game = BrokenTicTacToe()
        solver = VanillaCFR(game, root=game.state_from_string("XOX-O----"))
        trainer = CFRTrainer(game, solver, TrainingConfig(iterations=3, eval_games=0))

        with caplog.at_level(logging.ERROR, logger="scrabcfr.training.trainer"):
            with pytest.raises(IllegalActionError):
                trainer.train()

        assert any("Traversal failed at iteration 1" in r.getMessage() for r in caplog.records)
        assert solver.iteration == 0

    def test_unexpected_error_is_logged_and_raised(self, caplog):
        class FailingSolver:
            def __init__(self, game):
                self.game = game
                self.store = InformationSetStore()
                self.iteration = 0
                self.root = game.initial_state()

            def run_iteration(self):
                if self.iteration == 2:
                    raise RuntimeError("slab corrupted")
                self.iteration += 1
                return [0.0, 0.0]

            def get_all_average_strategies(self):
                return {}

        game = TicTacToe()
        trainer = CFRTrainer(game, FailingSolver(game), TrainingConfig(iterations=5, eval_every=0, eval_games=0))

        with caplog.at_level(logging.ERROR, logger="scrabcfr.training.trainer"):
            with pytest.raises(RuntimeError):
                trainer.train()

        assert any("Traversal failed at iteration 3" in r.getMessage() for r in caplog.records)
