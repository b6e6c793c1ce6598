"""Tests for the YAML configuration system."""

from pathlib import Path

import pytest

from scrabcfr.config import (
    AlgorithmConfig,
    GameConfig,
    ScrabCFRConfig,
    TrainingConfig,
    tictactoe_outcome_sampling_config,
    tictactoe_vanilla_config,
)


class TestConfigDefaults:
    """Test default values and validation."""

    def test_defaults(self):
        config = ScrabCFRConfig()
        assert config.game.name == "tictactoe"
        assert config.algorithm.name == "vanilla_graph"
        assert config.algorithm.epsilon == 0.6
        assert config.training.checkpoint_path is None
        assert config.seed == 42

    def test_unknown_game(self):
        with pytest.raises(ValueError):
            GameConfig(name="chess")

    def test_unknown_algorithm(self):
        with pytest.raises(ValueError):
            AlgorithmConfig(name="deep_cfr")

    @pytest.mark.parametrize("epsilon", [0.0, -0.5, 1.01])
    def test_invalid_epsilon(self, epsilon):
        with pytest.raises(ValueError):
            AlgorithmConfig(name="outcome_sampling", epsilon=epsilon)

    def test_invalid_iterations(self):
        with pytest.raises(ValueError):
            TrainingConfig(iterations=0)
        with pytest.raises(ValueError):
            TrainingConfig(eval_games=-1)

    def test_repr(self):
        text = repr(tictactoe_vanilla_config())
        assert "tictactoe_vanilla" in text
        assert "vanilla_graph" in text


class TestConfigSerialization:
    """Test YAML and dict round trips."""

    def test_yaml_round_trip(self, tmp_path):
        config = ScrabCFRConfig(
            name="experiment",
            seed=7,
            training=TrainingConfig(iterations=500, checkpoint_path=str(tmp_path / "store.npz")),
            algorithm=AlgorithmConfig(name="outcome_sampling", epsilon=0.3),
        )
        path = tmp_path / "configs" / "experiment.yaml"
        config.to_yaml(path)
        loaded = ScrabCFRConfig.from_yaml(path)
        assert loaded.to_dict() == config.to_dict()

    def test_partial_yaml_uses_defaults(self, tmp_path):
        path = tmp_path / "partial.yaml"
        path.write_text("algorithm:\n  name: vanilla\ntraining:\n  iterations: 25\n")
        config = ScrabCFRConfig.from_yaml(path)
        assert config.algorithm.name == "vanilla"
        assert config.training.iterations == 25
        assert config.training.log_every == 1000
        assert config.game.board_dim == 3

    def test_empty_yaml(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert ScrabCFRConfig.from_yaml(path).to_dict() == ScrabCFRConfig().to_dict()

    def test_invalid_yaml_values(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("algorithm:\n  name: outcome_sampling\n  epsilon: 2.0\n")
        with pytest.raises(ValueError):
            ScrabCFRConfig.from_yaml(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ScrabCFRConfig.from_yaml(tmp_path / "missing.yaml")


class TestPresets:
    """Test preset configurations."""

    def test_vanilla_preset(self):
        config = tictactoe_vanilla_config()
        assert config.algorithm.name == "vanilla_graph"
        assert config.training.iterations == 10000

    def test_outcome_sampling_preset(self):
        config = tictactoe_outcome_sampling_config()
        assert config.algorithm.name == "outcome_sampling"
        assert config.training.iterations > tictactoe_vanilla_config().training.iterations

    def test_shipped_outcome_sampling_config(self):
        path = Path(__file__).resolve().parents[2] / "configs" / "tictactoe_os.yaml"
        config = ScrabCFRConfig.from_yaml(path)
        assert config.algorithm.name == "outcome_sampling"
        assert config.training.iterations == tictactoe_outcome_sampling_config().training.iterations
