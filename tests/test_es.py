"""Tests for the evolution strategy trainer."""

import pytest
import torch

from connect_four.ai.es import EsTrainer, normalize_scores
from connect_four.ai.optimizers import Sgd
from connect_four.ai.utils import flatten_parameters, num_parameters
from connect_four.players import ValueNet


def constant_evaluator(models):
    return [0.0] * len(models)


def make_trainer(evaluator=constant_evaluator, samples=4, std=0.1, learning_rate=0.1):
    torch.manual_seed(0)
    return EsTrainer(ValueNet(), std=std, samples=samples, evaluator=evaluator,
                     optimizer=Sgd(learning_rate=learning_rate, momentum=0.0))


class TestNormalizeScores:
    """Test score standardisation."""

    def test_mean_zero_std_one(self):
        normalized = normalize_scores([1.0, 2.0, 3.0, 4.0])
        assert sum(normalized) == pytest.approx(0.0)
        assert sum(x * x for x in normalized) / 4 == pytest.approx(1.0)

    def test_order_is_kept(self):
        normalized = normalize_scores([5.0, -1.0, 2.0])
        assert normalized[0] > normalized[2] > normalized[1]

    def test_equal_scores(self):
        assert normalize_scores([3.0, 3.0, 3.0]) == [0.0, 0.0, 0.0]


class TestEsTrainer:
    """Test population generation, gradient estimation and steps."""

    def test_invalid_settings(self):
        with pytest.raises(ValueError):
            EsTrainer(ValueNet(), std=0.0, samples=2, evaluator=constant_evaluator,
                      optimizer=Sgd(0.1, 0.0))
        with pytest.raises(ValueError):
            EsTrainer(ValueNet(), std=0.1, samples=0, evaluator=constant_evaluator,
                      optimizer=Sgd(0.1, 0.0))

    def test_dispositions_are_reproducible(self):
        trainer = make_trainer()
        a = trainer.generate_model_params(123, 0)
        b = trainer.generate_model_params(123, 0)
        c = trainer.generate_model_params(123, 1)

        assert a.shape == (num_parameters(trainer.model),)
        assert torch.equal(a, b)
        assert not torch.equal(a, c)

    def test_population_is_antithetic(self):
        trainer = make_trainer(samples=3)
        population = trainer.generate_population(99)
        base = flatten_parameters(trainer.model)

        assert len(population) == 6
        for i in range(3):
            plus = flatten_parameters(population[2 * i]) - base
            minus = flatten_parameters(population[2 * i + 1]) - base
            assert torch.allclose(plus, -minus, atol=1e-6)
            assert torch.allclose(plus, trainer.generate_model_params(99, i), atol=1e-6)

    def test_gradient_follows_better_side(self):
        trainer = make_trainer(samples=2, std=0.5)
        gradient = trainer.compute_gradient(7, [1.0, -1.0, 0.0, 0.0])

        expected = trainer.generate_model_params(7, 0) * 2.0 / (2 * 2 * 0.5)
        assert torch.allclose(gradient, expected, atol=1e-6)

    def test_gradient_needs_one_score_per_model(self):
        trainer = make_trainer(samples=2)
        with pytest.raises(ValueError):
            trainer.compute_gradient(7, [1.0, 2.0])

    def test_equal_scores_leave_model_unchanged(self):
        trainer = make_trainer()
        before = flatten_parameters(trainer.model)
        trainer.train_step()

        assert torch.allclose(flatten_parameters(trainer.model), before)
        assert trainer.steps == 1
        assert trainer.last_scores == [0.0] * 8

    def test_step_moves_towards_higher_scores(self):
        # Score is the mean of the last bias; training should increase it
        def bias_evaluator(models):
            return [float(model.linear2.bias.sum()) for model in models]

        trainer = make_trainer(evaluator=bias_evaluator, samples=8, std=0.05, learning_rate=0.05)
        before = float(trainer.model.linear2.bias.sum())
        for _ in range(3):
            trainer.train_step()

        assert float(trainer.model.linear2.bias.sum()) > before

    def test_train_step_returns_trainer(self):
        trainer = make_trainer()
        assert trainer.train_step() is trainer

    def test_model_keeps_its_type(self):
        trainer = make_trainer(evaluator=lambda models: list(range(len(models))))
        trainer.train_step()
        assert isinstance(trainer.model, ValueNet)
        assert not any(p.requires_grad for p in trainer.model.parameters())
