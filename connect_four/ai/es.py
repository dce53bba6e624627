"""
es.py - Evolution strategy trainer

Each step samples random dispositions of the model parameters, scores the
perturbed models by playing games, and moves the model along the
score-weighted average of the dispositions. Dispositions are regenerated from
a seed instead of being kept in memory.
"""

import random
from typing import List, Sequence

import numpy as np
import torch
import torch.nn as nn

from connect_four.ai.evaluation import Evaluator
from connect_four.ai.optimizers import Optimizer
from connect_four.ai.utils import add_to_parameters, num_parameters
from connect_four.debug import debug

SEED_MASK = (1 << 64) - 1


def normalize_scores(scores: Sequence[float]) -> List[float]:
    """
    Standardise scores to mean 0 and standard deviation 1.

    When all scores are equal there is no signal and all become 0.
    """
    values = np.asarray(scores, dtype=np.float64)
    std = values.std()
    if std == 0.0 or not np.isfinite(std):
        return [0.0] * len(values)
    return ((values - values.mean()) / std).tolist()


class EsTrainer:
    """
    Model trainer using evolution strategy optimization.

    Args:
        model: The model to train
        std: Standard deviation of the parameter dispositions
        samples: Number of antithetic pairs, the population is twice as large
        evaluator: Scores a population, higher is better
        optimizer: Turns the estimated gradient into a parameter update
    """

    def __init__(self, model: nn.Module, std: float, samples: int,
                 evaluator: Evaluator, optimizer: Optimizer):
        if std <= 0:
            raise ValueError(f"std must be positive, got {std}")
        if samples <= 0:
            raise ValueError(f"samples must be positive, got {samples}")

        self.model = model
        self.std = std
        self.samples = samples
        self.evaluator = evaluator
        self.optimizer = optimizer
        self.steps = 0
        self.last_scores: List[float] = []

    def generate_model_params(self, seed: int, i: int) -> torch.Tensor:
        """The disposition for the i-th sample of the step seeded with ``seed``."""
        rng = np.random.default_rng((seed + i) & SEED_MASK)
        disposition = rng.normal(0.0, self.std, size=num_parameters(self.model))
        return torch.from_numpy(disposition.astype(np.float32))

    def modified_model(self, disposition: torch.Tensor) -> nn.Module:
        return add_to_parameters(self.model, disposition)

    def generate_population(self, seed: int) -> List[nn.Module]:
        """Antithetic pairs: model + disposition, then model - disposition."""
        population = []
        for i in range(self.samples):
            disposition = self.generate_model_params(seed, i)
            population.append(self.modified_model(disposition))
            population.append(self.modified_model(-disposition))
        return population

    def compute_gradient(self, seed: int, scores: Sequence[float]) -> torch.Tensor:
        """
        Estimate the score gradient from the population scores.

        Regenerates the dispositions of ``generate_population(seed)``.
        """
        if len(scores) != 2 * self.samples:
            raise ValueError(f"Expected {2 * self.samples} scores, got {len(scores)}")

        gradient = torch.zeros(num_parameters(self.model))
        for i in range(self.samples):
            disposition = self.generate_model_params(seed, i)
            gradient += disposition * float(scores[2 * i] - scores[2 * i + 1])
        return gradient / (2.0 * self.samples * self.std)

    def train_step(self) -> 'EsTrainer':
        """Train the model for one step."""
        seed = random.getrandbits(64)

        with debug.timed("Generating population", "training"):
            population = self.generate_population(seed)
        with debug.timed("Computing population scores", "training"):
            raw_scores = self.evaluator(population)
        self.last_scores = list(raw_scores)
        scores = normalize_scores(raw_scores)
        with debug.timed("Computing gradient", "training"):
            gradient = self.compute_gradient(seed, scores)

        # The optimizer descends, so hand it the negated gradient to ascend the score
        delta = self.optimizer.step(-gradient)
        self.model = self.modified_model(delta)

        self.steps += 1
        debug.debug(f"ES step {self.steps}: mean raw score {np.mean(raw_scores):.3f}, "
                    f"|delta| {float(delta.norm()):.5f}", "training")
        return self
