"""
evolution.py - Genetic trainer with breeding, mutation and selection
"""

import random
from typing import Callable, List, Optional

import torch
import torch.nn as nn

from connect_four.ai.evaluation import Evaluator
from connect_four.ai.utils import (add_to_parameters, flatten_parameters, num_parameters,
                                   override_parameters)
from connect_four.debug import debug


class EvolutionTrainer:
    """
    Model trainer using pure evolution.

    Every step fills the population up to ``population_max`` with fresh
    models and children of random parents, scores everyone, and keeps the
    ``population_min`` best.
    """

    def __init__(self, population: List[nn.Module],
                 init_fn: Callable[[], nn.Module],
                 population_max: int,
                 population_min: int,
                 generate_new: float,
                 mutation_probability: float,
                 mutation_std: float,
                 evaluator: Evaluator,
                 seed: Optional[int] = None):
        if population_min < 2:
            raise ValueError("population_min must be at least 2 to breed")
        if population_max < population_min:
            raise ValueError("population_max must not be smaller than population_min")

        self.population = list(population)
        self.init_fn = init_fn
        self.population_max = population_max
        self.population_min = population_min
        self.generate_new = generate_new
        self.mutation_probability = mutation_probability
        self.mutation_std = mutation_std
        self.evaluator = evaluator
        self.last_scores: List[float] = []
        self.steps = 0

        self._rng = random.Random(seed)
        self._torch_rng = torch.Generator()
        self._torch_rng.manual_seed(self._rng.getrandbits(63))

    def breed(self, a: nn.Module, b: nn.Module) -> nn.Module:
        """Child whose parameters blend both parents with a uniform random mask."""
        params_a = flatten_parameters(a)
        params_b = flatten_parameters(b)
        mask = torch.rand(params_a.shape, generator=self._torch_rng)
        return override_parameters(a, mask * params_a + (1.0 - mask) * params_b)

    def mutate(self, model: nn.Module) -> nn.Module:
        """Add normal noise with ``mutation_std`` to every parameter."""
        noise = torch.randn(num_parameters(model), generator=self._torch_rng) * self.mutation_std
        return add_to_parameters(model, noise)

    def generate_population(self):
        """Top the population up to ``population_max``."""
        while len(self.population) < self.population_min:
            self.population.append(self.init_fn())

        while len(self.population) < self.population_max:
            if self._rng.random() < self.generate_new:
                self.population.append(self.init_fn())
                continue

            parent_a, parent_b = self._rng.sample(self.population, 2)
            child = self.breed(parent_a, parent_b)
            if self._rng.random() < self.mutation_probability:
                child = self.mutate(child)
            self.population.append(child)

    def train_step(self) -> 'EvolutionTrainer':
        """Train for one step."""
        with debug.timed("Generating population", "training"):
            self.generate_population()
        with debug.timed("Computing population scores", "training"):
            scores = self.evaluator(self.population)

        ranked = sorted(zip(self.population, scores), key=lambda pair: pair[1], reverse=True)
        self.population = [model for model, _ in ranked[:self.population_min]]
        self.last_scores = [score for _, score in ranked[:self.population_min]]

        self.steps += 1
        debug.debug(f"Evolution step {self.steps}: best score {self.last_scores[0]:.3f}", "training")
        return self

    def best(self) -> nn.Module:
        """The best model of the last step (or the first member before any step)."""
        if not self.population:
            raise ValueError("Population is empty")
        return self.population[0]

    @property
    def model(self) -> nn.Module:
        return self.best()
