"""
optimizers.py - Turning estimated gradients into parameter updates

The evolution strategy trainer estimates a gradient over the flat parameter
vector; an Optimizer turns it into the delta that is added to the model.
"""

import json
import os
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import torch

from connect_four.debug import debug


class Optimizer(ABC):
    """Optimizer interface over flat parameter vectors."""

    @abstractmethod
    def step(self, gradient: torch.Tensor) -> torch.Tensor:
        """Take the gradient and return the parameter update (delta)."""


class Sgd(Optimizer):
    """
    SGD with momentum.

    v = momentum * v + (1 - momentum) * gradient, delta = -learning_rate * v
    """

    def __init__(self, learning_rate: float, momentum: float,
                 last_v: Optional[torch.Tensor] = None, iterations: int = 0):
        if learning_rate <= 0:
            raise ValueError(f"learning_rate must be positive, got {learning_rate}")
        if not 0.0 <= momentum < 1.0:
            raise ValueError(f"momentum must be in [0, 1), got {momentum}")

        self.learning_rate = learning_rate
        self.momentum = momentum
        self.last_v = last_v if last_v is not None else torch.zeros(1)
        self.iterations = iterations

    def step(self, gradient: torch.Tensor) -> torch.Tensor:
        if self.last_v.shape != gradient.shape:
            debug.debug(f"Resetting momentum to shape {tuple(gradient.shape)}", "training")
            self.last_v = torch.zeros_like(gradient)

        self.last_v = self.last_v * self.momentum + gradient * (1.0 - self.momentum)
        delta = self.last_v * -self.learning_rate

        self.iterations += 1
        return delta

    def state_dict(self) -> Dict[str, Any]:
        return {
            'learning_rate': self.learning_rate,
            'momentum': self.momentum,
            'last_v': [float(v) for v in self.last_v.tolist()],
            'iterations': self.iterations,
        }

    @classmethod
    def from_state_dict(cls, state: Dict[str, Any]) -> 'Sgd':
        try:
            return cls(
                learning_rate=float(state['learning_rate']),
                momentum=float(state['momentum']),
                last_v=torch.tensor(state['last_v'], dtype=torch.float32),
                iterations=int(state['iterations']),
            )
        except (KeyError, TypeError) as e:
            raise ValueError(f"Invalid optimizer state: {e}") from e

    def save(self, path: str) -> None:
        """Save the optimizer to a JSON file."""
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(path, 'w') as f:
            json.dump(self.state_dict(), f)
        debug.debug(f"Saved optimizer to {path}", "training")

    @classmethod
    def load(cls, path: str) -> 'Sgd':
        """
        Load the optimizer from a JSON file.

        Raises:
            OSError: If the file cannot be read
            ValueError: If the file is not a valid optimizer state
        """
        with open(path, 'r') as f:
            state = json.load(f)
        return cls.from_state_dict(state)

    def __repr__(self) -> str:
        return (f"Sgd(learning_rate={self.learning_rate}, momentum={self.momentum}, "
                f"iterations={self.iterations})")
