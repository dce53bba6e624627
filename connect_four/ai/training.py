"""
training.py - The training loop around a trainer

TrainingSession repeatedly steps a trainer (EsTrainer or EvolutionTrainer),
checkpoints the model and optimizer, benchmarks the model against the random
and minimax players and records everything in the data store so the job can
be inspected with ``run.py jobs`` while it runs.
"""

import time
from typing import Any, Dict, Optional

import numpy as np
import torch.nn as nn

from connect_four.ai.evaluation import outcome_for, play_game, score_against_random
from connect_four.ai.optimizers import Sgd
from connect_four.data.data_manager import (add_episode_log, complete_job, create_job,
                                            register_model, save_game_moves,
                                            update_job_progress)
from connect_four.debug import debug, DebugLevel
from connect_four.players.minimax import MinimaxPlayer
from connect_four.players.policy_net import PolicyNet
from connect_four.players.value_net import ValueNet
from connect_four.utils import Team

# Defaults of the training command
DEFAULT_STD = 0.025
DEFAULT_SAMPLES = 100
DEFAULT_LEARNING_RATE = 0.05
DEFAULT_MOMENTUM = 0.9
DEFAULT_SAVE_INTERVAL = 10
DEFAULT_EVAL_GAMES = 500
DEFAULT_MINIMAX_DEPTH = 5

NETWORKS = {
    'policy': PolicyNet,
    'value': ValueNet,
}


def load_or_init_model(network: str, path: Optional[str], **kwargs) -> nn.Module:
    """
    Load a saved network, or create a fresh one if that fails.

    Args:
        network: "policy" or "value"
        path: Saved state dict, may be None
        **kwargs: Architecture arguments (e.g. depth for the value network)
    """
    if network not in NETWORKS:
        raise ValueError(f"Unknown network type: {network}")
    model_cls = NETWORKS[network]

    if path:
        try:
            return model_cls.load(path, **kwargs)
        except (OSError, RuntimeError, ValueError) as e:
            debug.warning(f"Failed loading model: {e}", "training")

    debug.info(f"Starting with new {network} model", "training")
    return model_cls(**kwargs)


def load_or_init_sgd(path: Optional[str], learning_rate: float = DEFAULT_LEARNING_RATE,
                     momentum: float = DEFAULT_MOMENTUM) -> Sgd:
    """Load a saved optimizer, or create a fresh one if that fails."""
    if path:
        try:
            return Sgd.load(path)
        except (OSError, ValueError) as e:
            debug.warning(f"Failed loading optimizer: {e}", "training")

    debug.info("Starting with new optimizer", "training")
    return Sgd(learning_rate=learning_rate, momentum=momentum)


class TrainingSession:
    """
    Runs a trainer for a number of steps with checkpoints and benchmarks.

    Args:
        trainer: Object with ``train_step()`` and a ``model`` attribute
        model_path: Where the model is saved
        optimizer_path: Where the trainer's optimizer is saved, if it has one
        save_interval: Save and register a checkpoint every N steps
        eval_random_games: Games per side against the random player after each step
        minimax_depth: Search depth of the minimax benchmark opponent
        parameters: Extra parameters to record with the job
    """

    def __init__(self, trainer, model_path: str,
                 optimizer_path: Optional[str] = None,
                 save_interval: int = DEFAULT_SAVE_INTERVAL,
                 eval_random_games: int = DEFAULT_EVAL_GAMES,
                 minimax_depth: int = DEFAULT_MINIMAX_DEPTH,
                 parameters: Optional[Dict[str, Any]] = None):
        if save_interval <= 0:
            raise ValueError(f"save_interval must be positive, got {save_interval}")

        self.trainer = trainer
        self.model_path = model_path
        self.optimizer_path = optimizer_path
        self.save_interval = save_interval
        self.eval_random_games = eval_random_games
        self.minimax_depth = minimax_depth
        self.parameters = dict(parameters or {})

        self.job_id: Optional[int] = None
        self.step_count = 0
        self.history = {'random': [], 'minimax': [], 'population': []}

    def run(self, steps: int) -> Dict[str, Any]:
        """
        Train for ``steps`` steps.

        Returns:
            Summary of the session
        """
        params = dict(self.parameters)
        params.update({
            'steps': steps,
            'trainer': type(self.trainer).__name__,
            'model_path': self.model_path,
            'optimizer_path': self.optimizer_path,
            'save_interval': self.save_interval,
            'eval_random_games': self.eval_random_games,
            'minimax_depth': self.minimax_depth,
        })
        self.job_id = create_job(params)
        debug.info(f"Created training job with ID: {self.job_id}", "training")

        start_time = time.time()
        status = "completed"
        try:
            for step in range(1, steps + 1):
                self._run_step(step, steps)
        except KeyboardInterrupt:
            debug.warning("Training interrupted, saving current model", "training")
            status = "interrupted"

        self.save_checkpoint(self.step_count, final=True)
        complete_job(self.job_id, status=status)

        elapsed = time.time() - start_time
        debug.info(f"Training {status} after {self.step_count} steps in {elapsed:.1f}s", "training")
        return self.summary(status)

    def _run_step(self, step: int, steps: int):
        with debug.timed("One training step", "training"):
            self.trainer.train_step()
        self.step_count = step

        # The last step is saved once, as the final checkpoint
        if step % self.save_interval == 0 and step != steps:
            self.save_checkpoint(step)

        model = self.trainer.model
        with debug.timed("Testing performance", "training", level=DebugLevel.DEBUG):
            random_score = score_against_random(model, self.eval_random_games)
        minimax_score = self.benchmark_minimax(model, step)

        population_score = float(np.mean(self.trainer.last_scores)) if self.trainer.last_scores else None
        self.history['random'].append(random_score)
        self.history['minimax'].append(minimax_score)
        self.history['population'].append(population_score)

        debug.info(f"Step {step}: performance score {random_score:.3f}, "
                   f"minimax performance {minimax_score:.1f}", "training")

        add_episode_log(self.job_id, {
            'episode': step,
            'random_score': random_score,
            'minimax_score': minimax_score,
            'population_score': population_score,
        })
        update_job_progress(self.job_id, step)

    def benchmark_minimax(self, model, step: int) -> float:
        """One game per side against minimax; both games are saved for replay."""
        opponent = MinimaxPlayer.with_heuristic_1(self.minimax_depth)
        score = 0.0
        for model_team in (Team.X, Team.O):
            if model_team == Team.X:
                result, moves = play_game(model, opponent)
                players = {'X': 'model', 'O': repr(opponent)}
            else:
                result, moves = play_game(opponent, model)
                players = {'X': repr(opponent), 'O': 'model'}
            score += outcome_for(result, model_team)

            winner = str(result.winner) if result.winner is not None else None
            save_game_moves(self.job_id, step, moves, winner, len(moves), players)
        return score / 2.0

    def save_checkpoint(self, step: int, final: bool = False):
        """Save model (and optimizer) and register the checkpoint."""
        self.trainer.model.save(self.model_path)

        optimizer = getattr(self.trainer, 'optimizer', None)
        if self.optimizer_path and isinstance(optimizer, Sgd):
            optimizer.save(self.optimizer_path)

        metrics = {}
        if self.history['random']:
            metrics = {'random_score': self.history['random'][-1],
                       'minimax_score': self.history['minimax'][-1]}
        if self.job_id is not None:
            register_model(self.job_id, step, self.model_path, is_final=final, metrics=metrics)
        debug.info(f"Model saved to {self.model_path}", "training")

    def summary(self, status: str = "completed") -> Dict[str, Any]:
        window = self.history['random'][-10:]
        return {
            'job_id': self.job_id,
            'status': status,
            'steps': self.step_count,
            'avg_random_score': float(np.mean(window)) if window else 0.0,
            'last_minimax_score': self.history['minimax'][-1] if self.history['minimax'] else 0.0,
        }
