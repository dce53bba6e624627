"""
evaluation.py - Scoring models by playing games

An evaluator is any callable taking a population (a sequence of players) and
returning one score per member; higher is better. Invalid moves count as
losses, which is how untrained policies learn to avoid full columns.

With ``workers > 1`` the games are spread over a torch.multiprocessing pool.
Players are pickled into the worker processes, so the results only match a
sequential run for players that do not carry random state between games.
"""

from typing import Callable, List, Optional, Sequence, Tuple

import torch.multiprocessing as mp

from connect_four.debug import debug
from connect_four.game.player import Player
from connect_four.game.rules import Game
from connect_four.players.minimax import MinimaxPlayer
from connect_four.players.random_player import RandomPlayer
from connect_four.utils import GameResult, Team

Evaluator = Callable[[Sequence[Player]], List[float]]


def play_game(player_x: Player, player_o: Player) -> Tuple[GameResult, List[int]]:
    """Play one game where invalid moves lose; also return the columns played."""
    game = Game.builder().player_x(player_x).player_o(player_o).build()
    result = game.run_error_loss()
    return result, game.moves


def play(player_x: Player, player_o: Player) -> GameResult:
    return play_game(player_x, player_o)[0]


def outcome_for(result: GameResult, team: Team) -> float:
    """+1 if ``team`` won, -1 if it lost, 0 for a draw."""
    if result.winner is None:
        return 0.0
    return 1.0 if result.winner == team else -1.0


# Population of the current league, set once per worker process
_league_models: Sequence[Player] = ()


def _init_league_worker(models: Sequence[Player]):
    global _league_models
    _league_models = models


def _league_row(i: int) -> List[GameResult]:
    """Results of model ``i`` playing X against every model of the league."""
    return [play(_league_models[i], model_o) for model_o in _league_models]


def _pool(workers: int, **kwargs):
    debug.debug(f"Evaluating with {workers} worker processes", "training")
    return mp.get_context("spawn").Pool(workers, **kwargs)


def league_scores(models: Sequence[Player], workers: int = 1) -> List[float]:
    """
    Every model plays every model (itself included) once as X.

    Args:
        models: The population
        workers: Processes to spread the rows of the league over

    Returns:
        Per model: +1 for each win, -1 for each loss
    """
    models = list(models)
    if workers > 1 and len(models) > 1:
        with _pool(workers, initializer=_init_league_worker, initargs=(models,)) as pool:
            rows = pool.map(_league_row, range(len(models)))
    else:
        rows = [[play(model_x, model_o) for model_o in models] for model_x in models]

    scores = [0.0] * len(models)
    for i, row in enumerate(rows):
        for j, result in enumerate(row):
            if result.winner is None:
                continue
            if result.winner == Team.X:
                scores[i] += 1.0
                scores[j] -= 1.0
            else:
                scores[i] -= 1.0
                scores[j] += 1.0

    debug.trace(f"League scores: {scores}", "training")
    return scores


def score_against(model: Player, opponent: Player, games: int) -> float:
    """Average outcome over ``games`` games as O and ``games`` games as X."""
    if games <= 0:
        raise ValueError(f"games must be positive, got {games}")

    score = 0.0
    for _ in range(games):
        score += outcome_for(play(opponent, model), Team.O)
    for _ in range(games):
        score += outcome_for(play(model, opponent), Team.X)
    return score / (2 * games)


def score_against_random(model: Player, games: int = 500, seed: Optional[int] = None) -> float:
    """Performance against RandomPlayer, in [-1, 1]."""
    return score_against(model, RandomPlayer(seed), games)


def score_against_minimax(model: Player, depth: int = 5) -> float:
    """One game on each side against the heuristic minimax player, in [-1, 1]."""
    return score_against(model, MinimaxPlayer.with_heuristic_1(depth), 1)


def random_player_scores(models: Sequence[Player], games: int = 500,
                         seed: Optional[int] = None, workers: int = 1) -> List[float]:
    """Score every model against the random player, one model per task."""
    models = list(models)
    if workers > 1 and len(models) > 1:
        with _pool(workers) as pool:
            return pool.starmap(score_against_random, [(model, games, seed) for model in models])
    return [score_against_random(model, games, seed) for model in models]


def league_evaluator(workers: int = 1) -> Evaluator:
    """An evaluator scoring the population with ``league_scores``."""
    def evaluate(models: Sequence[Player]) -> List[float]:
        return league_scores(models, workers)
    return evaluate


def random_evaluator(games: int = 500, seed: Optional[int] = None, workers: int = 1) -> Evaluator:
    """An evaluator playing ``games`` games per side against RandomPlayer."""
    def evaluate(models: Sequence[Player]) -> List[float]:
        return random_player_scores(models, games, seed, workers)
    return evaluate
