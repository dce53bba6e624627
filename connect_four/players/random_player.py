"""
random_player.py - A player choosing uniformly among the open columns
"""

import random
from typing import Optional

from connect_four.game.board import Board
from connect_four.game.player import Player
from connect_four.utils import Team


class RandomPlayer(Player):
    """Random player, the baseline opponent for evaluation."""

    def __init__(self, seed: Optional[int] = None):
        self._rng = random.Random(seed)

    def make_move(self, board: Board, me: Team) -> int:
        possible_moves = board.possible_moves()
        if not possible_moves:
            raise ValueError("No possible moves")
        return self._rng.choice(possible_moves)
