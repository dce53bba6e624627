"""
minimax.py - Depth-limited minimax player with a pluggable heuristic

The heuristic is any callable ``(board, me) -> float`` where 0.0 is an even
position, positive values favour ``me`` and negative values favour the
opponent. Board.heuristic_1 is the hand-written default; ValueNet plugs a
neural network in here instead.
"""

import math
from typing import Callable, List, Optional

from connect_four.debug import debug
from connect_four.game.board import Board
from connect_four.game.player import Player
from connect_four.utils import COLS, GameResult, Team

HeuristicFn = Callable[[Board, Team], float]


def terminal_value(result: GameResult, me: Team) -> float:
    """Value of a finished game for ``me``."""
    if result == GameResult.DRAW:
        return 0.0
    return math.inf if result.winner == me else -math.inf


def ordered_moves(board: Board) -> List[int]:
    """Possible moves, centre column first."""
    center = COLS // 2
    return sorted(board.possible_moves(), key=lambda c: abs(c - center))


class MinimaxPlayer(Player):
    """
    Minimax player searching ``depth`` plies.

    The root tries each of our moves (ply 1). A node at ply ``d`` is expanded
    while ``d + 1 < depth`` and scored with the heuristic otherwise, so a
    depth of 1 or 2 looks at our move and, for 2, the opponent's reply.
    Moves that end the game are scored exactly. Alpha-beta pruning skips
    branches that cannot change the chosen column.
    """

    def __init__(self, depth: int, heuristic: HeuristicFn):
        self.depth = depth
        self.heuristic = heuristic
        self.nodes_evaluated = 0
        # Summed over every move this player has made
        self.total_nodes_evaluated = 0

    @classmethod
    def with_heuristic_1(cls, depth: int) -> 'MinimaxPlayer':
        return cls(depth, Board.heuristic_1)

    def make_move(self, board: Board, me: Team) -> int:
        self.nodes_evaluated = 0
        best_column: Optional[int] = None
        best_value = -math.inf

        for column in ordered_moves(board):
            value = self._child_value(board, column, me, me, 1, best_value, math.inf)
            debug.trace(f"Column {column} valued {value}", "players")
            if best_column is None or value > best_value:
                best_column = column
                best_value = value

        if best_column is None:
            raise ValueError("No possible move")

        self.total_nodes_evaluated += self.nodes_evaluated

        debug.debug(f"Minimax chose column {best_column} ({best_value:.3f}, "
                    f"{self.nodes_evaluated} nodes)", "players")
        return best_column

    def _child_value(self, board: Board, column: int, team: Team, me: Team,
                     ply: int, alpha: float, beta: float) -> float:
        """Play ``column`` for ``team`` on a copy and value the result."""
        self.nodes_evaluated += 1
        child = board.copy()
        child.put_tile(column, team)

        result = child.game_result_on_change(column)
        if result is not None:
            return terminal_value(result, me)

        if team == me:
            return self._min_value(child, me, ply, alpha, beta)
        return self._max_value(child, me, ply, alpha, beta)

    def _max_value(self, board: Board, me: Team, ply: int, alpha: float, beta: float) -> float:
        """Our turn, take the best of our moves."""
        if ply + 1 >= self.depth:
            return self.heuristic(board, me)

        value = -math.inf
        for column in ordered_moves(board):
            value = max(value, self._child_value(board, column, me, me, ply + 1, alpha, beta))
            if value >= beta:
                return value
            alpha = max(alpha, value)
        return value

    def _min_value(self, board: Board, me: Team, ply: int, alpha: float, beta: float) -> float:
        """Opponent's turn, assume they pick the move that is worst for us."""
        if ply + 1 >= self.depth:
            return self.heuristic(board, me)

        value = math.inf
        for column in ordered_moves(board):
            value = min(value, self._child_value(board, column, me.other(), me, ply + 1, alpha, beta))
            if value <= alpha:
                return value
            beta = min(beta, value)
        return value

    def __repr__(self) -> str:
        return f"MinimaxPlayer(depth={self.depth})"
