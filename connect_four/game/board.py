"""
board.py - Board representation for Connect Four

This module implements the Board class which holds the grid, places tiles,
detects finished games and provides a cheap positional heuristic for search.
"""

import math
from typing import List, Optional, Tuple

import numpy as np

from connect_four.debug import debug
from connect_four.game.errors import ColumnFull, IndexOutOfBounds
from connect_four.utils import (ROWS, COLS, CONNECT_N, EMPTY, NEIGHBOURS, Team, GameResult,
                                check_win_at_position, is_valid_position,
                                render_board_ascii, top_row)


class Board:
    """
    A Connect Four board.

    Boards do not track whose move it is; that is derived from the number of
    tiles, X moving first. Copy a board before trying moves on it.
    """

    def __init__(self, grid: Optional[np.ndarray] = None):
        if grid is None:
            self.grid = np.zeros((ROWS, COLS), dtype=np.int8)
        else:
            grid = np.asarray(grid, dtype=np.int8)
            if grid.shape != (ROWS, COLS):
                raise ValueError(f"Grid must have shape {(ROWS, COLS)}, got {grid.shape}")
            self.grid = grid.copy()

    @classmethod
    def from_moves(cls, moves: List[int]) -> 'Board':
        """Build a board by playing the given columns alternately, X first."""
        board = cls()
        team = Team.X
        for column in moves:
            board.put_tile(column, team)
            team = team.other()
        return board

    def copy(self) -> 'Board':
        return Board(self.grid)

    def dimensions(self) -> Tuple[int, int]:
        """Width and height of the board."""
        return COLS, ROWS

    def field(self) -> np.ndarray:
        """Read-only view of the grid."""
        view = self.grid.view()
        view.flags.writeable = False
        return view

    def tile_count(self) -> int:
        return int(np.count_nonzero(self.grid))

    def whos_turn(self) -> Team:
        """X on an even number of tiles, O otherwise."""
        return Team.X if self.tile_count() % 2 == 0 else Team.O

    def possible_moves(self) -> List[int]:
        """Columns that still have an open cell."""
        return [col for col in range(COLS) if self.grid[0, col] == EMPTY]

    def is_valid_move(self, column: int) -> bool:
        return 0 <= column < COLS and self.grid[0, column] == EMPTY

    def put_tile(self, column: int, team: Team) -> int:
        """
        Drop a tile of the given team into a column.

        Args:
            column: The column to place the tile in (0-indexed)
            team: Owner of the tile

        Returns:
            The row the tile landed in

        Raises:
            IndexOutOfBounds: If the column does not exist
            ColumnFull: If the column has no open cell left
        """
        if not 0 <= column < COLS:
            raise IndexOutOfBounds(column)

        for row in range(ROWS - 1, -1, -1):
            if self.grid[row, column] == EMPTY:
                self.grid[row, column] = team.value
                debug.trace(f"Placed {team} at ({row}, {column})", "board")
                return row

        raise ColumnFull(column, team)

    def is_full(self) -> bool:
        return not np.any(self.grid[0] == EMPTY)

    def game_result(self) -> Optional[GameResult]:
        """
        Scan the whole board for a finished game.

        Lines are searched vertically, horizontally, then along both
        diagonals and the first one found decides. Which winner is reported
        is unspecified if both teams have a line.

        Returns:
            The result, or None while the game is still running
        """
        grid = self.grid

        # Vertical
        for col in range(COLS):
            for row in range(ROWS - CONNECT_N + 1):
                value = grid[row, col]
                if value != EMPTY and all(grid[row + i, col] == value for i in range(1, CONNECT_N)):
                    return GameResult.win_for(Team(int(value)))

        # Horizontal
        for row in range(ROWS):
            for col in range(COLS - CONNECT_N + 1):
                value = grid[row, col]
                if value != EMPTY and all(grid[row, col + i] == value for i in range(1, CONNECT_N)):
                    return GameResult.win_for(Team(int(value)))

        # Diagonal up, from bottom-left to top-right
        for row in range(CONNECT_N - 1, ROWS):
            for col in range(COLS - CONNECT_N + 1):
                value = grid[row, col]
                if value != EMPTY and all(grid[row - i, col + i] == value for i in range(1, CONNECT_N)):
                    return GameResult.win_for(Team(int(value)))

        # Diagonal down, from top-left to bottom-right
        for row in range(ROWS - CONNECT_N + 1):
            for col in range(COLS - CONNECT_N + 1):
                value = grid[row, col]
                if value != EMPTY and all(grid[row + i, col + i] == value for i in range(1, CONNECT_N)):
                    return GameResult.win_for(Team(int(value)))

        if self.is_full():
            return GameResult.DRAW
        return None

    def game_result_on_change(self, column: int) -> Optional[GameResult]:
        """
        Result check restricted to the top tile of a column.

        Equivalent to game_result() when the last tile placed went into
        ``column`` and the board had no result before.
        """
        row = top_row(self.grid, column)
        if row is not None and check_win_at_position(self.grid, row, column):
            return GameResult.win_for(Team(int(self.grid[row, column])))

        if self.is_full():
            return GameResult.DRAW
        return None

    def heuristic_1(self, me: Team) -> float:
        """
        Estimate the value of the position for ``me``.

        Every tile scores its neighbourhood: +1 per friendly neighbour, -1 per
        hostile one and +0.333 per empty cell. Own tiles add their score,
        opponent tiles subtract it. Decided games are 0.0 (draw) or +/-inf.

        Only neighbours on the board count. Tiles on the left and right edges
        do not see cells of the opposite edge one row away, as a flat index
        over the grid would.
        """
        result = self.game_result()
        if result == GameResult.DRAW:
            return 0.0
        if result is not None:
            return math.inf if result.winner == me else -math.inf

        grid = self.grid
        value = 0.0
        for row, col in zip(*np.nonzero(grid)):
            tile = grid[row, col]
            surrounding = 0.0
            for dr, dc in NEIGHBOURS:
                r, c = row + dr, col + dc
                if not is_valid_position(r, c):
                    continue
                neighbour = grid[r, c]
                if neighbour == EMPTY:
                    surrounding += 0.333
                elif neighbour == tile:
                    surrounding += 1.0
                else:
                    surrounding -= 1.0

            if tile == me.value:
                value += surrounding
            else:
                value -= surrounding

        return value

    def render(self) -> str:
        return render_board_ascii(self.grid)

    def colored_string(self, me: Team) -> str:
        """Render with own tiles in green and the opponent's in red."""
        return render_board_ascii(self.grid, me)

    def __str__(self) -> str:
        return self.render()

    def __repr__(self) -> str:
        return f"Board(tiles={self.tile_count()}, turn={self.whos_turn()})"

    def __eq__(self, other) -> bool:
        if not isinstance(other, Board):
            return NotImplemented
        return bool(np.array_equal(self.grid, other.grid))

    __hash__ = None
