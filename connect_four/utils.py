"""
utils.py - Constants, enumerations and grid helpers for Connect Four

The board is a numpy array of shape (ROWS, COLS). Row 0 is the top row, so the
first tile dropped into a column lands in row ROWS - 1.
"""

from enum import Enum
from typing import Optional

import numpy as np

# Game constants
ROWS = 6
COLS = 7
CONNECT_N = 4  # Number of tiles in a row to win

EMPTY = 0


class Team(Enum):
    """The two sides. X always moves first."""
    X = 1
    O = 2

    def other(self) -> 'Team':
        """Get the other team."""
        return Team.O if self == Team.X else Team.X

    def __str__(self):
        return self.name


class GameResult(Enum):
    """Outcome of a finished game. A running game has no result (None)."""
    DRAW = 0
    X_WINS = 1
    O_WINS = 2

    @property
    def winner(self) -> Optional[Team]:
        """The winning team, or None for a draw."""
        if self == GameResult.DRAW:
            return None
        return Team(self.value)

    @classmethod
    def win_for(cls, team: Team) -> 'GameResult':
        return cls.X_WINS if team == Team.X else cls.O_WINS


# Direction vectors (row, col) for line checks
DIRECTION_VECTORS = [
    (1, 0),   # vertical
    (0, 1),   # horizontal
    (-1, 1),  # diagonal up (bottom-left to top-right)
    (1, 1),   # diagonal down (top-left to bottom-right)
]

# The 8-neighbourhood of a cell
NEIGHBOURS = [(dr, dc) for dr in (-1, 0, 1) for dc in (-1, 0, 1) if (dr, dc) != (0, 0)]


def is_valid_position(row: int, col: int) -> bool:
    """Check if a position is within the board boundaries."""
    return 0 <= row < ROWS and 0 <= col < COLS


def top_row(grid: np.ndarray, column: int) -> Optional[int]:
    """Row index of the highest tile in a column, or None if it is empty."""
    occupied = np.flatnonzero(grid[:, column] != EMPTY)
    if occupied.size == 0:
        return None
    return int(occupied[0])


def check_win_at_position(grid: np.ndarray, row: int, col: int) -> bool:
    """
    Check whether the tile at (row, col) is part of a line of CONNECT_N.

    Args:
        grid: The board grid
        row: Row index of the tile
        col: Column index of the tile

    Returns:
        True if the tile completes a line, False otherwise
    """
    value = grid[row, col]
    if value == EMPTY:
        return False

    for dr, dc in DIRECTION_VECTORS:
        count = 1

        r, c = row + dr, col + dc
        while is_valid_position(r, c) and grid[r, c] == value:
            count += 1
            r += dr
            c += dc

        r, c = row - dr, col - dc
        while is_valid_position(r, c) and grid[r, c] == value:
            count += 1
            r -= dr
            c -= dc

        if count >= CONNECT_N:
            return True

    return False


ANSI_GREEN = "\033[32m"
ANSI_RED = "\033[31m"
ANSI_RESET = "\033[0m"


def render_board_ascii(grid: np.ndarray, me: Optional[Team] = None) -> str:
    """
    Render the board as ASCII art.

    Args:
        grid: The game board
        me: When given, own tiles are coloured green and the opponent's red

    Returns:
        ASCII representation of the board with column numbers underneath
    """
    separator = "-" * (COLS * 4 - 3)
    lines = [separator]

    for row in range(ROWS):
        cells = []
        for col in range(COLS):
            value = grid[row, col]
            if value == EMPTY:
                cells.append(" ")
                continue
            team = Team(int(value))
            symbol = str(team)
            if me is not None:
                colour = ANSI_GREEN if team == me else ANSI_RED
                symbol = f"{colour}{symbol}{ANSI_RESET}"
            cells.append(symbol)
        lines.append(" | ".join(cells))
        lines.append(separator)

    lines.append(" | ".join(str(col) for col in range(COLS)))
    return "\n".join(lines)
