"""Shared pytest fixtures for Connect Four tests."""

import pytest

from connect_four.data import data_manager
from connect_four.debug import debug, DebugLevel
from connect_four.game.board import Board
from connect_four.game.player import Player
from connect_four.utils import ROWS


# =============================================================================
# Logging
# =============================================================================


@pytest.fixture(autouse=True)
def quiet_debug():
    """Silence the package logger for every test, restoring the level afterwards."""
    previous = debug.level
    debug.configure(level=DebugLevel.NONE)
    yield
    debug.configure(level=previous, components=[])


# =============================================================================
# Boards and players
# =============================================================================


@pytest.fixture
def empty_board() -> Board:
    return Board()


def _draw_moves():
    # Columns alternate tiles vertically and start with X (A) or O (B).
    # The column types A A B B A A B leave no four in a row in any direction.
    moves = []
    for a, b in ((0, 2), (1, 3), (4, 6)):
        moves.extend([a, b, b, a] * 3)
    moves.extend([5] * ROWS)
    return moves


DRAW_MOVES = _draw_moves()


@pytest.fixture
def draw_moves():
    """Columns of a complete game that ends in a draw, X first."""
    return list(DRAW_MOVES)


@pytest.fixture
def full_draw_board() -> Board:
    """A full board without four in a row."""
    return Board.from_moves(DRAW_MOVES)


class ScriptedPlayer(Player):
    """Plays a fixed sequence of columns."""

    def __init__(self, columns):
        self.columns = list(columns)
        self.seen = []

    def make_move(self, board, me):
        self.seen.append((board.copy(), me))
        return self.columns.pop(0)


@pytest.fixture
def scripted_player():
    """Factory for players that play a fixed list of columns."""
    return ScriptedPlayer


# =============================================================================
# Data store
# =============================================================================


@pytest.fixture
def data_dir(tmp_path):
    """Point the data store at a temporary directory."""
    data_manager.set_data_dir(str(tmp_path / "data"))
    yield tmp_path / "data"
    data_manager.set_data_dir(None)
