"""
player.py - The interface every Connect Four player implements
"""

from abc import ABC, abstractmethod

from connect_four.game.board import Board
from connect_four.utils import Team


class Player(ABC):
    """Anything that can choose a column for a given position."""

    @abstractmethod
    def make_move(self, board: Board, me: Team) -> int:
        """
        Choose a move for the current position.

        Args:
            board: Current board, which must not be modified
            me: The team this player plays for

        Returns:
            Column to put the new tile in
        """

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"
