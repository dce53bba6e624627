"""
io_player.py - A human player at the terminal
"""

import sys
from typing import Callable, Optional

from connect_four.game.board import Board
from connect_four.game.player import Player
from connect_four.utils import COLS, Team


class IoPlayer(Player):
    """
    Asks for a column on the terminal until a valid one is entered.

    Input and output functions can be swapped out, which is how the tests
    drive this player.
    """

    def __init__(self, input_fn: Callable[[str], str] = input,
                 output_fn: Callable[[str], None] = print,
                 color: Optional[bool] = None):
        self.input_fn = input_fn
        self.output_fn = output_fn
        self.color = sys.stdout.isatty() if color is None else color

    def make_move(self, board: Board, me: Team) -> int:
        if self.color:
            self.output_fn(f"Current board:\n{board.colored_string(me)}")
        else:
            self.output_fn(f"Current board:\n{board}")
        self.output_fn(" | ".join(str(col) for col in range(COLS)) + " \n")

        possible_moves = board.possible_moves()
        while True:
            user_input = self.input_fn(f"Enter number column to place tile in ({me}): ")
            try:
                column = int(user_input.strip())
            except ValueError:
                column = None

            if column in possible_moves:
                return column
            self.output_fn("Invalid move, try again!")
