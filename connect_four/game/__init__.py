"""
connect_four.game - Core game mechanics for Connect Four

This package contains the board, the player interface, the rule errors and
the code that runs a game between two players.
"""

from connect_four.game.board import Board
from connect_four.game.errors import (GameError, BuilderMissingField, InvalidMove,
                                      IndexOutOfBounds, ColumnFull)
from connect_four.game.player import Player
from connect_four.game.rules import Game, GameBuilder, ConnectFourEnv

__all__ = ['Board', 'Player', 'Game', 'GameBuilder', 'ConnectFourEnv',
           'GameError', 'BuilderMissingField', 'InvalidMove', 'IndexOutOfBounds', 'ColumnFull']
