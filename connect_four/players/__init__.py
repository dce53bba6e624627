"""
connect_four.players - Player implementations

Random and terminal players, the minimax search player, and the two neural
network players trained by connect_four.ai.
"""

from connect_four.players.io_player import IoPlayer
from connect_four.players.minimax import MinimaxPlayer
from connect_four.players.policy_net import PolicyNet
from connect_four.players.random_player import RandomPlayer
from connect_four.players.value_net import ValueNet

__all__ = ['IoPlayer', 'MinimaxPlayer', 'PolicyNet', 'RandomPlayer', 'ValueNet']
