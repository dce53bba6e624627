"""
value_net.py - Convolutional value network used as a minimax heuristic
"""

import torch
import torch.nn as nn

from connect_four.ai.utils import board_to_tensor, load_state_dict, save_state_dict
from connect_four.debug import debug
from connect_four.game.board import Board
from connect_four.game.player import Player
from connect_four.players.minimax import MinimaxPlayer
from connect_four.utils import ROWS, COLS, Team

KERNEL_SIZE = 4


class ValueNet(nn.Module, Player):
    """
    Conv(1->8, 4x4) -> tanh -> Linear(96, 50) -> tanh -> Linear(50, 1) -> tanh.

    Plays by running a minimax search of ``depth`` plies with its own
    prediction as the heuristic.
    """

    def __init__(self, depth: int = 2, channels: int = 8, hidden_size: int = 50):
        super().__init__()
        self.depth = depth
        self.channels = channels
        self.hidden_size = hidden_size

        self.conv1 = nn.Conv2d(1, channels, kernel_size=KERNEL_SIZE)
        conv_output_size = channels * (ROWS - KERNEL_SIZE + 1) * (COLS - KERNEL_SIZE + 1)
        self.linear1 = nn.Linear(conv_output_size, hidden_size)
        self.linear2 = nn.Linear(hidden_size, 1)

        self.requires_grad_(False)
        self.eval()

    def forward(self, field: torch.Tensor) -> torch.Tensor:
        """Map (batch, ROWS, COLS) boards to (batch, 1) values in [-1, 1]."""
        x = torch.tanh(self.conv1(field.unsqueeze(1)))
        x = x.flatten(start_dim=1)
        x = torch.tanh(self.linear1(x))
        return torch.tanh(self.linear2(x))

    def predict(self, board: Board, me: Team) -> float:
        with torch.no_grad():
            return float(self(board_to_tensor(board, me).unsqueeze(0)).item())

    def make_move(self, board: Board, me: Team) -> int:
        return MinimaxPlayer(self.depth, self.predict).make_move(board, me)

    def extra_repr(self) -> str:
        return f"depth={self.depth}"

    def save(self, path: str) -> None:
        debug.info(f"Saving value model to {path}", "players")
        save_state_dict(self, path)

    @classmethod
    def load(cls, path: str, **kwargs) -> 'ValueNet':
        debug.info(f"Loading value model from {path}", "players")
        return load_state_dict(cls(**kwargs), path)
