"""
policy_net.py - Convolutional policy network that picks a column

The network is model and player at once: it maps the encoded board to a
probability per column and plays the most likely one. It is trained by the
black-box trainers in connect_four.ai, so it never needs gradients.
"""

import torch
import torch.nn as nn
import torch.nn.functional as F

from connect_four.ai.utils import board_to_tensor, load_state_dict, save_state_dict
from connect_four.debug import debug
from connect_four.game.board import Board
from connect_four.game.player import Player
from connect_four.utils import ROWS, COLS, Team

KERNEL_SIZE = 4


class PolicyNet(nn.Module, Player):
    """
    Conv(1->16, 4x4) -> GELU -> Linear(192, 100) -> GELU -> Linear(100, 50)
    -> GELU -> Linear(50, 7) -> softmax.

    Full columns are not masked out: choosing one is an invalid move, which
    the evaluators punish as a loss.
    """

    def __init__(self, channels: int = 16, hidden_sizes=(100, 50)):
        super().__init__()
        self.channels = channels
        self.hidden_sizes = tuple(hidden_sizes)

        self.conv1 = nn.Conv2d(1, channels, kernel_size=KERNEL_SIZE)
        # A 4x4 kernel turns the 6x7 board into 3x4
        conv_output_size = channels * (ROWS - KERNEL_SIZE + 1) * (COLS - KERNEL_SIZE + 1)
        self.linear1 = nn.Linear(conv_output_size, self.hidden_sizes[0])
        self.linear2 = nn.Linear(self.hidden_sizes[0], self.hidden_sizes[1])
        self.linear3 = nn.Linear(self.hidden_sizes[1], COLS)

        self.requires_grad_(False)
        self.eval()

    def forward(self, field: torch.Tensor) -> torch.Tensor:
        """
        Args:
            field: Encoded boards of shape (batch, ROWS, COLS)

        Returns:
            Column probabilities of shape (batch, COLS)
        """
        x = field.unsqueeze(1)
        x = F.gelu(self.conv1(x))
        x = x.flatten(start_dim=1)
        x = F.gelu(self.linear1(x))
        x = F.gelu(self.linear2(x))
        x = self.linear3(x)
        return F.softmax(x, dim=1)

    def predict(self, board: Board, me: Team) -> int:
        with torch.no_grad():
            probabilities = self(board_to_tensor(board, me).unsqueeze(0)).squeeze(0)
        column = int(torch.argmax(probabilities).item())
        debug.trace(f"Policy chose {column} from {probabilities.tolist()}", "players")
        return column

    def make_move(self, board: Board, me: Team) -> int:
        return self.predict(board, me)

    def save(self, path: str) -> None:
        debug.info(f"Saving policy model to {path}", "players")
        save_state_dict(self, path)

    @classmethod
    def load(cls, path: str, **kwargs) -> 'PolicyNet':
        """
        Load a model from a file.

        Args:
            path: Path to the saved state dict
            **kwargs: Architecture arguments the model was created with
        """
        debug.info(f"Loading policy model from {path}", "players")
        return load_state_dict(cls(**kwargs), path)
