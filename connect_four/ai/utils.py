"""
utils.py - Tensor helpers for the Connect Four networks and trainers

Board encoding for the networks, and flat-vector access to a model's
parameters, which the black-box trainers use to perturb, blend and replace
whole models at once.
"""

import copy
import os
import pickle
import shutil
from typing import List, Sequence

import numpy as np
import torch
import torch.nn as nn
from torch.nn.utils import parameters_to_vector, vector_to_parameters

from connect_four.debug import debug
from connect_four.game.board import Board
from connect_four.utils import EMPTY, Team


def board_to_tensor(board: Board, me: Team) -> torch.Tensor:
    """
    Encode a board from the point of view of ``me``.

    Args:
        board: Board to encode
        me: The team the network plays for

    Returns:
        float32 tensor of shape (ROWS, COLS): 1 own tile, -1 opponent, 0 empty
    """
    grid = board.grid
    state = np.where(grid == me.value, 1.0, np.where(grid == EMPTY, 0.0, -1.0)).astype(np.float32)
    return torch.from_numpy(state)


def boards_to_batch(boards: Sequence[Board], me: Team) -> torch.Tensor:
    """Stack encoded boards into a (batch, ROWS, COLS) tensor."""
    return torch.stack([board_to_tensor(board, me) for board in boards])


def num_parameters(model: nn.Module) -> int:
    return sum(p.numel() for p in model.parameters())


def flatten_parameters(model: nn.Module) -> torch.Tensor:
    """All parameters of the model as one detached 1-D tensor."""
    return parameters_to_vector(model.parameters()).detach().clone()


def _check_size(model: nn.Module, flat: torch.Tensor):
    expected = num_parameters(model)
    if flat.dim() != 1 or flat.numel() != expected:
        raise ValueError(f"Flat parameter vector has {flat.numel()} entries, model has {expected}")


def add_to_parameters(model: nn.Module, flat: torch.Tensor) -> nn.Module:
    """
    Copy of ``model`` with ``flat`` added to its parameters.

    Raises:
        ValueError: If the vector size does not match the model
    """
    _check_size(model, flat)
    flat = flat.to(dtype=flatten_parameters(model).dtype)
    modified = copy.deepcopy(model)
    with torch.no_grad():
        vector_to_parameters(flatten_parameters(model) + flat, modified.parameters())
    return modified


def override_parameters(model: nn.Module, flat: torch.Tensor) -> nn.Module:
    """
    Copy of ``model`` with its parameters replaced by ``flat``.

    Raises:
        ValueError: If the vector size does not match the model
    """
    _check_size(model, flat)
    modified = copy.deepcopy(model)
    with torch.no_grad():
        vector_to_parameters(flat.to(dtype=flatten_parameters(model).dtype).clone(), modified.parameters())
    return modified


def describe_model(model: nn.Module) -> List[str]:
    """Layer names with their parameter counts, for logs and the CLI."""
    lines = []
    for name, parameter in model.named_parameters():
        lines.append(f"{name}: {tuple(parameter.shape)} ({parameter.numel()})")
    debug.trace(f"Model has {num_parameters(model)} parameters", "ai")
    return lines


def save_state_dict(model: nn.Module, path: str) -> None:
    """Write a model's state dict to a temp file, then move it over ``path``."""
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    temp_file = f"{path}.tmp"
    torch.save(model.state_dict(), temp_file)
    shutil.move(temp_file, path)


def load_state_dict(model: nn.Module, path: str) -> nn.Module:
    """
    Load weights saved with ``save_state_dict`` into ``model``.

    Raises:
        OSError: If the file cannot be opened
        ValueError: If the file is empty or not a saved state dict
        RuntimeError: If the weights belong to a different architecture
    """
    try:
        state = torch.load(path, map_location="cpu")
    except (EOFError, pickle.UnpicklingError) as e:
        raise ValueError(f"Could not read model file {path}: {e}") from e
    model.load_state_dict(state)
    model.requires_grad_(False)
    model.eval()
    return model
