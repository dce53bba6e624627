"""
connect_four.data - Data management for Connect Four training

JSON storage of training jobs, step logs, model checkpoints and saved games.
"""

__all__ = []
