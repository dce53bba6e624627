"""
connect_four - Connect Four with neural network players and training

This package provides the game itself (board, rules, a gymnasium
environment), classic and neural network players, and training through
evolution strategies or pure evolution with job tracking on disk.
"""

# Version number
__version__ = '0.1.0'
