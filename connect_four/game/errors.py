"""
errors.py - Exceptions raised by the Connect Four rules
"""

from connect_four.utils import Team


class GameError(Exception):
    """Base class for all rule and setup errors."""


class BuilderMissingField(GameError):
    """A game was built without one of its players."""

    def __init__(self, field: str):
        super().__init__(f"Missing field: {field}")
        self.field = field


class InvalidMove(GameError):
    """A tile could not be placed."""


class IndexOutOfBounds(InvalidMove):
    def __init__(self, column: int):
        super().__init__(f"Column {column} is out of bounds")
        self.column = column


class ColumnFull(InvalidMove):
    def __init__(self, column: int, team: Team):
        super().__init__(f"Column {column} is already full (tile of team {team})")
        self.column = column
        self.team = team
