"""
rules.py - Running games between players, and a Gymnasium environment

This module provides:
1. Game / GameBuilder, which play a full game between two Player objects
2. ConnectFourEnv, a gymnasium environment where an agent plays against a
   fixed opponent Player
"""

from typing import Dict, List, Optional, Tuple, Union

import gymnasium as gym
import numpy as np
from gymnasium import spaces

from connect_four.debug import debug
from connect_four.game.board import Board
from connect_four.game.errors import BuilderMissingField, InvalidMove
from connect_four.game.player import Player
from connect_four.utils import ROWS, COLS, EMPTY, Team, GameResult


class GameBuilder:
    """Builder for a Game. Both players are required."""

    def __init__(self):
        self._player_x: Optional[Player] = None
        self._player_o: Optional[Player] = None

    def player_x(self, player: Player) -> 'GameBuilder':
        """Set the player for team X, the starting player."""
        self._player_x = player
        return self

    def player_o(self, player: Player) -> 'GameBuilder':
        """Set the player for team O."""
        self._player_o = player
        return self

    def build(self) -> 'Game':
        if self._player_x is None:
            raise BuilderMissingField("player_x")
        if self._player_o is None:
            raise BuilderMissingField("player_o")
        return Game(self._player_x, self._player_o)


class Game:
    """
    A single game of Connect Four between two players.

    Use Game.builder() to set the players, then run() or run_error_loss()
    to play the game to the end.
    """

    def __init__(self, player_x: Player, player_o: Player):
        self.player_x = player_x
        self.player_o = player_o
        self._board = Board()
        self.moves: List[int] = []

    @staticmethod
    def builder() -> GameBuilder:
        return GameBuilder()

    @property
    def board(self) -> Board:
        return self._board

    def _players(self):
        yield Team.X, self.player_x
        yield Team.O, self.player_o

    def _play_turn(self, team: Team, player: Player) -> Optional[GameResult]:
        column = player.make_move(self._board.copy(), team)
        self._board.put_tile(column, team)
        self.moves.append(column)
        debug.trace(f"{team} played column {column}", "game")
        return self._board.game_result_on_change(column)

    def run(self) -> GameResult:
        """
        Play the game to completion.

        Returns:
            The game result

        Raises:
            InvalidMove: If a player chooses a full or non-existent column
        """
        while True:
            for team, player in self._players():
                result = self._play_turn(team, player)
                if result is not None:
                    debug.debug(f"Game over after {len(self.moves)} moves: {result.name}", "game")
                    return result

    def run_error_loss(self) -> GameResult:
        """Play the game to completion, an invalid move loses immediately."""
        while True:
            for team, player in self._players():
                try:
                    result = self._play_turn(team, player)
                except InvalidMove as e:
                    debug.debug(f"{team} loses by invalid move: {e}", "game")
                    return GameResult.win_for(team.other())
                if result is not None:
                    debug.debug(f"Game over after {len(self.moves)} moves: {result.name}", "game")
                    return result


class ConnectFourEnv(gym.Env):
    """
    Connect Four as a Gymnasium environment.

    The agent plays ``agent_team`` against a fixed opponent Player. The
    observation is the board from the agent's point of view: +1 own tile,
    -1 opponent tile, 0 empty.
    """

    metadata = {'render_modes': ['ascii', 'human'], 'render_fps': 4}

    reward_win = 1.0
    reward_loss = -1.0
    reward_draw = 0.0
    reward_invalid_move = -1.0

    def __init__(self, opponent: Player, agent_team: Team = Team.X,
                 render_mode: Optional[str] = None):
        debug.debug("Initializing ConnectFourEnv", "env")

        self.action_space = spaces.Discrete(COLS)
        self.observation_space = spaces.Box(low=-1.0, high=1.0, shape=(ROWS, COLS), dtype=np.float32)

        self.opponent = opponent
        self.agent_team = agent_team
        self.render_mode = render_mode
        self.board = Board()
        self.result: Optional[GameResult] = None

    def reset(self, seed: Optional[int] = None, options: Optional[Dict] = None) -> Tuple[np.ndarray, Dict]:
        super().reset(seed=seed)
        self.board = Board()
        self.result = None

        if self.agent_team == Team.O:
            column = self.opponent.make_move(self.board.copy(), Team.X)
            try:
                self.board.put_tile(column, Team.X)
            except InvalidMove as e:
                debug.warning(f"Opponent made an invalid move: {e}", "env")
                self.result = GameResult.win_for(self.agent_team)

        if self.render_mode == "human":
            self.render()

        info = self._get_info()
        info['result'] = self.result.name if self.result is not None else None
        return self._get_observation(), info

    def step(self, action: int) -> Tuple[np.ndarray, float, bool, bool, Dict]:
        if self.result is not None:
            # Decided already, e.g. by an invalid opening move of the opponent
            return self._finish(self.result)

        action = int(action)
        if not self.board.is_valid_move(action):
            debug.debug(f"Invalid action: {action}", "env")
            info = self._get_info()
            info['invalid_move'] = True
            return self._get_observation(), self.reward_invalid_move, True, False, info

        self.board.put_tile(action, self.agent_team)
        result = self.board.game_result_on_change(action)

        if result is None:
            opponent_team = self.agent_team.other()
            column = self.opponent.make_move(self.board.copy(), opponent_team)
            try:
                self.board.put_tile(column, opponent_team)
            except InvalidMove as e:
                debug.warning(f"Opponent made an invalid move: {e}", "env")
                result = GameResult.win_for(self.agent_team)
            else:
                result = self.board.game_result_on_change(column)

        return self._finish(result)

    def _finish(self, result: Optional[GameResult]) -> Tuple[np.ndarray, float, bool, bool, Dict]:
        self.result = result
        reward = 0.0
        terminated = result is not None
        if result == GameResult.DRAW:
            reward = self.reward_draw
        elif result is not None:
            reward = self.reward_win if result.winner == self.agent_team else self.reward_loss

        if self.render_mode == "human":
            self.render()

        info = self._get_info()
        info['result'] = result.name if result is not None else None
        return self._get_observation(), reward, terminated, False, info

    def render(self) -> Optional[Union[str, np.ndarray]]:
        if self.render_mode == "ascii":
            return self.board.render()
        if self.render_mode == "human":
            print(self.board.render())
        return None

    def _get_observation(self) -> np.ndarray:
        grid = self.board.grid
        observation = np.zeros((ROWS, COLS), dtype=np.float32)
        observation[grid == self.agent_team.value] = 1.0
        observation[(grid != EMPTY) & (grid != self.agent_team.value)] = -1.0
        return observation

    def _get_info(self) -> Dict:
        return {
            'valid_moves': self.board.possible_moves(),
            'tiles': self.board.tile_count(),
        }
