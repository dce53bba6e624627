"""Tests for the Board: tile placement, result detection and the heuristic."""

import math

import numpy as np
import pytest

from connect_four.game.board import Board
from connect_four.game.errors import ColumnFull, IndexOutOfBounds, InvalidMove
from connect_four.utils import ROWS, COLS, GameResult, Team

# X completes a bottom-left to top-right diagonal with the last move
DIAGONAL_UP_MOVES = [0, 1, 1, 2, 3, 2, 2, 3, 6, 3, 3]


class TestPutTile:
    """Test dropping tiles into columns."""

    def test_tiles_stack_from_the_bottom(self, empty_board):
        assert empty_board.put_tile(3, Team.X) == ROWS - 1
        assert empty_board.put_tile(3, Team.O) == ROWS - 2
        assert empty_board.grid[ROWS - 1, 3] == Team.X.value
        assert empty_board.grid[ROWS - 2, 3] == Team.O.value

    def test_full_column(self, empty_board):
        for _ in range(ROWS):
            empty_board.put_tile(0, Team.X)

        with pytest.raises(ColumnFull) as excinfo:
            empty_board.put_tile(0, Team.O)
        assert excinfo.value.column == 0
        assert excinfo.value.team == Team.O

    @pytest.mark.parametrize("column", [-1, COLS, 100])
    def test_out_of_bounds(self, empty_board, column):
        with pytest.raises(IndexOutOfBounds):
            empty_board.put_tile(column, Team.X)

    def test_errors_are_invalid_moves(self, empty_board):
        with pytest.raises(InvalidMove):
            empty_board.put_tile(COLS, Team.X)

    def test_failed_move_leaves_board_unchanged(self, empty_board):
        with pytest.raises(IndexOutOfBounds):
            empty_board.put_tile(-1, Team.X)
        assert empty_board.tile_count() == 0


class TestBoardState:
    """Test turn order, possible moves and copies."""

    def test_dimensions(self, empty_board):
        assert empty_board.dimensions() == (COLS, ROWS)

    def test_turn_alternates(self):
        board = Board()
        assert board.whos_turn() == Team.X
        board.put_tile(2, Team.X)
        assert board.whos_turn() == Team.O
        board.put_tile(2, Team.O)
        assert board.whos_turn() == Team.X

    def test_possible_moves_skip_full_columns(self):
        board = Board.from_moves([4] * ROWS)
        assert board.possible_moves() == [0, 1, 2, 3, 5, 6]
        assert not board.is_valid_move(4)
        assert board.is_valid_move(5)
        assert not board.is_valid_move(-1)

    def test_from_moves_alternates_teams(self):
        board = Board.from_moves([3, 3])
        assert board.grid[ROWS - 1, 3] == Team.X.value
        assert board.grid[ROWS - 2, 3] == Team.O.value
        assert board.tile_count() == 2

    def test_copy_is_independent(self):
        board = Board.from_moves([0])
        copy = board.copy()
        copy.put_tile(1, Team.O)

        assert board.tile_count() == 1
        assert copy.tile_count() == 2
        assert board != copy

    def test_equality(self):
        assert Board.from_moves([1, 2]) == Board.from_moves([1, 2])
        assert Board.from_moves([1, 2]) != Board.from_moves([2, 1])

    def test_field_is_read_only(self, empty_board):
        field = empty_board.field()
        assert field.shape == (ROWS, COLS)
        with pytest.raises(ValueError):
            field[0, 0] = 1

    def test_rejects_wrong_shape(self):
        with pytest.raises(ValueError):
            Board(np.zeros((COLS, ROWS)))

    def test_full_board(self, full_draw_board):
        assert full_draw_board.is_full()
        assert full_draw_board.possible_moves() == []


class TestGameResult:
    """Test detection of wins and draws."""

    def test_empty_board_is_running(self, empty_board):
        assert empty_board.game_result() is None

    def test_vertical_win(self):
        board = Board.from_moves([0, 1, 0, 1, 0, 1, 0])
        assert board.game_result() == GameResult.X_WINS

    def test_horizontal_win(self):
        board = Board.from_moves([0, 0, 1, 1, 2, 2, 3])
        assert board.game_result() == GameResult.X_WINS

    def test_diagonal_up_win(self):
        board = Board.from_moves(DIAGONAL_UP_MOVES)
        assert board.game_result() == GameResult.X_WINS

    def test_diagonal_down_win(self):
        grid = np.zeros((ROWS, COLS), dtype=np.int8)
        for i in range(4):
            grid[i + 2, i + 1] = Team.O.value
        assert Board(grid).game_result() == GameResult.O_WINS

    def test_three_is_not_enough(self):
        board = Board.from_moves([0, 0, 1, 1, 2, 2])
        assert board.game_result() is None

    def test_draw(self, full_draw_board):
        assert full_draw_board.game_result() == GameResult.DRAW

    def test_winner_property(self):
        assert GameResult.X_WINS.winner == Team.X
        assert GameResult.O_WINS.winner == Team.O
        assert GameResult.DRAW.winner is None


class TestGameResultOnChange:
    """Test the incremental result check against the full scan."""

    def test_matches_full_scan_on_win(self):
        board = Board.from_moves(DIAGONAL_UP_MOVES)
        assert board.game_result_on_change(DIAGONAL_UP_MOVES[-1]) == board.game_result()

    def test_running_game(self):
        board = Board.from_moves([3, 4, 3])
        assert board.game_result_on_change(3) is None

    def test_draw(self, full_draw_board):
        assert full_draw_board.game_result_on_change(0) == GameResult.DRAW

    def test_random_games_agree(self):
        rng = np.random.default_rng(7)
        for _ in range(20):
            board = Board()
            while True:
                column = int(rng.choice(board.possible_moves()))
                board.put_tile(column, board.whos_turn())
                result = board.game_result_on_change(column)
                assert result == board.game_result()
                if result is not None:
                    break


class TestHeuristic:
    """Test heuristic_1."""

    def test_empty_board(self, empty_board):
        assert empty_board.heuristic_1(Team.X) == 0.0

    def test_single_tile_counts_empty_neighbours(self):
        board = Board.from_moves([3])
        # Five in-bounds neighbours of a bottom-row tile, all empty
        assert board.heuristic_1(Team.X) == pytest.approx(5 * 0.333)
        assert board.heuristic_1(Team.O) == pytest.approx(-5 * 0.333)

    def test_corner_tile(self):
        board = Board.from_moves([0])
        assert board.heuristic_1(Team.X) == pytest.approx(3 * 0.333)

    def test_edge_tiles_do_not_wrap(self):
        # X at (5, 6) and (4, 6), O at (5, 0), which a wrapping index would see next to (4, 6)
        board = Board.from_moves([6, 0, 6])
        x_bottom = 2 * 0.333 + 1.0
        x_above = 4 * 0.333 + 1.0
        o_corner = 3 * 0.333
        assert board.heuristic_1(Team.X) == pytest.approx(x_bottom + x_above - o_corner)

    def test_symmetric_position(self):
        board = Board.from_moves([3, 4])
        assert board.heuristic_1(Team.X) == pytest.approx(0.0)

    def test_friendly_neighbour_counts_more(self):
        connected = Board.from_moves([2, 6, 3])
        apart = Board.from_moves([0, 6, 3])
        assert connected.heuristic_1(Team.X) > apart.heuristic_1(Team.X)

    def test_decided_games(self, full_draw_board):
        board = Board.from_moves([0, 1, 0, 1, 0, 1, 0])
        assert board.heuristic_1(Team.X) == math.inf
        assert board.heuristic_1(Team.O) == -math.inf
        assert full_draw_board.heuristic_1(Team.X) == 0.0


class TestRendering:
    """Test the ASCII rendering."""

    def test_render_shows_tiles_and_columns(self):
        text = Board.from_moves([3, 4]).render()
        lines = text.split("\n")
        assert lines[-1] == "0 | 1 | 2 | 3 | 4 | 5 | 6"
        assert "X" in text and "O" in text

    def test_colored_string_marks_own_tiles(self):
        text = Board.from_moves([3]).colored_string(Team.X)
        assert "\033[32mX" in text
        text = Board.from_moves([3]).colored_string(Team.O)
        assert "\033[31mX" in text
