"""Tests for the policy and value networks."""

import pytest
import torch

from connect_four.ai.utils import boards_to_batch, num_parameters
from connect_four.game.board import Board
from connect_four.game.rules import Game
from connect_four.players import PolicyNet, RandomPlayer, ValueNet
from connect_four.utils import ROWS, COLS, GameResult, Team


@pytest.fixture
def policy():
    torch.manual_seed(0)
    return PolicyNet()


@pytest.fixture
def value_net():
    torch.manual_seed(0)
    return ValueNet(depth=2)


class TestPolicyNet:
    """Test the policy network."""

    def test_parameter_count(self, policy):
        # conv 16*16+16, 192*100+100, 100*50+50, 50*7+7
        assert num_parameters(policy) == 272 + 19300 + 5050 + 357

    def test_output_is_a_distribution(self, policy):
        boards = [Board(), Board.from_moves([3, 2, 4])]
        probabilities = policy(boards_to_batch(boards, Team.X))

        assert probabilities.shape == (2, COLS)
        assert torch.allclose(probabilities.sum(dim=1), torch.ones(2))
        assert (probabilities >= 0).all()

    def test_no_gradients(self, policy):
        assert not any(p.requires_grad for p in policy.parameters())
        assert not policy.training

    def test_predict_is_deterministic(self, policy):
        board = Board.from_moves([3, 3])
        column = policy.predict(board, Team.X)
        assert 0 <= column < COLS
        assert policy.make_move(board, Team.X) == column

    def test_save_and_load(self, policy, tmp_path):
        path = str(tmp_path / "models" / "policy.pt")
        policy.save(path)
        loaded = PolicyNet.load(path)

        board = Board.from_moves([1, 5, 2])
        batch = boards_to_batch([board], Team.O)
        assert torch.allclose(policy(batch), loaded(batch))
        assert not any(p.requires_grad for p in loaded.parameters())

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(OSError):
            PolicyNet.load(str(tmp_path / "missing.pt"))

    def test_save_leaves_no_temp_file(self, policy, tmp_path):
        policy.save(str(tmp_path / "policy.pt"))
        assert [p.name for p in tmp_path.iterdir()] == ["policy.pt"]

    @pytest.mark.parametrize("content", [b"", b"garbage"])
    def test_load_unreadable_file(self, tmp_path, content):
        path = tmp_path / "policy.pt"
        path.write_bytes(content)
        with pytest.raises(ValueError):
            PolicyNet.load(str(path))

    def test_load_wrong_architecture(self, value_net, tmp_path):
        path = str(tmp_path / "value.pt")
        value_net.save(path)
        with pytest.raises(RuntimeError):
            PolicyNet.load(path)

    def test_plays_full_games(self, policy):
        game = Game.builder().player_x(policy).player_o(RandomPlayer(0)).build()
        assert game.run_error_loss() in tuple(GameResult)


class TestValueNet:
    """Test the value network."""

    def test_parameter_count(self, value_net):
        # conv 8*16+8, 96*50+50, 50*1+1
        assert num_parameters(value_net) == 136 + 4850 + 51

    def test_predict_range(self, value_net):
        for moves in ([], [3], [3, 3, 2, 4]):
            value = value_net.predict(Board.from_moves(moves), Team.X)
            assert isinstance(value, float)
            assert -1.0 <= value <= 1.0

    def test_forward_shape(self, value_net):
        batch = boards_to_batch([Board(), Board()], Team.X)
        assert value_net(batch).shape == (2, 1)

    def test_make_move_is_possible(self, value_net):
        board = Board.from_moves([0] * ROWS)
        assert value_net.make_move(board, Team.O) in board.possible_moves()

    def test_takes_immediate_win(self, value_net):
        board = Board.from_moves([0, 1, 0, 1, 0, 6])
        assert value_net.make_move(board, Team.X) == 0

    def test_save_and_load_keeps_depth(self, value_net, tmp_path):
        path = str(tmp_path / "value.pt")
        value_net.save(path)
        loaded = ValueNet.load(path, depth=3)

        board = Board.from_moves([2, 3])
        assert loaded.depth == 3
        assert loaded.predict(board, Team.X) == pytest.approx(value_net.predict(board, Team.X))
