"""
cli.py - Command-line interface for Connect Four

Commands:
    play       Play a game between humans, random, minimax or trained players
    train      Train a network with evolution strategies or pure evolution
    jobs       Show training jobs
    models     Show registered model checkpoints
    games      List and replay saved games
    purge      Clear all jobs, logs and games
    benchmark  Time games and result checks
"""

import argparse
import sys
import time
from typing import List, Optional

from connect_four.debug import debug, DebugLevel
from connect_four.game.board import Board
from connect_four.game.errors import GameError
from connect_four.game.player import Player
from connect_four.game.rules import Game
from connect_four.utils import GameResult

DEFAULT_MODEL_PATH = "model.pt"
DEFAULT_OPTIMIZER_PATH = "optimizer.json"

PLAYER_TYPES = ['human', 'random', 'minimax', 'policy', 'value']


# --- Utility Functions ---

def configure_debug(args):
    """Configure debug level based on args.debug or args.debug_level."""
    if args.debug:
        debug.configure(level=DebugLevel.DEBUG)
    else:
        debug.configure(level=DebugLevel[args.debug_level.upper()])


def build_player(kind: str, model_path: Optional[str] = None, depth: int = 5) -> Player:
    """
    Create a player from its command line name.

    Args:
        kind: One of PLAYER_TYPES
        model_path: Saved network for "policy" and "value"
        depth: Search depth for "minimax" and "value"
    """
    from connect_four.players import IoPlayer, MinimaxPlayer, PolicyNet, RandomPlayer, ValueNet

    if kind == 'human':
        return IoPlayer()
    if kind == 'random':
        return RandomPlayer()
    if kind == 'minimax':
        return MinimaxPlayer.with_heuristic_1(depth)
    if kind == 'policy':
        return PolicyNet.load(model_path or DEFAULT_MODEL_PATH)
    if kind == 'value':
        return ValueNet.load(model_path or DEFAULT_MODEL_PATH, depth=depth)
    raise ValueError(f"Unknown player type: {kind}")


def result_message(result: GameResult) -> str:
    if result.winner is None:
        return "Good game! That's a draw!"
    return f"Congratulations {result.winner}, you won!"


def replay_game(game_data, delay: float):
    """Replay a saved game move by move."""
    print(f"Replaying game: Job {game_data['job_id']}, Step {game_data['episode']}")
    players = game_data.get('players') or {}
    if players:
        print(f"X: {players.get('X', '?')}, O: {players.get('O', '?')}")
    print(f"Winner: {game_data['winner'] or 'Draw'}, Length: {game_data['game_length']}")

    board = Board()
    print("\nInitial board:")
    print(board.render())
    time.sleep(delay)

    for i, move in enumerate(game_data['moves']):
        team = board.whos_turn()
        print(f"\nMove {i + 1}: Player {team} plays column {move}")
        board.put_tile(move, team)
        print(board.render())
        time.sleep(delay)

    result = board.game_result()
    if result is None:
        # Games lost by an invalid move end early
        print(f"\nGame over! {game_data['winner'] or 'Nobody'} wins by forfeit!")
    elif result.winner is None:
        print("\nGame over! It's a draw!")
    else:
        print(f"\nGame over! {result.winner} wins!")


# --- Command Handlers ---

def handle_play(args) -> int:
    """Handle the 'play' command."""
    player_x = build_player(args.x, args.model, args.depth)
    player_o = build_player(args.o, args.model, args.depth)

    game = Game.builder().player_x(player_x).player_o(player_o).build()
    result = game.run()

    print(game.board.render())
    print(result_message(result))
    return 0


def handle_train(args) -> int:
    """Handle the 'train' command."""
    from connect_four.ai.es import EsTrainer
    from connect_four.ai.evaluation import league_evaluator, random_evaluator
    from connect_four.ai.evolution import EvolutionTrainer
    from connect_four.ai.training import (TrainingSession, load_or_init_model,
                                          load_or_init_sgd, NETWORKS)
    from connect_four.ai.utils import describe_model

    if args.evaluator == 'league':
        evaluator = league_evaluator(args.workers)
    else:
        evaluator = random_evaluator(args.eval_games, workers=args.workers)

    model_kwargs = {'depth': args.depth} if args.network == 'value' else {}
    model = load_or_init_model(args.network, args.model, **model_kwargs)
    for line in describe_model(model):
        debug.info(line, "training")

    if args.method == 'es':
        optimizer = load_or_init_sgd(args.optimizer, args.learning_rate, args.momentum)
        trainer = EsTrainer(model, std=args.std, samples=args.samples,
                            evaluator=evaluator, optimizer=optimizer)
        optimizer_path = args.optimizer
    else:
        model_cls = NETWORKS[args.network]
        trainer = EvolutionTrainer(
            population=[model],
            init_fn=lambda: model_cls(**model_kwargs),
            population_max=args.population_max,
            population_min=args.population_min,
            generate_new=args.generate_new,
            mutation_probability=args.mutation_probability,
            mutation_std=args.mutation_std,
            evaluator=evaluator,
        )
        optimizer_path = None

    session = TrainingSession(
        trainer,
        model_path=args.model,
        optimizer_path=optimizer_path,
        save_interval=args.save_interval,
        eval_random_games=args.eval_games,
        minimax_depth=args.minimax_depth,
        parameters={
            'method': args.method,
            'network': args.network,
            'evaluator': args.evaluator,
            'workers': args.workers,
            'std': args.std,
            'samples': args.samples,
            'learning_rate': args.learning_rate,
            'momentum': args.momentum,
        },
    )

    print(f"Starting {args.method} training for {args.steps} steps")
    print("You can check status with: python run.py jobs")
    summary = session.run(args.steps)
    print(f"Training {summary['status']}: job {summary['job_id']}, {summary['steps']} steps")
    print(f"Average random score (last 10): {summary['avg_random_score']:.3f}")
    print(f"Last minimax score: {summary['last_minimax_score']:.1f}")
    return 0


def handle_jobs(args) -> int:
    """Handle the 'jobs' command."""
    from connect_four.data.data_manager import get_episode_logs, get_job_data

    jobs = get_job_data(args.job_id)

    if args.job_id is not None:
        if not jobs:
            print(f"Job {args.job_id} not found")
            return 1
        print(f"Job {args.job_id} Details:")
        print(f"Started: {jobs['start_time']}")
        print(f"Status: {jobs['status']}")
        print(f"Steps: {jobs['steps_completed']}/{jobs['total_steps']}")
        if jobs['end_time']:
            print(f"Finished: {jobs['end_time']}")
        print("\nTraining Parameters:")
        for key, value in jobs['parameters'].items():
            print(f"  {key}: {value}")
        print("\nRecent Steps:")
        for log in get_episode_logs(args.job_id)[-5:]:
            print(f"Step {log['episode']}: Random={log.get('random_score', 0.0):.3f}, "
                  f"Minimax={log.get('minimax_score', 0.0):.1f}")
        return 0

    print(f"Found {len(jobs)} training jobs:")
    for job in jobs:
        progress = f"{job['steps_completed']}/{job['total_steps']}"
        print(f"Job {job['job_id']}: {job['status']}, Progress: {progress}")
    print("\nUse 'python run.py jobs --job_id <id>' to view job details")
    return 0


def handle_models(args) -> int:
    """Handle the 'models' command."""
    from connect_four.data.data_manager import get_registered_models

    models = get_registered_models(args.job_id)
    if not models:
        print("No registered models found")
        return 0

    print(f"Found {len(models)} registered models:")
    print("\nID | Job | Step  | Final | Path")
    print("-" * 60)
    for model in models:
        final = "yes" if model['is_final'] else "no"
        print(f"{model['model_id']:2d} | {model['job_id']:3d} | {model['episode']:5d} | "
              f"{final:5s} | {model['path']}")
    return 0


def handle_games(args) -> int:
    """Handle the 'games' command."""
    from connect_four.data.data_manager import get_latest_game_id, get_saved_games

    all_games = get_saved_games(args.job_id)

    if args.latest:
        args.replay = get_latest_game_id(args.job_id)
        if args.replay is None:
            print("No saved games found")
            return 1

    if args.replay is not None:
        if not 0 <= args.replay < len(all_games):
            print(f"Error: Game ID {args.replay} not found")
            if all_games:
                print(f"Available game IDs: 0-{len(all_games) - 1}")
            return 1
        replay_game(all_games[args.replay], args.delay)
        return 0

    if args.list:
        if not all_games:
            print("No saved games found")
            return 0
        print(f"Found {len(all_games)} saved games:")
        print("\nID | Job | Step  | Winner | Moves | Timestamp")
        print("-" * 60)
        for i, game in enumerate(all_games):
            winner = game['winner'] or "Draw"
            timestamp = game['timestamp'].split('T')[0] if 'timestamp' in game else "Unknown"
            print(f"{i:2d} | {game['job_id']:3d} | {game['episode']:5d} | {winner:6s} | "
                  f"{game['game_length']:5d} | {timestamp}")
        print("\nTo replay a game: python run.py games --replay GAME_ID")
        return 0

    print("Please specify an action: --list or --replay")
    print("Example: python run.py games --replay 0 --delay 1.0")
    return 1


def handle_purge(args) -> int:
    """Handle the 'purge' command."""
    from connect_four.data.data_manager import purge_all

    if not args.confirm:
        print("WARNING: This will delete all jobs, logs, games, and training data.")
        print("To confirm, run: python run.py purge --confirm")
        return 1

    print("Purging all data...")
    removed = purge_all()
    print(f"Removed {removed['logs']} log files")
    print(f"Removed {removed['games']} game files")
    print("Purge completed")
    return 0


def handle_benchmark(args) -> int:
    """Handle the 'benchmark' command."""
    from connect_four.players import MinimaxPlayer, RandomPlayer

    games = args.games
    print(f"Running benchmark with {games} games...")

    debug.start_timer("random_games")
    total_moves = 0
    for _ in range(games):
        game = Game.builder().player_x(RandomPlayer()).player_o(RandomPlayer()).build()
        game.run_error_loss()
        total_moves += len(game.moves)
    random_time = debug.end_timer("random_games")
    print(f"Random vs random: {random_time:.6f} seconds total, "
          f"{random_time / games * 1000:.6f} ms per game, "
          f"{random_time / max(total_moves, 1) * 1000:.6f} ms per move")

    minimax = MinimaxPlayer.with_heuristic_1(args.depth)
    minimax_games = max(1, games // 100)
    debug.start_timer("minimax_games")
    for _ in range(minimax_games):
        game = Game.builder().player_x(minimax).player_o(RandomPlayer()).build()
        game.run_error_loss()
    minimax_time = debug.end_timer("minimax_games")
    print(f"Minimax (depth {args.depth}) vs random: {minimax_time:.6f} seconds for "
          f"{minimax_games} games, {minimax.total_nodes_evaluated} nodes evaluated in total")

    board = Board.from_moves([3, 3, 4, 2, 5, 1, 0, 6, 2, 4, 2, 5])
    debug.start_timer("game_result")
    for _ in range(games):
        board.game_result()
    result_time = debug.end_timer("game_result")
    print(f"Checking game result {games} times: {result_time:.6f} seconds total, "
          f"{result_time / games * 1000:.6f} ms per check")
    return 0


COMMANDS = {
    'play': handle_play,
    'train': handle_train,
    'jobs': handle_jobs,
    'models': handle_models,
    'games': handle_games,
    'purge': handle_purge,
    'benchmark': handle_benchmark,
}


# --- Argument Parsing ---

def build_parser() -> argparse.ArgumentParser:
    from connect_four.ai import training

    parser = argparse.ArgumentParser(
        description='Connect Four AI Learning System',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
    Examples:

    # Two humans at the terminal
    python run.py play

    # Play against a trained policy network
    python run.py play --o policy --model model.pt

    # Train with evolution strategies, checkpointing every 10 steps
    python run.py train --steps 1000 --model model.pt --optimizer optimizer.json

    # Train with pure evolution, scoring against the random player
    python run.py train --method evolution --evaluator random

    # Inspect jobs and replay a benchmark game
    python run.py jobs --job_id 1
    python run.py games --replay 0 --delay 1.0
    """
    )
    parser.add_argument('--debug',
        action='store_true',
        help='Enable debug mode (equivalent to --debug_level debug)')
    parser.add_argument('--debug_level',
        choices=['none', 'error', 'warning', 'info', 'debug', 'trace'],
        default='info',
        help='Set debug level: none (silent), error, warning, info, debug, trace (most verbose)')

    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    play_parser = subparsers.add_parser('play', help='Play a game')
    play_parser.add_argument('--x', choices=PLAYER_TYPES, default='human',
        help='Player for team X, who moves first')
    play_parser.add_argument('--o', choices=PLAYER_TYPES, default='human',
        help='Player for team O')
    play_parser.add_argument('--model', type=str,
        help=f'Saved network for policy/value players (default: {DEFAULT_MODEL_PATH})')
    play_parser.add_argument('--depth', type=int, default=5,
        help='Search depth for minimax/value players')

    train_parser = subparsers.add_parser('train', help='Train a network')
    train_parser.add_argument('--method', choices=['es', 'evolution'], default='es',
        help='Training method: es (evolution strategies) or evolution (genetic)')
    train_parser.add_argument('--network', choices=sorted(training.NETWORKS), default='policy',
        help='Network to train')
    train_parser.add_argument('--steps', type=int, default=1000,
        help='Number of training steps')
    train_parser.add_argument('--model', type=str, default=DEFAULT_MODEL_PATH,
        help='Model file to continue from and save to')
    train_parser.add_argument('--optimizer', type=str, default=DEFAULT_OPTIMIZER_PATH,
        help='Optimizer file to continue from and save to (es only)')
    train_parser.add_argument('--depth', type=int, default=2,
        help='Search depth of a value network player')
    train_parser.add_argument('--evaluator', choices=['league', 'random'], default='league',
        help='How the population is scored')
    train_parser.add_argument('--eval_games', type=int, default=training.DEFAULT_EVAL_GAMES,
        help='Games per side against the random player')
    train_parser.add_argument('--minimax_depth', type=int, default=training.DEFAULT_MINIMAX_DEPTH,
        help='Depth of the minimax benchmark opponent')
    train_parser.add_argument('--save_interval', type=int, default=training.DEFAULT_SAVE_INTERVAL,
        help='Save a checkpoint every N steps')
    train_parser.add_argument('--workers', type=int, default=1,
        help='Processes used to score the population (1 plays all games here)')

    es_group = train_parser.add_argument_group('Evolution strategy options')
    es_group.add_argument('--std', type=float, default=training.DEFAULT_STD,
        help='Standard deviation of parameter dispositions')
    es_group.add_argument('--samples', type=int, default=training.DEFAULT_SAMPLES,
        help='Antithetic pairs per step')
    es_group.add_argument('--learning_rate', type=float, default=training.DEFAULT_LEARNING_RATE,
        help='SGD learning rate')
    es_group.add_argument('--momentum', type=float, default=training.DEFAULT_MOMENTUM,
        help='SGD momentum')

    evo_group = train_parser.add_argument_group('Evolution options')
    evo_group.add_argument('--population_max', type=int, default=20,
        help='Population size before selection')
    evo_group.add_argument('--population_min', type=int, default=10,
        help='Population size kept after selection')
    evo_group.add_argument('--generate_new', type=float, default=0.1,
        help='Probability of adding a fresh model instead of a child')
    evo_group.add_argument('--mutation_probability', type=float, default=0.5,
        help='Probability that a child is mutated')
    evo_group.add_argument('--mutation_std', type=float, default=0.05,
        help='Standard deviation of mutations')

    jobs_parser = subparsers.add_parser('jobs', help='View training jobs')
    jobs_parser.add_argument('--job_id', type=int, help='Show details of one job')

    models_parser = subparsers.add_parser('models', help='View registered models')
    models_parser.add_argument('--job_id', type=int, help='Only models of this job')

    games_parser = subparsers.add_parser('games', help='List and replay saved games')
    games_parser.add_argument('--job_id', type=int, help='Only games of this job')
    games_parser.add_argument('--list', action='store_true', help='List saved games')
    games_parser.add_argument('--replay', type=int, help='Replay a game by ID')
    games_parser.add_argument('--latest', action='store_true', help='Replay the most recent game')
    games_parser.add_argument('--delay', type=float, default=0.5,
        help='Delay between moves during replay in seconds')

    purge_parser = subparsers.add_parser('purge', help='Clear all data (jobs, logs, games)')
    purge_parser.add_argument('--confirm', action='store_true',
        help='Confirm the purge')

    benchmark_parser = subparsers.add_parser('benchmark', help='Benchmark performance')
    benchmark_parser.add_argument('--games', type=int, default=1000,
        help='Number of random games (minimax plays 1 per 100)')
    benchmark_parser.add_argument('--depth', type=int, default=5,
        help='Minimax search depth')

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_debug(args)

    if args.command is None:
        parser.print_help()
        return 1

    try:
        return COMMANDS[args.command](args)
    except (GameError, OSError, RuntimeError, ValueError) as e:
        debug.error(str(e), "cli")
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted.")
        return 130


if __name__ == "__main__":
    sys.exit(main())
