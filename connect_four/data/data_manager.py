"""
data_manager.py - Storage for training jobs, step logs, checkpoints and games

Everything lives in JSON files under the data directory (``./data`` unless
CONNECT_FOUR_DATA_DIR or set_data_dir() says otherwise). Each file is guarded
by a filelock so a second process can watch a running training job.
"""

import datetime
import json
import os
import shutil
from typing import Any, Dict, List, Optional, Union

import filelock

from connect_four.debug import debug

DATA_DIR_ENV = "CONNECT_FOUR_DATA_DIR"

MAX_RECENT_LOGS = 1000  # Maximum number of recent step logs to keep
HISTORY_SAMPLE_RATE = 50  # Keep 1 in every N steps for historical data

_data_dir: Optional[str] = None


def set_data_dir(path: Optional[str]) -> None:
    """Use ``path`` as data directory (None restores the default)."""
    global _data_dir
    _data_dir = os.path.abspath(path) if path else None


def get_data_dir() -> str:
    if _data_dir is not None:
        return _data_dir
    return os.path.abspath(os.environ.get(DATA_DIR_ENV, "data"))


def _path(*parts: str) -> str:
    return os.path.join(get_data_dir(), *parts)


def jobs_file() -> str:
    return _path('jobs.json')


def models_file() -> str:
    return _path('models.json')


def logs_dir() -> str:
    return _path('logs')


def games_dir() -> str:
    return _path('games')


def _log_file(job_id: int, kind: str) -> str:
    return os.path.join(logs_dir(), f"job_{job_id}_{kind}.json")


def _games_file(job_id: int) -> str:
    return os.path.join(games_dir(), f"job_{job_id}_games.json")


def _now() -> str:
    return datetime.datetime.now().isoformat()


# File utility functions

def safe_read_json(file_path: str) -> List[Dict]:
    """
    Read a JSON file under its lock.

    Args:
        file_path: Path to JSON file

    Returns:
        Parsed JSON data (empty list if the file is missing or corrupt)
    """
    if not os.path.exists(file_path):
        return []

    with filelock.FileLock(f"{file_path}.lock"):
        try:
            with open(file_path, 'r') as f:
                return json.load(f)
        except json.JSONDecodeError:
            debug.error(f"Error decoding JSON from {file_path}", "data")
            return []


def safe_write_json(file_path: str, data: Any) -> bool:
    """
    Write data to a JSON file atomically under its lock.

    Args:
        file_path: Path to JSON file
        data: Data to write

    Returns:
        True if successful, False otherwise
    """
    os.makedirs(os.path.dirname(file_path), exist_ok=True)
    with filelock.FileLock(f"{file_path}.lock"):
        temp_file = f"{file_path}.tmp"
        try:
            with open(temp_file, 'w') as f:
                json.dump(data, f, indent=2)
            shutil.move(temp_file, file_path)
            return True
        except (OSError, TypeError, ValueError) as e:
            debug.error(f"Error writing to {file_path}: {e}", "data")
            return False


# Job management

def get_new_job_id() -> int:
    jobs = safe_read_json(jobs_file())
    if not jobs:
        return 1
    return max(job['job_id'] for job in jobs) + 1


def create_job(parameters: Dict[str, Any]) -> int:
    """
    Create a new job entry.

    Args:
        parameters: Training parameters; ``steps`` is the planned step count

    Returns:
        New job ID, or -1 if the job could not be stored
    """
    job_id = get_new_job_id()

    job_data = {
        "job_id": job_id,
        "start_time": _now(),
        "end_time": None,
        "total_steps": parameters.get('steps', 0),
        "steps_completed": 0,
        "status": "running",
        "parameters": parameters,
    }

    jobs = safe_read_json(jobs_file())
    jobs.append(job_data)

    if not safe_write_json(jobs_file(), jobs):
        debug.error("Failed to create job", "data")
        return -1

    safe_write_json(_log_file(job_id, "recent"), [])
    safe_write_json(_log_file(job_id, "history"), [])
    debug.info(f"Created new job with ID {job_id}", "data")
    return job_id


def _update_job(job_id: int, **fields) -> bool:
    jobs = safe_read_json(jobs_file())

    for job in jobs:
        if job['job_id'] == job_id:
            job.update(fields)
            return safe_write_json(jobs_file(), jobs)

    debug.error(f"Job {job_id} not found", "data")
    return False


def update_job_progress(job_id: int, steps_completed: int) -> bool:
    if _update_job(job_id, steps_completed=steps_completed):
        debug.trace(f"Updated job {job_id} progress to {steps_completed}", "data")
        return True
    return False


def complete_job(job_id: int, status: str = "completed") -> bool:
    """
    Mark a job as finished.

    Args:
        job_id: Job ID
        status: Final status, "completed" or "interrupted"

    Returns:
        True if successful, False otherwise
    """
    if not _update_job(job_id, end_time=_now(), status=status):
        debug.error(f"Failed to complete job {job_id}", "data")
        return False

    debug.info(f"Marked job {job_id} as {status}", "data")
    process_historical_data(job_id)
    return True


# Step logs

def add_episode_log(job_id: int, episode_data: Dict[str, Any]) -> bool:
    """
    Append a step log entry to the recent log of a job.

    The entry needs an ``episode`` key (the step number). Old entries beyond
    MAX_RECENT_LOGS are dropped; sampled steps are mirrored into history.
    """
    episode_data = dict(episode_data)
    episode_data.setdefault('timestamp', _now())
    episode_data['job_id'] = job_id

    recent_log_file = _log_file(job_id, "recent")
    logs = safe_read_json(recent_log_file)
    logs.append(episode_data)

    if episode_data['episode'] % HISTORY_SAMPLE_RATE == 0:
        add_to_history(job_id, episode_data)

    if len(logs) > MAX_RECENT_LOGS:
        logs = logs[-MAX_RECENT_LOGS:]

    if safe_write_json(recent_log_file, logs):
        debug.trace(f"Added step {episode_data['episode']} log for job {job_id}", "data")
        return True

    debug.error(f"Failed to add step log for job {job_id}", "data")
    return False


def add_to_history(job_id: int, episode_data: Dict[str, Any]) -> bool:
    history_log_file = _log_file(job_id, "history")
    history_logs = safe_read_json(history_log_file)
    history_logs.append(episode_data)
    return safe_write_json(history_log_file, history_logs)


def process_historical_data(job_id: int) -> bool:
    """Make sure every sampled step of the recent log is in the history, sorted."""
    recent_logs = safe_read_json(_log_file(job_id, "recent"))
    history_logs = safe_read_json(_log_file(job_id, "history"))

    history_episodes = set(log['episode'] for log in history_logs)
    for log in recent_logs:
        episode = log['episode']
        if episode % HISTORY_SAMPLE_RATE == 0 and episode not in history_episodes:
            history_logs.append(log)
            history_episodes.add(episode)

    history_logs.sort(key=lambda x: x['episode'])

    if safe_write_json(_log_file(job_id, "history"), history_logs):
        debug.debug(f"Processed historical data for job {job_id}", "data")
        return True
    return False


# Model registration

def register_model(job_id: int, episode: int, path: str, is_final: bool = False,
                   metrics: Optional[Dict[str, Any]] = None) -> bool:
    """
    Register a saved model checkpoint.

    Args:
        job_id: Job ID
        episode: Step the checkpoint was taken at
        path: Path to the model file
        is_final: Whether this is the final model of the job
        metrics: Optional evaluation scores at that step
    """
    models = safe_read_json(models_file())

    models.append({
        "model_id": len(models) + 1,
        "job_id": job_id,
        "episode": episode,
        "path": path,
        "timestamp": _now(),
        "is_final": is_final,
        "metrics": metrics or {},
    })

    if safe_write_json(models_file(), models):
        debug.info(f"Registered model for job {job_id}, step {episode}", "data")
        return True

    debug.error(f"Failed to register model for job {job_id}", "data")
    return False


# Saved games

def save_game_moves(job_id: int, episode: int, moves: List[int],
                    winner: Optional[str], game_length: int,
                    players: Optional[Dict[str, str]] = None) -> bool:
    """
    Store the moves of a game for later replay.

    Args:
        job_id: Job the game belongs to
        episode: Step the game was played at
        moves: Columns played, X first
        winner: "X", "O" or None for a draw
        game_length: Number of moves
        players: Optional description of who played X and O
    """
    games_file = _games_file(job_id)
    games = safe_read_json(games_file)
    games.append({
        "job_id": job_id,
        "episode": episode,
        "moves": [int(m) for m in moves],
        "winner": winner,
        "game_length": game_length,
        "players": players or {},
        "timestamp": _now(),
    })
    return safe_write_json(games_file, games)


def get_saved_games(job_id: Optional[int] = None) -> List[Dict]:
    """Saved games of one job, or of all jobs ordered by job."""
    if job_id is not None:
        return safe_read_json(_games_file(job_id))

    if not os.path.isdir(games_dir()):
        return []

    games = []
    for job in sorted(safe_read_json(jobs_file()), key=lambda j: j['job_id']):
        games.extend(safe_read_json(_games_file(job['job_id'])))
    return games


def get_latest_game_id(job_id: Optional[int] = None) -> Optional[int]:
    games = get_saved_games(job_id)
    return len(games) - 1 if games else None


# Data retrieval

def get_job_data(job_id: Optional[int] = None) -> Union[Dict, List[Dict]]:
    """
    Get job data.

    Args:
        job_id: Specific job ID to get, or None for all jobs

    Returns:
        The job (empty dict if unknown) or the list of all jobs
    """
    jobs = safe_read_json(jobs_file())

    if job_id is None:
        return jobs

    for job in jobs:
        if job['job_id'] == job_id:
            return job

    debug.warning(f"Job {job_id} not found", "data")
    return {}


def get_episode_logs(job_id: int, recent: bool = True) -> List[Dict]:
    return safe_read_json(_log_file(job_id, "recent" if recent else "history"))


def get_registered_models(job_id: Optional[int] = None) -> List[Dict]:
    models = safe_read_json(models_file())
    if job_id is None:
        return models
    return [model for model in models if model['job_id'] == job_id]


def purge_all() -> Dict[str, int]:
    """
    Delete all jobs, registered models, logs and games.

    Model files themselves are left alone.

    Returns:
        Number of removed files per kind
    """
    removed = {'logs': 0, 'games': 0}

    safe_write_json(jobs_file(), [])
    safe_write_json(models_file(), [])

    for kind, directory in (('logs', logs_dir()), ('games', games_dir())):
        if not os.path.isdir(directory):
            continue
        for name in os.listdir(directory):
            os.remove(os.path.join(directory, name))
            if name.endswith('.json'):
                removed[kind] += 1

    debug.info(f"Purged data in {get_data_dir()}", "data")
    return removed
