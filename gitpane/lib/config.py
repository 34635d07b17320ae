"""
Configuration for gitpane.

Settings come from an optional KEY=value file, overridden by GITPANE_<KEY>
environment variables. The state directory also remembers the last
repository the user selected.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from . import envparse

logger = logging.getLogger(__name__)

ENV_PREFIX = "GITPANE_"
DEFAULT_STATE_DIR = "~/.gitpane"
VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")
REPOSITORY_FILE = "current_repository"


@dataclass
class GitPaneConfig:
    git_binary: str = "git"
    timeout: float | None = None  # Seconds; None means wait for git indefinitely
    state_dir: Path = Path(DEFAULT_STATE_DIR).expanduser()
    log_level: str = "WARNING"


def _parse_timeout(value: str) -> float | None:
    if not value:
        return None
    try:
        timeout = float(value)
    except ValueError:
        raise ValueError(f"GIT_TIMEOUT must be a number of seconds, got '{value}'")
    if timeout <= 0:
        raise ValueError(f"GIT_TIMEOUT must be positive, got '{value}'")
    return timeout


def load_config(
    config_file: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> GitPaneConfig:
    """
    Load config from config_file (if given) and the environment.

    Raises:
        FileNotFoundError: config_file given but missing
        ValueError: invalid file syntax, timeout, or log level
    """
    if environ is None:
        environ = os.environ

    values = envparse.load_env(config_file) if config_file else {}
    for key, value in environ.items():
        if key.startswith(ENV_PREFIX):
            values[key[len(ENV_PREFIX):]] = value

    log_level = values.get("LOG_LEVEL", "WARNING").upper()
    if log_level not in VALID_LOG_LEVELS:
        raise ValueError(f"Unknown LOG_LEVEL '{log_level}'. Valid: {', '.join(VALID_LOG_LEVELS)}")

    return GitPaneConfig(
        git_binary=values.get("GIT_BINARY") or "git",
        timeout=_parse_timeout(values.get("GIT_TIMEOUT", "")),
        state_dir=Path(values.get("STATE_DIR") or DEFAULT_STATE_DIR).expanduser(),
        log_level=log_level,
    )


def get_saved_repository(state_dir: Path) -> Path | None:
    """Get the last selected repository, or None if not set.

    Auto-clears the entry if the directory no longer exists.
    """
    repo_file = state_dir / REPOSITORY_FILE
    if not repo_file.exists():
        return None

    saved = repo_file.read_text().strip()
    if not saved:
        return None
    path = Path(saved)
    if path.is_dir():
        return path

    logger.warning(f"Saved repository {saved} no longer exists, forgetting it")
    repo_file.unlink()
    return None


def save_repository(state_dir: Path, path: Path) -> None:
    """Remember the selected repository."""
    state_dir.mkdir(parents=True, exist_ok=True)
    (state_dir / REPOSITORY_FILE).write_text(str(path) + "\n")


def clear_saved_repository(state_dir: Path) -> None:
    """Forget the selected repository."""
    repo_file = state_dir / REPOSITORY_FILE
    if repo_file.exists():
        repo_file.unlink()
