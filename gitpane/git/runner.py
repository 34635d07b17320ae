"""Git command runner with exit-code handling."""

import logging
import subprocess
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterable

from gitpane.git.errors import ProcessError

logger = logging.getLogger(__name__)

DEFAULT_GIT = "git"

# git diff exits 1 when differences exist
DIFF_FOUND_CODE = 1


class DiffOutcome(Enum):
    """How a diff command finished."""
    NO_DIFFERENCES = "no_differences"
    HAS_DIFFERENCES = "has_differences"
    FAILED = "failed"


@dataclass
class GitResult:
    """Result of a git command."""
    returncode: int
    stdout: str
    stderr: str

    @property
    def success(self) -> bool:
        return self.returncode == 0


def run_git(
    args: list[str],
    cwd: Path,
    *,
    allow_codes: Iterable[int] = (),
    git_binary: str = DEFAULT_GIT,
    timeout: float | None = None,
) -> GitResult:
    """
    Run a git command as an argument vector (never through a shell).

    Args:
        args: Git command arguments (e.g., ["status", "--short"])
        cwd: Directory passed to git via -C
        allow_codes: Nonzero exit codes to treat as success
        git_binary: git executable name or path
        timeout: Optional timeout in seconds; None waits indefinitely

    Returns:
        GitResult with returncode, stdout and stderr

    Raises:
        ProcessError: on any other nonzero exit, timeout, or spawn failure
    """
    cmd = [git_binary, "-C", str(cwd)] + list(args)
    logger.debug(f"Running {cmd}")
    try:
        proc = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        logger.warning(f"git {args[0] if args else ''} timed out after {timeout}s")
        raise ProcessError(-1, f"Command timed out after {timeout}s", args, timed_out=True)
    except (OSError, ValueError) as e:
        # Binary missing or not executable, or an argument with a NUL byte
        logger.warning(f"Could not spawn {git_binary}: {e}")
        raise ProcessError(-1, str(e), args)

    result = GitResult(returncode=proc.returncode, stdout=proc.stdout, stderr=proc.stderr)
    if result.returncode != 0 and result.returncode not in set(allow_codes):
        logger.warning(f"git {args[0] if args else ''} exited {result.returncode}: {result.stderr.strip()}")
        raise ProcessError(result.returncode, result.stderr, args)
    return result


def classify_diff_exit(returncode: int) -> DiffOutcome:
    """Map a diff command's exit code to its outcome."""
    if returncode == 0:
        return DiffOutcome.NO_DIFFERENCES
    if returncode == DIFF_FOUND_CODE:
        return DiffOutcome.HAS_DIFFERENCES
    return DiffOutcome.FAILED


def run_diff(args: list[str], cwd: Path, **kwargs) -> tuple[DiffOutcome, GitResult]:
    """
    Run a diff command, treating "differences found" as success.

    A FAILED outcome never reaches the caller: run_git raises ProcessError
    for any exit code other than 0 and 1.
    """
    result = run_git(args, cwd, allow_codes=(DIFF_FOUND_CODE,), **kwargs)
    return classify_diff_exit(result.returncode), result
