"""Active repository resolution.

RepositoryLocator owns the single cached repository root. Every git
operation receives a locator and runs commands through it, so several
repositories can be served side by side by creating several locators.
"""

import logging
import threading
from pathlib import Path

from gitpane.git.errors import NotARepositoryError, ProcessError
from gitpane.git.runner import DEFAULT_GIT, GitResult, run_git

logger = logging.getLogger(__name__)


class RepositoryLocator:
    """Determines, caches and switches the active repository root."""

    def __init__(
        self,
        launch_dir: Path | str | None = None,
        git_binary: str = DEFAULT_GIT,
        timeout: float | None = None,
    ):
        self.launch_dir = Path(launch_dir) if launch_dir else Path.cwd()
        self.git_binary = git_binary
        self.timeout = timeout
        self._root: Path | None = None
        self._lock = threading.Lock()

    @property
    def root(self) -> Path | None:
        """Cached root, or None if nothing has been resolved yet."""
        return self._root

    def _toplevel(self, directory: Path) -> Path:
        try:
            result = run_git(
                ["rev-parse", "--show-toplevel"],
                directory,
                git_binary=self.git_binary,
                timeout=self.timeout,
            )
        except ProcessError as e:
            # Spawn failures and timeouts say nothing about the directory
            if e.returncode < 0:
                raise
            raise NotARepositoryError(directory, e.stderr) from e
        toplevel = result.stdout.strip()
        if not toplevel:
            raise NotARepositoryError(directory, "git reported no top-level directory")
        return Path(toplevel)

    def resolve(self) -> Path:
        """Return the cached root, querying git from the launch directory on first use."""
        root = self._root
        if root is not None:
            return root

        with self._lock:
            if self._root is None:
                self._root = self._toplevel(self.launch_dir)
                logger.info(f"Resolved repository root {self._root}")
            return self._root

    def set_root(self, candidate: Path | str) -> Path:
        """
        Switch to the repository containing candidate.

        The cached root becomes git's top-level directory, which differs
        from candidate when a subdirectory was chosen. On failure the
        previous root is kept.

        Raises:
            NotARepositoryError: candidate is not inside a repository
        """
        candidate = Path(candidate).expanduser()
        with self._lock:
            toplevel = self._toplevel(candidate)
            if toplevel != self._root:
                logger.info(f"Switching repository root {self._root} -> {toplevel}")
            self._root = toplevel
            return toplevel

    def current(self) -> Path | None:
        """Return the active root, or None when no repository can be found."""
        try:
            return self.resolve()
        except NotARepositoryError as e:
            logger.debug(f"No active repository: {e}")
            return None

    def run(self, args: list[str], allow_codes=(), cwd: Path | None = None) -> GitResult:
        """Run git in the active repository (or cwd if given)."""
        return run_git(
            args,
            cwd if cwd is not None else self.resolve(),
            allow_codes=allow_codes,
            git_binary=self.git_binary,
            timeout=self.timeout,
        )
