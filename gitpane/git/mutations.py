"""Git mutations: stage, unstage, discard and commit."""

import logging
from dataclasses import dataclass

from gitpane.git.errors import EmptyMessageError
from gitpane.git.repository import RepositoryLocator

logger = logging.getLogger(__name__)


@dataclass
class CommitResult:
    success: bool
    message: str

    def to_payload(self) -> dict:
        return {"success": self.success, "message": self.message}


def stage_files(locator: RepositoryLocator, paths: list[str]) -> None:
    """Stage specific files. No-op for an empty list."""
    if not paths:
        return
    locator.run(["add", "--"] + list(paths))


def unstage_files(locator: RepositoryLocator, paths: list[str]) -> None:
    """Remove files from the index, leaving the worktree alone. No-op for an empty list."""
    if not paths:
        return
    locator.run(["reset", "-q", "HEAD", "--"] + list(paths))


def stage_all(locator: RepositoryLocator) -> None:
    """Stage all changes (new, modified, deleted)."""
    locator.run(["add", "--all"])


def unstage_all(locator: RepositoryLocator) -> None:
    """Clear the index back to HEAD."""
    locator.run(["reset", "-q", "HEAD"])


def discard_changes(locator: RepositoryLocator, path: str, is_untracked: bool = False) -> None:
    """
    Throw away uncommitted worktree changes for path.

    Untracked paths are deleted from disk; tracked paths are restored from
    the index. Neither can be undone.
    """
    if not path:
        return

    if is_untracked:
        logger.info(f"Removing untracked {path}")
        locator.run(["clean", "-fd", "--", path])
    else:
        logger.info(f"Restoring {path} from index")
        locator.run(["checkout", "--", path])


def commit(locator: RepositoryLocator, message: str) -> CommitResult:
    """
    Commit the current index with the given message.

    Raises:
        EmptyMessageError: message is blank; nothing is run
    """
    message = message.strip()
    if not message:
        raise EmptyMessageError()

    locator.run(["commit", "-m", message])
    logger.info(f"Created commit in {locator.root}")
    return CommitResult(success=True, message="Commit created")
