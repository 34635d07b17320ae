"""Git diff operations."""

import logging
from dataclasses import dataclass
from enum import Enum

from gitpane.git.repository import RepositoryLocator
from gitpane.git.runner import run_diff

logger = logging.getLogger(__name__)

# git treats this path as an empty file on every platform
EMPTY_SOURCE = "/dev/null"


@dataclass
class DiffResult:
    """Diff text for one path on one side of the index."""
    path: str
    staged: bool
    diff_text: str  # Empty string means no differences

    def to_payload(self) -> dict:
        return {"path": self.path, "staged": self.staged, "diff": self.diff_text}


class DiffLineType(str, Enum):
    ADD = "add"
    REMOVE = "remove"
    HUNK = "hunk"
    META = "meta"
    CONTEXT = "context"


@dataclass(frozen=True)
class DiffLine:
    content: str
    type: DiffLineType


def _run(locator: RepositoryLocator, args: list[str]) -> str:
    outcome, result = run_diff(
        args,
        locator.resolve(),
        git_binary=locator.git_binary,
        timeout=locator.timeout,
    )
    logger.debug(f"git {' '.join(args)}: {outcome.value}")
    return result.stdout


def get_diff(
    locator: RepositoryLocator,
    path: str,
    staged: bool,
    is_untracked: bool = False,
) -> DiffResult:
    """
    Get the diff for path, against HEAD if staged, else against the index.

    Untracked files have nothing in the index to compare with, so when the
    plain diff comes back blank they are diffed against /dev/null instead,
    which shows the whole file as added. An untracked empty file takes the
    same route and still yields no hunks.
    """
    if staged:
        args = ["diff", "--cached", "--", path]
    else:
        args = ["diff", "--", path]
    diff_text = _run(locator, args)

    if not staged and is_untracked and not diff_text.strip():
        absolute_path = str(locator.resolve() / path)
        logger.debug(f"Falling back to --no-index diff for untracked {path}")
        diff_text = _run(locator, ["diff", "--no-index", "--", EMPTY_SOURCE, absolute_path])

    return DiffResult(path=path, staged=staged, diff_text=diff_text)


def classify_diff_lines(diff_text: str) -> list[DiffLine]:
    """Tag each line of a unified diff for display."""
    if not diff_text:
        return []

    lines = []
    for content in diff_text.replace("\r\n", "\n").split("\n"):
        if content.startswith("+++") or content.startswith("---"):
            line_type = DiffLineType.META
        elif content.startswith("@@"):
            line_type = DiffLineType.HUNK
        elif content.startswith("+"):
            line_type = DiffLineType.ADD
        elif content.startswith("-"):
            line_type = DiffLineType.REMOVE
        else:
            line_type = DiffLineType.CONTEXT
        lines.append(DiffLine(content=content, type=line_type))
    return lines
