"""Git status operations."""

from dataclasses import dataclass
from enum import Enum

from gitpane.git.repository import RepositoryLocator

UNTRACKED_CODE = "??"
RENAME_SEPARATOR = " -> "
# Symbols meaning "no change on this side"
_UNCHANGED = (" ", "?")


class StatusKind(str, Enum):
    """Kind of change shown for a status entry."""
    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"
    RENAMED = "renamed"
    COPIED = "copied"
    UNTRACKED = "untracked"
    OTHER = "other"


_KIND_BY_SYMBOL = {
    "A": StatusKind.ADDED,
    "M": StatusKind.MODIFIED,
    "D": StatusKind.DELETED,
    "R": StatusKind.RENAMED,
    "C": StatusKind.COPIED,
    "?": StatusKind.UNTRACKED,
}


@dataclass(frozen=True)
class FileStatusEntry:
    """One (path, stage) row of the working tree status."""
    path: str
    display_path: str
    status_code: str  # Raw two-char XY token, e.g. "M ", "??"
    staged: bool
    is_untracked: bool = False

    @property
    def kind(self) -> StatusKind:
        return status_kind(self.status_code)

    def to_payload(self) -> dict:
        return {
            "path": self.path,
            "displayPath": self.display_path,
            "statusCode": self.status_code,
            "staged": self.staged,
            "isUntracked": self.is_untracked,
        }


def parse_status(output: str) -> list[FileStatusEntry]:
    """
    Parse `git status --short` output into status entries.

    A line with both index and worktree changes yields two entries, the
    unstaged one first. Renames ("R  old -> new") are reported under the
    destination path. Order follows git's output.
    """
    entries = []
    for line in output.split("\n"):
        line = line.rstrip()
        if not line:
            continue

        status_code = line[:2]
        raw_path = line[3:]
        index_symbol, worktree_symbol = status_code[0], status_code[1:2] or " "

        path = raw_path
        if RENAME_SEPARATOR in raw_path:
            path = raw_path.split(RENAME_SEPARATOR)[-1]

        is_untracked = status_code == UNTRACKED_CODE
        has_working_change = is_untracked or worktree_symbol not in _UNCHANGED
        has_staged_change = index_symbol not in _UNCHANGED

        if has_working_change:
            entries.append(FileStatusEntry(
                path=path,
                display_path=path,
                status_code=status_code,
                staged=False,
                is_untracked=is_untracked,
            ))
        if has_staged_change:
            entries.append(FileStatusEntry(
                path=path,
                display_path=path,
                status_code=status_code,
                staged=True,
                is_untracked=False,
            ))

    return entries


def get_status(locator: RepositoryLocator) -> list[FileStatusEntry]:
    """Get staged, unstaged and untracked entries for the active repository."""
    result = locator.run(["status", "--short", "--untracked-files=all"])
    return parse_status(result.stdout)


def status_kind(status_code: str) -> StatusKind:
    """Pick the kind of change to show for an XY code, preferring the index side."""
    symbol = status_code[:1]
    if symbol in _UNCHANGED:
        symbol = status_code[1:2]
    return _KIND_BY_SYMBOL.get(symbol, StatusKind.OTHER)


def split_by_stage(
    entries: list[FileStatusEntry],
) -> tuple[list[FileStatusEntry], list[FileStatusEntry]]:
    """Partition entries into (working, staged), preserving order."""
    working = [e for e in entries if not e.staged]
    staged = [e for e in entries if e.staged]
    return working, staged
