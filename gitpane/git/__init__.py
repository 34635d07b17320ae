"""Git operations for gitpane.

Every operation takes a RepositoryLocator, which owns the active repository
root and runs git there.

Error conventions:
- Failures raise GitPaneError subclasses (ProcessError, NotARepositoryError,
  EmptyMessageError). Nothing is retried.
- Mutations return None; queries return parsed values.
- "No differences" is an empty diff string, never an error.
"""

from gitpane.git.errors import (
    GitPaneError,
    ProcessError,
    NotARepositoryError,
    EmptyMessageError,
)
from gitpane.git.runner import (
    GitResult,
    DiffOutcome,
    run_git,
    run_diff,
)
from gitpane.git.repository import RepositoryLocator
from gitpane.git.status import (
    FileStatusEntry,
    StatusKind,
    parse_status,
    get_status,
    status_kind,
    split_by_stage,
)
from gitpane.git.diff import (
    DiffResult,
    DiffLine,
    DiffLineType,
    get_diff,
    classify_diff_lines,
)
from gitpane.git.mutations import (
    CommitResult,
    stage_files,
    unstage_files,
    stage_all,
    unstage_all,
    discard_changes,
    commit,
)

__all__ = [
    # errors
    "GitPaneError",
    "ProcessError",
    "NotARepositoryError",
    "EmptyMessageError",
    # runner
    "GitResult",
    "DiffOutcome",
    "run_git",
    "run_diff",
    # repository
    "RepositoryLocator",
    # status
    "FileStatusEntry",
    "StatusKind",
    "parse_status",
    "get_status",
    "status_kind",
    "split_by_stage",
    # diff
    "DiffResult",
    "DiffLine",
    "DiffLineType",
    "get_diff",
    "classify_diff_lines",
    # mutations
    "CommitResult",
    "stage_files",
    "unstage_files",
    "stage_all",
    "unstage_all",
    "discard_changes",
    "commit",
]
