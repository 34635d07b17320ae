"""Exceptions raised by gitpane git operations.

Every error carries enough detail to be shown to a user as-is and renders
itself as a wire payload via to_payload().
"""

from pathlib import Path


class GitPaneError(Exception):
    """Base class for all gitpane errors."""

    def to_payload(self) -> dict:
        return {"type": type(self).__name__, "message": str(self)}


class ProcessError(GitPaneError):
    """git exited with an unexpected code, timed out, or could not be spawned."""

    def __init__(self, returncode: int, stderr: str, args: list[str] | None = None, timed_out: bool = False):
        self.returncode = returncode
        self.stderr = stderr
        self.command = list(args or [])
        self.timed_out = timed_out
        detail = stderr.strip() or "no output"
        if timed_out:
            message = f"git {' '.join(self.command)} timed out: {detail}"
        else:
            message = f"git {' '.join(self.command)} failed with exit code {returncode}: {detail}"
        super().__init__(message)

    def to_payload(self) -> dict:
        payload = super().to_payload()
        payload.update(
            returncode=self.returncode,
            stderr=self.stderr,
            timedOut=self.timed_out,
        )
        return payload


class NotARepositoryError(GitPaneError):
    """A directory is not inside a git repository."""

    def __init__(self, path: Path | str, detail: str = ""):
        self.path = str(path)
        self.detail = detail.strip()
        message = f"Not a git repository: {self.path}"
        if self.detail:
            message += f" ({self.detail})"
        super().__init__(message)

    def to_payload(self) -> dict:
        payload = super().to_payload()
        payload.update(path=self.path, detail=self.detail)
        return payload


class EmptyMessageError(GitPaneError):
    """Commit attempted with a blank message."""

    def __init__(self):
        super().__init__("Commit message is empty")
