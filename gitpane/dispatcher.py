"""
Request dispatcher between a UI process and the git layer.

Requests arrive as JSON lines:

    {"id": 1, "method": "getDiff", "params": {"path": "a.txt", "staged": false}}

and each gets exactly one response line:

    {"id": 1, "result": {...}}
    {"id": 1, "error": {"type": "ProcessError", "message": "...", ...}}
"""

import json
import logging
from pathlib import Path
from typing import Any, Callable, TextIO

from gitpane import git
from gitpane.git import GitPaneError, RepositoryLocator

logger = logging.getLogger(__name__)


class UnknownMethodError(GitPaneError):
    def __init__(self, method: str):
        self.method = method
        super().__init__(f"Unknown method: {method}")


class InvalidRequest(GitPaneError):
    pass


def _require(params: dict, key: str) -> Any:
    if key not in params:
        raise InvalidRequest(f"Missing parameter '{key}'")
    return params[key]


def _flag(params: dict, key: str, required: bool = False) -> bool:
    value = _require(params, key) if required else params.get(key, False)
    if not isinstance(value, bool):
        raise InvalidRequest(f"'{key}' must be true or false")
    return value


class Dispatcher:
    """Routes named requests to git operations on one repository."""

    def __init__(
        self,
        locator: RepositoryLocator,
        on_repository_selected: Callable[[Path], None] | None = None,
    ):
        self.locator = locator
        self.on_repository_selected = on_repository_selected
        self._handlers = {
            "getStatus": self.get_status,
            "stageFiles": self.stage_files,
            "unstageFiles": self.unstage_files,
            "stageAll": self.stage_all,
            "unstageAll": self.unstage_all,
            "getDiff": self.get_diff,
            "commit": self.commit,
            "discardChanges": self.discard_changes,
            "getRepository": self.get_repository,
            "selectRepository": self.select_repository,
        }

    @property
    def methods(self) -> list[str]:
        return list(self._handlers)

    def dispatch(self, method: str, params: dict | None = None) -> Any:
        """
        Run one request and return its JSON-ready result.

        Raises:
            UnknownMethodError: method is not routed
            InvalidRequest: params are missing or malformed
            GitPaneError: whatever the operation raised
        """
        handler = self._handlers.get(method)
        if handler is None:
            raise UnknownMethodError(method)
        if params is None:
            params = {}
        if not isinstance(params, dict):
            raise InvalidRequest("params must be an object")
        logger.debug(f"Dispatching {method} {params}")
        return handler(params)

    # Handlers

    def get_status(self, params: dict) -> dict:
        files = git.get_status(self.locator)
        return {"files": [f.to_payload() for f in files]}

    def stage_files(self, params: dict) -> None:
        git.stage_files(self.locator, self._paths(params))

    def unstage_files(self, params: dict) -> None:
        git.unstage_files(self.locator, self._paths(params))

    def stage_all(self, params: dict) -> None:
        git.stage_all(self.locator)

    def unstage_all(self, params: dict) -> None:
        git.unstage_all(self.locator)

    def get_diff(self, params: dict) -> dict:
        result = git.get_diff(
            self.locator,
            str(_require(params, "path")),
            staged=_flag(params, "staged", required=True),
            is_untracked=_flag(params, "isUntracked"),
        )
        return result.to_payload()

    def commit(self, params: dict) -> dict:
        message = params.get("message") or ""
        return git.commit(self.locator, str(message)).to_payload()

    def discard_changes(self, params: dict) -> None:
        git.discard_changes(
            self.locator,
            str(params.get("path") or ""),
            is_untracked=_flag(params, "isUntracked"),
        )

    def get_repository(self, params: dict) -> dict | None:
        root = self.locator.current()
        return {"path": str(root)} if root else None

    def select_repository(self, params: dict) -> dict:
        root = self.locator.set_root(str(_require(params, "path")))
        if self.on_repository_selected:
            self.on_repository_selected(root)
        return {"path": str(root)}

    @staticmethod
    def _paths(params: dict) -> list[str]:
        paths = params.get("paths") or []
        if isinstance(paths, str) or not isinstance(paths, list):
            raise InvalidRequest("'paths' must be a list of strings")
        return [str(p) for p in paths]

    # Wire protocol

    def handle_line(self, line: str) -> str:
        """Decode one request line and return the encoded response line."""
        request_id = None
        try:
            try:
                request = json.loads(line)
            except json.JSONDecodeError as e:
                raise InvalidRequest(f"Malformed JSON: {e}")
            if not isinstance(request, dict):
                raise InvalidRequest("Request must be an object")
            request_id = request.get("id")
            method = request.get("method")
            if not isinstance(method, str):
                raise InvalidRequest("Missing 'method'")
            result = self.dispatch(method, request.get("params"))
            response = {"id": request_id, "result": result}
        except GitPaneError as e:
            logger.info(f"Request {request_id} failed: {e}")
            response = {"id": request_id, "error": e.to_payload()}
        except Exception as e:
            # Keep the channel alive; the caller still gets one response per request
            logger.exception(f"Request {request_id} crashed")
            response = {"id": request_id, "error": {"type": type(e).__name__, "message": str(e)}}
        return json.dumps(response)

    def serve(self, stdin: TextIO, stdout: TextIO) -> None:
        """Answer one request per input line until EOF."""
        for line in stdin:
            if not line.strip():
                continue
            stdout.write(self.handle_line(line) + "\n")
            stdout.flush()
