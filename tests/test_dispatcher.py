"""Tests for gitpane.dispatcher module."""

import io
import json
from pathlib import Path
from unittest.mock import patch, MagicMock

import pytest

from gitpane import git
from gitpane.dispatcher import Dispatcher, InvalidRequest, UnknownMethodError
from gitpane.git import (
    DiffResult,
    EmptyMessageError,
    FileStatusEntry,
    ProcessError,
    RepositoryLocator,
)

RUN = "gitpane.git.runner.subprocess.run"


def completed(returncode=0, stdout="", stderr=""):
    return MagicMock(returncode=returncode, stdout=stdout, stderr=stderr)


@pytest.fixture
def dispatcher():
    locator = MagicMock(spec=RepositoryLocator)
    return Dispatcher(locator)


class TestDispatch:
    """Test routing of named requests."""

    def test_routes_every_operation(self, dispatcher):
        assert set(dispatcher.methods) == {
            "getStatus", "stageFiles", "unstageFiles", "stageAll", "unstageAll",
            "getDiff", "commit", "discardChanges", "getRepository", "selectRepository",
        }

    def test_unknown_method(self, dispatcher):
        with pytest.raises(UnknownMethodError):
            dispatcher.dispatch("pushEverything")

    @patch.object(git, "get_status")
    def test_get_status_payload(self, mock_status, dispatcher):
        mock_status.return_value = [
            FileStatusEntry(path="a.txt", display_path="a.txt", status_code="M ", staged=True),
        ]
        result = dispatcher.dispatch("getStatus")
        assert result == {"files": [{
            "path": "a.txt",
            "displayPath": "a.txt",
            "statusCode": "M ",
            "staged": True,
            "isUntracked": False,
        }]}

    @patch.object(git, "stage_files")
    def test_stage_files_passes_paths(self, mock_stage, dispatcher):
        assert dispatcher.dispatch("stageFiles", {"paths": ["a.txt", "b.txt"]}) is None
        mock_stage.assert_called_once_with(dispatcher.locator, ["a.txt", "b.txt"])

    @patch.object(git, "unstage_files")
    def test_unstage_files_defaults_to_empty(self, mock_unstage, dispatcher):
        dispatcher.dispatch("unstageFiles", {})
        mock_unstage.assert_called_once_with(dispatcher.locator, [])

    def test_paths_must_be_list(self, dispatcher):
        with pytest.raises(InvalidRequest):
            dispatcher.dispatch("stageFiles", {"paths": "a.txt"})

    def test_params_must_be_object(self, dispatcher):
        with pytest.raises(InvalidRequest):
            dispatcher.dispatch("stageFiles", ["a.txt"])

    @patch.object(git, "get_diff")
    def test_get_diff(self, mock_diff, dispatcher):
        mock_diff.return_value = DiffResult(path="b.txt", staged=False, diff_text="+x\n")
        result = dispatcher.dispatch("getDiff", {"path": "b.txt", "staged": False, "isUntracked": True})
        mock_diff.assert_called_once_with(dispatcher.locator, "b.txt", staged=False, is_untracked=True)
        assert result == {"path": "b.txt", "staged": False, "diff": "+x\n"}

    def test_get_diff_requires_path(self, dispatcher):
        with pytest.raises(InvalidRequest):
            dispatcher.dispatch("getDiff", {"staged": True})

    @patch.object(git, "discard_changes")
    def test_discard(self, mock_discard, dispatcher):
        dispatcher.dispatch("discardChanges", {"path": "junk", "isUntracked": True})
        mock_discard.assert_called_once_with(dispatcher.locator, "junk", is_untracked=True)

    def test_commit_blank_message_spawns_nothing(self, dispatcher):
        with pytest.raises(EmptyMessageError):
            dispatcher.dispatch("commit", {"message": "   "})
        dispatcher.locator.run.assert_not_called()

    def test_commit_missing_message(self, dispatcher):
        with pytest.raises(EmptyMessageError):
            dispatcher.dispatch("commit", {})

    def test_commit(self, dispatcher):
        result = dispatcher.dispatch("commit", {"message": "Add feature"})
        dispatcher.locator.run.assert_called_once_with(["commit", "-m", "Add feature"])
        assert result == {"success": True, "message": "Commit created"}


class TestRepositorySelection:
    """Test getRepository/selectRepository with a real locator."""

    def test_get_repository_null_outside_repo(self):
        dispatcher = Dispatcher(RepositoryLocator(launch_dir="/tmp"))
        with patch(RUN, return_value=completed(returncode=128, stderr="fatal: not a git repository")):
            assert dispatcher.dispatch("getRepository") is None

    def test_select_repository_reports_root_and_notifies(self):
        selected = []
        dispatcher = Dispatcher(RepositoryLocator(launch_dir="/tmp"), on_repository_selected=selected.append)
        with patch(RUN, return_value=completed(stdout="/repo\n")):
            result = dispatcher.dispatch("selectRepository", {"path": "/repo/sub"})
        assert result == {"path": str(Path("/repo"))}
        assert selected == [Path("/repo")]

    def test_failed_selection_keeps_previous_root(self):
        selected = []
        dispatcher = Dispatcher(RepositoryLocator(launch_dir="/tmp"), on_repository_selected=selected.append)
        with patch(RUN, return_value=completed(stdout="/repo\n")):
            dispatcher.dispatch("selectRepository", {"path": "/repo"})

        with patch(RUN, return_value=completed(returncode=128, stderr="fatal: not a git repository")) as mock_run:
            response = json.loads(dispatcher.handle_line(json.dumps(
                {"id": 7, "method": "selectRepository", "params": {"path": "/plain"}}
            )))
            assert response["error"]["type"] == "NotARepositoryError"
            assert response["error"]["path"] == str(Path("/plain"))

            assert dispatcher.dispatch("getRepository") == {"path": str(Path("/repo"))}
            # Cached root answers without asking git again
            mock_run.assert_called_once()

        assert selected == [Path("/repo")]


class TestHandleLine:
    """Test the JSON-lines wire protocol."""

    @patch.object(git, "stage_all")
    def test_result_response(self, mock_stage_all, dispatcher):
        response = json.loads(dispatcher.handle_line('{"id": 1, "method": "stageAll"}'))
        assert response == {"id": 1, "result": None}
        mock_stage_all.assert_called_once()

    def test_malformed_json(self, dispatcher):
        response = json.loads(dispatcher.handle_line("{not json"))
        assert response["id"] is None
        assert response["error"]["type"] == "InvalidRequest"

    def test_missing_method(self, dispatcher):
        response = json.loads(dispatcher.handle_line('{"id": 3}'))
        assert response["id"] == 3
        assert response["error"]["type"] == "InvalidRequest"

    def test_unknown_method(self, dispatcher):
        response = json.loads(dispatcher.handle_line('{"id": 4, "method": "rebase"}'))
        assert response["error"] == {"type": "UnknownMethodError", "message": "Unknown method: rebase"}

    @patch.object(git, "get_status")
    def test_process_error_payload(self, mock_status, dispatcher):
        mock_status.side_effect = ProcessError(128, "fatal: index file corrupt\n", ["status"])
        response = json.loads(dispatcher.handle_line('{"id": 5, "method": "getStatus"}'))
        error = response["error"]
        assert error["type"] == "ProcessError"
        assert error["returncode"] == 128
        assert error["stderr"] == "fatal: index file corrupt\n"
        assert error["timedOut"] is False
        assert "index file corrupt" in error["message"]

    def test_empty_message_payload(self, dispatcher):
        response = json.loads(dispatcher.handle_line('{"id": 6, "method": "commit", "params": {"message": ""}}'))
        assert response["error"]["type"] == "EmptyMessageError"

    @patch.object(git, "stage_all")
    @patch.object(git, "unstage_all")
    def test_serve_answers_each_line(self, mock_unstage_all, mock_stage_all, dispatcher):
        stdin = io.StringIO('{"id": 1, "method": "stageAll"}\n\n{"id": 2, "method": "unstageAll"}\n')
        stdout = io.StringIO()
        dispatcher.serve(stdin, stdout)
        responses = [json.loads(line) for line in stdout.getvalue().splitlines()]
        assert [r["id"] for r in responses] == [1, 2]
        assert all("result" in r for r in responses)

    @patch.object(git, "get_diff")
    def test_unexpected_exception_keeps_serving(self, mock_diff, dispatcher):
        mock_diff.side_effect = RuntimeError("boom")
        dispatcher.locator.current.return_value = Path("/repo")
        stdin = io.StringIO(
            '{"id": 1, "method": "getDiff", "params": {"path": "a.txt", "staged": false}}\n'
            '{"id": 2, "method": "getRepository"}\n'
        )
        stdout = io.StringIO()
        dispatcher.serve(stdin, stdout)
        first, second = [json.loads(line) for line in stdout.getvalue().splitlines()]
        assert first == {"id": 1, "error": {"type": "RuntimeError", "message": "boom"}}
        assert second == {"id": 2, "result": {"path": str(Path("/repo"))}}

    def test_nul_byte_path_is_process_error(self):
        dispatcher = Dispatcher(RepositoryLocator(launch_dir="/tmp"))
        with patch(RUN, return_value=completed(stdout="/repo\n")):
            dispatcher.dispatch("selectRepository", {"path": "/repo"})

        with patch(RUN, side_effect=ValueError("embedded null byte")):
            response = json.loads(dispatcher.handle_line(json.dumps(
                {"id": 8, "method": "getDiff", "params": {"path": "a\u0000b", "staged": False}}
            )))
        assert response["error"]["type"] == "ProcessError"
        assert "embedded null byte" in response["error"]["stderr"]

    def test_failing_selection_callback_still_answers(self):
        def refuse(root):
            raise PermissionError("read-only state dir")

        dispatcher = Dispatcher(RepositoryLocator(launch_dir="/tmp"), on_repository_selected=refuse)
        with patch(RUN, return_value=completed(stdout="/repo\n")):
            response = json.loads(dispatcher.handle_line(
                '{"id": 9, "method": "selectRepository", "params": {"path": "/repo"}}'
            ))
        assert response == {"id": 9, "error": {"type": "PermissionError", "message": "read-only state dir"}}

    @pytest.mark.parametrize("params", [
        {"path": "a.txt", "staged": "false"},
        {"path": "a.txt", "staged": 0},
        {"path": "a.txt", "staged": False, "isUntracked": "true"},
    ])
    @patch.object(git, "get_diff")
    def test_diff_flags_must_be_booleans(self, mock_diff, params, dispatcher):
        response = json.loads(dispatcher.handle_line(json.dumps({"id": 10, "method": "getDiff", "params": params})))
        assert response["error"]["type"] == "InvalidRequest"
        mock_diff.assert_not_called()

    @patch.object(git, "discard_changes")
    def test_discard_flag_must_be_boolean(self, mock_discard, dispatcher):
        with pytest.raises(InvalidRequest):
            dispatcher.dispatch("discardChanges", {"path": "junk", "isUntracked": "yes"})
        mock_discard.assert_not_called()
