"""Tests for worker launching and process tree teardown."""

import os
import signal
import subprocess
import threading
from unittest.mock import MagicMock, Mock, patch

import psutil
import pytest

from mutineer.core.errors import ProcessStartupError
from mutineer.process.launcher import (
    SubprocessLauncher,
    get_child_pids,
    kill_process_tree,
    wait_quietly,
)
from fakes import FakeHandle


class TestSubprocessLauncher:
    """Test command, environment and payload handling."""

    def test_command(self) -> None:
        launcher = SubprocessLauncher(python_executable="/usr/bin/python3")
        assert launcher.build_command("mutineer.worker") == ["/usr/bin/python3", "-m", "mutineer.worker"]

    @patch.dict(os.environ, {"PYTHONPATH": "/inherited"}, clear=True)
    def test_python_path_is_prepended(self) -> None:
        launcher = SubprocessLauncher(env={"EXTRA": "1"})
        env = launcher.build_env(["/a", "/b"])
        assert env["PYTHONPATH"] == os.pathsep.join(["/a", "/b", "/inherited"])
        assert env["EXTRA"] == "1"

    @patch.dict(os.environ, {}, clear=True)
    def test_no_python_path(self) -> None:
        assert "PYTHONPATH" not in SubprocessLauncher().build_env([])

    @patch("mutineer.process.launcher.subprocess.Popen")
    def test_launch_writes_payload_to_stdin(self, mock_popen) -> None:
        process = mock_popen.return_value
        process.pid = 999

        result = SubprocessLauncher(python_executable="py", cwd="/work").launch(
            "mutineer.worker", '{"port": 1}', ["/src"]
        )

        assert result is process
        args, kwargs = mock_popen.call_args
        assert args[0] == ["py", "-m", "mutineer.worker"]
        assert kwargs["stdin"] == subprocess.PIPE
        assert kwargs["start_new_session"] is True
        assert kwargs["cwd"] == "/work"
        process.stdin.write.assert_called_once_with(b'{"port": 1}')
        process.stdin.close.assert_called_once()

    @patch("mutineer.process.launcher.subprocess.Popen")
    def test_early_stdin_close_is_not_fatal(self, mock_popen) -> None:
        process = mock_popen.return_value
        process.stdin.write.side_effect = BrokenPipeError()

        assert SubprocessLauncher().launch("mutineer.worker", "{}", []) is process

    @patch("mutineer.process.launcher.subprocess.Popen", side_effect=FileNotFoundError("no python"))
    def test_spawn_failure(self, mock_popen) -> None:
        with pytest.raises(ProcessStartupError, match="no python"):
            SubprocessLauncher(python_executable="/missing").launch("mutineer.worker", "{}", [])


class TestProcessTree:
    """Test psutil-based teardown."""

    @patch("mutineer.process.launcher.psutil.Process")
    def test_get_child_pids(self, mock_process) -> None:
        children = [Mock(pid=11), Mock(pid=12)]
        for child in children:
            child.is_running.return_value = True
        mock_process.return_value.children.return_value = children

        assert get_child_pids(10) == [11, 12]
        mock_process.return_value.children.assert_called_once_with(recursive=True)

    @patch("mutineer.process.launcher.psutil.Process", side_effect=psutil.NoSuchProcess(10))
    def test_get_child_pids_of_dead_process(self, mock_process) -> None:
        assert get_child_pids(10) == []

    @patch("mutineer.process.launcher.psutil.wait_procs", return_value=([], []))
    @patch("mutineer.process.launcher._existing", return_value=[])
    @patch("mutineer.process.launcher.os.kill")
    @patch("mutineer.process.launcher.get_child_pids", return_value=[11, 12])
    def test_kill_tree(self, mock_children, mock_kill, mock_existing, mock_wait) -> None:
        assert kill_process_tree(10) is True
        assert [c.args for c in mock_kill.call_args_list] == [
            (10, signal.SIGKILL),
            (11, signal.SIGKILL),
            (12, signal.SIGKILL),
        ]

    @patch("mutineer.process.launcher.psutil.wait_procs")
    @patch("mutineer.process.launcher._existing", return_value=[])
    @patch("mutineer.process.launcher.os.kill")
    @patch("mutineer.process.launcher.get_child_pids", return_value=[11])
    def test_kill_tree_without_root(self, mock_children, mock_kill, mock_existing, mock_wait) -> None:
        survivor = MagicMock(pid=11)
        mock_wait.return_value = ([], [survivor])

        assert kill_process_tree(10, include_root=False) is False
        mock_kill.assert_called_once_with(11, signal.SIGKILL)

    @patch("mutineer.process.launcher.os.kill", side_effect=ProcessLookupError())
    @patch("mutineer.process.launcher.get_child_pids", return_value=[])
    @patch("mutineer.process.launcher._existing", return_value=[])
    def test_kill_tree_of_dead_process(self, mock_existing, mock_children, mock_kill) -> None:
        assert kill_process_tree(10) is True


def test_wait_quietly() -> None:
    assert wait_quietly(FakeHandle(exit_code=4), 1.0) == 4
    assert wait_quietly(FakeHandle(exit_event=threading.Event()), 0.1) is None
