"""Tests for the CoverageProcess handshake using fake process handles."""

import json
import socket
import threading
import time
from unittest.mock import patch

import pytest

from fakes import FakeHandle, FakeLauncher
from mutineer.core.enums import ExecutionOutcome, ExitCode
from mutineer.core.errors import WorkerHandshakeTimeout
from mutineer.core.types import CoverageResult, WorkerArguments
from mutineer.process.coverage_process import CoverageProcess
from mutineer.utils.codec import encode_frame

POLL = 0.02
UNIT = "m:K#test_a"


def _late_worker(handle_exit: threading.Event, delay: float):
    """Launcher hook: connect after ``delay``, send one result, then exit."""

    def launch(entry_point, payload, python_path):
        port = json.loads(payload)["port"]

        def run():
            time.sleep(delay)
            with socket.create_connection(("127.0.0.1", port), timeout=5) as client:
                client.sendall(encode_frame(CoverageResult(unit_id=UNIT, outcome=ExecutionOutcome.PASSED)))
            handle_exit.set()

        threading.Thread(target=run, daemon=True).start()

    return launch


@pytest.fixture
def no_tree_kill():
    with patch("mutineer.process.wrapper.kill_process_tree") as kill_tree:
        yield kill_tree


class TestCoverageProcessHandshake:
    """Test the bounded wait for the worker to connect."""

    def test_connect_after_several_polls(self, no_tree_kill) -> None:
        exited = threading.Event()
        handle = FakeHandle(exit_code=3, exit_event=exited)
        results = []
        process = CoverageProcess(
            FakeLauncher(handle, on_launch=_late_worker(exited, delay=POLL * 10)),
            WorkerArguments(port=0, units=[UNIT], handshake_timeout=10.0),
            results.append,
            poll_interval=POLL,
        )
        process.start()

        assert process.wait_to_die() == 3
        assert process.handshake_error is None
        assert process.killed is False
        assert handle.killed is False
        assert [r.unit_id for r in results] == [UNIT]
        no_tree_kill.assert_not_called()

    def test_bound_elapses_while_worker_runs(self, no_tree_kill) -> None:
        handle = FakeHandle(exit_event=threading.Event())
        process = CoverageProcess(
            FakeLauncher(handle),
            WorkerArguments(port=0, units=[UNIT], handshake_timeout=0.3),
            lambda result: None,
            poll_interval=POLL,
        )
        process.start()

        assert process.wait_to_die() == ExitCode.HANDSHAKE_TIMEOUT
        assert isinstance(process.handshake_error, WorkerHandshakeTimeout)
        assert process.killed is True
        assert handle.killed is True
        assert process.received_count == 0
        no_tree_kill.assert_called_once()

    def test_receiver_ending_early_does_not_wait_for_bound(self, no_tree_kill) -> None:
        handle = FakeHandle(exit_event=threading.Event())
        holder = {}

        def stop_receiver(entry_point, payload, python_path):
            holder["process"].receiver.stop()

        process = CoverageProcess(
            FakeLauncher(handle, on_launch=stop_receiver),
            WorkerArguments(port=0, units=[UNIT], handshake_timeout=30.0),
            lambda result: None,
            poll_interval=POLL,
        )
        holder["process"] = process
        process.start()

        started = time.monotonic()
        assert process.wait_to_die() == ExitCode.HANDSHAKE_TIMEOUT
        assert time.monotonic() - started < 10
        assert process.handshake_error is not None
        assert handle.killed is True
