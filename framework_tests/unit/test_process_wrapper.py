"""Tests for the worker process lifecycle wrapper."""

import threading
from unittest.mock import patch

import pytest

from fakes import FakeHandle, FakeLauncher
from mutineer.core.enums import WorkerState
from mutineer.core.errors import ProcessError, ProcessStartupError
from mutineer.process.wrapper import WrappingProcess


class GatedDrainProcess(WrappingProcess):
    """Wrapper whose drain phase blocks until the test releases it."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.drain_started = threading.Event()
        self.release_drain = threading.Event()

    def _drain(self) -> None:
        self.drain_started.set()
        self.release_drain.wait(5)


class TestWrappingProcess:
    """Test state transitions and the two-phase wait."""

    def test_lifecycle(self, fake_launcher) -> None:
        process = WrappingProcess(fake_launcher, "mutineer.worker", "{}", ["/src"])
        assert process.state is WorkerState.CREATED
        assert process.pid is None

        process.start()
        assert process.state is WorkerState.RUNNING
        assert process.pid == 4242
        assert fake_launcher.launches == [("mutineer.worker", "{}", ["/src"])]

        assert process.wait_to_die() == 0
        assert process.state is WorkerState.TERMINATED
        assert process.exit_code == 0

    def test_wait_before_start(self, fake_launcher) -> None:
        with pytest.raises(ProcessError):
            WrappingProcess(fake_launcher, "mutineer.worker", "{}").wait_to_die()

    def test_start_twice(self, fake_launcher) -> None:
        process = WrappingProcess(fake_launcher, "mutineer.worker", "{}")
        process.start()
        with pytest.raises(ProcessError):
            process.start()

    def test_abnormal_exit_code_is_returned_not_raised(self) -> None:
        process = WrappingProcess(FakeLauncher(FakeHandle(exit_code=-11)), "mutineer.worker", "{}")
        process.start()
        assert process.wait_to_die() == -11
        assert process.wait_to_die() == -11

    def test_launch_failure_terminates(self) -> None:
        class FailingLauncher:
            def launch(self, entry_point, payload, python_path):
                raise ProcessStartupError("no such interpreter")

        process = WrappingProcess(FailingLauncher(), "mutineer.worker", "{}")
        with pytest.raises(ProcessStartupError):
            process.start()
        assert process.state is WorkerState.TERMINATED

    def test_wait_blocks_until_drain_completes(self) -> None:
        process = GatedDrainProcess(FakeLauncher(FakeHandle(exit_code=0)), "mutineer.worker", "{}")
        process.start()
        codes = []
        waiter = threading.Thread(target=lambda: codes.append(process.wait_to_die()))
        waiter.start()

        assert process.drain_started.wait(5)
        waiter.join(0.2)
        assert waiter.is_alive()
        assert process.state is WorkerState.DRAINING
        assert codes == []

        process.release_drain.set()
        waiter.join(5)
        assert codes == [0]
        assert process.state is WorkerState.TERMINATED

    def test_concurrent_waiters_share_the_result(self) -> None:
        exit_event = threading.Event()
        process = WrappingProcess(FakeLauncher(FakeHandle(exit_code=3, exit_event=exit_event)), "w", "{}")
        process.start()
        codes = []
        waiters = [threading.Thread(target=lambda: codes.append(process.wait_to_die())) for _ in range(3)]
        for waiter in waiters:
            waiter.start()
        exit_event.set()
        for waiter in waiters:
            waiter.join(5)
        assert codes == [3, 3, 3]

    def test_kill_running_process(self) -> None:
        handle = FakeHandle(exit_event=threading.Event())
        process = WrappingProcess(FakeLauncher(handle), "mutineer.worker", "{}")
        process.start()
        assert process.is_alive()

        with patch("mutineer.process.wrapper.kill_process_tree") as kill_tree:
            process.kill()

        kill_tree.assert_called_once_with(4242, timeout=5.0, include_root=False)
        assert handle.killed
        assert process.killed
        assert not process.is_alive()
        assert process.wait_to_die() == -9

    def test_kill_is_noop_after_exit(self, fake_launcher, fake_handle) -> None:
        process = WrappingProcess(fake_launcher, "mutineer.worker", "{}")
        process.kill()
        process.start()
        process.wait_to_die()
        with patch("mutineer.process.wrapper.kill_process_tree") as kill_tree:
            process.kill()
        kill_tree.assert_not_called()
        assert not fake_handle.killed
