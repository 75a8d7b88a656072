"""Test doubles for process handles and launchers."""

import threading
from typing import List, Optional


class FakeHandle:
    """Stand-in for a Popen object whose exit is controlled by the test."""

    def __init__(self, pid: int = 4242, exit_code: Optional[int] = 0, exit_event=None) -> None:
        self.pid = pid
        self._exit_code = exit_code
        self._exit_event = exit_event or threading.Event()
        if exit_event is None:
            self._exit_event.set()
        self.killed = False

    def poll(self) -> Optional[int]:
        return self._exit_code if self._exit_event.is_set() else None

    def wait(self, timeout: Optional[float] = None) -> int:
        self._exit_event.wait(timeout)
        return self._exit_code

    def kill(self) -> None:
        self.killed = True
        self._exit_code = -9
        self._exit_event.set()


class FakeLauncher:
    """Records launches and hands out a prepared handle."""

    def __init__(self, handle: Optional[FakeHandle] = None, on_launch=None) -> None:
        self.handle = handle or FakeHandle()
        self.on_launch = on_launch
        self.launches: List[tuple] = []

    def launch(self, entry_point, payload, python_path):
        self.launches.append((entry_point, payload, list(python_path)))
        if self.on_launch is not None:
            self.on_launch(entry_point, payload, python_path)
        return self.handle
