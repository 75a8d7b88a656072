"""Lifecycle wrapper around one worker process."""

import threading
from typing import Optional, Sequence

from ..core.enums import WorkerState
from ..core.errors import ProcessError
from ..core.log import get_logger, log_process_event
from .launcher import ProcessHandle, ProcessLauncher, kill_process_tree

logger = get_logger(__name__)


class WrappingProcess:
    """Owns a spawned process from launch until it has been waited for.

    ``wait_to_die`` waits for the OS process and then for the ``_drain``
    hook, so subclasses holding other resources tied to the process can
    keep the caller blocked until those are released too.
    """

    def __init__(
        self,
        launcher: ProcessLauncher,
        entry_point: str,
        payload: str,
        python_path: Sequence[str] = (),
        kill_timeout: float = 5.0,
    ) -> None:
        self._launcher = launcher
        self.entry_point = entry_point
        self._payload = payload
        self._python_path = list(python_path)
        self._kill_timeout = kill_timeout
        self._handle: Optional[ProcessHandle] = None
        self._state = WorkerState.CREATED
        self._state_lock = threading.Lock()
        self._wait_lock = threading.Lock()
        self._exit_code: Optional[int] = None
        self._killed = False

    @property
    def state(self) -> WorkerState:
        with self._state_lock:
            return self._state

    def _set_state(self, state: WorkerState) -> None:
        with self._state_lock:
            self._state = state
        logger.debug("%s -> %s", self, state.value)

    @property
    def pid(self) -> Optional[int]:
        return self._handle.pid if self._handle is not None else None

    @property
    def exit_code(self) -> Optional[int]:
        return self._exit_code

    @property
    def killed(self) -> bool:
        return self._killed

    def start(self) -> None:
        if self.state is not WorkerState.CREATED:
            raise ProcessError(f"{self} was already started")
        self._set_state(WorkerState.LAUNCHING)
        try:
            self._handle = self._launcher.launch(self.entry_point, self._payload, self._python_path)
        except Exception:
            self._set_state(WorkerState.TERMINATED)
            self._on_launch_failed()
            raise
        self._set_state(WorkerState.RUNNING)

    def _on_launch_failed(self) -> None:
        """Hook for releasing resources acquired before the spawn."""

    def is_alive(self) -> bool:
        return self._handle is not None and self._handle.poll() is None

    def kill(self) -> None:
        """Kill the process and its descendants. Safe to call at any time."""
        handle = self._handle
        if handle is None or handle.poll() is not None:
            return
        self._killed = True
        log_process_event(logger, "kill", pid=handle.pid)
        kill_process_tree(handle.pid, timeout=self._kill_timeout, include_root=False)
        handle.kill()

    def _wait_for_exit(self) -> int:
        assert self._handle is not None
        return self._handle.wait()

    def _drain(self) -> None:
        """Second wait phase, run after the process has exited."""

    def wait_to_die(self) -> int:
        """Block until the process exited and draining finished; return its exit code.

        Abnormal exit codes are returned as they are. Calling again after
        termination returns the same code.
        """
        with self._wait_lock:
            if self._exit_code is not None:
                return self._exit_code
            if self._handle is None:
                raise ProcessError(f"{self} was never started")

            code = self._wait_for_exit()
            log_process_event(logger, "exit", pid=self._handle.pid, exit_code=code)
            self._set_state(WorkerState.DRAINING)
            try:
                self._drain()
            finally:
                self._exit_code = code
                self._set_state(WorkerState.TERMINATED)
            return code

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.entry_point}, pid={self.pid})"
