"""Worker process paired with the receiver that collects its results."""

import time
from typing import Optional

from ..core.enums import ExitCode
from ..core.errors import WorkerHandshakeTimeout
from ..core.log import get_logger, log_process_event
from ..core.types import WorkerArguments
from .launcher import ProcessLauncher, wait_quietly
from .receiver import CoverageReceiver, ResultHandler
from .wrapper import WrappingProcess

logger = get_logger(__name__)

# A worker may connect and exit before the accept loop has picked the
# connection off the backlog
HANDSHAKE_GRACE = 1.0


class CoverageProcess(WrappingProcess):
    """Runs one group in a worker process and streams its results to ``handler``.

    The receiver is listening before the worker is spawned. ``wait_to_die``
    returns only once the worker has exited and every result it sent has
    been handed to the handler.
    """

    def __init__(
        self,
        launcher: ProcessLauncher,
        arguments: WorkerArguments,
        handler: ResultHandler,
        kill_timeout: float = 5.0,
        poll_interval: float = 0.05,
    ) -> None:
        self.receiver = CoverageReceiver(
            handler,
            port=arguments.port,
            host=arguments.host,
            expected=len(arguments.units),
            poll_interval=poll_interval,
        )
        # Port 0 asks the OS for one; the worker must be told the real port
        self.arguments = arguments.model_copy(update={"port": self.receiver.port})
        super().__init__(
            launcher,
            self.arguments.entry_point,
            self.arguments.model_dump_json(),
            python_path=self.arguments.python_path,
            kill_timeout=kill_timeout,
        )
        self.handshake_timeout = arguments.handshake_timeout
        self.handshake_error: Optional[WorkerHandshakeTimeout] = None
        self._poll_interval = poll_interval

    @property
    def port(self) -> int:
        return self.receiver.port

    def start(self) -> None:
        self.receiver.start()
        super().start()

    def _on_launch_failed(self) -> None:
        self.receiver.stop()

    def _wait_for_exit(self) -> int:
        code = self._await_handshake()
        if code is not None:
            return code
        return super()._wait_for_exit()

    def _await_handshake(self) -> Optional[int]:
        """None once the worker connected, otherwise the exit code to report."""
        assert self._handle is not None
        deadline = time.monotonic() + self.handshake_timeout
        while not self.receiver.wait_for_connection(self._poll_interval):
            code = self._handle.poll()
            if code is not None:
                if self.receiver.wait_for_connection(HANDSHAKE_GRACE):
                    return None
                if code != 0:
                    log_process_event(
                        logger, "crashed_before_handshake", pid=self.pid, exit_code=code
                    )
                    return code
                break
            if time.monotonic() >= deadline:
                break
            if self.receiver.finished:
                # Accept loop is gone, nothing can connect any more
                break
        else:
            return None

        self.handshake_error = WorkerHandshakeTimeout(
            f"Worker {self.pid} did not connect to port {self.port} "
            f"within {self.handshake_timeout}s",
            timeout=self.handshake_timeout,
            details={"port": self.port, "pid": self.pid},
        )
        logger.error("%s", self.handshake_error)
        self.kill()
        if wait_quietly(self._handle, self._kill_timeout) is None:
            logger.warning("Worker %s still running after handshake kill", self.pid)
        return int(ExitCode.HANDSHAKE_TIMEOUT)

    def _drain(self) -> None:
        if not self.receiver.connected:
            self.receiver.stop()
        self.receiver.wait_to_finish()

    @property
    def received_count(self) -> int:
        return self.receiver.received_count
