"""Container running every group in its own worker process."""

import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, List, Optional

from ..core.config import get_config
from ..core.enums import ExitCode
from ..core.errors import NoAvailablePortError, ProcessStartupError, TransportFailure
from ..core.types import MutineerConfig, WorkerArguments
from ..core.log import get_logger, log_event
from ..core.value_objects import TestGroup
from ..process.coverage_process import CoverageProcess
from ..process.launcher import ProcessLauncher, SubprocessLauncher
from ..utils.ports import PortManager
from .container import ThreadPoolContainer

logger = get_logger(__name__)


@dataclass(frozen=True)
class GroupOutcome:
    """How one worker-backed group ended."""

    group_id: str
    exit_code: int
    received: int
    expected: int
    timed_out: bool = False
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return (
            self.exit_code == ExitCode.OK
            and self.error is None
            and not self.timed_out
            and self.received == self.expected
        )


class WorkerProcessContainer(ThreadPoolContainer):
    """Launches one CoverageProcess per group from a thread pool.

    Results are handed straight from the receiver threads to the shared
    result source. Ports are exclusive to one in-flight worker; without a
    port manager the OS picks a free port for each receiver.
    """

    def __init__(
        self,
        config: Optional[MutineerConfig] = None,
        port_manager: Optional[PortManager] = None,
        launcher: Optional[ProcessLauncher] = None,
        max_threads: Optional[int] = None,
    ) -> None:
        self.config = config or get_config()
        super().__init__(
            self.config.infrastructure.max_threads if max_threads is None else max_threads
        )
        self._port_manager = port_manager
        self._launcher = launcher or SubprocessLauncher(
            python_executable=self.config.worker.python_executable,
            env=self.config.worker.env,
        )
        self._outcomes: List[GroupOutcome] = []
        self._outcomes_lock = threading.Lock()

    def group_outcomes(self) -> List[GroupOutcome]:
        """One outcome per finished submission, in completion order."""
        with self._outcomes_lock:
            return list(self._outcomes)

    def group_outcome(self, group_id: str) -> Optional[GroupOutcome]:
        """Most recent outcome recorded for ``group_id``."""
        with self._outcomes_lock:
            for outcome in reversed(self._outcomes):
                if outcome.group_id == group_id:
                    return outcome
        return None

    def _record(self, outcome: GroupOutcome) -> bool:
        with self._outcomes_lock:
            self._outcomes.append(outcome)
        log_event(
            logger,
            "group",
            f"Group {outcome.group_id} exited with {outcome.exit_code}, "
            f"{outcome.received}/{outcome.expected} results",
            group_id=outcome.group_id,
            exit_code=outcome.exit_code,
        )
        return outcome.succeeded

    @contextmanager
    def _port(self) -> Iterator[int]:
        if self._port_manager is None:
            yield 0
            return
        with self._port_manager.port_context() as port:
            yield port

    def _arguments(self, group: TestGroup, port: int) -> WorkerArguments:
        worker = self.config.worker
        return WorkerArguments(
            entry_point=worker.entry_point,
            python_path=worker.python_path,
            host=self.config.infrastructure.host,
            port=port,
            units=list(group.unit_ids()),
            handshake_timeout=self.config.timeouts.handshake_timeout,
            coverage_include=worker.coverage_include,
            options={"log_level": self.config.log_level},
        )

    def _run_group(self, group: TestGroup) -> bool:
        if not group.units:
            logger.debug("Group %s is empty, nothing to launch", group.group_id)
            return self._record(GroupOutcome(group.group_id, ExitCode.OK, 0, 0))

        try:
            with self._port() as port:
                return self._run_worker(group, port)
        except NoAvailablePortError as e:
            return self._record(self._failure_outcome(group, e))

    def _failure_outcome(self, group: TestGroup, error: Exception) -> GroupOutcome:
        return GroupOutcome(group.group_id, ExitCode.UNKNOWN_ERROR, 0, len(group), error=str(error))

    def _run_worker(self, group: TestGroup, port: int) -> bool:
        try:
            process = CoverageProcess(
                self._launcher,
                self._arguments(group, port),
                self._result_source.put,
                kill_timeout=self.config.timeouts.process_kill,
                poll_interval=self.config.timeouts.receiver_poll_interval,
            )
        except TransportFailure as e:
            return self._record(self._failure_outcome(group, e))
        try:
            process.start()
        except ProcessStartupError as e:
            return self._record(self._failure_outcome(group, e))
        budget = self._start_budget(process)
        try:
            exit_code = process.wait_to_die()
        finally:
            if budget is not None:
                budget.cancel()

        receiver = process.receiver
        error = None
        if process.handshake_error is not None:
            error = str(process.handshake_error)
        elif receiver.transport_error is not None:
            error = str(receiver.transport_error)
        elif receiver.handler_errors:
            error = f"{len(receiver.handler_errors)} result handler errors"
        return self._record(
            GroupOutcome(
                group_id=group.group_id,
                exit_code=exit_code,
                received=receiver.received_count,
                expected=len(group),
                timed_out=process.killed and process.handshake_error is None,
                error=error,
            )
        )

    def _start_budget(self, process: CoverageProcess) -> Optional[threading.Timer]:
        budget = self.config.timeouts.worker_budget
        if budget is None:
            return None

        def expire() -> None:
            if process.is_alive():
                logger.warning("Worker %s exceeded its %ss budget, killing", process.pid, budget)
                process.kill()

        timer = threading.Timer(budget, expire)
        timer.daemon = True
        timer.start()
        return timer
