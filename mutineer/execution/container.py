"""Execution containers: the scheduling abstraction test groups are submitted to."""

import threading
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional

from ..core.errors import ContainerClosedError, ContainerConfigurationError
from ..core.log import get_logger, log_context
from ..core.value_objects import TestGroup
from ..discovery.classpath import ClassLoader
from .result_source import QueueResultSource, ResultSource
from .unit_runner import run_test_unit

logger = get_logger(__name__)

GroupRunner = Callable[[TestGroup, QueueResultSource], bool]


def in_process_runner(loader: Optional[ClassLoader] = None) -> GroupRunner:
    """Group runner executing every unit in the calling thread.

    Failing tests are results, not runner failures, so this always
    reports success.
    """

    def run(group: TestGroup, sink: QueueResultSource) -> bool:
        for unit in group:
            sink.put(run_test_unit(unit, loader))
        return True

    return run


class Container(ABC):
    """Accepts test groups and runs them to completion."""

    @abstractmethod
    def submit(self, group: TestGroup) -> None:
        """Queue a group. Raises ContainerClosedError after shutdown."""

    @abstractmethod
    def set_max_threads(self, max_threads: int) -> None:
        """Upper bound on concurrently running groups."""

    @abstractmethod
    def shutdown_when_processing_complete(self) -> None:
        """Stop accepting groups and terminate once queued work finishes."""

    @abstractmethod
    def get_result_source(self) -> ResultSource:
        """Handle through which completed results are consumed."""

    @abstractmethod
    def await_completion(self, timeout: Optional[float] = None) -> bool:
        """Block until shutdown has drained; True iff every group succeeded."""

    @abstractmethod
    def can_parallelise(self) -> bool:
        """Whether more than one group can usefully run at once."""


class BaseContainer(Container):
    """Shared bookkeeping: closed state, in-flight count and overall success."""

    def __init__(self) -> None:
        self._result_source = QueueResultSource()
        self._condition = threading.Condition()
        self._closed = False
        self._in_flight = 0
        self._submitted = 0
        self._failed = 0

    @property
    def closed(self) -> bool:
        with self._condition:
            return self._closed

    @property
    def submitted_count(self) -> int:
        with self._condition:
            return self._submitted

    @property
    def failed_count(self) -> int:
        with self._condition:
            return self._failed

    def get_result_source(self) -> QueueResultSource:
        return self._result_source

    def _accept(self, group: TestGroup) -> None:
        """Register a group as in flight, or refuse it once closed."""
        with self._condition:
            if self._closed:
                raise ContainerClosedError(
                    f"Cannot submit {group} after shutdown was requested",
                    details={"group_id": group.group_id},
                )
            self._in_flight += 1
            self._submitted += 1

    def _finish(self, group: TestGroup, succeeded: bool) -> None:
        with self._condition:
            self._in_flight -= 1
            if not succeeded:
                self._failed += 1
            self._condition.notify_all()
        if not succeeded:
            logger.warning("Group %s did not complete successfully", group.group_id)

    def _execute(self, group: TestGroup) -> None:
        """Run a group and record its success. Errors count as failed groups."""
        succeeded = False
        try:
            with log_context(group_id=group.group_id):
                succeeded = self._run_group(group)
        except Exception:  # pylint: disable=broad-exception-caught
            logger.exception("Group %s raised while executing", group.group_id)
        finally:
            self._finish(group, succeeded)

    @abstractmethod
    def _run_group(self, group: TestGroup) -> bool:
        """Run one group; True iff it completed without unrecoverable failure."""

    def shutdown_when_processing_complete(self) -> None:
        with self._condition:
            if self._closed:
                return
            self._closed = True
            self._condition.notify_all()
        logger.debug("%s shutting down once %d groups finish", type(self).__name__, self._in_flight)

    def await_completion(self, timeout: Optional[float] = None) -> bool:
        with self._condition:
            drained = self._condition.wait_for(
                lambda: self._closed and self._in_flight == 0, timeout=timeout
            )
            if not drained:
                return False
            all_succeeded = self._failed == 0
        self._after_drain()
        return all_succeeded

    def _after_drain(self) -> None:
        """Hook for releasing resources once everything finished."""


class UnContainer(BaseContainer):
    """Runs each group synchronously inside submit."""

    def __init__(self, group_runner: Optional[GroupRunner] = None) -> None:
        super().__init__()
        self._group_runner = group_runner or in_process_runner()

    def submit(self, group: TestGroup) -> None:
        self._accept(group)
        self._execute(group)

    def _run_group(self, group: TestGroup) -> bool:
        return self._group_runner(group, self._result_source)

    def set_max_threads(self, max_threads: int) -> None:
        if max_threads != 1:
            logger.debug("UnContainer always runs one group at a time, ignoring %d", max_threads)

    def can_parallelise(self) -> bool:
        return False


class ThreadPoolContainer(BaseContainer):
    """Runs groups concurrently on a thread pool created at first submit."""

    def __init__(self, max_threads: int = 1, group_runner: Optional[GroupRunner] = None) -> None:
        super().__init__()
        self._group_runner = group_runner or in_process_runner()
        self._max_threads = 1
        self._executor: Optional[ThreadPoolExecutor] = None
        self._executor_lock = threading.Lock()
        self.set_max_threads(max_threads)

    @property
    def max_threads(self) -> int:
        return self._max_threads

    def set_max_threads(self, max_threads: int) -> None:
        if max_threads < 1:
            raise ContainerConfigurationError(f"max_threads must be at least 1, got {max_threads}")
        with self._executor_lock:
            if self._executor is not None:
                raise ContainerConfigurationError(
                    "Cannot change max_threads after execution has started",
                    details={"current": self._max_threads, "requested": max_threads},
                )
            self._max_threads = max_threads

    def _ensure_executor(self) -> ThreadPoolExecutor:
        with self._executor_lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self._max_threads,
                    thread_name_prefix=type(self).__name__,
                )
            return self._executor

    def submit(self, group: TestGroup) -> None:
        self._accept(group)
        try:
            self._ensure_executor().submit(self._execute, group)
        except RuntimeError as e:
            self._finish(group, False)
            raise ContainerClosedError(f"Executor refused {group}: {e}") from e
        logger.debug("Submitted %s", group)

    def _run_group(self, group: TestGroup) -> bool:
        return self._group_runner(group, self._result_source)

    def _after_drain(self) -> None:
        with self._executor_lock:
            executor = self._executor
        if executor is not None:
            executor.shutdown(wait=True)

    def can_parallelise(self) -> bool:
        return True
