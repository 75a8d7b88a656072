"""Thread-safe sinks through which containers hand back results."""

import queue
import threading
from typing import Any, List, Protocol


class ResultSource(Protocol):
    """Consumer-side view of a container's results."""

    def get_available_results(self) -> List[Any]:
        """Drain and return everything currently buffered, without blocking."""

    def results_available(self) -> bool:
        """Whether a call to get_available_results would return anything."""


class QueueResultSource:
    """Unbounded queue shared between producers and one consumer.

    ``put`` may be called from any thread, including receiver threads.
    """

    def __init__(self) -> None:
        self._queue: "queue.Queue[Any]" = queue.Queue()
        self._lock = threading.Lock()
        self._total = 0

    def put(self, result: Any) -> None:
        with self._lock:
            self._total += 1
        self._queue.put(result)

    def get_available_results(self) -> List[Any]:
        results = []
        while True:
            try:
                results.append(self._queue.get_nowait())
            except queue.Empty:
                return results

    def results_available(self) -> bool:
        return not self._queue.empty()

    @property
    def total_received(self) -> int:
        with self._lock:
            return self._total
