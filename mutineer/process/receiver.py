"""Controller-side listener that drains framed results from one worker."""

import socket
import threading
import time
from typing import Callable, List, Optional

from ..core.errors import DeserializationError, ProcessError, TransportFailure
from ..core.log import get_logger, log_event
from ..core.types import CoverageResult
from ..utils.codec import decode_result, read_frame

logger = get_logger(__name__)

ResultHandler = Callable[[CoverageResult], None]


class CoverageReceiver:
    """Accepts a single worker connection and hands each result to ``handler``.

    The socket is bound and listening as soon as the receiver exists, so a
    worker spawned afterwards can always connect. Reading happens on a
    separate thread started by :meth:`start`; the handler runs on that
    thread.

    Reading stops at end of stream, once ``expected`` results have been
    delivered (the controller then closes its end), or when the stream
    breaks. A broken stream sets ``transport_error``; results delivered
    before the break stay delivered.
    """

    def __init__(
        self,
        handler: ResultHandler,
        port: int = 0,
        host: str = "127.0.0.1",
        expected: Optional[int] = None,
        poll_interval: float = 0.05,
    ) -> None:
        self._handler = handler
        self.host = host
        self.expected = expected
        self._poll_interval = poll_interval

        self._server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            self._server.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            self._server.bind((host, port))
            self._server.listen(1)
            self._server.settimeout(poll_interval)
        except OSError as e:
            self._server.close()
            raise TransportFailure(f"Cannot listen on {host}:{port}: {e}") from e
        self.port: int = self._server.getsockname()[1]

        self._thread = threading.Thread(
            target=self._run, name=f"coverage-receiver-{self.port}", daemon=True
        )
        self._lock = threading.Lock()
        self._connection: Optional[socket.socket] = None
        self._started = False
        self._connected = threading.Event()
        self._stopping = threading.Event()
        self._finished = threading.Event()

        self._received = 0
        self.transport_error: Optional[TransportFailure] = None
        self.decode_errors: List[DeserializationError] = []
        self.handler_errors: List[Exception] = []

    @property
    def received_count(self) -> int:
        with self._lock:
            return self._received

    @property
    def connected(self) -> bool:
        return self._connected.is_set()

    @property
    def finished(self) -> bool:
        return self._finished.is_set()

    def start(self) -> None:
        with self._lock:
            if self._started:
                raise ProcessError(f"Receiver on port {self.port} already started")
            if self._stopping.is_set():
                raise ProcessError(f"Receiver on port {self.port} was stopped")
            self._started = True
        self._thread.start()
        logger.debug("Receiver listening on %s:%d", self.host, self.port)

    def _run(self) -> None:
        try:
            connection = self._accept()
            if connection is not None:
                with connection:
                    self._drain(connection)
        finally:
            self._server.close()
            with self._lock:
                self._connection = None
            self._finished.set()
            log_event(
                logger,
                "receiver",
                f"Receiver on port {self.port} finished with {self.received_count} results",
                port=self.port,
                received=self.received_count,
            )

    def _accept(self) -> Optional[socket.socket]:
        while not self._stopping.is_set():
            try:
                connection, address = self._server.accept()
            except socket.timeout:
                continue
            except OSError as e:
                if not self._stopping.is_set():
                    self.transport_error = TransportFailure(f"Accept failed on port {self.port}: {e}")
                    logger.error("%s", self.transport_error)
                return None
            connection.settimeout(None)
            with self._lock:
                self._connection = connection
            self._connected.set()
            logger.debug("Worker connected from %s:%d", *address[:2])
            return connection
        return None

    def _drain(self, connection: socket.socket) -> None:
        with connection.makefile("rb") as stream:
            while not self._satisfied():
                try:
                    body = read_frame(stream)
                except TransportFailure as e:
                    if self._stopping.is_set():
                        logger.debug("Receiver stopped mid-frame on port %d", self.port)
                    else:
                        e.received = self.received_count
                        self.transport_error = e
                        logger.error(
                            "Result stream on port %d failed after %d results: %s",
                            self.port,
                            e.received,
                            e,
                        )
                    return
                if body is None:
                    return
                try:
                    result = decode_result(body)
                except DeserializationError as e:
                    self.decode_errors.append(e)
                    logger.warning("Skipping undecodable result on port %d: %s", self.port, e)
                    continue
                self._deliver(result)

        if self._satisfied():
            logger.debug("All %d expected results received, closing connection", self.expected)
            try:
                connection.shutdown(socket.SHUT_RDWR)
            except OSError:
                # Worker already closed its side
                pass

    def _satisfied(self) -> bool:
        return self.expected is not None and self.received_count >= self.expected

    def _deliver(self, result: CoverageResult) -> None:
        with self._lock:
            self._received += 1
        try:
            self._handler(result)
        except Exception as e:  # pylint: disable=broad-exception-caught
            self.handler_errors.append(e)
            logger.exception("Result handler raised for %s", result.unit_id)

    def wait_for_connection(self, timeout: Optional[float] = None) -> bool:
        """Block until a worker connected; False on timeout or if the receiver ended first."""
        deadline = None if timeout is None else time.monotonic() + timeout
        while not self._connected.is_set():
            if self._finished.is_set():
                return False
            wait = self._poll_interval
            if deadline is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return False
                wait = min(wait, remaining)
            self._connected.wait(wait)
        return True

    def wait_to_finish(self, timeout: Optional[float] = None) -> bool:
        """Block until the read loop ended and the last handler call returned."""
        with self._lock:
            started = self._started
        if not started and not self._finished.is_set():
            raise ProcessError(f"Receiver on port {self.port} was never started")
        return self._finished.wait(timeout)

    def stop(self) -> None:
        """Stop listening or reading. Results already delivered are kept."""
        self._stopping.set()
        with self._lock:
            started = self._started
            connection = self._connection
        if connection is not None:
            try:
                connection.shutdown(socket.SHUT_RDWR)
            except OSError as e:
                logger.debug("Connection on port %d already closed: %s", self.port, e)
        if not started:
            self._server.close()
            self._finished.set()
