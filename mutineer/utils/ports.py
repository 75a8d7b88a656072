"""Randomized port allocation so concurrent workers never share a port."""

import random
import socket
import threading
from contextlib import contextmanager
from typing import Iterator, Optional, Set

from ..core.errors import NoAvailablePortError
from ..core.log import get_logger

logger = get_logger(__name__)


class PortManager:
    """Thread-safe port allocator with randomization.

    A port handed out stays reserved until released, so two in-flight
    workers can never be given the same port.
    """

    def __init__(self, base_port: int = 8187, max_ports: int = 1000, host: str = "127.0.0.1") -> None:
        """Initialize port manager.

        Args:
            base_port: Starting port number for allocation range
            max_ports: Size of the port range
            host: Interface used to probe whether a port can be bound
        """
        self.base_port = base_port
        self.max_ports = max_ports
        self.host = host
        self._allocated: Set[int] = set()
        self._lock = threading.Lock()

    def allocate_port(self, preferred: Optional[int] = None) -> int:
        """Allocate an available port.

        Raises:
            NoAvailablePortError: If every port in range is taken
        """
        with self._lock:
            if preferred and self._is_available(preferred):
                self._allocated.add(preferred)
                logger.debug("Allocated preferred port %s", preferred)
                return preferred

            port_range = list(range(self.base_port, self.base_port + self.max_ports))
            random.shuffle(port_range)

            for port in port_range:
                if self._is_available(port):
                    self._allocated.add(port)
                    logger.debug("Allocated random port %s", port)
                    return port

            raise NoAvailablePortError(
                f"No available ports in range {self.base_port}-{self.base_port + self.max_ports}",
                details={"allocated": len(self._allocated)},
            )

    def release_port(self, port: int) -> None:
        """Release a previously allocated port."""
        with self._lock:
            self._allocated.discard(port)
            logger.debug("Released port %s", port)

    def allocated_ports(self) -> Set[int]:
        with self._lock:
            return set(self._allocated)

    @contextmanager
    def port_context(self, preferred: Optional[int] = None) -> Iterator[int]:
        """Allocate a port for the duration of the block."""
        port = self.allocate_port(preferred)
        try:
            yield port
        finally:
            self.release_port(port)

    def _is_available(self, port: int) -> bool:
        """Check if port is neither allocated nor bound by someone else."""
        if port in self._allocated:
            return False

        try:
            with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
                sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
                sock.bind((self.host, port))
                return True
        except OSError:
            return False
