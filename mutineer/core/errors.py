"""Error hierarchy for the mutineer execution core."""

from typing import Optional, Dict, Any


class MutineerError(Exception):
    """Base exception for all mutineer errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


# Configuration Errors
class ConfigurationError(MutineerError):
    """Error in framework configuration."""


# Discovery Errors
class DiscoveryError(MutineerError):
    """Base class for test discovery errors."""


class ClassResolutionError(DiscoveryError):
    """A class name could not be loaded during discovery."""

    def __init__(self, message: str, class_name: str,
                 details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, details)
        self.class_name = class_name


# Container Errors
class ContainerError(MutineerError):
    """Base class for execution container errors."""


class ContainerClosedError(ContainerError):
    """A group was submitted after shutdown was requested."""


class ContainerConfigurationError(ContainerError):
    """Container settings cannot be applied in the current state."""


# Process Errors
class ProcessError(MutineerError):
    """Base class for worker process errors."""


class ProcessStartupError(ProcessError):
    """Error while spawning a worker process."""


class WorkerHandshakeTimeout(ProcessError):
    """The worker never connected back within the handshake bound."""

    def __init__(self, message: str, timeout: float,
                 details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, details)
        self.timeout = timeout


# Network Errors
class NetworkError(MutineerError):
    """Network-related error."""


class NoAvailablePortError(NetworkError):
    """Port range exhausted."""


class TransportFailure(NetworkError):
    """Result stream became unreadable mid-drain."""

    def __init__(self, message: str, received: int = 0,
                 details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, details)
        self.received = received


# Codec Errors
class CodecError(MutineerError):
    """Data encoding/decoding error."""


class SerializationError(CodecError):
    """Data serialization error."""


class DeserializationError(CodecError):
    """Data deserialization error."""
