"""Core type definitions for mutineer."""

import sys
from typing import Dict, List, Optional, Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .enums import ExecutionOutcome


class CoverageResult(BaseModel):
    """Record emitted by a worker for one executed test unit."""

    unit_id: str
    outcome: ExecutionOutcome
    duration: float = 0.0
    covered: Dict[str, List[int]] = Field(default_factory=dict)
    error_message: Optional[str] = None

    @property
    def passed(self) -> bool:
        return self.outcome in (ExecutionOutcome.PASSED, ExecutionOutcome.SKIPPED)

    def covered_line_count(self) -> int:
        return sum(len(lines) for lines in self.covered.values())


class TestResult(BaseModel):
    """Outcome of a test unit executed inside the controlling process."""

    __test__ = False  # Tell pytest this is not a test class

    unit_id: str
    outcome: ExecutionOutcome
    duration: float = 0.0
    error_message: Optional[str] = None


class WorkerArguments(BaseModel):
    """Everything a worker needs to run one group. Passed by value to the child."""

    model_config = ConfigDict(frozen=True)

    entry_point: str = "mutineer.worker"
    python_path: List[str] = Field(default_factory=list)
    host: str = "127.0.0.1"
    port: int
    units: List[str] = Field(default_factory=list)
    handshake_timeout: float = 10.0
    coverage_include: List[str] = Field(default_factory=list)
    options: Dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def validate_arguments(self) -> "WorkerArguments":
        """Reject values the worker could never act on."""
        from .errors import ConfigurationError

        if not 0 <= self.port <= 65535:
            raise ConfigurationError(f"Worker port out of range: {self.port}")
        if self.handshake_timeout <= 0:
            raise ConfigurationError("Handshake timeout must be positive")
        return self


class TimeoutConfig(BaseModel):
    """Timeouts used around worker processes."""

    # Bounded wait for the worker to connect back
    handshake_timeout: float = 10.0
    # Wall-clock budget per worker; None disables the caller-side kill
    worker_budget: Optional[float] = None
    process_kill: float = 5.0
    receiver_poll_interval: float = 0.05


class InfrastructureConfig(BaseModel):
    """Infrastructure and system-level settings."""

    host: str = "127.0.0.1"
    base_port: int = 8187
    max_ports: int = 1000
    max_threads: int = 1


class WorkerConfig(BaseModel):
    """How worker processes are launched."""

    python_executable: str = Field(default_factory=lambda: sys.executable)
    entry_point: str = "mutineer.worker"
    python_path: List[str] = Field(default_factory=list)
    coverage_include: List[str] = Field(default_factory=list)
    env: Dict[str, str] = Field(default_factory=dict)


class MutineerConfig(BaseModel):
    """Main framework configuration."""

    timeouts: TimeoutConfig = Field(default_factory=TimeoutConfig)
    infrastructure: InfrastructureConfig = Field(default_factory=InfrastructureConfig)
    worker: WorkerConfig = Field(default_factory=WorkerConfig)
    log_level: str = "INFO"

    @model_validator(mode="after")
    def validate_config(self) -> "MutineerConfig":
        """Validate configuration. Pure checks, no side effects."""
        from .errors import ConfigurationError

        if self.timeouts.handshake_timeout <= 0:  # pylint: disable=no-member
            raise ConfigurationError("Handshake timeout must be positive")
        if (
            self.timeouts.worker_budget is not None  # pylint: disable=no-member
            and self.timeouts.worker_budget <= 0  # pylint: disable=no-member
        ):
            raise ConfigurationError("Worker budget must be positive when set")
        if self.infrastructure.max_threads < 1:  # pylint: disable=no-member
            raise ConfigurationError("max_threads must be at least 1")
        if self.infrastructure.max_ports < 1:  # pylint: disable=no-member
            raise ConfigurationError("max_ports must be at least 1")
        if not 1 <= self.infrastructure.base_port <= 65535:  # pylint: disable=no-member
            raise ConfigurationError(
                f"base_port out of range: {self.infrastructure.base_port}"  # pylint: disable=no-member
            )
        return self
