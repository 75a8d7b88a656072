"""
Mutineer: test discovery and isolated execution for mutation testing

Discovers test classes through declarative directives, batches their test
methods into groups and runs each group in-process or in a separate worker
process that streams per-test line coverage back over a socket.
"""

__version__ = "0.1.0"

from .core.enums import ExecutionOutcome, ExitCode
from .core.types import CoverageResult, MutineerConfig, WorkerArguments
from .core.value_objects import TestGroup, TestUnit

__all__ = [
    "__version__",
    "ExecutionOutcome",
    "ExitCode",
    "CoverageResult",
    "MutineerConfig",
    "WorkerArguments",
    "TestGroup",
    "TestUnit",
]
