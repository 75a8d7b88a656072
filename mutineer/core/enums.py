"""Core enumerations for mutineer.

Kept free of dependencies on other core modules.
"""

from enum import Enum, IntEnum


class ExecutionOutcome(Enum):
    """Outcome of a single test unit."""

    PASSED = "passed"
    FAILED = "failed"
    ERROR = "error"
    SKIPPED = "skipped"


class ExitCode(IntEnum):
    """Exit codes produced by workers and by the process wrapper.

    Codes not listed here are passed through untouched; negative values
    are signals reported by the OS.
    """

    OK = 0
    UNKNOWN_ERROR = 13
    HANDSHAKE_TIMEOUT = 15


class WorkerState(Enum):
    """Lifecycle of a wrapped worker process."""

    CREATED = "created"
    LAUNCHING = "launching"
    RUNNING = "running"
    DRAINING = "draining"
    TERMINATED = "terminated"


class DirectiveKind(Enum):
    """Declarative discovery metadata attached to a class."""

    DISCOVERY_ROOT = "discovery_root"
    EXCLUDE_INNER_CLASSES = "exclude_inner_classes"
    CLASS_NAME_REGEX = "class_name_regex"
    CLASS_NAME_GLOB = "class_name_glob"
    BASE_CLASS_INCLUDE = "base_class_include"
    BASE_CLASS_EXCLUDE = "base_class_exclude"
