"""Execution containers, grouping strategies and result sinks."""

from .container import (
    Container,
    BaseContainer,
    UnContainer,
    ThreadPoolContainer,
    GroupRunner,
    in_process_runner,
)
from .grouping import group_per_class, group_by_size, ungrouped
from .result_source import ResultSource, QueueResultSource
from .unit_runner import run_test_unit, execute_unit
from .worker_container import WorkerProcessContainer, GroupOutcome

__all__ = [
    "Container",
    "BaseContainer",
    "UnContainer",
    "ThreadPoolContainer",
    "GroupRunner",
    "in_process_runner",
    "group_per_class",
    "group_by_size",
    "ungrouped",
    "ResultSource",
    "QueueResultSource",
    "run_test_unit",
    "execute_unit",
    "WorkerProcessContainer",
    "GroupOutcome",
]
