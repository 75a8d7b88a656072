"""Worker process management: launching, wrapping and result collection."""

from .coverage_process import CoverageProcess
from .launcher import ProcessHandle, ProcessLauncher, SubprocessLauncher, kill_process_tree
from .receiver import CoverageReceiver
from .wrapper import WrappingProcess

__all__ = [
    "CoverageProcess",
    "CoverageReceiver",
    "ProcessHandle",
    "ProcessLauncher",
    "SubprocessLauncher",
    "WrappingProcess",
    "kill_process_tree",
]
