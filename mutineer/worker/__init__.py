"""Worker side: executes a group and streams results to the controller."""

from .tracer import LineCoverageTracer

__all__ = ["LineCoverageTracer"]
