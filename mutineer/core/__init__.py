"""Core framework components."""

from .value_objects import TestUnit, TestGroup

__all__ = ["TestUnit", "TestGroup"]
