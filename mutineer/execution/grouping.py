"""Strategies that batch test units into groups."""

from typing import Dict, Iterable, List

from ..core.errors import ConfigurationError
from ..core.value_objects import TestGroup, TestUnit


def group_per_class(units: Iterable[TestUnit]) -> List[TestGroup]:
    """One group per test class, in order of first appearance."""
    by_class: Dict[str, List[TestUnit]] = {}
    for unit in units:
        by_class.setdefault(unit.class_name, []).append(unit)
    return [TestGroup(class_name, tuple(members)) for class_name, members in by_class.items()]


def group_by_size(units: Iterable[TestUnit], size: int) -> List[TestGroup]:
    """Consecutive chunks of at most ``size`` units."""
    if size < 1:
        raise ConfigurationError(f"Group size must be at least 1, got {size}")
    ordered = list(units)
    return [
        TestGroup(f"group-{index}", tuple(ordered[start : start + size]))
        for index, start in enumerate(range(0, len(ordered), size))
    ]


def ungrouped(units: Iterable[TestUnit]) -> List[TestGroup]:
    """Every unit in a group of its own."""
    return [TestGroup(unit.id, (unit,)) for unit in units]
