"""Finds the executable test units inside a resolved test class."""

import unittest
from typing import Iterable, List

from ..core.value_objects import TestUnit
from .test_class import TestClass

_loader = unittest.TestLoader()


def find_test_units(test_class: TestClass) -> List[TestUnit]:
    """One unit per test method of a unittest.TestCase subclass."""
    clazz = test_class.clazz
    if not issubclass(clazz, unittest.TestCase) or test_class.is_abstract:
        return []
    return [TestUnit(test_class.name, method) for method in _loader.getTestCaseNames(clazz)]


def find_all_test_units(test_classes: Iterable[TestClass]) -> List[TestUnit]:
    """Units of every class, ordered by class name then method name."""
    units: List[TestUnit] = []
    for test_class in sorted(test_classes, key=lambda tc: tc.name):
        units.extend(find_test_units(test_class))
    return units
