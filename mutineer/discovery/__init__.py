"""Declarative discovery of test classes and their units."""

from .classpath import (
    ClassPath,
    ClassLoader,
    StaticClassPath,
    DirectoryClassPath,
    PackageClassPath,
    ImportClassLoader,
)
from .directives import (
    classpath_suite,
    class_name_regex_filter,
    class_name_glob_filter,
    base_class_filter,
    exclude_base_class_filter,
)
from .finder import ClasspathSuiteFinder, discover_classes
from .test_class import TestClass, class_name_of, directives_of, is_inner_class_name
from .units import find_test_units, find_all_test_units

__all__ = [
    "ClassPath",
    "ClassLoader",
    "StaticClassPath",
    "DirectoryClassPath",
    "PackageClassPath",
    "ImportClassLoader",
    "classpath_suite",
    "class_name_regex_filter",
    "class_name_glob_filter",
    "base_class_filter",
    "exclude_base_class_filter",
    "ClasspathSuiteFinder",
    "discover_classes",
    "TestClass",
    "class_name_of",
    "directives_of",
    "is_inner_class_name",
    "find_test_units",
    "find_all_test_units",
]
