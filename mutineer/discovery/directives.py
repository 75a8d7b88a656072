"""Decorators that attach discovery directives to a class.

A discovery root opts in with :func:`classpath_suite`; the remaining
decorators narrow what it resolves to::

    @classpath_suite(exclude_inner_classes=True)
    @class_name_glob_filter("shop.tests.*:*Test")
    @exclude_base_class_filter(SlowTest)
    class AllFastTests:
        pass
"""

from typing import Any, Callable, Dict, Tuple, TypeVar, Union

from ..core.enums import DirectiveKind
from .test_class import DIRECTIVES_ATTRIBUTE

C = TypeVar("C", bound=type)

BaseClassRef = Union[type, str]


def _declare(kind: DirectiveKind, value: Any) -> Callable[[C], C]:
    def decorate(clazz: C) -> C:
        # Own copy per class so directives never leak to subclasses
        own: Dict[DirectiveKind, Any] = dict(clazz.__dict__.get(DIRECTIVES_ATTRIBUTE) or {})
        own[kind] = value
        setattr(clazz, DIRECTIVES_ATTRIBUTE, own)
        return clazz

    return decorate


def classpath_suite(exclude_inner_classes: bool = True) -> Callable[[C], C]:
    """Mark a class as a discovery root."""

    def decorate(clazz: C) -> C:
        clazz = _declare(DirectiveKind.DISCOVERY_ROOT, True)(clazz)
        return _declare(DirectiveKind.EXCLUDE_INNER_CLASSES, bool(exclude_inner_classes))(clazz)

    return decorate


def class_name_regex_filter(*patterns: str) -> Callable[[C], C]:
    return _declare(DirectiveKind.CLASS_NAME_REGEX, tuple(patterns))


def class_name_glob_filter(*patterns: str) -> Callable[[C], C]:
    return _declare(DirectiveKind.CLASS_NAME_GLOB, tuple(patterns))


def base_class_filter(*classes: BaseClassRef) -> Callable[[C], C]:
    """Only keep candidates that subclass every listed class."""
    return _declare(DirectiveKind.BASE_CLASS_INCLUDE, tuple(classes))


def exclude_base_class_filter(*classes: BaseClassRef) -> Callable[[C], C]:
    """Drop candidates that subclass any listed class."""
    return _declare(DirectiveKind.BASE_CLASS_EXCLUDE, tuple(classes))


def declared_patterns(value: Any) -> Tuple[str, ...]:
    """Normalise a pattern directive value to a tuple of strings."""
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    return tuple(str(v) for v in value)
