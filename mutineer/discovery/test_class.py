"""Resolved class references carrying their discovery directives."""

import inspect
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional

from ..core.enums import DirectiveKind
from ..core.value_objects import MODULE_SEPARATOR

DIRECTIVES_ATTRIBUTE = "__mutineer_directives__"


def class_name_of(clazz: type) -> str:
    """Canonical ``module:Qualname`` name of a class."""
    return f"{clazz.__module__}{MODULE_SEPARATOR}{clazz.__qualname__}"


def is_inner_class_name(name: str) -> bool:
    """True when the qualified-name part denotes a nested class."""
    _, _, qualname = name.partition(MODULE_SEPARATOR)
    return "." in qualname


def directives_of(clazz: type) -> Mapping[DirectiveKind, Any]:
    """Directives declared on the class itself. Subclasses do not inherit them."""
    own = clazz.__dict__.get(DIRECTIVES_ATTRIBUTE)
    return MappingProxyType(dict(own) if own else {})


@dataclass(frozen=True, eq=False)
class TestClass:
    """A loaded class plus its read-only directive map.

    Equality and hashing follow class identity.
    """

    __test__ = False  # Tell pytest this is not a test class

    clazz: type
    directives: Mapping[DirectiveKind, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.directives, MappingProxyType):
            object.__setattr__(self, "directives", MappingProxyType(dict(self.directives)))

    @classmethod
    def of(cls, clazz: type) -> "TestClass":
        return cls(clazz, directives_of(clazz))

    @property
    def name(self) -> str:
        return class_name_of(self.clazz)

    @property
    def is_abstract(self) -> bool:
        return inspect.isabstract(self.clazz)

    @property
    def is_inner_class(self) -> bool:
        return is_inner_class_name(self.name)

    @property
    def is_discovery_root(self) -> bool:
        return bool(self.directives.get(DirectiveKind.DISCOVERY_ROOT, False))

    def directive(self, kind: DirectiveKind, default: Optional[Any] = None) -> Any:
        return self.directives.get(kind, default)

    def is_subclass_of(self, base: type) -> bool:
        return issubclass(self.clazz, base)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, TestClass):
            return self.clazz is other.clazz
        return False

    def __hash__(self) -> int:
        return hash(self.clazz)

    def __repr__(self) -> str:
        return f"TestClass({self.name})"
