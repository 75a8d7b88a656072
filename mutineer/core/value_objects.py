"""Domain primitives for test identification and batching."""

from dataclasses import dataclass, field
from typing import Iterator, Tuple

UNIT_SEPARATOR = "#"
MODULE_SEPARATOR = ":"


@dataclass(frozen=True)
class TestUnit:
    """Atomic executable test reference. Hashable for use as dictionary key."""

    __test__ = False  # Tell pytest this is not a test class

    class_name: str
    method_name: str

    def __post_init__(self) -> None:
        if not self.class_name or MODULE_SEPARATOR not in self.class_name:
            raise ValueError(
                f"TestUnit class name must look like 'module:Qualname': {self.class_name!r}"
            )
        if not self.method_name or not self.method_name.isidentifier():
            raise ValueError(f"TestUnit method name is not an identifier: {self.method_name!r}")

    @property
    def id(self) -> str:
        return f"{self.class_name}{UNIT_SEPARATOR}{self.method_name}"

    @classmethod
    def from_id(cls, unit_id: str) -> "TestUnit":
        class_name, sep, method_name = unit_id.rpartition(UNIT_SEPARATOR)
        if not sep:
            raise ValueError(f"Malformed test unit id: {unit_id!r}")
        return cls(class_name, method_name)

    def __str__(self) -> str:
        return self.id


@dataclass(frozen=True)
class TestGroup:
    """Ordered batch of test units submitted as one scheduling unit.

    Frozen: once handed to a container a group is never mutated.
    """

    __test__ = False  # Tell pytest this is not a test class

    group_id: str
    units: Tuple[TestUnit, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if not self.group_id or not self.group_id.strip():
            raise ValueError("TestGroup id cannot be empty")
        # Accept any iterable of units but store a tuple
        object.__setattr__(self, "units", tuple(self.units))

    def __len__(self) -> int:
        return len(self.units)

    def __iter__(self) -> Iterator[TestUnit]:
        return iter(self.units)

    def unit_ids(self) -> Tuple[str, ...]:
        return tuple(unit.id for unit in self.units)

    def __str__(self) -> str:
        return f"{self.group_id}[{len(self.units)} units]"
