"""Predicate combinators and class-name filters.

Predicates are a small closed family of immutable nodes (``Leaf``,
``Const``, ``Not``, ``And``, ``Or``) interpreted by :func:`evaluate`.
Leaves wrap plain functions; a leaf that raises counts as "no match" so a
bad pattern or a misbehaving check can never escape evaluation.
"""

import re
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Pattern, Tuple, Union

from ..core.log import get_logger

logger = get_logger(__name__)


class _Combinable:
    """Operator sugar shared by all predicate nodes."""

    def __call__(self, candidate: Any) -> bool:
        return evaluate(self, candidate)  # type: ignore[arg-type]

    def __and__(self, other: "Predicate") -> "Predicate":
        return and_(self, other)  # type: ignore[arg-type]

    def __or__(self, other: "Predicate") -> "Predicate":
        return or_(self, other)  # type: ignore[arg-type]

    def __invert__(self) -> "Predicate":
        return not_(self)  # type: ignore[arg-type]


@dataclass(frozen=True)
class Const(_Combinable):
    value: bool

    def __repr__(self) -> str:
        return "TRUE" if self.value else "FALSE"


@dataclass(frozen=True)
class Leaf(_Combinable):
    fn: Callable[[Any], bool]
    label: str = ""

    def __repr__(self) -> str:
        return f"Leaf({self.label or getattr(self.fn, '__name__', 'fn')})"


@dataclass(frozen=True)
class Not(_Combinable):
    operand: "Predicate"


@dataclass(frozen=True)
class And(_Combinable):
    operands: Tuple["Predicate", ...]


@dataclass(frozen=True)
class Or(_Combinable):
    operands: Tuple["Predicate", ...]


Predicate = Union[Const, Leaf, Not, And, Or]

TRUE = Const(True)
FALSE = Const(False)


def evaluate(predicate: Predicate, candidate: Any) -> bool:
    """Evaluate a predicate tree against a candidate."""
    if isinstance(predicate, Const):
        return predicate.value
    if isinstance(predicate, Leaf):
        try:
            return bool(predicate.fn(candidate))
        except Exception as e:  # pylint: disable=broad-exception-caught
            logger.warning("Predicate %r failed on %r, treating as no match: %s",
                           predicate, candidate, e)
            return False
    if isinstance(predicate, Not):
        return not evaluate(predicate.operand, candidate)
    if isinstance(predicate, And):
        return all(evaluate(p, candidate) for p in predicate.operands)
    if isinstance(predicate, Or):
        return any(evaluate(p, candidate) for p in predicate.operands)
    raise TypeError(f"Not a predicate: {predicate!r}")


def leaf(fn: Callable[[Any], bool], label: str = "") -> Leaf:
    return Leaf(fn, label)


def and_(*predicates: Predicate) -> Predicate:
    """Conjunction, flattened and without TRUE operands. No operands is TRUE."""
    operands = _flatten(And, predicates, TRUE)
    if not operands:
        return TRUE
    if len(operands) == 1:
        return operands[0]
    return And(operands)


def or_(*predicates: Predicate) -> Predicate:
    """Disjunction, flattened and without FALSE operands. No operands is FALSE."""
    operands = _flatten(Or, predicates, FALSE)
    if not operands:
        return FALSE
    if len(operands) == 1:
        return operands[0]
    return Or(operands)


def not_(predicate: Predicate) -> Predicate:
    if isinstance(predicate, Const):
        return Const(not predicate.value)
    if isinstance(predicate, Not):
        return predicate.operand
    return Not(predicate)


def _flatten(
    kind: type, predicates: Iterable[Predicate], identity: Const
) -> Tuple[Predicate, ...]:
    flat = []
    for predicate in predicates:
        if predicate == identity:
            continue
        if isinstance(predicate, kind):
            flat.extend(predicate.operands)  # type: ignore[attr-defined]
        else:
            flat.append(predicate)
    return tuple(flat)


def glob_to_regex(glob: str) -> str:
    """Translate a class-name glob into an anchored regular expression.

    ``*`` matches any sequence, ``?`` any single character; every other
    character, including regex metacharacters, matches itself.
    """
    out = ["^"]
    for char in glob:
        if char == "*":
            out.append(".*")
        elif char == "?":
            out.append(".")
        else:
            out.append(re.escape(char))
    out.append("$")
    return "".join(out)


def _full_match(pattern: Pattern[str]) -> Callable[[str], bool]:
    def matches(candidate: str) -> bool:
        return pattern.fullmatch(candidate) is not None

    return matches


def _compile_leaf(regex: str, label: str) -> Predicate:
    try:
        compiled = re.compile(regex, re.DOTALL)
    except re.error as e:
        logger.warning("Ignoring malformed class name filter %r: %s", label, e)
        return FALSE
    return Leaf(_full_match(compiled), label)


def regex_filter(patterns: Iterable[str]) -> Predicate:
    """Match candidates that fully match any of the regular expressions."""
    return or_(*(_compile_leaf(p, p) for p in patterns))


def glob_filter(patterns: Iterable[str]) -> Predicate:
    """Match candidates that match any of the globs."""
    return or_(*(_compile_leaf(glob_to_regex(p), p) for p in patterns))


def name_filter(regexes: Iterable[str] = (), globs: Iterable[str] = ()) -> Predicate:
    """Union of the regex and glob filter families."""
    return or_(regex_filter(regexes), glob_filter(globs))
