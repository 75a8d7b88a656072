"""Predicate combinators and class-name filtering."""

from .predicates import (
    Predicate,
    Const,
    Leaf,
    Not,
    And,
    Or,
    TRUE,
    FALSE,
    evaluate,
    leaf,
    and_,
    or_,
    not_,
    glob_to_regex,
    regex_filter,
    glob_filter,
    name_filter,
)

__all__ = [
    "Predicate",
    "Const",
    "Leaf",
    "Not",
    "And",
    "Or",
    "TRUE",
    "FALSE",
    "evaluate",
    "leaf",
    "and_",
    "or_",
    "not_",
    "glob_to_regex",
    "regex_filter",
    "glob_filter",
    "name_filter",
]
