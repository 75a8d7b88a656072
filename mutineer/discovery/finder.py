"""Resolves discovery roots into the set of test classes they select."""

from typing import Iterable, List, Optional, Set, Union

from ..core.enums import DirectiveKind
from ..core.log import get_logger, log_event
from ..filters.predicates import (
    Predicate,
    TRUE,
    and_,
    leaf,
    name_filter,
    not_,
    evaluate,
)
from .classpath import ClassLoader, ClassPath, ImportClassLoader, resolve_class
from .directives import declared_patterns
from .test_class import TestClass

logger = get_logger(__name__)


class ClasspathSuiteFinder:
    """Finds the test classes a discovery root selects from the classpath.

    Resolution is all-or-nothing: a candidate or base class that cannot be
    loaded raises ClassResolutionError and no partial result is returned.
    """

    def __init__(self, classpath: ClassPath, loader: Optional[ClassLoader] = None) -> None:
        self.classpath = classpath
        self.loader = loader or ImportClassLoader()

    def apply(self, root: TestClass) -> List[TestClass]:
        """Discover classes for a root, sorted by name. Non-roots yield nothing."""
        return sorted(self.discover(root), key=lambda tc: tc.name)

    def discover(self, root: Union[TestClass, type]) -> Set[TestClass]:
        marker = root if isinstance(root, TestClass) else TestClass.of(root)
        if not marker.is_discovery_root:
            logger.debug("%s is not a discovery root", marker.name)
            return set()

        names = self._matching_names(marker)
        selector = self.create_predicate(marker)
        candidates = [self.loader.load(name) for name in names]
        discovered = {candidate for candidate in candidates if evaluate(selector, candidate)}

        log_event(
            logger,
            "discovery",
            f"Discovered {len(discovered)} classes for {marker.name}",
            discovered=len(discovered),
            name_matches=len(names),
            root=marker.name,
        )
        return discovered

    def _matching_names(self, marker: TestClass) -> List[str]:
        filter_ = name_filter(
            declared_patterns(marker.directive(DirectiveKind.CLASS_NAME_REGEX)),
            declared_patterns(marker.directive(DirectiveKind.CLASS_NAME_GLOB)),
        )
        seen: Set[str] = set()
        matches = []
        for name in self.classpath.class_names():
            if name not in seen and evaluate(filter_, name):
                seen.add(name)
                matches.append(name)
        return matches

    def create_predicate(self, marker: TestClass) -> Predicate:
        """Standard exclusions AND base-class excludes AND base-class includes."""
        return and_(
            self.standard_excludes(marker),
            self.exclude_predicate(marker),
            self.include_predicate(marker),
        )

    def standard_excludes(self, marker: TestClass) -> Predicate:
        exclude_inner = bool(marker.directive(DirectiveKind.EXCLUDE_INNER_CLASSES, False))
        checks = [
            leaf(lambda tc: not tc.is_abstract, "not abstract"),
            leaf(
                lambda tc: tc.clazz is not marker.clazz and tc.name != marker.name,
                f"not {marker.name}",
            ),
        ]
        if exclude_inner:
            checks.append(leaf(lambda tc: not tc.is_inner_class, "not inner class"))
        return and_(*checks)

    def exclude_predicate(self, marker: TestClass) -> Predicate:
        bases = self._resolve_bases(marker.directive(DirectiveKind.BASE_CLASS_EXCLUDE))
        if bases is None:
            return TRUE
        return and_(*(not_(_is_subclass_of(base)) for base in bases))

    def include_predicate(self, marker: TestClass) -> Predicate:
        bases = self._resolve_bases(marker.directive(DirectiveKind.BASE_CLASS_INCLUDE))
        if bases is None:
            return TRUE
        return and_(*(_is_subclass_of(base) for base in bases))

    def _resolve_bases(self, refs: Optional[Iterable[Union[type, str]]]) -> Optional[List[type]]:
        if refs is None:
            return None
        if isinstance(refs, (str, type)):
            refs = (refs,)
        return [resolve_class(ref, self.loader) for ref in refs]


def _is_subclass_of(base: type) -> Predicate:
    return leaf(lambda tc: tc.is_subclass_of(base), f"subclass of {base.__qualname__}")


def discover_classes(
    root: Union[TestClass, type], classpath: ClassPath, loader: Optional[ClassLoader] = None
) -> Set[TestClass]:
    """Convenience wrapper around ClasspathSuiteFinder.discover."""
    return ClasspathSuiteFinder(classpath, loader).discover(root)
