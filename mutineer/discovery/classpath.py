"""Classpath enumeration and class loading collaborators.

Enumeration never imports anything: candidate names are read from source
with :mod:`ast`, so a module with import-time side effects is only
executed once its name survives the name filters and gets loaded.
"""

import ast
import importlib
import importlib.util
import os
import sys
import threading
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Protocol, Sequence, Union

from ..core.errors import ClassResolutionError
from ..core.log import get_logger
from ..core.value_objects import MODULE_SEPARATOR
from .test_class import TestClass

logger = get_logger(__name__)

SKIPPED_DIRECTORIES = frozenset({"__pycache__", ".git", ".tox", ".venv", "venv", "node_modules"})


class ClassPath(Protocol):
    """Source of candidate class names."""

    def class_names(self) -> Iterable[str]:
        """Lazily yield every reachable ``module:Qualname``."""


class ClassLoader(Protocol):
    """Turns a class name into a loaded TestClass."""

    def load(self, name: str) -> TestClass:
        """Load a class or raise ClassResolutionError."""


class StaticClassPath:
    """Precomputed manifest of class names."""

    def __init__(self, names: Iterable[str]) -> None:
        self._names = tuple(names)

    def class_names(self) -> Iterator[str]:
        return iter(self._names)


def _nested_class_names(body: Sequence[ast.stmt], prefix: str) -> Iterator[str]:
    for node in body:
        if isinstance(node, ast.ClassDef):
            qualname = f"{prefix}.{node.name}" if prefix else node.name
            yield qualname
            yield from _nested_class_names(node.body, qualname)


def _module_name(root: Path, source: Path) -> Optional[str]:
    parts = list(source.relative_to(root).with_suffix("").parts)
    if parts and parts[-1] == "__init__":
        parts.pop()
    if not parts or not all(part.isidentifier() for part in parts):
        return None
    return ".".join(parts)


class DirectoryClassPath:
    """Scans source directories, each treated as an import root."""

    def __init__(self, roots: Sequence[Union[str, Path]]) -> None:
        self.roots = [Path(root).resolve() for root in roots]

    def class_names(self) -> Iterator[str]:
        for root in self.roots:
            if not root.is_dir():
                logger.warning("Classpath root %s is not a directory, skipping", root)
                continue
            yield from self._scan_root(root)

    def _scan_root(self, root: Path, start: Optional[Path] = None) -> Iterator[str]:
        for dirpath, dirnames, filenames in os.walk(start or root):
            dirnames[:] = sorted(d for d in dirnames if d not in SKIPPED_DIRECTORIES)
            for filename in sorted(filenames):
                if not filename.endswith(".py"):
                    continue
                source = Path(dirpath) / filename
                module = _module_name(root, source)
                if module is None:
                    continue
                yield from self._scan_module(source, module)

    def _scan_module(self, source: Path, module: str) -> Iterator[str]:
        try:
            tree = ast.parse(source.read_text(encoding="utf-8"), filename=str(source))
        except (OSError, SyntaxError, UnicodeDecodeError, ValueError) as e:
            logger.warning("Cannot read classes from %s: %s", source, e)
            return
        for qualname in _nested_class_names(tree.body, ""):
            yield f"{module}{MODULE_SEPARATOR}{qualname}"


class PackageClassPath(DirectoryClassPath):
    """Scans packages by name.

    Only the package location is looked up; parent packages may be
    imported by the lookup, the scanned modules are not.
    """

    def __init__(self, packages: Sequence[str]) -> None:
        self.packages = list(packages)
        super().__init__([])

    def class_names(self) -> Iterator[str]:
        for package in self.packages:
            try:
                spec = importlib.util.find_spec(package)
            except (ImportError, ValueError) as e:
                logger.warning("Cannot locate package %s, skipping: %s", package, e)
                continue
            if spec is None or not spec.submodule_search_locations:
                logger.warning("%s is not a package on sys.path, skipping", package)
                continue
            depth = package.count(".") + 1
            for location in spec.submodule_search_locations:
                # Walk back up to the import root so module names come out fully qualified
                root = Path(location)
                for _ in range(depth):
                    root = root.parent
                yield from self._scan_root(root, Path(location))


class ImportClassLoader:
    """Loads ``module:Qualname`` names through the import system."""

    _path_lock = threading.Lock()

    def __init__(self, search_path: Sequence[Union[str, Path]] = ()) -> None:
        self.search_path: List[str] = [str(Path(p).resolve()) for p in search_path]

    def _ensure_search_path(self) -> None:
        with self._path_lock:
            for entry in reversed(self.search_path):
                if entry not in sys.path:
                    sys.path.insert(0, entry)

    def load(self, name: str) -> TestClass:
        return TestClass.of(self.load_class(name))

    def load_class(self, name: str) -> type:
        module_name, sep, qualname = name.partition(MODULE_SEPARATOR)
        if not sep or not module_name or not qualname:
            raise ClassResolutionError(f"Malformed class name: {name!r}", class_name=name)

        self._ensure_search_path()
        try:
            target: object = importlib.import_module(module_name)
            for attribute in qualname.split("."):
                target = getattr(target, attribute)
        except Exception as e:  # pylint: disable=broad-exception-caught
            raise ClassResolutionError(
                f"Cannot load class {name}: {e}",
                class_name=name,
                details={"error_type": type(e).__name__},
            ) from e

        if not isinstance(target, type):
            raise ClassResolutionError(f"{name} is not a class", class_name=name)
        return target


def resolve_class(ref: Union[type, str], loader: ClassLoader) -> type:
    """Accept either a class or a class name and return the class."""
    if isinstance(ref, type):
        return ref
    if isinstance(ref, str):
        if isinstance(loader, ImportClassLoader):
            return loader.load_class(ref)
        return loader.load(ref).clazz
    raise ClassResolutionError(f"Not a class reference: {ref!r}", class_name=repr(ref))
