"""Repository scanner.

Walks a repository tree and returns the source files docweaver knows how
to analyse. Vendored, generated and tooling directories are pruned while
walking, so large ``node_modules`` or virtualenv trees are never read.

Typical usage::

    from docweaver.core.scanner import RepositoryScanner

    scanner = RepositoryScanner("path/to/repo", exclude=["migrations/*"])
    for source in scanner.scan():
        print(source.path, source.language, source.line_count)
"""

from __future__ import annotations

import os
import fnmatch
from pathlib import Path, PurePosixPath
from typing import Iterable, Iterator, List, Optional, Sequence, Union

from docweaver.models import SourceFile
from docweaver.exceptions import FileOperationError
from docweaver.utils.logger import get_logger
from docweaver.utils.filesystem import is_binary_file, safe_read_file
from docweaver.constants import (
    IGNORED_DIRECTORIES,
    LANGUAGE_EXTENSIONS,
    MAX_FILE_SIZE,
    TEST_DIRECTORIES,
)

logger = get_logger("scanner")

__all__ = ["RepositoryScanner", "detect_language", "is_test_path"]


def detect_language(path: Union[str, Path]) -> Optional[str]:
    """Return the language name for ``path``, or ``None`` if unsupported.

    Example::

        >>> detect_language("pkg/module.py")
        'Python'
        >>> detect_language("README.md") is None
        True
    """
    return LANGUAGE_EXTENSIONS.get(Path(path).suffix.lower())


def is_test_path(relative_path: str) -> bool:
    """Return True if a relative POSIX path looks like test code."""
    pure = PurePosixPath(relative_path)
    if any(part in TEST_DIRECTORIES for part in pure.parts[:-1]):
        return True

    name = pure.name
    stem = pure.stem
    return (
        (name.startswith("test_") and name.endswith(".py"))
        or stem.endswith("_test")
        or ".test." in name
        or ".spec." in name
        or name == "conftest.py"
    )


class RepositoryScanner:
    """Discover analysable source files below a root directory.

    Args:
        root: Repository root directory.
        exclude: ``fnmatch`` patterns. A file is skipped when a pattern
            matches its relative POSIX path or any single path component.
        max_file_size: Files larger than this many bytes are skipped.
        include_tests: When False, test directories and test files are
            skipped.

    Raises:
        FileOperationError: ``root`` is not an existing directory.
    """

    def __init__(
        self,
        root: Union[str, Path],
        *,
        exclude: Sequence[str] = (),
        max_file_size: int = MAX_FILE_SIZE,
        include_tests: bool = True,
    ) -> None:
        self.root = Path(root).resolve()
        if not self.root.is_dir():
            raise FileOperationError(
                f"Not a directory: {root}",
                file_path=str(root),
                operation="scan",
            )

        self.exclude = tuple(exclude)
        self.max_file_size = max_file_size
        self.include_tests = include_tests

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def scan(self) -> List[SourceFile]:
        """Read every supported source file, sorted by relative path."""
        sources: List[SourceFile] = []

        for relative in sorted(self.iter_paths()):
            source = self._load(relative)
            if source is not None:
                sources.append(source)

        logger.info("Scanned %d source file(s) under %s", len(sources), self.root)
        return sources

    def iter_paths(self) -> Iterator[str]:
        """Yield relative POSIX paths of candidate files, unsorted."""
        for dirpath, dirnames, filenames in os.walk(self.root):
            current = Path(dirpath)
            rel_dir = current.relative_to(self.root).as_posix()
            rel_dir = "" if rel_dir == "." else rel_dir

            # Prune in place so os.walk never descends into ignored trees.
            dirnames[:] = [
                d
                for d in dirnames
                if not self._is_ignored_directory(d, _join(rel_dir, d))
            ]

            for filename in filenames:
                relative = _join(rel_dir, filename)
                if detect_language(filename) is None:
                    continue
                if self._is_excluded(relative):
                    logger.debug("Excluded by pattern: %s", relative)
                    continue
                if not self.include_tests and is_test_path(relative):
                    logger.debug("Skipping test file: %s", relative)
                    continue
                yield relative

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _is_ignored_directory(self, name: str, relative: str) -> bool:
        if name in IGNORED_DIRECTORIES or name.startswith("."):
            return True
        if name.endswith(".egg-info"):
            return True
        if not self.include_tests and name in TEST_DIRECTORIES:
            return True
        return self._is_excluded(relative)

    def _is_excluded(self, relative: str) -> bool:
        return _matches_any(relative, self.exclude)

    def _load(self, relative: str) -> Optional[SourceFile]:
        path = self.root / relative
        language = detect_language(relative)
        if language is None:
            logger.debug("Skipping unsupported file: %s", relative)
            return None

        try:
            size = path.stat().st_size
            if size > self.max_file_size:
                logger.warning(
                    "Skipping %s: %d bytes exceeds limit of %d",
                    relative,
                    size,
                    self.max_file_size,
                )
                return None
            if is_binary_file(path):
                logger.debug("Skipping binary file: %s", relative)
                return None
            content = safe_read_file(path, max_size=None, errors="replace")
        except (OSError, FileOperationError) as exc:
            logger.warning("Skipping unreadable file %s: %s", relative, exc)
            return None

        return SourceFile(path=relative, language=language, content=content, size=size)


def _join(directory: str, name: str) -> str:
    return f"{directory}/{name}" if directory else name


def _matches_any(relative: str, patterns: Iterable[str]) -> bool:
    parts = relative.split("/")
    for pattern in patterns:
        if fnmatch.fnmatch(relative, pattern):
            return True
        if any(fnmatch.fnmatch(part, pattern) for part in parts):
            return True
    return False
