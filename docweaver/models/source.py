"""
Source and symbol data models for docweaver.

A :class:`SourceFile` is what the scanner reads from disk; a
:class:`ModuleInfo` is what the analyzer extracts from it. Both are plain
dataclasses so they can be serialised with :func:`dataclasses.asdict`.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class SourceFile:
    """A text source file discovered in the repository.

    Attributes:
        path: POSIX path relative to the repository root.
        language: Language name as detected from the extension.
        content: Decoded file content.
        size: Size on disk in bytes.
    """

    path: str
    language: str
    content: str
    size: int = 0

    @property
    def digest(self) -> str:
        """SHA-256 hex digest of the content, used as a cache key part."""
        return hashlib.sha256(self.content.encode("utf-8")).hexdigest()

    @property
    def line_count(self) -> int:
        return len(self.content.splitlines())


@dataclass
class Symbol:
    """A function, method, or other named callable.

    Attributes:
        name: Symbol name.
        kind: ``function``, ``method`` or ``class``.
        signature: Rendered parameter list, e.g. ``(self, path: str = ".")``.
        docstring: Docstring or leading comment block, if any.
        line: 1-based definition line.
        is_async: Whether the callable is a coroutine function.
    """

    name: str
    kind: str = "function"
    signature: str = "()"
    docstring: Optional[str] = None
    line: int = 0
    is_async: bool = False

    @property
    def is_private(self) -> bool:
        return self.name.startswith("_") and not self.name.startswith("__")

    def display_signature(self) -> str:
        prefix = "async " if self.is_async else ""
        return f"{prefix}{self.name}{self.signature}"


@dataclass
class ClassInfo:
    """A class, struct, interface, trait, or similar type declaration."""

    name: str
    bases: List[str] = field(default_factory=list)
    docstring: Optional[str] = None
    methods: List[Symbol] = field(default_factory=list)
    line: int = 0
    kind: str = "class"

    def public_methods(self) -> List[Symbol]:
        return [m for m in self.methods if not m.name.startswith("_") or m.name == "__init__"]


@dataclass
class ModuleInfo:
    """Structural summary of one source file.

    Attributes:
        name: Module name (dotted for Python, path-like otherwise).
        path: POSIX path relative to the repository root.
        language: Language name.
        docstring: Module docstring or leading comment block.
        imports: Imported module names as written (relative Python imports
            already resolved to absolute names).
        classes: Top-level type declarations.
        functions: Top-level functions.
        constants: Module-level constant names.
        line_count: Number of lines in the file.
        digest: Content digest of the analysed source.
        errors: Analysis problems, e.g. syntax errors.
    """

    name: str
    path: str
    language: str
    docstring: Optional[str] = None
    imports: List[str] = field(default_factory=list)
    classes: List[ClassInfo] = field(default_factory=list)
    functions: List[Symbol] = field(default_factory=list)
    constants: List[str] = field(default_factory=list)
    line_count: int = 0
    digest: str = ""
    errors: List[str] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def symbol_count(self) -> int:
        return len(self.classes) + len(self.functions)

    def outline(self) -> List[str]:
        """Return a flat, human-readable list of declared symbols."""
        lines: List[str] = []
        for cls in self.classes:
            bases = f"({', '.join(cls.bases)})" if cls.bases else ""
            lines.append(f"{cls.kind} {cls.name}{bases}")
            for method in cls.methods:
                lines.append(f"    {method.display_signature()}")
        for func in self.functions:
            lines.append(func.display_signature())
        return lines

    def to_row(self) -> Dict[str, Any]:
        """Flatten the module into a table/JSON friendly row."""
        return {
            "path": self.path,
            "module": self.name,
            "language": self.language,
            "lines": self.line_count,
            "classes": len(self.classes),
            "functions": len(self.functions),
            "imports": len(self.imports),
            "errors": len(self.errors),
        }
