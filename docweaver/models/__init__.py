"""
Unified data model exports for docweaver.

Example:
    >>> from docweaver.models import ModuleInfo, Dependency
"""

from __future__ import annotations

from docweaver.models.dependency import Dependency
from docweaver.models.source import ClassInfo, ModuleInfo, SourceFile, Symbol

__all__ = [
    "ClassInfo",
    "Dependency",
    "ModuleInfo",
    "SourceFile",
    "Symbol",
]
