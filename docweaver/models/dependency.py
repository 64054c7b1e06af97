"""
Dependency data model for docweaver.

This module defines a structured representation of a single dependency
declared in a project manifest (``requirements.txt``, ``pyproject.toml``,
``package.json`` or ``go.mod``).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple


@dataclass(frozen=True)
class Dependency:
    """A declared third-party dependency.

    Attributes:
        name: Package name. Python names are PEP 503 canonicalised.
        specifier: Version constraint as written (``>=2.0``, ``^1.4``,
            ``v0.9.1``), empty when unconstrained.
        ecosystem: ``python``, ``node`` or ``go``.
        group: ``main``, ``dev``, or the name of an optional extra/group.
        source: Manifest path relative to the repository root.
        markers: PEP 508 environment markers, Python only.
    """

    name: str
    specifier: str = ""
    ecosystem: str = "python"
    group: str = "main"
    source: str = ""
    markers: str = ""

    @property
    def sort_key(self) -> Tuple[str, bool, str, str]:
        return (self.ecosystem, self.group != "main", self.group, self.name.lower())

    def display_specifier(self) -> str:
        return self.specifier or "*"

    def to_row(self) -> Dict[str, str]:
        """Return the dependency as a flat dictionary."""
        return {
            "name": self.name,
            "specifier": self.specifier,
            "ecosystem": self.ecosystem,
            "group": self.group,
            "source": self.source,
            "markers": self.markers,
        }

    def __str__(self) -> str:
        text = f"{self.name}{self.specifier}"
        if self.markers:
            text += f"; {self.markers}"
        return text
