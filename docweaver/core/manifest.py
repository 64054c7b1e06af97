"""Dependency manifest reader.

Builds the dependency inventory shown in the generated documentation from
the manifests found at the repository root:

- ``requirements.txt``, ``requirements-*.txt`` and ``requirements/*.txt``
  (PEP 508 lines; pip options and include directives are skipped)
- ``pyproject.toml`` (PEP 621 ``dependencies`` / ``optional-dependencies``,
  PEP 735 ``dependency-groups`` and Poetry dependency tables)
- ``package.json`` (``dependencies``, ``devDependencies``,
  ``peerDependencies``, ``optionalDependencies``)
- ``go.mod`` (``require`` lines and blocks)

The reader only reports what is declared. It never resolves, installs or
audits anything.

Typical usage::

    from docweaver.core.manifest import ManifestReader

    for dep in ManifestReader("path/to/repo").read():
        print(dep.ecosystem, dep.group, dep)
"""

from __future__ import annotations

import re
import json
import tomli as tomllib
from pathlib import Path, PurePosixPath
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple, Union

from packaging.utils import canonicalize_name
from packaging.requirements import InvalidRequirement, Requirement

from docweaver.models import Dependency
from docweaver.exceptions import ParseError
from docweaver.utils.logger import get_logger
from docweaver.utils.filesystem import find_manifest_files, safe_read_file

logger = get_logger("manifest")

__all__ = ["ManifestReader", "parse_requirement_line", "parse_requirements_text"]

_MAIN_REQUIREMENT_STEMS = frozenset({"requirements", "base", "main", "prod", "production"})

_NODE_SECTIONS: Tuple[Tuple[str, str], ...] = (
    ("dependencies", "main"),
    ("devDependencies", "dev"),
    ("peerDependencies", "peer"),
    ("optionalDependencies", "optional"),
)

_GO_REQUIRE_LINE = re.compile(r"^[ \t]*require[ \t]+([^\s(]\S*)[ \t]+(\S+)(.*)$", re.M)
_GO_REQUIRE_BLOCK = re.compile(r"^\s*require\s*\((.*?)^\s*\)", re.M | re.S)


def parse_requirement_line(line: str) -> Optional[Requirement]:
    """Parse one ``requirements.txt`` line into a PEP 508 requirement.

    Returns ``None`` for blanks, comments and pip option lines
    (``-r``, ``-c``, ``-e``, ``--index-url``, ...).

    Raises:
        InvalidRequirement: The line is not a valid PEP 508 specifier,
            e.g. a bare VCS URL.
    """
    stripped = line.strip()
    if not stripped or stripped.startswith("#"):
        return None

    # An inline comment needs whitespace before '#', otherwise it is a URL fragment.
    stripped = re.split(r"\s+#", stripped, maxsplit=1)[0].strip()
    if stripped.startswith("-"):
        return None

    # Per-requirement pip options such as --hash follow the specifier.
    stripped = re.split(r"\s+--", stripped, maxsplit=1)[0].strip()
    return Requirement(stripped)


def _logical_lines(content: str) -> Iterator[Tuple[int, str]]:
    """Join backslash continuations, yielding (first line number, text)."""
    buffer: List[str] = []
    start = 0
    for number, raw in enumerate(content.splitlines(), start=1):
        if not buffer:
            start = number
        if raw.rstrip().endswith("\\"):
            buffer.append(raw.rstrip()[:-1])
            continue
        buffer.append(raw)
        yield start, " ".join(part.strip() for part in buffer)
        buffer = []
    if buffer:
        yield start, " ".join(part.strip() for part in buffer)


def parse_requirements_text(
    content: str,
    *,
    source: str = "",
    group: str = "main",
) -> List[Dependency]:
    """Parse requirements-file text. Invalid lines are logged and skipped."""
    dependencies: List[Dependency] = []

    for line_number, line in _logical_lines(content):
        try:
            requirement = parse_requirement_line(line)
        except InvalidRequirement as exc:
            logger.warning("Skipping %s:%d: %s", source or "<text>", line_number, exc)
            continue
        if requirement is not None:
            dependencies.append(_from_requirement(requirement, source=source, group=group))

    return dependencies


def _from_requirement(requirement: Requirement, *, source: str, group: str) -> Dependency:
    return Dependency(
        name=canonicalize_name(requirement.name),
        specifier=str(requirement.specifier),
        ecosystem="python",
        group=group,
        source=source,
        markers=str(requirement.marker) if requirement.marker else "",
    )


def _requirements_group(relative: str) -> str:
    pure = PurePosixPath(relative)
    stem = pure.stem.lower()
    if stem.startswith("requirements"):
        stem = stem[len("requirements"):].lstrip("-_.") or "requirements"
    return "main" if stem in _MAIN_REQUIREMENT_STEMS else stem


class ManifestReader:
    """Read dependency declarations from the manifests at ``root``.

    Args:
        root: Repository root directory. Only files directly under it (and
            the ``requirements/`` directory) are considered.
    """

    def __init__(self, root: Union[str, Path]) -> None:
        self.root = Path(root).resolve()

    def read(self) -> List[Dependency]:
        """Return every declared dependency, deduplicated and sorted.

        Raises:
            ParseError: A TOML or JSON manifest is malformed.
        """
        manifests = find_manifest_files(self.root)
        collected: List[Dependency] = []

        for path in manifests.get("requirements", []):
            collected.extend(self.read_requirements(path))
        for path in manifests.get("pyproject", []):
            collected.extend(self.read_pyproject(path))
        for path in manifests.get("package_json", []):
            collected.extend(self.read_package_json(path))
        for path in manifests.get("go_mod", []):
            collected.extend(self.read_go_mod(path))

        unique = _dedupe(collected)
        logger.info(
            "Found %d declared dependenc%s in %d manifest(s)",
            len(unique),
            "y" if len(unique) == 1 else "ies",
            sum(len(paths) for paths in manifests.values()),
        )
        return sorted(unique, key=lambda dep: (dep.sort_key, dep.source))

    # ------------------------------------------------------------------
    # Individual formats
    # ------------------------------------------------------------------

    def read_requirements(self, path: Path) -> List[Dependency]:
        relative = self._relative(path)
        return parse_requirements_text(
            safe_read_file(path, errors="replace"),
            source=relative,
            group=_requirements_group(relative),
        )

    def read_pyproject(self, path: Path) -> List[Dependency]:
        relative = self._relative(path)
        try:
            data = tomllib.loads(safe_read_file(path, errors="replace"))
        except tomllib.TOMLDecodeError as exc:
            raise ParseError(f"Invalid TOML: {exc}", file_path=relative) from exc

        dependencies: List[Dependency] = []

        project = _mapping(data.get("project"))
        dependencies.extend(self._pep508_entries(project.get("dependencies", []), relative, "main"))
        for extra, entries in _mapping(project.get("optional-dependencies")).items():
            dependencies.extend(self._pep508_entries(entries, relative, extra))

        for group, entries in _mapping(data.get("dependency-groups")).items():
            dependencies.extend(self._pep508_entries(entries, relative, group))

        poetry = _mapping(_mapping(data.get("tool")).get("poetry"))
        dependencies.extend(self._poetry_entries(poetry.get("dependencies"), relative, "main"))
        dependencies.extend(self._poetry_entries(poetry.get("dev-dependencies"), relative, "dev"))
        for group, table in _mapping(poetry.get("group")).items():
            dependencies.extend(
                self._poetry_entries(_mapping(table).get("dependencies"), relative, group)
            )

        return dependencies

    def read_package_json(self, path: Path) -> List[Dependency]:
        relative = self._relative(path)
        try:
            data = json.loads(safe_read_file(path, errors="replace"))
        except json.JSONDecodeError as exc:
            raise ParseError(
                f"Invalid JSON: {exc.msg}",
                file_path=relative,
                line_number=exc.lineno,
            ) from exc

        if not isinstance(data, dict):
            raise ParseError("package.json must contain a JSON object", file_path=relative)

        dependencies: List[Dependency] = []
        for section, group in _NODE_SECTIONS:
            for name, version in _mapping(data.get(section)).items():
                dependencies.append(
                    Dependency(
                        name=name,
                        specifier=str(version) if version is not None else "",
                        ecosystem="node",
                        group=group,
                        source=relative,
                    )
                )
        return dependencies

    def read_go_mod(self, path: Path) -> List[Dependency]:
        relative = self._relative(path)
        content = safe_read_file(path, errors="replace")
        dependencies: List[Dependency] = []

        lines: List[str] = [
            f"{m.group(1)} {m.group(2)}{m.group(3)}" for m in _GO_REQUIRE_LINE.finditer(content)
        ]
        for block in _GO_REQUIRE_BLOCK.finditer(content):
            lines.extend(block.group(1).splitlines())

        for line in lines:
            body, _, comment = line.partition("//")
            fields = body.split()
            if len(fields) < 2:
                continue
            dependencies.append(
                Dependency(
                    name=fields[0],
                    specifier=fields[1],
                    ecosystem="go",
                    group="indirect" if "indirect" in comment else "main",
                    source=relative,
                )
            )
        return dependencies

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _relative(self, path: Path) -> str:
        try:
            return path.resolve().relative_to(self.root).as_posix()
        except ValueError:
            return path.as_posix()

    def _pep508_entries(self, entries: Any, source: str, group: str) -> List[Dependency]:
        dependencies: List[Dependency] = []
        if not isinstance(entries, list):
            return dependencies

        for entry in entries:
            if not isinstance(entry, str):
                # PEP 735 {include-group = "..."} tables carry no requirement.
                continue
            try:
                requirement = Requirement(entry)
            except InvalidRequirement as exc:
                logger.warning("Skipping invalid requirement %r in %s: %s", entry, source, exc)
                continue
            dependencies.append(_from_requirement(requirement, source=source, group=group))
        return dependencies

    def _poetry_entries(self, table: Any, source: str, group: str) -> List[Dependency]:
        dependencies: List[Dependency] = []
        for name, spec in _mapping(table).items():
            if name.lower() == "python":
                continue
            if isinstance(spec, Mapping):
                version = spec.get("version", "")
            elif isinstance(spec, list):
                # Multiple-constraint form; show the first alternative.
                version = _mapping(spec[0]).get("version", "") if spec else ""
            else:
                version = spec
            dependencies.append(
                Dependency(
                    name=canonicalize_name(name),
                    specifier="" if version in ("*", None) else str(version),
                    ecosystem="python",
                    group=group,
                    source=source,
                )
            )
        return dependencies


def _mapping(value: Any) -> Dict[str, Any]:
    return dict(value) if isinstance(value, Mapping) else {}


def _dedupe(dependencies: Iterable[Dependency]) -> List[Dependency]:
    seen: Dict[Tuple[str, str, str, str], Dependency] = {}
    for dep in dependencies:
        key = (dep.ecosystem, dep.name, dep.group, dep.source)
        seen.setdefault(key, dep)
    return list(seen.values())
