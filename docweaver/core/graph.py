"""Internal module dependency graph.

Nodes are the analysed modules; an edge ``a -> b`` means module ``a``
imports something that resolves to module ``b`` inside the repository.
Imports that do not resolve to a repository module are kept per module as
*external* imports, reduced to the name a reader would recognise (the
top-level Python package, the npm package, the Go module path, the Rust
crate).

Resolution rules by language:

- **Python**: the longest dotted prefix of the import that names a module.
- **JavaScript / TypeScript**: relative specifiers (``./x``, ``../y``)
  resolve against the importing file's directory, trying ``index`` files.
- **Go**: an import path resolves to every module in the directory its
  trailing path segments name.
- **Java**: a class import resolves to the file of that class; a package
  (wildcard) import resolves to every module in the package directory.
- **Rust**: ``crate::``/``self::``/``super::`` paths resolve to the longest
  matching ``a/b.rs`` or ``a/b/mod.rs`` module.
"""

from __future__ import annotations

import posixpath
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from docweaver.models import ModuleInfo
from docweaver.utils.logger import get_logger

logger = get_logger("graph")

__all__ = ["ModuleGraph", "package_of"]

_JS_LANGUAGES = frozenset({"JavaScript", "TypeScript"})
_RUST_PREFIXES = ("crate", "self", "super")


def package_of(module: ModuleInfo) -> str:
    """Return the top-level grouping a module belongs to.

    Python modules group by their first dotted segment, unless renamed to
    their path. Everything else groups by its first directory. Files at the
    repository root group under ``(root)``.
    """
    if module.language == "Python" and "/" not in module.name:
        return module.name.split(".")[0] if "." in module.name else "(root)"
    return module.path.split("/")[0] if "/" in module.path else "(root)"


class ModuleGraph:
    """Directed import graph over a set of modules."""

    def __init__(self, modules: Sequence[ModuleInfo]) -> None:
        self._modules: Dict[str, ModuleInfo] = {}
        for module in modules:
            if module.name in self._modules:
                logger.debug("Duplicate module name %s (%s)", module.name, module.path)
                continue
            self._modules[module.name] = module

        self._by_language: Dict[str, List[ModuleInfo]] = defaultdict(list)
        for module in self._modules.values():
            self._by_language[module.language].append(module)

        self._edges: Dict[str, Set[str]] = {name: set() for name in self._modules}
        self._reverse: Dict[str, Set[str]] = {name: set() for name in self._modules}
        self._external: Dict[str, List[str]] = {name: [] for name in self._modules}

        for module in self._modules.values():
            self._link(module)

    @classmethod
    def build(cls, modules: Iterable[ModuleInfo]) -> "ModuleGraph":
        return cls(list(modules))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def __contains__(self, name: object) -> bool:
        return name in self._modules

    def __len__(self) -> int:
        return len(self._modules)

    def nodes(self) -> List[str]:
        return sorted(self._modules)

    def module(self, name: str) -> ModuleInfo:
        return self._modules[name]

    def modules(self) -> List[ModuleInfo]:
        return [self._modules[name] for name in self.nodes()]

    def edges(self) -> List[Tuple[str, str]]:
        """All internal edges as sorted ``(importer, imported)`` pairs."""
        return sorted((src, dst) for src, targets in self._edges.items() for dst in targets)

    def dependencies_of(self, name: str) -> List[str]:
        return sorted(self._edges.get(name, ()))

    def dependents_of(self, name: str) -> List[str]:
        return sorted(self._reverse.get(name, ()))

    def external_imports(self, name: str) -> List[str]:
        return list(self._external.get(name, ()))

    def degree(self, name: str) -> int:
        return len(self._edges.get(name, ())) + len(self._reverse.get(name, ()))

    def packages(self) -> Dict[str, List[str]]:
        """Module names grouped by :func:`package_of`, both levels sorted."""
        grouped: Dict[str, List[str]] = defaultdict(list)
        for name in self.nodes():
            grouped[package_of(self._modules[name])].append(name)
        return dict(sorted(grouped.items()))

    def top_level_packages(self) -> List[str]:
        return list(self.packages())

    def find_cycles(self) -> List[List[str]]:
        """Return import cycles as sorted strongly connected components.

        A component counts as a cycle when it has more than one module, or
        when its single module imports itself (which :meth:`_link` never
        records, so in practice only multi-module components appear).
        """
        components = _strongly_connected(self.nodes(), self._edges)
        cycles = [
            sorted(component)
            for component in components
            if len(component) > 1 or component[0] in self._edges.get(component[0], ())
        ]
        return sorted(cycles)

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def resolve(self, module: ModuleInfo, imported: str) -> List[str]:
        """Return the internal modules an import statement refers to."""
        language = module.language
        if language == "Python":
            target = self._resolve_python(imported)
            return [target] if target else []
        if language in _JS_LANGUAGES:
            return self._resolve_js(module, imported)
        if language == "Go":
            return self._in_directory(language, imported)
        if language == "Java":
            return self._resolve_java(imported)
        if language == "Rust":
            return self._resolve_rust(imported)
        return []

    def _link(self, module: ModuleInfo) -> None:
        for imported in module.imports:
            targets = [t for t in self.resolve(module, imported) if t != module.name]
            if targets:
                for target in targets:
                    self._edges[module.name].add(target)
                    self._reverse[target].add(module.name)
                continue

            if self.resolve(module, imported):
                continue  # resolved only to itself

            external = _external_name(module.language, imported)
            if external and external not in self._external[module.name]:
                self._external[module.name].append(external)

    def _resolve_python(self, imported: str) -> Optional[str]:
        candidate = imported
        while candidate:
            found = self._modules.get(candidate)
            if found is not None and found.language == "Python":
                return candidate
            candidate = candidate.rpartition(".")[0]
        return None

    def _resolve_js(self, module: ModuleInfo, imported: str) -> List[str]:
        if imported.startswith("."):
            base = posixpath.dirname(module.path)
            target = posixpath.normpath(posixpath.join(base, imported))
        else:
            target = imported.lstrip("/")

        stem, ext = posixpath.splitext(target)
        if ext in (".js", ".jsx", ".ts", ".tsx", ".mjs", ".cjs"):
            target = stem

        for candidate in (target, f"{target}/index"):
            found = self._modules.get(candidate)
            if found is not None and found.language in _JS_LANGUAGES:
                return [candidate]
        return []

    def _in_directory(self, language: str, import_path: str) -> List[str]:
        matches: List[str] = []
        for module in self._by_language.get(language, ()):
            directory = posixpath.dirname(module.path)
            if directory and (import_path == directory or import_path.endswith("/" + directory)):
                matches.append(module.name)
        return sorted(matches)

    def _resolve_java(self, imported: str) -> List[str]:
        target = imported.replace(".", "/")
        exact = [
            module.name
            for module in self._by_language.get("Java", ())
            if module.name == target or module.name.endswith("/" + target)
        ]
        if exact:
            return sorted(exact)
        # Source roots (src/main/java/...) prefix the package directory.
        return sorted(
            module.name
            for module in self._by_language.get("Java", ())
            if posixpath.dirname(module.path) == target
            or posixpath.dirname(module.path).endswith("/" + target)
        )

    def _resolve_rust(self, imported: str) -> List[str]:
        parts = [p for p in imported.split("::") if p]
        if not parts or parts[0] not in _RUST_PREFIXES:
            return []
        while parts and parts[0] in _RUST_PREFIXES:
            parts = parts[1:]

        rust_modules = self._by_language.get("Rust", ())
        for size in range(len(parts), 0, -1):
            target = "/".join(parts[:size])
            matches = [
                module.name
                for module in rust_modules
                if any(
                    module.name == candidate or module.name.endswith("/" + candidate)
                    for candidate in (target, f"{target}/mod")
                )
            ]
            if matches:
                return sorted(matches)
        return []


def _external_name(language: str, imported: str) -> Optional[str]:
    if language == "Python":
        return imported.split(".")[0] or None
    if language in _JS_LANGUAGES:
        if imported.startswith((".", "/")):
            return None
        segments = imported.split("/")
        if imported.startswith("@") and len(segments) > 1:
            return "/".join(segments[:2])
        return segments[0]
    if language == "Rust":
        head = imported.lstrip(":").split("::")[0]
        return None if head in _RUST_PREFIXES else head
    return imported


def _strongly_connected(nodes: Sequence[str], edges: Dict[str, Set[str]]) -> List[List[str]]:
    """Iterative Tarjan's algorithm."""
    index_of: Dict[str, int] = {}
    lowlink: Dict[str, int] = {}
    on_stack: Set[str] = set()
    stack: List[str] = []
    components: List[List[str]] = []
    counter = 0

    for root in nodes:
        if root in index_of:
            continue

        work: List[Tuple[str, List[str]]] = [(root, sorted(edges.get(root, ())))]
        index_of[root] = lowlink[root] = counter
        counter += 1
        stack.append(root)
        on_stack.add(root)

        while work:
            node, pending = work[-1]
            if pending:
                child = pending.pop(0)
                if child not in index_of:
                    index_of[child] = lowlink[child] = counter
                    counter += 1
                    stack.append(child)
                    on_stack.add(child)
                    work.append((child, sorted(edges.get(child, ()))))
                elif child in on_stack:
                    lowlink[node] = min(lowlink[node], index_of[child])
                continue

            work.pop()
            if work:
                parent = work[-1][0]
                lowlink[parent] = min(lowlink[parent], lowlink[node])

            if lowlink[node] == index_of[node]:
                component: List[str] = []
                while True:
                    member = stack.pop()
                    on_stack.discard(member)
                    component.append(member)
                    if member == node:
                        break
                components.append(component)

    return components
