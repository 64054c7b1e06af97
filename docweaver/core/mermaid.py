"""Mermaid diagram rendering.

Two diagram kinds are produced:

- ``module_flowchart``: the internal import graph as a ``flowchart``, with
  one ``subgraph`` per top-level package.
- ``class_diagram``: documented classes with their public methods and the
  inheritance relations between them.

Output is deterministic: identical input yields byte-identical diagrams,
so regenerated documentation only changes when the code does.
"""

from __future__ import annotations

import re
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from docweaver.core.graph import ModuleGraph
from docweaver.models import ClassInfo, ModuleInfo
from docweaver.utils.logger import get_logger
from docweaver.constants import (
    DEFAULT_DIAGRAM_DIRECTION,
    DEFAULT_MAX_DIAGRAM_CLASSES,
    DEFAULT_MAX_DIAGRAM_NODES,
    MERMAID_DIRECTIONS,
)

logger = get_logger("mermaid")

__all__ = ["node_id", "escape_label", "module_flowchart", "class_diagram", "fence"]

_UNSAFE_ID = re.compile(r"[^0-9A-Za-z_]")

# Words Mermaid parses as syntax when used as a bare node id.
_RESERVED_IDS = frozenset({"end", "graph", "flowchart", "subgraph", "class", "classdef", "style", "click"})

_LABEL_ENTITIES: Tuple[Tuple[str, str], ...] = (
    ('"', "#quot;"),
    ("[", "#91;"),
    ("]", "#93;"),
    ("{", "#123;"),
    ("}", "#125;"),
    ("<", "#lt;"),
    (">", "#gt;"),
    ("|", "#124;"),
)

_INDENT = "    "


def node_id(name: str) -> str:
    """Return a Mermaid-safe identifier for ``name``.

    Example::

        >>> node_id("pkg.core/io-utils")
        'pkg_core_io_utils'
        >>> node_id("2fa")
        'n_2fa'
    """
    ident = _UNSAFE_ID.sub("_", name)
    if not ident or ident[0].isdigit() or ident.lower() in _RESERVED_IDS:
        ident = f"n_{ident}"
    return ident


def escape_label(text: str) -> str:
    """Return ``text`` as a quoted label with Mermaid-breaking characters encoded."""
    for char, entity in _LABEL_ENTITIES:
        text = text.replace(char, entity)
    return f'"{text}"'


def fence(diagram: str) -> str:
    """Wrap a diagram in a Markdown ``mermaid`` code block."""
    return f"```mermaid\n{diagram}\n```"


def _unique_ids(
    items: Iterable[Tuple[str, str]],
    used: Optional[Set[str]] = None,
) -> Dict[str, str]:
    """Map each key to a node id built from its name, suffixing collisions.

    Ids already in ``used`` are avoided, and ``used`` is updated in place.
    """
    assigned: Dict[str, str] = {}
    used = set() if used is None else used
    for key, name in items:
        base = node_id(name)
        ident = base
        counter = 2
        while ident in used:
            ident = f"{base}_{counter}"
            counter += 1
        used.add(ident)
        assigned[key] = ident
    return assigned


# ---------------------------------------------------------------------------
# Module flowchart
# ---------------------------------------------------------------------------


def module_flowchart(
    graph: ModuleGraph,
    *,
    direction: str = DEFAULT_DIAGRAM_DIRECTION,
    max_nodes: int = DEFAULT_MAX_DIAGRAM_NODES,
) -> str:
    """Render the internal import graph as a Mermaid ``flowchart``.

    Args:
        graph: Module graph to draw.
        direction: One of ``LR``, ``RL``, ``TB``, ``TD`` or ``BT``.
        max_nodes: Upper bound on drawn modules. When exceeded, the most
            connected modules are kept (ties broken by name) and a
            ``%% N modules omitted`` comment records the rest.

    Raises:
        ValueError: ``direction`` is not a Mermaid direction or
            ``max_nodes`` is not positive.
    """
    if direction not in MERMAID_DIRECTIONS:
        raise ValueError(
            f"Invalid diagram direction {direction!r}; "
            f"expected one of {', '.join(MERMAID_DIRECTIONS)}"
        )
    if max_nodes < 1:
        raise ValueError("max_nodes must be at least 1")

    lines: List[str] = [f"flowchart {direction}"]
    names = graph.nodes()
    if not names:
        lines.append(f"{_INDENT}%% no modules")
        return "\n".join(lines)

    kept = set(names)
    if len(names) > max_nodes:
        ranked = sorted(names, key=lambda n: (-graph.degree(n), n))
        kept = set(ranked[:max_nodes])
        omitted = len(names) - max_nodes
        lines.append(f"{_INDENT}%% {omitted} modules omitted")
        logger.debug("Flowchart truncated to %d of %d modules", max_nodes, len(names))

    used: Set[str] = set()
    ids = _unique_ids(((name, name) for name in names if name in kept), used)
    groups = {
        package: [name for name in members if name in kept]
        for package, members in graph.packages().items()
    }
    # Subgraph ids share the node namespace.
    subgraph_ids = _unique_ids(
        ((package, f"pkg_{package}") for package, visible in groups.items() if visible and package != "(root)"),
        used,
    )

    for package, visible in groups.items():
        if not visible:
            continue
        if package == "(root)":
            lines.extend(f"{_INDENT}{ids[name]}[{escape_label(name)}]" for name in visible)
            continue
        lines.append(f"{_INDENT}subgraph {subgraph_ids[package]}[{escape_label(package)}]")
        lines.extend(f"{_INDENT * 2}{ids[name]}[{escape_label(name)}]" for name in visible)
        lines.append(f"{_INDENT}end")

    for src, dst in graph.edges():
        if src in kept and dst in kept:
            lines.append(f"{_INDENT}{ids[src]} --> {ids[dst]}")

    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Class diagram
# ---------------------------------------------------------------------------


def _base_name(base: str) -> str:
    """Reduce ``pkg.Base[T]`` or ``Base<T>`` to ``Base``."""
    base = re.split(r"[\[<(]", base, maxsplit=1)[0].strip()
    return re.split(r"[.:]", base)[-1]


def class_diagram(
    modules: Sequence[ModuleInfo],
    *,
    max_classes: int = DEFAULT_MAX_DIAGRAM_CLASSES,
) -> str:
    """Render the classes declared in ``modules`` as a Mermaid ``classDiagram``.

    Public methods become ``+name()`` members. Inheritance arrows are drawn
    only for bases that are themselves among the drawn classes.
    """
    declared: List[Tuple[ModuleInfo, ClassInfo]] = [
        (module, cls)
        for module in sorted(modules, key=lambda m: m.name)
        for cls in sorted(module.classes, key=lambda c: (c.line, c.name))
    ]

    lines: List[str] = ["classDiagram"]
    if not declared:
        lines.append(f"{_INDENT}%% no classes")
        return "\n".join(lines)

    if len(declared) > max_classes:
        lines.append(f"{_INDENT}%% {len(declared) - max_classes} classes omitted")
        declared = declared[:max_classes]

    qualified = [f"{module.name}:{cls.name}" for module, cls in declared]
    ids = _unique_ids((key, cls.name) for key, (_, cls) in zip(qualified, declared))

    # The first declaration of a name wins when resolving bases.
    simple_to_id: Dict[str, str] = {}
    for key, (_, cls) in zip(qualified, declared):
        simple_to_id.setdefault(cls.name, ids[key])

    relations: List[str] = []
    for key, (_, cls) in zip(qualified, declared):
        ident = ids[key]
        members: List[str] = []
        if cls.kind != "class":
            members.append(f"<<{cls.kind}>>")
        members.extend(f"+{method.name}()" for method in cls.public_methods())

        header = ident if ident == cls.name else f"{ident}[{escape_label(cls.name)}]"
        if members:
            lines.append(f"{_INDENT}class {header} {{")
            lines.extend(f"{_INDENT * 2}{member}" for member in members)
            lines.append(f"{_INDENT}}}")
        else:
            lines.append(f"{_INDENT}class {header}")

        for base in cls.bases:
            parent = simple_to_id.get(_base_name(base))
            if parent and parent != ident:
                relations.append(f"{_INDENT}{parent} <|-- {ident}")

    lines.extend(relations)
    return "\n".join(lines)

