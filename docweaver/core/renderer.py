"""Markdown rendering of generated documentation.

The renderer is pure: it takes analysed modules, summaries and the module
graph and returns Markdown text. Writing files is the generator's job.

Layout of the output directory::

    index.md              project overview, diagrams, dependency inventory
    modules/<name>.md     one page per module

Module names containing ``/`` (non-Python modules) are flattened with
``.`` so every page lives directly under ``modules/``.
"""

from __future__ import annotations

from collections import defaultdict
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional, Sequence

from docweaver.core.graph import ModuleGraph
from docweaver.core.mermaid import class_diagram, fence, module_flowchart
from docweaver.models import ClassInfo, Dependency, ModuleInfo, Symbol
from docweaver.constants import (
    DEFAULT_DIAGRAM_DIRECTION,
    DEFAULT_MAX_DIAGRAM_NODES,
    MODULES_DIRNAME,
)

if TYPE_CHECKING:
    from docweaver.core.generator import ProjectDocumentation

__all__ = ["MarkdownRenderer", "module_doc_path"]


def _page_name(name: str) -> str:
    return f"{name.replace('/', '.')}.md"


def module_doc_path(name: str) -> str:
    """Return the page path of module ``name`` relative to the output directory.

    Example::

        >>> module_doc_path("web/app/routes")
        'modules/web.app.routes.md'
    """
    return f"{MODULES_DIRNAME}/{_page_name(name)}"


def _cell(text: str) -> str:
    """Make ``text`` safe for a single Markdown table cell."""
    return " ".join(text.split()).replace("|", "\\|")


def _first_line(text: Optional[str]) -> str:
    if not text:
        return ""
    for line in text.strip().splitlines():
        if line.strip():
            return line.strip()
    return ""


def _table(headers: Sequence[str], rows: Iterable[Sequence[str]], *, numeric: Sequence[int] = ()) -> List[str]:
    align = ["---:" if index in numeric else "---" for index in range(len(headers))]
    lines = [
        "| " + " | ".join(headers) + " |",
        "| " + " | ".join(align) + " |",
    ]
    lines.extend("| " + " | ".join(_cell(str(value)) for value in row) + " |" for row in rows)
    return lines


class MarkdownRenderer:
    """Render the index page and module pages.

    Args:
        project_name: Title used on the index page.
        direction: Mermaid direction of the module flowchart.
        max_diagram_nodes: Module limit of the flowchart.
    """

    def __init__(
        self,
        project_name: str,
        *,
        direction: str = DEFAULT_DIAGRAM_DIRECTION,
        max_diagram_nodes: int = DEFAULT_MAX_DIAGRAM_NODES,
    ) -> None:
        self.project_name = project_name
        self.direction = direction
        self.max_diagram_nodes = max_diagram_nodes

    # ------------------------------------------------------------------
    # Index page
    # ------------------------------------------------------------------

    def render_index(self, project: "ProjectDocumentation") -> str:
        sections: List[List[str]] = [[f"# {self.project_name}"]]
        if project.summary:
            sections.append([project.summary.strip()])

        if not project.modules:
            sections.append(["No analysable source files were found."])
        else:
            sections.append(self._languages_section(project.modules))
            sections.append(
                [
                    "## Module dependencies",
                    "",
                    fence(
                        module_flowchart(
                            project.graph,
                            direction=self.direction,
                            max_nodes=self.max_diagram_nodes,
                        )
                    ),
                ]
            )
            cycles = project.graph.find_cycles()
            if cycles:
                sections.append(self._cycles_section(cycles))

        if project.dependencies:
            sections.append(self._dependencies_section(project.dependencies))

        if project.modules:
            sections.append(self._module_index_section(project.modules, project.summaries))

        return "\n\n".join("\n".join(section) for section in sections) + "\n"

    def _languages_section(self, modules: Sequence[ModuleInfo]) -> List[str]:
        files: Dict[str, int] = defaultdict(int)
        lines: Dict[str, int] = defaultdict(int)
        for module in modules:
            files[module.language] += 1
            lines[module.language] += module.line_count

        ordered = sorted(files, key=lambda language: (-files[language], language))
        rows = [(language, files[language], lines[language]) for language in ordered]
        return ["## Languages", ""] + _table(("Language", "Modules", "Lines"), rows, numeric=(1, 2))

    def _cycles_section(self, cycles: Sequence[Sequence[str]]) -> List[str]:
        lines = [
            "## Import cycles",
            "",
            f"> **Warning:** {len(cycles)} import cycle{'s' if len(cycles) != 1 else ''} "
            "detected between the modules below.",
            "",
        ]
        for cycle in cycles:
            path = " -> ".join(f"`{name}`" for name in list(cycle) + [cycle[0]])
            lines.append(f"- {path}")
        return lines

    def _dependencies_section(self, dependencies: Sequence[Dependency]) -> List[str]:
        by_ecosystem: Dict[str, List[Dependency]] = defaultdict(list)
        for dep in dependencies:
            by_ecosystem[dep.ecosystem].append(dep)

        lines = ["## Dependencies"]
        for ecosystem in sorted(by_ecosystem):
            rows = [
                (f"`{dep.name}`", dep.display_specifier(), dep.group, dep.source)
                for dep in sorted(by_ecosystem[ecosystem], key=lambda d: (d.sort_key, d.source))
            ]
            lines.extend(["", f"### {ecosystem}", ""])
            lines.extend(_table(("Package", "Version", "Group", "Source"), rows))
        return lines

    def _module_index_section(
        self,
        modules: Sequence[ModuleInfo],
        summaries: Dict[str, str],
    ) -> List[str]:
        rows = [
            (
                f"[`{module.name}`]({module_doc_path(module.name)})",
                module.language,
                _first_line(summaries.get(module.name)),
            )
            for module in sorted(modules, key=lambda m: m.name)
        ]
        return ["## Modules", ""] + _table(("Module", "Language", "Summary"), rows)

    # ------------------------------------------------------------------
    # Module pages
    # ------------------------------------------------------------------

    def render_module(self, module: ModuleInfo, summary: str, graph: ModuleGraph) -> str:
        sections: List[List[str]] = [
            [f"# `{module.name}`"],
            [
                f"- **Path:** `{module.path}`",
                f"- **Language:** {module.language}",
                f"- **Lines:** {module.line_count}",
            ],
        ]
        if summary:
            sections.append([summary.strip()])

        depends_on = graph.dependencies_of(module.name)
        if depends_on:
            sections.append(["## Depends on", ""] + [self._link(name) for name in depends_on])

        used_by = graph.dependents_of(module.name)
        if used_by:
            sections.append(["## Used by", ""] + [self._link(name) for name in used_by])

        external = sorted(graph.external_imports(module.name))
        if external:
            sections.append(["## External imports", "", ", ".join(f"`{name}`" for name in external)])

        if module.classes:
            sections.append(["## Class diagram", "", fence(class_diagram([module]))])
            sections.append(self._classes_section(module.classes))

        if module.functions:
            sections.append(["## Functions"])
            sections.extend(self._symbol_block(func, level=3) for func in module.functions)

        if module.constants:
            sections.append(["## Constants", ""] + [f"- `{name}`" for name in module.constants])

        if module.errors:
            sections.append(["## Analysis errors", ""] + [f"- {error}" for error in module.errors])

        return "\n\n".join("\n".join(section) for section in sections) + "\n"

    def _link(self, name: str) -> str:
        return f"- [`{name}`]({_page_name(name)})"

    def _classes_section(self, classes: Sequence[ClassInfo]) -> List[str]:
        lines = ["## Classes"]
        for cls in classes:
            bases = f"({', '.join(cls.bases)})" if cls.bases else ""
            lines.extend(["", f"### {cls.kind} `{cls.name}{bases}`"])
            if cls.docstring:
                lines.extend(["", cls.docstring.strip()])

            methods = cls.public_methods()
            if methods:
                lines.extend(["", "**Methods**", ""])
                for method in methods:
                    doc = _first_line(method.docstring)
                    entry = f"- `{method.display_signature()}`"
                    lines.append(f"{entry}: {doc}" if doc else entry)
        return lines

    def _symbol_block(self, symbol: Symbol, *, level: int) -> List[str]:
        lines = [f"{'#' * level} `{symbol.display_signature()}`"]
        if symbol.docstring:
            lines.extend(["", symbol.docstring.strip()])
        return lines
