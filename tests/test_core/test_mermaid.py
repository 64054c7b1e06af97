from __future__ import annotations

import pytest

from docweaver.core.graph import ModuleGraph
from docweaver.core.mermaid import (
    class_diagram,
    escape_label,
    fence,
    module_flowchart,
    node_id,
)
from docweaver.models import ClassInfo, ModuleInfo, Symbol


def _py(name: str, *imports: str) -> ModuleInfo:
    return ModuleInfo(
        name=name,
        path=name.replace(".", "/") + ".py",
        language="Python",
        imports=list(imports),
    )


@pytest.mark.unit
class TestNodeId:
    """Tests for node_id."""

    @pytest.mark.parametrize(
        "name, expected",
        [
            ("pkg.core/io-utils", "pkg_core_io_utils"),
            ("2fa", "n_2fa"),
            ("end", "n_end"),
            ("Graph", "n_Graph"),
            ("", "n_"),
            ("Store", "Store"),
        ],
    )
    def test_ids(self, name: str, expected: str) -> None:
        assert node_id(name) == expected


@pytest.mark.unit
class TestEscapeLabel:
    """Tests for escape_label."""

    def test_plain(self) -> None:
        assert escape_label("app.core") == '"app.core"'

    def test_special_characters(self) -> None:
        """Characters that end a label are replaced by entity codes."""
        assert escape_label('List<"a"> [x] {y} |z|') == (
            '"List#lt;#quot;a#quot;#gt; #91;x#93; #123;y#125; #124;z#124;"'
        )

    def test_fence(self) -> None:
        assert fence("graph LR") == "```mermaid\ngraph LR\n```"


@pytest.mark.unit
class TestModuleFlowchart:
    """Tests for module_flowchart."""

    def test_empty_graph(self) -> None:
        assert module_flowchart(ModuleGraph([])) == "flowchart LR\n    %% no modules"

    def test_subgraphs_and_edges(self) -> None:
        graph = ModuleGraph(
            [
                _py("app.cli", "app.core"),
                _py("app.core"),
                _py("main", "app.cli"),
            ]
        )

        assert module_flowchart(graph, direction="TB") == "\n".join(
            [
                "flowchart TB",
                '    main["main"]',
                '    subgraph pkg_app["app"]',
                '        app_cli["app.cli"]',
                '        app_core["app.core"]',
                "    end",
                "    app_cli --> app_core",
                "    main --> app_cli",
            ]
        )

    def test_subgraph_id_never_reuses_node_id(self) -> None:
        """A root module named like a package subgraph keeps a distinct id."""
        graph = ModuleGraph([_py("pkg_core", "core.io"), _py("core.io")])

        lines = module_flowchart(graph).splitlines()

        assert '    pkg_core["pkg_core"]' in lines
        assert '    subgraph pkg_core_2["core"]' in lines
        assert "    pkg_core --> core_io" in lines

    def test_truncation_keeps_most_connected(self) -> None:
        """Modules with the most edges survive; the rest are counted."""
        graph = ModuleGraph(
            [
                _py("hub", "a", "b"),
                _py("a"),
                _py("b"),
                _py("lonely"),
            ]
        )

        diagram = module_flowchart(graph, max_nodes=2)

        lines = diagram.splitlines()
        assert lines[1] == "    %% 2 modules omitted"
        assert '    hub["hub"]' in lines
        assert '    a["a"]' in lines
        assert "lonely" not in diagram
        assert "    hub --> a" in lines
        assert "    hub --> b" not in lines

    def test_deterministic(self) -> None:
        modules = [_py("x.a", "x.b"), _py("x.b"), _py("y.c", "x.a")]

        first = module_flowchart(ModuleGraph(modules))
        second = module_flowchart(ModuleGraph(list(reversed(modules))))

        assert first == second

    def test_invalid_direction(self) -> None:
        with pytest.raises(ValueError, match="Invalid diagram direction"):
            module_flowchart(ModuleGraph([]), direction="UP")

    def test_invalid_max_nodes(self) -> None:
        with pytest.raises(ValueError, match="max_nodes must be at least 1"):
            module_flowchart(ModuleGraph([]), max_nodes=0)


@pytest.mark.unit
class TestClassDiagram:
    """Tests for class_diagram."""

    def test_no_classes(self) -> None:
        assert class_diagram([_py("app")]) == "classDiagram\n    %% no classes"

    def test_members_and_inheritance(self) -> None:
        module = _py("app.models")
        module.classes = [
            ClassInfo(
                name="Base",
                methods=[Symbol(name="save", kind="method"), Symbol(name="_hidden", kind="method")],
                line=1,
            ),
            ClassInfo(name="User", bases=["app.models.Base"], line=10),
            ClassInfo(name="Repo", bases=["Generic[T]", "Base"], kind="interface", line=20),
        ]

        assert class_diagram([module]) == "\n".join(
            [
                "classDiagram",
                "    class Base {",
                "        +save()",
                "    }",
                "    class User",
                "    class Repo {",
                "        <<interface>>",
                "    }",
                "    Base <|-- User",
                "    Base <|-- Repo",
            ]
        )

    def test_duplicate_names_get_suffix(self) -> None:
        """Same-named classes in different modules get distinct ids."""
        first = _py("a")
        first.classes = [ClassInfo(name="Config")]
        second = _py("b")
        second.classes = [ClassInfo(name="Config")]

        diagram = class_diagram([second, first])

        assert "    class Config" in diagram.splitlines()
        assert '    class Config_2["Config"]' in diagram.splitlines()

    def test_max_classes(self) -> None:
        module = _py("many")
        module.classes = [ClassInfo(name=f"C{i}", line=i) for i in range(5)]

        lines = class_diagram([module], max_classes=2).splitlines()

        assert lines[1] == "    %% 3 classes omitted"
        assert lines[2:] == ["    class C0", "    class C1"]
