from __future__ import annotations

import hashlib

import pytest

from docweaver.models import ClassInfo, ModuleInfo, SourceFile, Symbol


@pytest.mark.unit
class TestSourceFile:
    """Tests for SourceFile."""

    def test_digest_is_sha256_of_content(self) -> None:
        source = SourceFile(path="a.py", language="Python", content="x = 1\n")

        assert source.digest == hashlib.sha256(b"x = 1\n").hexdigest()

    def test_digest_changes_with_content(self) -> None:
        """Any edit invalidates the digest."""
        first = SourceFile(path="a.py", language="Python", content="x = 1\n")
        second = SourceFile(path="a.py", language="Python", content="x = 2\n")

        assert first.digest != second.digest

    def test_line_count(self) -> None:
        source = SourceFile(path="a.py", language="Python", content="a\nb\nc")

        assert source.line_count == 3

    def test_line_count_empty(self) -> None:
        assert SourceFile(path="a.py", language="Python", content="").line_count == 0


@pytest.mark.unit
class TestSymbol:
    """Tests for Symbol."""

    def test_display_signature(self) -> None:
        symbol = Symbol(name="load", signature="(path: str)")

        assert symbol.display_signature() == "load(path: str)"

    def test_display_signature_async(self) -> None:
        symbol = Symbol(name="fetch", signature="(url)", is_async=True)

        assert symbol.display_signature() == "async fetch(url)"

    @pytest.mark.parametrize(
        "name, private",
        [("_helper", True), ("public", False), ("__init__", False), ("__x", False)],
    )
    def test_is_private(self, name: str, private: bool) -> None:
        """Single-underscore names are private, dunder names are not."""
        assert Symbol(name=name).is_private is private


@pytest.mark.unit
class TestClassInfo:
    """Tests for ClassInfo."""

    def test_public_methods_keep_init(self) -> None:
        cls = ClassInfo(
            name="Store",
            methods=[
                Symbol(name="__init__", kind="method"),
                Symbol(name="_load", kind="method"),
                Symbol(name="__repr__", kind="method"),
                Symbol(name="get", kind="method"),
            ],
        )

        assert [m.name for m in cls.public_methods()] == ["__init__", "get"]


@pytest.mark.unit
class TestModuleInfo:
    """Tests for ModuleInfo."""

    def _module(self) -> ModuleInfo:
        return ModuleInfo(
            name="pkg.store",
            path="pkg/store.py",
            language="Python",
            imports=["os", "pkg.util"],
            classes=[
                ClassInfo(
                    name="Store",
                    bases=["Base"],
                    methods=[Symbol(name="get", kind="method", signature="(self, key)")],
                )
            ],
            functions=[Symbol(name="open_store", signature="()", is_async=True)],
            line_count=42,
        )

    def test_outline(self) -> None:
        """Classes come first with their methods indented."""
        assert self._module().outline() == [
            "class Store(Base)",
            "    get(self, key)",
            "async open_store()",
        ]

    def test_to_row(self) -> None:
        row = self._module().to_row()

        assert row == {
            "path": "pkg/store.py",
            "module": "pkg.store",
            "language": "Python",
            "lines": 42,
            "classes": 1,
            "functions": 1,
            "imports": 2,
            "errors": 0,
        }

    def test_symbol_count_and_errors(self) -> None:
        module = self._module()
        module.errors.append("syntax error")

        assert module.symbol_count() == 2
        assert module.has_errors is True
