from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from docweaver.core.scanner import RepositoryScanner, detect_language, is_test_path
from docweaver.exceptions import FileOperationError


def _write(root: Path, relative: str, content: str = "x = 1\n") -> None:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


@pytest.mark.unit
class TestDetectLanguage:
    """Tests for detect_language."""

    @pytest.mark.parametrize(
        "path, language",
        [
            ("a/b.py", "Python"),
            ("stubs.pyi", "Python"),
            ("app.tsx", "TypeScript"),
            ("index.MJS", "JavaScript"),
            ("main.go", "Go"),
            ("Main.java", "Java"),
            ("lib.rs", "Rust"),
        ],
    )
    def test_supported(self, path: str, language: str) -> None:
        assert detect_language(path) == language

    def test_unsupported(self) -> None:
        assert detect_language("README.md") is None


@pytest.mark.unit
class TestIsTestPath:
    """Tests for is_test_path."""

    @pytest.mark.parametrize(
        "path",
        [
            "tests/test_api.py",
            "pkg/test_utils.py",
            "server/handler_test.go",
            "src/app.test.ts",
            "src/app.spec.js",
            "web/__tests__/button.jsx",
            "conftest.py",
        ],
    )
    def test_detects_tests(self, path: str) -> None:
        assert is_test_path(path) is True

    @pytest.mark.parametrize("path", ["pkg/testing_utils.go.txt", "pkg/api.py", "src/latest.ts"])
    def test_regular_files(self, path: str) -> None:
        assert is_test_path(path) is False


@pytest.mark.unit
class TestRepositoryScanner:
    """Tests for RepositoryScanner."""

    def test_missing_root_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileOperationError, match="Not a directory"):
            RepositoryScanner(tmp_path / "absent")

    def test_scan_sorted_and_filtered(self, tmp_path: Path) -> None:
        """Only supported languages are returned, sorted by path."""
        _write(tmp_path, "pkg/b.py")
        _write(tmp_path, "pkg/a.py")
        _write(tmp_path, "web/app.ts", "export const x = 1;\n")
        _write(tmp_path, "README.md", "# readme\n")

        sources = RepositoryScanner(tmp_path).scan()

        assert [s.path for s in sources] == ["pkg/a.py", "pkg/b.py", "web/app.ts"]
        assert sources[2].language == "TypeScript"
        assert sources[0].size == len("x = 1\n")

    def test_ignored_directories_pruned(self, tmp_path: Path) -> None:
        """Vendored, hidden and build directories are never read."""
        _write(tmp_path, "node_modules/lib/index.js")
        _write(tmp_path, ".venv/lib/site.py")
        _write(tmp_path, ".hidden/tool.py")
        _write(tmp_path, "demo.egg-info/setup.py")
        _write(tmp_path, "main.py")

        paths = [s.path for s in RepositoryScanner(tmp_path).scan()]

        assert paths == ["main.py"]

    def test_exclude_patterns(self, tmp_path: Path) -> None:
        """Patterns match full relative paths or single components."""
        _write(tmp_path, "app/models.py")
        _write(tmp_path, "app/migrations/0001_initial.py")
        _write(tmp_path, "app/proto/api_pb2.py")

        scanner = RepositoryScanner(tmp_path, exclude=["migrations", "*_pb2.py"])

        assert [s.path for s in scanner.scan()] == ["app/models.py"]

    def test_tests_skipped_when_disabled(self, tmp_path: Path) -> None:
        _write(tmp_path, "pkg/core.py")
        _write(tmp_path, "pkg/test_core.py")
        _write(tmp_path, "tests/test_api.py")

        without = RepositoryScanner(tmp_path, include_tests=False).scan()
        with_tests = RepositoryScanner(tmp_path, include_tests=True).scan()

        assert [s.path for s in without] == ["pkg/core.py"]
        assert len(with_tests) == 3

    def test_large_files_skipped(self, tmp_path: Path) -> None:
        _write(tmp_path, "small.py", "a = 1\n")
        _write(tmp_path, "big.py", "b = 2\n" * 100)

        sources = RepositoryScanner(tmp_path, max_file_size=50).scan()

        assert [s.path for s in sources] == ["small.py"]

    def test_binary_files_skipped(self, tmp_path: Path) -> None:
        (tmp_path / "blob.py").write_bytes(b"\x00\x01\x02binary")
        _write(tmp_path, "ok.py")

        assert [s.path for s in RepositoryScanner(tmp_path).scan()] == ["ok.py"]

    def test_unsupported_path_from_walk_skipped(self, tmp_path: Path) -> None:
        """A path with no known language is dropped rather than read."""
        _write(tmp_path, "main.py")
        _write(tmp_path, "notes.txt", "plain text\n")
        scanner = RepositoryScanner(tmp_path)

        with patch.object(RepositoryScanner, "iter_paths", return_value=iter(["notes.txt", "main.py"])):
            sources = scanner.scan()

        assert [s.path for s in sources] == ["main.py"]
