from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from docweaver.exceptions import FileOperationError
from docweaver.utils.filesystem import (
    _atomic_write,
    _validated_file,
    find_manifest_files,
    is_binary_file,
    remove_file,
    safe_read_file,
    safe_write_file,
    validate_path,
)


@pytest.mark.unit
class TestValidatedFile:
    """Tests for _validated_file."""

    def test_existing_file_resolved(self, tmp_path: Path) -> None:
        path = tmp_path / "a.py"
        path.write_text("x = 1\n", encoding="utf-8")

        assert _validated_file(path) == path.resolve()

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileOperationError, match="File not found"):
            _validated_file(tmp_path / "missing.py")

    def test_directory_rejected(self, tmp_path: Path) -> None:
        with pytest.raises(FileOperationError, match="Not a file") as exc_info:
            _validated_file(tmp_path)

        assert exc_info.value.operation == "read"


@pytest.mark.unit
class TestAtomicWrite:
    """Tests for _atomic_write."""

    def test_creates_parents(self, tmp_path: Path) -> None:
        target = tmp_path / "docs" / "modules" / "app.md"

        _atomic_write(target, "# app\n")

        assert target.read_text(encoding="utf-8") == "# app\n"

    def test_no_temporary_files_left(self, tmp_path: Path) -> None:
        target = tmp_path / "index.md"

        _atomic_write(target, "first")
        _atomic_write(target, "second")

        assert target.read_text(encoding="utf-8") == "second"
        assert [p.name for p in tmp_path.iterdir()] == ["index.md"]

    def test_replace_failure_cleans_up(self, tmp_path: Path) -> None:
        """A failed rename removes the temporary file and raises."""
        target = tmp_path / "index.md"

        with patch.object(Path, "replace", side_effect=OSError("disk full")):
            with pytest.raises(FileOperationError, match="Atomic write failed") as exc_info:
                _atomic_write(target, "content")

        assert exc_info.value.operation == "write"
        assert list(tmp_path.iterdir()) == []


@pytest.mark.unit
class TestIsBinaryFile:
    """Tests for is_binary_file."""

    def test_text_file(self, tmp_path: Path) -> None:
        path = tmp_path / "main.go"
        path.write_text("package main\n", encoding="utf-8")

        assert is_binary_file(path) is False

    def test_nul_byte(self, tmp_path: Path) -> None:
        path = tmp_path / "blob.py"
        path.write_bytes(b"abc\0def")

        assert is_binary_file(path) is True

    def test_nul_beyond_sniff_window(self, tmp_path: Path) -> None:
        """Only the leading bytes are inspected."""
        path = tmp_path / "late.py"
        path.write_bytes(b"a" * 10 + b"\0")

        assert is_binary_file(path, sniff_bytes=5) is False

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileOperationError, match="Failed to inspect file"):
            is_binary_file(tmp_path / "nope")


@pytest.mark.unit
class TestSafeReadFile:
    """Tests for safe_read_file."""

    def test_reads_content(self, tmp_path: Path) -> None:
        path = tmp_path / "mod.py"
        path.write_text("def f():\n    pass\n", encoding="utf-8")

        assert safe_read_file(path) == "def f():\n    pass\n"

    def test_accepts_string_path(self, tmp_path: Path) -> None:
        path = tmp_path / "mod.py"
        path.write_text("x", encoding="utf-8")

        assert safe_read_file(str(path)) == "x"

    def test_too_large(self, tmp_path: Path) -> None:
        path = tmp_path / "big.py"
        path.write_text("x" * 100, encoding="utf-8")

        with pytest.raises(FileOperationError, match="File too large: 100 bytes"):
            safe_read_file(path, max_size=10)

    def test_size_limit_disabled(self, tmp_path: Path) -> None:
        path = tmp_path / "big.py"
        path.write_text("x" * 100, encoding="utf-8")

        assert len(safe_read_file(path, max_size=None)) == 100

    def test_decode_error_strict(self, tmp_path: Path) -> None:
        path = tmp_path / "latin.py"
        path.write_bytes(b"caf\xe9\n")

        with pytest.raises(FileOperationError, match="Failed to read file"):
            safe_read_file(path)

    def test_decode_error_replace(self, tmp_path: Path) -> None:
        """errors='replace' substitutes undecodable bytes."""
        path = tmp_path / "latin.py"
        path.write_bytes(b"caf\xe9\n")

        assert safe_read_file(path, errors="replace") == "caf�\n"


@pytest.mark.unit
class TestSafeWriteFile:
    """Tests for safe_write_file."""

    def test_returns_path(self, tmp_path: Path) -> None:
        target = tmp_path / "out" / "index.md"

        result = safe_write_file(target, "hello")

        assert result == target
        assert target.read_text(encoding="utf-8") == "hello"

    def test_overwrites(self, tmp_path: Path) -> None:
        target = tmp_path / "index.md"
        target.write_text("old", encoding="utf-8")

        safe_write_file(str(target), "new")

        assert target.read_text(encoding="utf-8") == "new"


@pytest.mark.unit
class TestRemoveFile:
    """Tests for remove_file."""

    def test_removes_existing(self, tmp_path: Path) -> None:
        path = tmp_path / "stale.md"
        path.write_text("x", encoding="utf-8")

        assert remove_file(path) is True
        assert not path.exists()

    def test_missing_returns_false(self, tmp_path: Path) -> None:
        assert remove_file(tmp_path / "absent.md") is False

    def test_os_error_wrapped(self, tmp_path: Path) -> None:
        with patch.object(Path, "unlink", side_effect=PermissionError("denied")):
            with pytest.raises(FileOperationError, match="Failed to delete file") as exc_info:
                remove_file(tmp_path / "locked.md")

        assert exc_info.value.operation == "delete"


@pytest.mark.unit
class TestFindManifestFiles:
    """Tests for find_manifest_files."""

    def test_finds_each_kind(self, tmp_path: Path) -> None:
        for name in ("requirements.txt", "requirements-dev.txt", "pyproject.toml", "package.json", "go.mod"):
            (tmp_path / name).write_text("", encoding="utf-8")
        (tmp_path / "requirements").mkdir()
        (tmp_path / "requirements" / "prod.txt").write_text("", encoding="utf-8")

        found = find_manifest_files(tmp_path)

        root = tmp_path.resolve()
        assert found["requirements"] == sorted(
            [
                root / "requirements.txt",
                root / "requirements-dev.txt",
                root / "requirements" / "prod.txt",
            ]
        )
        assert found["pyproject"] == [root / "pyproject.toml"]
        assert found["package_json"] == [root / "package.json"]
        assert found["go_mod"] == [root / "go.mod"]

    def test_kinds_without_matches_omitted(self, tmp_path: Path) -> None:
        (tmp_path / "go.mod").write_text("module x\n", encoding="utf-8")

        assert list(find_manifest_files(tmp_path)) == ["go_mod"]

    def test_directories_ignored(self, tmp_path: Path) -> None:
        (tmp_path / "package.json").mkdir()

        assert find_manifest_files(tmp_path) == {}

    def test_not_a_directory(self, tmp_path: Path) -> None:
        path = tmp_path / "file.txt"
        path.write_text("", encoding="utf-8")

        assert find_manifest_files(path) == {}


@pytest.mark.unit
class TestValidatePath:
    """Tests for validate_path."""

    def test_resolves_without_base(self, tmp_path: Path) -> None:
        assert validate_path(tmp_path / "a" / ".." / "b") == (tmp_path / "b").resolve()

    def test_inside_base(self, tmp_path: Path) -> None:
        result = validate_path(tmp_path / "docs" / "index.md", base_dir=tmp_path)

        assert result == (tmp_path / "docs" / "index.md").resolve()

    def test_outside_base_rejected(self, tmp_path: Path) -> None:
        base = tmp_path / "repo"
        base.mkdir()

        with pytest.raises(FileOperationError, match="Path outside allowed base directory"):
            validate_path(base / ".." / "escape.md", base_dir=base)
