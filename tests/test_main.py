from __future__ import annotations

import builtins
import sys
from unittest.mock import MagicMock, patch

import pytest

from docweaver.__main__ import _print_startup_error, main


@pytest.mark.unit
class TestMain:
    """Tests for ``python -m docweaver``."""

    @pytest.mark.parametrize(
        "exit_code",
        [0, 1, 2, 130],
        ids=["success", "error", "usage", "interrupted"],
    )
    def test_forwards_cli_exit_code(self, exit_code: int) -> None:
        cli_module = MagicMock()
        cli_module.main = MagicMock(return_value=exit_code)

        with patch.dict("sys.modules", {"docweaver.cli": cli_module}):
            assert main() == exit_code

        cli_module.main.assert_called_once_with()

    def test_missing_dependency_reported(self, capsys: pytest.CaptureFixture[str]) -> None:
        """A CLI that cannot import, e.g. without httpx installed, exits 1."""
        missing = ImportError("No module named 'httpx'")
        real_import = builtins.__import__

        def fake_import(name, *args, **kwargs):
            if name == "docweaver.cli":
                raise missing
            return real_import(name, *args, **kwargs)

        with patch.dict("sys.modules", {"docweaver.cli": None}):
            with patch("builtins.__import__", side_effect=fake_import):
                result = main()

        assert result == 1
        err = capsys.readouterr().err
        assert "docweaver could not start." in err
        assert "ImportError: No module named 'httpx'" in err


@pytest.mark.unit
class TestPrintStartupError:
    """Tests for the startup error report."""

    def test_report_layout(self, capsys: pytest.CaptureFixture[str]) -> None:
        with patch.dict(sys.modules, {"docweaver.__version__": MagicMock(__version__="9.9.9")}):
            _print_startup_error(ImportError("missing rich"))

        captured = capsys.readouterr()
        lines = captured.err.splitlines()
        assert captured.out == ""
        assert lines[0] == "docweaver could not start."
        assert lines[1].startswith("Python version : ")
        assert lines[2] == "docweaver version: 9.9.9"
        assert lines[3] == ""
        assert lines[4] == "ImportError: missing rich"

    def test_unknown_version(self, capsys: pytest.CaptureFixture[str]) -> None:
        """The report still prints when the version module cannot be imported."""

        def fake_import(name, *args, **kwargs):
            if name == "docweaver.__version__":
                raise ImportError("broken install")
            return __import__(name, *args, **kwargs)

        with patch("builtins.__import__", side_effect=fake_import):
            _print_startup_error(ImportError("missing click"))

        err = capsys.readouterr().err
        assert "docweaver version: <unknown>" in err
        assert "ImportError: missing click" in err

    def test_installed_version_reported(self, capsys: pytest.CaptureFixture[str]) -> None:
        from docweaver.__version__ import __version__

        _print_startup_error(ImportError("missing tomli"))

        assert f"docweaver version: {__version__}" in capsys.readouterr().err
