from __future__ import annotations

import io
from typing import Generator
from unittest.mock import patch

import pytest
from rich.console import Console

from docweaver.utils.console import (
    DOCWEAVER_THEME,
    _get_console,
    _should_use_color,
    confirm,
    get_raw_console,
    print_error,
    print_info,
    print_success,
    print_table,
    print_warning,
    reconfigure_console,
)


@pytest.fixture(autouse=True)
def reset_console() -> Generator[None, None, None]:
    """Reset the console singleton around each test."""
    reconfigure_console()
    yield
    reconfigure_console()


@pytest.fixture
def recorded() -> Generator[io.StringIO, None, None]:
    """Route console output into a buffer."""
    buffer = io.StringIO()
    console = Console(file=buffer, theme=DOCWEAVER_THEME, no_color=True, width=120)
    with patch("docweaver.utils.console._get_console", return_value=console):
        yield buffer


@pytest.mark.unit
class TestConsoleSetup:
    """Tests for console creation and colour detection."""

    def test_singleton(self) -> None:
        assert _get_console() is get_raw_console()

    def test_reconfigure_creates_new_console(self) -> None:
        first = _get_console()

        reconfigure_console()

        assert _get_console() is not first

    @pytest.mark.parametrize("variable", ["NO_COLOR", "CI"])
    def test_environment_disables_color(self, variable: str) -> None:
        with patch.dict("os.environ", {variable: "1"}):
            assert _should_use_color() is False

    def test_tty_enables_color(self) -> None:
        with patch.dict("os.environ", {}, clear=True), patch("sys.stdout") as stdout:
            stdout.isatty.return_value = True
            assert _should_use_color() is True


@pytest.mark.unit
class TestStatusMessages:
    """Tests for the print_* helpers."""

    @pytest.mark.parametrize(
        "func, prefix",
        [
            (print_success, "[OK]"),
            (print_error, "[ERROR]"),
            (print_warning, "[WARNING]"),
            (print_info, "[INFO]"),
        ],
    )
    def test_prefixes(self, recorded: io.StringIO, func, prefix: str) -> None:  # type: ignore[no-untyped-def]
        func("Documentation written")

        assert recorded.getvalue() == f"{prefix} Documentation written\n"

    def test_custom_prefix(self, recorded: io.StringIO) -> None:
        print_info("hello", prefix="->")

        assert recorded.getvalue() == "-> hello\n"


@pytest.mark.unit
class TestPrintTable:
    """Tests for print_table."""

    def test_empty_prints_nothing(self, recorded: io.StringIO) -> None:
        print_table([])

        assert recorded.getvalue() == ""

    def test_rows_and_headers(self, recorded: io.StringIO) -> None:
        print_table(
            [
                {"path": "app/cli.py", "lines": 30, "extra": "hidden"},
                {"path": "app/store.py", "lines": 120},
            ],
            headers=["path", "lines"],
            title="2 source file(s)",
            column_styles={"lines": {"justify": "right"}},
        )

        output = recorded.getvalue()
        assert "2 source file(s)" in output
        assert "app/cli.py" in output
        assert "120" in output
        assert "hidden" not in output

    def test_headers_default_to_first_row(self, recorded: io.StringIO) -> None:
        print_table([{"Metric": "Modules", "Value": 3}])

        output = recorded.getvalue()
        assert "Metric" in output
        assert "Modules" in output

    def test_row_styler_called(self, recorded: io.StringIO) -> None:
        seen = []

        def styler(row):  # type: ignore[no-untyped-def]
            seen.append(row["name"])
            return "warning" if row["name"] == "b" else None

        print_table([{"name": "a"}, {"name": "b"}], row_styler=styler)

        assert seen == ["a", "b"]


@pytest.mark.unit
class TestConfirm:
    """Tests for confirm."""

    @pytest.mark.parametrize(
        "answer, default, expected",
        [
            ("y", False, True),
            ("YES", False, True),
            ("n", True, False),
            ("", True, True),
            ("", False, False),
            ("maybe", False, False),
        ],
    )
    def test_answers(
        self, recorded: io.StringIO, answer: str, default: bool, expected: bool
    ) -> None:
        with patch("builtins.input", return_value=answer):
            assert confirm("Delete?", default=default) is expected

    def test_prompt_suffix(self, recorded: io.StringIO) -> None:
        with patch("builtins.input", return_value="n"):
            confirm("Delete 3 cached summaries?")

        assert recorded.getvalue() == "Delete 3 cached summaries? [y/N]: "

    @pytest.mark.parametrize("error", [KeyboardInterrupt, EOFError])
    def test_interrupt_returns_false(self, recorded: io.StringIO, error: type) -> None:
        with patch("builtins.input", side_effect=error):
            assert confirm("Delete?", default=True) is False
