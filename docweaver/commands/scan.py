"""Scan command implementation for docweaver.

Lists the source files docweaver would document, with the symbol counts the
analyzers extract from each. Useful for tuning ``exclude`` patterns before
running ``generate``.

Typical usage::

    $ docweaver scan
    $ docweaver scan ../service --format json | jq '.[] | select(.errors > 0)'
"""

from __future__ import annotations

import sys
import json
import click
from pathlib import Path
from typing import Any, Dict, List, Optional

from docweaver.models import ModuleInfo
from docweaver.exceptions import DocWeaverError
from docweaver.context import pass_context, DocWeaverContext
from docweaver.core import RepositoryScanner, analyze_source, assign_unique_names
from docweaver.utils import get_logger, print_error, print_table, print_warning

logger = get_logger("commands.scan")

_TABLE_HEADERS = ["path", "language", "lines", "classes", "functions", "imports", "errors"]


@click.command()
@click.argument(
    "path",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
)
@click.option(
    "--format",
    "-f",
    type=click.Choice(["table", "json"], case_sensitive=False),
    default="table",
    help="Output format.",
)
@pass_context
def scan(ctx: DocWeaverContext, path: Path, format: str) -> None:
    """List the source files that would be documented.

    PATH is the repository root (default: the current directory).
    """
    try:
        modules = scan_modules(ctx, path)
    except DocWeaverError as e:
        print_error(f"{e}")
        sys.exit(1)

    rows = [module.to_row() for module in modules]
    if format.lower() == "json":
        print(json.dumps(rows, indent=2))
        return

    if not rows:
        print_warning("No analysable source files found")
        return

    print_table(
        rows,
        headers=_TABLE_HEADERS,
        title=f"{len(rows)} source file(s)",
        column_styles={
            "lines": {"justify": "right"},
            "classes": {"justify": "right"},
            "functions": {"justify": "right"},
            "imports": {"justify": "right"},
            "errors": {"justify": "right"},
        },
        row_styler=_row_style,
    )


def scan_modules(ctx: DocWeaverContext, path: Path) -> List[ModuleInfo]:
    """Scan and analyse ``path`` using the context configuration."""
    config = ctx.config
    scanner = RepositoryScanner(
        path,
        exclude=config.exclude,
        max_file_size=config.max_file_size,
        include_tests=config.include_tests,
    )
    return assign_unique_names([analyze_source(source) for source in scanner.scan()])


def _row_style(row: Dict[str, Any]) -> Optional[str]:
    return "warning" if row.get("errors") else None
