"""Deps command implementation for docweaver.

Shows the third-party dependencies a repository declares in
``requirements*.txt``, ``pyproject.toml``, ``package.json`` and ``go.mod``.
This is the same inventory that appears on the generated index page.

Typical usage::

    $ docweaver deps
    $ docweaver deps ../service --format json
"""

from __future__ import annotations

import sys
import json
import click
from pathlib import Path
from typing import Any, Dict, List

from docweaver.models import Dependency
from docweaver.core import ManifestReader
from docweaver.exceptions import DocWeaverError
from docweaver.context import pass_context, DocWeaverContext
from docweaver.utils import get_logger, print_error, print_table, print_warning

logger = get_logger("commands.deps")


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
def deps(ctx: DocWeaverContext, path: Path, format: str) -> None:
    """Show the dependencies declared by a repository's manifests.

    PATH is the repository root (default: the current directory).
    """
    try:
        dependencies = ManifestReader(path).read()
    except DocWeaverError as e:
        print_error(f"{e}")
        sys.exit(1)

    if format.lower() == "json":
        print(json.dumps([dep.to_row() for dep in dependencies], indent=2))
        return

    if not dependencies:
        print_warning("No declared dependencies found")
        return

    print_table(
        _table_rows(dependencies),
        headers=["Ecosystem", "Package", "Version", "Group", "Source"],
        title=f"{len(dependencies)} declared dependenc{'y' if len(dependencies) == 1 else 'ies'}",
        column_styles={"Package": {"style": "bold"}},
    )


def _table_rows(dependencies: List[Dependency]) -> List[Dict[str, Any]]:
    rows: List[Dict[str, Any]] = []
    for dep in dependencies:
        version = dep.display_specifier()
        if dep.markers:
            version += f" ; {dep.markers}"
        rows.append(
            {
                "Ecosystem": dep.ecosystem,
                "Package": dep.name,
                "Version": version,
                "Group": dep.group,
                "Source": dep.source,
            }
        )
    return rows
