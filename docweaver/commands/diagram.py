"""Diagram command implementation for docweaver.

Prints a Mermaid diagram of a repository to stdout, ready to paste into a
Markdown file or pipe into ``mmdc``.

Typical usage::

    $ docweaver diagram > deps.md
    $ docweaver diagram --kind classes --no-fence
    $ docweaver diagram --direction TB --max-nodes 80
"""

from __future__ import annotations

import sys
import click
from pathlib import Path
from typing import Optional

from docweaver.constants import MERMAID_DIRECTIONS
from docweaver.exceptions import DocWeaverError
from docweaver.context import pass_context, DocWeaverContext
from docweaver.commands.scan import scan_modules
from docweaver.core import ModuleGraph
from docweaver.core.mermaid import class_diagram, fence, module_flowchart
from docweaver.utils import get_logger, print_error

logger = get_logger("commands.diagram")


@click.command()
@click.argument(
    "path",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
)
@click.option(
    "--kind",
    "-k",
    type=click.Choice(["modules", "classes"], case_sensitive=False),
    default="modules",
    help="Module dependency flowchart or class diagram.",
)
@click.option(
    "--direction",
    "-d",
    type=click.Choice(list(MERMAID_DIRECTIONS), case_sensitive=False),
    help="Flowchart direction (default: diagram_direction from configuration).",
)
@click.option(
    "--max-nodes",
    type=click.IntRange(min=1),
    help="Maximum number of modules in the flowchart.",
)
@click.option(
    "--no-fence",
    is_flag=True,
    help="Print the bare diagram without a ```mermaid code fence.",
)
@pass_context
def diagram(
    ctx: DocWeaverContext,
    path: Path,
    kind: str,
    direction: Optional[str],
    max_nodes: Optional[int],
    no_fence: bool,
) -> None:
    """Print a Mermaid diagram of a repository.

    PATH is the repository root (default: the current directory).
    """
    config = ctx.config
    try:
        modules = scan_modules(ctx, path)
    except DocWeaverError as e:
        print_error(f"{e}")
        sys.exit(1)

    if kind.lower() == "classes":
        text = class_diagram(modules)
    else:
        text = module_flowchart(
            ModuleGraph.build(modules),
            direction=(direction or config.diagram_direction).upper(),
            max_nodes=max_nodes or config.max_diagram_nodes,
        )

    print(text if no_fence else fence(text))
