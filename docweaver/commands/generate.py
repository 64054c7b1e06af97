"""Generate command implementation for docweaver.

Scans a repository, analyses every supported source file, summarises the
modules and writes Markdown pages with Mermaid diagrams.

The command orchestrates the pipeline through
:class:`~docweaver.core.generator.DocumentationGenerator`:

1. **RepositoryScanner** and the analyzers build the module inventory.
2. **ModuleGraph** links modules by their imports.
3. The configured **Summarizer** (wrapped in the section cache) writes
   prose for each module and for the project.
4. **MarkdownRenderer** produces ``index.md`` and one page per module.

Typical usage::

    # Document the current directory into ./docs
    $ docweaver generate

    # Another repository, custom output directory, model summaries
    $ docweaver generate ../service -o site/reference --provider openai

    # See what would be written without touching the disk
    $ docweaver generate --dry-run
"""

from __future__ import annotations

import sys
import click
import asyncio
from pathlib import Path
from typing import Any, Dict, List, Optional

from docweaver.constants import SUPPORTED_PROVIDERS
from docweaver.exceptions import DocWeaverError
from docweaver.context import pass_context, DocWeaverContext
from docweaver.core import (
    DocumentationGenerator,
    GenerationResult,
    SectionCache,
    create_summarizer,
)
from docweaver.utils import (
    get_logger,
    get_raw_console,
    print_error,
    print_success,
    print_table,
    print_warning,
)

logger = get_logger("commands.generate")

#: Skipped-item warnings shown before collapsing into a count.
_MAX_LISTED_WARNINGS = 10


@click.command()
@click.argument(
    "path",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(file_okay=False, path_type=Path),
    help="Output directory (default: output_dir from configuration).",
)
@click.option(
    "--provider",
    type=click.Choice(list(SUPPORTED_PROVIDERS), case_sensitive=False),
    help="Summarizer backend.",
)
@click.option(
    "--model",
    help="Model name for the openai provider.",
)
@click.option(
    "--no-cache",
    is_flag=True,
    help="Ignore and do not update the summary cache.",
)
@click.option(
    "--dry-run",
    is_flag=True,
    help="Show which files would be written without writing them.",
)
@click.option(
    "--concurrency",
    type=click.IntRange(min=1),
    help="Number of modules summarised at the same time.",
)
@pass_context
def generate(
    ctx: DocWeaverContext,
    path: Path,
    output: Optional[Path],
    provider: Optional[str],
    model: Optional[str],
    no_cache: bool,
    dry_run: bool,
    concurrency: Optional[int],
) -> None:
    """Generate Markdown documentation for a repository.

    PATH is the repository root (default: the current directory). Command
    line options take precedence over the configuration file.

    Exits:
        0 on success, 1 if an error occurred.
    """
    try:
        result = asyncio.run(
            _generate_async(
                ctx,
                path,
                output,
                provider=provider.lower() if provider else None,
                model=model,
                use_cache=False if no_cache else None,
                dry_run=dry_run,
                concurrency=concurrency,
            )
        )
        _display_result(result, verbose=ctx.verbose)
        sys.exit(0)

    except DocWeaverError as e:
        print_error(f"{e}")
        sys.exit(1)
    except Exception as e:
        print_error(f"Unexpected error: {e}")
        logger.exception("Error in generate command")
        sys.exit(1)


# ---------------------------------------------------------------------------
# Async orchestration
# ---------------------------------------------------------------------------


async def _generate_async(
    ctx: DocWeaverContext,
    path: Path,
    output: Optional[Path],
    *,
    dry_run: bool,
    **overrides: Any,
) -> GenerationResult:
    """Run the generator with CLI overrides layered over the configuration.

    Raises:
        DocWeaverError: Configuration is invalid or output cannot be written.
    """
    config = ctx.config.with_overrides(**overrides)
    root = path.resolve()

    cache: Optional[SectionCache] = None
    if config.use_cache:
        cache = SectionCache(config.resolve_path(root, config.cache_path))

    logger.info("Generating documentation for %s (provider: %s)", root, config.provider)
    summarizer = create_summarizer(config)
    try:
        generator = DocumentationGenerator(config, summarizer, cache=cache)
        return await generator.generate(root, output, dry_run=dry_run)
    finally:
        await summarizer.aclose()


# ---------------------------------------------------------------------------
# Display
# ---------------------------------------------------------------------------


def _display_result(result: GenerationResult, *, verbose: int = 0) -> None:
    """Print a summary table, warnings and the final status line."""
    rows: List[Dict[str, Any]] = [
        {"Metric": "Modules documented", "Value": result.modules},
        {
            "Metric": "Files to write" if result.dry_run else "Files written",
            "Value": len(result.written),
        },
        {"Metric": "Cache hits", "Value": result.cache_hits},
        {"Metric": "Cache misses", "Value": result.cache_misses},
    ]
    if result.removed:
        rows.append(
            {
                "Metric": "Stale pages to remove" if result.dry_run else "Stale pages removed",
                "Value": len(result.removed),
            }
        )
    if result.skipped:
        rows.append({"Metric": "Warnings", "Value": len(result.skipped)})

    print_table(
        rows,
        headers=["Metric", "Value"],
        title="Documentation summary",
        column_styles={"Value": {"justify": "right"}},
    )

    for message in result.skipped[:_MAX_LISTED_WARNINGS]:
        print_warning(message)
    if len(result.skipped) > _MAX_LISTED_WARNINGS:
        print_warning(f"... and {len(result.skipped) - _MAX_LISTED_WARNINGS} more")

    if result.dry_run:
        console = get_raw_console()
        if verbose > 0:
            for written in result.written:
                console.print(f"  {written}", highlight=False)
        print_success(
            f"Dry run complete: {len(result.written)} file(s) would be written to {result.output_dir}"
        )
    else:
        print_success(f"Documentation written to {result.output_dir}")
