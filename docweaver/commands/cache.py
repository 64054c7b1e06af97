"""Cache command implementation for docweaver.

Inspects or clears the summary cache used by ``docweaver generate``. The
cache file location comes from ``cache_path`` in the configuration,
resolved against the repository root.

Typical usage::

    $ docweaver cache stats
    $ docweaver cache clear --yes
"""

from __future__ import annotations

import click
from pathlib import Path

from docweaver.core import SectionCache
from docweaver.context import pass_context, DocWeaverContext
from docweaver.utils import confirm, get_logger, print_info, print_success, print_table

logger = get_logger("commands.cache")

_PATH_ARGUMENT = click.argument(
    "path",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
)


def _open_cache(ctx: DocWeaverContext, path: Path) -> SectionCache:
    config = ctx.config
    return SectionCache(config.resolve_path(path.resolve(), config.cache_path))


@click.group()
def cache() -> None:
    """Inspect or clear the summary cache."""


@cache.command()
@_PATH_ARGUMENT
@pass_context
def stats(ctx: DocWeaverContext, path: Path) -> None:
    """Show the number of cached summaries and the cache file size.

    PATH is the repository root (default: the current directory).
    """
    section_cache = _open_cache(ctx, path)
    info = section_cache.stats()
    print_table(
        [
            {"Setting": "Path", "Value": info["path"]},
            {"Setting": "Entries", "Value": info["entries"]},
            {"Setting": "Size", "Value": _format_size(info["size_bytes"])},
        ],
        headers=["Setting", "Value"],
        title="Summary cache",
    )


@cache.command()
@_PATH_ARGUMENT
@click.option(
    "--yes",
    "-y",
    is_flag=True,
    help="Skip confirmation prompt.",
)
@pass_context
def clear(ctx: DocWeaverContext, path: Path, yes: bool) -> None:
    """Delete the summary cache.

    PATH is the repository root (default: the current directory).
    """
    section_cache = _open_cache(ctx, path)
    if not section_cache.path.exists():
        print_info(f"No cache file at {section_cache.path}")
        return

    if not yes and not confirm(
        f"Delete {len(section_cache)} cached summaries at {section_cache.path}?",
        default=False,
    ):
        print_info("Cache left unchanged")
        return

    removed = section_cache.clear()
    print_success(f"Removed {removed} cached summar{'y' if removed == 1 else 'ies'}")


def _format_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KiB"
    return f"{size / (1024 * 1024):.1f} MiB"
