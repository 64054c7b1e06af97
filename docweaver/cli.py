"""
Command-line interface for docweaver.

This module provides the main CLI entry point and handles global options,
configuration loading, and command registration.
"""

from __future__ import annotations

import os
import sys
import logging
from pathlib import Path
from typing import Optional

import click

from docweaver.config import load_config
from docweaver.__version__ import __version__
from docweaver.context import DocWeaverContext
from docweaver.exceptions import ConfigError, DocWeaverError
from docweaver.utils.logger import get_logger, setup_logging, verbosity_to_level
from docweaver.utils.console import print_error, print_warning, reconfigure_console

logger = get_logger("cli")


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to configuration file.",
    envvar="DOCWEAVER_CONFIG",
)
@click.option(
    "--verbose",
    "-v",
    count=True,
    help="Increase verbosity (can be repeated: -v, -vv).",
)
@click.option(
    "--color/--no-color",
    default=True,
    help="Enable or disable colored output.",
    envvar="DOCWEAVER_COLOR",
)
@click.version_option(
    version=__version__,
    prog_name="docweaver",
    message="%(prog)s %(version)s",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config: Optional[Path],
    verbose: int,
    color: bool,
) -> None:
    """docweaver: Markdown and Mermaid documentation for source repositories.

    \b
    Available commands:
      docweaver generate           Write documentation for a repository
      docweaver scan               List the source files that would be documented
      docweaver diagram            Print a Mermaid diagram
      docweaver deps               Show the declared dependency inventory
      docweaver cache              Inspect or clear the summary cache

    \b
    Examples:
      docweaver generate
      docweaver generate ../service -o site/reference --provider openai
      docweaver -v diagram --kind classes

    Use ``docweaver COMMAND --help`` for command-specific options.
    """
    _configure_logging(verbose)

    try:
        loaded_config = load_config(config)
    except ConfigError as exc:
        print_error(str(exc))
        raise SystemExit(1) from exc

    docweaver_ctx = DocWeaverContext()
    docweaver_ctx.config_path = config or loaded_config.source_path
    docweaver_ctx.color = color
    docweaver_ctx.verbose = verbose
    docweaver_ctx.config = loaded_config
    ctx.obj = docweaver_ctx

    # Respect NO_COLOR for downstream libraries
    if color:
        os.environ.pop("NO_COLOR", None)
    else:
        os.environ["NO_COLOR"] = "1"
    reconfigure_console()

    logger.debug("docweaver v%s", __version__)
    logger.debug("Config path: %s", docweaver_ctx.config_path)
    if loaded_config.source_path:
        logger.debug("Loaded configuration: %s", loaded_config.to_log_dict())
    logger.debug("Verbosity: %s | Color: %s", verbose, color)


def _configure_logging(verbose: int) -> None:
    """Configure logging level based on verbosity flags."""
    level = verbosity_to_level(verbose)
    setup_logging(level=level, verbose=verbose >= 2)
    logger.debug("Logging initialized at %s level", logging.getLevelName(level))


# Register CLI subcommands
try:
    from docweaver.commands.cache import cache
    from docweaver.commands.deps import deps
    from docweaver.commands.scan import scan
    from docweaver.commands.diagram import diagram
    from docweaver.commands.generate import generate

    cli.add_command(generate)
    cli.add_command(scan)
    cli.add_command(diagram)
    cli.add_command(deps)
    cli.add_command(cache)

except ImportError as exc:
    sys.stderr.write(f"FATAL: Failed to import CLI commands: {exc}\n")
    sys.exit(1)


def main() -> int:
    """Main entry point for the docweaver CLI.

    Returns:
        Exit code:
            0   Success
            1   Unhandled or application error
            2   Usage error (Click)
            130 Interrupted by user (Ctrl+C)
    """
    try:
        result = cli(standalone_mode=False)
        return result if isinstance(result, int) else 0

    except click.exceptions.Abort:
        print_warning("\nOperation cancelled by user")
        return 130

    except click.ClickException as exc:
        exc.show()
        return exc.exit_code

    except DocWeaverError as exc:
        print_error(str(exc))
        logger.debug(
            "DocWeaverError details: %s",
            exc.details or "<none>",
            exc_info=True,
        )
        return 1

    except KeyboardInterrupt:
        print_warning("\nOperation cancelled by user")
        return 130

    except Exception as exc:
        print_error(f"Unexpected error: {exc}")
        logger.exception("Unhandled exception in CLI")
        return 1


if __name__ == "__main__":
    sys.exit(main())
