"""
Shared context object for docweaver CLI commands.

This module defines the global Click context used to share configuration
and runtime options across CLI subcommands.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import click

from docweaver.config import DocWeaverConfig, load_config


class DocWeaverContext:
    """Global context object for docweaver CLI commands.

    An instance of this class is created once per CLI invocation and
    passed to commands using Click's context mechanism.

    Attributes:
        config_path: Path to the docweaver configuration file, if provided.
        verbose: Verbosity level (0=WARNING, 1=INFO, 2+=DEBUG).
        color: Whether colored terminal output is enabled.
        config: Loaded configuration, populated on first access.
    """

    __slots__ = ("config_path", "verbose", "color", "_config")

    def __init__(self) -> None:
        self.config_path: Optional[Path] = None
        self.verbose: int = 0
        self.color: bool = True
        self._config: Optional[DocWeaverConfig] = None

    @property
    def config(self) -> DocWeaverConfig:
        """Configuration loaded from ``config_path`` or auto-discovery."""
        if self._config is None:
            self._config = load_config(self.config_path)
        return self._config

    @config.setter
    def config(self, value: DocWeaverConfig) -> None:
        self._config = value


#: Click decorator for injecting :class:`DocWeaverContext` into commands.
pass_context = click.make_pass_decorator(DocWeaverContext, ensure=True)
