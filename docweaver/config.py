"""Configuration file loader for docweaver.

Handles discovery, loading, parsing, and validation of configuration files.
Supports two formats:

- ``docweaver.toml``: settings under ``[docweaver]`` table
- ``pyproject.toml``: settings under ``[tool.docweaver]`` table

Discovery order:

1. Explicit path from ``--config`` or ``DOCWEAVER_CONFIG``
2. ``docweaver.toml`` in current directory
3. ``pyproject.toml`` with ``[tool.docweaver]`` section

Configuration precedence: defaults < config file < CLI args.

Typical usage::

    config = load_config()  # Auto-discover
    config = load_config(Path("custom.toml"))  # Explicit path

Example (``docweaver.toml``)::

    [docweaver]
    output_dir = "docs/reference"
    exclude = ["migrations", "*_pb2.py"]
    provider = "openai"
    model = "gpt-4o-mini"
    concurrency = 8
"""

from __future__ import annotations

import dataclasses
import tomli as tomllib
from pathlib import Path
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Type, Union

from docweaver.exceptions import ConfigError
from docweaver.utils.logger import get_logger
from docweaver.constants import (
    DEFAULT_API_BASE,
    DEFAULT_API_KEY_ENV,
    DEFAULT_CACHE_PATH,
    DEFAULT_CONCURRENCY,
    DEFAULT_DIAGRAM_DIRECTION,
    DEFAULT_MAX_DIAGRAM_NODES,
    DEFAULT_MODEL,
    DEFAULT_OUTPUT_DIR,
    DEFAULT_PROVIDER,
    MAX_FILE_SIZE,
    MERMAID_DIRECTIONS,
    SUPPORTED_PROVIDERS,
)

logger = get_logger("config")


@dataclass
class DocWeaverConfig:
    """Parsed and validated docweaver configuration.

    Contains settings from ``docweaver.toml`` or ``pyproject.toml``.
    All fields have defaults, so empty config files are valid.

    Attributes:
        output_dir: Directory the documentation is written to, relative to
            the repository root unless absolute.
        exclude: ``fnmatch`` patterns of paths to skip while scanning.
        include_tests: Document test code as well.
        max_file_size: Source files larger than this many bytes are skipped.
        provider: Summarizer backend, ``heuristic`` or ``openai``.
        model: Model name sent to the ``openai`` provider.
        api_base: Base URL of the OpenAI-compatible API.
        api_key_env: Environment variable holding the API key.
        use_cache: Reuse summaries of unchanged modules.
        cache_path: Cache file location, relative to the repository root
            unless absolute.
        concurrency: Number of modules summarised at the same time.
        diagram_direction: Mermaid flowchart direction.
        max_diagram_nodes: Module limit of the dependency flowchart.
        source_path: Path to loaded config file, or ``None`` if using defaults.
    """

    output_dir: str = DEFAULT_OUTPUT_DIR
    exclude: List[str] = field(default_factory=list)
    include_tests: bool = False
    max_file_size: int = MAX_FILE_SIZE
    provider: str = DEFAULT_PROVIDER
    model: str = DEFAULT_MODEL
    api_base: str = DEFAULT_API_BASE
    api_key_env: str = DEFAULT_API_KEY_ENV
    use_cache: bool = True
    cache_path: str = DEFAULT_CACHE_PATH
    concurrency: int = DEFAULT_CONCURRENCY
    diagram_direction: str = DEFAULT_DIAGRAM_DIRECTION
    max_diagram_nodes: int = DEFAULT_MAX_DIAGRAM_NODES

    # Metadata (not a user-facing option)
    source_path: Optional[Path] = field(default=None, repr=False)

    def to_log_dict(self) -> Dict[str, Any]:
        """Return configuration as dictionary for debug logging.

        Excludes ``source_path`` metadata.
        """
        return {
            f.name: getattr(self, f.name)
            for f in dataclasses.fields(self)
            if f.name != "source_path"
        }

    def with_overrides(self, **overrides: Any) -> "DocWeaverConfig":
        """Return a copy with every non-``None`` override applied.

        Used to layer CLI flags over file settings.
        """
        changes = {key: value for key, value in overrides.items() if value is not None}
        unknown = set(changes) - set(_OPTION_TYPES)
        if unknown:
            raise ConfigError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")
        return dataclasses.replace(self, **changes)

    def resolve_path(self, root: Union[str, Path], value: str) -> Path:
        """Resolve a configured path against the repository ``root``."""
        path = Path(value).expanduser()
        return path if path.is_absolute() else Path(root) / path


# Expected type per option; ``exclude`` is additionally checked element-wise.
_OPTION_TYPES: Dict[str, Tuple[Type[Any], ...]] = {
    "output_dir": (str,),
    "exclude": (list,),
    "include_tests": (bool,),
    "max_file_size": (int,),
    "provider": (str,),
    "model": (str,),
    "api_base": (str,),
    "api_key_env": (str,),
    "use_cache": (bool,),
    "cache_path": (str,),
    "concurrency": (int,),
    "diagram_direction": (str,),
    "max_diagram_nodes": (int,),
}

_TYPE_NAMES = {str: "a string", list: "a list of strings", bool: "a boolean", int: "an integer"}


def discover_config_file(explicit_path: Optional[Path] = None) -> Optional[Path]:
    """Find the configuration file to load.

    Search order:

    1. ``explicit_path`` (from ``--config`` or ``DOCWEAVER_CONFIG``)
    2. ``docweaver.toml`` in current directory
    3. ``pyproject.toml`` with ``[tool.docweaver]`` section in current directory

    Args:
        explicit_path: Explicit config path. If provided, must exist.

    Returns:
        Resolved path to config file, or ``None`` if not found.

    Raises:
        ConfigError: Explicit path provided but does not exist.
    """
    # 1. Explicit path takes priority
    if explicit_path is not None:
        resolved = explicit_path.resolve()
        if not resolved.is_file():
            raise ConfigError(
                f"Configuration file not found: {explicit_path}",
                config_path=str(explicit_path),
            )
        logger.debug("Using explicit config: %s", resolved)
        return resolved

    cwd = Path.cwd()

    # 2. docweaver.toml in current directory
    docweaver_toml = cwd / "docweaver.toml"
    if docweaver_toml.is_file():
        logger.debug("Found docweaver.toml: %s", docweaver_toml)
        return docweaver_toml

    # 3. pyproject.toml with [tool.docweaver] section
    pyproject_toml = cwd / "pyproject.toml"
    if pyproject_toml.is_file() and _pyproject_has_docweaver_section(pyproject_toml):
        logger.debug("Found [tool.docweaver] in pyproject.toml: %s", pyproject_toml)
        return pyproject_toml

    logger.debug("No configuration file found")
    return None


def _pyproject_has_docweaver_section(path: Path) -> bool:
    """Check if pyproject.toml contains a [tool.docweaver] section.

    Parse errors count as "no section" so that a broken project file does
    not prevent running with defaults.
    """
    try:
        raw = _read_toml(path)
    except ConfigError:
        return False
    tool = raw.get("tool", {})
    return isinstance(tool, dict) and "docweaver" in tool


def load_config(config_path: Optional[Path] = None) -> DocWeaverConfig:
    """Load and validate docweaver configuration.

    Discovers config file (or uses provided path), parses and validates it.
    Returns config with defaults if no file found.

    Args:
        config_path: Explicit path to config file. If ``None``, uses
            auto-discovery (see :func:`discover_config_file`).

    Returns:
        Validated :class:`DocWeaverConfig` with values from file or defaults.

    Raises:
        ConfigError: File cannot be parsed, has unknown keys, or invalid values.
    """
    resolved = discover_config_file(config_path)

    if resolved is None:
        logger.debug("No config file found, using defaults")
        return DocWeaverConfig()

    logger.info("Loading configuration from %s", resolved)
    raw = _read_toml(resolved)

    # Extract the docweaver-specific section
    if resolved.name == "pyproject.toml":
        section = raw.get("tool", {}).get("docweaver", {})
    else:
        # docweaver.toml: settings live under [docweaver]
        section = raw.get("docweaver", {})

    if not isinstance(section, dict):
        raise ConfigError(
            "The docweaver configuration must be a table",
            config_path=str(resolved),
        )

    if not section:
        logger.debug("Config file found but no docweaver section, using defaults")
        return DocWeaverConfig(source_path=resolved)

    config = _parse_section(section, config_path=str(resolved))
    config.source_path = resolved

    logger.debug("Loaded configuration: %s", config.to_log_dict())
    return config


def _read_toml(path: Path) -> Dict[str, Any]:
    """Read and parse a TOML file.

    Raises:
        ConfigError: File cannot be read or is not valid TOML.
    """
    try:
        with open(path, "rb") as fh:
            return tomllib.load(fh)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(
            f"Invalid TOML in {path.name}: {exc}",
            config_path=str(path),
        ) from exc
    except OSError as exc:
        raise ConfigError(
            f"Cannot read configuration file {path}: {exc}",
            config_path=str(path),
        ) from exc


def _parse_section(
    section: Dict[str, Any],
    *,
    config_path: str,
) -> DocWeaverConfig:
    """Parse and validate the ``[docweaver]`` or ``[tool.docweaver]`` table.

    Rejects unknown keys, type mismatches and out-of-range values.

    Raises:
        ConfigError: Unknown keys, incorrect types (e.g. string for
            boolean) or invalid values.
    """
    unknown = set(section.keys()) - set(_OPTION_TYPES)
    if unknown:
        raise ConfigError(
            f"Unknown configuration keys: {', '.join(sorted(unknown))}",
            config_path=config_path,
        )

    values: Dict[str, Any] = {}
    for option, expected in _OPTION_TYPES.items():
        if option not in section:
            continue
        val = section[option]
        # bool is a subclass of int; never accept it for integer options.
        if not isinstance(val, expected) or (expected == (int,) and isinstance(val, bool)):
            raise ConfigError(
                f"{option} must be {_TYPE_NAMES[expected[0]]}, got {type(val).__name__}",
                config_path=config_path,
                option=option,
            )
        values[option] = val

    if "exclude" in values:
        if not all(isinstance(item, str) for item in values["exclude"]):
            raise ConfigError(
                "exclude must be a list of strings",
                config_path=config_path,
                option="exclude",
            )
        values["exclude"] = list(values["exclude"])

    _check_choice(values, "provider", SUPPORTED_PROVIDERS, config_path)
    _check_choice(values, "diagram_direction", MERMAID_DIRECTIONS, config_path)
    _check_minimum(values, "max_file_size", 1, config_path)
    _check_minimum(values, "concurrency", 1, config_path)
    _check_minimum(values, "max_diagram_nodes", 1, config_path)

    return DocWeaverConfig(**values)


def _check_choice(values: Dict[str, Any], option: str, choices: Any, config_path: str) -> None:
    if option in values and values[option] not in choices:
        raise ConfigError(
            f"{option} must be one of {', '.join(choices)}, got {values[option]!r}",
            config_path=config_path,
            option=option,
        )


def _check_minimum(values: Dict[str, Any], option: str, minimum: int, config_path: str) -> None:
    if option in values and values[option] < minimum:
        raise ConfigError(
            f"{option} must be at least {minimum}, got {values[option]}",
            config_path=config_path,
            option=option,
        )
