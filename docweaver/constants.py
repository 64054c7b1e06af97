"""
Centralized constants for docweaver.

This module defines immutable configuration values used across docweaver,
including scanning limits, language tables, LLM endpoint defaults, output
layout, and logging formats. All values are intended to be treated as
read-only.
"""

from typing import Final, FrozenSet, Mapping, Sequence

# ---------------------------------------------------------------------------
# Project metadata
# ---------------------------------------------------------------------------

#: HTTP User-Agent template used for outbound requests.
USER_AGENT_TEMPLATE: Final[str] = "docweaver/{version} (+https://github.com/docweaver/docweaver)"

# ---------------------------------------------------------------------------
# HTTP configuration
# ---------------------------------------------------------------------------

#: Default network timeout in seconds. LLM completions can be slow.
DEFAULT_TIMEOUT: Final[int] = 120

#: Maximum number of retries for failed HTTP requests.
DEFAULT_MAX_RETRIES: Final[int] = 3

# ---------------------------------------------------------------------------
# Summarization providers
# ---------------------------------------------------------------------------

#: Names accepted for the ``provider`` option.
SUPPORTED_PROVIDERS: Final[Sequence[str]] = ("heuristic", "openai")

DEFAULT_PROVIDER: Final[str] = "heuristic"
DEFAULT_MODEL: Final[str] = "gpt-4o-mini"
DEFAULT_API_BASE: Final[str] = "https://api.openai.com/v1"
DEFAULT_API_KEY_ENV: Final[str] = "OPENAI_API_KEY"
DEFAULT_TEMPERATURE: Final[float] = 0.2
DEFAULT_MAX_TOKENS: Final[int] = 400

#: Source characters sent to the model per module before truncation.
DEFAULT_MAX_SOURCE_CHARS: Final[int] = 12_000

#: Number of module summaries produced concurrently.
DEFAULT_CONCURRENCY: Final[int] = 4

# ---------------------------------------------------------------------------
# Output layout
# ---------------------------------------------------------------------------

DEFAULT_OUTPUT_DIR: Final[str] = "docs"
INDEX_FILENAME: Final[str] = "index.md"
MODULES_DIRNAME: Final[str] = "modules"

#: Pages written by the last run. Only pages listed here are ever deleted.
PAGES_MANIFEST_FILENAME: Final[str] = ".docweaver-pages.json"

# ---------------------------------------------------------------------------
# Section cache
# ---------------------------------------------------------------------------

DEFAULT_CACHE_PATH: Final[str] = ".docweaver-cache.json"

#: Bumped whenever the on-disk cache layout changes.
CACHE_FORMAT_VERSION: Final[int] = 1

# ---------------------------------------------------------------------------
# Mermaid diagrams
# ---------------------------------------------------------------------------

MERMAID_DIRECTIONS: Final[Sequence[str]] = ("LR", "RL", "TB", "TD", "BT")
DEFAULT_DIAGRAM_DIRECTION: Final[str] = "LR"
DEFAULT_MAX_DIAGRAM_NODES: Final[int] = 40
DEFAULT_MAX_DIAGRAM_CLASSES: Final[int] = 30

# ---------------------------------------------------------------------------
# Repository scanning
# ---------------------------------------------------------------------------

#: Extension to language name.
LANGUAGE_EXTENSIONS: Final[Mapping[str, str]] = {
    ".py": "Python",
    ".pyi": "Python",
    ".js": "JavaScript",
    ".jsx": "JavaScript",
    ".mjs": "JavaScript",
    ".cjs": "JavaScript",
    ".ts": "TypeScript",
    ".tsx": "TypeScript",
    ".go": "Go",
    ".java": "Java",
    ".rs": "Rust",
}

#: Directory names never descended into.
IGNORED_DIRECTORIES: Final[FrozenSet[str]] = frozenset(
    {
        ".git",
        ".hg",
        ".svn",
        ".tox",
        ".nox",
        ".venv",
        "venv",
        "env",
        "__pycache__",
        ".mypy_cache",
        ".pytest_cache",
        ".ruff_cache",
        "node_modules",
        "bower_components",
        "build",
        "dist",
        "out",
        "target",
        "coverage",
        "site-packages",
        ".idea",
        ".vscode",
    }
)

#: Directory names treated as test code when tests are excluded.
TEST_DIRECTORIES: Final[FrozenSet[str]] = frozenset({"test", "tests", "__tests__", "testing"})

#: Bytes inspected when sniffing for binary content.
BINARY_SNIFF_BYTES: Final[int] = 2048

# ---------------------------------------------------------------------------
# Dependency manifests
# ---------------------------------------------------------------------------

#: Glob patterns used to detect supported manifest files at the repository root.
MANIFEST_FILE_PATTERNS: Final[Mapping[str, Sequence[str]]] = {
    "requirements": (
        "requirements*.txt",
        "requirements/*.txt",
    ),
    "pyproject": ("pyproject.toml",),
    "package_json": ("package.json",),
    "go_mod": ("go.mod",),
}

# ---------------------------------------------------------------------------
# Security constraints
# ---------------------------------------------------------------------------

#: Maximum allowed file size (in bytes) when reading source files.
MAX_FILE_SIZE: Final[int] = 1024 * 1024  # 1 MB

# ---------------------------------------------------------------------------
# Logging configuration
# ---------------------------------------------------------------------------

#: Timestamp format for verbose logging.
LOG_DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"

#: Default log format (non-verbose).
LOG_DEFAULT_FORMAT: Final[str] = "%(levelname)s: %(message)s"

#: Verbose log format including timestamp and logger name.
LOG_VERBOSE_FORMAT: Final[str] = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
