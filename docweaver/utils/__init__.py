"""
Utility helpers for docweaver.

This package provides reusable utilities used across docweaver, including:

- Console output helpers (Rich-based)
- Logging configuration and retrieval
- Filesystem safety helpers
- Async HTTP client utilities

Only symbols listed in ``__all__`` are considered part of the public API.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Filesystem utilities
# ---------------------------------------------------------------------------

from docweaver.utils.filesystem import (
    find_manifest_files,
    is_binary_file,
    remove_file,
    safe_read_file,
    safe_write_file,
    validate_path,
)

# ---------------------------------------------------------------------------
# Logging utilities
# ---------------------------------------------------------------------------

from docweaver.utils.logger import (
    get_logger,
    is_logging_configured,
    log_duration,
    setup_logging,
    verbosity_to_level,
)

# ---------------------------------------------------------------------------
# Console utilities
# ---------------------------------------------------------------------------

from docweaver.utils.console import (
    confirm,
    get_raw_console,
    print_error,
    print_info,
    print_success,
    print_table,
    print_warning,
    reconfigure_console,
)

# ---------------------------------------------------------------------------
# HTTP utilities
# ---------------------------------------------------------------------------

from docweaver.utils.http import HTTPClient

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

__all__ = [
    # Console
    "confirm",
    "print_error",
    "print_info",
    "print_table",
    "print_success",
    "print_warning",
    "get_raw_console",
    "reconfigure_console",
    # Logging
    "get_logger",
    "log_duration",
    "setup_logging",
    "verbosity_to_level",
    "is_logging_configured",
    # Filesystem
    "is_binary_file",
    "remove_file",
    "safe_read_file",
    "safe_write_file",
    "find_manifest_files",
    "validate_path",
    # HTTP
    "HTTPClient",
]
