"""
Filesystem utilities for docweaver.

Safe helpers for reading source files, writing generated documentation
atomically, and locating dependency manifests. All filesystem errors are
normalised to ``FileOperationError``.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Dict, List, Optional, Union

from docweaver.utils.logger import get_logger
from docweaver.exceptions import FileOperationError
from docweaver.constants import (
    BINARY_SNIFF_BYTES,
    MANIFEST_FILE_PATTERNS,
    MAX_FILE_SIZE,
)

logger = get_logger("filesystem")

PathLike = Union[str, Path]


def _validated_file(path: Path) -> Path:
    """Resolve ``path`` and make sure it is an existing regular file."""
    if not path.exists():
        raise FileOperationError(
            f"File not found: {path}",
            file_path=str(path),
            operation="read",
        )
    if not path.is_file():
        raise FileOperationError(
            f"Not a file: {path}",
            file_path=str(path),
            operation="read",
        )
    return path.resolve()


def _atomic_write(target: Path, content: str) -> None:
    """Write text through a sibling temporary file and ``os.replace``."""
    temp_path: Optional[Path] = None

    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            newline="\n",
            dir=str(target.parent),
            delete=False,
            prefix=f".{target.name}.",
            suffix=".tmp",
        ) as tmp:
            temp_path = Path(tmp.name)
            tmp.write(content)
            tmp.flush()
            os.fsync(tmp.fileno())

        temp_path.replace(target)

    except OSError as exc:
        if temp_path is not None and temp_path.exists():
            try:
                temp_path.unlink()
            except OSError as cleanup_exc:
                logger.warning(
                    "Failed to clean up temporary file %s: %s",
                    temp_path,
                    cleanup_exc,
                )

        raise FileOperationError(
            f"Atomic write failed: {exc}",
            file_path=str(target),
            operation="write",
            original_error=exc,
        ) from exc


def is_binary_file(path: PathLike, *, sniff_bytes: int = BINARY_SNIFF_BYTES) -> bool:
    """Return True if the first bytes of ``path`` contain a NUL byte."""
    try:
        with open(path, "rb") as fh:
            return b"\0" in fh.read(sniff_bytes)
    except OSError as exc:
        raise FileOperationError(
            f"Failed to inspect file: {exc}",
            file_path=str(path),
            operation="read",
            original_error=exc,
        ) from exc


def safe_read_file(
    file_path: PathLike,
    *,
    max_size: Optional[int] = MAX_FILE_SIZE,
    encoding: str = "utf-8",
    errors: str = "strict",
) -> str:
    """Read a text file, refusing files larger than ``max_size`` bytes.

    Args:
        file_path: Path to the file.
        max_size: Maximum allowed file size in bytes (None disables limit).
        encoding: Text encoding.
        errors: Decoding error policy passed to :func:`open`.

    Returns:
        File contents as a string.
    """
    path = _validated_file(Path(file_path))
    size = path.stat().st_size

    if max_size is not None and size > max_size:
        raise FileOperationError(
            f"File too large: {size} bytes (max {max_size})",
            file_path=str(path),
            operation="read",
        )

    try:
        with open(path, "r", encoding=encoding, errors=errors) as fh:
            return fh.read()
    except (OSError, UnicodeDecodeError) as exc:
        raise FileOperationError(
            f"Failed to read file: {exc}",
            file_path=str(path),
            operation="read",
            original_error=exc,
        ) from exc


def safe_write_file(file_path: PathLike, content: str) -> Path:
    """Atomically write ``content`` to ``file_path``, creating parents.

    Returns:
        The path written.
    """
    path = Path(file_path)
    _atomic_write(path, content)
    logger.debug("Wrote %d characters to %s", len(content), path)
    return path


def remove_file(file_path: PathLike) -> bool:
    """Delete a file if present.

    Returns:
        True if a file was removed, False if it did not exist.
    """
    path = Path(file_path)
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    except OSError as exc:
        raise FileOperationError(
            f"Failed to delete file: {exc}",
            file_path=str(path),
            operation="delete",
            original_error=exc,
        ) from exc
    return True


def find_manifest_files(directory: PathLike = ".") -> Dict[str, List[Path]]:
    """Locate dependency manifests directly under ``directory``.

    Returns:
        Mapping of manifest kind (see ``MANIFEST_FILE_PATTERNS``) to the
        sorted list of matching files. Kinds without matches are omitted.
    """
    root = Path(directory).resolve()
    if not root.is_dir():
        return {}

    found: Dict[str, List[Path]] = {}
    for kind, patterns in MANIFEST_FILE_PATTERNS.items():
        matches = {
            match
            for pattern in patterns
            for match in root.glob(pattern)
            if match.is_file()
        }
        if matches:
            found[kind] = sorted(matches)

    return found


def validate_path(
    path: PathLike,
    *,
    base_dir: Optional[PathLike] = None,
) -> Path:
    """Resolve a path, optionally requiring it to stay inside ``base_dir``."""
    resolved = Path(path).expanduser().resolve(strict=False)

    if base_dir:
        base = Path(base_dir).resolve(strict=False)
        try:
            resolved.relative_to(base)
        except ValueError:
            raise FileOperationError(
                f"Path outside allowed base directory: {resolved}",
                file_path=str(path),
                operation="validate",
            )

    return resolved
