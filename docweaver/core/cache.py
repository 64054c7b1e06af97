"""Persistent cache of generated documentation sections.

Summaries are expensive when they come from a language model, so each one
is stored under a key derived from everything that influenced it: the
summarizer, the section kind, the module and the content digest. Editing a
file changes its digest and therefore its key; stale entries are simply
never read again.

On disk the cache is one JSON document::

    {
        "version": 1,
        "entries": {
            "<sha256>": {"content": "...", "created_at": "2024-01-01T00:00:00+00:00"}
        }
    }

A missing, corrupt or incompatible cache file is never fatal; it is
treated as empty and replaced on the next save.
"""

from __future__ import annotations

import json
import hashlib
from pathlib import Path
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union

from docweaver.constants import CACHE_FORMAT_VERSION
from docweaver.exceptions import FileOperationError
from docweaver.utils.logger import get_logger
from docweaver.utils.filesystem import remove_file, safe_read_file, safe_write_file

logger = get_logger("cache")

__all__ = ["SectionCache", "make_key"]

_KEY_SEPARATOR = "\x1f"


def make_key(*parts: str) -> str:
    """Return the SHA-256 hex digest of ``parts`` joined by a unit separator."""
    joined = _KEY_SEPARATOR.join(str(part) for part in parts)
    return hashlib.sha256(joined.encode("utf-8")).hexdigest()


class SectionCache:
    """JSON-backed key/value store for rendered sections.

    Args:
        path: Location of the cache file. It is read lazily on first access
            and written only by :meth:`save`.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)
        self._entries: Optional[Dict[str, Dict[str, Any]]] = None
        self._dirty = False

    make_key = staticmethod(make_key)

    # ------------------------------------------------------------------
    # Mapping-style access
    # ------------------------------------------------------------------

    def get(self, key: str) -> Optional[str]:
        entry = self._load().get(key)
        if entry is None:
            return None
        return entry.get("content")

    def put(self, key: str, content: str) -> None:
        self._load()[key] = {
            "content": content,
            "created_at": datetime.now(timezone.utc).isoformat(timespec="seconds"),
        }
        self._dirty = True

    def __contains__(self, key: object) -> bool:
        return key in self._load()

    def __len__(self) -> int:
        return len(self._load())

    @property
    def dirty(self) -> bool:
        return self._dirty

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self) -> bool:
        """Write the cache if it changed since it was loaded.

        Returns:
            True if the file was written.

        Raises:
            FileOperationError: The file could not be written.
        """
        if not self._dirty:
            return False

        document = {"version": CACHE_FORMAT_VERSION, "entries": self._load()}
        safe_write_file(self.path, json.dumps(document, indent=2, sort_keys=True) + "\n")
        self._dirty = False
        logger.debug("Saved %d cache entr%s to %s", len(self), "y" if len(self) == 1 else "ies", self.path)
        return True

    def clear(self) -> int:
        """Drop every entry and delete the cache file.

        Returns:
            The number of entries removed.
        """
        removed = len(self._load())
        self._entries = {}
        self._dirty = False
        if remove_file(self.path):
            logger.info("Removed cache file %s", self.path)
        return removed

    def stats(self) -> Dict[str, Any]:
        size = self.path.stat().st_size if self.path.is_file() else 0
        return {
            "entries": len(self),
            "path": str(self.path),
            "size_bytes": size,
        }

    def _load(self) -> Dict[str, Dict[str, Any]]:
        if self._entries is None:
            self._entries = self._read()
        return self._entries

    def _read(self) -> Dict[str, Dict[str, Any]]:
        if not self.path.exists():
            return {}

        try:
            document = json.loads(safe_read_file(self.path, max_size=None))
        except (FileOperationError, json.JSONDecodeError) as exc:
            logger.warning("Ignoring unreadable cache %s: %s", self.path, exc)
            return {}

        if not isinstance(document, dict) or document.get("version") != CACHE_FORMAT_VERSION:
            logger.warning(
                "Ignoring cache %s: unsupported format version %r",
                self.path,
                document.get("version") if isinstance(document, dict) else None,
            )
            return {}

        entries = document.get("entries")
        if not isinstance(entries, dict):
            logger.warning("Ignoring cache %s: missing entries table", self.path)
            return {}

        return {
            key: entry
            for key, entry in entries.items()
            if isinstance(entry, dict) and isinstance(entry.get("content"), str)
        }
