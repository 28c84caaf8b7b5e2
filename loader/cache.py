"""Read-through filesystem cache shared by resolver calls."""

import json
import logging
import os
import stat
import threading
from typing import Any, Dict, Optional


logger = logging.getLogger(__name__)

_MISSING = object()


class FileSystemCache:
    """
    Append-only cache of stat results and parsed manifests, keyed by path.

    Entries are never evicted; each path is populated at most once and read
    many times. Missing paths are cached as well. Safe to share between
    threads.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._stats: Dict[str, Optional[os.stat_result]] = {}
        self._json: Dict[str, Any] = {}
        self._hits = 0
        self._misses = 0

    def stat(self, path: str) -> Optional[os.stat_result]:
        """
        Stat a path, following symlinks.

        Returns:
            The stat result, or None if the path does not exist or cannot
            be stat-ed.
        """
        with self._lock:
            cached = self._stats.get(path, _MISSING)
            if cached is not _MISSING:
                self._hits += 1
                return cached
        try:
            result: Optional[os.stat_result] = os.stat(path)
        except OSError:
            # Unreadable candidates (loops, permissions) count as missing
            result = None
        with self._lock:
            self._misses += 1
            return self._stats.setdefault(path, result)

    def is_file(self, path: str) -> bool:
        """Check if a path exists and is a regular file."""
        result = self.stat(path)
        return result is not None and stat.S_ISREG(result.st_mode)

    def is_dir(self, path: str) -> bool:
        """Check if a path exists and is a directory."""
        result = self.stat(path)
        return result is not None and stat.S_ISDIR(result.st_mode)

    def read_json(self, path: str) -> Any:
        """
        Read and parse a JSON file.

        Raises:
            ValueError: If the file is not valid JSON.
            OSError: If the file cannot be read.
        """
        with self._lock:
            cached = self._json.get(path, _MISSING)
            if cached is not _MISSING:
                self._hits += 1
                return cached
        with open(path, "r", encoding="utf-8") as handle:
            data = json.load(handle)
        logger.debug(f"Cached manifest {path}")
        with self._lock:
            self._misses += 1
            return self._json.setdefault(path, data)

    def stats(self) -> Dict[str, int]:
        """Return cache counters."""
        with self._lock:
            return {
                "hits": self._hits,
                "misses": self._misses,
                "entries": len(self._stats) + len(self._json),
            }

    def __repr__(self) -> str:
        counters = self.stats()
        return f"FileSystemCache(entries={counters['entries']}, hits={counters['hits']}, misses={counters['misses']})"
