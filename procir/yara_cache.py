"""Cache of scan results keyed by file identity and rule set."""

from __future__ import annotations

import os
import threading
from typing import Any, Optional, Sequence


class ScanCache:
    """Remembers scan results so unchanged files are not scanned twice."""

    def __init__(self, rule_hash: str) -> None:
        self._rule_hash = rule_hash
        self._entries: dict[str, list[Any]] = {}
        self._lock = threading.Lock()

    def _key(self, path: str) -> str:
        try:
            st = os.stat(path)
        except OSError:
            return path
        return f"{path}|{st.st_size}|{st.st_mtime_ns}|{self._rule_hash}"

    def get(self, path: str) -> Optional[list[Any]]:
        """Return the cached hits for a file, or None if it is not cached."""
        key = self._key(path)
        with self._lock:
            hits = self._entries.get(key)
        return None if hits is None else list(hits)

    def set(self, path: str, hits: Optional[Sequence[Any]]) -> None:
        """Store the hits for a file; an empty result is cached too."""
        key = self._key(path)
        with self._lock:
            self._entries[key] = list(hits or [])