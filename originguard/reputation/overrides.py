"""Session-scoped trust overrides."""

from __future__ import annotations

import threading
from typing import Iterable


class OverrideStore:
    """Origins the user explicitly trusted; grows monotonically, never expires.

    Entries must already be normalized. Thread-safe: an add is visible to
    subsequent lookups on any thread.
    """

    def __init__(self, origins: Iterable[str] = ()):
        self._lock = threading.Lock()
        self._origins: dict[str, None] = {}
        for origin in origins:
            if origin:
                self._origins[origin] = None

    def add(self, origin: str) -> bool:
        """Add an origin; returns False if it was already present."""
        with self._lock:
            if origin in self._origins:
                return False
            self._origins[origin] = None
            return True

    def __contains__(self, origin: object) -> bool:
        with self._lock:
            return origin in self._origins

    def __len__(self) -> int:
        with self._lock:
            return len(self._origins)

    def snapshot(self) -> list[str]:
        """Origins in insertion order."""
        with self._lock:
            return list(self._origins)
