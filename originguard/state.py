"""State container used by the reputation controller.

The controller only needs "read current state", "replace state" and
subscriber notification. Hosts that persist state across restarts provide
their own StateStore; InMemoryStateStore covers single-process use and tests.
"""

from __future__ import annotations

import copy
import logging
import threading
from typing import Any, Callable, Protocol

logger = logging.getLogger(__name__)

StateListener = Callable[[dict], None]


class StateStore(Protocol):
    """State container interface."""

    def get_state(self) -> dict:
        raise NotImplementedError

    def update(self, patch: dict[str, Any]) -> None:
        raise NotImplementedError

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        raise NotImplementedError


class InMemoryStateStore:
    """Thread-safe in-memory state blob with patch notification."""

    def __init__(self, initial: dict[str, Any] | None = None):
        self._lock = threading.Lock()
        self._state: dict[str, Any] = dict(initial or {})
        self._listeners: list[StateListener] = []

    def get_state(self) -> dict:
        with self._lock:
            return copy.deepcopy(self._state)

    def update(self, patch: dict[str, Any]) -> None:
        """Merge a shallow patch and notify subscribers with the new state."""
        with self._lock:
            self._state = {**self._state, **patch}
            snapshot = copy.deepcopy(self._state)
            listeners = list(self._listeners)

        for listener in listeners:
            try:
                listener(snapshot)
            except Exception as exc:
                logger.warning("State listener %r failed: %s", listener, exc)

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a listener; returns a callable that unsubscribes it."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe
