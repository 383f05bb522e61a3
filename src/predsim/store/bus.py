"""Change notification bus - subscribe(listener) -> unsubscribe."""

from __future__ import annotations

import itertools
import threading
from collections.abc import Callable

import structlog

log = structlog.get_logger(__name__)

Listener = Callable[[], None]
Unsubscribe = Callable[[], None]


class ChangeBus:
    """Fires after every committed mutation. Listeners receive no delta and re-read state.

    A listener that raises is logged and skipped; the remaining listeners still run.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._handles = itertools.count(1)
        self._listeners: dict[int, Listener] = {}

    def subscribe(self, listener: Listener) -> Unsubscribe:
        with self._lock:
            handle = next(self._handles)
            self._listeners[handle] = listener

        def unsubscribe() -> None:
            with self._lock:
                self._listeners.pop(handle, None)

        return unsubscribe

    def publish(self) -> None:
        with self._lock:
            snapshot = list(self._listeners.values())
        for listener in snapshot:
            try:
                listener()
            except Exception:
                log.exception("listener_failed", listener=repr(listener))

    def __len__(self) -> int:
        with self._lock:
            return len(self._listeners)
