from __future__ import annotations

import logging
from threading import RLock
from typing import Any, Callable, List

log = logging.getLogger(__name__)

Listener = Callable[[Any], None]


class Notifier:
    """
    Synchronous fan-out of engine notifications to subscribed observers.

    Notifications describe operations that have already been applied, so a
    failing observer is logged and skipped; it never fails the operation.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def emit(self, notification: Any) -> None:
        log.debug("notify %s", notification)
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(notification)
            except Exception:
                log.exception("Listener %r failed on %s", listener, notification)
