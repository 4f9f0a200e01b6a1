from __future__ import annotations

from contextlib import ExitStack, contextmanager
from threading import Lock, RLock
from typing import Any, Dict, Hashable, Iterable, Iterator, List


class KeyedLocks:
    """
    One reentrant mutex per key. An entry lives only while some thread holds
    or waits on it, so arbitrary keys do not accumulate.
    """

    def __init__(self) -> None:
        self._guard = Lock()
        self._locks: Dict[Hashable, List[Any]] = {}  # key -> [RLock, users]

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    def _checkout(self, key: Hashable):
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = self._locks[key] = [RLock(), 0]
            entry[1] += 1
            return entry[0]

    def _checkin(self, key: Hashable) -> None:
        with self._guard:
            entry = self._locks[key]
            entry[1] -= 1
            if entry[1] == 0:
                del self._locks[key]

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        lock = self._checkout(key)
        try:
            with lock:
                yield
        finally:
            self._checkin(key)

    @contextmanager
    def hold_all(self, keys: Iterable[Hashable]) -> Iterator[None]:
        # Sorted acquisition order keeps multi-key holders from deadlocking.
        with ExitStack() as stack:
            for key in sorted(set(keys), key=repr):
                stack.enter_context(self.hold(key))
            yield
