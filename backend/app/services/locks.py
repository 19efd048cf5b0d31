from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from threading import Lock


class ClassSectionLockRegistry:
    """Process-local mutexes keyed by class-section id.

    Serializes regeneration and slot edits for one class-section so a delete +
    rebuild never interleaves with another write to the same week. Separate
    class-sections get separate locks and never wait on each other.
    """

    def __init__(self) -> None:
        self._locks: dict[str, Lock] = {}
        self._guard = Lock()

    def _lock_for(self, class_section_id: str) -> Lock:
        with self._guard:
            lock = self._locks.get(class_section_id)
            if lock is None:
                lock = Lock()
                self._locks[class_section_id] = lock
            return lock

    @contextmanager
    def hold(self, class_section_id: str) -> Iterator[None]:
        lock = self._lock_for(class_section_id)
        with lock:
            yield

    def clear(self) -> None:
        with self._guard:
            self._locks.clear()


class_section_locks = ClassSectionLockRegistry()
