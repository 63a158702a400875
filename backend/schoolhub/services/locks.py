from __future__ import annotations

from contextlib import ExitStack, contextmanager
from threading import Lock
from typing import Iterable, Iterator

LockKey = tuple[str, str, str]


class TeacherDayLocks:
    """Serializes admission decisions per (teacher, day, academic year) in this process.

    Entries are reference counted and dropped once no caller holds or waits on them.
    """

    def __init__(self) -> None:
        self._locks: dict[LockKey, list] = {}
        self._guard = Lock()

    def _acquire_entry(self, key: LockKey) -> Lock:
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = [Lock(), 0]
                self._locks[key] = entry
            entry[1] += 1
            return entry[0]

    def _release_entry(self, key: LockKey) -> None:
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                return
            entry[1] -= 1
            if entry[1] <= 0:
                del self._locks[key]

    @contextmanager
    def hold(self, teacher_id: str, day: str, academic_year: str) -> Iterator[None]:
        key = (teacher_id, day, academic_year)
        lock = self._acquire_entry(key)
        try:
            with lock:
                yield
        finally:
            self._release_entry(key)

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    def clear(self) -> None:
        with self._guard:
            self._locks.clear()


_locks = TeacherDayLocks()


def teacher_day_lock(teacher_id: str, day: str, academic_year: str):
    return _locks.hold(teacher_id, day, academic_year)


@contextmanager
def teacher_day_locks(keys: Iterable[LockKey]) -> Iterator[None]:
    # Sorted acquisition keeps two multi-teacher writers from deadlocking.
    with ExitStack() as stack:
        for teacher_id, day, academic_year in sorted(set(keys)):
            stack.enter_context(_locks.hold(teacher_id, day, academic_year))
        yield


def held_lock_count() -> int:
    return len(_locks)


def clear_teacher_day_locks() -> None:
    _locks.clear()
