"""Per-plan mutual exclusion for mutating journal operations."""

import threading
from collections.abc import Iterator
from contextlib import contextmanager


class PlanLockRegistry:
    """Hands out one re-entrant lock per plan id."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: dict[str, threading.RLock] = {}

    def lock_for(self, plan_id: str) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(plan_id)
            if lock is None:
                lock = threading.RLock()
                self._locks[plan_id] = lock
            return lock

    @contextmanager
    def hold(self, plan_id: str) -> Iterator[None]:
        """Serialize mutations of one plan; other plans proceed in parallel."""
        with self.lock_for(plan_id):
            yield

    def discard(self, plan_id: str) -> None:
        """Forget the lock of a deleted or finished plan."""
        with self._guard:
            self._locks.pop(plan_id, None)

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)
