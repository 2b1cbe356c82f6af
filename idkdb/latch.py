"""Reader-writer latch with an upgradable read mode."""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager


class Latch:
    """A reader-writer lock with shared, upgradable and exclusive modes.

    Any number of shared holders may coexist with at most one upgradable
    holder; an exclusive holder excludes everyone else.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._readers = 0
        self._writer = False
        self._upgradable = False

    def _is_free(self) -> bool:
        return not (self._writer or self._readers or self._upgradable)

    def rlock(self) -> None:
        with self._cond:
            self._cond.wait_for(lambda: not self._writer)
            self._readers += 1

    def runlock(self) -> None:
        with self._cond:
            if self._readers == 0:
                raise RuntimeError("latch is not read-locked")
            self._readers -= 1
            self._cond.notify_all()

    def wlock(self) -> None:
        with self._cond:
            self._cond.wait_for(self._is_free)
            self._writer = True

    def try_wlock(self) -> bool:
        with self._cond:
            if not self._is_free():
                return False
            self._writer = True
            return True

    def wunlock(self) -> None:
        with self._cond:
            if not self._writer:
                raise RuntimeError("latch is not write-locked")
            self._writer = False
            self._cond.notify_all()

    @contextmanager
    def read_guard(self) -> Iterator[None]:
        """Hold the latch in shared mode for the duration of a block."""
        self.rlock()
        try:
            yield
        finally:
            self.runlock()

    def upgradable_rlock(self) -> None:
        with self._cond:
            self._cond.wait_for(lambda: not (self._writer or self._upgradable))
            self._upgradable = True

    def upgrade_write(self) -> None:
        """Turn a held upgradable lock into an exclusive one."""
        with self._cond:
            if not self._upgradable:
                raise RuntimeError("latch is not held in upgradable mode")
            self._cond.wait_for(lambda: self._readers == 0)
            self._upgradable = False
            self._writer = True

    def release_upgradable(self) -> None:
        with self._cond:
            if not self._upgradable:
                raise RuntimeError("latch is not held in upgradable mode")
            self._upgradable = False
            self._cond.notify_all()

    def is_locked(self) -> bool:
        with self._cond:
            return not self._is_free()

    @property
    def is_write_locked(self) -> bool:
        with self._cond:
            return self._writer