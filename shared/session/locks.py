"""Per-session locks serializing read-modify-rewrite of conversation logs."""

from __future__ import annotations

import threading
import weakref
from contextlib import contextmanager
from typing import Iterator


class SessionLocks:
    """Hands out one re-entrant lock per session id.

    Turns on different sessions never contend; turns on the same session run
    one after another. A lock lives only while someone holds a reference to
    it, so idle sessions do not accumulate locks.
    """

    def __init__(self):
        self._locks: "weakref.WeakValueDictionary[str, threading.RLock]" = weakref.WeakValueDictionary()
        self._guard = threading.Lock()

    def get(self, session_id: str) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(session_id)
            if lock is None:
                lock = threading.RLock()
                self._locks[session_id] = lock
            return lock

    @contextmanager
    def hold(self, session_id: str) -> Iterator[None]:
        lock = self.get(session_id)
        with lock:
            yield

    def __len__(self) -> int:
        return len(self._locks)
