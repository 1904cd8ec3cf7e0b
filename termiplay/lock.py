from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager


@contextmanager
def session_lock(*, lock: threading.Lock, session_id: str, timeout_ms: int = 5_000) -> Iterator[None]:
    """Serialize engine calls for one session.

    Engines are not thread-safe; every mutating call goes through here.
    """

    acquired = lock.acquire(timeout=timeout_ms / 1000)
    if not acquired:
        raise ValueError(f"Game is busy (session {session_id})")
    try:
        yield
    finally:
        lock.release()
