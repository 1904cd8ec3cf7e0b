from __future__ import annotations

from termiplay.session_store import SessionStore

_STORE: SessionStore | None = None


def get_store() -> SessionStore:
    """Process-wide session store, created on first use."""

    global _STORE
    if _STORE is None:
        _STORE = SessionStore()
    return _STORE
