from __future__ import annotations

import os
from dataclasses import dataclass


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer (got {raw!r})") from e


@dataclass(frozen=True, slots=True)
class Settings:
    log_level: str = "INFO"
    # Upper bound on concurrently held sessions (all in memory).
    max_sessions: int = 1000
    # How long an action waits for another action on the same session.
    lock_timeout_ms: int = 5_000
    # Events kept per session for GET /sessions/{id}/events.
    event_history: int = 200


def get_settings() -> Settings:
    return Settings(
        log_level=os.environ.get("TERMIPLAY_LOG_LEVEL", "INFO").upper(),
        max_sessions=_env_int("TERMIPLAY_MAX_SESSIONS", 1000),
        lock_timeout_ms=_env_int("TERMIPLAY_LOCK_TIMEOUT_MS", 5_000),
        event_history=_env_int("TERMIPLAY_EVENT_HISTORY", 200),
    )
