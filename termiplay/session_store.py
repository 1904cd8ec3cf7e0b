from __future__ import annotations

import logging
import random
import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import UUID, uuid4

from termiplay.api.models import GameKind, SessionPhase
from termiplay.core.events import EventType, GameEvent
from termiplay.core.merge_grid import MergeGridEngine
from termiplay.core.minefield import Difficulty, MinefieldEngine
from termiplay.infra.settings import Settings, get_settings

logger = logging.getLogger(__name__)

Engine = MergeGridEngine | MinefieldEngine


class SessionNotFoundError(LookupError):
    pass


def _now() -> datetime:
    return datetime.now(tz=UTC)


def new_seed() -> int:
    return random.SystemRandom().randint(1, 2**31 - 1)


def build_engine(*, kind: GameKind, seed: int, difficulty: Difficulty | None = None) -> Engine:
    """Construct a fresh engine with its own random source seeded from `seed`."""

    rng = random.Random(seed)
    if kind == GameKind.merge_grid:
        return MergeGridEngine(rng=rng)
    return MinefieldEngine(difficulty or Difficulty.easy, rng=rng)


@dataclass(slots=True)
class GameSession:
    session_id: UUID
    kind: GameKind
    seed: int
    engine: Engine
    created_at: datetime
    last_updated_at: datetime
    difficulty: Difficulty | None = None
    phase: SessionPhase = SessionPhase.playing

    history: deque[GameEvent] = field(default_factory=lambda: deque(maxlen=200))
    next_seq: int = 1
    lock: threading.Lock = field(default_factory=threading.Lock)

    @property
    def merge_grid(self) -> MergeGridEngine:
        if not isinstance(self.engine, MergeGridEngine):
            raise ValueError("Session is not a 2048 game")
        return self.engine

    @property
    def minefield(self) -> MinefieldEngine:
        if not isinstance(self.engine, MinefieldEngine):
            raise ValueError("Session is not a minesweeper game")
        return self.engine

    def record(self, *, type: EventType, payload: dict[str, object] | None = None) -> GameEvent:
        event = GameEvent.now(type=type, seq=self.next_seq, payload=dict(payload or {}))
        self.next_seq += 1
        self.history.append(event)
        self.last_updated_at = event.ts
        return event


class SessionStore:
    """In-process registry of live game sessions.

    One engine per session; nothing survives a restart of the process.
    """

    def __init__(self, *, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()
        self._sessions: dict[UUID, GameSession] = {}
        self._lock = threading.Lock()

    def create_session(
        self,
        *,
        kind: GameKind,
        difficulty: Difficulty | None = None,
        seed: int | None = None,
    ) -> GameSession:
        if seed is None:
            seed = new_seed()
        if kind == GameKind.minesweeper:
            difficulty = difficulty or Difficulty.easy
        else:
            difficulty = None

        now = _now()
        session = GameSession(
            session_id=uuid4(),
            kind=kind,
            seed=seed,
            engine=build_engine(kind=kind, seed=seed, difficulty=difficulty),
            created_at=now,
            last_updated_at=now,
            difficulty=difficulty,
            history=deque(maxlen=self.settings.event_history),
        )
        session.record(
            type="SESSION_STARTED",
            payload={"game": kind.value, "seed": seed, "difficulty": difficulty.value if difficulty else None},
        )

        with self._lock:
            if len(self._sessions) >= self.settings.max_sessions:
                raise ValueError(f"At most {self.settings.max_sessions} sessions allowed")
            self._sessions[session.session_id] = session

        logger.info("session %s started (game=%s seed=%d)", session.session_id, kind.value, seed)
        return session

    def get(self, session_id: UUID) -> GameSession | None:
        with self._lock:
            return self._sessions.get(session_id)

    def require(self, session_id: UUID) -> GameSession:
        session = self.get(session_id)
        if session is None:
            raise SessionNotFoundError("Session not found")
        return session

    def list_sessions(self) -> list[GameSession]:
        with self._lock:
            out = list(self._sessions.values())
        out.sort(key=lambda s: s.created_at, reverse=True)
        return out

    def delete(self, session_id: UUID) -> None:
        with self._lock:
            removed = self._sessions.pop(session_id, None)
        if removed is None:
            raise SessionNotFoundError("Session not found")
        logger.info("session %s closed", session_id)

    def clear(self) -> None:
        with self._lock:
            self._sessions.clear()
