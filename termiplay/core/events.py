from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Literal

EventType = Literal[
    "SESSION_STARTED",
    "MOVE_APPLIED",
    "CELL_REVEALED",
    "FLAG_TOGGLED",
    "MINE_TRIGGERED",
    "GAME_WON",
    "GAME_OVER",
    "GAME_RESTARTED",
]


@dataclass(frozen=True, slots=True)
class GameEvent:
    type: EventType
    seq: int
    payload: dict[str, Any]
    ts: datetime

    @staticmethod
    def now(*, type: EventType, seq: int, payload: dict[str, Any]) -> "GameEvent":
        return GameEvent(type=type, seq=seq, payload=payload, ts=datetime.now(timezone.utc))
