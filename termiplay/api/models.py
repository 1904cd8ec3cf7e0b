from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field

from termiplay.core.minefield import CellState, Difficulty


class GameKind(StrEnum):
    merge_grid = "2048"
    minesweeper = "minesweeper"


class SessionPhase(StrEnum):
    playing = "playing"
    finished = "finished"


class SessionCreateRequest(BaseModel):
    game: GameKind
    # Only used by minesweeper.
    difficulty: Difficulty = Difficulty.easy
    # Fix the random source for reproducible games.
    seed: int | None = Field(default=None, ge=0)


class MoveRequest(BaseModel):
    # Direction name or key alias (w/a/s/d, h/j/k/l).
    direction: str = Field(..., min_length=1, max_length=16)


class CellRequest(BaseModel):
    x: int
    y: int


class RestartRequest(BaseModel):
    # Minesweeper only; keeps the current difficulty when omitted.
    difficulty: Difficulty | None = None


class MergeGridView(BaseModel):
    grid: list[list[int]]
    score: int
    won: bool
    game_over: bool
    can_move: bool


class CellView(BaseModel):
    state: CellState
    # Secret until the cell is revealed or the game is over.
    mine: bool | None = None
    adjacent: int | None = None


class MinefieldView(BaseModel):
    difficulty: Difficulty | None = None
    width: int
    height: int
    mine_count: int
    flags: int
    mines_remaining: int
    revealed: int
    won: bool
    game_over: bool
    elapsed_seconds: float
    detonated: tuple[int, int] | None = None
    cells: list[list[CellView]]


class SessionState(BaseModel):
    session_id: UUID
    game: GameKind
    phase: SessionPhase
    created_at: datetime
    last_updated_at: datetime

    # For reproducibility/debugging.
    seed: int

    merge_grid: MergeGridView | None = None
    minefield: MinefieldView | None = None


class SessionListResponse(BaseModel):
    sessions: list[SessionState]


class EventView(BaseModel):
    type: str
    seq: int
    payload: dict[str, Any]
    ts: datetime


class EventListResponse(BaseModel):
    session_id: UUID
    events: list[EventView]
