from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Literal
from uuid import UUID

from termiplay.api.models import GameKind
from termiplay.core.events import GameEvent
from termiplay.core.merge_grid import parse_direction
from termiplay.core.minefield import Difficulty
from termiplay.fsm import SessionFSM
from termiplay.lock import session_lock
from termiplay.session_store import GameSession, SessionStore, build_engine, new_seed
from termiplay.validators import ValidationContext, pipeline_for_action

logger = logging.getLogger(__name__)

ActionName = Literal["move", "reveal", "flag", "restart"]
ACTION_NAMES: frozenset[str] = frozenset({"move", "reveal", "flag", "restart"})


@dataclass(frozen=True, slots=True)
class ActionResult:
    session: GameSession
    changed: bool
    events: list[GameEvent]


def _require_int(payload: Mapping[str, Any], key: str) -> int:
    value = payload.get(key)
    # bool is an int subclass; reject it explicitly.
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{key} must be an integer")
    return value


def _apply_move(session: GameSession, payload: Mapping[str, Any]) -> list[GameEvent]:
    raw = payload.get("direction")
    direction = parse_direction(raw)
    if direction is None:
        # Unknown directions are a no-op for the engine as well.
        return []

    engine = session.merge_grid
    score_before = engine.score
    won_before = engine.won
    if not engine.move(direction):
        return []

    events = [
        session.record(
            type="MOVE_APPLIED",
            payload={"direction": direction.value, "score": engine.score, "gained": engine.score - score_before},
        )
    ]
    if engine.won and not won_before:
        events.append(session.record(type="GAME_WON", payload={"score": engine.score}))
    if engine.game_over:
        events.append(session.record(type="GAME_OVER", payload={"score": engine.score, "won": engine.won}))
    return events


def _apply_reveal(session: GameSession, payload: Mapping[str, Any]) -> list[GameEvent]:
    x = _require_int(payload, "x")
    y = _require_int(payload, "y")

    engine = session.minefield
    revealed_before = engine.revealed
    if not engine.reveal(x, y):
        return []

    if engine.detonated is not None:
        return [
            session.record(type="MINE_TRIGGERED", payload={"x": x, "y": y}),
            session.record(type="GAME_OVER", payload={"won": False}),
        ]

    events = [
        session.record(
            type="CELL_REVEALED",
            payload={"x": x, "y": y, "opened": engine.revealed - revealed_before},
        )
    ]
    if engine.won:
        elapsed = engine.elapsed().total_seconds()
        events.append(session.record(type="GAME_WON", payload={"elapsed_seconds": elapsed}))
        events.append(session.record(type="GAME_OVER", payload={"won": True}))
    return events


def _apply_flag(session: GameSession, payload: Mapping[str, Any]) -> list[GameEvent]:
    x = _require_int(payload, "x")
    y = _require_int(payload, "y")

    engine = session.minefield
    if not engine.toggle_flag(x, y):
        return []

    state = engine.cell_state(x, y)
    return [session.record(type="FLAG_TOGGLED", payload={"x": x, "y": y, "state": state.value, "flags": engine.flags})]


def _apply_restart(session: GameSession, payload: Mapping[str, Any]) -> list[GameEvent]:
    if session.kind == GameKind.merge_grid:
        session.merge_grid.reset()
        return [session.record(type="GAME_RESTARTED", payload={"game": session.kind.value})]

    raw = payload.get("difficulty")
    if raw is not None:
        try:
            session.difficulty = Difficulty(raw)
        except ValueError as e:
            raise ValueError(f"Unknown difficulty: {raw}") from e

    # A minefield has no reset: a new game is a new board from a fresh seed.
    session.seed = new_seed()
    session.engine = build_engine(kind=session.kind, seed=session.seed, difficulty=session.difficulty)
    difficulty = session.difficulty.value if session.difficulty else None
    return [
        session.record(
            type="GAME_RESTARTED",
            payload={"game": session.kind.value, "seed": session.seed, "difficulty": difficulty},
        )
    ]


_HANDLERS = {
    "move": _apply_move,
    "reveal": _apply_reveal,
    "flag": _apply_flag,
    "restart": _apply_restart,
}


def dispatch_action(
    *,
    store: SessionStore,
    session_id: UUID,
    action: ActionName,
    payload: Mapping[str, Any],
) -> ActionResult:
    """Validate and apply one action to a session's engine.

    Calls for the same session are serialized; the phase machine follows the
    engine's game-over flag.
    """

    if action not in ACTION_NAMES:
        raise ValueError(f"Unknown action: {action}")

    session = store.require(session_id)
    with session_lock(lock=session.lock, session_id=str(session_id), timeout_ms=store.settings.lock_timeout_ms):
        pipeline_for_action(action).validate(
            ctx=ValidationContext(session_id=str(session_id), action=action),
            session=session,
        )

        events = _HANDLERS[action](session, payload)

        fsm = SessionFSM(session)
        if action == "restart":
            fsm.restart()
        elif session.engine.game_over and fsm.accepts_moves:
            fsm.finish()
            logger.info("session %s finished (won=%s)", session_id, session.engine.won)
        fsm.sync_phase_to_model()

    return ActionResult(session=session, changed=bool(events), events=events)
