from __future__ import annotations

from termiplay.api.models import (
    CellView,
    EventListResponse,
    EventView,
    MergeGridView,
    MinefieldView,
    SessionState,
)
from termiplay.core.merge_grid import MergeGridEngine
from termiplay.session_store import GameSession


def session_state(session: GameSession) -> SessionState:
    """Build the public view of a session from its engine snapshot."""

    state = SessionState(
        session_id=session.session_id,
        game=session.kind,
        phase=session.phase,
        created_at=session.created_at,
        last_updated_at=session.last_updated_at,
        seed=session.seed,
    )

    if isinstance(session.engine, MergeGridEngine):
        snap = session.engine.snapshot()
        state.merge_grid = MergeGridView(
            grid=[list(row) for row in snap.grid],
            score=snap.score,
            won=snap.won,
            game_over=snap.game_over,
            can_move=session.engine.can_move(),
        )
        return state

    snap = session.engine.snapshot()
    state.minefield = MinefieldView(
        difficulty=session.difficulty,
        width=snap.width,
        height=snap.height,
        mine_count=snap.mine_count,
        flags=snap.flags,
        mines_remaining=snap.mines_remaining,
        revealed=snap.revealed,
        won=snap.won,
        game_over=snap.game_over,
        elapsed_seconds=snap.elapsed.total_seconds(),
        detonated=snap.detonated,
        cells=[[CellView(state=c.state, mine=c.mine, adjacent=c.adjacent) for c in row] for row in snap.cells],
    )
    return state


def session_events(session: GameSession) -> EventListResponse:
    return EventListResponse(
        session_id=session.session_id,
        events=[EventView(type=e.type, seq=e.seq, payload=e.payload, ts=e.ts) for e in session.history],
    )
