from __future__ import annotations

import random

import pytest

from termiplay.actions import dispatch_action
from termiplay.api.models import GameKind, SessionPhase
from termiplay.core.merge_grid import MergeGridEngine
from termiplay.core.minefield import Difficulty, MinefieldEngine
from termiplay.infra.settings import Settings
from termiplay.session_store import SessionNotFoundError, SessionStore


def _two_rooms() -> MinefieldEngine:
    return MinefieldEngine.from_layout(width=5, height=3, mines=[(2, 0), (2, 2)])


def test_move_records_events_and_accepts_key_aliases(store: SessionStore) -> None:
    session = store.create_session(kind=GameKind.merge_grid, seed=3)
    grid = [[0] * 4 for _ in range(4)]
    grid[0] = [2, 2, 0, 0]
    session.engine = MergeGridEngine.from_grid(grid, rng=random.Random(1))

    result = dispatch_action(store=store, session_id=session.session_id, action="move", payload={"direction": "a"})

    assert result.changed is True
    assert [e.type for e in result.events] == ["MOVE_APPLIED"]
    assert result.events[0].payload == {"direction": "left", "score": 4, "gained": 4}
    assert session.history[-1] is result.events[-1]


def test_unknown_direction_changes_nothing(store: SessionStore) -> None:
    session = store.create_session(kind=GameKind.merge_grid, seed=3)
    before = session.merge_grid.snapshot()

    result = dispatch_action(store=store, session_id=session.session_id, action="move", payload={"direction": "sideways"})

    assert result.changed is False
    assert result.events == []
    assert session.merge_grid.snapshot() == before


def test_merge_grid_game_over_finishes_session(store: SessionStore) -> None:
    session = store.create_session(kind=GameKind.merge_grid, seed=3)
    session.engine = MergeGridEngine.from_grid(
        [
            [2, 4, 2, 4],
            [4, 2, 4, 2],
            [2, 4, 2, 8],
            [0, 8, 16, 32],
        ],
        rng=random.Random(1),
    )

    result = dispatch_action(store=store, session_id=session.session_id, action="move", payload={"direction": "left"})

    assert [e.type for e in result.events] == ["MOVE_APPLIED", "GAME_OVER"]
    assert session.phase == SessionPhase.finished

    with pytest.raises(ValueError, match="not allowed in phase 'finished'"):
        dispatch_action(store=store, session_id=session.session_id, action="move", payload={"direction": "up"})

    restarted = dispatch_action(store=store, session_id=session.session_id, action="restart", payload={})
    assert [e.type for e in restarted.events] == ["GAME_RESTARTED"]
    assert session.phase == SessionPhase.playing
    assert session.merge_grid.score == 0


def test_reaching_2048_keeps_session_playing(store: SessionStore) -> None:
    session = store.create_session(kind=GameKind.merge_grid, seed=3)
    grid = [[0] * 4 for _ in range(4)]
    grid[0] = [1024, 1024, 0, 0]
    session.engine = MergeGridEngine.from_grid(grid, rng=random.Random(1))

    result = dispatch_action(store=store, session_id=session.session_id, action="move", payload={"direction": "left"})

    assert [e.type for e in result.events] == ["MOVE_APPLIED", "GAME_WON"]
    assert session.phase == SessionPhase.playing


def test_reveal_flag_and_win(store: SessionStore) -> None:
    session = store.create_session(kind=GameKind.minesweeper, seed=3)
    session.engine = _two_rooms()
    sid = session.session_id

    flagged = dispatch_action(store=store, session_id=sid, action="flag", payload={"x": 2, "y": 0})
    assert flagged.events[0].type == "FLAG_TOGGLED"
    assert flagged.events[0].payload["state"] == "flagged"
    assert flagged.events[0].payload["flags"] == 1

    opened = dispatch_action(store=store, session_id=sid, action="reveal", payload={"x": 0, "y": 0})
    assert opened.events[0].type == "CELL_REVEALED"
    assert opened.events[0].payload["opened"] == 6

    again = dispatch_action(store=store, session_id=sid, action="reveal", payload={"x": 0, "y": 0})
    assert again.changed is False

    dispatch_action(store=store, session_id=sid, action="reveal", payload={"x": 4, "y": 1})
    final = dispatch_action(store=store, session_id=sid, action="reveal", payload={"x": 2, "y": 1})
    assert [e.type for e in final.events] == ["CELL_REVEALED", "GAME_WON", "GAME_OVER"]
    assert session.phase == SessionPhase.finished


def test_mine_hit_finishes_session(store: SessionStore) -> None:
    session = store.create_session(kind=GameKind.minesweeper, seed=3)
    session.engine = _two_rooms()

    result = dispatch_action(store=store, session_id=session.session_id, action="reveal", payload={"x": 2, "y": 2})

    assert [e.type for e in result.events] == ["MINE_TRIGGERED", "GAME_OVER"]
    assert session.phase == SessionPhase.finished
    assert session.minefield.won is False


def test_minefield_restart_builds_a_new_board(store: SessionStore) -> None:
    session = store.create_session(kind=GameKind.minesweeper, difficulty=Difficulty.easy, seed=3)
    old_engine = session.engine

    result = dispatch_action(
        store=store,
        session_id=session.session_id,
        action="restart",
        payload={"difficulty": "hard"},
    )

    assert result.changed is True
    assert session.engine is not old_engine
    assert session.difficulty == Difficulty.hard
    assert (session.minefield.width, session.minefield.height, session.minefield.mine_count) == (30, 16, 99)
    assert result.events[0].payload["seed"] == session.seed

    with pytest.raises(ValueError, match="Unknown difficulty"):
        dispatch_action(store=store, session_id=session.session_id, action="restart", payload={"difficulty": "insane"})


@pytest.mark.parametrize("payload", [{}, {"x": "1", "y": 0}, {"x": True, "y": 0}, {"x": 1.5, "y": 0}])
def test_reveal_requires_integer_coordinates(store: SessionStore, payload: dict) -> None:
    session = store.create_session(kind=GameKind.minesweeper, seed=3)
    with pytest.raises(ValueError, match="must be an integer"):
        dispatch_action(store=store, session_id=session.session_id, action="reveal", payload=payload)


def test_wrong_game_and_unknown_session(store: SessionStore) -> None:
    session = store.create_session(kind=GameKind.merge_grid, seed=3)
    with pytest.raises(ValueError, match="not available"):
        dispatch_action(store=store, session_id=session.session_id, action="flag", payload={"x": 0, "y": 0})

    store.delete(session.session_id)
    with pytest.raises(SessionNotFoundError):
        dispatch_action(store=store, session_id=session.session_id, action="move", payload={"direction": "up"})


def test_busy_session_is_rejected() -> None:
    store = SessionStore(settings=Settings(lock_timeout_ms=10))
    session = store.create_session(kind=GameKind.merge_grid, seed=3)

    session.lock.acquire()
    try:
        with pytest.raises(ValueError, match="Game is busy"):
            dispatch_action(store=store, session_id=session.session_id, action="move", payload={"direction": "up"})
    finally:
        session.lock.release()
