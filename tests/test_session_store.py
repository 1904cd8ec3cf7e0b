from __future__ import annotations

import pytest

from termiplay.api.models import GameKind
from termiplay.core.merge_grid import MergeGridEngine
from termiplay.core.minefield import Difficulty, MinefieldEngine
from termiplay.infra.settings import Settings
from termiplay.session_store import SessionNotFoundError, SessionStore


def test_create_sessions(store: SessionStore) -> None:
    grid = store.create_session(kind=GameKind.merge_grid, difficulty=Difficulty.hard, seed=10)
    assert isinstance(grid.engine, MergeGridEngine)
    # difficulty only applies to minesweeper
    assert grid.difficulty is None
    assert grid.seed == 10

    field = store.create_session(kind=GameKind.minesweeper)
    assert isinstance(field.engine, MinefieldEngine)
    assert field.difficulty == Difficulty.easy
    assert 1 <= field.seed < 2**31

    assert [e.type for e in field.history] == ["SESSION_STARTED"]
    assert field.history[0].payload == {"game": "minesweeper", "seed": field.seed, "difficulty": "easy"}


def test_engine_accessors_check_the_game(store: SessionStore) -> None:
    session = store.create_session(kind=GameKind.merge_grid)
    assert session.merge_grid is session.engine
    with pytest.raises(ValueError):
        session.minefield


def test_require_list_delete(store: SessionStore) -> None:
    a = store.create_session(kind=GameKind.merge_grid)
    b = store.create_session(kind=GameKind.minesweeper)

    assert store.require(a.session_id) is a
    assert {s.session_id for s in store.list_sessions()} == {a.session_id, b.session_id}

    store.delete(a.session_id)
    assert store.get(a.session_id) is None
    with pytest.raises(SessionNotFoundError):
        store.require(a.session_id)
    with pytest.raises(SessionNotFoundError):
        store.delete(a.session_id)

    store.clear()
    assert store.list_sessions() == []


def test_session_limit_and_history_bound() -> None:
    store = SessionStore(settings=Settings(max_sessions=1, event_history=2))
    session = store.create_session(kind=GameKind.merge_grid)
    with pytest.raises(ValueError, match="At most 1 sessions"):
        store.create_session(kind=GameKind.merge_grid)

    for _ in range(5):
        session.record(type="GAME_RESTARTED")
    assert len(session.history) == 2
    assert [e.seq for e in session.history] == [5, 6]
