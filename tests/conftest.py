from __future__ import annotations

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient

from termiplay.api.deps import get_store
from termiplay.infra.settings import Settings
from termiplay.main import app
from termiplay.session_store import SessionStore


@pytest.fixture()
def store() -> SessionStore:
    """Fresh in-memory store with default settings (independent of env vars)."""

    return SessionStore(settings=Settings())


@pytest.fixture()
def client_and_store(store: SessionStore) -> Generator[tuple[TestClient, SessionStore], None, None]:
    """FastAPI TestClient wired to the `store` fixture."""

    def _override() -> SessionStore:
        return store

    app.dependency_overrides[get_store] = _override
    with TestClient(app) as c:
        yield c, store
    app.dependency_overrides.clear()


@pytest.fixture()
def client(client_and_store: tuple[TestClient, SessionStore]) -> TestClient:
    return client_and_store[0]
