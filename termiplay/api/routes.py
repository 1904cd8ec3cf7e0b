from __future__ import annotations

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Response, WebSocket, WebSocketDisconnect, status

from termiplay.actions import ACTION_NAMES, ActionName, ActionResult, dispatch_action
from termiplay.api.deps import get_store
from termiplay.api.models import (
    CellRequest,
    EventListResponse,
    MoveRequest,
    RestartRequest,
    SessionCreateRequest,
    SessionListResponse,
    SessionState,
)
from termiplay.api.views import session_events, session_state
from termiplay.session_store import SessionNotFoundError, SessionStore
from termiplay.websocket_hub import hub

router = APIRouter()


@router.websocket("/ws/sessions/{session_id}")
async def session_updates_ws(websocket: WebSocket, session_id: UUID) -> None:
    await hub.connect(session_id, websocket)

    try:
        # Keep the socket open; client can optionally send pings.
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        await hub.disconnect(session_id, websocket)
    except Exception:
        await hub.disconnect(session_id, websocket)
        raise


@router.get("/healthcheck")
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.post("/sessions", response_model=SessionState, status_code=status.HTTP_201_CREATED)
async def create_session_route(payload: SessionCreateRequest, store: SessionStore = Depends(get_store)) -> SessionState:
    try:
        session = store.create_session(kind=payload.game, difficulty=payload.difficulty, seed=payload.seed)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e
    return session_state(session)


@router.get("/sessions", response_model=SessionListResponse)
async def list_sessions_route(store: SessionStore = Depends(get_store)) -> SessionListResponse:
    return SessionListResponse(sessions=[session_state(s) for s in store.list_sessions()])


@router.get("/sessions/{session_id}", response_model=SessionState)
async def get_session_route(session_id: UUID, store: SessionStore = Depends(get_store)) -> SessionState:
    session = store.get(session_id)
    if session is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found")
    return session_state(session)


@router.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session_route(session_id: UUID, store: SessionStore = Depends(get_store)) -> Response:
    try:
        store.delete(session_id)
    except SessionNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e

    await hub.close_session(session_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/sessions/{session_id}/events", response_model=EventListResponse)
async def session_events_route(session_id: UUID, store: SessionStore = Depends(get_store)) -> EventListResponse:
    session = store.get(session_id)
    if session is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found")
    return session_events(session)


async def _run_action(
    *,
    store: SessionStore,
    session_id: UUID,
    action: ActionName,
    payload: dict[str, Any],
) -> SessionState:
    try:
        result: ActionResult = dispatch_action(store=store, session_id=session_id, action=action, payload=payload)
    except SessionNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e

    if result.changed:
        await hub.notify(result)
    return session_state(result.session)


@router.post("/sessions/{session_id}/move", response_model=SessionState)
async def move_route(session_id: UUID, payload: MoveRequest, store: SessionStore = Depends(get_store)) -> SessionState:
    return await _run_action(store=store, session_id=session_id, action="move", payload=payload.model_dump())


@router.post("/sessions/{session_id}/reveal", response_model=SessionState)
async def reveal_route(session_id: UUID, payload: CellRequest, store: SessionStore = Depends(get_store)) -> SessionState:
    return await _run_action(store=store, session_id=session_id, action="reveal", payload=payload.model_dump())


@router.post("/sessions/{session_id}/flag", response_model=SessionState)
async def flag_route(session_id: UUID, payload: CellRequest, store: SessionStore = Depends(get_store)) -> SessionState:
    return await _run_action(store=store, session_id=session_id, action="flag", payload=payload.model_dump())


@router.post("/sessions/{session_id}/restart", response_model=SessionState)
async def restart_route(
    session_id: UUID,
    payload: RestartRequest | None = None,
    store: SessionStore = Depends(get_store),
) -> SessionState:
    body = payload.model_dump(mode="json", exclude_none=True) if payload is not None else {}
    return await _run_action(store=store, session_id=session_id, action="restart", payload=body)


@router.post("/sessions/{session_id}/actions/{action}", response_model=SessionState)
async def generic_action_route(
    session_id: UUID,
    action: str,
    body: dict[str, Any],
    store: SessionStore = Depends(get_store),
) -> SessionState:
    if action not in ACTION_NAMES:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=f"Unknown action: {action}")
    act: ActionName = action  # type: ignore[assignment]
    return await _run_action(store=store, session_id=session_id, action=act, payload=body)
