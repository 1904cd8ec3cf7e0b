from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from uuid import UUID

from fastapi import WebSocket

from termiplay.actions import ActionResult

logger = logging.getLogger(__name__)


class SessionWebSocketHub:
    """Pushes session updates to connected viewers.

    Connections are grouped by session id. After each applied action the
    routes call `notify(result)`; deleting a session calls `close_session`.
    """

    def __init__(self) -> None:
        self._by_session: dict[UUID, set[WebSocket]] = defaultdict(set)
        self._lock = asyncio.Lock()

    async def connect(self, session_id: UUID, websocket: WebSocket) -> None:
        await websocket.accept()
        async with self._lock:
            self._by_session[session_id].add(websocket)

    async def disconnect(self, session_id: UUID, websocket: WebSocket) -> None:
        async with self._lock:
            conns = self._by_session.get(session_id)
            if not conns:
                return
            conns.discard(websocket)
            if not conns:
                self._by_session.pop(session_id, None)

    def connection_count(self, session_id: UUID) -> int:
        return len(self._by_session.get(session_id, ()))

    async def notify(self, result: ActionResult) -> None:
        session = result.session
        await self.broadcast(
            session.session_id,
            {
                "type": "session_updated",
                "session_id": str(session.session_id),
                "phase": session.phase.value,
                "changed": result.changed,
                "events": [e.type for e in result.events],
            },
        )

    async def broadcast(self, session_id: UUID, payload: dict[str, object]) -> None:
        async with self._lock:
            conns = list(self._by_session.get(session_id, ()))

        dead: list[WebSocket] = []
        for ws in conns:
            try:
                await ws.send_json(payload)
            except Exception:
                logger.debug("dropping websocket for session %s", session_id, exc_info=True)
                dead.append(ws)

        if dead:
            async with self._lock:
                for ws in dead:
                    self._by_session.get(session_id, set()).discard(ws)

    async def close_session(self, session_id: UUID) -> None:
        async with self._lock:
            conns = self._by_session.pop(session_id, set())

        for ws in conns:
            try:
                await ws.send_json({"type": "session_closed", "session_id": str(session_id)})
                await ws.close()
            except Exception:
                logger.debug("websocket already gone for session %s", session_id, exc_info=True)


hub = SessionWebSocketHub()
