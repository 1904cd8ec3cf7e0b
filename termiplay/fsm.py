from __future__ import annotations

from typing import TYPE_CHECKING

from statemachine import State, StateMachine

from termiplay.api.models import SessionPhase

if TYPE_CHECKING:
    from termiplay.session_store import GameSession


class SessionFSM(StateMachine):
    """FSM wrapper around a GameSession's phase.

    - playing -> finished once the engine reports game over
    - restart goes back to playing from either phase

    Engines decide when a game is over; the FSM only guards transitions.
    """

    playing = State(SessionPhase.playing.value, value=SessionPhase.playing.value, initial=True)
    finished = State(SessionPhase.finished.value, value=SessionPhase.finished.value)

    finish = playing.to(finished)
    restart = finished.to(playing) | playing.to.itself()

    def __init__(self, session: "GameSession"):
        self.session = session
        super().__init__(start_value=session.phase.value)

    @property
    def accepts_moves(self) -> bool:
        return self.current_state.value == SessionPhase.playing.value

    def sync_phase_to_model(self) -> None:
        self.session.phase = SessionPhase(str(self.current_state.value))
