from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from termiplay.api.models import GameKind, SessionPhase
from termiplay.session_store import GameSession


@dataclass(frozen=True, slots=True)
class ValidationContext:
    """Inputs available to validators."""

    session_id: str
    action: str


class ActionValidator(ABC):
    """A small, composable validation unit for an incoming action."""

    @abstractmethod
    def validate(self, *, ctx: ValidationContext, session: GameSession) -> None:
        raise NotImplementedError


@dataclass(frozen=True, slots=True)
class GameKindValidator(ActionValidator):
    """Validates that the action belongs to the session's game."""

    allowed_kinds: frozenset[GameKind]

    def validate(self, *, ctx: ValidationContext, session: GameSession) -> None:
        if session.kind not in self.allowed_kinds:
            allowed = ",".join(sorted(k.value for k in self.allowed_kinds))
            raise ValueError(f"Action '{ctx.action}' not available for game '{session.kind.value}' (allowed: {allowed})")


@dataclass(frozen=True, slots=True)
class PhaseValidator(ActionValidator):
    """Validates the session phase for a given action."""

    allowed_phases: frozenset[SessionPhase]

    def validate(self, *, ctx: ValidationContext, session: GameSession) -> None:
        if session.phase not in self.allowed_phases:
            raise ValueError(f"Action '{ctx.action}' not allowed in phase '{session.phase.value}' (game is over)")


@dataclass(frozen=True, slots=True)
class ValidatorPipeline:
    validators: tuple[ActionValidator, ...]

    def validate(self, *, ctx: ValidationContext, session: GameSession) -> None:
        for v in self.validators:
            v.validate(ctx=ctx, session=session)


_PLAYING_ONLY = PhaseValidator(allowed_phases=frozenset({SessionPhase.playing}))

DEFAULT_ACTION_PIPELINES: dict[str, ValidatorPipeline] = {
    "move": ValidatorPipeline(
        validators=(
            GameKindValidator(allowed_kinds=frozenset({GameKind.merge_grid})),
            _PLAYING_ONLY,
        )
    ),
    "reveal": ValidatorPipeline(
        validators=(
            GameKindValidator(allowed_kinds=frozenset({GameKind.minesweeper})),
            _PLAYING_ONLY,
        )
    ),
    "flag": ValidatorPipeline(
        validators=(
            GameKindValidator(allowed_kinds=frozenset({GameKind.minesweeper})),
            _PLAYING_ONLY,
        )
    ),
    # Restart is always allowed.
    "restart": ValidatorPipeline(
        validators=(GameKindValidator(allowed_kinds=frozenset(GameKind)),),
    ),
}


def pipeline_for_action(action: str) -> ValidatorPipeline:
    pipe = DEFAULT_ACTION_PIPELINES.get(action)
    if pipe is None:
        raise ValueError(f"Unknown action: {action}")
    return pipe
