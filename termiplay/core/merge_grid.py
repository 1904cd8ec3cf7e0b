from __future__ import annotations

import logging
import random
from collections.abc import Sequence
from dataclasses import dataclass
from enum import StrEnum

logger = logging.getLogger(__name__)

SIZE = 4
WIN_TILE = 2048

# Spawned tiles are 2 with this probability, 4 otherwise.
SPAWN_TWO_PROBABILITY = 0.9


class Direction(StrEnum):
    up = "up"
    down = "down"
    left = "left"
    right = "right"


# Key bindings used by the terminal front end (arrows, wasd, vim keys).
DIRECTION_KEYS: dict[str, Direction] = {
    "up": Direction.up,
    "w": Direction.up,
    "k": Direction.up,
    "down": Direction.down,
    "s": Direction.down,
    "j": Direction.down,
    "left": Direction.left,
    "a": Direction.left,
    "h": Direction.left,
    "right": Direction.right,
    "d": Direction.right,
    "l": Direction.right,
}


def parse_direction(token: str) -> Direction | None:
    """Resolve a direction name or key alias; unknown tokens give None."""

    if not isinstance(token, str):
        return None
    return DIRECTION_KEYS.get(token.strip().casefold())


def _line_coords(direction: Direction) -> list[list[tuple[int, int]]]:
    """(y, x) coordinates of every line, each listed in travel order."""

    forward = list(range(SIZE))
    backward = forward[::-1]
    if direction == Direction.left:
        return [[(y, x) for x in forward] for y in forward]
    if direction == Direction.right:
        return [[(y, x) for x in backward] for y in forward]
    if direction == Direction.up:
        return [[(y, x) for y in forward] for x in forward]
    return [[(y, x) for y in backward] for x in forward]


_LINES: dict[Direction, list[list[tuple[int, int]]]] = {d: _line_coords(d) for d in Direction}


def merge_line(line: Sequence[int]) -> tuple[list[int], list[int]]:
    """Slide one line toward index 0 and merge equal neighbours.

    Returns the new line (padded with zeros to the input length) and the
    values produced by each merge, in order. A tile merges at most once:
    `[2, 2, 2, 2]` becomes `[4, 4, 0, 0]`, never `[8, 0, 0, 0]`.
    """

    tiles = [v for v in line if v != 0]
    out: list[int] = []
    merges: list[int] = []

    i = 0
    while i < len(tiles):
        if i + 1 < len(tiles) and tiles[i] == tiles[i + 1]:
            merged = tiles[i] * 2
            out.append(merged)
            merges.append(merged)
            i += 2
        else:
            out.append(tiles[i])
            i += 1

    out.extend([0] * (len(line) - len(out)))
    return out, merges


@dataclass(frozen=True, slots=True)
class MergeGridSnapshot:
    grid: tuple[tuple[int, ...], ...]
    score: int
    won: bool
    game_over: bool


class MergeGridEngine:
    """Authoritative 4x4 2048 board.

    The engine owns its random source; pass a seeded `random.Random` for
    reproducible games. Reaching 2048 sets `won` but play continues until no
    move can change the grid.
    """

    def __init__(self, *, rng: random.Random | None = None) -> None:
        self._rng = rng if rng is not None else random.Random()
        self._grid: list[list[int]] = []
        self._score = 0
        self._won = False
        self._game_over = False
        self.reset()

    @classmethod
    def from_grid(
        cls,
        grid: Sequence[Sequence[int]],
        *,
        score: int = 0,
        won: bool = False,
        rng: random.Random | None = None,
    ) -> "MergeGridEngine":
        """Build an engine over a fixed grid without spawning tiles."""

        rows = [list(row) for row in grid]
        if len(rows) != SIZE or any(len(row) != SIZE for row in rows):
            raise ValueError(f"grid must be {SIZE}x{SIZE}")
        for row in rows:
            for v in row:
                if v != 0 and (v < 2 or v & (v - 1)):
                    raise ValueError(f"tile values must be 0 or a power of two >= 2 (got {v})")
        if score < 0:
            raise ValueError("score must be non-negative")

        engine = cls.__new__(cls)
        engine._rng = rng if rng is not None else random.Random()
        engine._grid = rows
        engine._score = score
        engine._won = won
        engine._game_over = engine._no_moves_left()
        return engine

    @property
    def grid(self) -> tuple[tuple[int, ...], ...]:
        return tuple(tuple(row) for row in self._grid)

    @property
    def score(self) -> int:
        return self._score

    @property
    def won(self) -> bool:
        return self._won

    @property
    def game_over(self) -> bool:
        return self._game_over

    def snapshot(self) -> MergeGridSnapshot:
        return MergeGridSnapshot(grid=self.grid, score=self._score, won=self._won, game_over=self._game_over)

    def reset(self) -> None:
        self._grid = [[0] * SIZE for _ in range(SIZE)]
        self._score = 0
        self._won = False
        self._game_over = False
        self._spawn_tile()
        self._spawn_tile()

    def move(self, direction: Direction | str) -> bool:
        """Apply a move; returns True iff any tile moved or merged.

        An accepted move spawns one tile and re-evaluates `game_over`.
        Unrecognized directions are ignored.
        """

        try:
            d = Direction(direction)
        except ValueError:
            return False

        changed = False
        for coords in _LINES[d]:
            before = [self._grid[y][x] for y, x in coords]
            after, merges = merge_line(before)

            for value in merges:
                self._score += value
                if value == WIN_TILE and not self._won:
                    self._won = True
                    logger.debug("2048 tile reached (score=%d)", self._score)

            if after != before:
                changed = True
                for (y, x), value in zip(coords, after):
                    self._grid[y][x] = value

        if changed:
            self._spawn_tile()
            self._game_over = self._no_moves_left()
        return changed

    def can_move(self) -> bool:
        """True if at least one direction would change the grid."""

        for lines in _LINES.values():
            for coords in lines:
                before = [self._grid[y][x] for y, x in coords]
                if merge_line(before)[0] != before:
                    return True
        return False

    def _spawn_tile(self) -> None:
        empty = [(y, x) for y in range(SIZE) for x in range(SIZE) if self._grid[y][x] == 0]
        if not empty:
            return

        y, x = self._rng.choice(empty)
        self._grid[y][x] = 2 if self._rng.random() < SPAWN_TWO_PROBABILITY else 4

    def _no_moves_left(self) -> bool:
        for y in range(SIZE):
            for x in range(SIZE):
                if self._grid[y][x] == 0:
                    return False

        for y in range(SIZE):
            for x in range(SIZE):
                current = self._grid[y][x]
                if y < SIZE - 1 and self._grid[y + 1][x] == current:
                    return False
                if x < SIZE - 1 and self._grid[y][x + 1] == current:
                    return False

        return True
