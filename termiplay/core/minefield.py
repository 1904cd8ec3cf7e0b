from __future__ import annotations

import logging
import random
import time
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from datetime import timedelta
from enum import StrEnum

logger = logging.getLogger(__name__)


class Difficulty(StrEnum):
    easy = "easy"
    medium = "medium"
    hard = "hard"


@dataclass(frozen=True, slots=True)
class Preset:
    width: int
    height: int
    mine_count: int


PRESETS: dict[Difficulty, Preset] = {
    Difficulty.easy: Preset(width=9, height=9, mine_count=10),
    Difficulty.medium: Preset(width=16, height=16, mine_count=40),
    Difficulty.hard: Preset(width=30, height=16, mine_count=99),
}


def resolve_preset(difficulty: Difficulty | str) -> Preset:
    """Preset for a difficulty; unknown values fall back to easy."""

    try:
        return PRESETS[Difficulty(difficulty)]
    except ValueError:
        return PRESETS[Difficulty.easy]


class CellState(StrEnum):
    hidden = "hidden"
    revealed = "revealed"
    flagged = "flagged"


@dataclass(slots=True)
class Cell:
    is_mine: bool = False
    state: CellState = CellState.hidden
    # Number of mines among the 8 neighbours. Not maintained for mine cells.
    adjacent: int = 0


@dataclass(frozen=True, slots=True)
class CellView:
    """What a player may see of one cell.

    `mine` and `adjacent` are None while they are still secret.
    """

    state: CellState
    mine: bool | None = None
    adjacent: int | None = None


@dataclass(frozen=True, slots=True)
class MinefieldSnapshot:
    width: int
    height: int
    mine_count: int
    flags: int
    revealed: int
    won: bool
    game_over: bool
    elapsed: timedelta
    # (x, y) of the mine that ended the game, if any.
    detonated: tuple[int, int] | None
    cells: tuple[tuple[CellView, ...], ...]

    @property
    def mines_remaining(self) -> int:
        return self.mine_count - self.flags


_NEIGHBOUR_OFFSETS: tuple[tuple[int, int], ...] = tuple(
    (dx, dy) for dy in (-1, 0, 1) for dx in (-1, 0, 1) if (dx, dy) != (0, 0)
)


class MinefieldEngine:
    """Authoritative Minesweeper board.

    Coordinates are `(x, y)` with `x` the column and `y` the row. Mines are
    placed once at construction and never move; a new game is a new engine.
    """

    def __init__(
        self,
        difficulty: Difficulty | str = Difficulty.easy,
        *,
        rng: random.Random | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        preset = resolve_preset(difficulty)
        self._init_board(width=preset.width, height=preset.height, mine_count=preset.mine_count, clock=clock)
        self._place_mines(rng if rng is not None else random.Random())
        self._compute_adjacency()

    @classmethod
    def from_layout(
        cls,
        *,
        width: int,
        height: int,
        mines: Iterable[tuple[int, int]],
        clock: Callable[[], float] = time.monotonic,
    ) -> "MinefieldEngine":
        """Build a board with a fixed mine layout given as (x, y) pairs."""

        if width < 1 or height < 1:
            raise ValueError("width and height must be positive")

        positions = set(mines)
        for x, y in positions:
            if not (0 <= x < width and 0 <= y < height):
                raise ValueError(f"mine ({x}, {y}) is outside a {width}x{height} board")
        if len(positions) >= width * height:
            raise ValueError("at least one cell must be free of mines")

        engine = cls.__new__(cls)
        engine._init_board(width=width, height=height, mine_count=len(positions), clock=clock)
        for x, y in positions:
            engine._grid[y][x].is_mine = True
        engine._compute_adjacency()
        return engine

    def _init_board(self, *, width: int, height: int, mine_count: int, clock: Callable[[], float]) -> None:
        self._width = width
        self._height = height
        self._mine_count = mine_count
        self._grid = [[Cell() for _ in range(width)] for _ in range(height)]
        self._flags = 0
        self._revealed = 0
        self._won = False
        self._game_over = False
        self._detonated: tuple[int, int] | None = None
        self._clock = clock
        self._started = clock()

    def _place_mines(self, rng: random.Random) -> None:
        placed = 0
        while placed < self._mine_count:
            x = rng.randrange(self._width)
            y = rng.randrange(self._height)
            cell = self._grid[y][x]
            if not cell.is_mine:
                cell.is_mine = True
                placed += 1

    def _compute_adjacency(self) -> None:
        for y in range(self._height):
            for x in range(self._width):
                cell = self._grid[y][x]
                if cell.is_mine:
                    continue
                cell.adjacent = sum(1 for nx, ny in self._neighbours(x, y) if self._grid[ny][nx].is_mine)

    def _neighbours(self, x: int, y: int) -> Iterator[tuple[int, int]]:
        for dx, dy in _NEIGHBOUR_OFFSETS:
            nx, ny = x + dx, y + dy
            if self.in_bounds(nx, ny):
                yield nx, ny

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def mine_count(self) -> int:
        return self._mine_count

    @property
    def flags(self) -> int:
        return self._flags

    @property
    def revealed(self) -> int:
        return self._revealed

    @property
    def mines_remaining(self) -> int:
        return self._mine_count - self._flags

    @property
    def won(self) -> bool:
        return self._won

    @property
    def game_over(self) -> bool:
        return self._game_over

    @property
    def detonated(self) -> tuple[int, int] | None:
        return self._detonated

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self._width and 0 <= y < self._height

    def cell_state(self, x: int, y: int) -> CellState:
        if not self.in_bounds(x, y):
            raise IndexError(f"({x}, {y}) is outside the board")
        return self._grid[y][x].state

    def reveal(self, x: int, y: int) -> bool:
        """Open a cell. Returns True if the board changed.

        Hitting a mine ends the game without revealing anything else.
        Opening a cell with no adjacent mines opens its whole zero region
        and the numbered cells bordering it.
        """

        if self._game_over or not self.in_bounds(x, y):
            return False

        cell = self._grid[y][x]
        if cell.state != CellState.hidden:
            return False

        if cell.is_mine:
            self._game_over = True
            self._detonated = (x, y)
            logger.debug("mine hit at (%d, %d)", x, y)
            return True

        self._flood_reveal(x, y)
        self._check_win()
        return True

    def _flood_reveal(self, x: int, y: int) -> None:
        pending = [(x, y)]
        while pending:
            cx, cy = pending.pop()
            cell = self._grid[cy][cx]
            if cell.state != CellState.hidden or cell.is_mine:
                continue

            cell.state = CellState.revealed
            self._revealed += 1

            if cell.adjacent == 0:
                pending.extend(self._neighbours(cx, cy))

    def toggle_flag(self, x: int, y: int) -> bool:
        """Flip a hidden cell to flagged or back. Returns True if it flipped."""

        if self._game_over or not self.in_bounds(x, y):
            return False

        cell = self._grid[y][x]
        if cell.state == CellState.revealed:
            return False

        if cell.state == CellState.flagged:
            cell.state = CellState.hidden
            self._flags -= 1
        else:
            cell.state = CellState.flagged
            self._flags += 1
        return True

    def _check_win(self) -> None:
        if self._revealed == self._width * self._height - self._mine_count:
            self._won = True
            self._game_over = True
            logger.debug("minefield cleared (%dx%d, %d mines)", self._width, self._height, self._mine_count)

    def elapsed(self) -> timedelta:
        return timedelta(seconds=self._clock() - self._started)

    def snapshot(self) -> MinefieldSnapshot:
        disclose = self._game_over
        rows: list[tuple[CellView, ...]] = []
        for row in self._grid:
            views: list[CellView] = []
            for cell in row:
                if disclose:
                    views.append(
                        CellView(
                            state=cell.state,
                            mine=cell.is_mine,
                            adjacent=None if cell.is_mine else cell.adjacent,
                        )
                    )
                elif cell.state == CellState.revealed:
                    views.append(CellView(state=cell.state, mine=False, adjacent=cell.adjacent))
                else:
                    views.append(CellView(state=cell.state))
            rows.append(tuple(views))

        return MinefieldSnapshot(
            width=self._width,
            height=self._height,
            mine_count=self._mine_count,
            flags=self._flags,
            revealed=self._revealed,
            won=self._won,
            game_over=self._game_over,
            elapsed=self.elapsed(),
            detonated=self._detonated,
            cells=tuple(rows),
        )
