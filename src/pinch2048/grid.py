"""4x4 merge grid: moves, scoring, tile spawning and game-over detection.

The engine is synchronous and deterministic given a direction and the state
of its random generator. Tile spawn and game-over evaluation happen inside
``apply_move`` so callers always observe a settled board.

Usage:
    engine = GridEngine(seed=7)
    engine.new_game()
    result = engine.apply_move(Direction.LEFT)
    if result.moved:
        print(engine.snapshot(), engine.state.score)
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from pinch2048.direction import Direction

logger = logging.getLogger("pinch2048.grid")

GRID_SIZE = 4
MOVE_COOLDOWN = 0.3  # seconds between accepted moves
FOUR_PROBABILITY = 0.1

GridSnapshot = tuple[tuple[int, ...], ...]


@dataclass(frozen=True)
class SpawnedTile:
    row: int
    col: int
    value: int


@dataclass(frozen=True)
class MoveResult:
    """Outcome of a move request."""
    moved: bool
    direction: Direction
    score_gained: int = 0
    merges: int = 0
    spawned: Optional[SpawnedTile] = None
    game_over: bool = False
    rejected_reason: Optional[str] = None  # "cooldown", "game_over", "no_change"


@dataclass
class GridState:
    """Engine-owned board state. Only GridEngine mutates it."""
    grid: np.ndarray = field(
        default_factory=lambda: np.zeros((GRID_SIZE, GRID_SIZE), dtype=np.int64)
    )
    score: int = 0
    game_over: bool = False
    last_move_time: Optional[float] = None
    moves: int = 0


def collapse_line(line) -> tuple[list[int], int, int]:
    """Slide a line toward index 0, merging each equal pair at most once.

    Returns (new_line, score_gained, merge_count).
    ``[2, 2, 2, 2]`` becomes ``[4, 4, 0, 0]``; ``[2, 2, 2, 0]`` becomes ``[4, 2, 0, 0]``.
    """
    tiles = [int(v) for v in line if v]
    out: list[int] = []
    gained = 0
    merges = 0

    i = 0
    while i < len(tiles):
        if i + 1 < len(tiles) and tiles[i] == tiles[i + 1]:
            merged = tiles[i] * 2
            out.append(merged)
            gained += merged
            merges += 1
            i += 2
        else:
            out.append(tiles[i])
            i += 1

    out.extend([0] * (len(line) - len(out)))
    return out, gained, merges


def _oriented(grid: np.ndarray, direction: Direction) -> np.ndarray:
    """View of ``grid`` whose rows run from the leading edge inward."""
    if direction == Direction.LEFT:
        return grid
    if direction == Direction.RIGHT:
        return grid[:, ::-1]
    if direction == Direction.UP:
        return grid.T
    return grid[::-1, :].T


def move_grid(grid: np.ndarray, direction: Direction) -> tuple[np.ndarray, int, int]:
    """Apply a move to a copy of ``grid`` without spawning.

    Returns (new_grid, score_gained, merge_count).
    """
    board = np.array(grid, dtype=np.int64, copy=True)
    view = _oriented(board, direction)
    gained = 0
    merges = 0

    for i in range(view.shape[0]):
        line, line_gained, line_merges = collapse_line(view[i])
        view[i, :] = line
        gained += line_gained
        merges += line_merges

    return board, gained, merges


def is_game_over(grid: np.ndarray) -> bool:
    """True iff the board is full and no orthogonal neighbours are equal."""
    if not grid.all():
        return False
    if (grid[:, :-1] == grid[:, 1:]).any():
        return False
    if (grid[:-1, :] == grid[1:, :]).any():
        return False
    return True


class GridEngine:
    """Owns the board, the score and the shared move cooldown.

    Both keyboard and gesture input go through ``apply_move``, so the
    cooldown throttles the two sources together.
    """

    def __init__(
        self,
        move_cooldown: float = MOVE_COOLDOWN,
        four_probability: float = FOUR_PROBABILITY,
        seed: Optional[int] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        self.move_cooldown = move_cooldown
        self.four_probability = four_probability
        self._rng = rng if rng is not None else np.random.default_rng(seed)
        self.state = GridState()

    def new_game(self):
        """Clear the board and score, then spawn two tiles."""
        self.state.grid[:] = 0
        self.state.score = 0
        self.state.game_over = False
        self.state.moves = 0
        self.spawn_tile()
        self.spawn_tile()
        logger.info("New game started")

    def load(self, grid, score: int = 0):
        """Install a specific board, e.g. from a test or a saved position."""
        board = np.array(grid, dtype=np.int64)
        if board.shape != (GRID_SIZE, GRID_SIZE):
            raise ValueError(f"grid must be {GRID_SIZE}x{GRID_SIZE}, got {board.shape}")
        if (board < 0).any():
            raise ValueError("grid values must be non-negative")
        nonzero = board[board > 0]
        if ((nonzero < 2) | (nonzero & (nonzero - 1) != 0)).any():
            raise ValueError("grid values must be 0 or powers of two >= 2")

        self.state.grid[:] = board
        self.state.score = int(score)
        self.state.game_over = is_game_over(self.state.grid)

    def apply_move(
        self, direction: Direction | str, timestamp: Optional[float] = None
    ) -> MoveResult:
        """Move all tiles toward ``direction``.

        Rejected without touching the board when the game is over or when the
        request arrives within ``move_cooldown`` of the last accepted move.
        """
        direction = Direction.parse(direction)
        now = timestamp if timestamp is not None else time.monotonic()
        state = self.state

        if state.game_over:
            return MoveResult(False, direction, game_over=True, rejected_reason="game_over")

        if state.last_move_time is not None and now - state.last_move_time < self.move_cooldown:
            logger.debug("Move %s rejected: cooldown", direction.value)
            return MoveResult(False, direction, rejected_reason="cooldown")

        new_grid, gained, merges = move_grid(state.grid, direction)
        if np.array_equal(new_grid, state.grid):
            return MoveResult(False, direction, rejected_reason="no_change")

        state.grid[:] = new_grid
        state.score += gained
        state.last_move_time = now
        state.moves += 1

        spawned = self.spawn_tile()
        state.game_over = is_game_over(state.grid)

        logger.debug(
            "Move %s: +%d (%d merges), score=%d", direction.value, gained, merges, state.score
        )
        if state.game_over:
            logger.info("Game over: score=%d, highest tile=%d", state.score, self.highest_tile)

        return MoveResult(
            moved=True,
            direction=direction,
            score_gained=gained,
            merges=merges,
            spawned=spawned,
            game_over=state.game_over,
        )

    def spawn_tile(self) -> Optional[SpawnedTile]:
        """Place a 2 (90%) or 4 (10%) on a uniformly chosen empty cell."""
        empties = np.argwhere(self.state.grid == 0)
        if len(empties) == 0:
            return None

        row, col = empties[self._rng.integers(len(empties))]
        value = 4 if self._rng.random() < self.four_probability else 2
        self.state.grid[row, col] = value
        return SpawnedTile(int(row), int(col), value)

    def legal_directions(self) -> list[Direction]:
        """Directions that would change the board right now."""
        return [
            d for d in Direction
            if not np.array_equal(move_grid(self.state.grid, d)[0], self.state.grid)
        ]

    def can_move(self) -> bool:
        return not is_game_over(self.state.grid)

    def snapshot(self) -> GridSnapshot:
        """Immutable copy of the board for renderers."""
        return tuple(tuple(int(v) for v in row) for row in self.state.grid)

    @property
    def highest_tile(self) -> int:
        return int(self.state.grid.max())

    @property
    def score(self) -> int:
        return self.state.score

    @property
    def game_over(self) -> bool:
        return self.state.game_over
