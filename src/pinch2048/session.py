"""Game session: wires gesture and keyboard input to the grid engine.

Every move, whatever its source, goes through ``request_move`` so the
engine's cooldown is shared between the keyboard and the hand. Every accepted
move, keyboard or gesture, locks the controller until the pinch is released.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, Optional

from pinch2048.bounds import GameBounds
from pinch2048.config import GameConfig
from pinch2048.controller import ControllerOutput, GestureController, UiCategory, UiSnapshot
from pinch2048.direction import Direction
from pinch2048.grid import GridEngine, GridSnapshot, MoveResult, SpawnedTile
from pinch2048.metrics import GameMetrics
from pinch2048.observation import HandObservation
from pinch2048.persistence import BestScoreStore

logger = logging.getLogger("pinch2048.session")


class InputSource(Enum):
    KEYBOARD = "keyboard"
    GESTURE = "gesture"


@dataclass(frozen=True)
class MoveEvent:
    """Published for every move request, accepted or not."""
    direction: Direction
    source: InputSource
    result: MoveResult
    timestamp: float


@dataclass(frozen=True)
class RenderSnapshot:
    """Everything a renderer needs for one frame. Read-only."""
    grid: GridSnapshot
    score: int
    best_score: int
    game_over: bool
    moves: int
    ui: UiSnapshot
    last_direction: Optional[Direction] = None
    last_move_time: Optional[float] = None
    last_spawn: Optional[SpawnedTile] = None


class GameSession:
    """Owns one engine and one controller and keeps the best score current."""

    KEY_BINDINGS = {
        "up": Direction.UP,
        "down": Direction.DOWN,
        "left": Direction.LEFT,
        "right": Direction.RIGHT,
        "arrowup": Direction.UP,
        "arrowdown": Direction.DOWN,
        "arrowleft": Direction.LEFT,
        "arrowright": Direction.RIGHT,
    }
    NEW_GAME_KEYS = {"n", "r", "new_game"}

    def __init__(
        self,
        engine: GridEngine,
        controller: GestureController,
        best_store: Optional[BestScoreStore] = None,
        metrics: Optional[GameMetrics] = None,
    ):
        self.engine = engine
        self.controller = controller
        self.best_store = best_store or BestScoreStore()
        self.metrics = metrics or GameMetrics()
        self.best_score = self.best_store.load()

        self._callbacks: list[Callable[[MoveEvent], None]] = []
        self._ui = UiSnapshot(category=UiCategory.NO_HAND)
        self._last_event: Optional[MoveEvent] = None

    @classmethod
    def from_config(
        cls, config: GameConfig, best_store: Optional[BestScoreStore] = None
    ) -> GameSession:
        """Build a session with engine, controller and storage laid out per ``config``."""
        bounds = GameBounds.centered(
            config.screen_width,
            config.screen_height,
            config.board_size,
            padding=config.bounds_padding,
            cursor_margin=config.cursor_margin,
        )
        engine = GridEngine(
            move_cooldown=config.move_cooldown,
            four_probability=config.four_probability,
            seed=config.seed,
        )
        controller = GestureController(
            bounds,
            config.screen_width,
            config.screen_height,
            pinch_threshold=config.pinch_threshold,
            swipe_threshold=config.swipe_threshold,
            swipe_time_limit=config.swipe_time_limit,
        )
        if best_store is None:
            best_store = BestScoreStore(config.best_score_path)
        return cls(engine, controller, best_store=best_store)

    def on_move(self, callback: Callable[[MoveEvent], None]):
        """Register a callback for move events."""
        self._callbacks.append(callback)

    def new_game(self):
        self.engine.new_game()
        self.controller.reset_lock()
        self._last_event = None
        self.metrics.record_new_game()

    def request_move(
        self,
        direction: Direction | str,
        source: InputSource = InputSource.KEYBOARD,
        timestamp: Optional[float] = None,
    ) -> MoveResult:
        """Single entry point for moves from any input source."""
        now = timestamp if timestamp is not None else time.monotonic()
        result = self.engine.apply_move(direction, timestamp=now)

        if result.moved:
            self.metrics.record_move(result.direction.value, source.value)
            self.controller.lock_after_move(now)
            self._update_best()
            if result.game_over:
                self.metrics.record_game_over()
                logger.info("Game over with score %d (best %d)", self.engine.score, self.best_score)
        else:
            self.metrics.record_rejection(result.rejected_reason or "unknown")

        event = MoveEvent(result.direction, source, result, now)
        if result.moved:
            self._last_event = event
        for cb in self._callbacks:
            cb(event)

        return result

    def _update_best(self):
        score = self.engine.score
        if score > self.best_score:
            self.best_score = score
            self.best_store.save(score)
            logger.debug("New best score: %d", score)

    def process_observation(
        self, observation: Optional[HandObservation], timestamp: Optional[float] = None
    ) -> RenderSnapshot:
        """Run one camera frame through the controller and apply any swipe."""
        t0 = time.perf_counter()
        now = timestamp if timestamp is not None else time.monotonic()

        output: ControllerOutput = self.controller.update(observation, timestamp=now)
        self._ui = output.ui

        if output.command is not None:
            self.request_move(output.command, source=InputSource.GESTURE, timestamp=now)

        self.metrics.record_frame(time.perf_counter() - t0, output.ui.hand_present)
        return self.snapshot()

    def handle_key(self, key: str, timestamp: Optional[float] = None) -> Optional[MoveResult]:
        """Apply a named key press. Unknown keys are ignored."""
        name = key.strip().lower()
        if name in self.NEW_GAME_KEYS:
            self.new_game()
            return None

        direction = self.KEY_BINDINGS.get(name)
        if direction is None:
            return None
        return self.request_move(direction, source=InputSource.KEYBOARD, timestamp=timestamp)

    def replay(self, frames: Iterable) -> RenderSnapshot:
        """Feed recorded frames (``timestamp``, ``observation``, ``keys``) in order."""
        for frame in frames:
            self.process_observation(frame.observation, timestamp=frame.timestamp)
            for key in frame.keys:
                self.handle_key(key, timestamp=frame.timestamp)
        return self.snapshot()

    def snapshot(self) -> RenderSnapshot:
        last = self._last_event
        return RenderSnapshot(
            grid=self.engine.snapshot(),
            score=self.engine.score,
            best_score=self.best_score,
            game_over=self.engine.game_over,
            moves=self.engine.state.moves,
            ui=self._ui,
            last_direction=last.direction if last else None,
            last_move_time=last.timestamp if last else None,
            last_spawn=last.result.spawned if last else None,
        )
