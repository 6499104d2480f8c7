"""Pinch-and-swipe gesture controller.

Turns a per-frame stream of hand observations into at most one direction
command per pinch engagement, plus a UI snapshot for the renderer.

Control mode is active while the user pinches (thumb tip to index tip)
with the palm over the board. While active, a quick palm movement larger
than the swipe threshold becomes a direction. After the session reports an
accepted move via ``lock_after_move``, control stays locked until the pinch
is released, so holding the pinch never fires a second move.

Usage:
    controller = GestureController(bounds, screen_width=1280, screen_height=720)
    out = controller.update(observation, timestamp=now)
    if out.command is not None:
        result = engine.apply_move(out.command)
        if result.moved:
            controller.lock_after_move(now)
"""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from pinch2048.bounds import GameBounds, palm_to_screen
from pinch2048.direction import Direction
from pinch2048.observation import HandObservation, pinch_distance

logger = logging.getLogger("pinch2048.controller")

PINCH_THRESHOLD = 0.08  # normalized thumb-index distance
SWIPE_THRESHOLD = 80.0  # px
SWIPE_TIME_LIMIT = 0.7  # seconds
PINCH_STRENGTH_RANGE = 0.2  # distance at which the pinch meter reads empty
MOVE_PULSE = 0.25  # seconds the cursor shows the "moving" pulse


class UiCategory(Enum):
    """Mutually exclusive controller states, highest priority first."""
    CONTROL_ACTIVE = "control_active"
    RELEASE_PINCH = "release_pinch"
    PINCH_OUTSIDE = "pinch_outside"
    HAND_INSIDE = "hand_inside"
    NEAR_GAME = "near_game"
    HAND_OUTSIDE = "hand_outside"
    NO_HAND = "no_hand"


@dataclass(frozen=True)
class SwipeOrigin:
    x: float
    y: float
    timestamp: float


@dataclass
class GestureState:
    """Mutable controller state. Cleared whenever the hand disappears."""
    is_pinching: bool = False
    was_pinching: bool = False
    control_mode_locked: bool = False
    control_mode_active: bool = False
    swipe_origin: Optional[SwipeOrigin] = None
    last_move_timestamp: Optional[float] = None

    def clear(self):
        self.is_pinching = False
        self.was_pinching = False
        self.control_mode_locked = False
        self.control_mode_active = False
        self.swipe_origin = None


@dataclass(frozen=True)
class UiSnapshot:
    """Read-only view of the controller for the renderer."""
    category: UiCategory
    hand_present: bool = False
    cursor: Optional[tuple[float, float]] = None  # constrained, screen px
    cursor_visible: bool = False
    palm: Optional[tuple[float, float]] = None  # unconstrained, screen px
    pinch_distance: Optional[float] = None
    pinch_strength: float = 0.0  # 0 = open hand, 1 = fingers touching
    is_pinching: bool = False
    control_active: bool = False
    recently_moved: bool = False


@dataclass(frozen=True)
class ControllerOutput:
    ui: UiSnapshot
    command: Optional[Direction] = None


class GestureController:
    """Frame-by-frame interpreter of a single hand."""

    def __init__(
        self,
        bounds: GameBounds,
        screen_width: float,
        screen_height: float,
        pinch_threshold: float = PINCH_THRESHOLD,
        swipe_threshold: float = SWIPE_THRESHOLD,
        swipe_time_limit: float = SWIPE_TIME_LIMIT,
    ):
        self.bounds = bounds
        self.screen_width = screen_width
        self.screen_height = screen_height
        self.pinch_threshold = pinch_threshold
        self.swipe_threshold = swipe_threshold
        self.swipe_time_limit = swipe_time_limit
        self.state = GestureState()

    def set_layout(self, bounds: GameBounds, screen_width: float, screen_height: float):
        """Update geometry after a window resize."""
        self.bounds = bounds
        self.screen_width = screen_width
        self.screen_height = screen_height

    def update(
        self, observation: Optional[HandObservation], timestamp: Optional[float] = None
    ) -> ControllerOutput:
        """Process one frame. Returns the UI snapshot and an optional command."""
        now = timestamp if timestamp is not None else time.monotonic()
        state = self.state

        if observation is None or not observation.present:
            if state.is_pinching or state.control_mode_locked:
                logger.debug("Hand lost, gesture state cleared")
            state.clear()
            return ControllerOutput(ui=UiSnapshot(category=UiCategory.NO_HAND))

        landmarks = observation.landmarks
        distance = pinch_distance(landmarks)

        state.was_pinching = state.is_pinching
        state.is_pinching = distance < self.pinch_threshold

        if state.was_pinching and not state.is_pinching:
            state.control_mode_locked = False

        x, y = palm_to_screen(landmarks, self.screen_width, self.screen_height)
        inside_inner = self.bounds.contains_inner(x, y)
        inside_outer = self.bounds.contains_outer(x, y)

        state.control_mode_active = (
            state.is_pinching and inside_inner and not state.control_mode_locked
        )

        command = None
        if state.control_mode_active:
            command = self._track_swipe(x, y, now)
        else:
            state.swipe_origin = None

        ui = UiSnapshot(
            category=self._categorize(inside_inner, inside_outer),
            hand_present=True,
            cursor=self.bounds.constrain_cursor(x, y) if inside_outer else None,
            cursor_visible=inside_outer,
            palm=(x, y),
            pinch_distance=distance,
            pinch_strength=max(0.0, min(1.0, 1.0 - distance / PINCH_STRENGTH_RANGE)),
            is_pinching=state.is_pinching,
            control_active=state.control_mode_active,
            recently_moved=(
                state.last_move_timestamp is not None
                and now - state.last_move_timestamp < MOVE_PULSE
            ),
        )
        return ControllerOutput(ui=ui, command=command)

    def _track_swipe(self, x: float, y: float, now: float) -> Optional[Direction]:
        state = self.state
        origin = state.swipe_origin

        if origin is None:
            state.swipe_origin = SwipeOrigin(x, y, now)
            return None

        dx = x - origin.x
        dy = y - origin.y
        distance = math.hypot(dx, dy)
        elapsed = now - origin.timestamp

        if distance > self.swipe_threshold and elapsed < self.swipe_time_limit:
            state.swipe_origin = None
            direction = Direction.from_displacement(dx, dy)
            logger.debug(
                "Swipe %s: %.0fpx in %.0fms", direction.value, distance, elapsed * 1000
            )
            return direction

        # Stale attempt: start over from here. Slow sub-threshold motion
        # inside the window keeps the original anchor.
        if elapsed > self.swipe_time_limit:
            state.swipe_origin = SwipeOrigin(x, y, now)

        return None

    def _categorize(self, inside_inner: bool, inside_outer: bool) -> UiCategory:
        state = self.state
        if state.control_mode_active:
            return UiCategory.CONTROL_ACTIVE
        if state.control_mode_locked and state.is_pinching:
            return UiCategory.RELEASE_PINCH
        if state.is_pinching and not inside_inner:
            return UiCategory.PINCH_OUTSIDE
        if inside_inner and not state.is_pinching:
            return UiCategory.HAND_INSIDE
        if inside_outer:
            return UiCategory.NEAR_GAME
        return UiCategory.HAND_OUTSIDE

    def lock_after_move(self, timestamp: Optional[float] = None):
        """Require a full pinch release before the next gesture move."""
        state = self.state
        state.control_mode_locked = True
        state.control_mode_active = False
        state.swipe_origin = None
        state.last_move_timestamp = timestamp if timestamp is not None else time.monotonic()

    def reset_lock(self):
        """Drop any move lock and pending swipe, e.g. when a new game starts."""
        state = self.state
        state.control_mode_locked = False
        state.control_mode_active = False
        state.swipe_origin = None

    @property
    def locked(self) -> bool:
        return self.state.control_mode_locked
