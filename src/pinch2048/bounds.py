"""Screen-space geometry: the board rectangle, its padded cursor zone, palm mapping."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from pinch2048.observation import palm_center

BOUNDS_PADDING = 80.0  # px around the board where the cursor stays visible
CURSOR_MARGIN = 25.0  # px the visible cursor keeps from the padded edge


@dataclass(frozen=True)
class Rect:
    left: float
    top: float
    right: float
    bottom: float

    def contains(self, x: float, y: float) -> bool:
        """Edges count as inside."""
        return self.left <= x <= self.right and self.top <= y <= self.bottom

    def inflate(self, margin: float) -> Rect:
        return Rect(
            self.left - margin,
            self.top - margin,
            self.right + margin,
            self.bottom + margin,
        )

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.bottom - self.top

    @property
    def center(self) -> tuple[float, float]:
        return (self.left + self.right) / 2, (self.top + self.bottom) / 2


@dataclass(frozen=True)
class GameBounds:
    """The board ("inner") and the padded region around it ("outer").

    Only the inner rectangle can activate control mode. The outer one
    decides whether the cursor is drawn at all.
    """
    inner: Rect
    padding: float = BOUNDS_PADDING
    cursor_margin: float = CURSOR_MARGIN

    @property
    def outer(self) -> Rect:
        return self.inner.inflate(self.padding)

    def contains_inner(self, x: float, y: float) -> bool:
        return self.inner.contains(x, y)

    def contains_outer(self, x: float, y: float) -> bool:
        return self.outer.contains(x, y)

    def constrain_cursor(self, x: float, y: float) -> tuple[float, float]:
        """Clamp a cursor position into the outer region, inset by the margin."""
        outer = self.outer
        m = self.cursor_margin
        return (
            max(outer.left + m, min(outer.right - m, x)),
            max(outer.top + m, min(outer.bottom - m, y)),
        )

    @classmethod
    def centered(
        cls,
        screen_width: float,
        screen_height: float,
        board_size: float,
        padding: float = BOUNDS_PADDING,
        cursor_margin: float = CURSOR_MARGIN,
    ) -> GameBounds:
        """Board of ``board_size`` px centred in a ``screen_width`` x ``screen_height`` window."""
        left = (screen_width - board_size) / 2
        top = (screen_height - board_size) / 2
        return cls(
            inner=Rect(left, top, left + board_size, top + board_size),
            padding=padding,
            cursor_margin=cursor_margin,
        )


def palm_to_screen(landmarks: np.ndarray, width: float, height: float) -> tuple[float, float]:
    """Map the palm centre to screen pixels, mirrored so the view acts like a mirror."""
    x, y = palm_center(landmarks)
    return (1.0 - x) * width, y * height
