"""Move directions shared by keyboard input, the gesture controller and the grid."""

from __future__ import annotations

from enum import Enum


class Direction(Enum):
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"

    @classmethod
    def parse(cls, value: str | Direction) -> Direction:
        """Accept a Direction or its name ("left", "ArrowLeft", "LEFT")."""
        if isinstance(value, cls):
            return value
        name = str(value).strip().lower()
        if name.startswith("arrow"):
            name = name[len("arrow"):]
        return cls(name)

    @classmethod
    def from_displacement(cls, dx: float, dy: float) -> Direction:
        """Classify a screen-space displacement by its dominant axis.

        Ties go to the horizontal axis. Screen y grows downward.
        """
        if abs(dx) >= abs(dy):
            return cls.RIGHT if dx > 0 else cls.LEFT
        return cls.DOWN if dy > 0 else cls.UP

    @property
    def is_horizontal(self) -> bool:
        return self in (Direction.LEFT, Direction.RIGHT)
