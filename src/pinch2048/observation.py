"""Per-frame hand observations and landmark geometry."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional

import numpy as np

logger = logging.getLogger("pinch2048.observation")

# MediaPipe hand landmark indices used by the game
WRIST = 0
THUMB_TIP = 4
INDEX_TIP = 8
MIDDLE_MCP = 9

NUM_LANDMARKS = 21

# Skeleton edges for the preview thumbnail
HAND_CONNECTIONS = [
    (0, 1), (1, 2), (2, 3), (3, 4),
    (0, 5), (5, 6), (6, 7), (7, 8),
    (0, 9), (9, 10), (10, 11), (11, 12),
    (0, 13), (13, 14), (14, 15), (15, 16),
    (0, 17), (17, 18), (18, 19), (19, 20),
    (5, 9), (9, 13), (13, 17),
]


@dataclass(frozen=True, eq=False)
class HandObservation:
    """One video frame's worth of hand data.

    ``landmarks`` is a read-only array of shape (21, 2) or (21, 3) in the
    detector's normalized image coordinates, or None when no usable hand
    was seen.
    """
    landmarks: Optional[np.ndarray] = None

    @classmethod
    def absent(cls) -> HandObservation:
        return cls()

    @classmethod
    def from_landmarks(cls, points) -> HandObservation:
        """Build an observation, degrading malformed input to "no hand".

        Accepts an array-like of shape (21, 2) / (21, 3) or a sequence of
        objects with ``x``, ``y`` and optional ``z`` attributes.
        """
        if points is None:
            return cls.absent()

        try:
            arr = np.array(_coerce_points(points), dtype=np.float64)
        except (TypeError, ValueError) as e:
            logger.debug("Dropping unparseable landmarks: %s", e)
            return cls.absent()

        if arr.ndim != 2 or arr.shape[0] != NUM_LANDMARKS or arr.shape[1] not in (2, 3):
            logger.debug("Dropping landmarks with shape %s", arr.shape)
            return cls.absent()

        if not np.isfinite(arr).all():
            logger.debug("Dropping landmarks with non-finite values")
            return cls.absent()

        xy = arr[:, :2]
        if (xy < 0.0).any() or (xy > 1.0).any():
            logger.debug("Dropping landmarks outside the unit image square")
            return cls.absent()

        arr.setflags(write=False)
        return cls(landmarks=arr)

    @property
    def present(self) -> bool:
        return self.landmarks is not None

    @property
    def has_depth(self) -> bool:
        return self.landmarks is not None and self.landmarks.shape[1] == 3

    def to_list(self) -> Optional[list[list[float]]]:
        return None if self.landmarks is None else self.landmarks.tolist()


def _coerce_points(points) -> list:
    rows = []
    for p in points:
        if hasattr(p, "x") and hasattr(p, "y"):
            z = getattr(p, "z", None)
            rows.append((p.x, p.y) if z is None else (p.x, p.y, z))
        else:
            rows.append(tuple(p))
    return rows


def pinch_distance(landmarks: np.ndarray) -> float:
    """Thumb tip to index tip distance, 3D when depth is available."""
    delta = landmarks[THUMB_TIP] - landmarks[INDEX_TIP]
    return float(math.sqrt(float(np.dot(delta, delta))))


def palm_center(landmarks: np.ndarray) -> tuple[float, float]:
    """Midpoint of the wrist and the middle-finger base, normalized."""
    x = (landmarks[WRIST][0] + landmarks[MIDDLE_MCP][0]) / 2
    y = (landmarks[WRIST][1] + landmarks[MIDDLE_MCP][1]) / 2
    return float(x), float(y)
