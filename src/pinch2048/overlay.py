"""OpenCV renderer for the board, the hand cursor and status indicators.

Drawing only reads ``RenderSnapshot``; it never touches game state.
Display strings for controller states live here, keyed by ``UiCategory``.
"""

from __future__ import annotations

from typing import Optional

import cv2
import numpy as np

from pinch2048.bounds import GameBounds
from pinch2048.config import GameConfig
from pinch2048.controller import UiCategory
from pinch2048.direction import Direction
from pinch2048.observation import HAND_CONNECTIONS, INDEX_TIP, THUMB_TIP, WRIST
from pinch2048.session import RenderSnapshot

FONT = cv2.FONT_HERSHEY_SIMPLEX

# (status label, hint) per controller state
STATUS_TEXT = {
    UiCategory.CONTROL_ACTIVE: ("Control Active", "CONTROL MODE - move hand to shift tiles"),
    UiCategory.RELEASE_PINCH: ("Release Pinch", "Release pinch to reset, then pinch again"),
    UiCategory.PINCH_OUTSIDE: ("Pinch (Outside)", "Pinch detected - move inside game area"),
    UiCategory.HAND_INSIDE: ("Hand Inside", "Inside game area - pinch to activate"),
    UiCategory.NEAR_GAME: ("Move Closer", "Move hand into game area, then pinch to control"),
    UiCategory.HAND_OUTSIDE: ("Hand Outside", "Move hand inside game area, pinch to control"),
    UiCategory.NO_HAND: ("No Hand", "Show hand to camera - arrow keys also work"),
}

# BGR
BACKGROUND = (48, 32, 30)
BOARD_COLOR = (160, 173, 187)
EMPTY_CELL = (180, 193, 205)
CONTROL_COLOR = (254, 172, 79)
PINCH_COLOR = (100, 200, 255)
TEXT_LIGHT = (242, 246, 249)
TEXT_DARK = (101, 110, 119)

TILE_COLORS = {
    2: (218, 228, 238),
    4: (200, 224, 237),
    8: (121, 177, 242),
    16: (99, 149, 245),
    32: (95, 124, 246),
    64: (59, 94, 246),
    128: (114, 207, 237),
    256: (97, 204, 237),
    512: (80, 200, 237),
    1024: (63, 197, 237),
    2048: (46, 194, 237),
}
SUPER_TILE = (50, 58, 60)

ARROW_VECTORS = {
    Direction.UP: (0, -1),
    Direction.DOWN: (0, 1),
    Direction.LEFT: (-1, 0),
    Direction.RIGHT: (1, 0),
}
ARROW_FADE = 0.7  # seconds

PREVIEW_SIZE = (220, 165)


class BoardRenderer:
    """Draws complete frames of ``config.screen_width`` x ``config.screen_height``."""

    def __init__(self, config: GameConfig, bounds: GameBounds):
        self.config = config
        self.bounds = bounds

    def render(
        self,
        snapshot: RenderSnapshot,
        landmarks: Optional[np.ndarray] = None,
        now: Optional[float] = None,
    ) -> np.ndarray:
        cfg = self.config
        canvas = np.full((cfg.screen_height, cfg.screen_width, 3), BACKGROUND, dtype=np.uint8)

        self._draw_board(canvas, snapshot)
        self._draw_scores(canvas, snapshot)
        self._draw_status(canvas, snapshot)
        if now is not None:
            self._draw_direction_feedback(canvas, snapshot, now)
        if snapshot.game_over:
            self._draw_game_over(canvas, snapshot)
        self._draw_cursor(canvas, snapshot)
        if landmarks is not None:
            self._draw_skeleton(canvas, landmarks, snapshot)

        return canvas

    def _cell_origin(self, row: int, col: int) -> tuple[int, int]:
        cfg = self.config
        inner = self.bounds.inner
        x = int(inner.left) + cfg.board_padding + col * (cfg.cell_size + cfg.cell_gap)
        y = int(inner.top) + cfg.board_padding + row * (cfg.cell_size + cfg.cell_gap)
        return x, y

    def _draw_board(self, canvas: np.ndarray, snapshot: RenderSnapshot):
        inner = self.bounds.inner
        border = CONTROL_COLOR if snapshot.ui.control_active else BOARD_COLOR
        cv2.rectangle(
            canvas,
            (int(inner.left), int(inner.top)),
            (int(inner.right), int(inner.bottom)),
            BOARD_COLOR,
            thickness=-1,
        )
        cv2.rectangle(
            canvas,
            (int(inner.left), int(inner.top)),
            (int(inner.right), int(inner.bottom)),
            border,
            thickness=3,
        )

        size = self.config.cell_size
        for r, row in enumerate(snapshot.grid):
            for c, value in enumerate(row):
                x, y = self._cell_origin(r, c)
                color = TILE_COLORS.get(value, SUPER_TILE) if value else EMPTY_CELL
                cv2.rectangle(canvas, (x, y), (x + size, y + size), color, thickness=-1)
                if value:
                    self._draw_tile_value(canvas, value, x, y, size)

        spawn = snapshot.last_spawn
        if spawn is not None:
            x, y = self._cell_origin(spawn.row, spawn.col)
            cv2.rectangle(canvas, (x, y), (x + size, y + size), TEXT_LIGHT, thickness=2)

    def _draw_tile_value(self, canvas: np.ndarray, value: int, x: int, y: int, size: int):
        text = str(value)
        scale = 1.6 if len(text) <= 2 else 1.2 if len(text) == 3 else 0.9
        (tw, th), _ = cv2.getTextSize(text, FONT, scale, 3)
        color = TEXT_DARK if value <= 4 else TEXT_LIGHT
        cv2.putText(
            canvas, text,
            (x + (size - tw) // 2, y + (size + th) // 2),
            FONT, scale, color, 3, cv2.LINE_AA,
        )

    def _draw_scores(self, canvas: np.ndarray, snapshot: RenderSnapshot):
        cv2.putText(canvas, f"SCORE {snapshot.score}", (20, 40), FONT, 0.9, TEXT_LIGHT, 2, cv2.LINE_AA)
        cv2.putText(canvas, f"BEST {snapshot.best_score}", (20, 80), FONT, 0.9, TEXT_LIGHT, 2, cv2.LINE_AA)

    def _draw_status(self, canvas: np.ndarray, snapshot: RenderSnapshot):
        ui = snapshot.ui
        label, hint = STATUS_TEXT[ui.category]
        w = self.config.screen_width
        h = self.config.screen_height

        if ui.category == UiCategory.CONTROL_ACTIVE:
            dot = CONTROL_COLOR
        elif ui.hand_present:
            dot = (120, 220, 120)
        else:
            dot = (90, 90, 220)
        cv2.circle(canvas, (w - 230, 32), 8, dot, thickness=-1)
        cv2.putText(canvas, label, (w - 210, 40), FONT, 0.8, TEXT_LIGHT, 2, cv2.LINE_AA)

        # Pinch meter
        bar_x, bar_y, bar_w = w - 230, 60, 200
        cv2.rectangle(canvas, (bar_x, bar_y), (bar_x + bar_w, bar_y + 8), TEXT_DARK, thickness=-1)
        fill = int(bar_w * ui.pinch_strength)
        if fill > 0:
            color = CONTROL_COLOR if ui.control_active else PINCH_COLOR
            cv2.rectangle(canvas, (bar_x, bar_y), (bar_x + fill, bar_y + 8), color, thickness=-1)

        (tw, _), _ = cv2.getTextSize(hint, FONT, 0.6, 1)
        cv2.putText(canvas, hint, ((w - tw) // 2, h - 20), FONT, 0.6, TEXT_LIGHT, 1, cv2.LINE_AA)

    def _draw_direction_feedback(self, canvas: np.ndarray, snapshot: RenderSnapshot, now: float):
        if snapshot.last_direction is None or snapshot.last_move_time is None:
            return
        age = now - snapshot.last_move_time
        if age < 0 or age >= ARROW_FADE:
            return

        progress = age / ARROW_FADE
        length = 60 + 120 * progress
        cx, cy = self.bounds.inner.center
        vx, vy = ARROW_VECTORS[snapshot.last_direction]
        start = (int(cx - vx * length / 2), int(cy - vy * length / 2))
        end = (int(cx + vx * length / 2), int(cy + vy * length / 2))

        layer = canvas.copy()
        cv2.arrowedLine(layer, start, end, TEXT_LIGHT, 8, cv2.LINE_AA, tipLength=0.4)
        alpha = 1.0 - progress
        cv2.addWeighted(layer, alpha, canvas, 1.0 - alpha, 0, dst=canvas)

    def _draw_game_over(self, canvas: np.ndarray, snapshot: RenderSnapshot):
        inner = self.bounds.inner
        layer = canvas.copy()
        cv2.rectangle(
            layer,
            (int(inner.left), int(inner.top)),
            (int(inner.right), int(inner.bottom)),
            BACKGROUND,
            thickness=-1,
        )
        cv2.addWeighted(layer, 0.7, canvas, 0.3, 0, dst=canvas)

        cx, cy = self.bounds.inner.center
        for text, dy, scale in (
            ("Game Over!", -20, 1.6),
            (f"Final score {snapshot.score}", 30, 0.9),
            ("Press N for a new game", 70, 0.7),
        ):
            (tw, _), _ = cv2.getTextSize(text, FONT, scale, 2)
            cv2.putText(
                canvas, text, (int(cx - tw / 2), int(cy + dy)),
                FONT, scale, TEXT_LIGHT, 2, cv2.LINE_AA,
            )

    def _draw_cursor(self, canvas: np.ndarray, snapshot: RenderSnapshot):
        ui = snapshot.ui
        if not ui.cursor_visible or ui.cursor is None:
            return

        if ui.category == UiCategory.CONTROL_ACTIVE:
            color = CONTROL_COLOR
        elif ui.is_pinching:
            color = PINCH_COLOR
        elif self.bounds.contains_inner(*ui.palm):
            color = TEXT_LIGHT
        else:
            color = TEXT_DARK

        radius = 26 if ui.recently_moved else 18
        center = (int(ui.cursor[0]), int(ui.cursor[1]))
        cv2.circle(canvas, center, radius, color, thickness=3, lineType=cv2.LINE_AA)
        cv2.circle(canvas, center, 5, color, thickness=-1, lineType=cv2.LINE_AA)

    def _draw_skeleton(self, canvas: np.ndarray, landmarks: np.ndarray, snapshot: RenderSnapshot):
        """Mirrored hand preview in the bottom-left corner."""
        pw, ph = PREVIEW_SIZE
        ox = 20
        oy = self.config.screen_height - ph - 50
        cv2.rectangle(canvas, (ox, oy), (ox + pw, oy + ph), (30, 20, 20), thickness=-1)

        ui = snapshot.ui
        if ui.control_active:
            color = CONTROL_COLOR
        elif ui.is_pinching:
            color = PINCH_COLOR
        else:
            color = (200, 200, 200)

        pts = [(ox + int((1 - p[0]) * pw), oy + int(p[1] * ph)) for p in landmarks]
        for a, b in HAND_CONNECTIONS:
            cv2.line(canvas, pts[a], pts[b], color, 2, cv2.LINE_AA)
        if ui.pinch_distance is not None and ui.pinch_distance < 0.15:
            cv2.line(canvas, pts[THUMB_TIP], pts[INDEX_TIP], color, 3, cv2.LINE_AA)
        for i, p in enumerate(pts):
            radius = 6 if i in (THUMB_TIP, INDEX_TIP) else 5 if i == WRIST else 3
            cv2.circle(canvas, p, radius, color, thickness=-1, lineType=cv2.LINE_AA)
