"""Camera and window loop.

One camera frame per displayed frame: detect, update the session, draw,
poll the keyboard. If the camera or the detector cannot start, the game
keeps running with arrow keys only.
"""

from __future__ import annotations

import logging
import time
from typing import Optional

import cv2

from pinch2048.bounds import GameBounds
from pinch2048.config import GameConfig
from pinch2048.detector import HandDetector
from pinch2048.observation import HandObservation
from pinch2048.overlay import BoardRenderer
from pinch2048.recorder import GestureRecorder
from pinch2048.session import GameSession

logger = logging.getLogger("pinch2048.runner")

WINDOW_NAME = "pinch2048"

# cv2.waitKeyEx codes for arrow keys: GTK/Qt on Linux, Windows, macOS
ARROW_KEYS = {
    65362: "up", 65364: "down", 65361: "left", 65363: "right",
    2490368: "up", 2621440: "down", 2424832: "left", 2555904: "right",
    63232: "up", 63233: "down", 63234: "left", 63235: "right",
}
QUIT_KEYS = {ord("q"), 27}


def key_name(code: int) -> Optional[str]:
    """Translate a ``cv2.waitKeyEx`` code into a session key name."""
    if code < 0:
        return None
    if code in ARROW_KEYS:
        return ARROW_KEYS[code]
    if code < 256:
        char = chr(code).lower()
        if char in ("n", "r"):
            return char
    return None


class GameRunner:
    """Runs a session against a webcam and an OpenCV window."""

    def __init__(
        self,
        config: GameConfig,
        session: Optional[GameSession] = None,
        recorder: Optional[GestureRecorder] = None,
        use_camera: bool = True,
    ):
        self.config = config
        self.session = session or GameSession.from_config(config)
        self.recorder = recorder
        self.use_camera = use_camera
        self.bounds = GameBounds.centered(
            config.screen_width,
            config.screen_height,
            config.board_size,
            padding=config.bounds_padding,
            cursor_margin=config.cursor_margin,
        )
        self.renderer = BoardRenderer(config, self.bounds)
        self._capture = None
        self._detector: Optional[HandDetector] = None

    def _open_input(self):
        """Start camera and detector, or fall back to keyboard-only play."""
        if not self.use_camera:
            logger.info("Camera disabled, keyboard controls only")
            return

        cfg = self.config
        capture = cv2.VideoCapture(cfg.camera_index)
        if not capture.isOpened():
            logger.warning(
                "Could not open camera %d, keyboard controls only", cfg.camera_index
            )
            capture.release()
            return

        capture.set(cv2.CAP_PROP_FRAME_WIDTH, cfg.camera_width)
        capture.set(cv2.CAP_PROP_FRAME_HEIGHT, cfg.camera_height)

        try:
            self._detector = HandDetector(
                cfg.model_path,
                min_detection_confidence=cfg.min_detection_confidence,
                min_tracking_confidence=cfg.min_tracking_confidence,
            )
        except (ImportError, OSError, RuntimeError) as e:
            logger.warning("Hand tracking unavailable (%s), keyboard controls only", e)
            capture.release()
            return

        self._capture = capture
        logger.info("Hand tracking started on camera %d", cfg.camera_index)

    def _read_observation(self) -> Optional[HandObservation]:
        if self._capture is None or self._detector is None:
            return None

        ok, frame = self._capture.read()
        if not ok:
            return HandObservation.absent()

        frame_rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        return self._detector.detect(frame_rgb, int(time.monotonic() * 1000))

    def run(self):
        """Play until the window is closed or q/Esc is pressed."""
        self._open_input()
        session = self.session
        session.new_game()
        if self.recorder is not None:
            self.recorder.start()

        cv2.namedWindow(WINDOW_NAME, cv2.WINDOW_AUTOSIZE)
        try:
            while True:
                now = time.monotonic()
                observation = self._read_observation()
                if observation is not None:
                    snapshot = session.process_observation(observation, timestamp=now)
                else:
                    snapshot = session.snapshot()

                landmarks = observation.landmarks if observation is not None else None
                cv2.imshow(WINDOW_NAME, self.renderer.render(snapshot, landmarks, now=now))

                code = cv2.waitKeyEx(1)
                if code in QUIT_KEYS:
                    break
                if cv2.getWindowProperty(WINDOW_NAME, cv2.WND_PROP_VISIBLE) < 1:
                    break

                keys = []
                name = key_name(code)
                if name is not None:
                    session.handle_key(name, timestamp=now)
                    keys.append(name)

                if self.recorder is not None:
                    self.recorder.add_frame(observation, keys=keys, timestamp=now)
        finally:
            self.close()

    def close(self):
        if self.recorder is not None and self.recorder.is_recording:
            self.recorder.stop()
        if self._capture is not None:
            self._capture.release()
            self._capture = None
        if self._detector is not None:
            self._detector.close()
            self._detector = None
        cv2.destroyAllWindows()
