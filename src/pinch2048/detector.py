"""Hand landmark detection using the MediaPipe Tasks HandLandmarker."""

from __future__ import annotations

import logging
import urllib.request
from pathlib import Path

import numpy as np

from pinch2048.observation import HandObservation

try:
    import mediapipe as mp
    from mediapipe.tasks import python as mp_python
    from mediapipe.tasks.python import vision
except ImportError:
    mp = None

logger = logging.getLogger("pinch2048.detector")

MODEL_URL = (
    "https://storage.googleapis.com/mediapipe-models/hand_landmarker/"
    "hand_landmarker/float16/latest/hand_landmarker.task"
)


def ensure_model(path: str | Path, url: str = MODEL_URL) -> Path:
    """Download the hand landmarker model to ``path`` if it is not there yet."""
    path = Path(path)
    if path.exists():
        return path

    path.parent.mkdir(parents=True, exist_ok=True)
    logger.info("Downloading hand landmarker model to %s", path)
    tmp = path.with_suffix(".part")
    urllib.request.urlretrieve(url, tmp)
    tmp.replace(path)
    return path


class HandDetector:
    """Extracts the 21 landmarks of a single hand from video frames.

    Each landmark is (x, y, z) with x and y normalized to [0, 1] relative
    to the image. Runs in VIDEO mode, so timestamps passed to ``detect``
    must increase; repeated or backwards timestamps are nudged forward.
    """

    def __init__(
        self,
        model_path: str | Path,
        min_detection_confidence: float = 0.75,
        min_tracking_confidence: float = 0.6,
    ):
        if mp is None:
            raise ImportError(
                "mediapipe is required. Install with: pip install mediapipe"
            )

        model_path = ensure_model(model_path)
        self._landmarker = vision.HandLandmarker.create_from_options(
            vision.HandLandmarkerOptions(
                base_options=mp_python.BaseOptions(model_asset_path=str(model_path)),
                running_mode=vision.RunningMode.VIDEO,
                num_hands=1,
                min_hand_detection_confidence=min_detection_confidence,
                min_tracking_confidence=min_tracking_confidence,
            )
        )
        self._last_timestamp_ms = -1

    def detect(self, frame_rgb: np.ndarray, timestamp_ms: int) -> HandObservation:
        """Detect a hand in an RGB frame (H, W, 3), uint8.

        Returns an absent observation when no hand is found.
        """
        timestamp_ms = max(int(timestamp_ms), self._last_timestamp_ms + 1)
        self._last_timestamp_ms = timestamp_ms

        image = mp.Image(image_format=mp.ImageFormat.SRGB, data=np.ascontiguousarray(frame_rgb))
        result = self._landmarker.detect_for_video(image, timestamp_ms)

        if not result.hand_landmarks:
            return HandObservation.absent()

        return HandObservation.from_landmarks(result.hand_landmarks[0])

    def close(self):
        """Release MediaPipe resources."""
        self._landmarker.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()
