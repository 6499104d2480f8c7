"""Landmark session recording and replay.

A recording is the stream a session consumed: one optional hand per frame
plus any keys pressed on that frame. Replaying it through a seeded session
reproduces the game without a camera, which is how gesture tuning is
checked on headless machines.
"""

from __future__ import annotations

import json
import time
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Iterator, Optional

import numpy as np

from pinch2048.observation import NUM_LANDMARKS, HandObservation


@dataclass
class RecordedFrame:
    """A single frame in a recording."""
    timestamp: float  # seconds from recording start
    landmarks: Optional[list[list[float]]]  # (21, 2|3) or None when no hand
    keys: list[str] = field(default_factory=list)

    @property
    def observation(self) -> HandObservation:
        return HandObservation.from_landmarks(self.landmarks)


class GestureRecorder:
    """Collects frames and writes them to JSON or compressed NPZ.

    Usage:
        recorder = GestureRecorder()
        recorder.start()
        recorder.add_frame(observation, keys=["left"])
        recorder.save("session.json")
    """

    def __init__(self):
        self._frames: list[RecordedFrame] = []
        self._start_time: Optional[float] = None
        self._recording = False

    def start(self, timestamp: Optional[float] = None):
        """Begin a new recording session."""
        self._frames = []
        self._start_time = timestamp if timestamp is not None else time.monotonic()
        self._recording = True

    def stop(self) -> int:
        """Stop recording. Returns number of frames captured."""
        self._recording = False
        return len(self._frames)

    @property
    def is_recording(self) -> bool:
        return self._recording

    @property
    def frame_count(self) -> int:
        return len(self._frames)

    @property
    def duration(self) -> float:
        if not self._frames:
            return 0.0
        return self._frames[-1].timestamp

    def add_frame(
        self,
        observation: Optional[HandObservation],
        keys: Optional[list[str]] = None,
        timestamp: Optional[float] = None,
    ):
        if not self._recording:
            return

        now = timestamp if timestamp is not None else time.monotonic()
        landmarks = observation.to_list() if observation is not None else None
        self._frames.append(RecordedFrame(
            timestamp=now - self._start_time,
            landmarks=landmarks,
            keys=list(keys or []),
        ))

    def save(self, path: str | Path):
        """Save recording to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "version": 1,
            "frame_count": len(self._frames),
            "duration": self.duration,
            "frames": [asdict(f) for f in self._frames],
        }
        with open(path, "w") as f:
            json.dump(data, f)

    def save_compact(self, path: str | Path) -> Path:
        """Save as compressed NPZ. Frames without a hand are stored as NaN."""
        path = Path(path).with_suffix(".npz")
        path.parent.mkdir(parents=True, exist_ok=True)

        n = len(self._frames)
        timestamps = np.array([f.timestamp for f in self._frames], dtype=np.float64)
        landmarks = np.full((n, NUM_LANDMARKS, 3), np.nan, dtype=np.float64)
        depth = np.zeros(n, dtype=bool)
        for i, f in enumerate(self._frames):
            if f.landmarks is None:
                continue
            arr = np.array(f.landmarks, dtype=np.float64)
            landmarks[i, :, : arr.shape[1]] = arr
            depth[i] = arr.shape[1] == 3

        np.savez_compressed(
            path,
            timestamps=timestamps,
            landmarks=landmarks,
            depth=depth,
            keys=np.array([json.dumps([f.keys for f in self._frames])]),
        )
        return path


class GesturePlayer:
    """Replays a recorded session.

    Usage:
        player = GesturePlayer.load("session.json")
        for frame in player.play():
            session.process_observation(frame.observation, timestamp=frame.timestamp)
    """

    def __init__(self, frames: list[RecordedFrame]):
        self._frames = frames

    @classmethod
    def load(cls, path: str | Path) -> GesturePlayer:
        path = Path(path)
        if path.suffix == ".npz":
            return cls._load_compact(path)

        with open(path) as f:
            data = json.load(f)

        frames = [
            RecordedFrame(
                timestamp=f["timestamp"],
                landmarks=f.get("landmarks"),
                keys=f.get("keys", []),
            )
            for f in data["frames"]
        ]
        return cls(frames)

    @classmethod
    def _load_compact(cls, path: Path) -> GesturePlayer:
        data = np.load(path, allow_pickle=False)
        timestamps = data["timestamps"]
        landmarks = data["landmarks"]
        depth = data["depth"]
        keys = json.loads(str(data["keys"][0]))

        frames = []
        for i in range(len(timestamps)):
            lm = landmarks[i]
            if np.isnan(lm).all():
                points = None
            else:
                points = (lm if depth[i] else lm[:, :2]).tolist()
            frames.append(RecordedFrame(
                timestamp=float(timestamps[i]),
                landmarks=points,
                keys=keys[i] if i < len(keys) else [],
            ))
        return cls(frames)

    @property
    def frame_count(self) -> int:
        return len(self._frames)

    @property
    def duration(self) -> float:
        if not self._frames:
            return 0.0
        return self._frames[-1].timestamp

    def play(self) -> Iterator[RecordedFrame]:
        """Iterate through all frames instantly (no timing)."""
        yield from self._frames

    def play_realtime(self, speed: float = 1.0) -> Iterator[RecordedFrame]:
        """Replay at original timing, scaled by ``speed``."""
        if not self._frames:
            return

        start = time.monotonic()
        for frame in self._frames:
            target_time = frame.timestamp / speed
            elapsed = time.monotonic() - start
            if target_time > elapsed:
                time.sleep(target_time - elapsed)
            yield frame

    def get_frame(self, index: int) -> Optional[RecordedFrame]:
        if 0 <= index < len(self._frames):
            return self._frames[index]
        return None
