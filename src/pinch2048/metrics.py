"""Session counters with a Prometheus text rendering.

Tracked metrics:
- pinch2048_frames_total (counter)
- pinch2048_hands_detected_total (counter)
- pinch2048_moves_total (counter, by direction and source)
- pinch2048_moves_rejected_total (counter, by reason)
- pinch2048_games_total / pinch2048_game_overs_total (counters)
- pinch2048_frame_latency_seconds (histogram)
- pinch2048_hand_detection_rate (gauge)
"""

from __future__ import annotations

import time
from collections import Counter


class _Histogram:
    """Cumulative-bucket histogram."""

    def __init__(self, buckets: list[float]):
        self.buckets = sorted(buckets)
        self.bucket_counts = [0] * len(self.buckets)
        self.count = 0
        self.sum = 0.0

    def observe(self, value: float):
        self.count += 1
        self.sum += value
        for i, b in enumerate(self.buckets):
            if value <= b:
                self.bucket_counts[i] += 1
                break

    def render(self, name: str, help_text: str) -> list[str]:
        lines = [f"# HELP {name} {help_text}", f"# TYPE {name} histogram"]
        cumulative = 0
        for b, c in zip(self.buckets, self.bucket_counts):
            cumulative += c
            lines.append(f'{name}_bucket{{le="{b}"}} {cumulative}')
        lines.append(f'{name}_bucket{{le="+Inf"}} {self.count}')
        lines.append(f"{name}_sum {self.sum:.6f}")
        lines.append(f"{name}_count {self.count}")
        return lines


class GameMetrics:
    """Counts frames, moves and games for one running session."""

    def __init__(self):
        self.moves: Counter = Counter()  # (direction, source) -> count
        self.rejections: Counter = Counter()  # reason -> count
        self.frames_total = 0
        self.hands_total = 0
        self.games_total = 0
        self.game_overs_total = 0
        self.hand_detection_rate = 0.0
        self._latency = _Histogram([0.001, 0.002, 0.005, 0.010, 0.020, 0.033, 0.050, 0.100])
        self._start_time = time.time()

    def record_frame(self, latency_seconds: float, hand_present: bool):
        self.frames_total += 1
        if hand_present:
            self.hands_total += 1
        self._latency.observe(latency_seconds)
        rate = 1.0 if hand_present else 0.0
        self.hand_detection_rate = 0.95 * self.hand_detection_rate + 0.05 * rate

    def record_move(self, direction: str, source: str):
        self.moves[(direction, source)] += 1

    def record_rejection(self, reason: str):
        self.rejections[reason] += 1

    def record_new_game(self):
        self.games_total += 1

    def record_game_over(self):
        self.game_overs_total += 1

    @property
    def total_moves(self) -> int:
        return sum(self.moves.values())

    def render(self) -> str:
        """Render all metrics in Prometheus text exposition format."""
        lines: list[str] = [
            "# HELP pinch2048_uptime_seconds Time since the session started",
            "# TYPE pinch2048_uptime_seconds gauge",
            f"pinch2048_uptime_seconds {time.time() - self._start_time:.1f}",
            "",
            "# HELP pinch2048_frames_total Camera frames processed",
            "# TYPE pinch2048_frames_total counter",
            f"pinch2048_frames_total {self.frames_total}",
            "",
            "# HELP pinch2048_hands_detected_total Frames with a usable hand",
            "# TYPE pinch2048_hands_detected_total counter",
            f"pinch2048_hands_detected_total {self.hands_total}",
            "",
            "# HELP pinch2048_moves_total Accepted moves by direction and input source",
            "# TYPE pinch2048_moves_total counter",
        ]
        for (direction, source), count in sorted(self.moves.items()):
            lines.append(
                f'pinch2048_moves_total{{direction="{direction}",source="{source}"}} {count}'
            )
        lines += [
            "",
            "# HELP pinch2048_moves_rejected_total Move requests that changed nothing",
            "# TYPE pinch2048_moves_rejected_total counter",
        ]
        for reason, count in sorted(self.rejections.items()):
            lines.append(f'pinch2048_moves_rejected_total{{reason="{reason}"}} {count}')
        lines += [
            "",
            "# HELP pinch2048_games_total Games started",
            "# TYPE pinch2048_games_total counter",
            f"pinch2048_games_total {self.games_total}",
            "",
            "# HELP pinch2048_game_overs_total Games that reached a terminal board",
            "# TYPE pinch2048_game_overs_total counter",
            f"pinch2048_game_overs_total {self.game_overs_total}",
            "",
        ]
        lines += self._latency.render(
            "pinch2048_frame_latency_seconds", "Frame processing latency in seconds"
        )
        lines += [
            "",
            "# HELP pinch2048_hand_detection_rate Moving average of frames with a hand",
            "# TYPE pinch2048_hand_detection_rate gauge",
            f"pinch2048_hand_detection_rate {self.hand_detection_rate:.4f}",
        ]
        return "\n".join(lines) + "\n"
