"""Best-score storage.

The best score lives in a small JSON file. A missing or unreadable file
reads as 0; failed writes are logged and otherwise ignored so a read-only
home directory never interrupts a game.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

logger = logging.getLogger("pinch2048.persistence")


class BestScoreStore:
    """Reads and writes the best score. ``path=None`` keeps it in memory only."""

    def __init__(self, path: Optional[str | Path] = None):
        self.path = Path(path) if path is not None else None
        self._value: Optional[int] = None

    def load(self) -> int:
        if self._value is not None:
            return self._value

        self._value = self._read()
        return self._value

    def _read(self) -> int:
        if self.path is None or not self.path.exists():
            return 0

        try:
            data = json.loads(self.path.read_text())
            value = int(data["best_score"])
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning("Could not read best score from %s: %s", self.path, e)
            return 0

        return max(0, value)

    def save(self, score: int):
        self._value = int(score)
        if self.path is None:
            return

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps({"best_score": self._value}))
        except OSError as e:
            logger.warning("Could not save best score to %s: %s", self.path, e)

    def reset(self):
        self.save(0)
