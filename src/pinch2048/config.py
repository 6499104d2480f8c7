"""Game configuration: gesture thresholds, layout, camera and storage paths.

Loaded from YAML:
    config = GameConfig.from_yaml("pinch2048.yml")

Any key left out keeps its default. Unknown keys are ignored with a warning.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, fields
from pathlib import Path

import yaml

logger = logging.getLogger("pinch2048.config")

DEFAULT_DATA_DIR = Path.home() / ".pinch2048"


class ConfigError(ValueError):
    """Raised when a config file cannot be turned into a GameConfig."""


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclass
class GameConfig:
    # Gesture
    pinch_threshold: float = 0.08
    swipe_threshold: float = 80.0
    swipe_time_limit: float = 0.7
    # Engine
    move_cooldown: float = 0.3
    four_probability: float = 0.1
    seed: int | None = None
    # Layout (px)
    screen_width: int = 1280
    screen_height: int = 720
    cell_size: int = 110
    cell_gap: int = 14
    board_padding: int = 14
    bounds_padding: float = 80.0
    cursor_margin: float = 25.0
    # Camera / detector
    camera_index: int = 0
    camera_width: int = 640
    camera_height: int = 480
    min_detection_confidence: float = 0.75
    min_tracking_confidence: float = 0.6
    # Storage
    data_dir: str = str(DEFAULT_DATA_DIR)

    @property
    def board_size(self) -> int:
        """Side length of the drawn board, padding included."""
        return 2 * self.board_padding + 4 * self.cell_size + 3 * self.cell_gap

    @property
    def best_score_path(self) -> Path:
        return Path(self.data_dir) / "best_score.json"

    @property
    def model_path(self) -> Path:
        return Path(self.data_dir) / "hand_landmarker.task"

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> GameConfig:
        known = {f.name: f for f in fields(cls)}
        kwargs = {}
        for key, value in data.items():
            if key not in known:
                logger.warning("Ignoring unknown config key: %s", key)
                continue
            kwargs[key] = value

        config = cls(**kwargs)
        config.validate()
        return config

    def validate(self):
        integers = [
            "screen_width", "screen_height", "cell_size", "cell_gap", "board_padding",
            "camera_index", "camera_width", "camera_height",
        ]
        for name in integers:
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool):
                raise ConfigError(f"{name} must be an integer, got {value!r}")

        positive = [
            "pinch_threshold", "swipe_threshold", "swipe_time_limit",
            "screen_width", "screen_height", "cell_size",
        ]
        for name in positive:
            value = getattr(self, name)
            if not _is_number(value) or value <= 0:
                raise ConfigError(f"{name} must be a positive number, got {value!r}")

        non_negative = [
            "move_cooldown", "cell_gap", "board_padding", "bounds_padding", "cursor_margin",
        ]
        for name in non_negative:
            value = getattr(self, name)
            if not _is_number(value) or value < 0:
                raise ConfigError(f"{name} must be >= 0, got {value!r}")

        if not _is_number(self.four_probability) or not 0.0 <= self.four_probability <= 1.0:
            raise ConfigError(f"four_probability must be in [0, 1], got {self.four_probability!r}")

        if self.seed is not None and (not isinstance(self.seed, int) or isinstance(self.seed, bool)):
            raise ConfigError(f"seed must be an integer or null, got {self.seed!r}")

    @classmethod
    def from_yaml(cls, path: str | Path) -> GameConfig:
        with open(path) as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML in {path}: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError(f"{path} must contain a mapping at the top level")

        try:
            return cls.from_dict(data)
        except TypeError as e:
            raise ConfigError(str(e)) from e

    def to_yaml(self, path: str | Path):
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)
