"""pinch2048 - 2048 driven by arrow keys or pinch-and-swipe hand gestures."""

__version__ = "0.4.0"

from pinch2048.direction import Direction
from pinch2048.grid import GridEngine, GridState, MoveResult, SpawnedTile
from pinch2048.observation import HandObservation
from pinch2048.bounds import GameBounds, Rect
from pinch2048.controller import GestureController, GestureState, UiCategory, UiSnapshot
from pinch2048.session import GameSession, InputSource, MoveEvent, RenderSnapshot
from pinch2048.config import GameConfig, ConfigError
from pinch2048.persistence import BestScoreStore
from pinch2048.metrics import GameMetrics
from pinch2048.recorder import GestureRecorder, GesturePlayer
