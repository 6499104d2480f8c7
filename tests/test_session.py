"""Tests for the game session: input wiring, shared cooldown, best score."""

import json

import pytest

from pinch2048.config import GameConfig
from pinch2048.controller import GestureController, UiCategory
from pinch2048.direction import Direction
from pinch2048.grid import GridEngine
from pinch2048.persistence import BestScoreStore
from pinch2048.session import GameSession, InputSource

from hand_fixtures import BOUNDS, CENTER, NO_HAND, SCREEN_H, SCREEN_W, make_hand

CX, CY = CENTER

# Every direction changes this board on an otherwise empty grid
OPEN_BOARD = [
    [0, 0, 0, 0],
    [0, 2, 0, 0],
    [0, 0, 4, 0],
    [0, 0, 0, 0],
]


def make_session(grid=OPEN_BOARD, best_store=None, seed=0):
    engine = GridEngine(seed=seed)
    engine.load(grid)
    controller = GestureController(BOUNDS, SCREEN_W, SCREEN_H)
    return GameSession(engine, controller, best_store=best_store)


@pytest.fixture
def session():
    return make_session()


@pytest.fixture
def events(session):
    captured = []
    session.on_move(captured.append)
    return captured


class TestGestureMoves:
    def test_swipe_moves_tiles(self, session, events):
        session.process_observation(make_hand(CX, CY), timestamp=0.0)
        snap = session.process_observation(make_hand(CX - 100, CY), timestamp=0.1)

        assert len(events) == 1
        assert events[0].source == InputSource.GESTURE
        assert events[0].direction == Direction.LEFT
        assert events[0].result.moved
        assert snap.moves == 1
        assert snap.last_direction == Direction.LEFT
        assert session.controller.locked

    def test_one_move_per_pinch(self, session, events):
        """Sustained pinch with repeated large swipes fires exactly once."""
        t = 0.0
        session.process_observation(make_hand(CX, CY), timestamp=t)
        positions = [CX + 100, CX + 200, CX + 50, CX - 100, CX + 100, CX - 150, CX + 150]
        for x in positions:
            t += 0.1
            session.process_observation(make_hand(x, CY), timestamp=t)
        for y in [CY - 150, CY + 150, CY - 150]:
            t += 0.4
            snap = session.process_observation(make_hand(CX, y), timestamp=t)

        assert len([e for e in events if e.result.moved]) == 1
        assert snap.ui.category == UiCategory.RELEASE_PINCH

        # releasing the pinch re-arms the controller
        t += 0.1
        session.process_observation(make_hand(CX, CY, pinch=False), timestamp=t)
        t += 0.1
        session.process_observation(make_hand(CX, CY), timestamp=t)
        t += 0.1
        session.process_observation(make_hand(CX, CY + 100), timestamp=t)
        gestures = [e for e in events if e.source == InputSource.GESTURE]
        assert len(gestures) == 2
        assert gestures[1].direction == Direction.DOWN

    def test_swipe_with_no_effect_does_not_lock(self):
        session = make_session(grid=[[2, 4, 0, 0]] + [[0] * 4] * 3)
        session.process_observation(make_hand(CX, CY), timestamp=0.0)
        session.process_observation(make_hand(CX - 100, CY), timestamp=0.1)
        assert not session.controller.locked

        session.process_observation(make_hand(CX - 100, CY), timestamp=0.2)
        session.process_observation(make_hand(CX, CY), timestamp=0.3)
        assert session.engine.state.moves == 1

    def test_rejected_by_cooldown_does_not_lock(self, session):
        session.process_observation(make_hand(CX, CY), timestamp=0.0)
        session.process_observation(make_hand(CX + 100, CY), timestamp=0.1)
        session.process_observation(make_hand(CX + 100, CY, pinch=False), timestamp=0.15)
        session.process_observation(make_hand(CX + 100, CY), timestamp=0.2)
        snap = session.process_observation(make_hand(CX, CY), timestamp=0.3)
        assert snap.moves == 1
        assert not session.controller.locked

    def test_no_hand_frames_are_harmless(self, session, events):
        for i in range(5):
            snap = session.process_observation(NO_HAND, timestamp=i * 0.1)
        assert events == []
        assert snap.ui.category == UiCategory.NO_HAND
        assert session.metrics.frames_total == 5
        assert session.metrics.hands_total == 0


class TestKeyboard:
    @pytest.mark.parametrize("key,direction", [
        ("up", Direction.UP),
        ("ArrowDown", Direction.DOWN),
        ("left", Direction.LEFT),
        ("ArrowRight", Direction.RIGHT),
    ])
    def test_arrow_keys(self, session, events, key, direction):
        result = session.handle_key(key, timestamp=1.0)
        assert result.moved
        assert events[0].direction == direction
        assert events[0].source == InputSource.KEYBOARD

    def test_unknown_key_ignored(self, session, events):
        assert session.handle_key("x", timestamp=1.0) is None
        assert events == []

    def test_new_game_key(self, session):
        session.handle_key("left", timestamp=1.0)
        session.handle_key("n", timestamp=2.0)
        assert session.engine.score == 0
        assert session.engine.state.moves == 0

    def test_keyboard_move_locks_held_pinch(self, session, events):
        session.process_observation(make_hand(CX, CY), timestamp=0.0)
        assert session.handle_key("left", timestamp=0.05).moved
        assert session.controller.locked

        # same pinch, long past the cooldown: no second move
        snap = session.process_observation(make_hand(CX, CY), timestamp=0.5)
        assert snap.ui.category == UiCategory.RELEASE_PINCH
        session.process_observation(make_hand(CX + 100, CY), timestamp=0.6)
        assert len(events) == 1

        session.process_observation(make_hand(CX, CY, pinch=False), timestamp=0.7)
        assert not session.controller.locked


class TestSharedCooldown:
    def test_keyboard_then_gesture(self, session, events):
        session.handle_key("left", timestamp=1.0)
        # release the lock the key move set, then swipe inside the cooldown
        session.process_observation(make_hand(CX, CY), timestamp=1.02)
        session.process_observation(make_hand(CX, CY, pinch=False), timestamp=1.04)
        session.process_observation(make_hand(CX, CY), timestamp=1.06)
        session.process_observation(make_hand(CX + 100, CY), timestamp=1.1)

        assert [e.result.moved for e in events] == [True, False]
        assert events[1].result.rejected_reason == "cooldown"
        assert session.metrics.rejections["cooldown"] == 1

    def test_gesture_then_keyboard(self, session):
        session.process_observation(make_hand(CX, CY), timestamp=1.0)
        session.process_observation(make_hand(CX + 100, CY), timestamp=1.1)
        before = session.engine.snapshot()

        assert not session.handle_key("left", timestamp=1.2).moved
        assert session.engine.snapshot() == before
        assert session.handle_key("left", timestamp=1.5).moved

    def test_two_quick_keys(self, session):
        first = session.request_move(Direction.LEFT, timestamp=0.0)
        second = session.request_move(Direction.RIGHT, timestamp=0.299)
        assert first.moved
        assert not second.moved


class TestBestScore:
    MERGE_BOARD = [[2, 2, 0, 0]] + [[0] * 4] * 3

    def test_best_follows_score(self):
        session = make_session(grid=self.MERGE_BOARD)
        session.request_move(Direction.LEFT, timestamp=0.0)
        assert session.best_score == 4
        assert session.snapshot().best_score == 4

    def test_best_not_lowered_by_new_game(self):
        session = make_session(grid=self.MERGE_BOARD)
        session.request_move(Direction.LEFT, timestamp=0.0)
        session.new_game()
        assert session.snapshot().score == 0
        assert session.snapshot().best_score == 4

    def test_best_persisted(self, tmp_path):
        path = tmp_path / "best.json"
        session = make_session(grid=self.MERGE_BOARD, best_store=BestScoreStore(path))
        session.request_move(Direction.LEFT, timestamp=0.0)
        assert json.loads(path.read_text()) == {"best_score": 4}

    def test_best_loaded_at_startup(self, tmp_path):
        path = tmp_path / "best.json"
        path.write_text(json.dumps({"best_score": 512}))
        session = make_session(grid=self.MERGE_BOARD, best_store=BestScoreStore(path))
        assert session.best_score == 512
        session.request_move(Direction.LEFT, timestamp=0.0)
        assert session.best_score == 512
        assert json.loads(path.read_text()) == {"best_score": 512}


class TestNewGame:
    def test_new_game_releases_lock(self, session):
        session.process_observation(make_hand(CX, CY), timestamp=0.0)
        session.process_observation(make_hand(CX + 100, CY), timestamp=0.1)
        assert session.controller.locked

        session.new_game()
        assert not session.controller.locked
        assert session.snapshot().last_direction is None
        assert session.metrics.games_total == 1

    def test_game_over_recorded(self):
        grid = [
            [2, 4, 2, 4],
            [4, 2, 4, 2],
            [2, 4, 2, 4],
            [0, 4, 2, 4],
        ]
        engine = GridEngine(seed=0, four_probability=0.0)
        engine.load(grid)
        session = GameSession(engine, GestureController(BOUNDS, SCREEN_W, SCREEN_H))
        result = session.request_move(Direction.LEFT, timestamp=0.0)

        assert result.game_over
        assert session.snapshot().game_over
        assert session.metrics.game_overs_total == 1
        assert not session.request_move(Direction.UP, timestamp=1.0).moved


class TestFromConfig:
    def test_layout_and_thresholds(self, tmp_path):
        cfg = GameConfig(data_dir=str(tmp_path), move_cooldown=0.5, seed=3)
        session = GameSession.from_config(cfg)
        assert session.engine.move_cooldown == 0.5
        assert session.controller.bounds == BOUNDS
        assert session.best_store.path == tmp_path / "best_score.json"

        session.new_game()
        other = GameSession.from_config(cfg)
        other.new_game()
        assert session.snapshot().grid == other.snapshot().grid
