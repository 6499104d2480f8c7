"""Tests for recording and replaying gesture sessions."""

import json

import numpy as np
import pytest

from pinch2048.controller import GestureController
from pinch2048.grid import GridEngine
from pinch2048.observation import HandObservation
from pinch2048.recorder import GesturePlayer, GestureRecorder, RecordedFrame
from pinch2048.session import GameSession

from hand_fixtures import BOUNDS, CENTER, NO_HAND, SCREEN_H, SCREEN_W, make_hand, make_landmarks

CX, CY = CENTER


def record_swipe_session():
    """Pinch, swipe right, release, then press 'up' on the last frame."""
    rec = GestureRecorder()
    rec.start(timestamp=100.0)
    rec.add_frame(make_hand(CX, CY), timestamp=100.0)
    rec.add_frame(make_hand(CX + 100, CY), timestamp=100.1)
    rec.add_frame(NO_HAND, timestamp=100.2)
    rec.add_frame(make_hand(CX, CY, pinch=False, depth=False), keys=["up"], timestamp=100.6)
    rec.stop()
    return rec


def fresh_session(seed=5):
    engine = GridEngine(seed=seed)
    session = GameSession(engine, GestureController(BOUNDS, SCREEN_W, SCREEN_H))
    session.new_game()
    return session


class TestGestureRecorder:
    def test_frames_relative_to_start(self):
        rec = record_swipe_session()
        assert rec.frame_count == 4
        assert not rec.is_recording
        assert rec.duration == pytest.approx(0.6)

    def test_not_recording_ignores_frames(self):
        rec = GestureRecorder()
        rec.add_frame(make_hand(CX, CY), timestamp=1.0)
        assert rec.frame_count == 0

    def test_json_roundtrip(self, tmp_path):
        rec = record_swipe_session()
        path = tmp_path / "rec.json"
        rec.save(path)

        data = json.loads(path.read_text())
        assert data["version"] == 1
        assert data["frame_count"] == 4

        player = GesturePlayer.load(path)
        frames = list(player.play())
        assert len(frames) == 4
        assert frames[2].landmarks is None
        assert not frames[2].observation.present
        assert frames[3].keys == ["up"]
        assert not frames[3].observation.has_depth
        np.testing.assert_allclose(
            frames[1].observation.landmarks, make_hand(CX + 100, CY).landmarks
        )

    def test_compact_roundtrip(self, tmp_path):
        rec = record_swipe_session()
        path = rec.save_compact(tmp_path / "rec.bin")
        assert path.suffix == ".npz"

        player = GesturePlayer.load(path)
        frames = list(player.play())
        assert [f.timestamp for f in frames] == pytest.approx([0.0, 0.1, 0.2, 0.6])
        assert frames[2].landmarks is None
        assert frames[0].observation.has_depth
        assert not frames[3].observation.has_depth
        assert frames[3].keys == ["up"]
        np.testing.assert_array_equal(
            frames[0].observation.landmarks, make_hand(CX, CY).landmarks
        )

    def test_compact_keeps_full_precision(self, tmp_path):
        lm = make_landmarks(CX, CY)
        lm[4] = [0.5800000001, 0.3, 0.0]
        lm[8] = [0.6600000001, 0.3, 0.0]
        rec = GestureRecorder()
        rec.start(timestamp=0.0)
        rec.add_frame(HandObservation.from_landmarks(lm), timestamp=0.0)
        rec.stop()
        rec.save(tmp_path / "rec.json")
        path = rec.save_compact(tmp_path / "rec.npz")

        from_json = GesturePlayer.load(tmp_path / "rec.json").get_frame(0).observation
        from_npz = GesturePlayer.load(path).get_frame(0).observation
        np.testing.assert_array_equal(from_npz.landmarks, lm)
        np.testing.assert_array_equal(from_npz.landmarks, from_json.landmarks)


class TestGesturePlayer:
    def test_get_frame(self):
        player = GesturePlayer([RecordedFrame(0.0, None)])
        assert player.get_frame(0) is not None
        assert player.get_frame(1) is None
        assert player.get_frame(-1) is None

    def test_empty(self):
        player = GesturePlayer([])
        assert player.duration == 0.0
        assert list(player.play_realtime()) == []

    def test_realtime_keeps_order(self):
        frames = [RecordedFrame(t, None) for t in (0.0, 0.01, 0.02)]
        played = list(GesturePlayer(frames).play_realtime(speed=10.0))
        assert played == frames

    def test_replay_is_deterministic(self, tmp_path):
        path = tmp_path / "rec.json"
        record_swipe_session().save(path)

        results = []
        for _ in range(2):
            session = fresh_session()
            final = session.replay(GesturePlayer.load(path).play())
            results.append((final.grid, final.score, final.moves))

        assert results[0] == results[1]

    def test_replay_matches_live_session(self, tmp_path):
        live = fresh_session()
        live.process_observation(make_hand(CX, CY), timestamp=0.0)
        live.process_observation(make_hand(CX + 100, CY), timestamp=0.1)
        live.process_observation(NO_HAND, timestamp=0.2)
        live.process_observation(make_hand(CX, CY, pinch=False, depth=False), timestamp=0.6)
        live.handle_key("up", timestamp=0.6)

        path = tmp_path / "rec.json"
        record_swipe_session().save(path)
        replayed = fresh_session().replay(GesturePlayer.load(path).play())
        assert replayed.moves == live.snapshot().moves
        assert replayed.grid == live.snapshot().grid
