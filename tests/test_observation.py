"""Tests for hand observations and landmark geometry."""

from types import SimpleNamespace

import numpy as np
import pytest

from pinch2048.observation import (
    INDEX_TIP,
    THUMB_TIP,
    HandObservation,
    palm_center,
    pinch_distance,
)

from hand_fixtures import make_landmarks


def as_points(lm):
    """Mimic MediaPipe's NormalizedLandmark objects."""
    return [SimpleNamespace(x=float(p[0]), y=float(p[1]), z=float(p[2])) for p in lm]


class TestFromLandmarks:
    def test_array_input(self):
        obs = HandObservation.from_landmarks(make_landmarks(640, 360))
        assert obs.present
        assert obs.has_depth
        assert obs.landmarks.shape == (21, 3)

    def test_2d_input(self):
        obs = HandObservation.from_landmarks(make_landmarks(640, 360, depth=False))
        assert obs.present
        assert not obs.has_depth

    def test_attribute_objects(self):
        lm = make_landmarks(640, 360)
        obs = HandObservation.from_landmarks(as_points(lm))
        assert obs.present
        np.testing.assert_allclose(obs.landmarks, lm)

    def test_result_is_read_only(self):
        obs = HandObservation.from_landmarks(make_landmarks(640, 360))
        with pytest.raises(ValueError):
            obs.landmarks[0, 0] = 0.5

    def test_source_array_not_aliased(self):
        lm = make_landmarks(640, 360)
        obs = HandObservation.from_landmarks(lm)
        lm[0, 0] = 0.0
        assert obs.landmarks[0, 0] != 0.0

    def test_none_is_absent(self):
        assert not HandObservation.from_landmarks(None).present

    @pytest.mark.parametrize("bad", [
        np.zeros((20, 3)),
        np.zeros((21, 4)),
        np.zeros(21),
        [[0.5, 0.5]] * 10 + [[0.5]] * 11,
        "not landmarks",
    ])
    def test_malformed_shape_is_absent(self, bad):
        assert not HandObservation.from_landmarks(bad).present

    def test_nan_is_absent(self):
        lm = make_landmarks(640, 360)
        lm[5, 1] = np.nan
        assert not HandObservation.from_landmarks(lm).present

    def test_out_of_frame_is_absent(self):
        lm = make_landmarks(640, 360)
        lm[12, 0] = 1.2
        assert not HandObservation.from_landmarks(lm).present

    def test_depth_may_be_negative(self):
        lm = make_landmarks(640, 360)
        lm[:, 2] = -0.3
        assert HandObservation.from_landmarks(lm).present

    def test_to_list(self):
        assert HandObservation.absent().to_list() is None
        lm = make_landmarks(640, 360, depth=False)
        assert HandObservation.from_landmarks(lm).to_list() == lm.tolist()


class TestGeometry:
    def test_pinch_distance_3d(self):
        lm = np.full((21, 3), 0.5)
        lm[THUMB_TIP] = [0.5, 0.5, 0.0]
        lm[INDEX_TIP] = [0.5, 0.5, 0.06]
        assert pinch_distance(lm) == pytest.approx(0.06)

    def test_pinch_distance_2d(self):
        lm = np.full((21, 2), 0.5)
        lm[THUMB_TIP] = [0.2, 0.2]
        lm[INDEX_TIP] = [0.23, 0.24]
        assert pinch_distance(lm) == pytest.approx(0.05)

    def test_palm_center_is_wrist_mcp_midpoint(self):
        lm = np.full((21, 3), 0.5)
        lm[0] = [0.2, 0.6, 0.0]
        lm[9] = [0.4, 0.4, 0.0]
        assert palm_center(lm) == pytest.approx((0.3, 0.5))
