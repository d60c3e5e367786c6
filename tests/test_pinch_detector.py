"""
Tests for Pinch Detection
==========================
"""

import pytest

from conftest import make_hand_frame
from core.types import Landmark, LandmarkIndex, PinchSignal
from modules.recognition.pinch_detector import PINCH_THRESHOLD, PinchDetector, pinch_distance


class TestPinchDistance:
    """Distance is measured between thumb tip and index tip in 3-D."""

    def test_planar_distance(self):
        frame = make_hand_frame(0.03)
        assert pinch_distance(frame) == pytest.approx(0.03)

    def test_depth_contributes(self):
        frame = list(make_hand_frame(0.0))
        frame[LandmarkIndex.THUMB_TIP] = Landmark(0.5, 0.5, 0.0)
        frame[LandmarkIndex.INDEX_TIP] = Landmark(0.53, 0.54, 0.12)
        assert pinch_distance(frame) == pytest.approx(0.13)

    def test_other_landmarks_ignored(self):
        frame = list(make_hand_frame(0.02))
        frame[LandmarkIndex.MIDDLE_TIP] = Landmark(0.9, 0.9, 0.9)
        assert pinch_distance(frame) == pytest.approx(0.02)


class TestPinchLevel:
    """isPinching iff d < threshold; the boundary itself is not a pinch."""

    @pytest.fixture
    def detector(self):
        return PinchDetector({"pinch_threshold": PINCH_THRESHOLD})

    @pytest.mark.parametrize("distance", [0.0, 0.01, 0.03, 0.0449])
    def test_below_threshold_pinches(self, detector, distance):
        assert detector.detect(make_hand_frame(distance)).is_pinching is True

    @pytest.mark.parametrize("distance", [0.0451, 0.05, 0.2])
    def test_above_threshold_does_not_pinch(self, detector, distance):
        assert detector.detect(make_hand_frame(distance)).is_pinching is False

    def test_exact_threshold_does_not_pinch(self, detector):
        frame = make_hand_frame(PINCH_THRESHOLD, axis="z")
        assert pinch_distance(frame) == PINCH_THRESHOLD
        assert detector.detect(frame).is_pinching is False

    def test_default_threshold(self):
        assert PinchDetector().threshold == pytest.approx(0.045)

    @pytest.mark.parametrize("bad", [0, -0.01, float("nan"), float("inf")])
    def test_invalid_threshold_rejected(self, bad):
        with pytest.raises(ValueError):
            PinchDetector({"pinch_threshold": bad})


class TestReleaseEdge:
    """A release fires only on a pinching -> not pinching transition."""

    @pytest.fixture
    def detector(self):
        return PinchDetector()

    def test_release_fires_once(self, detector):
        signals = [detector.detect(make_hand_frame(d)) for d in (0.03, 0.02, 0.05, 0.06)]
        assert [s.just_released for s in signals] == [False, False, True, False]
        assert [s.is_pinching for s in signals] == [True, True, False, False]

    def test_no_release_without_prior_pinch(self, detector):
        signals = [detector.detect(make_hand_frame(d)) for d in (0.1, 0.08, 0.06)]
        assert not any(s.just_released for s in signals)

    def test_none_frame_returns_no_pinch(self, detector):
        assert detector.detect(None) == PinchSignal(False, False)

    def test_lost_tracking_does_not_fire_release(self, detector):
        assert detector.detect(make_hand_frame(0.02)).is_pinching
        assert detector.detect(None) == PinchSignal(False, False)
        assert detector.previous_pinching is False

        reappeared = detector.detect(make_hand_frame(0.1))
        assert reappeared == PinchSignal(False, False)

    def test_single_noisy_frame_releases(self, detector):
        """No smoothing: one frame above threshold is enough."""
        detector.detect(make_hand_frame(0.02))
        assert detector.detect(make_hand_frame(0.046)).just_released
        assert detector.detect(make_hand_frame(0.02)).is_pinching

    def test_reset_clears_memory(self, detector):
        detector.detect(make_hand_frame(0.02))
        detector.reset()
        assert detector.detect(make_hand_frame(0.1)).just_released is False

    def test_evaluate_is_pure(self, detector):
        frame = make_hand_frame(0.1)
        assert detector.evaluate(frame, True) == PinchSignal(False, True)
        assert detector.evaluate(frame, True) == PinchSignal(False, True)
        assert detector.previous_pinching is False
