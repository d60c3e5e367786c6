"""
Normalizes MediaPipe hand-tracking results into HandFrames.

Zero hands and malformed results are treated identically: both become
None, which the placement controller handles as "no hand".
"""

import logging
from typing import Optional

import numpy as np

from core.types import HandFrame, Landmark, NUM_LANDMARKS

logger = logging.getLogger(__name__)


class LandmarkExtractor:
    """Converts MediaPipe Hands output to an immutable landmark tuple."""

    def __init__(self):
        self._malformed_count = 0

    def extract_landmarks(self, hand_landmarks) -> np.ndarray:
        """Convert one MediaPipe hand to a (21, 3) array of (x, y, z).

        Raises:
            ValueError: wrong landmark count, missing attributes or
                non-finite coordinates.
        """
        points = getattr(hand_landmarks, "landmark", hand_landmarks)
        try:
            landmarks = np.array(
                [[float(lm.x), float(lm.y), float(getattr(lm, "z", 0.0))] for lm in points],
                dtype=np.float64,
            )
        except (AttributeError, TypeError, ValueError) as e:
            raise ValueError("Unreadable landmark list: %s" % e) from e

        if landmarks.shape != (NUM_LANDMARKS, 3):
            raise ValueError("Expected (21, 3) landmarks, got %s" % str(landmarks.shape))
        if not np.all(np.isfinite(landmarks)):
            raise ValueError("Non-finite landmark coordinates")
        return landmarks

    def to_hand_frame(self, results) -> HandFrame:
        """First tracked hand as a HandFrame, or None."""
        hands = self._first_hand(results)
        if hands is None:
            return None
        try:
            landmarks = self.extract_landmarks(hands)
        except ValueError as e:
            self._malformed_count += 1
            logger.debug("Malformed hand result dropped: %s", e)
            return None
        return tuple(Landmark(x, y, z) for x, y, z in landmarks)

    @staticmethod
    def _first_hand(results) -> Optional[object]:
        if results is None:
            return None
        # Legacy solutions API uses multi_hand_landmarks, Tasks API hand_landmarks.
        hands = getattr(results, "multi_hand_landmarks", None)
        if hands is None:
            hands = getattr(results, "hand_landmarks", None)
        if not hands:
            return None
        return hands[0]

    @property
    def malformed_count(self) -> int:
        return self._malformed_count
