"""
Thumb/index pinch detection with falling-edge (release) reporting.

Level: pinching while the 3-D distance between thumb tip and index tip is
strictly below the threshold. Edge: a release fires on the first processed
frame that is not pinching after one that was. There is no smoothing or
hysteresis; one noisy frame can produce a release.
"""

import math
import logging
from typing import Optional, Sequence

from core.types import HandFrame, Landmark, LandmarkIndex, PinchSignal, NO_PINCH

logger = logging.getLogger(__name__)

PINCH_THRESHOLD = 0.045  # normalized units


def pinch_distance(frame: Sequence[Landmark]) -> float:
    """Euclidean distance between thumb tip and index tip in (x, y, z)."""
    thumb = frame[LandmarkIndex.THUMB_TIP]
    index = frame[LandmarkIndex.INDEX_TIP]
    return math.sqrt(
        (thumb.x - index.x) ** 2 +
        (thumb.y - index.y) ** 2 +
        (thumb.z - index.z) ** 2
    )


class PinchDetector:
    """Turns hand frames into a pinch level and a release edge.

    Owns the "previous frame was pinching" memory. A None frame resets it,
    so losing tracking mid-pinch never fires a release later.
    """

    def __init__(self, config: Optional[dict] = None):
        config = config or {}
        threshold = float(config.get("pinch_threshold", PINCH_THRESHOLD))
        if not math.isfinite(threshold) or threshold <= 0:
            raise ValueError("pinch_threshold must be a positive number, got %r" % threshold)
        self._threshold = threshold
        self._previous_pinching = False

    def evaluate(self, frame: HandFrame, previous_pinching: bool) -> PinchSignal:
        """Pure form of detect(): no state is read or written."""
        if frame is None:
            return NO_PINCH
        is_pinching = pinch_distance(frame) < self._threshold
        return PinchSignal(
            is_pinching=is_pinching,
            just_released=previous_pinching and not is_pinching,
        )

    def detect(self, frame: HandFrame) -> PinchSignal:
        """Process one frame and update the pinch memory."""
        signal = self.evaluate(frame, self._previous_pinching)
        if signal.just_released:
            logger.debug("Pinch released")
        elif signal.is_pinching and not self._previous_pinching:
            logger.debug("Pinch started")
        self._previous_pinching = signal.is_pinching
        return signal

    def reset(self):
        self._previous_pinching = False

    @property
    def threshold(self) -> float:
        return self._threshold

    @property
    def previous_pinching(self) -> bool:
        return self._previous_pinching
