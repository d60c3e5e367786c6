"""
MediaPipe Hands wrapper tuned for single-hand pinch tracking.
"""

import logging
import numpy as np
import mediapipe as mp

logger = logging.getLogger(__name__)


class HandDetector:
    """Tracks one hand per frame with MediaPipe Hands."""

    def __init__(self, config: dict):
        self._model_complexity = config.get("model_complexity", 1)
        self._max_hands = config.get("max_num_hands", 1)
        self._min_detect_conf = config.get("min_detection_confidence", 0.8)
        self._min_track_conf = config.get("min_tracking_confidence", 0.8)

        if self._max_hands != 1:
            logger.warning("Only one hand is used for placement; max_num_hands=%d ignored",
                           self._max_hands)
            self._max_hands = 1

        self._mp_hands = mp.solutions.hands
        self._mp_drawing = mp.solutions.drawing_utils
        self._hands = None
        self._initialized = False

    def initialize(self):
        """Create the MediaPipe Hands graph."""
        self._hands = self._mp_hands.Hands(
            static_image_mode=False,
            model_complexity=self._model_complexity,
            max_num_hands=self._max_hands,
            min_detection_confidence=self._min_detect_conf,
            min_tracking_confidence=self._min_track_conf,
        )
        self._initialized = True
        logger.info(
            "MediaPipe Hands initialized (complexity=%d, detect_conf=%.2f, track_conf=%.2f)",
            self._model_complexity, self._min_detect_conf, self._min_track_conf,
        )

    def detect(self, rgb_frame: np.ndarray):
        """Run hand tracking on an RGB frame; returns the MediaPipe result."""
        if not self._initialized:
            self.initialize()

        rgb_frame.flags.writeable = False
        results = self._hands.process(rgb_frame)
        rgb_frame.flags.writeable = True
        return results

    def draw_landmarks(self, frame: np.ndarray, results, color=(0, 255, 0)):
        """Draw the tracked hand skeleton on a BGR frame."""
        if results and results.multi_hand_landmarks:
            landmark_spec = self._mp_drawing.DrawingSpec(color=color, thickness=2, circle_radius=2)
            connection_spec = self._mp_drawing.DrawingSpec(color=(200, 200, 200), thickness=1)
            for hand_landmarks in results.multi_hand_landmarks:
                self._mp_drawing.draw_landmarks(
                    frame,
                    hand_landmarks,
                    self._mp_hands.HAND_CONNECTIONS,
                    landmark_spec,
                    connection_spec,
                )
        return frame

    def close(self):
        """Release MediaPipe resources."""
        if self._hands:
            self._hands.close()
            self._hands = None
            self._initialized = False
            logger.info("MediaPipe Hands closed")

    def __enter__(self):
        self.initialize()
        return self

    def __exit__(self, *args):
        self.close()
