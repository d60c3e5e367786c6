"""
Per-frame pipeline for the AR voxel builder.

One tick:
    Camera -> HandDetector -> LandmarkExtractor (HandFrame)
    -> PlacementController (pinch, projection, store)
    -> SceneRenderer -> Dashboard

The placement controller is only ever invoked from tick(), so the store
and preview are never touched concurrently.
"""

import time
import logging

import cv2

from core.session import BuildSession

logger = logging.getLogger(__name__)


class PipelineResult:
    """Result of a single pipeline iteration."""

    __slots__ = (
        "frame", "frame_id", "hand_detected", "pinching",
        "placed", "count", "latency_ms", "timestamp",
    )

    def __init__(self):
        self.frame = None
        self.frame_id = 0
        self.hand_detected = False
        self.pinching = False
        self.placed = None
        self.count = 0
        self.latency_ms = 0.0
        self.timestamp = 0.0


class Pipeline:
    """Composes capture, tracking, placement and rendering."""

    def __init__(
        self,
        session: BuildSession,
        camera,
        detector,
        extractor,
        controller,
        renderer,
        dashboard,
        performance_monitor,
        config=None,
    ):
        self._session = session
        self._camera = camera
        self._detector = detector
        self._extractor = extractor
        self._controller = controller
        self._renderer = renderer
        self._dashboard = dashboard
        self._perf = performance_monitor

        config = config or {}
        self._use_threading = config.get("enable_threading", True)
        self._show_landmarks = config.get("show_landmarks", False)
        self._render_enabled = config.get("render", True)

        self._frame_count = 0
        self._hand_detected = False
        self._pinching = False

    def tick(self) -> PipelineResult:
        """Execute one full pipeline iteration."""
        result = PipelineResult()
        result.timestamp = time.time()

        with self._perf.measure("capture"):
            if self._use_threading:
                frame_id, frame = self._camera.read()
            else:
                frame_id, frame = self._camera.read_sync()

        if frame is None:
            return result

        result.frame_id = frame_id
        self._frame_count += 1

        with self._perf.measure("detection"):
            rgb_frame = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
            detection_results = self._detector.detect(rgb_frame)
            hand_frame = self._extractor.to_hand_frame(detection_results)

        with self._perf.measure("placement"):
            outcome = self._controller.on_hand_frame(hand_frame)

        self._hand_detected = hand_frame is not None
        self._pinching = outcome.signal.is_pinching
        result.hand_detected = self._hand_detected
        result.pinching = self._pinching
        result.placed = outcome.placed
        result.count = self._session.store.count()

        if self._render_enabled:
            with self._perf.measure("render"):
                if self._show_landmarks:
                    self._detector.draw_landmarks(frame, detection_results)
                self._renderer.render(frame, self._session.preview)
                self._dashboard.render(frame, self.build_state())

        result.frame = frame
        self._perf.tick()
        result.latency_ms = self._perf.total_latency_ms
        return result

    def build_state(self) -> dict:
        """State dict for the HUD."""
        return {
            "count": self._session.store.count(),
            "hand_detected": self._hand_detected,
            "pinching": self._pinching,
            "fps": self._perf.fps,
            "latency_ms": self._perf.total_latency_ms,
        }

    @property
    def frame_count(self) -> int:
        return self._frame_count
