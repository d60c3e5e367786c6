#!/usr/bin/env python3
"""
AR Voxel Builder
Pinch to preview a cube on the lattice, release to place it.

Usage:
    python main.py                       # Default camera and config
    python main.py --camera 1            # Another camera device
    python main.py --config my.yaml      # Custom config file
    python main.py --no-display          # Headless (logs placements only)

Keys:
    c    clear scene
    q    quit (also Esc)
"""

import sys
import os
import time
import signal
import argparse
import logging

import cv2

# Add project root to path
PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))
sys.path.insert(0, PROJECT_ROOT)

from modules.utils.config import Config
from modules.utils.logger import setup_logging, PlacementLogger
from modules.utils.performance_monitor import PerformanceMonitor
from modules.capture.camera_manager import CameraManager
from modules.detection.hand_detector import HandDetector
from modules.detection.landmark_extractor import LandmarkExtractor
from modules.recognition.pinch_detector import PinchDetector
from modules.spatial.lattice_projector import LatticeProjector
from modules.control.placement_controller import PlacementController
from modules.visualization.scene_renderer import SceneRenderer
from modules.visualization.dashboard import Dashboard

from core.events import EventBus, Events
from core.pipeline import Pipeline
from core.session import BuildSession

logger = logging.getLogger(__name__)

_KEY_ESC = 27


class VoxelBuilderApp:
    """Wires the session, collaborators and pipeline, and runs the loop."""

    def __init__(self, config: Config, display: bool = True):
        self._config = config
        self._display = display and config.get("visualization.enabled", True)
        self._running = False
        self._window_name = config.get("visualization.window_name", "AR Voxel")

        self._bus = EventBus()
        self._camera = CameraManager(config.camera, bus=self._bus)
        self._detector = HandDetector(config.mediapipe)
        self._extractor = LandmarkExtractor()
        self._projector = LatticeProjector(config.placement)
        self._pinch = PinchDetector(config.placement)
        self._perf = PerformanceMonitor(
            window_size=config.get("performance.metrics_window", 100)
        )
        self._placement_logger = PlacementLogger()

        # Session, controller and renderer need the real camera resolution.
        self._session = None
        self._controller = None
        self._pipeline = None

    def _build(self):
        width, height = self._camera.resolution
        self._session = BuildSession.from_config(self._config, width, height, bus=self._bus)

        bus = self._session.bus
        bus.subscribe(Events.VOXEL_PLACED, self._placement_logger.on_voxel_placed)
        bus.subscribe(Events.SCENE_CLEARED, self._placement_logger.on_scene_cleared)

        self._controller = PlacementController(self._session, self._pinch, self._projector)
        renderer = SceneRenderer(self._session, self._projector)
        dashboard = Dashboard(self._config.visualization)

        self._pipeline = Pipeline(
            session=self._session,
            camera=self._camera,
            detector=self._detector,
            extractor=self._extractor,
            controller=self._controller,
            renderer=renderer,
            dashboard=dashboard,
            performance_monitor=self._perf,
            config={
                "enable_threading": self._config.get("performance.enable_threading", True),
                "show_landmarks": self._config.get("visualization.show_landmarks", False),
                "render": self._display,
            },
        )

    def start(self) -> bool:
        """Open the camera and run until quit.

        A stop signal received during startup returns before the main loop.
        """
        self._running = True
        if not self._camera.open():
            logger.error("No usable camera (device %s); check the connection and --camera",
                         self._config.get("camera.device_id"))
            self._running = False
            return False

        if self._config.get("performance.enable_threading", True):
            self._camera.start_async()
            time.sleep(0.3)
        if not self._running:
            self._shutdown()
            return True

        self._detector.initialize()
        if not self._running:
            self._shutdown()
            return True

        self._build()
        self._bus.emit(Events.SYSTEM_STARTED)
        logger.info("Starting main loop (pinch threshold=%.3f, build distance=%.1f, cell=%.2f)",
                    self._pinch.threshold, self._projector.build_distance,
                    self._projector.cell_size)
        self._run_main_loop()
        return True

    def _run_main_loop(self):
        while self._running:
            with self._perf.measure("total"):
                result = self._pipeline.tick()

            if result.frame is None:
                time.sleep(0.001)
                continue

            if self._display:
                cv2.imshow(self._window_name, result.frame)
                self._handle_key(cv2.waitKey(1) & 0xFF)

        self._shutdown()

    def _handle_key(self, key: int):
        if key in (ord("q"), _KEY_ESC):
            self._running = False
        elif key == ord("c"):
            self._session.clear()
        elif key == ord("p"):
            self._perf.print_report()

    def _shutdown(self):
        logger.info("Stopping voxel builder")
        self._running = False
        self._bus.emit(Events.SYSTEM_SHUTDOWN)
        self._bus.set_enabled(False)
        self._camera.stop()
        self._detector.close()
        if self._display:
            cv2.destroyAllWindows()

        self._perf.print_report()
        summary = self._placement_logger.summary()
        logger.info("Session: %d placements, %d clears, %d blocks on screen",
                    summary["placements"], summary["clears"],
                    self._session.store.count() if self._session else 0)
        logger.info("Voxel builder stopped")

    def handle_signal(self, signum, frame):
        """Handle SIGINT/SIGTERM for graceful shutdown."""
        logger.info("Signal %d received, shutting down...", signum)
        self._running = False


def parse_args():
    parser = argparse.ArgumentParser(
        description="AR Voxel Builder - pinch to place cubes in the camera view"
    )
    parser.add_argument(
        "--config", type=str, default=None,
        help="Path to config.yaml"
    )
    parser.add_argument(
        "--camera", type=int, default=None,
        help="Camera device ID"
    )
    parser.add_argument(
        "--no-display", action="store_true",
        help="Run without a window"
    )
    parser.add_argument(
        "--log-level", type=str, default=None,
        help="Override logging level (DEBUG, INFO, ...)"
    )
    return parser.parse_args()


def main():
    args = parse_args()

    config = Config().load(config_path=args.config)
    if args.camera is not None:
        config.set("camera.device_id", args.camera)

    log_cfg = config.get_section("logging")
    setup_logging(
        level=args.log_level or log_cfg.get("level", "INFO"),
        log_file=log_cfg.get("file"),
        max_size_mb=log_cfg.get("max_size_mb", 10),
        backup_count=log_cfg.get("backup_count", 3),
    )

    logger.info("=" * 60)
    logger.info("  AR VOXEL BUILDER")
    logger.info("  Version: %s", config.get("system.version", "1.0.0"))
    logger.info("=" * 60)

    app = VoxelBuilderApp(config, display=not args.no_display)

    signal.signal(signal.SIGINT, app.handle_signal)
    signal.signal(signal.SIGTERM, app.handle_signal)

    if not app.start():
        sys.exit(1)


if __name__ == "__main__":
    main()
