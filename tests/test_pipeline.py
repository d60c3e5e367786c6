"""
Tests for Pipeline, Scene Renderer and HUD
===========================================
"""

from types import SimpleNamespace
from unittest.mock import Mock

import numpy as np
import pytest

from conftest import make_hand_frame
from core.events import Events
from core.pipeline import Pipeline
from core.types import LatticePosition, PreviewState
from modules.control.placement_controller import PlacementController
from modules.detection.landmark_extractor import LandmarkExtractor
from modules.recognition.pinch_detector import PinchDetector
from modules.spatial.lattice_projector import LatticeProjector
from modules.utils.logger import PlacementLogger
from modules.utils.performance_monitor import PerformanceMonitor
from modules.visualization.dashboard import Dashboard
from modules.visualization.scene_renderer import SceneRenderer

WIDTH, HEIGHT = 640, 360
CENTER = LatticePosition(0, 0, -6)


def blank_frame():
    return np.zeros((HEIGHT, WIDTH, 3), dtype=np.uint8)


def mp_results(distance):
    """MediaPipe-shaped result for one hand, or no hand when distance is None."""
    if distance is None:
        return SimpleNamespace(multi_hand_landmarks=None)
    points = [SimpleNamespace(x=lm.x, y=lm.y, z=lm.z) for lm in make_hand_frame(distance)]
    return SimpleNamespace(multi_hand_landmarks=[SimpleNamespace(landmark=points)])


@pytest.fixture
def projector():
    return LatticeProjector({"build_distance": 6.0, "cell_size": 1.0})


@pytest.fixture
def renderer(session, projector):
    return SceneRenderer(session, projector)


class TestSceneRenderer:

    def test_follows_store_events(self, session, renderer):
        session.store.place((0, 0, -6))
        session.store.place((1, 0, -6))
        assert renderer.renderable_count == 2

        session.clear()
        assert renderer.renderable_count == 0

    def test_placed_voxel_drawn_at_center(self, session, renderer):
        session.store.place(CENTER)
        frame = renderer.render(blank_frame())
        assert frame[HEIGHT // 2, WIDTH // 2].any()
        assert not frame[5, 5].any()

    def test_hidden_preview_not_drawn(self, renderer):
        frame = renderer.render(blank_frame(), PreviewState(CENTER, False))
        assert not frame.any()

    def test_visible_preview_drawn(self, renderer):
        frame = renderer.render(blank_frame(), PreviewState(CENTER, True))
        assert frame[HEIGHT // 2, WIDTH // 2].any()

    def test_cube_behind_camera_skipped(self, session, renderer):
        session.store.place((0, 0, 6))
        frame = renderer.render(blank_frame())
        assert not frame.any()


class TestDashboard:

    @pytest.mark.parametrize("state", [
        {},
        {"count": 12, "hand_detected": False, "pinching": False, "fps": 8.0, "latency_ms": 40.0},
        {"count": 3, "hand_detected": True, "pinching": True, "fps": 30.0, "latency_ms": 12.0},
    ])
    def test_render_draws_overlay(self, state):
        frame = Dashboard({}).render(blank_frame(), state)
        assert frame.shape == (HEIGHT, WIDTH, 3)
        assert frame.any()

    def test_everything_disabled_still_draws_title(self):
        dashboard = Dashboard({"show_fps": False, "show_building_plane": False, "show_hint": False})
        frame = dashboard.render(blank_frame(), {"hand_detected": True})
        assert frame[:100, :260].any()


class TestPipeline:

    @pytest.fixture
    def build(self, session, projector, renderer):
        def _build(distances, render=True):
            camera = Mock()
            camera.read_sync.side_effect = lambda: (1, blank_frame())
            detector = Mock()
            detector.detect.side_effect = [mp_results(d) for d in distances]
            controller = PlacementController(
                session, PinchDetector({"pinch_threshold": 0.045}), projector,
            )
            return Pipeline(
                session, camera, detector, LandmarkExtractor(), controller,
                renderer, Dashboard({}), PerformanceMonitor(window_size=10),
                {"enable_threading": False, "render": render},
            )
        return _build

    def test_pinch_release_places_through_pipeline(self, build, session):
        pipeline = build([0.1, 0.02, 0.1])
        results = [pipeline.tick() for _ in range(3)]

        assert [r.pinching for r in results] == [False, True, False]
        assert results[2].placed.position == CENTER
        assert results[2].count == 1
        assert session.store.count() == 1
        assert pipeline.frame_count == 3

    def test_no_hand_reported(self, build, session):
        pipeline = build([None])
        result = pipeline.tick()

        assert result.hand_detected is False
        assert result.frame is not None
        assert pipeline.build_state()["hand_detected"] is False

    def test_missing_frame_skips_tick(self, build):
        pipeline = build([])
        pipeline._camera.read_sync.side_effect = lambda: (None, None)
        result = pipeline.tick()

        assert result.frame is None
        assert pipeline.frame_count == 0
        pipeline._detector.detect.assert_not_called()

    def test_render_disabled(self, build):
        pipeline = build([0.02], render=False)
        result = pipeline.tick()
        assert not result.frame.any()

    def test_placement_logger_sees_pipeline_placements(self, build, session):
        placement_log = PlacementLogger()
        session.bus.subscribe(Events.VOXEL_PLACED, placement_log.on_voxel_placed)
        session.bus.subscribe(Events.SCENE_CLEARED, placement_log.on_scene_cleared)

        pipeline = build([0.02, 0.1])
        pipeline.tick()
        pipeline.tick()
        session.clear()

        assert placement_log.get_history()[0]["position"] == (0, 0, -6)
        assert placement_log.summary() == {"placements": 1, "clears": 1}
