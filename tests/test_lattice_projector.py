"""
Tests for Lattice Projection
=============================
"""

import math

import numpy as np
import pytest

from core.types import LatticePosition, ORIGIN
from modules.spatial.lattice_projector import (
    CameraPose, LatticeProjector, screen_to_ndc, snap,
)


@pytest.fixture
def projector():
    return LatticeProjector({"build_distance": 6.0, "cell_size": 1.0})


class TestScreenToNdc:

    def test_center(self):
        assert screen_to_ndc((0.5, 0.5)) == (0.0, 0.0)

    def test_vertical_axis_flipped(self):
        assert screen_to_ndc((0.0, 0.0)) == (-1.0, 1.0)
        assert screen_to_ndc((1.0, 1.0)) == (1.0, -1.0)


class TestSnap:

    def test_nearest_cell(self):
        assert snap((0.4, -0.4, -5.6)) == LatticePosition(0, 0, -6)

    def test_half_cells_round_up(self):
        assert snap((0.5, -0.5, 1.5)) == LatticePosition(1, 0, 2)
        assert snap((-2.5, 2.5, -0.5)) == LatticePosition(-2, 3, 0)

    def test_just_below_half_stays_down(self):
        below = 0.49999999999999994
        assert snap((below, -below, 0.0)) == LatticePosition(0, 0, 0)
        assert snap((below * 0.5, 0.0, 0.0), cell_size=0.5) == LatticePosition(0, 0, 0)

    @pytest.mark.parametrize("cell_size", [1.0, 0.5, 0.25, 2.0])
    def test_on_lattice_round_trip(self, cell_size):
        for pos in [LatticePosition(0, 0, -6), LatticePosition(3, -2, -7),
                    LatticePosition(-5, 4, 1)]:
            world = pos.to_world(cell_size)
            snapped = snap(world, cell_size)
            assert snapped == pos
            assert snapped.to_world(cell_size) == world

    def test_returns_plain_ints(self):
        pos = snap((1.2, 2.7, -3.1))
        assert all(type(v) is int for v in pos)


class TestProject:

    def test_center_of_screen(self, projector, pose):
        assert projector.project((0.5, 0.5), pose) == LatticePosition(0, 0, -6)

    def test_center_world_point(self, projector, pose):
        point = projector.world_point((0.5, 0.5), pose)
        np.testing.assert_allclose(point, [0.0, 0.0, -6.0], atol=1e-12)

    def test_deterministic(self, projector, pose):
        results = {projector.project((0.31, 0.77), pose) for _ in range(20)}
        assert len(results) == 1

    def test_point_lies_at_build_distance(self, projector, pose):
        for sp in [(0.0, 0.0), (0.2, 0.9), (1.0, 0.5)]:
            point = projector.world_point(sp, pose)
            assert np.linalg.norm(point - pose.position) == pytest.approx(6.0)

    def test_top_left_corner(self, projector, pose):
        """Top-left of the screen is left, up and in front of the camera."""
        tan_half = math.tan(math.radians(35.0))
        ray = np.array([-pose.aspect * tan_half, tan_half, -1.0])
        expected = ray / np.linalg.norm(ray) * 6.0

        np.testing.assert_allclose(projector.world_point((0.0, 0.0), pose), expected, atol=1e-9)
        assert projector.project((0.0, 0.0), pose) == LatticePosition(-4, 2, -3)

    def test_cell_size_scales_lattice(self, pose):
        fine = LatticeProjector({"build_distance": 6.0, "cell_size": 0.5})
        assert fine.project((0.5, 0.5), pose) == LatticePosition(0, 0, -12)

    def test_camera_offset(self, projector):
        shifted = CameraPose(position=np.array([2.0, 0.0, 0.0]), aspect=1.0)
        assert projector.project((0.5, 0.5), shifted) == LatticePosition(2, 0, -6)


class TestDegenerateProjection:

    def test_missing_pose_returns_origin(self, projector):
        assert projector.project((0.5, 0.5), None) == ORIGIN

    @pytest.mark.parametrize("kwargs", [
        {"aspect": 0.0},
        {"fov_deg": 0.0},
        {"fov_deg": 180.0},
        {"near": 0.0},
        {"near": 10.0, "far": 5.0},
    ])
    def test_invalid_pose_returns_origin(self, projector, kwargs):
        assert projector.project((0.3, 0.3), CameraPose(**kwargs)) == ORIGIN

    def test_non_finite_point_returns_origin(self, projector, pose):
        assert projector.project((float("nan"), 0.5), pose) == ORIGIN
        assert projector.project((0.5, float("inf")), pose) == ORIGIN

    @pytest.mark.parametrize("config", [
        {"cell_size": 0.0},
        {"cell_size": -1.0},
        {"build_distance": 0.0},
        {"build_distance": float("nan")},
    ])
    def test_invalid_settings_rejected(self, config):
        with pytest.raises(ValueError):
            LatticeProjector(config)


class TestToScreen:

    def test_inverts_projection(self, projector, pose):
        for sp in [(0.5, 0.5), (0.1, 0.2), (0.85, 0.6)]:
            point = projector.world_point(sp, pose)
            screen, depth, visible = projector.to_screen([point], pose)
            np.testing.assert_allclose(screen[0], sp, atol=1e-9)
            assert visible[0]
            assert depth[0] > 0

    def test_points_behind_camera_hidden(self, projector, pose):
        _, _, visible = projector.to_screen([[0.0, 0.0, 3.0], [0.0, 0.0, -3.0]], pose)
        assert list(visible) == [False, True]


class TestCameraPose:

    def test_from_config_uses_frame_aspect(self):
        pose = CameraPose.from_config({"fov_deg": 60, "near": 0.1, "far": 50}, 640, 480)
        assert pose.aspect == pytest.approx(4.0 / 3.0)
        assert pose.fov_deg == 60.0
        assert pose.is_valid

    def test_default_is_origin_facing_negative_z(self):
        pose = CameraPose()
        np.testing.assert_array_equal(pose.position, np.zeros(3))
        np.testing.assert_array_equal(pose.rotation, np.eye(3))
