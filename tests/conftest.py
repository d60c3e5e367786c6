"""
Shared fixtures and hand-frame builders.
"""

import sys
from pathlib import Path

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.events import EventBus
from core.session import BuildSession
from core.types import Landmark, LandmarkIndex, NUM_LANDMARKS
from modules.spatial.lattice_projector import CameraPose


def make_hand_frame(distance: float, center=(0.5, 0.5), axis: str = "x"):
    """21 landmarks with thumb and index tips `distance` apart around `center`.

    The two tips are placed symmetrically about `center` along `axis`, so
    their screen midpoint is exactly `center` when axis is "x" or "y".
    """
    cx, cy = center
    half = distance / 2.0
    landmarks = [Landmark(cx, min(cy + 0.2, 1.0), 0.0) for _ in range(NUM_LANDMARKS)]
    if axis == "x":
        thumb, index = Landmark(cx - half, cy, 0.0), Landmark(cx + half, cy, 0.0)
    elif axis == "y":
        thumb, index = Landmark(cx, cy - half, 0.0), Landmark(cx, cy + half, 0.0)
    else:
        thumb, index = Landmark(cx, cy, -half), Landmark(cx, cy, half)
    landmarks[LandmarkIndex.THUMB_TIP] = thumb
    landmarks[LandmarkIndex.INDEX_TIP] = index
    return tuple(landmarks)


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def pose():
    """Camera at the origin facing -Z, 70 degree vertical fov, 16:9."""
    return CameraPose(fov_deg=70.0, aspect=16.0 / 9.0)


@pytest.fixture
def session(pose, bus):
    return BuildSession(camera_pose=pose, bus=bus)
