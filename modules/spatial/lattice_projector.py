"""
Screen-to-world ray projection with lattice snapping.

The virtual camera sits at the world origin looking down -Z with a fixed
vertical field of view, matching a live camera feed used as a static
backdrop. A normalized screen point is unprojected into a ray, the ray is
walked a fixed build distance, and the result is snapped to the lattice.

Conventions follow OpenGL / three.js: NDC in [-1, 1] with +Y up, the
perspective matrix maps the view frustum onto the NDC cube, and the
camera's world transform is (rotation, position).
"""

import math
import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional, Tuple

import numpy as np

from core.types import LatticePosition, ORIGIN, ScreenPoint

logger = logging.getLogger(__name__)

BUILD_DISTANCE = 6.0
CELL_SIZE = 1.0
UNPROJECT_DEPTH = 0.5  # NDC z between near and far planes


@dataclass(eq=False)
class CameraPose:
    """Fixed virtual camera: world transform plus perspective parameters."""
    position: np.ndarray = field(default_factory=lambda: np.zeros(3))
    rotation: np.ndarray = field(default_factory=lambda: np.eye(3))
    fov_deg: float = 70.0
    aspect: float = 16.0 / 9.0
    near: float = 0.01
    far: float = 100.0

    @classmethod
    def from_config(cls, config: dict, width: int = None, height: int = None) -> "CameraPose":
        """Build a pose from the `camera` config section and frame size."""
        width = width or config.get("width", 1280)
        height = height or config.get("height", 720)
        return cls(
            fov_deg=float(config.get("fov_deg", 70.0)),
            aspect=float(width) / float(height) if height else 0.0,
            near=float(config.get("near", 0.01)),
            far=float(config.get("far", 100.0)),
        )

    @property
    def is_valid(self) -> bool:
        return (
            0.0 < self.fov_deg < 180.0
            and self.aspect > 0.0
            and 0.0 < self.near < self.far
            and np.all(np.isfinite(self.position))
            and np.all(np.isfinite(self.rotation))
        )

    def projection_matrix(self) -> np.ndarray:
        """OpenGL-style perspective projection matrix (4x4)."""
        f = 1.0 / math.tan(math.radians(self.fov_deg) / 2.0)
        n, fa = self.near, self.far
        return np.array([
            [f / self.aspect, 0.0, 0.0, 0.0],
            [0.0, f, 0.0, 0.0],
            [0.0, 0.0, (fa + n) / (n - fa), 2.0 * fa * n / (n - fa)],
            [0.0, 0.0, -1.0, 0.0],
        ])


def snap(point, cell_size: float = CELL_SIZE) -> LatticePosition:
    """Snap a world point to the nearest lattice position.

    Exact half-cell boundaries go toward +inf, as JavaScript Math.round
    does. The fractional part is compared directly, so values just below a
    half cell (0.49999999999999994) stay in the lower cell.
    """
    scaled = np.asarray(point, dtype=np.float64) / cell_size
    base = np.floor(scaled)
    cells = base + (scaled - base >= 0.5)
    return LatticePosition(int(cells[0]), int(cells[1]), int(cells[2]))


def screen_to_ndc(screen_point: ScreenPoint) -> Tuple[float, float]:
    """Top-left origin [0,1]^2 to centered [-1,1]^2 with +Y up."""
    x, y = screen_point
    return (2.0 * x - 1.0, 1.0 - 2.0 * y)


class LatticeProjector:
    """Projects normalized screen points onto the build lattice."""

    def __init__(self, config: Optional[dict] = None):
        config = config or {}
        self._build_distance = float(config.get("build_distance", BUILD_DISTANCE))
        self._cell_size = float(config.get("cell_size", CELL_SIZE))
        for name, value in (("build_distance", self._build_distance),
                            ("cell_size", self._cell_size)):
            if not math.isfinite(value) or value <= 0:
                raise ValueError("%s must be a positive number, got %r" % (name, value))

    def world_point(self, screen_point: ScreenPoint,
                    pose: Optional[CameraPose]) -> Optional[np.ndarray]:
        """Continuous world point BUILD_DISTANCE along the screen ray.

        Returns None when the pose or input cannot produce a ray.
        """
        if pose is None or not pose.is_valid:
            logger.debug("Projection skipped: camera pose unavailable")
            return None
        if not all(math.isfinite(v) for v in screen_point):
            logger.debug("Projection skipped: non-finite screen point %s", screen_point)
            return None

        ndc_x, ndc_y = screen_to_ndc(screen_point)
        clip = np.array([ndc_x, ndc_y, UNPROJECT_DEPTH, 1.0])
        try:
            view = np.linalg.inv(pose.projection_matrix()) @ clip
        except np.linalg.LinAlgError:
            logger.debug("Projection skipped: singular projection matrix")
            return None
        if view[3] == 0.0 or not np.all(np.isfinite(view)):
            return None
        view = view[:3] / view[3]

        target = pose.rotation @ view + pose.position
        direction = target - pose.position
        length = np.linalg.norm(direction)
        if length == 0.0 or not math.isfinite(length):
            logger.debug("Projection skipped: zero-length ray")
            return None

        return pose.position + direction / length * self._build_distance

    def project(self, screen_point: ScreenPoint,
                pose: Optional[CameraPose]) -> LatticePosition:
        """Snapped lattice position under a screen point; origin if degenerate."""
        point = self.world_point(screen_point, pose)
        if point is None:
            return ORIGIN
        return snap(point, self._cell_size)

    def to_world(self, position: LatticePosition) -> np.ndarray:
        return np.array(position.to_world(self._cell_size), dtype=np.float64)

    def to_screen(self, world_points: Iterable, pose: CameraPose):
        """Project world points to normalized screen coordinates.

        Returns:
            (screen, depth, visible): (N, 2) top-left-origin coordinates,
            (N,) distance in front of the camera, and (N,) mask of points
            beyond the near plane.
        """
        pts = np.asarray(world_points, dtype=np.float64).reshape(-1, 3)
        view = (pts - pose.position) @ pose.rotation  # R^T applied row-wise
        homo = np.hstack([view, np.ones((len(view), 1))])
        clip = homo @ pose.projection_matrix().T

        depth = -view[:, 2]
        visible = depth > pose.near
        w = np.where(visible, clip[:, 3], 1.0)
        ndc = clip[:, :2] / w[:, None]

        screen = np.empty_like(ndc)
        screen[:, 0] = (ndc[:, 0] + 1.0) / 2.0
        screen[:, 1] = (1.0 - ndc[:, 1]) / 2.0
        return screen, depth, visible

    @property
    def build_distance(self) -> float:
        return self._build_distance

    @property
    def cell_size(self) -> float:
        return self._cell_size
