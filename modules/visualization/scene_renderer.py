"""
OpenCV scene renderer: draws placed voxels and the preview cube over the
live camera frame using the same virtual camera as the lattice projector.

The renderer observes the voxel store through the event bus and keeps its
own list of renderables; it never mutates placement state.
"""

import logging
from typing import List, Optional

import cv2
import numpy as np

from core.events import Events
from core.session import BuildSession
from core.types import LatticePosition, PreviewState, Voxel, VoxelStyle
from modules.spatial.lattice_projector import LatticeProjector

logger = logging.getLogger(__name__)

# Corner i has offsets (bit2 -> x, bit1 -> y, bit0 -> z), each -0.5 or +0.5.
_CORNERS = np.array([
    [(i >> 2) & 1, (i >> 1) & 1, i & 1] for i in range(8)
], dtype=np.float64) - 0.5

_EDGES = [(i, i | bit) for i in range(8) for bit in (1, 2, 4) if not i & bit]

# (corner indices, outward normal, shade)
_FACES = [
    ((0, 1, 3, 2), (-1, 0, 0), 0.80),
    ((4, 5, 7, 6), (1, 0, 0), 0.80),
    ((0, 1, 5, 4), (0, -1, 0), 0.55),
    ((2, 3, 7, 6), (0, 1, 0), 1.00),
    ((0, 2, 6, 4), (0, 0, -1), 0.60),
    ((1, 3, 7, 5), (0, 0, 1), 0.90),
]


class SceneRenderer:
    """Draws lattice cubes as shaded, outlined boxes."""

    def __init__(self, session: BuildSession, projector: LatticeProjector):
        self._session = session
        self._projector = projector
        self._renderables: List[Voxel] = []

        session.bus.subscribe(Events.VOXEL_PLACED, self.on_voxel_placed)
        session.bus.subscribe(Events.SCENE_CLEARED, self.on_scene_cleared)

    def on_voxel_placed(self, voxel: Voxel, **kwargs):
        self._renderables.append(voxel)

    def on_scene_cleared(self, **kwargs):
        self._renderables.clear()

    def render(self, frame: np.ndarray, preview: Optional[PreviewState] = None) -> np.ndarray:
        """Draw all cubes far-to-near, then the preview on top."""
        pose = self._session.camera_pose
        if pose is None or not pose.is_valid:
            return frame

        cubes = sorted(
            self._renderables,
            key=lambda v: -np.linalg.norm(self._projector.to_world(v.position) - pose.position),
        )
        for voxel in cubes:
            self._draw_cube(frame, voxel.position, voxel.style, 1)

        if preview is not None and preview.visible:
            self._draw_cube(frame, preview.position, self._session.preview_style, 2)
        return frame

    def _draw_cube(self, frame: np.ndarray, position: LatticePosition,
                   style: VoxelStyle, thickness: int):
        pose = self._session.camera_pose
        size = self._projector.cell_size
        center = self._projector.to_world(position)
        corners = center + _CORNERS * size

        screen, _, visible = self._projector.to_screen(corners, pose)
        if not np.all(visible):
            return

        h, w = frame.shape[:2]
        px = np.round(screen * (w, h)).astype(np.int32)

        target = frame.copy() if style.opacity < 1.0 else frame
        fill = np.array(style.fill, dtype=np.float64)
        for indices, normal, shade in _FACES:
            face_center = corners[list(indices)].mean(axis=0)
            if np.dot(normal, pose.position - face_center) <= 0:
                continue
            color = tuple(int(c) for c in np.clip(fill * shade, 0, 255))
            cv2.fillConvexPoly(target, px[list(indices)], color, lineType=cv2.LINE_AA)

        if target is not frame:
            cv2.addWeighted(target, style.opacity, frame, 1.0 - style.opacity, 0, frame)

        edge_color = tuple(int(c) for c in style.edge)
        points = [(int(x), int(y)) for x, y in px]
        for a, b in _EDGES:
            cv2.line(frame, points[a], points[b], edge_color, thickness, cv2.LINE_AA)

    @property
    def renderable_count(self) -> int:
        return len(self._renderables)
