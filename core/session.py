"""
Build session: the one context object that owns placement state.

Constructed once at startup and passed explicitly to the placement
controller, renderer and HUD. Holds the voxel store, the preview cube,
the virtual camera pose and the event bus everything publishes on.
"""

import logging
from typing import Optional

from core.events import EventBus, Events
from core.types import (
    DEFAULT_PREVIEW_STYLE, DEFAULT_VOXEL_STYLE, LatticePosition,
    PreviewState, VoxelStyle,
)
from modules.spatial.lattice_projector import CameraPose
from modules.spatial.voxel_store import VoxelStore

logger = logging.getLogger(__name__)


def _style_from_config(section: dict, default: VoxelStyle) -> VoxelStyle:
    return VoxelStyle(
        fill=tuple(section.get("fill", default.fill)),
        edge=tuple(section.get("edge", default.edge)),
        opacity=float(section.get("opacity", default.opacity)),
    )


class BuildSession:
    """Owns the voxel store, preview state and camera pose for one run."""

    def __init__(self, camera_pose: Optional[CameraPose] = None,
                 bus: Optional[EventBus] = None,
                 voxel_style: VoxelStyle = DEFAULT_VOXEL_STYLE,
                 preview_style: VoxelStyle = DEFAULT_PREVIEW_STYLE):
        self.bus = bus or EventBus()
        self.camera_pose = camera_pose
        self.store = VoxelStore(bus=self.bus, style=voxel_style)
        self.preview = PreviewState()
        self.preview_style = preview_style

    @classmethod
    def from_config(cls, config, width: int = None, height: int = None,
                    bus: Optional[EventBus] = None) -> "BuildSession":
        """Create a session from a Config (or plain dict of sections)."""
        camera_cfg = config.get("camera") or {}
        style_cfg = config.get("style") or {}
        pose = CameraPose.from_config(camera_cfg, width, height)
        session = cls(
            camera_pose=pose,
            bus=bus,
            voxel_style=_style_from_config(style_cfg.get("voxel", {}), DEFAULT_VOXEL_STYLE),
            preview_style=_style_from_config(style_cfg.get("preview", {}), DEFAULT_PREVIEW_STYLE),
        )
        logger.info("Build session created (fov=%.0f, aspect=%.3f)", pose.fov_deg, pose.aspect)
        return session

    def set_preview(self, position: LatticePosition, visible: bool):
        self.preview = PreviewState(position=position, visible=visible)
        self.bus.emit(Events.PREVIEW_UPDATED, preview=self.preview)

    def clear(self) -> int:
        """User-initiated clear command."""
        return self.store.clear()

    def snapshot(self) -> dict:
        """Read-only view for the render loop and HUD."""
        return {
            "count": self.store.count(),
            "preview": self.preview,
            "voxels": self.store.voxels(),
        }
