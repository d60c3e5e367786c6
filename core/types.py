"""
Shared domain types for the AR Voxel Builder.

Centralizes enums, data classes, and type definitions used across modules
to eliminate circular imports and ensure type consistency.
"""

from enum import Enum, IntEnum
from typing import NamedTuple, Optional, Sequence, Tuple


# =============================================================================
# Hand Landmarks
# =============================================================================

class LandmarkIndex(IntEnum):
    """Hand landmark indices following MediaPipe convention."""
    WRIST = 0
    THUMB_CMC = 1
    THUMB_MCP = 2
    THUMB_IP = 3
    THUMB_TIP = 4
    INDEX_MCP = 5
    INDEX_PIP = 6
    INDEX_DIP = 7
    INDEX_TIP = 8
    MIDDLE_MCP = 9
    MIDDLE_PIP = 10
    MIDDLE_DIP = 11
    MIDDLE_TIP = 12
    RING_MCP = 13
    RING_PIP = 14
    RING_DIP = 15
    RING_TIP = 16
    PINKY_MCP = 17
    PINKY_PIP = 18
    PINKY_DIP = 19
    PINKY_TIP = 20


NUM_LANDMARKS = 21


class Landmark(NamedTuple):
    """A single landmark point with normalized coordinates."""
    x: float  # 0.0 to 1.0, left to right
    y: float  # 0.0 to 1.0, top to bottom
    z: float  # Depth relative to wrist


# None when no hand is tracked, else exactly 21 landmarks.
HandFrame = Optional[Sequence[Landmark]]

ScreenPoint = Tuple[float, float]
Color = Tuple[int, int, int]  # BGR


def pinch_point(frame: Sequence[Landmark]) -> ScreenPoint:
    """Screen-space midpoint between thumb tip and index tip."""
    thumb = frame[LandmarkIndex.THUMB_TIP]
    index = frame[LandmarkIndex.INDEX_TIP]
    return ((thumb.x + index.x) / 2.0, (thumb.y + index.y) / 2.0)


# =============================================================================
# Gesture Signals
# =============================================================================

class PinchSignal(NamedTuple):
    """Per-frame pinch output: level plus falling edge."""
    is_pinching: bool
    just_released: bool


NO_PINCH = PinchSignal(is_pinching=False, just_released=False)


# =============================================================================
# Lattice & Voxels
# =============================================================================

class LatticePosition(NamedTuple):
    """Integer lattice coordinate; world point is (i*s, j*s, k*s)."""
    i: int
    j: int
    k: int

    def to_world(self, cell_size: float) -> Tuple[float, float, float]:
        return (self.i * cell_size, self.j * cell_size, self.k * cell_size)

    def __repr__(self):
        return f"({self.i}, {self.j}, {self.k})"


ORIGIN = LatticePosition(0, 0, 0)


class VoxelStyle(NamedTuple):
    """Rendering-only style data for a cube."""
    fill: Color
    edge: Color
    opacity: float = 1.0


# Original palette: white body with blue outline; translucent blue preview.
DEFAULT_VOXEL_STYLE = VoxelStyle(fill=(255, 255, 255), edge=(246, 130, 59), opacity=1.0)
DEFAULT_PREVIEW_STYLE = VoxelStyle(fill=(246, 130, 59), edge=(250, 165, 96), opacity=0.6)


class Voxel(NamedTuple):
    """A placed cube, identified solely by its lattice position."""
    position: LatticePosition
    style: VoxelStyle = DEFAULT_VOXEL_STYLE


class PlaceResult(NamedTuple):
    placed: bool
    voxel: Optional[Voxel] = None


class PreviewState(NamedTuple):
    """The single transient cube shown while pinching."""
    position: LatticePosition = ORIGIN
    visible: bool = False


# =============================================================================
# Controller States & Effects
# =============================================================================

class ControllerMode(Enum):
    IDLE = "idle"
    PREVIEWING = "previewing"


class UpdatePreview(NamedTuple):
    position: LatticePosition
    visible: bool


class PlaceVoxel(NamedTuple):
    position: LatticePosition


# =============================================================================
# Errors
# =============================================================================

class InvariantViolation(RuntimeError):
    """Internal state contradicts itself; a programming error, never recovered."""
