"""
Deduplicated store of placed voxels keyed by lattice position.

At most one voxel per position. The store only grows through place() and
only shrinks through clear(); there is no single-voxel removal. Observers
(renderer, HUD, placement logger) are notified through the event bus and
never mutate the store.
"""

import logging
from typing import Dict, Iterator, List, Optional

from core.events import EventBus, Events
from core.types import (
    DEFAULT_VOXEL_STYLE, InvariantViolation, LatticePosition,
    PlaceResult, Voxel, VoxelStyle,
)

logger = logging.getLogger(__name__)


class VoxelStore:
    """Owns every committed voxel, in placement order."""

    def __init__(self, bus: Optional[EventBus] = None,
                 style: VoxelStyle = DEFAULT_VOXEL_STYLE):
        self._bus = bus
        self._style = style
        self._voxels: Dict[LatticePosition, Voxel] = {}

    def place(self, position: LatticePosition) -> PlaceResult:
        """Create a voxel at `position` unless one is already there."""
        position = LatticePosition(*position)
        if position in self._voxels:
            logger.debug("Position %s occupied, placement skipped", position)
            return PlaceResult(placed=False)

        voxel = Voxel(position=position, style=self._style)
        self._voxels[position] = voxel
        count = self.count()

        logger.debug("Voxel placed at %s (count=%d)", position, count)
        if self._bus is not None:
            self._bus.emit(Events.VOXEL_PLACED, voxel=voxel, count=count)
        return PlaceResult(placed=True, voxel=voxel)

    def clear(self) -> int:
        """Remove all voxels. Always succeeds; returns how many were removed."""
        removed = len(self._voxels)
        self._voxels.clear()

        if removed:
            logger.info("Scene cleared (%d voxels removed)", removed)
        if self._bus is not None:
            self._bus.emit(Events.SCENE_CLEARED, removed=removed)
        return removed

    def count(self) -> int:
        self.verify()
        return len(self._voxels)

    def verify(self):
        """Raise InvariantViolation unless every voxel sits under its own position."""
        for position, voxel in self._voxels.items():
            if voxel.position != position:
                raise InvariantViolation(
                    "voxel at %s stored under key %s" % (voxel.position, position)
                )

    def voxels(self) -> List[Voxel]:
        """Snapshot of all voxels in placement order."""
        return list(self._voxels.values())

    def get(self, position: LatticePosition) -> Optional[Voxel]:
        return self._voxels.get(LatticePosition(*position))

    def __contains__(self, position) -> bool:
        return LatticePosition(*position) in self._voxels

    def __len__(self) -> int:
        return self.count()

    def __iter__(self) -> Iterator[Voxel]:
        return iter(self.voxels())

    @property
    def style(self) -> VoxelStyle:
        return self._style
