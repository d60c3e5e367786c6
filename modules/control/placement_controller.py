"""
Per-frame placement orchestration.

Two states:
    IDLE        - no preview visible
    PREVIEWING  - pinch held, preview cube follows the pinch point

The state machine itself is the pure function transition(), which maps
(previous state, pinch signal, lattice position) to (new state, effects).
PlacementController.on_hand_frame() computes the inputs from a hand frame,
runs transition() and applies the effects to the BuildSession.
"""

import logging
from typing import List, NamedTuple, Optional, Tuple, Union

from core.events import Events
from core.session import BuildSession
from core.types import (
    ControllerMode, HandFrame, LatticePosition, NO_PINCH, PinchSignal, PlaceVoxel,
    PreviewState, UpdatePreview, Voxel, pinch_point,
)
from modules.recognition.pinch_detector import PinchDetector
from modules.spatial.lattice_projector import LatticeProjector

logger = logging.getLogger(__name__)

Effect = Union[UpdatePreview, PlaceVoxel]


class ControllerState(NamedTuple):
    mode: ControllerMode = ControllerMode.IDLE
    preview: PreviewState = PreviewState()


class FrameOutcome(NamedTuple):
    """Everything one processed frame produced."""
    signal: PinchSignal
    position: Optional[LatticePosition]
    effects: List[Effect]
    placed: Optional[Voxel] = None


def transition(state: ControllerState, signal: PinchSignal,
               position: Optional[LatticePosition]) -> Tuple[ControllerState, List[Effect]]:
    """Advance the controller by one frame.

    `position` is None when no hand is tracked: the controller drops to
    IDLE, hides the preview and never places. Otherwise the preview follows
    `position` every frame and is visible only while pinching; on a release
    edge the placement effect comes before the preview is hidden.
    """
    if position is None:
        hidden = PreviewState(position=state.preview.position, visible=False)
        return ControllerState(ControllerMode.IDLE, hidden), [UpdatePreview(*hidden)]

    effects: List[Effect] = []
    if signal.just_released:
        effects.append(PlaceVoxel(position))

    preview = PreviewState(position=position, visible=signal.is_pinching)
    effects.append(UpdatePreview(*preview))

    mode = ControllerMode.PREVIEWING if signal.is_pinching else ControllerMode.IDLE
    return ControllerState(mode, preview), effects


class PlacementController:
    """Drives pinch detection and projection, commits placements on release."""

    def __init__(self, session: BuildSession,
                 detector: Optional[PinchDetector] = None,
                 projector: Optional[LatticeProjector] = None):
        self._session = session
        self._detector = detector or PinchDetector()
        self._projector = projector or LatticeProjector()
        self._state = ControllerState()
        self._hand_present = False

    def on_hand_frame(self, frame: HandFrame) -> FrameOutcome:
        """Process one hand frame. Synchronous; never blocks."""
        signal = self._detector.detect(frame)
        position = None
        if frame is not None:
            position = self._projector.project(pinch_point(frame), self._session.camera_pose)

        previous_mode = self._state.mode
        self._state, effects = transition(self._state, signal, position)

        self._publish_tracking(frame is not None)
        self._publish_pinch(previous_mode, signal, position)
        placed = self._apply(effects)

        return FrameOutcome(signal=signal, position=position, effects=effects, placed=placed)

    def _apply(self, effects: List[Effect]) -> Optional[Voxel]:
        placed = None
        for effect in effects:
            if isinstance(effect, PlaceVoxel):
                result = self._session.store.place(effect.position)
                if result.placed:
                    placed = result.voxel
            elif isinstance(effect, UpdatePreview):
                self._session.set_preview(effect.position, effect.visible)
        return placed

    def _publish_tracking(self, hand_present: bool):
        bus = self._session.bus
        if hand_present and not self._hand_present:
            bus.emit(Events.HAND_DETECTED)
        elif not hand_present and self._hand_present:
            logger.debug("Hand lost, controller forced to IDLE")
            bus.emit(Events.HAND_LOST)
        self._hand_present = hand_present

    def _publish_pinch(self, previous_mode: ControllerMode, signal: PinchSignal,
                       position: Optional[LatticePosition]):
        bus = self._session.bus
        if self._state.mode is ControllerMode.PREVIEWING and previous_mode is ControllerMode.IDLE:
            bus.emit(Events.PINCH_STARTED, position=position)
        if signal.just_released:
            bus.emit(Events.PINCH_RELEASED, position=position)

    def reset(self):
        """Forget pinch memory and hide the preview."""
        self._detector.reset()
        self._state, effects = transition(self._state, NO_PINCH, None)
        self._apply(effects)
        self._hand_present = False

    @property
    def state(self) -> ControllerState:
        return self._state

    @property
    def mode(self) -> ControllerMode:
        return self._state.mode
