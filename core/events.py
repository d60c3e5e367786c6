"""
Per-session event bus.

The voxel store, placement controller and camera publish here; the scene
renderer, placement logger and app observe. Dispatch is synchronous on
the frame loop, so listeners must return quickly and must not mutate the
store.

Usage:
    bus = EventBus()
    bus.subscribe(Events.VOXEL_PLACED, renderer.on_voxel_placed)
    bus.emit(Events.VOXEL_PLACED, voxel=voxel, count=3)
"""

import time
import logging
from collections import defaultdict, deque
from typing import Callable, Dict, List, Tuple

logger = logging.getLogger(__name__)


class EventBus:
    """Publish/subscribe with priority ordering and a bounded trace."""

    def __init__(self, max_history: int = 100):
        self._subscribers: Dict[str, List[Tuple[int, Callable]]] = defaultdict(list)
        self._trace = deque(maxlen=max_history)
        self._enabled = True

    def subscribe(self, event_name: str, callback: Callable, priority: int = 0):
        """Add `callback` for `event_name`; higher priority runs first.

        Callbacks receive the emit() keyword arguments. Equal priorities
        keep subscription order.
        """
        subscribers = self._subscribers[event_name]
        subscribers.append((priority, callback))
        subscribers.sort(key=lambda entry: -entry[0])
        logger.debug("%s <- %s (priority=%d)",
                     event_name, getattr(callback, "__name__", callback), priority)

    def unsubscribe(self, event_name: str, callback: Callable):
        remaining = [entry for entry in self._subscribers.get(event_name, []) if entry[1] is not callback]
        if remaining:
            self._subscribers[event_name] = remaining
        else:
            self._subscribers.pop(event_name, None)

    def emit(self, event_name: str, **payload):
        """Deliver `payload` to every subscriber of `event_name`.

        A subscriber that raises is logged and skipped; the rest still run.
        """
        if not self._enabled:
            return

        self._trace.append({"event": event_name, "time": time.time(), "data_keys": list(payload)})

        for _, callback in list(self._subscribers.get(event_name, ())):
            try:
                callback(**payload)
            except Exception:
                logger.exception("Listener %s failed on '%s'",
                                 getattr(callback, "__name__", callback), event_name)

    def set_enabled(self, enabled: bool):
        self._enabled = enabled

    @property
    def listener_count(self) -> int:
        return sum(len(entries) for entries in self._subscribers.values())

    def get_history(self, last_n: int = 10) -> list:
        """Most recent emits, oldest first."""
        return list(self._trace)[-last_n:]


class Events:
    """Event names published on the session bus."""

    # Hand tracking (controller)
    HAND_DETECTED = "hand_detected"
    HAND_LOST = "hand_lost"

    # Pinch and preview (controller, session)
    PINCH_STARTED = "pinch_started"
    PINCH_RELEASED = "pinch_released"
    PREVIEW_UPDATED = "preview_updated"

    # Voxel store
    VOXEL_PLACED = "voxel_placed"
    SCENE_CLEARED = "scene_cleared"

    # App and camera
    SYSTEM_STARTED = "system_started"
    SYSTEM_SHUTDOWN = "system_shutdown"
    CAMERA_ERROR = "camera_error"
