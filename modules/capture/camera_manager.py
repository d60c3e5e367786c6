"""
Webcam source for the AR backdrop.

Frames are mirrored (selfie view) before anyone sees them, so normalized
landmark x matches what the user sees on screen. In async mode a grab
thread keeps only the newest frame; it never touches placement state.
Open failures and a stalled device are reported as `camera_error` on the
session bus when one is attached.
"""

import time
import threading
import logging
from typing import Optional, Tuple

import cv2
import numpy as np

from core.events import EventBus, Events

logger = logging.getLogger(__name__)

_BACKENDS = {
    "v4l2": cv2.CAP_V4L2,
    "dshow": cv2.CAP_DSHOW,
    "gstreamer": cv2.CAP_GSTREAMER,
    "auto": cv2.CAP_ANY,
}

# Consecutive failed grabs before the device is reported as stalled.
STALL_READS = 30

NO_FRAME = (None, None)


class CameraManager:
    """OpenCV capture with an optional latest-frame grab thread."""

    def __init__(self, config: dict, bus: Optional[EventBus] = None):
        self._device = config.get("device_id", 0)
        self._requested = (config.get("width", 1280), config.get("height", 720))
        self._size = self._requested
        self._fps = config.get("fps", 30)
        self._backend_name = config.get("backend", "auto")
        self._buffer_size = config.get("buffer_size", 1)
        self._mirror = config.get("flip_horizontal", True)
        self._warmup = config.get("warmup_frames", 10)
        self._bus = bus

        self._cap = None
        self._latest = None
        self._seq = 0
        self._failed_reads = 0
        self._lock = threading.Lock()
        self._grabbing = False
        self._grabber = None

    def open(self) -> bool:
        """Open the device; the resolution it actually delivers wins."""
        backend = _BACKENDS.get(self._backend_name, cv2.CAP_ANY)
        cap = cv2.VideoCapture(self._device, backend)
        if not cap.isOpened():
            self._report("Cannot open camera %d (backend=%s)" % (self._device, self._backend_name))
            return False

        self._cap = cap
        self._apply_settings()
        for _ in range(self._warmup):
            cap.read()
        return True

    def _apply_settings(self):
        width, height = self._requested
        for prop, value in ((cv2.CAP_PROP_FRAME_WIDTH, width),
                            (cv2.CAP_PROP_FRAME_HEIGHT, height),
                            (cv2.CAP_PROP_FPS, self._fps),
                            (cv2.CAP_PROP_BUFFERSIZE, self._buffer_size)):
            self._cap.set(prop, value)

        delivered = (int(self._cap.get(cv2.CAP_PROP_FRAME_WIDTH)),
                     int(self._cap.get(cv2.CAP_PROP_FRAME_HEIGHT)))
        if delivered[0] > 0 and delivered[1] > 0:
            self._size = delivered
        logger.info("Camera %d open at %dx%d (asked for %dx%d @ %d fps)",
                    self._device, self._size[0], self._size[1], width, height, self._fps)

    def _report(self, message: str):
        logger.error(message)
        if self._bus is not None:
            self._bus.emit(Events.CAMERA_ERROR, message=message)

    def _grab(self) -> Optional[np.ndarray]:
        """One read from the device, mirrored; None on failure."""
        ok, frame = self._cap.read()
        if not ok or frame is None:
            self._failed_reads += 1
            if self._failed_reads == STALL_READS:
                self._report("Camera %d returned no frames %d times in a row"
                             % (self._device, STALL_READS))
            return None
        self._failed_reads = 0
        return cv2.flip(frame, 1) if self._mirror else frame

    def start_async(self):
        """Start the background grab thread (no-op if closed or running)."""
        if self._grabbing or self._cap is None:
            return
        self._grabbing = True
        self._grabber = threading.Thread(target=self._grab_loop, name="camera-grab", daemon=True)
        self._grabber.start()
        logger.info("Async capture started")

    def _grab_loop(self):
        while self._grabbing:
            frame = self._grab()
            if frame is None:
                time.sleep(0.001)
                continue
            with self._lock:
                self._latest = frame
                self._seq += 1

    def read(self) -> Tuple[Optional[int], Optional[np.ndarray]]:
        """Newest grabbed frame as (frame_id, copy), or (None, None)."""
        with self._lock:
            if self._latest is None:
                return NO_FRAME
            return self._seq, self._latest.copy()

    def read_sync(self) -> Tuple[Optional[int], Optional[np.ndarray]]:
        """Blocking read for non-threaded mode."""
        if self._cap is None:
            return NO_FRAME
        frame = self._grab()
        if frame is None:
            return NO_FRAME
        self._seq += 1
        return self._seq, frame

    @property
    def resolution(self) -> tuple:
        return self._size

    @property
    def is_open(self) -> bool:
        return self._cap is not None and self._cap.isOpened()

    def stop(self):
        """Join the grab thread and release the device."""
        self._grabbing = False
        if self._grabber is not None and self._grabber.is_alive():
            self._grabber.join(timeout=2.0)
        self._grabber = None
        if self._cap is not None:
            self._cap.release()
            self._cap = None
            logger.info("Camera %d released", self._device)

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, *args):
        self.stop()
