"""
Frame-rate and per-stage latency tracking with rolling windows.
"""

import time
import logging
from collections import deque
from contextlib import contextmanager

logger = logging.getLogger(__name__)

STAGES = ("capture", "detection", "placement", "render", "total")


class PerformanceMonitor:
    """Tracks FPS and per-stage latency for the frame loop."""

    def __init__(self, window_size=100):
        self._window_size = window_size
        self._frame_times = deque(maxlen=window_size)
        self._last_frame_time = None
        self._stage_times = {name: deque(maxlen=window_size) for name in STAGES}
        self._frame_count = 0
        self._start_time = time.time()

    @contextmanager
    def measure(self, stage_name: str):
        """Context manager to measure one stage's duration."""
        start = time.perf_counter()
        try:
            yield
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            if stage_name not in self._stage_times:
                self._stage_times[stage_name] = deque(maxlen=self._window_size)
            self._stage_times[stage_name].append(elapsed_ms)

    def tick(self):
        """Call once per processed frame."""
        now = time.perf_counter()
        if self._last_frame_time is not None:
            self._frame_times.append(now - self._last_frame_time)
        self._last_frame_time = now
        self._frame_count += 1

    @property
    def fps(self) -> float:
        """Rolling-average frames per second."""
        if len(self._frame_times) < 2:
            return 0.0
        avg_interval = sum(self._frame_times) / len(self._frame_times)
        return 1.0 / avg_interval if avg_interval > 0 else 0.0

    @property
    def total_latency_ms(self) -> float:
        return self.get_stage_latency("total")

    @property
    def frame_count(self) -> int:
        return self._frame_count

    def get_stage_latency(self, stage_name: str) -> float:
        """Average latency for a stage in ms."""
        times = self._stage_times.get(stage_name)
        if not times:
            return 0.0
        return sum(times) / len(times)

    def get_report(self) -> dict:
        return {
            "fps": round(self.fps, 1),
            "total_frames": self._frame_count,
            "uptime_seconds": round(time.time() - self._start_time, 1),
            "latencies_ms": {
                name: round(self.get_stage_latency(name), 2) for name in self._stage_times
            },
        }

    def print_report(self):
        report = self.get_report()
        logger.info("=" * 50)
        logger.info("PERFORMANCE REPORT")
        logger.info("FPS:            %.1f", report["fps"])
        logger.info("Total Frames:   %d", report["total_frames"])
        logger.info("Uptime:         %.1fs", report["uptime_seconds"])
        for stage, latency in report["latencies_ms"].items():
            logger.info("  %-12s %7.2f ms", stage, latency)
        logger.info("=" * 50)

    def reset(self):
        self._frame_times.clear()
        self._last_frame_time = None
        for times in self._stage_times.values():
            times.clear()
        self._frame_count = 0
        self._start_time = time.time()
