"""
Logging setup plus a placement event log.
"""

import os
import logging
import logging.handlers
import time


def setup_logging(level="INFO", log_file=None, max_size_mb=10, backup_count=3):
    """Configure console (and optional rotating file) logging."""
    console_format = "%(asctime)s  %(levelname)-5s  %(message)s"
    file_format = "%(asctime)s [%(levelname)-7s] %(name)-25s | %(message)s"
    date_format = "%H:%M:%S"

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    root_logger.handlers.clear()

    console = logging.StreamHandler()
    console.setLevel(root_logger.level)
    console.setFormatter(logging.Formatter(console_format, datefmt=date_format))
    root_logger.addHandler(console)

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_size_mb * 1024 * 1024,
            backupCount=backup_count,
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(file_format, datefmt=date_format))
        root_logger.addHandler(file_handler)

    return root_logger


class PlacementLogger:
    """Records placements and clears as they are published on the bus."""

    def __init__(self):
        self.logger = logging.getLogger("placement_events")
        self._history = []
        self._clears = 0

    def on_voxel_placed(self, voxel, count, **kwargs):
        self._history.append({
            "timestamp": time.time(),
            "position": tuple(voxel.position),
            "count": count,
        })
        self.logger.info("Placed: %-16s | Blocks: %d", voxel.position, count)

    def on_scene_cleared(self, removed, **kwargs):
        self._clears += 1
        self.logger.info("Cleared: %d blocks removed", removed)

    def get_history(self, last_n=None):
        if last_n:
            return self._history[-last_n:]
        return self._history.copy()

    def summary(self) -> dict:
        return {"placements": len(self._history), "clears": self._clears}
