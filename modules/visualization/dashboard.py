"""
HUD overlay: title, block counter, building-plane guide, interaction hint
and performance readout.
"""

import logging
import cv2
import numpy as np

logger = logging.getLogger(__name__)

_FONT = cv2.FONT_HERSHEY_SIMPLEX


class Dashboard:
    """Renders the UI chrome over the composited AR frame."""

    def __init__(self, config: dict):
        self._show_fps = config.get("show_fps", True)
        self._show_guide = config.get("show_building_plane", True)
        self._show_hint = config.get("show_hint", True)

        colors = config.get("colors", {})
        self._color_text = tuple(colors.get("text", [255, 255, 255]))
        self._color_accent = tuple(colors.get("accent", [246, 130, 59]))
        self._color_muted = tuple(colors.get("muted", [180, 180, 180]))
        self._color_fps_good = tuple(colors.get("fps_good", [0, 255, 0]))
        self._color_fps_bad = tuple(colors.get("fps_bad", [0, 0, 255]))
        self._color_pinch = tuple(colors.get("pinch", [250, 165, 96]))

        self._panel_opacity = config.get("panel_opacity", 0.4)

    def render(self, frame: np.ndarray, state: dict) -> np.ndarray:
        """Render the HUD.

        Args:
            frame: BGR frame to draw on
            state: dict with
                - count: int, placed voxels
                - hand_detected: bool
                - pinching: bool
                - fps: float
                - latency_ms: float
        """
        h, w = frame.shape[:2]

        if self._show_guide:
            self._draw_building_plane(frame, w, h)
        self._draw_title(frame)
        self._draw_counter(frame, w, state.get("count", 0))
        if self._show_fps:
            self._draw_fps(frame, h, state.get("fps", 0.0), state.get("latency_ms", 0.0))
        if self._show_hint:
            self._draw_hint(frame, w, h, state.get("pinching", False))
        if not state.get("hand_detected", True):
            self._draw_no_hand_warning(frame, w, h)
        self._draw_keys(frame, w, h)
        return frame

    def _panel(self, frame, x0, y0, x1, y1, color=(0, 0, 0)):
        overlay = frame.copy()
        cv2.rectangle(overlay, (x0, y0), (x1, y1), color, -1)
        cv2.addWeighted(overlay, self._panel_opacity, frame, 1 - self._panel_opacity, 0, frame)

    def _draw_title(self, frame):
        cv2.putText(frame, "AR VOXEL", (24, 52), _FONT, 1.2, (0, 0, 0), 5, cv2.LINE_AA)
        cv2.putText(frame, "AR VOXEL", (24, 52), _FONT, 1.2, self._color_accent, 3, cv2.LINE_AA)
        self._panel(frame, 22, 64, 240, 86)
        cv2.putText(frame, "GRID SNAPPING ACTIVE", (28, 81), _FONT, 0.45,
                    self._color_muted, 1, cv2.LINE_AA)

    def _draw_counter(self, frame, w, count):
        x0, y0 = w - 190, 22
        self._panel(frame, x0, y0, w - 22, y0 + 56)
        cv2.putText(frame, "BLOCKS", (x0 + 14, y0 + 34), _FONT, 0.45,
                    self._color_muted, 1, cv2.LINE_AA)
        cv2.putText(frame, str(count), (x0 + 92, y0 + 40), _FONT, 1.0,
                    self._color_text, 2, cv2.LINE_AA)

    def _draw_fps(self, frame, h, fps, latency_ms):
        color = self._color_fps_good if fps >= 20 else self._color_fps_bad
        cv2.putText(frame, f"FPS: {fps:.1f}  {latency_ms:.1f}ms", (24, h - 20), _FONT, 0.5,
                    color, 1, cv2.LINE_AA)

    def _draw_building_plane(self, frame, w, h):
        cx, cy = w // 2, h // 2
        guide = (120, 120, 120)
        cv2.line(frame, (cx, cy - 110), (cx, cy - 30), guide, 1, cv2.LINE_AA)
        cv2.line(frame, (cx, cy + 30), (cx, cy + 110), guide, 1, cv2.LINE_AA)
        text = "BUILDING PLANE"
        size = cv2.getTextSize(text, _FONT, 0.4, 1)[0]
        cv2.putText(frame, text, (cx - size[0] // 2, cy + 5), _FONT, 0.4, guide, 1, cv2.LINE_AA)

    def _draw_hint(self, frame, w, h, pinching):
        text = "Pinch to Preview - Release to Build"
        size = cv2.getTextSize(text, _FONT, 0.55, 1)[0]
        x = (w - size[0]) // 2
        y = h - 110
        self._panel(frame, x - 18, y - 26, x + size[0] + 18, y + 14, color=(80, 40, 20))
        color = self._color_pinch if pinching else self._color_text
        cv2.putText(frame, text, (x, y), _FONT, 0.55, color, 1, cv2.LINE_AA)

    def _draw_keys(self, frame, w, h):
        text = "[C] Clear Scene   [Q] Quit"
        size = cv2.getTextSize(text, _FONT, 0.5, 1)[0]
        cv2.putText(frame, text, ((w - size[0]) // 2, h - 50), _FONT, 0.5,
                    self._color_muted, 1, cv2.LINE_AA)

    def _draw_no_hand_warning(self, frame, w, h):
        text = "Show hand to build"
        size = cv2.getTextSize(text, _FONT, 0.7, 2)[0]
        cv2.putText(frame, text, ((w - size[0]) // 2, h // 2 + 150), _FONT, 0.7,
                    (0, 150, 255), 2, cv2.LINE_AA)
