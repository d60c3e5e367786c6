"""
Configuration manager.
Loads a YAML config over built-in defaults and provides typed access.

    - Schema validation for critical config fields (warnings only)
    - Dotted-path access: config.get("placement.pinch_threshold")
    - One instance per application; no module-level state
"""

import copy
import os
import yaml
import logging

logger = logging.getLogger(__name__)

_BASE_DIR = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
_CONFIG_DIR = os.path.join(_BASE_DIR, "config")

DEFAULTS = {
    "system": {"version": "1.0.0"},
    "placement": {
        "pinch_threshold": 0.045,
        "build_distance": 6.0,
        "cell_size": 1.0,
    },
    "camera": {
        "device_id": 0,
        "width": 1280,
        "height": 720,
        "fps": 30,
        "backend": "auto",
        "flip_horizontal": True,
        "warmup_frames": 10,
        "fov_deg": 70.0,
        "near": 0.01,
        "far": 100.0,
    },
    "mediapipe": {
        "max_num_hands": 1,
        "model_complexity": 1,
        "min_detection_confidence": 0.8,
        "min_tracking_confidence": 0.8,
    },
    "style": {
        "voxel": {"fill": [255, 255, 255], "edge": [246, 130, 59], "opacity": 1.0},
        "preview": {"fill": [246, 130, 59], "edge": [250, 165, 96], "opacity": 0.6},
    },
    "visualization": {
        "enabled": True,
        "window_name": "AR Voxel",
        "show_landmarks": False,
        "show_fps": True,
    },
    "performance": {
        "enable_threading": True,
        "metrics_window": 100,
    },
    "logging": {
        "level": "INFO",
        "file": None,
        "max_size_mb": 10,
        "backup_count": 3,
    },
}

# Schema: sections and their expected types
_CONFIG_SCHEMA = {
    "placement": {
        "pinch_threshold": float,
        "build_distance": float,
        "cell_size": float,
    },
    "camera": {
        "device_id": int,
        "width": int,
        "height": int,
        "fps": int,
        "flip_horizontal": bool,
        "fov_deg": float,
        "near": float,
        "far": float,
    },
    "mediapipe": {
        "model_complexity": int,
        "min_detection_confidence": float,
        "min_tracking_confidence": float,
    },
    "visualization": {
        "enabled": bool,
        "window_name": str,
    },
}


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge override into base dict."""
    merged = base.copy()
    for key, value in override.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class Config:
    """Application configuration: defaults overlaid with a YAML file."""

    def __init__(self, data: dict = None):
        self._data = _deep_merge(copy.deepcopy(DEFAULTS), data or {})

    def load(self, config_path=None):
        """Load configuration from a YAML file over the defaults."""
        config_path = config_path or os.path.join(_CONFIG_DIR, "config.yaml")

        try:
            with open(config_path, "r") as f:
                loaded = yaml.safe_load(f) or {}
            logger.info("Loaded config from %s", config_path)
        except FileNotFoundError:
            logger.warning("Config file not found: %s, using defaults", config_path)
            loaded = {}

        if not isinstance(loaded, dict):
            logger.warning("Config root should be a mapping, got %s; using defaults",
                           type(loaded).__name__)
            loaded = {}

        self._data = _deep_merge(copy.deepcopy(DEFAULTS), loaded)
        self._validate()
        return self

    def _validate(self) -> list:
        """Validate config fields against schema; returns the warnings."""
        warnings = []
        for section_name, fields in _CONFIG_SCHEMA.items():
            section = self._data.get(section_name)
            if not isinstance(section, dict):
                warnings.append(f"Section '{section_name}' should be a dict, got {type(section).__name__}")
                continue
            for field_name, expected_type in fields.items():
                if field_name not in section:
                    continue
                value = section[field_name]
                # Allow int where float is expected
                if expected_type is float and isinstance(value, (int, float)) \
                        and not isinstance(value, bool):
                    continue
                if not isinstance(value, expected_type):
                    warnings.append(
                        f"{section_name}.{field_name}: expected {expected_type.__name__}, "
                        f"got {type(value).__name__} ({value!r})"
                    )

        for w in warnings:
            logger.warning("Config validation: %s", w)
        if not warnings:
            logger.debug("Config validation passed")
        return warnings

    def get(self, key_path: str, default=None):
        """Get nested config value using dot notation: 'camera.width'."""
        value = self._data
        for key in key_path.split("."):
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default
        return value

    def set(self, key_path: str, value):
        """Override a nested value (CLI flags)."""
        keys = key_path.split(".")
        node = self._data
        for key in keys[:-1]:
            node = node.setdefault(key, {})
        node[keys[-1]] = value

    def get_section(self, section: str) -> dict:
        """Get an entire config section."""
        return self._data.get(section) or {}

    @property
    def placement(self) -> dict:
        return self.get_section("placement")

    @property
    def camera(self) -> dict:
        return self.get_section("camera")

    @property
    def mediapipe(self) -> dict:
        return self.get_section("mediapipe")

    @property
    def style(self) -> dict:
        return self.get_section("style")

    @property
    def visualization(self) -> dict:
        return self.get_section("visualization")

    @property
    def performance(self) -> dict:
        return self.get_section("performance")

    @property
    def base_dir(self) -> str:
        return _BASE_DIR
