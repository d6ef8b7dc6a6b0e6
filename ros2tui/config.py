"""
Configuration loading.

Configuration lives in config/<name>.yaml in the package share directory and
is merged over the built-in defaults below, so a partial file only needs the
keys it changes.
"""

import logging
import os
from typing import Any, Dict

import yaml
from ament_index_python.packages import get_package_share_directory

PACKAGE_NAME = "ros2tui"

# UI refresh
CURSES_REFRESH_MS = 100
SIMPLE_MODE_REFRESH_INTERVAL = 1.0

# Plot windows
HZ_WINDOW_SIZE = 10
PLOT_MAX_DURATION = 10.0

# Subscriber queue depth
QOS_DEPTH = 10

# How often the topic and node lists are re-queried (seconds)
GRAPH_REFRESH_INTERVAL = 1.0

logger = logging.getLogger(__name__)


def default_config() -> Dict[str, Any]:
    return {
        "settings": {
            "refresh_ms": CURSES_REFRESH_MS,
            "refresh_min_ms": 50,
            "refresh_max_ms": 1000,
            "refresh_step_ms": 50,
            "hz_window_size": HZ_WINDOW_SIZE,
            "plot_max_duration": PLOT_MAX_DURATION,
            "qos_depth": QOS_DEPTH,
            "graph_refresh_interval": GRAPH_REFRESH_INTERVAL,
        },
        "publisher": {
            "default_type": "std_msgs/msg/String",
        },
    }


def merge_config(defaults: Dict[str, Any], config: Dict[str, Any]) -> Dict[str, Any]:
    """Overlay config on defaults, one level deep for mapping sections."""
    merged = dict(defaults)
    for key, value in config.items():
        if isinstance(value, dict) and isinstance(defaults.get(key), dict):
            section = dict(defaults[key])
            section.update(value)
            merged[key] = section
        else:
            merged[key] = value
    return merged


def load_config_file(path: str) -> Dict[str, Any]:
    """Load a YAML file and merge it over the defaults."""
    defaults = default_config()
    with open(path, "r") as f:
        config = yaml.safe_load(f)
    if not config:
        return defaults
    if not isinstance(config, dict):
        raise ValueError(f"Config file '{path}' must contain a mapping")
    return merge_config(defaults, config)


def load_config(name: str = "default") -> Dict[str, Any]:
    """Load config/<name>.yaml from the package share directory.

    A path to an existing file is also accepted. Falls back to the defaults
    if the file is missing or unreadable.
    """
    try:
        if os.path.isfile(name):
            return load_config_file(name)
        pkg_share = get_package_share_directory(PACKAGE_NAME)
        config_path = os.path.join(pkg_share, "config", f"{name}.yaml")
        if os.path.isfile(config_path):
            return load_config_file(config_path)
    except Exception as e:
        logger.warning(f"Failed to load config file for '{name}', using defaults: {e}")

    return default_config()
