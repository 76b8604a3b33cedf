"""
Engine settings (tolerances, label behaviour, units) from layered YAML.

Layers, later wins: built-in defaults, the packaged default.yaml, the file named by
INSPECTOR3D_CONFIG, then an explicit override path.
"""
import os
from pathlib import Path
from typing import Any, Iterator

import yaml

from inspector3d.core.exceptions import ConfigError

ENV_CONFIG = "INSPECTOR3D_CONFIG"
ENV_LOG_LEVEL = "INSPECTOR3D_LOG_LEVEL"
ENV_LOG_DIR = "INSPECTOR3D_LOG_DIR"

PACKAGED_CONFIG = Path(__file__).resolve().parent / "default.yaml"

_CACHE: dict[str, Any] | None = None


def _merged(base: dict, layer: dict) -> dict:
    """New dict with layer applied over base; nested sections merge key by key."""
    result = dict(base)
    for key, value in layer.items():
        current = result.get(key)
        result[key] = _merged(current, value) if isinstance(current, dict) and isinstance(value, dict) else value
    return result


def _read_layer(path: Path) -> dict:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    return data if isinstance(data, dict) else {}


def _defaults() -> dict:
    """Built-in defaults (no file)."""
    return {
        "measurement": {
            "pick_tolerance": 0.1,
            "palette": [
                "#ff4444", "#44ff44", "#4444ff", "#ffff44", "#ff44ff",
                "#44ffff", "#ff8844", "#88ff44", "#4488ff", "#ff4488",
            ],
        },
        "linking": {
            "proximity_threshold": 0.5,
            "lock_linked_measurements": False,
        },
        "labels": {
            "max_distance": 100.0,
            "fallback_interval_ms": 200,
            "hit_radius_px": 12,
            "offsets": {
                "distance": [0, 0],
                "area": [0, 0],
                "annotation": [0, 0],
                "reference": [20, -10],
                "condition_score": [25, -15],
            },
        },
        "units": {"mesh_units": "m", "show_imperial": True},
    }


def _validate(cfg: dict) -> dict:
    """Coerce numeric keys; reject values the engine cannot work with."""
    try:
        tol = float(cfg["measurement"]["pick_tolerance"])
        threshold = float(cfg["linking"]["proximity_threshold"])
        max_distance = float(cfg["labels"]["max_distance"])
    except (KeyError, TypeError, ValueError) as e:
        raise ConfigError(f"Invalid numeric config value: {e}") from e
    if tol <= 0 or threshold <= 0 or max_distance <= 0:
        raise ConfigError("pick_tolerance, proximity_threshold and max_distance must be positive")
    if not cfg["measurement"].get("palette"):
        raise ConfigError("measurement.palette must contain at least one color")
    cfg["measurement"]["pick_tolerance"] = tol
    cfg["linking"]["proximity_threshold"] = threshold
    cfg["labels"]["max_distance"] = max_distance
    return cfg


def _layer_paths(override_path: str | Path | None) -> Iterator[Path]:
    if PACKAGED_CONFIG.exists():
        yield PACKAGED_CONFIG
    env_path = os.environ.get(ENV_CONFIG)
    if env_path and Path(env_path).exists():
        yield Path(env_path)
    if override_path is not None:
        path = Path(override_path)
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")
        yield path


def load_config(override_path: str | Path | None = None) -> dict:
    """
    Merged and validated settings. The result is cached; passing override_path rebuilds it.
    """
    global _CACHE
    if _CACHE is not None and override_path is None:
        return _CACHE
    _CACHE = None
    cfg = _defaults()
    for path in _layer_paths(override_path):
        cfg = _merged(cfg, _read_layer(path))
    _CACHE = _validate(cfg)
    return _CACHE


def get_config(override_path: str | Path | None = None) -> dict:
    return load_config(override_path)


def reset_config() -> None:
    """Drop the cached settings so the next load re-reads every layer."""
    global _CACHE
    _CACHE = None
