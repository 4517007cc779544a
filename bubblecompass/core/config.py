"""Configuration loader with YAML files and environment variable overrides."""

from __future__ import annotations

import math
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from bubblecompass.core.logging import get_logger
from bubblecompass.navigation.bearing import DEFAULT_TOLERANCE_DEG, DISTANCE_MODELS
from bubblecompass.navigation.tilt import TiltSettings

ENV_PREFIX = "BCOMPASS"

# modes a profile can build without a caller-supplied callback
PROFILE_HAPTIC_MODES = ("log", "none")

logger = get_logger("config")


class Config:
    """Configuration loader with environment variable override support."""

    def __init__(self, config_dir: Optional[str] = None):
        """Initialize config loader.

        Args:
            config_dir: Path to config directory. Defaults to $BCOMPASS_CONFIG_DIR,
                then 'config' relative to the project root.
        """
        if config_dir is None:
            config_dir = os.environ.get(f"{ENV_PREFIX}_CONFIG_DIR") or Path(__file__).parent.parent.parent / "config"

        self.config_dir = Path(config_dir)
        self._cache: Dict[str, Any] = {}

    def load_profile(self) -> Dict[str, Any]:
        """Load profile configuration with environment overrides."""
        return self._load_config("profile.yml")

    def _load_config(self, config_path: str) -> Dict[str, Any]:
        full_path = self.config_dir / config_path

        cache_key = str(full_path)
        if cache_key in self._cache:
            return self._cache[cache_key].copy()

        config: Dict[str, Any] = {}
        if full_path.exists():
            try:
                with open(full_path, "r", encoding="utf-8") as f:
                    config = yaml.safe_load(f) or {}
            except (OSError, yaml.YAMLError) as exc:
                # fall back to defaults
                logger.warning("config unreadable | path=%s error=%s", full_path, exc)
                config = {}
        if not isinstance(config, dict):
            logger.warning("config ignored, expected a mapping | path=%s", full_path)
            config = {}

        config = self._apply_env_overrides(config, config_path)
        self._cache[cache_key] = config.copy()
        return config

    def _apply_env_overrides(self, config: Dict[str, Any], config_path: str) -> Dict[str, Any]:
        """Override leaf values from BCOMPASS_<FILE>_<PATH> variables.

        The env value is coerced to the type of the YAML value it replaces.
        """
        env_prefix = f"{ENV_PREFIX}_{Path(config_path).stem.upper()}_"

        def coerce(env_value: str, current: Any) -> Any:
            if isinstance(current, bool):
                return env_value.lower() in ("true", "1", "yes", "on")
            if isinstance(current, int):
                try:
                    return int(env_value)
                except ValueError:
                    return current
            if isinstance(current, float):
                try:
                    return float(env_value)
                except ValueError:
                    return current
            return env_value

        def apply_overrides(obj: Any, path: str = "") -> Any:
            if not isinstance(obj, dict):
                return obj
            result = {}
            for key, value in obj.items():
                new_path = f"{path}.{key}" if path else str(key)
                env_key = f"{env_prefix}{new_path.replace('.', '_').upper()}"
                env_value = os.environ.get(env_key)
                if env_value is not None and not isinstance(value, dict):
                    result[key] = coerce(env_value, value)
                else:
                    result[key] = apply_overrides(value, new_path)
            return result

        return apply_overrides(config)

    def clear_cache(self):
        """Clear the configuration cache."""
        self._cache.clear()


@dataclass
class CompassProfile:
    """Typed view of profile.yml with defaults for anything missing or invalid."""

    tolerance_deg: float = DEFAULT_TOLERANCE_DEG
    distance_model: str = "haversine"
    poll_interval_s: float = 0.1
    haptic_mode: str = "log"
    server_host: str = "127.0.0.1"
    server_port: int = 8083
    dial_size_px: int = 480
    tilt: TiltSettings = field(default_factory=TiltSettings)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CompassProfile":
        profile = cls()
        alignment = _section(data, "alignment")
        profile.tolerance_deg = _float(alignment.get("tolerance_deg"), profile.tolerance_deg)

        model = data.get("distance_model", profile.distance_model)
        if model not in DISTANCE_MODELS:
            raise ValueError(f"Unknown distance model: {model}")
        profile.distance_model = model

        runtime = _section(data, "runtime")
        profile.poll_interval_s = _float(runtime.get("poll_interval_s"), profile.poll_interval_s)

        haptic = _section(data, "haptic")
        mode = haptic.get("mode", profile.haptic_mode)
        if mode not in PROFILE_HAPTIC_MODES:
            raise ValueError(f"Unknown haptic mode: {mode}")
        profile.haptic_mode = mode

        server = _section(data, "server")
        host = server.get("host")
        if isinstance(host, str) and host:
            profile.server_host = host
        profile.server_port = _int(server.get("port"), profile.server_port)

        display = _section(data, "display")
        profile.dial_size_px = _int(display.get("dial_size_px"), profile.dial_size_px)
        tilt = profile.tilt
        tilt.shadow_k = _float(display.get("shadow_k"), tilt.shadow_k)
        tilt.bubble_k = _float(display.get("bubble_k"), tilt.bubble_k)
        tilt.highlight_k = _float(display.get("highlight_k"), tilt.highlight_k)
        tilt.bubble_rotation_k = _float(display.get("bubble_rotation_k"), tilt.bubble_rotation_k)
        tilt.arrow_rotation_k = _float(display.get("arrow_rotation_k"), tilt.arrow_rotation_k)
        return profile


def _section(data: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = data.get(key)
    return value if isinstance(value, dict) else {}


def _float(value: Any, default: float) -> float:
    if value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _int(value: Any, default: int) -> int:
    number = _float(value, default)
    if not math.isfinite(number):
        return default
    return int(number)


# Global config instance
_config_instance: Optional[Config] = None


def get_config() -> Config:
    """Get the global config instance."""
    global _config_instance
    if _config_instance is None:
        _config_instance = Config()
    return _config_instance


def load_compass_profile(config: Optional[Config] = None) -> CompassProfile:
    data = (config or get_config()).load_profile()
    return CompassProfile.from_dict(data)
