from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Tuple


@dataclass
class TiltSettings:
    shadow_k: float = 0.5
    shadow_base_y: float = 10.0
    bubble_center: Tuple[float, float] = (0.4, 0.3)
    bubble_k: float = 0.002
    highlight_center: Tuple[float, float] = (0.3, 0.25)
    highlight_k: float = 0.003
    bubble_rotation_k: float = 0.3
    arrow_rotation_k: float = 0.2


@dataclass
class TiltOffsets:
    """Cosmetic display parameters derived from device pitch/roll."""

    shadow_offset: Tuple[float, float]
    bubble_center: Tuple[float, float]
    highlight_center: Tuple[float, float]
    bubble_rotation: Tuple[float, float]
    arrow_rotation: Tuple[float, float]


def radians_to_degrees(value: float) -> float:
    return value * 180.0 / math.pi


def _clamp_unit(value: float) -> float:
    # NaN passes through untouched
    if value < 0.0:
        return 0.0
    if value > 1.0:
        return 1.0
    return value


def _unit_point(base: Tuple[float, float], pitch: float, roll: float, k: float) -> Tuple[float, float]:
    return (_clamp_unit(base[0] - roll * k), _clamp_unit(base[1] - pitch * k))


def tilt_offsets(pitch: float, roll: float, settings: TiltSettings | None = None) -> TiltOffsets:
    """Map pitch/roll in degrees to shadow, highlight and 3D rotation parameters."""
    s = settings or TiltSettings()
    return TiltOffsets(
        shadow_offset=(roll * s.shadow_k, s.shadow_base_y + pitch * s.shadow_k),
        bubble_center=_unit_point(s.bubble_center, pitch, roll, s.bubble_k),
        highlight_center=_unit_point(s.highlight_center, pitch, roll, s.highlight_k),
        bubble_rotation=(pitch * s.bubble_rotation_k, roll * s.bubble_rotation_k),
        arrow_rotation=(pitch * s.arrow_rotation_k, roll * s.arrow_rotation_k),
    )
