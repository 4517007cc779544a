"""Navigation helpers (bearing engine, tilt mapping)."""

from .bearing import (
    DEFAULT_TOLERANCE_DEG,
    TARGET_NAME,
    TOTTENHAM_HOTSPUR_STADIUM,
    GeoPoint,
    alignment_edge_trigger,
    arrow_rotation,
    compute_bearing_and_distance,
    format_distance,
    heading_from_reading,
    is_aligned,
)
from .tilt import TiltOffsets, TiltSettings, radians_to_degrees, tilt_offsets

__all__ = [
    "DEFAULT_TOLERANCE_DEG",
    "TARGET_NAME",
    "TOTTENHAM_HOTSPUR_STADIUM",
    "GeoPoint",
    "TiltOffsets",
    "TiltSettings",
    "alignment_edge_trigger",
    "arrow_rotation",
    "compute_bearing_and_distance",
    "format_distance",
    "heading_from_reading",
    "is_aligned",
    "radians_to_degrees",
    "tilt_offsets",
]
