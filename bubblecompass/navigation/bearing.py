from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Tuple

from pyproj import Geod


EARTH_RADIUS_M = 6_371_000.0
DEFAULT_TOLERANCE_DEG = 5.0
DISTANCE_MODELS = ("haversine", "wgs84")

_WGS84 = Geod(ellps="WGS84")


@dataclass(frozen=True)
class GeoPoint:
    """Latitude/longitude pair in degrees (WGS84)."""

    latitude: float
    longitude: float

    @classmethod
    def validated(cls, latitude: float, longitude: float) -> "GeoPoint":
        lat = float(latitude)
        lon = float(longitude)
        if not -90.0 <= lat <= 90.0:
            raise ValueError(f"latitude out of range: {lat}")
        if not -180.0 <= lon <= 180.0:
            raise ValueError(f"longitude out of range: {lon}")
        return cls(lat, lon)

    def to_dict(self) -> dict:
        return {"latitude": self.latitude, "longitude": self.longitude}


TOTTENHAM_HOTSPUR_STADIUM = GeoPoint(51.6043, -0.0664)
TARGET_NAME = "Tottenham Hotspur Stadium"


def initial_bearing(current: GeoPoint, target: GeoPoint) -> float:
    """Great-circle initial bearing from ``current`` to ``target`` in [0, 360)."""
    lat1 = math.radians(current.latitude)
    lon1 = math.radians(current.longitude)
    lat2 = math.radians(target.latitude)
    lon2 = math.radians(target.longitude)

    d_lon = lon2 - lon1
    y = math.sin(d_lon) * math.cos(lat2)
    x = math.cos(lat1) * math.sin(lat2) - math.sin(lat1) * math.cos(lat2) * math.cos(d_lon)
    bearing = math.degrees(math.atan2(y, x))
    return (bearing + 360.0) % 360.0


def haversine_distance(current: GeoPoint, target: GeoPoint, *, radius_m: float = EARTH_RADIUS_M) -> float:
    lat1 = math.radians(current.latitude)
    lat2 = math.radians(target.latitude)
    d_lat = lat2 - lat1
    d_lon = math.radians(target.longitude - current.longitude)
    a = math.sin(d_lat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(d_lon / 2) ** 2
    # rounding can push a marginally above 1 for antipodal points
    if a > 1.0:
        a = 1.0
    return 2.0 * radius_m * math.asin(math.sqrt(a))


def geodesic_distance(current: GeoPoint, target: GeoPoint) -> float:
    """Distance along the WGS84 ellipsoid in meters."""
    _, _, dist = _WGS84.inv(current.longitude, current.latitude, target.longitude, target.latitude)
    return float(dist)


def compute_bearing_and_distance(
    current: GeoPoint,
    target: GeoPoint,
    *,
    model: str = "haversine",
) -> Tuple[float, float]:
    """Return ``(bearing_deg, distance_m)`` from ``current`` to ``target``.

    Equal points yield a bearing of 0 and a distance of 0.
    """
    bearing = initial_bearing(current, target)
    if model == "haversine":
        distance = haversine_distance(current, target)
    elif model == "wgs84":
        distance = geodesic_distance(current, target)
    else:
        raise ValueError(f"Unknown distance model: {model}")
    return bearing, distance


def arrow_rotation(bearing: float, heading: float) -> float:
    """Rotation delta for the arrow; left unnormalized for the renderer."""
    return bearing - heading


def normalize_signed(angle: float) -> float:
    """Map an angle into [-180, 180)."""
    return ((angle + 180.0) % 360.0) - 180.0


def is_aligned(rotation: float, tolerance_deg: float = DEFAULT_TOLERANCE_DEG) -> bool:
    return abs(normalize_signed(rotation)) < tolerance_deg


def alignment_edge_trigger(previous_aligned: bool, current_aligned: bool) -> bool:
    """True only on the not-aligned -> aligned transition."""
    return current_aligned and not previous_aligned


def heading_from_reading(magnetic_heading: float, true_heading: float = -1.0) -> float:
    """Prefer true heading; a negative value means it is unavailable."""
    if true_heading >= 0:
        return true_heading
    return magnetic_heading


def format_distance(meters: float) -> str:
    if meters < 1000:
        return f"{int(meters)} m"
    return f"{meters / 1000:.1f} km"
