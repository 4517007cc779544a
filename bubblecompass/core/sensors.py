from __future__ import annotations

import time
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, Union


@dataclass
class LocationFix:
    latitude: float
    longitude: float
    ts: float = field(default_factory=time.time)
    kind: str = field(default="location", init=False)


@dataclass
class HeadingReading:
    magnetic_heading: float
    true_heading: float = -1.0  # negative when no true-north reference
    ts: float = field(default_factory=time.time)
    kind: str = field(default="heading", init=False)


@dataclass
class MotionSample:
    pitch_rad: float
    roll_rad: float
    ts: float = field(default_factory=time.time)
    kind: str = field(default="motion", init=False)


SensorUpdate = Union[LocationFix, HeadingReading, MotionSample]

_KINDS = {
    "location": LocationFix,
    "heading": HeadingReading,
    "motion": MotionSample,
}


def update_to_dict(update: SensorUpdate) -> Dict[str, Any]:
    return asdict(update)


def update_from_dict(data: Dict[str, Any]) -> SensorUpdate:
    """Rebuild a sensor update from its dict form; raises ValueError on bad input."""
    kind = data.get("kind")
    cls = _KINDS.get(kind)  # type: ignore[arg-type]
    if cls is None:
        raise ValueError(f"Unknown sensor update kind: {kind!r}")
    kwargs = {k: v for k, v in data.items() if k != "kind"}
    try:
        return cls(**{k: float(v) for k, v in kwargs.items()})
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Malformed {kind} update: {data!r}") from exc
