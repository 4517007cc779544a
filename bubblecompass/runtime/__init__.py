"""Sensor-driven compass runtime."""

from .service import CompassRuntime, CompassStatus, DerivedState, DeviceState

__all__ = ["CompassRuntime", "CompassStatus", "DerivedState", "DeviceState"]
