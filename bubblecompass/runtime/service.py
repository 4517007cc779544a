from __future__ import annotations

import copy
import os
import queue
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from bubblecompass.core.config import CompassProfile, load_compass_profile
from bubblecompass.core.hysteresis import AlignmentNotifier
from bubblecompass.core.logging import init_logging
from bubblecompass.core.sensors import HeadingReading, LocationFix, MotionSample, SensorUpdate
from bubblecompass.core.timeline import Timeline
from bubblecompass.navigation.bearing import (
    TARGET_NAME,
    TOTTENHAM_HOTSPUR_STADIUM,
    GeoPoint,
    arrow_rotation,
    compute_bearing_and_distance,
    format_distance,
    heading_from_reading,
    is_aligned,
)
from bubblecompass.navigation.tilt import radians_to_degrees
from bubblecompass.platform.haptics import HapticNotifier, make_haptic


@dataclass
class DeviceState:
    position: Optional[GeoPoint] = None
    heading: float = 0.0
    pitch: float = 0.0
    roll: float = 0.0


@dataclass
class DerivedState:
    bearing_to_target: float = 0.0
    distance_m: float = 0.0
    arrow_rotation: float = 0.0
    is_aligned: bool = False
    computed: bool = False


@dataclass
class CompassStatus:
    running: bool = False
    target_name: str = TARGET_NAME
    target: GeoPoint = TOTTENHAM_HOTSPUR_STADIUM
    tolerance_deg: float = 5.0
    distance_model: str = "haversine"
    device: DeviceState = field(default_factory=DeviceState)
    derived: DerivedState = field(default_factory=DerivedState)
    distance_text: str = "--"
    haptic_state: str = "armed"
    haptic_pulses: int = 0
    updates: int = 0
    last_update_ts: Optional[float] = None
    last_fix_ts: Optional[float] = None

    def to_dict(self) -> dict:
        pos = self.device.position
        return {
            "running": self.running,
            "target": {"name": self.target_name, **self.target.to_dict()},
            "tolerance_deg": self.tolerance_deg,
            "distance_model": self.distance_model,
            "position": pos.to_dict() if pos else None,
            "heading": self.device.heading,
            "pitch": self.device.pitch,
            "roll": self.device.roll,
            "bearing_to_target": self.derived.bearing_to_target,
            "distance_m": self.derived.distance_m,
            "distance_text": self.distance_text,
            "arrow_rotation": self.derived.arrow_rotation,
            "is_aligned": self.derived.is_aligned,
            "computed": self.derived.computed,
            "haptic": {"state": self.haptic_state, "pulses": self.haptic_pulses},
            "updates": self.updates,
            "last_update_ts": self.last_update_ts,
            "last_fix_ts": self.last_fix_ts,
        }


Listener = Callable[[CompassStatus], None]


class CompassRuntime:
    """Owns device state; serializes sensor updates and recomputes after each one.

    Providers call ``submit`` from any thread. A single consumer thread drains
    the queue and runs ``apply``: mutate DeviceState, recompute DerivedState,
    then notify the haptic and listeners, all as one step under ``_lock``.
    """

    def __init__(
        self,
        profile: Optional[CompassProfile] = None,
        *,
        target: GeoPoint = TOTTENHAM_HOTSPUR_STADIUM,
        target_name: str = TARGET_NAME,
        haptic: Optional[HapticNotifier] = None,
        timeline: Optional[Timeline] = None,
    ) -> None:
        self.logger = init_logging(level=os.environ.get("LOG_LEVEL", "INFO"))
        self.profile = profile or load_compass_profile()
        self.status = CompassStatus(
            target_name=target_name,
            target=target,
            tolerance_deg=self.profile.tolerance_deg,
            distance_model=self.profile.distance_model,
        )
        self.haptic = haptic or make_haptic(self.profile.haptic_mode)
        self.timeline = timeline or Timeline()
        self.notifier = AlignmentNotifier()
        self._listeners: List[Listener] = []
        self._queue: "queue.Queue[SensorUpdate]" = queue.Queue()
        self._lock = threading.RLock()
        self._stop_evt = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._poll = max(0.01, self.profile.poll_interval_s)

    # Lifecycle -----------------------------------------------------------
    def start(self) -> None:
        with self._lock:
            if self._thread and self._thread.is_alive():
                return
            self._stop_evt.clear()
            self.status.running = True
            self._thread = threading.Thread(target=self._run_loop, name="compass-runtime", daemon=True)
            self._thread.start()
            self.logger.info(
                "Runtime started | target=%s tolerance=%.1f model=%s",
                self.status.target_name,
                self.status.tolerance_deg,
                self.status.distance_model,
            )

    def stop(self, timeout: float = 2.0) -> None:
        self._stop_evt.set()
        thread = self._thread
        if thread is not None:
            thread.join(timeout)
        with self._lock:
            self._thread = None
            self.status.running = False
        self.logger.info("Runtime stopped")

    def _run_loop(self) -> None:
        while not self._stop_evt.is_set():
            try:
                update = self._queue.get(timeout=self._poll)
            except queue.Empty:
                continue
            try:
                self.apply(update)
            except Exception:
                self.logger.exception("runtime error | update=%s", update)
            finally:
                self._queue.task_done()

    # Ingress -------------------------------------------------------------
    def submit(self, update: SensorUpdate) -> None:
        self._queue.put(update)

    def wait_idle(self, timeout: float = 2.0) -> bool:
        """Wait until every submitted update has been applied."""
        deadline = time.time() + timeout
        while self._queue.unfinished_tasks:
            if time.time() >= deadline:
                return False
            time.sleep(0.005)
        return True

    def apply(self, update: SensorUpdate) -> CompassStatus:
        with self._lock:
            device = self.status.device
            if isinstance(update, LocationFix):
                device.position = GeoPoint(update.latitude, update.longitude)
                if self.status.last_fix_ts is None:
                    self.timeline.add("fix", "first_fix", latitude=update.latitude, longitude=update.longitude)
                    self.logger.info("first fix | lat=%.5f lon=%.5f", update.latitude, update.longitude)
                self.status.last_fix_ts = update.ts
            elif isinstance(update, HeadingReading):
                device.heading = heading_from_reading(update.magnetic_heading, update.true_heading)
            elif isinstance(update, MotionSample):
                device.pitch = radians_to_degrees(update.pitch_rad)
                device.roll = radians_to_degrees(update.roll_rad)
            else:
                raise TypeError(f"Unsupported sensor update: {update!r}")
            self.status.updates += 1
            self.status.last_update_ts = update.ts
            return self.recompute()

    # Derivation ----------------------------------------------------------
    def recompute(self) -> CompassStatus:
        """Rebuild DerivedState from DeviceState, then notify.

        Does nothing until a position has been received.
        """
        with self._lock:
            device = self.status.device
            if device.position is None:
                return self.snapshot()
            bearing, distance = compute_bearing_and_distance(
                device.position,
                self.status.target,
                model=self.status.distance_model,
            )
            rotation = arrow_rotation(bearing, device.heading)
            aligned = is_aligned(rotation, self.status.tolerance_deg)
            was_aligned = self.status.derived.is_aligned and self.status.derived.computed
            self.status.derived = DerivedState(
                bearing_to_target=bearing,
                distance_m=distance,
                arrow_rotation=rotation,
                is_aligned=aligned,
                computed=True,
            )
            self.status.distance_text = format_distance(distance)
            if aligned != was_aligned:
                self.timeline.add(
                    "aligned" if aligned else "lost",
                    "alignment",
                    bearing=round(bearing, 2),
                    heading=round(device.heading, 2),
                )
            fire = self.notifier.update(aligned)
            self.status.haptic_state = self.notifier.current
            if fire:
                self.status.haptic_pulses += 1
                self.timeline.add("haptic", "pulse", pulses=self.status.haptic_pulses)
            snap = self.snapshot()
            if fire:
                self._fire_haptic(snap)
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(snap)
            except Exception:
                self.logger.exception("listener failed | listener=%r", listener)
        return snap

    def _fire_haptic(self, snap: CompassStatus) -> None:
        try:
            self.haptic.fire(snap)
        except Exception as exc:
            self.logger.exception("haptic failed | mode=%s error=%s", self.haptic.name, exc)

    # Readout -------------------------------------------------------------
    def add_listener(self, listener: Listener) -> None:
        with self._lock:
            self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def snapshot(self) -> CompassStatus:
        with self._lock:
            return copy.deepcopy(self.status)

    def get_timeline(self, n: int = 50) -> list[dict]:
        return self.timeline.last(n)
