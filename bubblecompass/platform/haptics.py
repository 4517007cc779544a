from __future__ import annotations

from typing import Any, Callable, Optional

from bubblecompass.core.logging import get_logger

logger = get_logger("haptics")


class HapticNotifier:
    """Receives one pulse per ARMED -> FIRED alignment edge."""

    name = "none"

    def fire(self, status: Any) -> None:
        return None


class LogHaptic(HapticNotifier):
    name = "log"

    def __init__(self) -> None:
        self.pulses = 0

    def fire(self, status: Any) -> None:
        self.pulses += 1
        derived = getattr(status, "derived", None)
        logger.info(
            "haptic | pulse=%d bearing=%.1f rotation=%.1f",
            self.pulses,
            getattr(derived, "bearing_to_target", float("nan")),
            getattr(derived, "arrow_rotation", float("nan")),
        )


class CallbackHaptic(HapticNotifier):
    name = "callback"

    def __init__(self, callback: Callable[[Any], None]) -> None:
        self.callback = callback

    def fire(self, status: Any) -> None:
        self.callback(status)


def make_haptic(mode: str, callback: Optional[Callable[[Any], None]] = None) -> HapticNotifier:
    if mode == "log":
        return LogHaptic()
    if mode == "callback":
        if callback is None:
            raise ValueError("callback haptic requires a callback")
        return CallbackHaptic(callback)
    if mode == "none":
        return HapticNotifier()
    raise ValueError(f"Unknown haptic mode: {mode}")
