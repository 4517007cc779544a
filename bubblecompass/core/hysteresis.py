from __future__ import annotations

from bubblecompass.navigation.bearing import alignment_edge_trigger


ARMED = "armed"
FIRED = "fired"


class AlignmentNotifier:
    """Edge-triggered ARMED/FIRED machine over the alignment predicate.

    Fires once per approach; re-arms only after alignment is lost.
    """

    def __init__(self) -> None:
        self.current = ARMED
        self._previous_aligned = False

    @property
    def previous_aligned(self) -> bool:
        return self._previous_aligned

    def update(self, aligned: bool) -> bool:
        """Feed one alignment sample; returns True when the haptic should fire."""
        fire = alignment_edge_trigger(self._previous_aligned, aligned)
        # previous is tracked every cycle regardless of the trigger
        self._previous_aligned = aligned
        if fire and self.current == ARMED:
            self.current = FIRED
            return True
        if not aligned and self.current == FIRED:
            self.current = ARMED
        return False

    def reset(self) -> None:
        self.current = ARMED
        self._previous_aligned = False
