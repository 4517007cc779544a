from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from typing import Any, Deque, Dict, List


@dataclass
class Event:
    ts: str
    type: str  # fix|aligned|lost|haptic|info
    label: str
    data: Dict[str, Any]


def _utc_stamp() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"


class Timeline:
    """Bounded, thread-safe buffer of recent runtime events."""

    def __init__(self, maxlen: int = 200) -> None:
        self._buf: Deque[Event] = deque(maxlen=maxlen)
        self._lock = threading.Lock()

    def add(self, type_: str, label: str, **data: Any) -> None:
        evt = Event(ts=_utc_stamp(), type=type_, label=label, data=data)
        with self._lock:
            self._buf.append(evt)

    def last(self, n: int = 50) -> List[Dict[str, Any]]:
        with self._lock:
            items = list(self._buf)[-n:] if n > 0 else []
        return [asdict(e) for e in items]
