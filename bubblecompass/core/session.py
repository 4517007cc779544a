from __future__ import annotations

import json
import os
import threading
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from bubblecompass.core.sensors import SensorUpdate, update_from_dict, update_to_dict


def _now_id() -> str:
    return datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S_%f")


class SessionRecorder:
    """JSONL recorder for the sensor updates of one session.

    Directory layout:
      logs/sessions/<id>/
        meta.json
        updates.jsonl
    """

    def __init__(self, base_dir: str = "logs/sessions") -> None:
        self.base_dir = base_dir
        self.session_id: Optional[str] = None
        self.dir: Optional[str] = None
        self._lock = threading.Lock()
        self._updates_path: Optional[str] = None

    @property
    def updates_path(self) -> Optional[str]:
        return self._updates_path

    def start(self, meta: Dict[str, Any]) -> str:
        sid = _now_id()
        sdir = os.path.join(self.base_dir, sid)
        os.makedirs(sdir, exist_ok=True)
        with open(os.path.join(sdir, "meta.json"), "w", encoding="utf-8") as f:
            json.dump(meta, f, indent=2)
        self._updates_path = os.path.join(sdir, "updates.jsonl")
        # touch file
        with open(self._updates_path, "a", encoding="utf-8"):
            pass
        self.session_id = sid
        self.dir = sdir
        return sid

    def write_update(self, update: SensorUpdate) -> None:
        if not self._updates_path:
            return
        line = json.dumps(update_to_dict(update), ensure_ascii=False)
        with self._lock:
            with open(self._updates_path, "a", encoding="utf-8") as f:
                f.write(line + "\n")

    @staticmethod
    def list_sessions(base_dir: str = "logs/sessions") -> List[str]:
        if not os.path.isdir(base_dir):
            return []
        out = [d for d in os.listdir(base_dir) if os.path.isdir(os.path.join(base_dir, d))]
        out.sort(reverse=True)
        return out


def load_updates(path: str) -> List[SensorUpdate]:
    """Parse an updates.jsonl file; blank lines are skipped."""
    out: List[SensorUpdate] = []
    with open(path, "r", encoding="utf-8") as f:
        for lineno, raw in enumerate(f, start=1):
            raw = raw.strip()
            if not raw:
                continue
            try:
                data = json.loads(raw)
            except json.JSONDecodeError as exc:
                raise ValueError(f"{path}:{lineno}: invalid JSON: {exc}") from exc
            if not isinstance(data, dict):
                raise ValueError(f"{path}:{lineno}: expected an object")
            out.append(update_from_dict(data))
    return out


def replay(runtime, updates: Iterable[SensorUpdate]):
    """Apply updates in order, synchronously; returns the final snapshot."""
    count = 0
    for update in updates:
        runtime.apply(update)
        count += 1
    runtime.logger.info("replay done | updates=%d", count)
    return runtime.snapshot()
