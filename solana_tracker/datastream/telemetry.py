from __future__ import annotations
import threading
import time
from typing import Any, Dict, Optional


class Telemetry:
    """Process-wide counters and gauges for the live-update client."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.counters: Dict[str, int] = {}
        self.gauges: Dict[str, float] = {}
        self.last_msg_ts: Optional[float] = None
        self.started_at = time.time()

    def incr(self, key: str, value: int = 1) -> None:
        with self._lock:
            self.counters[key] = self.counters.get(key, 0) + value

    def set_gauge(self, key: str, value: float) -> None:
        with self._lock:
            self.gauges[key] = float(value)

    def set_last_msg_ts(self, ts: Optional[float]) -> None:
        with self._lock:
            self.last_msg_ts = ts

    def counter(self, key: str) -> int:
        with self._lock:
            return self.counters.get(key, 0)

    def gauge(self, key: str) -> Optional[float]:
        with self._lock:
            return self.gauges.get(key)

    def reset(self) -> None:
        with self._lock:
            self.counters.clear()
            self.gauges.clear()
            self.last_msg_ts = None
            self.started_at = time.time()

    def get_snapshot(self) -> Dict[str, Any]:
        with self._lock:
            now = time.time()
            last_age = None if self.last_msg_ts is None else now - self.last_msg_ts
            return {
                "counters": dict(self.counters),
                "gauges": dict(self.gauges),
                "last_msg_age_s": last_age,
                "uptime_s": now - self.started_at,
            }


telemetry = Telemetry()
