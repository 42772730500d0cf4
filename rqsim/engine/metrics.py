from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List
import statistics
import threading
import time

@dataclass
class Metrics:
    counters: Dict[str, int] = field(default_factory=dict)
    cycle_samples: List[dict] = field(default_factory=list)
    started_ts: float = field(default_factory=time.time)
    finished_ts: float | None = None
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def inc(self, key: str, n: int = 1) -> None:
        with self._lock:
            self.counters[key] = self.counters.get(key, 0) + n

    def get(self, key: str) -> int:
        with self._lock:
            return self.counters.get(key, 0)

    def observe_cycle(self, consumer_id: int, drained: int, depth: int) -> None:
        sample = {"consumer": consumer_id, "drained": drained, "depth": depth, "_ts": time.time()}
        with self._lock:
            self.cycle_samples.append(sample)

    def finalize(self) -> None:
        self.finished_ts = time.time()

    def summary(self, *, last_samples: int = 20) -> dict:
        dur = (self.finished_ts or time.time()) - self.started_ts
        with self._lock:
            counters = dict(self.counters)
            samples = list(self.cycle_samples)
        drained = [s["drained"] for s in samples]

        return {
            "duration_s": dur,
            "counters": counters,
            "cycles": {
                "count": len(samples),
                "drained_total": sum(drained),
                "mean_drained": (statistics.mean(drained) if drained else None),
            },
            "cycle_samples": samples[-last_samples:] if last_samples else [],
        }
