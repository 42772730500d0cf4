from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import Optional
import logging
import threading

from .errors import InterruptionError, QueueClosedError
from .queue import ResourceQueue
from .metrics import Metrics

log = logging.getLogger(__name__)

@dataclass(frozen=True)
class TaskResult:
    kind: str
    identity: int
    ok: bool
    count: int
    cycles: int = 0
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)

class Worker:
    """
    Base task: one producer or consumer bound to the shared queue.
    Implement work() -> None, updating self.count as items move.
    Interruption is cooperative: interrupt() sets a flag that blocking puts
    and pauses observe, and work() raises InterruptionError.
    """
    kind = "worker"

    def __init__(
        self,
        identity: int,
        queue: ResourceQueue[int],
        *,
        metrics: Metrics | None = None,
    ):
        self.identity = identity
        self.queue = queue
        self.metrics = metrics
        self.count = 0
        self.cycles = 0
        self._interrupted = threading.Event()

    @property
    def label(self) -> str:
        return f"{self.kind.capitalize()} [{self.identity}]"

    @property
    def interrupted(self) -> bool:
        return self._interrupted.is_set()

    def interrupt(self) -> None:
        self._interrupted.set()
        self.queue.wake_waiters()

    def check_interrupted(self) -> None:
        if self._interrupted.is_set():
            raise InterruptionError(f"{self.label} interrupted")

    def work(self) -> None:
        raise NotImplementedError

    def run(self) -> TaskResult:
        try:
            self.work()
        except InterruptionError as exc:
            log.warning("%s has been interrupted after %d resources: %s", self.label, self.count, exc)
            return TaskResult(self.kind, self.identity, ok=False, count=self.count, cycles=self.cycles, error=str(exc))
        except QueueClosedError as exc:
            log.error("%s stopped: %s", self.label, exc)
            return TaskResult(self.kind, self.identity, ok=False, count=self.count, cycles=self.cycles, error=str(exc))

        log.info("%s has finished.", self.label)
        return TaskResult(self.kind, self.identity, ok=True, count=self.count, cycles=self.cycles)

    __call__ = run
