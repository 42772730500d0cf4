from __future__ import annotations
from typing import Callable, Optional
import logging

from rqsim.engine.queue import ResourceQueue
from rqsim.engine.metrics import Metrics
from rqsim.engine.worker import Worker

log = logging.getLogger(__name__)

class Consumer(Worker):
    kind = "consumer"

    def __init__(
        self,
        identity: int,
        rate: int,
        queue: ResourceQueue[int],
        *,
        tick_s: float = 1.0,
        metrics: Metrics | None = None,
        on_item: Optional[Callable[[int], None]] = None,
    ):
        super().__init__(identity, queue, metrics=metrics)
        self.rate = rate
        self.tick_s = tick_s
        self.on_item = on_item

    def work(self) -> None:
        while True:
            # Latch before size: a closed latch never reopens.
            accepting = self.queue.is_accepting_resources()
            if self.queue.size() == 0 and not accepting:
                break
            drained = self.drain()
            self.pause()
            self.report(drained)

    def drain(self) -> int:
        drained = 0
        while drained < self.rate:
            self.check_interrupted()
            item = self.queue.poll()
            if item is None:
                break
            drained += 1
            self.count += 1
            if self.on_item is not None:
                self.on_item(item)
        return drained

    def pause(self) -> None:
        if self._interrupted.wait(self.tick_s):
            self.check_interrupted()

    def report(self, drained: int) -> None:
        self.cycles += 1
        log.info("%s consumed %d resources.", self.label, drained)
        if self.metrics is not None:
            self.metrics.inc(f"consumer.{self.identity}.in", drained)
            self.metrics.observe_cycle(self.identity, drained, self.queue.size())
