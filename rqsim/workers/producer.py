from __future__ import annotations
import logging

from rqsim.engine.item import make_item
from rqsim.engine.queue import ResourceQueue
from rqsim.engine.metrics import Metrics
from rqsim.engine.worker import Worker

log = logging.getLogger(__name__)

class Producer(Worker):
    kind = "producer"

    def __init__(self, identity: int, production_count: int, queue: ResourceQueue[int], *, metrics: Metrics | None = None):
        super().__init__(identity, queue, metrics=metrics)
        self.production_count = production_count

    def work(self) -> None:
        log.info("%s has started.", self.label)
        for i in range(self.production_count):
            self.check_interrupted()
            if self.queue.put(make_item(self.identity, i), interrupted=self._interrupted):
                self.count += 1
                if self.metrics is not None:
                    self.metrics.inc(f"producer.{self.identity}.out", 1)
        log.info("%s has finished producing %d resources.", self.label, self.count)
