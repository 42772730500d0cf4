from __future__ import annotations
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Callable, List, Optional
import logging
import time
import uuid

from .config import RunConfig
from .metrics import Metrics
from .queue import ResourceQueue
from .artifact import RunArtifact
from .worker import TaskResult, Worker
from rqsim.workers.consumer import Consumer
from rqsim.workers.producer import Producer

log = logging.getLogger(__name__)

class Coordinator:
    """
    Runs one producer/consumer session: consumers start first, producers are
    joined, the queue latch is closed, then consumers are joined. A single
    deadline covers both joins; past it every task is interrupted.
    """
    def __init__(
        self,
        config: RunConfig,
        *,
        metrics: Metrics | None = None,
        on_item: Optional[Callable[[int], None]] = None,
    ):
        self.config = config
        self.metrics = metrics or Metrics()
        self.queue: ResourceQueue[int] = ResourceQueue(
            config.name,
            config.capacity,
            closed_policy=config.closed_put_policy,
            metrics=self.metrics,
        )
        self.consumers = [
            Consumer(i, config.consumption_rate, self.queue, tick_s=config.tick_s, metrics=self.metrics, on_item=on_item)
            for i in range(config.consumer_count)
        ]
        self.producers = [
            Producer(i, config.production_count, self.queue, metrics=self.metrics)
            for i in range(config.producer_count)
        ]
        self.results: List[TaskResult] = []
        self.timed_out = False

    @property
    def workers(self) -> List[Worker]:
        return [*self.consumers, *self.producers]

    def cancel(self) -> None:
        for worker in self.workers:
            worker.interrupt()
        if self.queue.is_accepting_resources():
            self.queue.close()

    def run(self) -> RunArtifact:
        run_id = time.strftime("%Y%m%d_%H%M%S") + "_" + uuid.uuid4().hex[:8]
        deadline = time.monotonic() + self.config.join_timeout_s

        producer_pool = ThreadPoolExecutor(max_workers=self.config.producer_count, thread_name_prefix="producer")
        consumer_pool = ThreadPoolExecutor(max_workers=self.config.consumer_count, thread_name_prefix="consumer")
        consumer_futures: List[Future[TaskResult]] = []
        producer_futures: List[Future[TaskResult]] = []
        try:
            consumer_futures = [consumer_pool.submit(c) for c in self.consumers]
            producer_futures = [producer_pool.submit(p) for p in self.producers]

            if self._join(producer_futures, deadline, "producer"):
                # Only safe once every producer is done: consumers exit on an empty, closed queue.
                self.queue.close()
                log.info(
                    "All producer tasks have finished. The consumers still have to process %d resources.",
                    self.queue.size(),
                )
                self._join(consumer_futures, deadline, "consumer")
        except KeyboardInterrupt:
            log.warning("Run %s interrupted; cancelling outstanding tasks", run_id)
            self.cancel()
            raise
        finally:
            producer_pool.shutdown(wait=True, cancel_futures=True)
            consumer_pool.shutdown(wait=True, cancel_futures=True)
            self.metrics.finalize()

        self.results = [f.result() for f in [*producer_futures, *consumer_futures] if not f.cancelled()]
        log.info("Run %s has completed.", run_id)
        return RunArtifact(
            run_id=run_id,
            name=self.config.name,
            created_ts=time.time(),
            metrics=self.metrics.summary(),
            config_snapshot=self.config.to_dict(),
            results=[r.to_dict() for r in self.results],
            timed_out=self.timed_out,
        )

    def _join(self, futures: List[Future[TaskResult]], deadline: float, kind: str) -> bool:
        _, pending = wait(futures, timeout=max(0.0, deadline - time.monotonic()))
        if not pending:
            return True
        log.warning(
            "%d %s tasks still running after %.1fs; forcing cancellation",
            len(pending), kind, self.config.join_timeout_s,
        )
        self.timed_out = True
        self.cancel()
        return False
