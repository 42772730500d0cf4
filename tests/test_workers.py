from __future__ import annotations
from concurrent.futures import ThreadPoolExecutor
import logging
import threading
import time

from rqsim.engine.item import make_item, provenance
from rqsim.engine.metrics import Metrics
from rqsim.engine.queue import ResourceQueue
from rqsim.workers.consumer import Consumer
from rqsim.workers.producer import Producer


def wait_for(predicate, timeout: float = 5.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


def test_producer_emits_tagged_items_in_order():
    metrics = Metrics()
    q: ResourceQueue[int] = ResourceQueue("q", 10, metrics=metrics)
    result = Producer(2, 10, q, metrics=metrics).run()

    assert result.ok and result.kind == "producer" and result.identity == 2
    assert result.count == 10
    assert [q.poll() for _ in range(10)] == [make_item(2, i) for i in range(10)]
    assert metrics.get("producer.2.out") == 10


def test_single_producer_single_consumer_in_order():
    metrics = Metrics()
    q: ResourceQueue[int] = ResourceQueue("q", 10, metrics=metrics)
    assert Producer(0, 10, q).run().ok
    q.close()

    consumed: list[int] = []
    result = Consumer(0, 5, q, tick_s=0.01, metrics=metrics, on_item=consumed.append).run()

    assert result.ok
    assert consumed == list(range(10))
    assert result.count == 10
    assert result.cycles in (2, 3)
    assert metrics.get("consumer.0.in") == 10
    assert [s["drained"] for s in metrics.cycle_samples][:2] == [5, 5]


def test_producer_interrupted_mid_run_keeps_partial_output():
    q: ResourceQueue[int] = ResourceQueue("q", 3)
    producer = Producer(1, 10, q)

    with ThreadPoolExecutor(max_workers=1) as pool:
        future = pool.submit(producer)
        assert wait_for(lambda: q.size() == 3)
        time.sleep(0.05)
        producer.interrupt()
        result = future.result(timeout=5)

    assert not result.ok
    assert result.error is not None
    assert result.count == 3
    assert q.size() == 3
    assert [q.poll() for _ in range(3)] == [make_item(1, i) for i in range(3)]
    time.sleep(0.05)
    assert q.poll() is None


def test_consumer_waits_while_queue_still_accepting():
    q: ResourceQueue[int] = ResourceQueue("q", 10)
    consumed: list[int] = []
    consumer = Consumer(0, 5, q, tick_s=0.01, on_item=consumed.append)

    with ThreadPoolExecutor(max_workers=1) as pool:
        future = pool.submit(consumer)
        # Empty and still accepting: several idle cycles, no exit
        assert wait_for(lambda: consumer.cycles >= 3)
        assert not future.done()

        for i in range(4):
            q.put(make_item(3, i))
        q.close()
        result = future.result(timeout=5)

    assert result.ok
    assert consumed == [make_item(3, i) for i in range(4)]
    assert {provenance(item).producer_id for item in consumed} == {3}


def test_consumer_finishes_on_closed_empty_queue():
    q: ResourceQueue[int] = ResourceQueue("q", 1)
    q.close()
    result = Consumer(4, 1, q, tick_s=10).run()
    assert result.ok
    assert result.cycles == 0
    assert result.count == 0


def test_consumer_interrupted_during_pause():
    q: ResourceQueue[int] = ResourceQueue("q", 5)
    q.put(1)
    consumer = Consumer(0, 5, q, tick_s=30)

    with ThreadPoolExecutor(max_workers=1) as pool:
        future = pool.submit(consumer)
        assert wait_for(lambda: q.size() == 0)
        t0 = time.monotonic()
        consumer.interrupt()
        result = future.result(timeout=5)

    assert time.monotonic() - t0 < 5
    assert not result.ok
    assert result.count == 1
    assert result.cycles == 0


class LateCloseQueue(ResourceQueue[int]):
    """Lands a final put and the close right after the first empty size() read."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fired = False

    def size(self) -> int:
        n = super().size()
        if n == 0 and not self.fired:
            self.fired = True

            def finish_production() -> None:
                self.put(42)
                self.close()

            t = threading.Thread(target=finish_production)
            t.start()
            t.join()
        return n


def test_consumer_sees_item_put_just_before_close():
    q = LateCloseQueue("q", 5)
    consumed: list[int] = []
    result = Consumer(0, 5, q, tick_s=0.01, on_item=consumed.append).run()

    assert result.ok
    assert q.fired
    assert consumed == [42]
    assert q.size() == 0


def test_producer_fails_when_queue_closes_under_raise_policy(caplog):
    q: ResourceQueue[int] = ResourceQueue("q", 3, closed_policy="raise")
    producer = Producer(1, 5, q)

    with caplog.at_level(logging.ERROR):
        with ThreadPoolExecutor(max_workers=1) as pool:
            future = pool.submit(producer)
            assert wait_for(lambda: q.size() == 3)
            q.close()
            result = future.result(timeout=5)

    assert not result.ok
    assert result.count == 3
    assert "no longer accepts resources" in result.error
    assert any(r.levelno == logging.ERROR and "Producer [1]" in r.getMessage() for r in caplog.records)
    assert [q.poll() for _ in range(3)] == [make_item(1, i) for i in range(3)]


def test_producer_count_excludes_dropped_items():
    metrics = Metrics()
    q: ResourceQueue[int] = ResourceQueue("q", 3, metrics=metrics)
    producer = Producer(1, 5, q, metrics=metrics)

    with ThreadPoolExecutor(max_workers=1) as pool:
        future = pool.submit(producer)
        assert wait_for(lambda: q.size() == 3)
        q.close()
        result = future.result(timeout=5)

    assert result.ok
    assert result.count == 3
    assert metrics.get("producer.1.out") == 3
    assert metrics.get("queue.dropped") == 2
    assert q.size() == 3
