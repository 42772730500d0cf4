from __future__ import annotations
from collections import deque
from typing import Deque, Generic, Optional, TypeVar
import logging
import threading
import time

from .errors import ConfigurationError, InterruptionError, LatchError, QueueClosedError
from .metrics import Metrics

T = TypeVar("T")

CLOSED_POLICIES = ("drop", "raise")

log = logging.getLogger(__name__)

class ResourceQueue(Generic[T]):
    """
    Fixed-capacity FIFO shared between producers and consumers.

    put() blocks while the queue is full; poll() never blocks unless given a
    timeout. The accepting-resources latch is one-way: once closed, puts no
    longer insert (they drop or raise, depending on closed_policy) and
    consumers may finish as soon as the queue drains.
    """
    def __init__(
        self,
        name: str,
        capacity: int,
        *,
        closed_policy: str = "drop",
        metrics: Metrics | None = None,
    ):
        if capacity <= 0:
            raise ConfigurationError(f"Queue capacity must be > 0, got {capacity}")
        if closed_policy not in CLOSED_POLICIES:
            raise ConfigurationError(f"Unknown closed policy: {closed_policy!r}")
        self.name = name
        self.closed_policy = closed_policy
        self.metrics = metrics
        self.high_water = 0
        self._capacity = capacity
        self._items: Deque[T] = deque()
        self._lock = threading.Lock()
        self._not_full = threading.Condition(self._lock)
        self._not_empty = threading.Condition(self._lock)
        self._closed = threading.Event()

    def put(self, item: T, interrupted: Optional[threading.Event] = None) -> bool:
        """
        Returns True once the item is in the queue, False if it was dropped
        because the queue no longer accepts resources.
        """
        with self._not_full:
            while True:
                if interrupted is not None and interrupted.is_set():
                    # Hand a wakeup we may have consumed to the next producer.
                    if len(self._items) < self._capacity:
                        self._not_full.notify()
                    raise InterruptionError(f"put into {self.name} interrupted")
                if self._closed.is_set():
                    return self._reject(item)
                if len(self._items) < self._capacity:
                    break
                self._not_full.wait()

            self._items.append(item)
            self.high_water = max(self.high_water, len(self._items))
            self._not_empty.notify()
        self._count("queue.in")
        return True

    def poll(self, timeout: Optional[float] = None) -> Optional[T]:
        """Pop the head, or return None when empty (after waiting up to timeout, if given)."""
        with self._not_empty:
            if timeout is not None and timeout > 0:
                deadline = time.monotonic() + timeout
                while not self._items:
                    remaining = deadline - time.monotonic()
                    if remaining <= 0:
                        break
                    self._not_empty.wait(remaining)
            if not self._items:
                return None
            item = self._items.popleft()
            self._not_full.notify()
        self._count("queue.out")
        return item

    def size(self) -> int:
        with self._lock:
            return len(self._items)

    @property
    def capacity(self) -> int:
        return self._capacity

    def is_accepting_resources(self) -> bool:
        return not self._closed.is_set()

    def set_accepting_resources(self, accepting: bool) -> None:
        if accepting:
            if self._closed.is_set():
                raise LatchError(f"Queue {self.name} already stopped accepting resources")
            return
        with self._lock:
            self._closed.set()
            self._not_full.notify_all()
        log.debug("Queue %s no longer accepts resources (%d queued)", self.name, self.size())

    def close(self) -> None:
        self.set_accepting_resources(False)

    def wake_waiters(self) -> None:
        with self._lock:
            self._not_full.notify_all()
            self._not_empty.notify_all()

    def _reject(self, item: T) -> bool:
        if self.closed_policy == "raise":
            raise QueueClosedError(f"Queue {self.name} no longer accepts resources (item {item!r})")
        log.warning("Queue %s is closed; dropped item %r", self.name, item)
        self._count("queue.dropped")
        return False

    def _count(self, key: str) -> None:
        if self.metrics is not None:
            self.metrics.inc(key, 1)
