"""
Partition query executor – fans one search out to every partition.

All partition searches (and the canonical count) are submitted to a
shared thread pool at once, so a request waits roughly as long as its
slowest partition rather than the sum. A partition that raises or misses
the deadline contributes nothing; the caller decides what a fully failed
fan-out means.

Each partition may hold at most `max_in_flight` calls at once. A call
that outlives its deadline keeps its worker thread, so a hung partition
fills its quota and is then reported as busy without new work being
submitted; the pool is sized so the remaining partitions always have
threads of their own.
"""

import concurrent.futures
import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence, TypeVar

from pharmasearch.models.records import RankedDrug
from pharmasearch.services.partitions.base_partition import Partition, PartitionError
from pharmasearch.services.relevance import SYNONYM_CONTAINS, SynonymRule

logger = logging.getLogger("pharmasearch.executor")

T = TypeVar("T")


@dataclass
class PartitionOutcome:
    partition: str
    results: list[RankedDrug] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class FanOutResult:
    outcomes: list[PartitionOutcome]
    total: Optional[int] = None   # canonical count, None when unavailable

    @property
    def any_ok(self) -> bool:
        return any(o.ok for o in self.outcomes)

    @property
    def failed(self) -> list[str]:
        return [o.partition for o in self.outcomes if not o.ok]


class PartitionExecutor:
    """Runs partition queries concurrently with failure isolation."""

    def __init__(self, partitions: Sequence[Partition],
                 max_workers: int = 8,
                 timeout: float = 5.0,
                 retries: int = 0,
                 backoff: float = 0.2,
                 max_in_flight: int = 8):
        if not partitions:
            raise ValueError("PartitionExecutor needs at least one partition.")
        self.partitions = tuple(partitions)
        self.timeout = timeout
        self.retries = max(0, retries)
        self.backoff = backoff
        self.max_in_flight = max(1, max_in_flight)
        self._in_flight = {p.name: 0 for p in self.partitions}
        self._lock = threading.Lock()
        # A full quota on every partition must never leave work queued
        workers = max(max_workers, len(self.partitions) * self.max_in_flight)
        self._pool = concurrent.futures.ThreadPoolExecutor(
            max_workers=workers, thread_name_prefix="partition"
        )

    @property
    def canonical(self) -> Partition:
        return self.partitions[0]

    def in_flight(self, name: str) -> int:
        """Calls currently running or queued against partition *name*."""
        with self._lock:
            return self._in_flight[name]

    # ── Single-partition operations ──

    def search_partition(self, partition: Partition, pattern: str, skip: int, limit: int,
                         synonym_rule: SynonymRule = SYNONYM_CONTAINS) -> list[RankedDrug]:
        return self._with_retries(
            partition.name, lambda: partition.search(pattern, skip, limit, synonym_rule)
        )

    def count_canonical(self, pattern: str) -> int:
        partition = self.canonical
        return self._with_retries(partition.name, lambda: partition.count(pattern))

    def search_canonical(self, pattern: str, limit: int,
                         synonym_rule: SynonymRule = SYNONYM_CONTAINS) -> list[RankedDrug]:
        """Search the canonical partition only, under the same deadline."""
        partition = self.canonical
        future = self._submit(
            partition, lambda: self.search_partition(partition, pattern, 0, limit, synonym_rule)
        )
        if future is None:
            raise PartitionError(partition.name, f"busy with {self.max_in_flight} calls in flight")
        try:
            return future.result(timeout=self.timeout)
        except concurrent.futures.TimeoutError:
            self._cancel(partition, future)
            raise PartitionError(partition.name, f"timed out after {self.timeout}s")

    # ── Fan-out ──

    def search_all(self, pattern: str, skip: int, limit: int,
                   synonym_rule: SynonymRule = SYNONYM_CONTAINS,
                   with_count: bool = True) -> FanOutResult:
        started = time.monotonic()
        search_futures = [
            self._submit(p, self._search_call(p, pattern, skip, limit, synonym_rule))
            for p in self.partitions
        ]
        count_future = None
        if with_count:
            count_future = self._submit(self.canonical, lambda: self.count_canonical(pattern))

        pending = [f for f in search_futures + [count_future] if f is not None]
        _, not_done = concurrent.futures.wait(pending, timeout=self.timeout)

        outcomes = []
        for partition, future in zip(self.partitions, search_futures):
            if future is None:
                logger.warning("Partition %s skipped: %d calls still in flight",
                               partition.name, self.max_in_flight)
                outcomes.append(PartitionOutcome(partition.name, error="busy"))
                continue
            if future in not_done:
                self._cancel(partition, future)
                logger.warning("Partition %s timed out after %.1fs", partition.name, self.timeout)
                outcomes.append(PartitionOutcome(partition.name, error="timeout"))
                continue
            try:
                outcomes.append(PartitionOutcome(partition.name, results=future.result()))
            except Exception as exc:
                logger.warning("Partition %s failed: %s", partition.name, exc)
                outcomes.append(PartitionOutcome(partition.name, error=str(exc) or type(exc).__name__))

        total = None
        if with_count:
            if count_future is None:
                logger.warning("Canonical count on %s skipped: partition busy", self.canonical.name)
            elif count_future in not_done:
                self._cancel(self.canonical, count_future)
                logger.warning("Canonical count on %s timed out", self.canonical.name)
            else:
                try:
                    total = count_future.result()
                except Exception as exc:
                    logger.warning("Canonical count on %s failed: %s", self.canonical.name, exc)

        logger.debug(
            "Fan-out for %r over %d partitions took %.1fms",
            pattern, len(self.partitions), (time.monotonic() - started) * 1000,
        )
        return FanOutResult(outcomes=outcomes, total=total)

    # ── Internals ──

    def _search_call(self, partition, pattern, skip, limit, synonym_rule) -> Callable[[], list]:
        return lambda: self.search_partition(partition, pattern, skip, limit, synonym_rule)

    def _submit(self, partition: Partition,
                call: Callable[[], T]) -> Optional[concurrent.futures.Future]:
        """Submit *call* against *partition*, or return None when its quota is full."""
        name = partition.name
        with self._lock:
            if self._in_flight[name] >= self.max_in_flight:
                return None
            self._in_flight[name] += 1

        def run():
            # Released before the result is published, so waiters see the free slot
            try:
                return call()
            finally:
                self._release(name)

        try:
            return self._pool.submit(run)
        except RuntimeError:
            self._release(name)
            raise

    def _cancel(self, partition: Partition, future: concurrent.futures.Future) -> None:
        # Only queued work can be cancelled; a running call releases its own slot
        if future.cancel():
            self._release(partition.name)

    def _release(self, name: str) -> None:
        with self._lock:
            self._in_flight[name] -= 1

    def _with_retries(self, label: str, call: Callable[[], T]) -> T:
        attempt = 0
        while True:
            try:
                return call()
            except Exception as exc:
                if attempt >= self.retries:
                    raise
                delay = self.backoff * (2 ** attempt)
                attempt += 1
                logger.info("Retrying partition %s in %.2fs (attempt %d): %s", label, delay, attempt, exc)
                time.sleep(delay)

    def close(self) -> None:
        """Shut down the pool; queued partition work is cancelled."""
        self._pool.shutdown(wait=False, cancel_futures=True)
