"""
Phase-barriered pass execution.

A pass applies one range function fn(start, stop) over every cell (or particle), one
contiguous chunk per task. Each pass type owns a persistent PassPool: worker threads fed
through a bounded queue. The dispatcher blocks when the queue is full, then blocks on
queue.join() until every task of the pass is done, so the next pass only ever sees fully
settled state.

Usage:
    with Scheduler({"velocity": 8, "value": 8}) as scheduler:
        scheduler.run("velocity", partial(calc_velocity_range, lattice), lattice.size)
        scheduler.run("value", partial(calc_value_range, lattice), lattice.size)
"""

import logging
import queue
import threading
from typing import Callable, Mapping

from wavefield.constants import PASS_NAMES
from wavefield.errors import PassError

logger = logging.getLogger(__name__)

DEFAULT_WORKERS = 4

RangeFn = Callable[[int, int], object]


def per_index(fn: Callable[[int], object]) -> RangeFn:
    """Adapt fn(i) to a range task that calls it for each index in [start, stop)."""

    def run_range(start: int, stop: int) -> None:
        for i in range(start, stop):
            fn(i)

    return run_range


class PassPool:
    """
    Fixed worker threads applying fn(start, stop) over index chunks, with a completion
    barrier per run. chunk_size=None splits each run into one chunk per worker.
    """

    _SENTINEL = object()

    def __init__(self, name: str, workers: int = DEFAULT_WORKERS, chunk_size: int | None = None) -> None:
        if workers < 1:
            raise ValueError(f"Pass {name!r} needs at least one worker, got {workers}")
        if chunk_size is not None and chunk_size < 1:
            raise ValueError(f"chunk_size must be >= 1, got {chunk_size}")
        self.name = name
        self.workers = workers
        self.chunk_size = chunk_size
        # Bounded: dispatcher backpressures instead of queueing a whole lattice.
        self._queue: queue.Queue = queue.Queue(maxsize=workers)
        self._threads: list[threading.Thread] = []
        self._errors: list[BaseException] = []
        self._errors_lock = threading.Lock()

    @property
    def running(self) -> bool:
        return bool(self._threads)

    def start(self) -> None:
        if self._threads:
            raise RuntimeError(f"Pass pool {self.name!r} already started")
        for k in range(self.workers):
            thread = threading.Thread(target=self._worker_loop, daemon=True, name=f"{self.name}-{k}")
            thread.start()
            self._threads.append(thread)
        logger.debug("Started pass pool %r with %d workers", self.name, self.workers)

    def _worker_loop(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is self._SENTINEL:
                    return
                fn, start, stop = item
                fn(start, stop)
            except Exception as exc:
                with self._errors_lock:
                    self._errors.append(exc)
            finally:
                self._queue.task_done()

    def _step(self, count: int) -> int:
        if self.chunk_size is not None:
            return self.chunk_size
        return max(1, -(-count // self.workers))

    def run(self, fn: RangeFn, count: int) -> None:
        """Cover 0..count-1 with fn(start, stop) tasks and return once all of them finished."""
        if not self._threads:
            raise RuntimeError(f"Pass pool {self.name!r} is not running")
        step = self._step(count)
        for start in range(0, count, step):
            self._queue.put((fn, start, min(start + step, count)))
        self._queue.join()
        if self._errors:
            with self._errors_lock:
                first, failed = self._errors[0], len(self._errors)
                self._errors.clear()
            raise PassError(f"{failed} task(s) failed in pass {self.name!r}: {first!r}") from first

    def close(self) -> None:
        for _ in self._threads:
            self._queue.put(self._SENTINEL)
        for thread in self._threads:
            thread.join()
        self._threads = []
        logger.debug("Stopped pass pool %r", self.name)


class Scheduler:
    """One PassPool per pass type; a context manager owning their threads for a run."""

    def __init__(
        self, workers: int | Mapping[str, int] = DEFAULT_WORKERS, chunk_size: int | None = None
    ) -> None:
        if isinstance(workers, int):
            sizes = {name: workers for name in PASS_NAMES}
        else:
            unknown = set(workers) - set(PASS_NAMES)
            if unknown:
                raise ValueError(f"Unknown pass names {sorted(unknown)}; expected {PASS_NAMES}")
            sizes = {name: int(workers.get(name, DEFAULT_WORKERS)) for name in PASS_NAMES}
        self.pools = {name: PassPool(name, size, chunk_size) for name, size in sizes.items()}

    def start(self) -> None:
        for pool in self.pools.values():
            pool.start()

    def close(self) -> None:
        for pool in self.pools.values():
            if pool.running:
                pool.close()

    def __enter__(self) -> "Scheduler":
        self.start()
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def run(self, name: str, fn: RangeFn, count: int) -> None:
        self.pools[name].run(fn, count)
