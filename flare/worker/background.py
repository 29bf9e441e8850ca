"""
Bounded background dispatch.

Jobs are plain callables. A ``Pooled`` worker runs them on a fixed set of
daemon threads reading a bounded queue, a ``Synchronous`` one runs them on
the caller.
"""

import logging
import queue
import threading
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Union

from flare.config.log_codes import (
    DISPATCH_ASYNC_CALLBACK,
    DISPATCH_POOLED,
    DISPATCH_SYNCHRONOUS,
)
from flare.constants import DEFAULT_SHUTDOWN_TIMEOUT, WORKER_THREAD_NAME

if TYPE_CHECKING:
    from flare.config import Configuration

logger = logging.getLogger(__name__)

Job = Callable[[], Any]

_SENTINEL = object()


@dataclass(frozen=True)
class Synchronous:
    """
    Run every job inline, errors reach the caller.
    """


@dataclass(frozen=True)
class Pooled:
    threads: int
    max_queue: int


DispatchStrategy = Union[Synchronous, Pooled]


def select_strategy(configuration: "Configuration") -> DispatchStrategy:
    """
    Pick how jobs are dispatched.

    No thread, no queue slot or an async dispatch callback all mean jobs run
    on the caller.
    """
    if configuration.async_dispatch is not None:
        logger.debug(DISPATCH_ASYNC_CALLBACK)
        return Synchronous()

    threads = configuration.background_worker_threads
    max_queue = configuration.background_worker_max_queue
    if threads == 0 or max_queue == 0:
        logger.debug(DISPATCH_SYNCHRONOUS)
        return Synchronous()

    logger.debug(DISPATCH_POOLED, extra={"threads": threads, "max_queue": max_queue})
    return Pooled(threads=threads, max_queue=max_queue)


@dataclass
class WorkerMetrics:
    """
    Metrics for the background worker.
    """

    jobs_enqueued: int = 0
    jobs_processed: int = 0
    jobs_failed: int = 0
    jobs_dropped: int = 0
    queue_high_water_mark: int = 0


class BackgroundWorker:
    """
    Runs jobs off the producer's thread without ever blocking it.
    """

    def __init__(self, strategy: DispatchStrategy):
        self.strategy = strategy
        self.metrics = WorkerMetrics()
        self._metrics_lock = threading.Lock()
        self._lock = threading.Lock()
        self._threads: List[threading.Thread] = []
        self._running = False
        self._queue: Optional[queue.Queue] = None

        if isinstance(strategy, Pooled):
            self._queue = queue.Queue(maxsize=strategy.max_queue)

    @classmethod
    def from_configuration(cls, configuration: "Configuration") -> "BackgroundWorker":
        return cls(select_strategy(configuration))

    @property
    def is_synchronous(self) -> bool:
        return isinstance(self.strategy, Synchronous)

    def _count(self, name: str) -> None:
        with self._metrics_lock:
            setattr(self.metrics, name, getattr(self.metrics, name) + 1)

    def start(self) -> None:
        if not isinstance(self.strategy, Pooled):
            return

        with self._lock:
            if self._running:
                return
            self._running = True
            self._threads = [
                threading.Thread(
                    target=self._run, name=f"{WORKER_THREAD_NAME}-{index}", daemon=True
                )
                for index in range(self.strategy.threads)
            ]
            for thread in self._threads:
                thread.start()

    def enqueue(self, job: Job) -> bool:
        """
        Schedule a job.

        Returns:
            bool: False when the queue is full and the job was dropped.
        """
        self._count("jobs_enqueued")

        if self._queue is None:
            try:
                job()
            except Exception:
                self._count("jobs_failed")
                raise
            self._count("jobs_processed")
            return True

        self.start()

        try:
            self._queue.put_nowait(job)
        except queue.Full:
            self._count("jobs_dropped")
            logger.debug("Background worker queue is full, dropping job")
            return False

        with self._metrics_lock:
            self.metrics.queue_high_water_mark = max(
                self._queue.qsize(), self.metrics.queue_high_water_mark
            )
        return True

    def _run(self) -> None:
        jobs = self._queue

        while True:
            job = jobs.get()  # type: ignore[union-attr]
            try:
                if job is _SENTINEL:
                    return
                self._perform(job)
            finally:
                jobs.task_done()  # type: ignore[union-attr]

    def _perform(self, job: Job) -> None:
        try:
            job()
            self._count("jobs_processed")
        except Exception as e:
            self._count("jobs_failed")
            logger.error(
                "exception happened in background worker: %s", e, exc_info=e
            )

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Block until every queued job ran.

        Returns:
            bool: False when the timeout expired first.
        """
        if self._queue is None:
            return True

        deadline = None if timeout is None else time.monotonic() + timeout
        with self._queue.all_tasks_done:
            while self._queue.unfinished_tasks:
                remaining = None if deadline is None else deadline - time.monotonic()
                if remaining is not None and remaining <= 0:
                    return False
                self._queue.all_tasks_done.wait(remaining)
        return True

    def shutdown(self, timeout: float = DEFAULT_SHUTDOWN_TIMEOUT) -> bool:
        """
        Stop the threads once the jobs queued so far ran.

        The drain is best effort, jobs left when the timeout expires are
        dropped with the daemon threads.

        Returns:
            bool: Whether every thread stopped in time.
        """
        with self._lock:
            if not self._running or self._queue is None:
                return True
            self._running = False
            threads = list(self._threads)
            self._threads = []

        deadline = time.monotonic() + timeout
        for _ in threads:
            remaining = deadline - time.monotonic()
            try:
                self._queue.put(_SENTINEL, timeout=max(remaining, 0.001))
            except queue.Full:
                logger.debug("Background worker queue still full on shutdown")
                return False

        for thread in threads:
            thread.join(max(deadline - time.monotonic(), 0))

        stopped = not any(thread.is_alive() for thread in threads)
        if not stopped:
            logger.debug("Background worker did not drain before shutdown timeout")
        return stopped

    def get_metrics(self) -> Dict[str, Any]:
        """
        Get the current metrics for the background worker.

        Returns:
            Dictionary of metrics
        """
        with self._metrics_lock:
            metrics: Dict[str, Any] = {
                "jobs_enqueued": self.metrics.jobs_enqueued,
                "jobs_processed": self.metrics.jobs_processed,
                "jobs_failed": self.metrics.jobs_failed,
                "jobs_dropped": self.metrics.jobs_dropped,
                "queue_high_water_mark": self.metrics.queue_high_water_mark,
            }
        metrics["current_queue_size"] = self._queue.qsize() if self._queue else 0
        return metrics
