"""
Bounded pool of worker threads for reading file content.

Jobs go through a bounded queue (capacity ``2 * worker_count``) so that the
submitting thread blocks while workers are busy. The result queue is
unbounded so workers never wait on a slow collector. Every job yields exactly
one :class:`Result` on the result queue; results arrive in any order and
are put back in job order by their index.
"""

import logging
import os
import queue
import threading
from typing import Callable, Iterable, Iterator, List, Optional

from .models import Job, Result

logger = logging.getLogger(__name__)

JobHandler = Callable[[Job], Result]

# Sentinel telling a worker to exit, and telling the collector the pool is drained
_STOP = object()
_DONE = object()


class WorkerPool:
    """
    Fixed-size thread pool with explicit start/stop lifecycle.

    Typical use is :meth:`run`, which submits from a coordinator thread and
    collects on the calling thread::

        pool = WorkerPool(reader.process, worker_count=8)
        results = pool.run(jobs)
    """

    def __init__(self, handler: JobHandler, worker_count: Optional[int] = None,
                 queue_size: Optional[int] = None):
        """
        Args:
            handler: Turns a Job into a Result. Exceptions it raises are
                captured into ``Result.error``.
            worker_count: Number of worker threads; defaults to the CPU count.
            queue_size: Job queue capacity; defaults to twice the worker count.
        """
        self.handler = handler
        self.worker_count = max(1, worker_count or os.cpu_count() or 1)
        self.queue_size = queue_size or 2 * self.worker_count
        self._jobs: queue.Queue = queue.Queue(maxsize=self.queue_size)
        self._results: queue.Queue = queue.Queue()
        self._workers: List[threading.Thread] = []
        self._started = False
        self._stopped = False

    def start(self) -> None:
        """Spawn the worker threads."""
        if self._started:
            raise RuntimeError("Worker pool already started")
        self._started = True
        for i in range(self.worker_count):
            worker = threading.Thread(target=self._work, name=f"pmp-worker-{i}", daemon=True)
            worker.start()
            self._workers.append(worker)
        logger.debug(f"Started {self.worker_count} workers (queue size {self.queue_size})")

    def submit(self, job: Job) -> None:
        """Queue a job, blocking while the queue is full."""
        if not self._started or self._stopped:
            raise RuntimeError("Worker pool is not running")
        self._jobs.put(job)

    def stop(self) -> None:
        """
        Close the job queue and wait for all workers to finish.

        Once every worker has exited the result queue is closed, which ends
        :meth:`results`.
        """
        if self._stopped:
            return
        self._stopped = True
        for _ in self._workers:
            self._jobs.put(_STOP)
        for worker in self._workers:
            worker.join()
        self._results.put(_DONE)
        logger.debug("Worker pool stopped")

    def results(self) -> Iterator[Result]:
        """Yield results as they arrive until the pool is stopped and drained."""
        while True:
            item = self._results.get()
            if item is _DONE:
                return
            yield item

    def run(self, jobs: Iterable[Job],
            on_result: Optional[Callable[[Result], None]] = None) -> List[Result]:
        """
        Process ``jobs`` and return their results in job index order.

        Job indexes must be ``0..n-1``. Submission runs on a coordinator
        thread while this thread drains the result queue.

        Args:
            jobs: Jobs to process.
            on_result: Called on this thread for each result as it arrives.
        """
        jobs = list(jobs)
        self.start()

        def coordinate() -> None:
            try:
                for job in jobs:
                    self.submit(job)
            finally:
                self.stop()

        coordinator = threading.Thread(target=coordinate, name="pmp-coordinator", daemon=True)
        coordinator.start()

        ordered: List[Optional[Result]] = [None] * len(jobs)
        for result in self.results():
            if ordered[result.index] is not None:
                raise RuntimeError(f"Duplicate result for job {result.index}")
            ordered[result.index] = result
            if on_result:
                on_result(result)
        coordinator.join()

        missing = [i for i, r in enumerate(ordered) if r is None]
        if missing:
            raise RuntimeError(f"No result for jobs {missing}")
        return ordered  # type: ignore[return-value]

    def _work(self) -> None:
        while True:
            job = self._jobs.get()
            if job is _STOP:
                return
            try:
                result = self.handler(job)
            except Exception as e:
                logger.warning(f"Error processing {job.path}: {e}")
                result = Result(index=job.index, path=job.path, size=job.size, error=e)
            self._results.put(result)
