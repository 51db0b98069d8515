"""
=============================================================================
THREAD POOL
=============================================================================

A fixed-floor, bounded-ceiling pool of worker threads. The accept loop
submits one task per connection; a worker owns that connection until it
closes, serving every keep-alive request on it.

    accept loop ──► submit(handle, conn) ──► Queue ──► worker-0
                                               │  ──► worker-1
                                               │  ──► ...
                                               └────► worker-N (≤ max)

=============================================================================
WHY THREADS FOR A FILE SERVER
=============================================================================

Almost all time is spent blocked: in recv() waiting for a request, in
sendall() waiting for a slow client to drain, in read() waiting for the
disk. Blocking calls release the GIL, so threads overlap them fine.
An event loop would scale to more idle connections, at the cost of
turning every blocking step (including directory scans) into async code.

=============================================================================
BACKPRESSURE
=============================================================================

The queue is bounded. When every worker is busy and the queue is full,
submit(block=False) returns False and the server answers 503 instead of
buffering connections without limit.

Shutdown puts one None per worker on the queue; a worker exits when it
takes one off.

=============================================================================
"""

import logging
import queue
import threading
import time
from typing import Any, Callable, List, Optional, Tuple


logger = logging.getLogger(__name__)


Job = Tuple[Callable[..., Any], tuple, dict]


class ThreadPool:
    """
    Thread pool for connection handling.

    Usage:
        pool = ThreadPool(min_workers=4, max_workers=16)
        pool.start()
        accepted = pool.submit(handle_connection, args=(conn,), block=False)
        pool.shutdown(wait=True, timeout=5.0)
    """

    def __init__(self, min_workers: int = 4, max_workers: int = 16, queue_size: int = 100):
        if min_workers < 1 or max_workers < min_workers:
            raise ValueError(f"Bad pool bounds: min={min_workers} max={max_workers}")

        self.min_workers = min_workers
        self.max_workers = max_workers

        self._jobs: "queue.Queue[Optional[Job]]" = queue.Queue(maxsize=queue_size)
        self._threads: List[threading.Thread] = []
        self._lock = threading.Lock()
        self._busy = 0
        self._accepting = False

    def start(self):
        with self._lock:
            if self._accepting:
                return
            for _ in range(self.min_workers):
                self._spawn()
            self._accepting = True
        logger.info(f"Thread pool started: {self.min_workers}-{self.max_workers} workers")

    def submit(
        self,
        func: Callable[..., Any],
        args: tuple = (),
        kwargs: Optional[dict] = None,
        block: bool = True,
        queue_timeout: Optional[float] = None,
    ) -> bool:
        """
        Queue func(*args, **kwargs).

        Returns:
            True if queued, False if the queue was full.

        Raises:
            RuntimeError: If the pool isn't running.
        """
        if not self._accepting:
            raise RuntimeError("Thread pool is not running")

        try:
            self._jobs.put((func, args, kwargs or {}), block=block, timeout=queue_timeout)
        except queue.Full:
            return False

        with self._lock:
            # Every worker busy and work waiting: grow, up to the ceiling.
            idle = len(self._threads) - self._busy
            if idle < self._jobs.qsize() and len(self._threads) < self.max_workers:
                self._spawn()
        return True

    def shutdown(self, wait: bool = True, timeout: Optional[float] = None):
        """
        Stop all workers.

        Args:
            wait: Let queued jobs start before the workers are told to stop.
            timeout: Upper bound on that wait, in seconds.
        """
        with self._lock:
            if not self._accepting:
                return
            self._accepting = False
            threads = list(self._threads)

        logger.info("Shutting down thread pool...")

        if wait:
            deadline = None if timeout is None else time.monotonic() + timeout
            while not self._jobs.empty():
                if deadline is not None and time.monotonic() > deadline:
                    logger.warning("Thread pool shutdown timed out with jobs still queued")
                    break
                time.sleep(0.05)

        for _ in threads:
            try:
                self._jobs.put(None, block=False)
            except queue.Full:
                break

        for thread in threads:
            thread.join(timeout=2.0)

        with self._lock:
            self._threads.clear()
        logger.info("Thread pool stopped")

    @property
    def size(self) -> int:
        return len(self._threads)

    def _spawn(self):
        """Start one more worker. Caller holds the lock."""
        thread = threading.Thread(
            target=self._work,
            name=f"nocase-worker-{len(self._threads)}",
            daemon=True,
        )
        self._threads.append(thread)
        thread.start()

    def _work(self):
        while True:
            job = self._jobs.get()
            if job is None:
                self._jobs.task_done()
                return

            func, args, kwargs = job
            with self._lock:
                self._busy += 1
            try:
                func(*args, **kwargs)
            except Exception as e:
                logger.exception(f"{threading.current_thread().name} job failed: {e}")
            finally:
                with self._lock:
                    self._busy -= 1
                self._jobs.task_done()
