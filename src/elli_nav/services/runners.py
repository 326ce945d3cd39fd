# elli_nav/services/runners.py
import threading
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from typing import TypeVar

R = TypeVar("R")


class InlineRunner:
    """Runs the job on the caller's thread; the completion is still delivered through `done`."""

    busy = 0

    def submit(self, job: Callable[[], R], done: Callable[[R], None]) -> None:
        done(job())

    def shutdown(self) -> None:
        pass


class ThreadRunner:
    """Runs jobs on a small pool; `done` fires on the worker thread, so it must only post events."""

    def __init__(self, max_workers: int = 1):
        self._pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="path-worker")
        self._lock = threading.Lock()
        self._busy = 0

    @property
    def busy(self) -> int:
        with self._lock:
            return self._busy

    def submit(self, job: Callable[[], R], done: Callable[[R], None]) -> None:
        with self._lock:
            self._busy += 1

        def _finish(f: Future) -> None:
            try:
                done(f.result())
            finally:
                with self._lock:
                    self._busy -= 1

        self._pool.submit(job).add_done_callback(_finish)

    def shutdown(self) -> None:
        self._pool.shutdown(wait=True)
