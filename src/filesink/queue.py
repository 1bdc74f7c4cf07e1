"""Serial execution queue: one dedicated worker thread per logger.

Work submitted from any thread runs in submission order on the worker.
sync() blocks for the result; submit() returns a Future. Work submitted
from the worker itself runs inline so nested sync() calls can't deadlock.
After shutdown() everything runs inline on the caller's thread under a lock.
"""

from __future__ import annotations

import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, TypeVar

T = TypeVar("T")


class SerialQueue:
    def __init__(self, label: str) -> None:
        self.label = label
        self._lock = threading.Lock()
        self._inline_lock = threading.RLock()
        self._executor: ThreadPoolExecutor | None = ThreadPoolExecutor(
            max_workers=1,
            thread_name_prefix=f"filesink-{label}",
        )
        self._worker_ident: int | None = None
        self._executor.submit(self._mark_worker).result()

    def _mark_worker(self) -> None:
        self._worker_ident = threading.get_ident()

    def _on_worker(self) -> bool:
        return threading.get_ident() == self._worker_ident

    def submit(self, fn: Callable[[], T]) -> Future[T]:
        """Enqueue fn; the returned Future carries its result or exception."""
        with self._lock:
            executor = self._executor
            if executor is not None and not self._on_worker():
                return executor.submit(fn)
        future: Future[T] = Future()
        try:
            with self._inline_lock:
                future.set_result(fn())
        except Exception as exc:  # noqa: BLE001
            future.set_exception(exc)
        return future

    def sync(self, fn: Callable[[], T]) -> T:
        """Run fn on the queue and wait. Re-raises whatever fn raised."""
        return self.submit(fn).result()

    @property
    def is_running(self) -> bool:
        return self._executor is not None

    def shutdown(self) -> None:
        """Drain pending work and stop the worker. Idempotent."""
        with self._lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=not self._on_worker())
