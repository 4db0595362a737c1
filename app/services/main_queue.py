from __future__ import annotations

import queue
import threading
from concurrent.futures import Future
from typing import Any, Callable


class MainQueue:
    """Single worker thread that runs submitted callables in FIFO order.

    Every controller state change and every presentation callback goes
    through here, so none of them ever run concurrently.
    """

    _STOP = object()

    def __init__(self, name: str = "main-queue") -> None:
        self.name = name
        self._tasks: queue.Queue = queue.Queue()
        self._thread: threading.Thread | None = None
        self.failures = 0

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def is_current(self) -> bool:
        return threading.current_thread() is self._thread

    def start(self) -> None:
        if self.running:
            return
        self._thread = threading.Thread(target=self._run, daemon=True, name=self.name)
        print(f"[MAINQ][start] thread={self.name}", flush=True)
        self._thread.start()

    def stop(self, timeout: float = 1.0) -> None:
        thread = self._thread
        if thread is None:
            return
        self._tasks.put(self._STOP)
        thread.join(timeout=timeout)
        self._thread = None
        print(f"[MAINQ][stop] thread={self.name}", flush=True)

    def dispatch(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
        self._tasks.put((fn, args, kwargs))

    def join(self) -> None:
        """Block until every task dispatched so far has run."""
        self._tasks.join()

    def _run(self) -> None:
        while True:
            item = self._tasks.get()
            try:
                if item is self._STOP:
                    return
                fn, args, kwargs = item
                try:
                    fn(*args, **kwargs)
                except Exception as exc:
                    self.failures += 1
                    name = getattr(fn, "__qualname__", repr(fn))
                    print(f"[MAINQ][task_error] task={name} error={exc!r}", flush=True)
            finally:
                self._tasks.task_done()

    def call(self, fn: Callable[..., Any], *args: Any, timeout: float | None = 5.0) -> Any:
        """Run ``fn`` on the queue and wait for its result (or exception)."""
        if not self.running or self.is_current():
            return fn(*args)

        future: Future = Future()

        def _task() -> None:
            try:
                future.set_result(fn(*args))
            except Exception as exc:
                future.set_exception(exc)

        self.dispatch(_task)
        return future.result(timeout=timeout)
