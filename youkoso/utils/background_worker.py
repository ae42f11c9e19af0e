"""
Background Worker Utility
=========================

Thread-safe task queue that keeps network calls and settings writes off the
UI event loop.

Key Features:
-------------
- Single Persistent Thread: One daemon thread runs every submitted task in
  FIFO order, so writes submitted to the same worker never interleave.
- Futures: ``submit`` returns a ``concurrent.futures.Future``; completion is
  delivered through ``Future.add_done_callback`` (the UI then hops back onto
  its own thread with ``after``).
- Debouncing: ``submit_replacing`` skips a pending task when a newer one with
  the same id arrives.
- Graceful Shutdown: pending futures are cancelled and the thread is joined.

Usage:
------
    >>> worker = BackgroundWorker(name="Network")
    >>> future = worker.submit(session_manager.test_connection)
    >>> future.add_done_callback(lambda f: app.after(0, show_result, f))
    >>> worker.shutdown()

Author: Youkoso Project
"""

import logging
import queue
import threading
from concurrent.futures import Future
from typing import Any, Callable, Dict, Optional

_SHUTDOWN = object()


class BackgroundWorker:
    """
    Single-thread task executor returning futures.

    Attributes:
        name: Identifier for logging and the thread name.
    """

    def __init__(self, name: str = "BackgroundWorker"):
        self.name = name
        self.logger = logging.getLogger(__name__)

        self._queue: queue.Queue = queue.Queue()
        self._running = True
        self._lock = threading.Lock()

        # task_id -> marker of the newest submission with that id
        self._pending_replaceable: Dict[str, int] = {}
        self._marker_counter = 0

        self._thread = threading.Thread(
            target=self._process_queue,
            name=f"{name}-Thread",
            daemon=True
        )
        self._thread.start()
        self.logger.debug(f"BackgroundWorker '{name}' started")

    def submit(self, task: Callable, *args, **kwargs) -> Future:
        """
        Queue ``task(*args, **kwargs)``.

        Returns:
            Future: Resolves with the task's return value or exception. Already
                cancelled if the worker has been shut down.
        """
        return self._enqueue(None, task, args, kwargs)

    def submit_replacing(self, task_id: str, task: Callable, *args, **kwargs) -> Future:
        """
        Queue a task that supersedes any still-pending task with the same id.

        The superseded task's future is cancelled when it is dequeued.
        """
        return self._enqueue(task_id, task, args, kwargs)

    def cancel_all(self) -> None:
        """Cancel every pending task. A task already running is not interrupted."""
        with self._lock:
            while True:
                try:
                    item = self._queue.get_nowait()
                except queue.Empty:
                    break
                if item is not _SHUTDOWN:
                    item[2].cancel()
                self._queue.task_done()
            self._pending_replaceable.clear()

        self.logger.debug(f"Worker '{self.name}' cancelled all pending tasks")

    def shutdown(self, timeout: float = 2.0) -> None:
        """
        Stop accepting tasks, cancel pending ones and join the thread.

        Args:
            timeout: Maximum seconds to wait for a running task to finish.
        """
        if not self._running:
            return

        self.logger.debug(f"Worker '{self.name}' shutting down...")
        self._running = False
        self.cancel_all()
        self._queue.put(_SHUTDOWN)

        if self._thread.is_alive() and self._thread is not threading.current_thread():
            self._thread.join(timeout=timeout)
            if self._thread.is_alive():
                self.logger.warning(f"Worker '{self.name}' thread did not terminate within {timeout}s")

        self.logger.debug(f"Worker '{self.name}' shutdown complete")

    def is_alive(self) -> bool:
        return self._thread.is_alive()

    @property
    def pending_count(self) -> int:
        """Approximate number of queued tasks."""
        return self._queue.qsize()

    # ------------------------------------------------------------------------
    # INTERNALS
    # ------------------------------------------------------------------------

    def _enqueue(self, task_id: Optional[str], task: Callable, args, kwargs) -> Future:
        future: Future = Future()
        if not self._running:
            self.logger.warning(f"Worker '{self.name}' is shut down, ignoring task submission")
            future.cancel()
            return future

        marker = None
        if task_id is not None:
            with self._lock:
                self._marker_counter += 1
                marker = self._marker_counter
                self._pending_replaceable[task_id] = marker

        self._queue.put((task_id, marker, future, task, args, kwargs))
        return future

    def _process_queue(self) -> None:
        while True:
            item = self._queue.get()
            if item is _SHUTDOWN:
                self._queue.task_done()
                break

            task_id, marker, future, task, args, kwargs = item
            try:
                if task_id is not None and not self._claim(task_id, marker):
                    future.cancel()
                    continue
                if not future.set_running_or_notify_cancel():
                    continue
                self._run(future, task, args, kwargs)
            finally:
                self._queue.task_done()

    def _claim(self, task_id: str, marker: int) -> bool:
        """True if ``marker`` is still the newest submission for ``task_id``."""
        with self._lock:
            if self._pending_replaceable.get(task_id) != marker:
                return False
            del self._pending_replaceable[task_id]
            return True

    def _run(self, future: Future, task: Callable, args, kwargs) -> None:
        try:
            result: Any = task(*args, **kwargs)
        except Exception as e:
            self.logger.error(
                f"Worker '{self.name}' task failed: {type(e).__name__}: {e}",
                exc_info=True
            )
            future.set_exception(e)
        else:
            future.set_result(result)
