from concurrent.futures import Future
import logging
import threading
from typing import Any, Callable, List

from task_runner.domain.entry import TaskEntry, EntryStatus
from task_runner.errors import CancelledError
from .base import BaseScheduler

logger = logging.getLogger(__name__)


class ThreadScheduler(BaseScheduler):
    """
    Bounded-concurrency scheduler for blocking callables, one worker thread per running task.

    Every state change happens under a single condition variable, which is
    also what idle waiters sleep on. Handles are resolved outside the lock, so
    future callbacks may submit new work or query the scheduler.
    """

    def __init__(self, limit: int = 3, history_size: int = 100, thread_name_prefix: str = "task-runner"):
        super().__init__(limit, history_size)
        self._cond: threading.Condition = threading.Condition()
        self._thread_name_prefix: str = thread_name_prefix

    def __enter__(self) -> "ThreadScheduler":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()

    def _guard(self):
        return self._cond

    def _new_future(self) -> Future:
        return Future()

    def _claim(self, entry: TaskEntry) -> bool:
        # Moves the future to RUNNING so the caller can no longer cancel it.
        return entry.future.set_running_or_notify_cancel()

    def _notify_idle(self) -> None:
        self._cond.notify_all()

    def _reject_cleared(self, entries: List[TaskEntry]) -> None:
        for entry in entries:
            if entry.future.set_running_or_notify_cancel():
                entry.reject(CancelledError(entry_id=entry.id))

    def submit(self, fn: Callable[[], Any]) -> Future:
        """
        Queue a task and return a future for its outcome. Safe to call from any thread.

        Raises:
            InvalidTaskError: If fn cannot be called without arguments.
            SchedulerClosedError: If the scheduler has been shut down.
        """
        self._validate_task(fn)
        with self._cond:
            self._check_open()
            entry = self._enqueue(fn)
            self._admit()
        return entry.future

    def _launch(self, entry: TaskEntry) -> None:
        worker = threading.Thread(
            target=self._run,
            args=(entry,),
            name=f"{self._thread_name_prefix}-{entry.id}",
            daemon=True,
        )
        worker.start()

    def _run(self, entry: TaskEntry) -> None:
        try:
            result = entry.fn()
        except BaseException as e:
            # SystemExit raised here would only end this worker thread.
            self._record_failure(entry, e)
        else:
            entry.set_status(EntryStatus.COMPLETED)
            entry.resolve(result)
            logger.debug("Task %s completed in %.3fs", entry.id, entry.run_time)
        finally:
            with self._cond:
                self._release(entry)
                self._admit()

    def wait_for_idle(self, timeout: float = None) -> bool:
        """
        Block the calling thread until no task is running or queued.

        Returns:
            bool: True once idle, False if the timeout elapsed first.
        """
        with self._cond:
            return self._cond.wait_for(self._is_idle, timeout)

    def shutdown(self, wait: bool = True) -> None:
        """
        Stop accepting tasks, cancel queued entries and optionally wait for running tasks.

        Worker threads are daemons and are never joined. With wait=True this
        returns once the running count drops to zero, which happens after each
        task has resolved its handle but possibly before its thread has exited.
        """
        with self._cond:
            if not self._closed:
                self._closed = True
                logger.info("ThreadScheduler shutting down (running: %d, queued: %d)", self._running, len(self._queue))
        self.clear_queue()
        if wait:
            self.wait_for_idle()
