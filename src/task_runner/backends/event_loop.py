import asyncio
from contextlib import nullcontext
import inspect
import logging
from typing import Any, Awaitable, Callable, Optional, Set, Union

from task_runner.domain.entry import TaskEntry, EntryStatus
from task_runner.errors import CancelledError
from .base import BaseScheduler

logger = logging.getLogger(__name__)


class AsyncScheduler(BaseScheduler):
    """
    Bounded-concurrency scheduler for coroutine tasks running on an asyncio event loop.

    All scheduler state is touched only from the event loop thread and never
    across an await, so the loop itself serializes admission. Handles are
    asyncio futures bound to the loop that was running when the task was
    submitted; submit, set_limit and clear_queue must be called from that loop.
    A scheduler may outlive one loop and be reused from the next, for example
    across separate asyncio.run() calls; the idle event is rebuilt per loop.
    """

    def __init__(self, limit: int = 3, history_size: int = 100):
        super().__init__(limit, history_size)
        self._idle: asyncio.Event = asyncio.Event()
        self._idle.set()
        self._idle_loop: Optional[asyncio.AbstractEventLoop] = None
        self._runners: Set[asyncio.Task] = set()

    async def __aenter__(self) -> "AsyncScheduler":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.shutdown()

    def _guard(self):
        return nullcontext()

    def _new_future(self) -> asyncio.Future:
        return asyncio.get_running_loop().create_future()

    def _notify_idle(self) -> None:
        self._idle.set()

    def _idle_event(self) -> asyncio.Event:
        # An asyncio.Event binds to the first loop that waits on it.
        loop = asyncio.get_running_loop()
        if self._idle_loop is not loop:
            self._idle = asyncio.Event()
            self._idle_loop = loop
            if self._is_idle():
                self._idle.set()
        return self._idle

    def submit(self, fn: Callable[[], Union[Awaitable[Any], Any]]) -> asyncio.Future:
        """
        Queue a task and return a future for its outcome without waiting for it to start.

        Args:
            fn: Zero-argument callable. If it returns an awaitable the awaitable's
                result becomes the task result, otherwise the return value does.

        Returns:
            asyncio.Future: Resolves with the task result, or fails with TaskError
            (task raised) or CancelledError (removed from the queue before starting).

        Raises:
            InvalidTaskError: If fn cannot be called without arguments.
            SchedulerClosedError: If the scheduler has been shut down.
            RuntimeError: If called without a running event loop.
        """
        self._validate_task(fn)
        self._check_open()
        entry = self._enqueue(fn)
        self._idle_event().clear()
        self._admit()
        return entry.future

    def _launch(self, entry: TaskEntry) -> None:
        runner = entry.future.get_loop().create_task(self._run(entry), name=f"task-runner-{entry.id}")
        self._runners.add(runner)
        runner.add_done_callback(self._runners.discard)

    async def _run(self, entry: TaskEntry) -> None:
        try:
            result = entry.fn()
            if inspect.isawaitable(result):
                result = await result
        except asyncio.CancelledError as e:
            if asyncio.current_task().cancelling():
                entry.set_status(EntryStatus.CANCELLED)
                entry.reject(CancelledError("Task runner cancelled", entry_id=entry.id))
                raise
            # Raised by the task itself, e.g. from awaiting a cancelled inner task.
            self._record_failure(entry, e)
        except (KeyboardInterrupt, SystemExit) as e:
            self._record_failure(entry, e)
            raise
        except Exception as e:
            self._record_failure(entry, e)
        else:
            entry.set_status(EntryStatus.COMPLETED)
            entry.resolve(result)
            logger.debug("Task %s completed in %.3fs", entry.id, entry.run_time)
        finally:
            self._release(entry)
            self._admit()

    async def wait_for_idle(self, timeout: float = None) -> bool:
        """
        Wait until no task is running or queued.

        Args:
            timeout (float): Give up after this many seconds. None waits indefinitely.

        Returns:
            bool: True once the scheduler is idle, False if the timeout elapsed first.
        """
        try:
            await asyncio.wait_for(self._wait_idle(), timeout)
        except asyncio.TimeoutError:
            return False
        return True

    async def _wait_idle(self) -> None:
        # The event may be cleared again by a submit before this waiter resumes.
        while not self._is_idle():
            await self._idle_event().wait()

    async def shutdown(self, wait: bool = True) -> None:
        """
        Stop accepting tasks, cancel queued entries and optionally wait for running tasks.
        """
        if not self._closed:
            self._closed = True
            logger.info("AsyncScheduler shutting down (running: %d, queued: %d)", self._running, len(self._queue))
        self.clear_queue()
        if wait:
            await self.wait_for_idle()
