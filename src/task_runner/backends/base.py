from abc import ABC, abstractmethod
from collections import deque
import inspect
import logging
from typing import Any, Callable, ContextManager, Deque, List, Optional

from task_runner.config import SchedulerConfig
from task_runner.domain.entry import TaskEntry, EntryStatus
from task_runner.domain.status import SchedulerStatus
from task_runner.errors import (
    CancelledError,
    InvalidTaskError,
    SchedulerClosedError,
    TaskError,
    validate_history_size,
    validate_limit,
)

logger = logging.getLogger(__name__)


class BaseScheduler(ABC):
    """
    Admission control shared by every scheduler backend.

    Holds the limit, the running count and the FIFO queue of pending entries.
    Subclasses decide how a task is executed and how state mutation is
    serialized; every read or write of that state happens inside _guard().
    """

    def __init__(self, limit: int = 3, history_size: int = 100):
        self._limit: int = validate_limit(limit)
        self._running: int = 0
        self._queue: Deque[TaskEntry] = deque()
        self._history: Deque[TaskEntry] = deque(maxlen=validate_history_size(history_size))
        self._closed: bool = False

    @classmethod
    def from_config(cls, config: SchedulerConfig):
        return cls(limit=config.limit, history_size=config.history_size)

    @property
    def limit(self) -> int:
        return self._limit

    @abstractmethod
    def _guard(self) -> ContextManager:
        """Context manager serializing access to the scheduler state."""

    @abstractmethod
    def _new_future(self) -> Any:
        """Create an unresolved completion handle."""

    @abstractmethod
    def _launch(self, entry: TaskEntry) -> None:
        """Begin executing an admitted entry; called with the state guarded."""

    def _notify_idle(self) -> None:
        """Wake idle waiters; called with the state guarded once the scheduler is idle."""

    def _validate_task(self, fn: Callable[[], Any]) -> None:
        if not callable(fn):
            raise InvalidTaskError(f"Task must be callable, got {type(fn).__name__}")
        try:
            signature = inspect.signature(fn)
        except (TypeError, ValueError):
            # Builtins without an introspectable signature are accepted as is.
            return
        try:
            signature.bind()
        except TypeError:
            raise InvalidTaskError(f"Task must be callable without arguments, {fn!r} expects {signature}")

    def _check_open(self) -> None:
        if self._closed:
            raise SchedulerClosedError("Scheduler has been shut down")

    def _is_idle(self) -> bool:
        return self._running == 0 and not self._queue

    def _enqueue(self, fn: Callable[[], Any]) -> TaskEntry:
        entry = TaskEntry(fn=fn, future=self._new_future())
        self._queue.append(entry)
        logger.debug("Queued entry %s (queued: %d)", entry.id, len(self._queue))
        return entry

    def _take_next(self) -> Optional[TaskEntry]:
        """
        Pop the queue head for admission, or return None if nothing may be admitted.

        Heads whose handle was abandoned by the caller are dropped as cancelled
        without consuming a slot.
        """
        while self._running < self._limit and self._queue:
            entry = self._queue.popleft()
            if not self._claim(entry):
                entry.set_status(EntryStatus.CANCELLED)
                self._history.append(entry)
                logger.debug("Skipped abandoned entry %s", entry.id)
                continue
            self._running += 1
            entry.set_status(EntryStatus.RUNNING)
            logger.debug("Admitted entry %s (running: %d/%d)", entry.id, self._running, self._limit)
            return entry
        return None

    def _claim(self, entry: TaskEntry) -> bool:
        """Return False if the entry's handle was cancelled by its caller."""
        return not entry.future.done()

    def _admit(self) -> None:
        """
        Admit queue heads until the scheduler is saturated or the queue is drained.
        """
        while True:
            entry = self._take_next()
            if entry is None:
                break
            self._launch(entry)
        if self._is_idle():
            self._notify_idle()

    def _record_failure(self, entry: TaskEntry, e: BaseException) -> None:
        entry.set_status(EntryStatus.FAILED)
        logger.warning("Task %s failed: %r", entry.id, e)
        error = TaskError(entry.id, e)
        error.__cause__ = e
        entry.reject(error)

    def _release(self, entry: TaskEntry) -> None:
        self._running -= 1
        self._history.append(entry)

    def _drain_queue(self) -> List[TaskEntry]:
        cleared = list(self._queue)
        self._queue.clear()
        for entry in cleared:
            entry.set_status(EntryStatus.CANCELLED)
            self._history.append(entry)
        if self._is_idle():
            self._notify_idle()
        return cleared

    def _reject_cleared(self, entries: List[TaskEntry]) -> None:
        for entry in entries:
            entry.reject(CancelledError(entry_id=entry.id))

    def clear_queue(self) -> int:
        """
        Cancel every entry still waiting in the queue. Running tasks are not affected.

        Returns:
            int: The number of entries removed.
        """
        with self._guard():
            cleared = self._drain_queue()
        self._reject_cleared(cleared)
        if cleared:
            logger.info("Cleared %d queued entries", len(cleared))
        return len(cleared)

    def set_limit(self, new_limit: int) -> None:
        """
        Change the concurrency limit. Raising it admits queued tasks right away;
        lowering it never interrupts running tasks.
        """
        validate_limit(new_limit)
        with self._guard():
            old_limit = self._limit
            self._limit = new_limit
            if new_limit > self._running:
                self._admit()
        logger.info("Concurrency limit changed from %d to %d", old_limit, new_limit)

    def status(self) -> SchedulerStatus:
        with self._guard():
            return SchedulerStatus(
                running=self._running,
                queued=len(self._queue),
                limit=self._limit,
                available_slots=max(self._limit - self._running, 0),
            )

    def is_idle(self) -> bool:
        with self._guard():
            return self._is_idle()

    @property
    def is_closed(self) -> bool:
        return self._closed

    def recent_entries(self, limit: int = 10) -> List[TaskEntry]:
        """
        List the most recently finished entries, newest first.
        """
        with self._guard():
            entries = list(self._history)
        return entries[::-1][:limit]

    @abstractmethod
    def submit(self, fn: Callable[[], Any]) -> Any:
        """Queue a task and return its completion handle."""

    @abstractmethod
    def wait_for_idle(self, timeout: float = None):
        """Wait until no task is running or queued."""

    @abstractmethod
    def shutdown(self, wait: bool = True):
        """Refuse new submissions, cancel queued entries and optionally wait for running ones."""
