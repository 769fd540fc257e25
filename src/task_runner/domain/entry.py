import time
import uuid
from enum import Enum
from typing import Any, Callable, Optional

from pydantic import BaseModel, Field


class EntryStatus(str, Enum):
    QUEUED = "queued"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


FINISHED_STATUSES = (EntryStatus.COMPLETED, EntryStatus.FAILED, EntryStatus.CANCELLED)


class TaskEntry(BaseModel):
    """
    A submitted task together with the handle its outcome is reported through.

    Timestamps come from time.monotonic() and are kept for diagnostics only;
    queue order alone decides when an entry is admitted.
    """
    id: str = Field(default_factory=lambda: f"ent_{uuid.uuid4().hex[:8]}", description="Unique entry identifier")
    fn: Callable[[], Any] = Field(..., description="Zero-argument callable producing the task result")
    future: Any = Field(..., description="Completion handle resolved or rejected exactly once")
    status: EntryStatus = EntryStatus.QUEUED
    submitted_at: float = Field(default_factory=time.monotonic, description="Monotonic submission time")
    started_at: Optional[float] = None
    finished_at: Optional[float] = None

    @property
    def is_finished(self) -> bool:
        return self.status in FINISHED_STATUSES

    @property
    def wait_time(self) -> Optional[float]:
        """Seconds spent in the queue, once the entry has left it."""
        end = self.started_at if self.started_at is not None else self.finished_at
        if end is None:
            return None
        return end - self.submitted_at

    @property
    def run_time(self) -> Optional[float]:
        if self.started_at is None or self.finished_at is None:
            return None
        return self.finished_at - self.started_at

    def set_status(self, status: EntryStatus):
        """
        Update the status of the entry and stamp the matching timestamp.
        """
        self.status = status
        if status == EntryStatus.RUNNING:
            self.started_at = time.monotonic()
        elif status in FINISHED_STATUSES:
            self.finished_at = time.monotonic()

    def resolve(self, result: Any) -> bool:
        """
        Resolve the handle with a result. Returns False if the handle was already done.
        """
        if self.future.done():
            return False
        self.future.set_result(result)
        return True

    def reject(self, error: BaseException) -> bool:
        """
        Reject the handle with an error. Returns False if the handle was already done.
        """
        if self.future.done():
            return False
        self.future.set_exception(error)
        return True
